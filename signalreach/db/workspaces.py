"""
Workspace repository - tenant-scoped monitoring configuration.

A workspace holds the comma-delimited keyword list and the scrape frequency
for one user. Workspaces are created during onboarding and updated from the
pipeline settings screen; they are never hard-deleted.
"""

import logging
from typing import Iterable, List, Optional, Union

from signalreach.db.client import run_query
from signalreach.db.models import (
    ACCOUNT_TYPES,
    DEFAULT_SCRAPE_FREQUENCY,
    DEFAULT_WORKSPACE_NAME,
    normalize_frequency,
)
from signalreach.errors import NotFoundError, ValidationError
from signalreach.keywords import KeywordSet

logger = logging.getLogger("signalreach.db.workspaces")

WORKSPACE_COLUMNS = (
    "id, user_id, name, account_type, website_url, keywords, "
    "scrape_frequency, created_at"
)


def _keywords_for_storage(keywords: Union[str, Iterable[str], None]) -> Optional[str]:
    """Normalise keywords to the stored comma string, enforcing the cap."""
    if keywords is None:
        return None
    if isinstance(keywords, str):
        keywords = keywords.split(",")
    stored = KeywordSet(keywords).to_storage()
    return stored or None


class WorkspaceRepository:

    table = "workspaces"

    def __init__(self, client):
        self.client = client

    def _table(self):
        return self.client.table(self.table)

    def list_for_user(self, user_id: str) -> List[dict]:
        """All workspaces owned by a user, in creation order."""
        query = (self._table().select(WORKSPACE_COLUMNS)
                 .eq("user_id", user_id)
                 .order("created_at"))
        return run_query(query, "list workspaces").data or []

    def get(self, workspace_id: str) -> dict:
        query = self._table().select(WORKSPACE_COLUMNS).eq("id", workspace_id).limit(1)
        rows = run_query(query, "get workspace").data or []
        if not rows:
            raise NotFoundError("Workspace not found.")
        return rows[0]

    def get_for_user(self, workspace_id: str, user_id: str) -> dict:
        """Fetch a workspace, treating one owned by someone else as missing."""
        workspace = self.get(workspace_id)
        if workspace.get("user_id") != user_id:
            raise NotFoundError("Workspace not found.")
        return workspace

    def create(self, user_id: str, name: str = None, keywords=None,
               account_type: str = "saas", website_url: str = None,
               scrape_frequency: str = DEFAULT_SCRAPE_FREQUENCY) -> dict:
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(f"account_type must be one of {', '.join(ACCOUNT_TYPES)}.")
        record = {
            "user_id": user_id,
            "name": (name or "").strip() or DEFAULT_WORKSPACE_NAME,
            "account_type": account_type,
            "website_url": (website_url or "").strip() or None,
            "keywords": _keywords_for_storage(keywords),
            "scrape_frequency": normalize_frequency(scrape_frequency),
        }
        rows = run_query(self._table().insert(record), "create workspace").data or []
        if not rows:
            raise NotFoundError("Workspace was not created.")
        logger.info("Workspace created", extra={"workspace_id": rows[0].get("id")})
        return rows[0]

    def update_settings(self, workspace_id: str, keywords=None,
                        scrape_frequency: str = None) -> dict:
        """Save keywords and/or scrape frequency for a workspace."""
        changes = {}
        if keywords is not None:
            changes["keywords"] = _keywords_for_storage(keywords)
        if scrape_frequency is not None:
            changes["scrape_frequency"] = normalize_frequency(scrape_frequency)
        if not changes:
            return self.get(workspace_id)

        query = self._table().update(changes).eq("id", workspace_id)
        rows = run_query(query, "update workspace settings").data or []
        if not rows:
            raise NotFoundError("Workspace not found.")
        return rows[0]

    def list_with_keywords(self) -> List[dict]:
        """Every workspace whose keyword field is not null (cron scope)."""
        query = self._table().select("id, keywords").not_.is_("keywords", "null")
        return run_query(query, "list keyworded workspaces").data or []
