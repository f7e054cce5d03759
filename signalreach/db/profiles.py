"""Social profile repository - the user's own handles per platform."""

from typing import Dict, List

from signalreach.db.client import run_query
from signalreach.db.models import PLATFORMS, normalize_platform
from signalreach.errors import ValidationError


class SocialProfileRepository:

    table = "social_profiles"

    def __init__(self, client):
        self.client = client

    def list_for_user(self, user_id: str) -> Dict[str, str]:
        """Return {platform: handle} for a user."""
        query = self.client.table(self.table).select("platform, handle").eq("user_id", user_id)
        rows = run_query(query, "list social profiles").data or []
        return {r["platform"]: r["handle"] for r in rows if r.get("handle")}

    def upsert_many(self, user_id: str, handles: Dict[str, str],
                    workspace_id: str = None) -> List[dict]:
        """Save non-empty handles, one row per (user, platform)."""
        rows = []
        for platform, handle in handles.items():
            platform = normalize_platform(platform)
            if platform not in PLATFORMS:
                raise ValidationError(f"Unknown platform '{platform}'.")
            handle = (handle or "").strip()
            if not handle:
                continue
            row = {"user_id": user_id, "platform": platform, "handle": handle}
            if workspace_id:
                row["workspace_id"] = workspace_id
            rows.append(row)
        if not rows:
            return []
        query = self.client.table(self.table).upsert(rows, on_conflict="user_id,platform")
        return run_query(query, "save social profiles").data or []
