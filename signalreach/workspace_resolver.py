"""
Workspace Resolver - picks the single active workspace for a session.

Given an identity, lists the user's workspaces in creation order and selects
the one whose id matches the locally persisted "last active" value, falling
back to the first. The outcome is an explicit result the caller acts on:

    Ready(workspace)      - show workspace-scoped views
    NeedsOnboarding()     - the user has no workspace yet
    ResolveError(detail)  - the lookup itself failed; retry, do not onboard

Usage:
    resolver = WorkspaceResolver(WorkspaceRepository(client), SelectionStore(path))
    result = resolver.resolve(identity)
    if resolver.needs_redirect(result, current_path="/dashboard"):
        go_to(ONBOARDING_PATH)
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from signalreach.errors import SignalReachError

logger = logging.getLogger("signalreach.workspace_resolver")

SELECTION_KEY = "sr_active_workspace_id"
ONBOARDING_PATH = "/welcome"


# ─── RESULTS ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Ready:
    workspace: dict
    state: str = "ready"


@dataclass(frozen=True)
class NeedsOnboarding:
    state: str = "needs_onboarding"


@dataclass(frozen=True)
class ResolveError:
    detail: str
    state: str = "error"


# ─── SELECTION PERSISTENCE ────────────────────────────────────

class MemorySelectionStore:
    """Selection kept for the lifetime of the process only."""

    def __init__(self):
        self._values = {}

    def get(self) -> Optional[str]:
        return self._values.get(SELECTION_KEY)

    def set(self, workspace_id: str):
        self._values[SELECTION_KEY] = workspace_id


class SelectionStore(MemorySelectionStore):
    """Persists the last-selected workspace id in a small JSON state file."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def _read(self) -> dict:
        try:
            with open(self.path) as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable state file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[str]:
        return self._read().get(SELECTION_KEY)

    def set(self, workspace_id: str):
        data = self._read()
        data[SELECTION_KEY] = workspace_id
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f)


# ─── RESOLVER ─────────────────────────────────────────────────

class WorkspaceResolver:

    def __init__(self, repo, store=None, identity=None):
        self.repo = repo
        self.store = store or MemorySelectionStore()
        self.identity = identity
        self._workspaces: List[dict] = []
        self._active: Optional[dict] = None
        self.last_result = None

    @property
    def active_workspace(self) -> Optional[dict]:
        return self._active

    def list_workspaces(self) -> List[dict]:
        return list(self._workspaces)

    def resolve(self, identity=None, preferred_id: str = None):
        """Load the identity's workspaces and select the active one.

        Args:
            identity: The signed-in identity (defaults to the last one used).
            preferred_id: Overrides the persisted selection when it matches.
        """
        if identity is not None:
            self.identity = identity
        if self.identity is None:
            self.last_result = ResolveError("Not signed in.")
            return self.last_result

        try:
            workspaces = self.repo.list_for_user(self.identity.id)
        except SignalReachError as e:
            logger.error("Workspace lookup failed: %s", e)
            self._workspaces, self._active = [], None
            self.last_result = ResolveError(e.public_message)
            return self.last_result

        self._workspaces = list(workspaces)
        if not self._workspaces:
            self._active = None
            self.last_result = NeedsOnboarding()
            return self.last_result

        wanted = preferred_id or self.store.get()
        chosen = next((w for w in self._workspaces if w.get("id") == wanted), None)
        self._active = chosen or self._workspaces[0]
        self.last_result = Ready(self._active)
        return self.last_result

    def refetch(self):
        return self.resolve()

    def set_active_workspace(self, workspace: dict):
        """Make a workspace active and remember the choice locally."""
        self._active = workspace
        self.store.set(workspace["id"])
        self.last_result = Ready(workspace)

    @staticmethod
    def needs_redirect(result, current_path: str = "") -> bool:
        """True when the caller should navigate to onboarding."""
        return isinstance(result, NeedsOnboarding) and not current_path.startswith(ONBOARDING_PATH)
