"""Signal feed, board moves and lifecycle actions."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from signalreach.api.deps import (
    current_identity, get_llm, get_signal_repo, get_workspace_repo, owned_signal, owned_workspace,
)
from signalreach.db.models import TERMINAL_STATUSES
from signalreach.errors import DraftGenerationError, InvalidTransition, ValidationError
from signalreach.lifecycle import ACTIONS, NO_POST_NOTICE, SignalLifecyclePanel, next_status

logger = logging.getLogger("signalreach.api.signals")

router = APIRouter(prefix="/api/signals", tags=["signals"])

DRAFTING_ACTIONS = {"generate", "regenerate", "follow_up"}


class StatusUpdate(BaseModel):
    status: str


class ActionRequest(BaseModel):
    tone: Optional[str] = None
    instructions: Optional[str] = None
    draft_index: Optional[int] = None
    draft_text: Optional[str] = None


@router.get("")
def list_signals(workspace_id: str, status: str = None, q: str = None, platform: str = None,
                 identity=Depends(current_identity),
                 signals=Depends(get_signal_repo), workspaces=Depends(get_workspace_repo)):
    owned_workspace(workspace_id, identity, workspaces)
    statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
    return signals.list(workspace_id, statuses=statuses, search=q, platform=platform)


@router.get("/summary")
def signal_summary(workspace_id: str, identity=Depends(current_identity),
                   signals=Depends(get_signal_repo), workspaces=Depends(get_workspace_repo)):
    owned_workspace(workspace_id, identity, workspaces)
    return signals.count_by_status(workspace_id)


@router.get("/{signal_id}")
def get_signal(signal_id: str, identity=Depends(current_identity),
               signals=Depends(get_signal_repo), workspaces=Depends(get_workspace_repo)):
    return owned_signal(signal_id, identity, signals, workspaces)


@router.patch("/{signal_id}")
def move_signal(signal_id: str, data: StatusUpdate, identity=Depends(current_identity),
                signals=Depends(get_signal_repo), workspaces=Depends(get_workspace_repo)):
    """Board drag-and-drop: set any canonical status directly."""
    owned_signal(signal_id, identity, signals, workspaces)
    return signals.update_status(signal_id, data.status)


@router.delete("/{signal_id}")
def delete_signal(signal_id: str, identity=Depends(current_identity),
                  signals=Depends(get_signal_repo), workspaces=Depends(get_workspace_repo)):
    signal = owned_signal(signal_id, identity, signals, workspaces)
    if signal["status"] not in TERMINAL_STATUSES:
        raise InvalidTransition(signal["status"], "delete")
    signals.delete(signal_id)
    return {"deleted": True, "id": signal_id}


@router.post("/{signal_id}/actions/{action}")
def run_action(signal_id: str, action: str, data: Optional[ActionRequest] = None,
               identity=Depends(current_identity),
               signals=Depends(get_signal_repo), workspaces=Depends(get_workspace_repo),
               llm=Depends(get_llm)):
    signal = owned_signal(signal_id, identity, signals, workspaces)
    if action not in ACTIONS:
        raise InvalidTransition(signal["status"], action)
    # Reject before touching the stored draft history
    next_status(signal["status"], action)

    panel = SignalLifecyclePanel(signal, signals, llm.generate_draft)
    data = data or ActionRequest()
    if data.draft_index is not None:
        panel.select_draft(data.draft_index)
    if data.tone is not None:
        panel.set_tone(data.tone)
    if data.instructions is not None:
        panel.set_instructions(data.instructions)
    if data.draft_text is not None:
        panel.edit_draft(data.draft_text, persist=False)

    if not panel.perform(action):
        if panel.error is not None:
            raise panel.error
        if action in DRAFTING_ACTIONS and panel.notice != NO_POST_NOTICE:
            raise DraftGenerationError(panel.notice)
        raise ValidationError(panel.notice)

    if data.draft_text is not None and not panel.deleted and action not in DRAFTING_ACTIONS:
        panel.save_drafts()

    logger.info("Action %s applied", action,
                extra={"signal_id": signal_id, "action": action, "workspace_id": signal["workspace_id"]})
    return panel.snapshot()
