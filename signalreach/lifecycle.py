"""
Signal Lifecycle Panel - walks one signal through its status workflow.

    new             generate         -> action_required
    new             discard          -> discarded
    action_required regenerate       -> action_required
    action_required copy_and_engage  -> engaged
    action_required archive          -> discarded
    engaged         follow_up        -> engaged
    engaged         mark_won         -> won
    engaged         mark_lost        -> lost
    won/lost/discarded restore       -> engaged
    won/lost/discarded delete        -> (removed)

The panel owns the draft list for the open signal and a pointer to the one
being shown. Status writes go through the signal repository; drafts come from
an injected generate function (the in-process LLM gateway on the server, the
HTTP GatewayClient elsewhere). Every status write or delete fires the
on_change callback so the owning view can close and refresh.

Usage:
    panel = SignalLifecyclePanel(signal, repo, gateway.generate_draft,
                                 on_change=lambda sid, status: board.refresh())
    panel.perform("generate")
    if panel.can_send:
        panel.perform("copy_and_engage")
"""

import logging
from dataclasses import asdict, dataclass
from typing import Callable, List, Optional

from signalreach.agents.prompt_builder import DEFAULT_TONE, resolve_tone
from signalreach.db.models import (
    STATUS_ACTION_REQUIRED, STATUS_DISCARDED, STATUS_ENGAGED, STATUS_LOST,
    STATUS_NEW, STATUS_WON, TERMINAL_STATUSES,
    char_limit_for, normalize_status, parse_draft_history,
)
from signalreach.errors import DraftGenerationError, InvalidTransition, SignalReachError

logger = logging.getLogger("signalreach.lifecycle")

NO_POST_NOTICE = "This signal has no post text to reply to."

# ─── TRANSITIONS ──────────────────────────────────────────────

ACTION_GENERATE = "generate"
ACTION_REGENERATE = "regenerate"
ACTION_FOLLOW_UP = "follow_up"
ACTION_DISCARD = "discard"
ACTION_ARCHIVE = "archive"
ACTION_COPY_AND_ENGAGE = "copy_and_engage"
ACTION_MARK_WON = "mark_won"
ACTION_MARK_LOST = "mark_lost"
ACTION_RESTORE = "restore"
ACTION_DELETE = "delete"

DELETED = None

TRANSITIONS = {
    (STATUS_NEW, ACTION_GENERATE): STATUS_ACTION_REQUIRED,
    (STATUS_NEW, ACTION_DISCARD): STATUS_DISCARDED,
    (STATUS_ACTION_REQUIRED, ACTION_REGENERATE): STATUS_ACTION_REQUIRED,
    (STATUS_ACTION_REQUIRED, ACTION_COPY_AND_ENGAGE): STATUS_ENGAGED,
    (STATUS_ACTION_REQUIRED, ACTION_ARCHIVE): STATUS_DISCARDED,
    (STATUS_ENGAGED, ACTION_FOLLOW_UP): STATUS_ENGAGED,
    (STATUS_ENGAGED, ACTION_MARK_LOST): STATUS_LOST,
    (STATUS_ENGAGED, ACTION_MARK_WON): STATUS_WON,
}
for _terminal in TERMINAL_STATUSES:
    TRANSITIONS[(_terminal, ACTION_RESTORE)] = STATUS_ENGAGED
    TRANSITIONS[(_terminal, ACTION_DELETE)] = DELETED

ACTIONS = tuple(sorted({action for _, action in TRANSITIONS}))


def allowed_actions(status: str) -> List[str]:
    status = normalize_status(status)
    return sorted(action for (state, action) in TRANSITIONS if state == status)


def next_status(status: str, action: str) -> Optional[str]:
    """Target status for (status, action); None means the signal is deleted."""
    key = (normalize_status(status), action)
    if key not in TRANSITIONS:
        raise InvalidTransition(key[0], action)
    return TRANSITIONS[key]


@dataclass
class Draft:
    text: str
    tone: str = DEFAULT_TONE
    instructions: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


# ─── PANEL ────────────────────────────────────────────────────

class SignalLifecyclePanel:

    def __init__(self, signal: dict, repo, generate_draft: Callable,
                 on_change: Callable = None, clipboard: Callable = None,
                 open_url: Callable = None, celebrate: Callable = None):
        self.signal = dict(signal)
        self.signal["status"] = normalize_status(self.signal.get("status"))
        self.repo = repo
        self.generate_draft = generate_draft
        self.on_change = on_change
        self.clipboard = clipboard
        self.open_url = open_url
        self.celebrate = celebrate

        self.drafts: List[Draft] = [
            Draft(**d) for d in parse_draft_history(self.signal.get("ai_draft"))
        ]
        self.index = len(self.drafts) - 1 if self.drafts else 0
        current = self.current_draft
        self.tone = current.tone if current else DEFAULT_TONE
        self.instructions = current.instructions if current else ""

        self.deleted = False
        self.notice: Optional[str] = None
        self.error: Optional[SignalReachError] = None
        self.clipboard_text: Optional[str] = None
        self.opened_url: Optional[str] = None

    # ─── VIEW STATE ───────────────────────────────────────────

    @property
    def signal_id(self) -> str:
        return self.signal["id"]

    @property
    def status(self) -> str:
        return self.signal["status"]

    @property
    def current_draft(self) -> Optional[Draft]:
        if not self.drafts:
            return None
        return self.drafts[self.index]

    @property
    def char_count(self) -> int:
        current = self.current_draft
        return len(current.text) if current else 0

    @property
    def char_limit(self) -> Optional[int]:
        return char_limit_for(self.signal.get("platform"))

    @property
    def over_limit(self) -> bool:
        limit = self.char_limit
        return limit is not None and self.char_count > limit

    @property
    def can_send(self) -> bool:
        current = self.current_draft
        return bool(current and current.text.strip()) and not self.over_limit

    def available_actions(self) -> List[str]:
        if self.deleted:
            return []
        return allowed_actions(self.status)

    def snapshot(self) -> dict:
        return {
            "signal": None if self.deleted else dict(self.signal, ai_draft=self._draft_dicts()),
            "deleted": self.deleted,
            "drafts": self._draft_dicts(),
            "current_index": self.index,
            "tone": self.tone,
            "instructions": self.instructions,
            "char_count": self.char_count,
            "char_limit": self.char_limit,
            "over_limit": self.over_limit,
            "can_send": self.can_send,
            "available_actions": self.available_actions(),
            "notice": self.notice,
            "error": self.error.public_message if self.error else None,
            "clipboard_text": self.clipboard_text,
            "open_url": self.opened_url,
        }

    # ─── DRAFT EDITING ────────────────────────────────────────

    def set_tone(self, tone: str):
        self.tone = resolve_tone(tone)

    def set_instructions(self, instructions: str):
        self.instructions = instructions or ""

    def select_draft(self, index: int):
        if not self.drafts:
            return
        self.index = max(0, min(index, len(self.drafts) - 1))
        current = self.drafts[self.index]
        self.tone = current.tone
        self.instructions = current.instructions

    def next_draft(self):
        self.select_draft(self.index + 1)

    def prev_draft(self):
        self.select_draft(self.index - 1)

    def edit_draft(self, text: str, persist: bool = True):
        """Replace the text of the draft being shown.

        With persist=False the edit stays local until save_drafts() is called.
        """
        current = self.current_draft
        if current is None:
            self.drafts.append(Draft(text, self.tone, self.instructions))
            self.index = 0
        else:
            current.text = text
        if persist:
            self.save_drafts()

    def _draft_dicts(self) -> List[dict]:
        return [d.to_dict() for d in self.drafts]

    def save_drafts(self):
        try:
            self.repo.save_drafts(self.signal_id, self._draft_dicts())
        except SignalReachError as e:
            logger.warning("Could not save draft history: %s", e,
                           extra={"signal_id": self.signal_id})

    # ─── SIDE EFFECTS ─────────────────────────────────────────

    def _draft(self, action: str) -> bool:
        """Request a new draft and append it. On failure nothing changes."""
        if not (self.signal.get("post_content") or "").strip():
            self.notice = NO_POST_NOTICE
            return False
        try:
            text = self.generate_draft(
                self.signal.get("post_content") or "",
                self.signal.get("platform"),
                self.tone,
                self.instructions,
            )
        except DraftGenerationError as e:
            self.notice = e.public_message
            logger.info("Draft request failed during %s", action,
                        extra={"signal_id": self.signal_id, "action": action})
            return False

        self.drafts.append(Draft(text, self.tone, self.instructions))
        self.index = len(self.drafts) - 1
        self.notice = None
        self.save_drafts()
        return True

    def _write_status(self, target: str, action: str) -> bool:
        try:
            updated = self.repo.update_status(self.signal_id, target)
        except SignalReachError as e:
            self.error = e
            logger.error("Status write failed for %s: %s", action, e,
                         extra={"signal_id": self.signal_id, "action": action})
            return False

        self.signal.update({k: v for k, v in updated.items() if k != "ai_draft"})
        self.signal["status"] = normalize_status(updated.get("status", target))
        self.error = None
        logger.info("Signal moved to %s", self.signal["status"],
                    extra={"signal_id": self.signal_id, "action": action})
        if self.on_change:
            self.on_change(self.signal_id, self.signal["status"])
        return True

    # ─── ACTIONS ──────────────────────────────────────────────

    def perform(self, action: str) -> bool:
        """Run a named lifecycle action. Returns True when it took effect.

        Raises:
            InvalidTransition: If the action is not allowed from the current status.
        """
        handler = getattr(self, action, None) if action in ACTIONS else None
        if handler is None:
            raise InvalidTransition(self.status, action)
        return handler()

    def _check(self, action: str) -> Optional[str]:
        if self.deleted:
            raise InvalidTransition("deleted", action)
        return next_status(self.status, action)

    def generate(self) -> bool:
        target = self._check(ACTION_GENERATE)
        if not self._draft(ACTION_GENERATE):
            return False
        return self._write_status(target, ACTION_GENERATE)

    def regenerate(self) -> bool:
        self._check(ACTION_REGENERATE)
        return self._draft(ACTION_REGENERATE)

    def follow_up(self) -> bool:
        self._check(ACTION_FOLLOW_UP)
        return self._draft(ACTION_FOLLOW_UP)

    def discard(self) -> bool:
        return self._write_status(self._check(ACTION_DISCARD), ACTION_DISCARD)

    def archive(self) -> bool:
        return self._write_status(self._check(ACTION_ARCHIVE), ACTION_ARCHIVE)

    def copy_and_engage(self) -> bool:
        target = self._check(ACTION_COPY_AND_ENGAGE)
        if not self.can_send:
            self.notice = "Draft is empty or over the character limit."
            return False

        text = self.current_draft.text
        if not self._write_status(target, ACTION_COPY_AND_ENGAGE):
            return False

        self.clipboard_text = text
        if self.clipboard:
            try:
                self.clipboard(text)
            except Exception as e:
                self.notice = "Could not copy to clipboard. Copy the draft manually."
                logger.warning("Clipboard write failed: %s", e, extra={"signal_id": self.signal_id})

        url = self.signal.get("post_url")
        if url:
            self.opened_url = url
            if self.open_url:
                self.open_url(url)
        return True

    def mark_won(self) -> bool:
        if not self._write_status(self._check(ACTION_MARK_WON), ACTION_MARK_WON):
            return False
        if self.celebrate:
            self.celebrate()
        return True

    def mark_lost(self) -> bool:
        return self._write_status(self._check(ACTION_MARK_LOST), ACTION_MARK_LOST)

    def restore(self) -> bool:
        return self._write_status(self._check(ACTION_RESTORE), ACTION_RESTORE)

    def delete(self) -> bool:
        self._check(ACTION_DELETE)
        try:
            self.repo.delete(self.signal_id)
        except SignalReachError as e:
            self.error = e
            logger.error("Delete failed: %s", e, extra={"signal_id": self.signal_id, "action": ACTION_DELETE})
            return False

        self.deleted = True
        self.error = None
        logger.info("Signal deleted", extra={"signal_id": self.signal_id, "action": ACTION_DELETE})
        if self.on_change:
            self.on_change(self.signal_id, DELETED)
        return True
