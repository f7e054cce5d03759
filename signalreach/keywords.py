"""
Keyword tag input for workspace monitoring settings.

Workspaces store keywords as one comma-delimited string ("crm, sales tools").
KeywordSet is the editable, ordered, de-duplicated view of that string used
by onboarding and the pipeline settings screen.
"""

from typing import Iterable, List, Optional

from signalreach.errors import ValidationError

MAX_KEYWORDS = 20

ADD_KEYS = ("Enter", ",")
BACKSPACE = "Backspace"


def parse_keywords(raw: Optional[str]) -> List[str]:
    """Split a stored keyword string into trimmed, unique, non-empty terms."""
    if not raw:
        return []
    seen = []
    for part in raw.split(","):
        kw = part.strip()
        if kw and kw not in seen:
            seen.append(kw)
    return seen


def format_keywords(keywords: Iterable[str]) -> str:
    return ", ".join(keywords)


class KeywordSet:
    """Ordered keyword chips with a hard cap of MAX_KEYWORDS."""

    def __init__(self, keywords: Iterable[str] = ()):
        self._items: List[str] = []
        for kw in keywords:
            self.add(kw)

    @classmethod
    def from_storage(cls, raw: Optional[str]) -> "KeywordSet":
        return cls(parse_keywords(raw))

    @property
    def items(self) -> List[str]:
        return list(self._items)

    def __len__(self):
        return len(self._items)

    def __contains__(self, kw):
        return kw in self._items

    def add(self, value: str) -> bool:
        """Add one keyword. Returns True if it was added.

        Empty input and duplicates are ignored silently; going past the cap
        raises ValidationError so the caller can show the limit message.
        """
        kw = (value or "").strip()
        if not kw or kw in self._items:
            return False
        if len(self._items) >= MAX_KEYWORDS:
            raise ValidationError(f"Maximum {MAX_KEYWORDS} keywords.")
        self._items.append(kw)
        return True

    def remove(self, kw: str):
        self._items = [k for k in self._items if k != kw]

    def pop(self) -> Optional[str]:
        return self._items.pop() if self._items else None

    def handle_key(self, key: str, input_value: str) -> str:
        """Apply one key press from the tag input and return the new input text.

        Enter or comma commits the pending text as a keyword; Backspace on an
        empty input removes the last keyword.
        """
        if key in ADD_KEYS:
            self.add(input_value)
            return ""
        if key == BACKSPACE and not input_value:
            self.pop()
        return input_value

    def to_storage(self) -> str:
        return format_keywords(self._items)
