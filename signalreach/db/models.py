"""
SignalReach - Canonical data model.

One authoritative status enum for signals, the platform and scrape-frequency
enums, and the helpers that normalise rows written by older screens.

Usage:
    from signalreach.db.models import normalize_status, shape_signal

    normalize_status("drafted")  # -> "action_required"
"""

import hashlib
import json
import logging
from typing import Optional

from signalreach.errors import ValidationError

logger = logging.getLogger("signalreach.db.models")

# ─── SIGNAL STATUS ──────────────────────────────────────────────

STATUS_NEW = "new"
STATUS_ACTION_REQUIRED = "action_required"
STATUS_ENGAGED = "engaged"
STATUS_WON = "won"
STATUS_LOST = "lost"
STATUS_DISCARDED = "discarded"

SIGNAL_STATUSES = (
    STATUS_NEW, STATUS_ACTION_REQUIRED, STATUS_ENGAGED,
    STATUS_WON, STATUS_LOST, STATUS_DISCARDED,
)
TERMINAL_STATUSES = frozenset({STATUS_WON, STATUS_LOST, STATUS_DISCARDED})

# Labels used by the feed board and mock data before the enum was unified
LEGACY_STATUS_ALIASES = {
    "drafted": STATUS_ACTION_REQUIRED,
    "replied": STATUS_ENGAGED,
    "dismissed": STATUS_DISCARDED,
    "hot": STATUS_NEW,
    "warm": STATUS_NEW,
}

# ─── PLATFORMS ──────────────────────────────────────────────────

PLATFORM_REDDIT = "reddit"
PLATFORM_TWITTER = "twitter"
PLATFORM_LINKEDIN = "linkedin"
PLATFORMS = (PLATFORM_REDDIT, PLATFORM_TWITTER, PLATFORM_LINKEDIN)

# Short-form platforms enforce a soft character limit on drafts
CHAR_LIMITS = {PLATFORM_TWITTER: 280}

# ─── WORKSPACE SETTINGS ─────────────────────────────────────────

SCRAPE_FREQUENCIES = ("6h", "24h", "7d")
DEFAULT_SCRAPE_FREQUENCY = "24h"
FREQUENCY_ALIASES = {"daily": "24h", "weekly": "7d"}
DEFAULT_WORKSPACE_NAME = "My Primary Workspace"
ACCOUNT_TYPES = ("saas", "agency")

# ─── INGEST LIMITS ──────────────────────────────────────────────

MAX_POST_CONTENT = 5000
UNKNOWN_AUTHOR = "unknown"


def normalize_status(value: Optional[str], strict: bool = False) -> str:
    """Map any known status label onto the canonical enum.

    With strict=True an unknown label raises ValidationError (used on writes);
    otherwise it reads back as "new".
    """
    label = (value or "").strip().lower()
    if label in SIGNAL_STATUSES:
        return label
    if label in LEGACY_STATUS_ALIASES:
        return LEGACY_STATUS_ALIASES[label]
    if strict:
        raise ValidationError(
            f"status must be one of {', '.join(SIGNAL_STATUSES)}."
        )
    return STATUS_NEW


def status_query_labels(statuses) -> list:
    """Canonical statuses plus every legacy label that maps onto them."""
    canonical = {normalize_status(s, strict=True) for s in statuses}
    labels = set(canonical)
    for legacy, target in LEGACY_STATUS_ALIASES.items():
        if target in canonical:
            labels.add(legacy)
    return sorted(labels)


def normalize_frequency(value: Optional[str]) -> str:
    label = (value or DEFAULT_SCRAPE_FREQUENCY).strip().lower()
    label = FREQUENCY_ALIASES.get(label, label)
    if label not in SCRAPE_FREQUENCIES:
        raise ValidationError(
            f"scrape_frequency must be one of {', '.join(SCRAPE_FREQUENCIES)}."
        )
    return label


def normalize_platform(value: Optional[str]) -> str:
    label = (value or "").strip().lower()
    if label == "x":
        return PLATFORM_TWITTER
    return label


def char_limit_for(platform: Optional[str]) -> Optional[int]:
    return CHAR_LIMITS.get(normalize_platform(platform))


def truncate_content(text: Optional[str]) -> str:
    return (text or "")[:MAX_POST_CONTENT]


def dedup_key(platform: str, author: str, url: Optional[str], content: str) -> str:
    """Content-addressed identity of a scraped post.

    Uses the post URL when there is one, the post text otherwise.
    """
    anchor = url or content
    raw = f"{platform}|{author}|{anchor}".encode("utf-8")
    return hashlib.sha1(raw).hexdigest()


def parse_draft_history(raw) -> list:
    """Read the ai_draft column, which older rows stored as a JSON string."""
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable ai_draft value")
            return []
    if not isinstance(raw, list):
        return []
    drafts = []
    for item in raw:
        if isinstance(item, dict) and isinstance(item.get("text"), str):
            drafts.append({
                "text": item["text"],
                "tone": item.get("tone") or "friendly",
                "instructions": item.get("instructions") or "",
            })
    return drafts


def shape_signal(row: dict) -> dict:
    """Normalise a signal row as read from the store."""
    signal = dict(row)
    signal["status"] = normalize_status(signal.get("status"))
    signal["platform"] = normalize_platform(signal.get("platform")) or PLATFORM_REDDIT
    signal["ai_draft"] = parse_draft_history(signal.get("ai_draft"))
    return signal
