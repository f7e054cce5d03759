"""
Signal repository - workspace-scoped CRUD over the `signals` table.

Every signal belongs to exactly one workspace. Status writes are single
atomic updates with canonical labels only. Inserts are de-duplicated at this
boundary on (workspace_id, dedup_key) unless the caller opts out.
"""

import logging
import re
from typing import Iterable, List

from signalreach.db.client import run_query
from signalreach.db.models import (
    dedup_key,
    normalize_platform,
    normalize_status,
    parse_draft_history,
    shape_signal,
    status_query_labels,
)
from signalreach.errors import NotFoundError

logger = logging.getLogger("signalreach.db.signals")

SIGNAL_COLUMNS = (
    "id, workspace_id, platform, author_handle, post_content, "
    "post_url, status, ai_draft, created_at"
)

# Matches the unique index on signals in schema.sql
DEDUP_CONFLICT = "workspace_id,dedup_key"

SEARCH_COLUMNS = ("post_content", "author_handle")

# PostgREST caps each response, so listings are read a page at a time
PAGE_SIZE = 1000


def search_filter(needle: str) -> str:
    """PostgREST `or` filter matching needle anywhere in post text or author.

    LIKE wildcards in the needle are escaped so they match literally, and the
    value is quoted so commas and parentheses survive the filter syntax.
    """
    pattern = re.sub(r"([\\%_])", r"\\\1", needle)
    pattern = pattern.replace("\\", "\\\\").replace('"', '\\"')
    quoted = f'"*{pattern}*"'
    return ",".join(f"{column}.ilike.{quoted}" for column in SEARCH_COLUMNS)


class SignalRepository:
    """CRUD access to signals through an injected Supabase client."""

    table = "signals"

    def __init__(self, client):
        self.client = client

    def _table(self):
        return self.client.table(self.table)

    def list(self, workspace_id: str, statuses: Iterable[str] = None,
             search: str = None, platform: str = None) -> List[dict]:
        """List a workspace's signals, newest first.

        Args:
            workspace_id: Owning workspace.
            statuses: Optional canonical statuses to include.
            search: Case-insensitive substring over post text and author.
            platform: Optional platform filter.
        """
        needle = (search or "").strip()
        labels = status_query_labels(statuses) if statuses else None

        def page(start):
            query = self._table().select(SIGNAL_COLUMNS).eq("workspace_id", workspace_id)
            if labels:
                query = query.in_("status", labels)
            if platform and platform != "all":
                query = query.eq("platform", normalize_platform(platform))
            if needle:
                query = query.or_(search_filter(needle))
            query = query.order("created_at", desc=True).order("id")
            return query.range(start, start + PAGE_SIZE - 1)

        rows = []
        while True:
            batch = run_query(page(len(rows)), "list signals").data or []
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                break
        return [shape_signal(r) for r in rows]

    def get(self, signal_id: str) -> dict:
        query = self._table().select(SIGNAL_COLUMNS).eq("id", signal_id).limit(1)
        rows = run_query(query, "get signal").data or []
        if not rows:
            raise NotFoundError("Signal not found.")
        return shape_signal(rows[0])

    def update_status(self, signal_id: str, status: str) -> dict:
        status = normalize_status(status, strict=True)
        query = self._table().update({"status": status}).eq("id", signal_id)
        rows = run_query(query, "update signal status").data or []
        if not rows:
            raise NotFoundError("Signal not found.")
        logger.info("Signal status -> %s", status,
                    extra={"signal_id": signal_id, "action": "status_write"})
        return shape_signal(rows[0])

    def save_drafts(self, signal_id: str, drafts: List[dict]) -> None:
        """Persist the full draft history for a signal."""
        history = parse_draft_history(drafts)
        query = self._table().update({"ai_draft": history}).eq("id", signal_id)
        run_query(query, "save drafts")

    def delete(self, signal_id: str) -> None:
        query = self._table().delete().eq("id", signal_id)
        run_query(query, "delete signal")
        logger.info("Signal deleted", extra={"signal_id": signal_id, "action": "delete"})

    def insert_many(self, rows: List[dict], dedupe: bool = True) -> List[dict]:
        """Insert a batch of new signals and return the inserted rows.

        With dedupe=True, repeats within the batch are dropped here and rows
        whose (workspace_id, dedup_key) already exists are skipped by the
        store itself, so overlapping scrape runs cannot reject each other's
        batches. With dedupe=False every row is inserted, which duplicates
        posts seen on an earlier run.
        """
        if not rows:
            return []

        prepared = []
        seen = set()
        for row in rows:
            record = dict(row)
            record["status"] = normalize_status(record.get("status"), strict=True)
            if not dedupe:
                record.pop("dedup_key", None)
                prepared.append(record)
                continue
            if not record.get("dedup_key"):
                record["dedup_key"] = dedup_key(
                    record.get("platform", ""), record.get("author_handle", ""),
                    record.get("post_url"), record.get("post_content", ""),
                )
            identity = (record.get("workspace_id"), record["dedup_key"])
            if identity in seen:
                continue
            seen.add(identity)
            prepared.append(record)

        if not dedupe:
            result = run_query(self._table().insert(prepared), "insert signals")
            return result.data or []

        query = self._table().upsert(prepared, on_conflict=DEDUP_CONFLICT, ignore_duplicates=True)
        inserted = run_query(query, "insert signals").data or []
        skipped = len(rows) - len(inserted)
        if skipped:
            logger.info("Skipped %d already-ingested signals", skipped)
        return inserted

    def count_by_status(self, workspace_id: str) -> dict:
        """Signal counts per canonical status for the dashboard columns."""
        counts = {}
        for signal in self.list(workspace_id):
            counts[signal["status"]] = counts.get(signal["status"], 0) + 1
        return counts
