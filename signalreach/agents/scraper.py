"""
Reddit Scraper - Runs the Apify Reddit actor for a workspace's keywords.

Starts one actor run per call, waits a bounded time for it to finish, reads
the run's default dataset and maps each usable item into a new signal row.

Usage:
    from signalreach.agents.scraper import RedditScraper, create_apify_client

    scraper = RedditScraper(create_apify_client(token))
    rows = scraper.scrape("ws_123", ["crm alternatives", "sales tools"])
"""

from typing import List, Optional

from apify_client import ApifyClient

from signalreach.config import DEFAULT_REDDIT_ACTOR, DEFAULT_SCRAPE_MAX_ITEMS, DEFAULT_SCRAPE_WAIT_SECS
from signalreach.db.models import PLATFORM_REDDIT, STATUS_NEW, UNKNOWN_AUTHOR, truncate_content
from signalreach.errors import ConfigError, ScrapeError
from signalreach.logging_config import get_agent_logger

logger = get_agent_logger("scraper")

RUN_SUCCEEDED = "SUCCEEDED"


def create_apify_client(token: str) -> ApifyClient:
    if not token:
        raise ConfigError("Apify is not configured.", detail="APIFY_API_TOKEN is required")
    return ApifyClient(token)


def build_run_input(keywords: List[str], max_items: int) -> dict:
    return {
        "searches": list(keywords),
        "maxItems": max_items,
        "maxPostCount": max_items,
        "sort": "new",
        "skipComments": True,
        "searchPosts": True,
        "searchComments": False,
    }


def map_item(item: dict, workspace_id: str) -> Optional[dict]:
    """Map one actor result to a signal row, or None when it has no text."""
    title = (item.get("title") or "").strip()
    body = (item.get("body") or "").strip()
    if not title and not body:
        return None

    content = "\n\n".join(part for part in (title, body) if part)
    author = (item.get("username") or item.get("author") or "").strip() or UNKNOWN_AUTHOR

    return {
        "workspace_id": workspace_id,
        "platform": PLATFORM_REDDIT,
        "author_handle": author,
        "post_content": truncate_content(content),
        "post_url": item.get("url") or None,
        "status": STATUS_NEW,
    }


class RedditScraper:
    """Apify-backed scraper. The only platform scraped is Reddit."""

    platform = PLATFORM_REDDIT

    def __init__(self, client, actor_id: str = DEFAULT_REDDIT_ACTOR,
                 max_items: int = DEFAULT_SCRAPE_MAX_ITEMS,
                 wait_secs: int = DEFAULT_SCRAPE_WAIT_SECS):
        self.client = client
        self.actor_id = actor_id
        self.max_items = max_items
        self.wait_secs = wait_secs

    def fetch(self, keywords: List[str]) -> List[dict]:
        """Run the actor and return its raw dataset items.

        Raises:
            ScrapeError: If the run fails, times out, or cannot be read.
        """
        run_input = build_run_input(keywords, self.max_items)
        try:
            run = self.client.actor(self.actor_id).call(
                run_input=run_input,
                timeout_secs=self.wait_secs,
                wait_secs=self.wait_secs,
            )
        except Exception as e:
            raise ScrapeError(detail=f"actor {self.actor_id} call failed: {e}") from e

        if not run:
            raise ScrapeError(detail=f"actor {self.actor_id} returned no run")
        status = run.get("status")
        if status != RUN_SUCCEEDED:
            raise ScrapeError(detail=f"actor run {run.get('id')} ended with status {status}")

        try:
            page = self.client.dataset(run["defaultDatasetId"]).list_items(limit=self.max_items)
        except Exception as e:
            raise ScrapeError(detail=f"dataset read failed: {e}") from e
        return list(page.items or [])

    def scrape(self, workspace_id: str, keywords: List[str]) -> List[dict]:
        """Fetch and map results for one workspace."""
        items = self.fetch(keywords)
        rows = [row for row in (map_item(item, workspace_id) for item in items) if row]
        logger.info("Scraped %d items, %d usable", len(items), len(rows),
                    extra={"workspace_id": workspace_id, "platform": self.platform})
        return rows
