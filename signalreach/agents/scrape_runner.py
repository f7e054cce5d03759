"""
Scrape Runner - Cron-triggered fan-out of one scrape per workspace.

Every workspace with keywords is scraped concurrently with bounded
parallelism. The run waits for every unit to settle; a failing workspace is
logged and excluded from the counters without stopping the others.

Usage:
    runner = ScrapeRunner(workspace_repo, signal_repo, scraper, max_workers=4)
    summary = runner.run()
    summary.to_response()  # {"ok": True, "inserted": 3, "workspaces_scraped": 1}
"""

import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

from signalreach.agents.error_handler import log_unit_error, safe_execute
from signalreach.keywords import parse_keywords
from signalreach.logging_config import get_agent_logger

logger = get_agent_logger("scrape_runner")


@dataclass
class ScrapeSummary:
    inserted: int = 0
    workspaces_scraped: int = 0
    workspaces_failed: int = 0
    workspaces_total: int = 0
    run_id: str = ""

    @property
    def noop(self) -> bool:
        return self.workspaces_total == 0

    def to_response(self) -> dict:
        """Public response body. Failure detail is never included."""
        if self.noop:
            return {"inserted": 0, "workspaces_scraped": 0}
        return {
            "ok": True,
            "inserted": self.inserted,
            "workspaces_scraped": self.workspaces_scraped,
        }


class ScrapeRunner:

    def __init__(self, workspaces, signals, scraper, max_workers: int = 4,
                 dedupe: bool = True):
        self.workspaces = workspaces
        self.signals = signals
        self.scraper = scraper
        self.max_workers = max(1, max_workers)
        self.dedupe = dedupe

    def scrape_workspace(self, workspace: dict) -> int:
        """Scrape and insert for one workspace. Returns rows inserted.

        Raises whatever the scraper or repository raises; the caller isolates it.
        """
        workspace_id = workspace["id"]
        raw = (workspace.get("keywords") or "").strip()
        keywords = parse_keywords(raw)
        if not keywords:
            logger.info("Skipping workspace with blank keywords", extra={"workspace_id": workspace_id})
            return 0

        rows = self.scraper.scrape(workspace_id, keywords)
        if not rows:
            return 0
        inserted = self.signals.insert_many(rows, dedupe=self.dedupe)
        return len(inserted)

    def run(self) -> ScrapeSummary:
        """Scrape every workspace with keywords and aggregate the results."""
        run_id = uuid.uuid4().hex[:12]
        workspaces = self.workspaces.list_with_keywords()
        summary = ScrapeSummary(workspaces_total=len(workspaces), run_id=run_id)
        if not workspaces:
            logger.info("[%s] No workspaces with keywords, nothing to scrape", run_id)
            return summary

        start = time.time()
        logger.info("[%s] Scrape run starting for %d workspaces", run_id, len(workspaces),
                    extra={"run_id": run_id, "phase": "scrape"})

        max_workers = min(self.max_workers, len(workspaces)) or 1
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_ws = {
                executor.submit(self.scrape_workspace, ws): ws["id"]
                for ws in workspaces
            }
            for future in as_completed(future_to_ws):
                workspace_id = future_to_ws[future]
                try:
                    count = future.result()
                except Exception as e:
                    summary.workspaces_failed += 1
                    log_unit_error(phase="scrape", error=e, workspace_id=workspace_id, run_id=run_id)
                    continue
                if count > 0:
                    summary.inserted += count
                    summary.workspaces_scraped += 1

        duration_ms = int((time.time() - start) * 1000)
        logger.info("[%s] Scrape run finished: inserted=%d, scraped=%d, failed=%d",
                    run_id, summary.inserted, summary.workspaces_scraped, summary.workspaces_failed,
                    extra={"run_id": run_id, "phase": "scrape", "duration_ms": duration_ms})
        return summary

    def run_for_workspace(self, workspace_id: str) -> int:
        """Background dispatch for a single workspace. Never raises."""
        def _unit():
            return self.scrape_workspace(self.workspaces.get(workspace_id))

        return safe_execute(_unit, phase="dispatch_scrape",
                            workspace_id=workspace_id, fallback=0)
