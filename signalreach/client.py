"""
Gateway Client - HTTP access to a running SignalReach gateway.

Used by the CLI and by any process that drives a SignalLifecyclePanel
against a remote gateway instead of an in-process LLM gateway.

Usage:
    client = GatewayClient("http://localhost:8080")
    draft = client.generate_draft("Looking for a CRM...", "reddit", "friendly")
"""

import logging

import requests

from signalreach.errors import AuthError, DraftGenerationError, SignalReachError

logger = logging.getLogger("signalreach.client")

DEFAULT_TIMEOUT = 60


class GatewayClient:

    def __init__(self, base_url: str, access_token: str = None,
                 timeout: int = DEFAULT_TIMEOUT, session: requests.Session = None):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, token: str = None) -> dict:
        headers = {"Content-Type": "application/json"}
        token = token or self.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def generate_draft(self, post_context: str, platform: str, tone: str,
                       instructions: str = "") -> str:
        """POST /api/generate-draft. Raises DraftGenerationError on any failure."""
        payload = {
            "postContext": post_context,
            "platform": platform,
            "tone": tone,
            "instructions": instructions or "",
        }
        try:
            resp = self.session.post(f"{self.base_url}/api/generate-draft",
                                     json=payload, headers=self._headers(),
                                     timeout=self.timeout)
        except requests.RequestException as e:
            raise DraftGenerationError(detail=f"gateway unreachable: {e}") from e

        if resp.status_code != 200:
            logger.warning("Draft request returned HTTP %s", resp.status_code)
            raise DraftGenerationError(detail=f"HTTP {resp.status_code}: {resp.text[:200]}")
        draft = (resp.json() or {}).get("draft")
        if not draft:
            raise DraftGenerationError(detail="response carried no draft")
        return draft

    def trigger_scrape(self, cron_secret: str) -> dict:
        """POST /api/cron/scrape with the shared cron secret."""
        try:
            resp = self.session.post(f"{self.base_url}/api/cron/scrape",
                                     headers=self._headers(cron_secret),
                                     timeout=self.timeout)
        except requests.RequestException as e:
            raise SignalReachError("Gateway unreachable.", detail=str(e)) from e
        if resp.status_code == 401:
            raise AuthError("Unauthorized")
        if resp.status_code != 200:
            raise SignalReachError(f"Scrape trigger failed (HTTP {resp.status_code}).")
        return resp.json()

    def health(self) -> dict:
        resp = self.session.get(f"{self.base_url}/api/health", timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
