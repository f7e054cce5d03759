"""Cron-invoked scrape trigger."""

import hmac
import logging

from fastapi import APIRouter, Request

from signalreach.api.deps import bearer_token, get_scrape_runner
from signalreach.errors import AuthError

logger = logging.getLogger("signalreach.api.cron")

router = APIRouter(prefix="/api/cron", tags=["cron"])


def check_cron_secret(presented: str, expected: str) -> bool:
    """Constant-time comparison. An unset secret rejects every caller."""
    if not expected or not presented:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


@router.post("/scrape")
def cron_scrape(request: Request):
    settings = request.app.state.settings
    if not check_cron_secret(bearer_token(request), settings.cron_secret):
        logger.warning("Rejected cron scrape call with a missing or wrong secret")
        raise AuthError("Unauthorized")

    runner = get_scrape_runner(request)
    summary = runner.run()
    return summary.to_response()
