"""
Process-wide logging for the gateway, the CLI and the scrape workers.

setup_logging() installs one stdout handler (plus an optional file handler)
on the root logger. Everything else just asks for a named logger:

    logger = logging.getLogger("signalreach.api")
    logger.info("Draft generated", extra={"platform": "reddit"})

LOG_FORMAT=json emits one JSON object per line for log shipping; anything
else gives a compact text line with the structured extras appended as
key=value pairs.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

ROOT_LOGGER = "signalreach"

# Structured extras recognised on a LogRecord, in output order
CONTEXT_KEYS = (
    "workspace_id",
    "signal_id",
    "run_id",
    "phase",
    "action",
    "platform",
    "duration_ms",
)

QUIET_LOGGERS = ("urllib3", "httpx", "httpcore", "uvicorn.access")


def _record_context(record):
    return {key: getattr(record, key) for key in CONTEXT_KEYS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record):
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload = {
            "ts": stamp.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        payload.update(_record_context(record))
        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            payload["exc_type"] = exc_type.__name__
            payload["exc_msg"] = str(exc_value)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """Readable single-line output for local development."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s | %(message)s", "%H:%M:%S")

    def format(self, record):
        line = super().format(record)
        context = _record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


_configured = False


def setup_logging(level=None, fmt=None, log_file=None):
    """Attach handlers to the root logger. Later calls are no-ops.

    Arguments left as None fall back to LOG_LEVEL, LOG_FORMAT and LOG_FILE.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    fmt = (fmt or os.environ.get("LOG_FORMAT") or "text").lower()
    log_file = log_file or os.environ.get("LOG_FILE") or None

    formatter = JSONFormatter() if fmt == "json" else TextFormatter()
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        parent = os.path.dirname(log_file)
        if parent:
            os.makedirs(parent, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    resolved = logging.getLevelName(level)
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(ROOT_LOGGER).info(
        "Logging ready (level=%s format=%s file=%s)", level, fmt, log_file or "-")


def get_agent_logger(agent_name):
    """Logger for a background agent, e.g. get_agent_logger("scrape_runner")."""
    return logging.getLogger(f"{ROOT_LOGGER}.agents.{agent_name}")
