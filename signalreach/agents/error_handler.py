"""
Failure reporting for batch work that has to keep going.

The cron fan-out and the background scrape dispatch process many
independent units (one workspace, one search). A failing unit is
reported here with the ids that identify it and the batch carries on.

    try:
        inserted = runner.scrape_workspace(ws)
    except Exception as e:
        log_unit_error("scrape", e, workspace_id=ws["id"], run_id=run_id)

    inserted = safe_execute(runner.scrape_workspace, args=(ws,),
                            phase="dispatch_scrape", workspace_id=ws["id"],
                            fallback=0)
"""

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("signalreach.error_handler")

_LEVELS = {
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def log_unit_error(
    phase: str,
    error: Optional[BaseException] = None,
    error_message: Optional[str] = None,
    workspace_id: Optional[str] = None,
    signal_id: Optional[str] = None,
    run_id: Optional[str] = None,
    severity: str = "error",
    include_traceback: bool = False,
):
    """Report one failed unit.

    The ids are attached as structured extras so a JSON log line can be
    filtered by workspace, signal or run. Unknown severities log at ERROR.
    """
    kind = type(error).__name__ if error is not None else "UnknownError"
    detail = error_message or (str(error) if error is not None else "no detail")

    context = {"phase": phase}
    for key, value in (("workspace_id", workspace_id),
                       ("signal_id", signal_id),
                       ("run_id", run_id)):
        if value:
            context[key] = value

    logger.log(
        _LEVELS.get(severity, logging.ERROR),
        "%s failed for workspace %s: %s: %s",
        phase, workspace_id or "-", kind, detail,
        extra=context,
        exc_info=error if include_traceback and error is not None else None,
    )


def safe_execute(
    fn: Callable,
    args: tuple = (),
    kwargs: Optional[dict] = None,
    phase: str = "unknown",
    workspace_id: Optional[str] = None,
    run_id: Optional[str] = None,
    fallback: Any = None,
    severity: str = "error",
) -> Any:
    """Call fn(*args, **kwargs); on any exception report it and return fallback."""
    try:
        return fn(*args, **(kwargs or {}))
    except Exception as e:
        name = getattr(fn, "__qualname__", None) or getattr(fn, "__name__", "call")
        log_unit_error(
            phase,
            e,
            error_message=f"{name} raised {e}",
            workspace_id=workspace_id,
            run_id=run_id,
            severity=severity,
            include_traceback=True,
        )
        return fallback
