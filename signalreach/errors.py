"""
Error taxonomy for the gateway and dashboard components.

Every error the API can surface derives from SignalReachError and carries the
HTTP status it maps to plus a public message. Internal detail stays in the
exception chain and the logs; only `public_message` reaches a caller.
"""


class SignalReachError(Exception):
    """Base class for all SignalReach errors."""

    status_code = 500
    default_message = "Something went wrong."

    def __init__(self, message: str = None, *, detail: str = None):
        self.public_message = message or self.default_message
        self.detail = detail
        super().__init__(detail or self.public_message)


class ConfigError(SignalReachError):
    """A required startup credential or setting is missing or invalid."""


class AuthError(SignalReachError):
    status_code = 401
    default_message = "Unauthorized."


class ValidationError(SignalReachError):
    status_code = 400
    default_message = "Invalid request."


class NotFoundError(SignalReachError):
    status_code = 404
    default_message = "Not found."


class InvalidTransition(SignalReachError):
    """Raised when a lifecycle action is not allowed from the current status."""

    status_code = 409
    default_message = "That action is not available for this signal."

    def __init__(self, status: str, action: str):
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot '{action}' a signal in status '{status}'.",
        )


class DraftGenerationError(SignalReachError):
    """Upstream LLM failure. Always surfaced with the same generic message."""

    status_code = 500
    default_message = "Draft generation is temporarily unavailable. Please try regenerating."


class ScrapeError(SignalReachError):
    """Scraping job failed or did not finish in time."""

    status_code = 502
    default_message = "Scraping is temporarily unavailable. Please retry later."


class RepositoryError(SignalReachError):
    """The hosted store rejected or failed an operation."""

    status_code = 500
    default_message = "Could not reach the database. Please try again."
