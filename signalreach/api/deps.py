"""Request dependencies: bearer identity, repositories and ownership checks."""

from fastapi import Request

from signalreach.errors import AuthError, ConfigError, NotFoundError
from signalreach.session import Identity, identity_from_token


def bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return ""
    return token.strip()


def _require(request: Request, name: str, what: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ConfigError(f"{what} is not configured.")
    return value


def get_workspace_repo(request: Request):
    return _require(request, "workspaces", "The database")


def get_signal_repo(request: Request):
    return _require(request, "signals", "The database")


def get_profile_repo(request: Request):
    return _require(request, "profiles", "The database")


def get_llm(request: Request):
    return _require(request, "llm", "Draft generation")


def get_scrape_runner(request: Request):
    return _require(request, "scrape_runner", "Scraping")


def current_identity(request: Request) -> Identity:
    token = bearer_token(request)
    if not token:
        raise AuthError("Not signed in.")
    supabase = _require(request, "supabase", "The database")
    return identity_from_token(supabase.auth, token)


def owned_workspace(workspace_id: str, identity: Identity, workspaces) -> dict:
    return workspaces.get_for_user(workspace_id, identity.id)


def owned_signal(signal_id: str, identity: Identity, signals, workspaces) -> dict:
    """Fetch a signal, treating one in another user's workspace as missing."""
    signal = signals.get(signal_id)
    try:
        workspaces.get_for_user(signal["workspace_id"], identity.id)
    except NotFoundError:
        raise NotFoundError("Signal not found.")
    return signal

