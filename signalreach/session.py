"""
Session store - the current authenticated identity and its lifecycle.

Wraps the Supabase auth client injected at construction. Listeners are
notified on every lifecycle event so dependent components (the workspace
resolver, the dashboard) can refresh or clear their state.

Usage:
    store = SessionStore(supabase_client.auth)
    store.subscribe(lambda event, identity: print(event, identity))
    store.sign_in_with_password("me@example.com", "secret")
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from signalreach.errors import AuthError

logger = logging.getLogger("signalreach.session")

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"


@dataclass(frozen=True)
class Identity:
    id: str
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "Identity":
        metadata = getattr(user, "user_metadata", None) or {}
        return cls(
            id=str(user.id),
            email=getattr(user, "email", "") or "",
            display_name=metadata.get("full_name") or metadata.get("name"),
            avatar_url=metadata.get("avatar_url"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
        }


def identity_from_token(auth_client, token: str) -> Identity:
    """Resolve a bearer access token to an Identity (server side)."""
    if not token:
        raise AuthError("Not signed in.")
    try:
        response = auth_client.get_user(token)
    except Exception as e:
        logger.warning("Token verification failed: %s", e)
        raise AuthError("Session expired. Please sign in again.") from e
    user = getattr(response, "user", None)
    if user is None:
        raise AuthError("Session expired. Please sign in again.")
    return Identity.from_user(user)


class SessionStore:

    def __init__(self, auth_client):
        self.auth = auth_client
        self._identity: Optional[Identity] = None
        self._session = None
        self._listeners: List[Callable] = []

    # ─── STATE ────────────────────────────────────────────────

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def access_token(self) -> Optional[str]:
        return getattr(self._session, "access_token", None) if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None

    def subscribe(self, listener: Callable) -> Callable:
        """Register listener(event, identity). Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, event: str):
        for listener in list(self._listeners):
            listener(event, self._identity)

    def _apply(self, response, event: str) -> Optional[Identity]:
        user = getattr(response, "user", None)
        self._session = getattr(response, "session", None)
        self._identity = Identity.from_user(user) if user is not None else None
        if self._identity is not None:
            self._emit(event)
        return self._identity

    def _clear(self):
        had_identity = self._identity is not None
        self._identity = None
        self._session = None
        if had_identity:
            self._emit(SIGNED_OUT)

    # ─── LIFECYCLE ────────────────────────────────────────────

    def restore(self) -> Optional[Identity]:
        """Pick up an existing session held by the auth client, if any."""
        try:
            session = self.auth.get_session()
        except Exception as e:
            logger.warning("Could not restore session: %s", e)
            return None
        if session is None or getattr(session, "user", None) is None:
            return None
        self._session = session
        self._identity = Identity.from_user(session.user)
        self._emit(SIGNED_IN)
        return self._identity

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        try:
            response = self.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            logger.info("Password sign-in failed for %s", email)
            raise AuthError("Invalid email or password.") from e
        identity = self._apply(response, SIGNED_IN)
        if identity is None:
            raise AuthError("Invalid email or password.")
        return identity

    def sign_up(self, email: str, password: str, redirect_to: str = None) -> Optional[Identity]:
        """Create an account. Returns None while email confirmation is pending."""
        credentials = {"email": email, "password": password}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        try:
            response = self.auth.sign_up(credentials)
        except Exception as e:
            raise AuthError("Could not create the account.", detail=str(e)) from e
        if getattr(response, "session", None) is None:
            return None
        return self._apply(response, SIGNED_IN)

    def sign_in_with_otp(self, email: str, redirect_to: str = None):
        """Send a magic sign-in link. The session arrives via the link."""
        credentials = {"email": email}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        try:
            self.auth.sign_in_with_otp(credentials)
        except Exception as e:
            raise AuthError("Could not send the sign-in link.", detail=str(e)) from e

    def sign_in_with_oauth(self, provider: str = "google", redirect_to: str = None) -> str:
        """Start a provider sign-in and return the URL to send the browser to.

        The session is established when the provider redirects back.
        """
        credentials = {"provider": provider}
        if redirect_to:
            credentials["options"] = {"redirect_to": redirect_to}
        try:
            response = self.auth.sign_in_with_oauth(credentials)
        except Exception as e:
            raise AuthError(f"Could not start {provider} sign-in.", detail=str(e)) from e
        url = getattr(response, "url", None)
        if not url:
            raise AuthError(f"Could not start {provider} sign-in.", detail="no provider url")
        return url

    def sign_out(self):
        try:
            self.auth.sign_out()
        except Exception as e:
            logger.warning("Remote sign-out failed, clearing local session anyway: %s", e)
        self._clear()

    def refresh(self) -> Identity:
        """Refresh the access token. A failed refresh signs the user out."""
        try:
            response = self.auth.refresh_session()
        except Exception as e:
            logger.info("Token refresh failed, signing out: %s", e)
            self._clear()
            raise AuthError("Session expired. Please sign in again.") from e
        if getattr(response, "user", None) is None:
            logger.info("Token refresh returned no user, signing out")
            self._clear()
            raise AuthError("Session expired. Please sign in again.")
        return self._apply(response, TOKEN_REFRESHED)

    def update_display_name(self, name: str) -> Identity:
        name = (name or "").strip()
        if not self.is_authenticated:
            raise AuthError("Not signed in.")
        if not name:
            return self._identity
        try:
            response = self.auth.update_user({"data": {"full_name": name}})
        except Exception as e:
            raise AuthError("Failed to update name.", detail=str(e)) from e
        user = getattr(response, "user", None)
        if user is not None:
            self._identity = Identity.from_user(user)
            self._emit(USER_UPDATED)
        return self._identity
