"""
Unit tests for the session store and server-side token verification.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import pytest

from fakes import FakeAuth

from signalreach.errors import AuthError
from signalreach.session import (
    SIGNED_IN,
    SIGNED_OUT,
    TOKEN_REFRESHED,
    USER_UPDATED,
    SessionStore,
    identity_from_token,
)


@pytest.fixture
def auth():
    fake = FakeAuth()
    fake.add_user("tok-1", "user-1", "dana@example.com", full_name="Dana", password="pw")
    return fake


@pytest.fixture
def events():
    return []


@pytest.fixture
def store(auth, events):
    s = SessionStore(auth)
    s.subscribe(lambda event, identity: events.append((event, identity.id if identity else None)))
    return s


def test_identity_from_token(auth):
    identity = identity_from_token(auth, "tok-1")
    assert identity.id == "user-1"
    assert identity.display_name == "Dana"
    with pytest.raises(AuthError):
        identity_from_token(auth, "forged")
    with pytest.raises(AuthError):
        identity_from_token(auth, "")


def test_sign_in_emits_and_exposes_token(store, events):
    identity = store.sign_in_with_password("dana@example.com", "pw")
    assert identity.email == "dana@example.com"
    assert store.access_token == "tok-1"
    assert events == [(SIGNED_IN, "user-1")]


def test_bad_password(store, events):
    with pytest.raises(AuthError):
        store.sign_in_with_password("dana@example.com", "wrong")
    assert store.identity is None
    assert events == []


def test_refresh_then_sign_out(store, events, auth):
    store.sign_in_with_password("dana@example.com", "pw")
    store.refresh()
    assert store.access_token == "tok-1-r"
    store.sign_out()
    assert store.identity is None
    assert auth.signed_out == 1
    assert [e for e, _ in events] == [SIGNED_IN, TOKEN_REFRESHED, SIGNED_OUT]


def test_failed_refresh_invalidates_identity(store, events, auth):
    store.sign_in_with_password("dana@example.com", "pw")
    auth.fail_refresh = True
    with pytest.raises(AuthError):
        store.refresh()
    assert store.identity is None
    assert events[-1] == (SIGNED_OUT, None)


def test_update_display_name(store, events):
    store.sign_in_with_password("dana@example.com", "pw")
    identity = store.update_display_name("  Dana Scully ")
    assert identity.display_name == "Dana Scully"
    assert events[-1] == (USER_UPDATED, "user-1")


def test_update_display_name_requires_session(store):
    with pytest.raises(AuthError):
        store.update_display_name("x")


def test_magic_link_and_sign_up(store, auth):
    store.sign_in_with_otp("new@example.com", redirect_to="https://app/welcome")
    assert auth.otp_requests == [{"email": "new@example.com",
                                  "options": {"email_redirect_to": "https://app/welcome"}}]
    identity = store.sign_up("new@example.com", "pw2")
    assert identity.email == "new@example.com"


def test_unsubscribe(auth):
    seen = []
    store = SessionStore(auth)
    unsubscribe = store.subscribe(lambda e, i: seen.append(e))
    unsubscribe()
    store.sign_in_with_password("dana@example.com", "pw")
    assert seen == []


def test_restore_existing_session(auth):
    SessionStore(auth).sign_in_with_password("dana@example.com", "pw")
    restored = SessionStore(auth).restore()
    assert restored.id == "user-1"


def test_refresh_without_user_signs_out(store, events, auth):
    store.sign_in_with_password("dana@example.com", "pw")
    auth.refresh_without_user = True
    with pytest.raises(AuthError):
        store.refresh()
    assert store.identity is None
    assert store.access_token is None
    assert events == [(SIGNED_IN, "user-1"), (SIGNED_OUT, None)]


def test_google_sign_in_returns_provider_url(store, auth, events):
    url = store.sign_in_with_oauth(redirect_to="https://app/dashboard")
    assert url == "https://auth.example.com/authorize?provider=google"
    assert auth.oauth_requests == [{"provider": "google",
                                    "options": {"redirect_to": "https://app/dashboard"}}]
    # The session only exists once the provider redirects back
    assert store.identity is None
    assert events == []


def test_oauth_failure_is_auth_error(store):
    with pytest.raises(AuthError):
        store.sign_in_with_oauth(provider="myspace")
