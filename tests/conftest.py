"""
Shared pytest fixtures for the SignalReach test suite.

Every external client is replaced by an in-memory fake from fakes.py and
injected through create_app(), so no test touches the network.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(__file__))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from fakes import FakeApify, FakeOpenAI, FakeSupabase, reddit_item  # noqa: E402

from signalreach.agents.llm_gateway import LLMGateway  # noqa: E402
from signalreach.config import Settings  # noqa: E402

FRONTEND_URL = "https://app.signalreach.io"
CRON_SECRET = "cron-s3cret"
ALICE_TOKEN = "tok-alice"
BOB_TOKEN = "tok-bob"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        frontend_url=FRONTEND_URL,
        llm_api_key="test-key",
        cron_secret=CRON_SECRET,
        scrape_max_items=10,
        state_file=str(tmp_path / "state.json"),
    )


@pytest.fixture
def supabase():
    db = FakeSupabase()
    db.auth.add_user(ALICE_TOKEN, "user-alice", "alice@example.com", full_name="Alice")
    db.auth.add_user(BOB_TOKEN, "user-bob", "bob@example.com")
    return db


@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def apify():
    return FakeApify(items_by_search={
        "crm": [reddit_item(i, "crm") for i in range(3)],
        "beta": [reddit_item(i, "beta") for i in range(3)],
    })


@pytest.fixture
def llm(openai_client):
    return LLMGateway(openai_client, model="test-model")


@pytest.fixture
def app(settings, supabase, llm, apify):
    from signalreach.api.app import create_app
    return create_app(settings, supabase=supabase, llm=llm, apify=apify)


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def alice():
    return {"Authorization": f"Bearer {ALICE_TOKEN}"}


@pytest.fixture
def bob():
    return {"Authorization": f"Bearer {BOB_TOKEN}"}


@pytest.fixture
def workspace(supabase):
    """Alice's onboarded workspace with one keyword."""
    return supabase.seed("workspaces", user_id="user-alice", name="My Primary Workspace",
                         account_type="saas", keywords="crm", scrape_frequency="24h")


@pytest.fixture
def make_signal(supabase, workspace):
    def _make(status="new", platform="reddit", content="Anyone switched CRMs recently?",
              author="founder_fran", url="https://reddit.com/r/saas/1", **extra):
        return supabase.seed("signals", workspace_id=workspace["id"], platform=platform,
                             author_handle=author, post_content=content, post_url=url,
                             status=status, **extra)
    return _make
