from __future__ import annotations

import os
import tempfile

# Set test environment BEFORE importing app modules.
# character_manager.db creates the engine at module level using
# get_settings().db_url, so env vars must be overridden before any import.
_test_tmp = tempfile.mkdtemp(prefix="character-manager-test-")
os.environ.setdefault("DATA_DIR", os.path.join(_test_tmp, "data"))
os.environ.setdefault("DB_URL", "sqlite://")

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import character_manager.models  # noqa: F401  register SQLModel tables
from character_manager import plugin
from character_manager.client import ApiClient
from character_manager.config import HANDLE_HEADER, get_settings
from character_manager.db import get_session
from character_manager.main import app as fastapi_app
from character_manager.services.associations import AssociationStore

PREFIX = get_settings().api_prefix


# ── Database fixtures ─────────────────────────────────────────────────


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite engine for testing.

    Uses StaticPool so every connection shares the same in-memory database.
    Recreates tables per test for full isolation.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Provide a fresh session per test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="store")
def store_fixture(session) -> AssociationStore:
    return AssociationStore(session)


# ── HTTP client fixtures ──────────────────────────────────────────────


def _override_session(session):
    def _get_session_override():
        yield session

    plugin.api.dependency_overrides[get_session] = _get_session_override


@pytest.fixture(name="client")
def client_fixture(session):
    """TestClient on the standalone app, rooted at the plugin prefix.

    No handle header is sent, so requests run as the default (admin) user.
    """
    _override_session(session)
    with TestClient(fastapi_app, base_url=f"http://testserver{PREFIX}") as client:
        yield client
    plugin.api.dependency_overrides.clear()


@pytest.fixture(name="guest_client")
def guest_client_fixture(session):
    """TestClient identifying as a non-admin user, for testing 403s."""
    _override_session(session)
    with TestClient(fastapi_app, base_url=f"http://testserver{PREFIX}") as client:
        client.headers[HANDLE_HEADER] = "guest"
        yield client
    plugin.api.dependency_overrides.clear()


# ── Client sync layer fixtures ────────────────────────────────────────


@pytest_asyncio.fixture(name="api_client")
async def api_client_fixture(session):
    """ApiClient talking to the plugin API in-process over ASGI."""
    _override_session(session)
    api = ApiClient(
        "http://testserver",
        prefix="",
        transport=httpx.ASGITransport(app=plugin.api),
    )
    yield api
    await api.close()
    plugin.api.dependency_overrides.clear()
