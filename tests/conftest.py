"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from learnquest_client.api.session import InMemorySessionStore
from tests.fixtures.factories import FakeNotificationFacade, RecordingProbe, ServerFactory


@pytest.fixture
def session_store() -> InMemorySessionStore:
    """Provide an empty in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def signed_in_store() -> InMemorySessionStore:
    """Provide a session store holding a token pair."""
    store = InMemorySessionStore()
    store.save(access_token="access-1", refresh_token="refresh-1")
    return store


@pytest.fixture
def recording_probe() -> RecordingProbe:
    """Provide a probe that reports every URL unreachable until configured."""
    return RecordingProbe()


@pytest.fixture
def fake_facade() -> FakeNotificationFacade:
    """Provide an empty in-memory notification backend."""
    return FakeNotificationFacade()


@pytest.fixture
def session_file(tmp_path: Path) -> Path:
    """Provide a session file path inside a temporary directory."""
    return tmp_path / "state" / "session.json"


@pytest.fixture
async def make_server() -> AsyncIterator[ServerFactory]:
    """Start in-process aiohttp servers and close them after the test."""
    servers: list[TestServer] = []

    async def factory(app: web.Application) -> TestServer:
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield factory

    for server in servers:
        await server.close()
