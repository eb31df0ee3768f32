"""Integration tests for the API client against an in-process server.

Tests cover:
- Every outcome resolving to an envelope (success, HTTP error, timeout,
  refused connection, non-JSON body)
- Failover to the next live candidate and NO_ENDPOINT without any request
- Endpoint invalidation after connectivity failures only
- Header and query parameter handling on the wire
"""

import asyncio
from collections.abc import Mapping

import pytest
from aiohttp import web

from learnquest_client.api.client import ApiClient
from learnquest_client.api.endpoints import HttpxProbe
from learnquest_client.api.session import InMemorySessionStore
from learnquest_client.types.models import ErrorCode
from tests.fixtures.factories import RecordingProbe, ServerFactory

pytestmark = pytest.mark.integration

DEAD = "http://127.0.0.1:1/api"
DEAD_HEALTH = "http://127.0.0.1:1/health"


class Backend:
    """Minimal backend recording the requests it serves."""

    def __init__(self) -> None:
        self.hits: list[str] = []
        self.last_headers: Mapping[str, str] = {}
        self.last_query: dict[str, str] = {}

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self.health)
        app.router.add_get("/api/Courses/get-course/{course_id}", self.course)
        app.router.add_get("/api/echo", self.echo)
        app.router.add_get("/api/slow", self.slow)
        app.router.add_get("/api/broken", self.broken)
        app.router.add_get("/api/legacy", self.legacy)
        app.router.add_get("/api/odd-charset", self.odd_charset)
        return app

    async def health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "Healthy"})

    async def course(self, request: web.Request) -> web.Response:
        self.hits.append(request.path)
        course_id = int(request.match_info["course_id"])
        if course_id == 404:
            return web.json_response({"success": False, "message": "Course not found"}, status=404)
        return web.json_response(
            {"success": True, "data": {"courseId": course_id, "courseName": "Python"}},
            headers={"X-Request-Id": "srv-1"},
        )

    async def echo(self, request: web.Request) -> web.Response:
        self.hits.append(request.path)
        self.last_headers = request.headers
        self.last_query = dict(request.query)
        return web.json_response({"data": {"ok": True}})

    async def slow(self, request: web.Request) -> web.Response:
        self.hits.append(request.path)
        await asyncio.sleep(1)
        return web.json_response({"data": "late"})

    async def broken(self, request: web.Request) -> web.Response:
        self.hits.append(request.path)
        return web.Response(status=502, text="<html>Bad Gateway</html>", content_type="text/html")

    async def legacy(self, request: web.Request) -> web.Response:
        self.hits.append(request.path)
        return web.json_response({"Success": True, "Data": [1, 2, 3], "Message": "ok"})

    async def odd_charset(self, request: web.Request) -> web.Response:
        self.hits.append(request.path)
        return web.Response(
            body='{"data": {"title": "Caf\u00e9"}}'.encode(),
            headers={"Content-Type": "application/json; charset=bogus-enc"},
        )


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
async def live_url(backend: Backend, make_server: ServerFactory) -> str:
    """Start the backend and return its API base URL."""
    server = await make_server(backend.app())
    return str(server.make_url("/api"))


def health_of(api_url: str) -> str:
    return api_url.removesuffix("/api") + "/health"


class TestEnvelopes:
    """Test that every outcome becomes an envelope."""

    async def test_success(self, live_url: str) -> None:
        async with ApiClient([live_url]) as client:
            response = await client.get("/Courses/get-course/5")

        assert response.success is True
        assert response.data == {"courseId": 5, "courseName": "Python"}
        assert response.status_code == 200
        assert response.request_id == "srv-1"

    async def test_pascal_case_backend(self, live_url: str) -> None:
        async with ApiClient([live_url]) as client:
            response = await client.get("/legacy")

        assert response.data == [1, 2, 3]
        assert response.message == "ok"

    async def test_http_error_keeps_endpoint(self, live_url: str, backend: Backend) -> None:
        async with ApiClient([live_url]) as client:
            response = await client.get("/Courses/get-course/404")

            assert client.state.active == live_url

        assert response.success is False
        assert response.status_code == 404
        assert response.message == "Course not found"
        assert response.error_code == ErrorCode.HTTP_ERROR

    async def test_non_json_error_body(self, live_url: str) -> None:
        async with ApiClient([live_url]) as client:
            response = await client.get("/broken")

        assert response.success is False
        assert response.status_code == 502
        assert response.message == "<html>Bad Gateway</html>"

    async def test_unknown_charset_decodes_as_utf8(self, live_url: str) -> None:
        async with ApiClient([live_url]) as client:
            response = await client.get("/odd-charset")

        assert response.success is True
        assert response.data == {"title": "Caf\u00e9"}

    async def test_timeout(self, live_url: str) -> None:
        """Test that a slow answer becomes a TIMEOUT failure and drops the endpoint."""
        async with ApiClient([live_url]) as client:
            response = await client.get("/slow", timeout=0.05)

            assert client.state.active is None

        assert response.success is False
        assert response.error_code == ErrorCode.TIMEOUT
        assert response.status_code == 408
        assert response.message == "request timeout after 0.05s"

    async def test_default_timeout_from_constructor(self, live_url: str) -> None:
        async with ApiClient([live_url], request_timeout=0.05) as client:
            response = await client.get("/slow")

        assert response.error_code == ErrorCode.TIMEOUT


class TestFailover:
    """Test candidate selection and invalidation."""

    async def test_dead_primary_uses_fallback(self, live_url: str, backend: Backend) -> None:
        probe = RecordingProbe({DEAD_HEALTH: None, health_of(live_url): 200})

        async with ApiClient([DEAD, live_url], probe=probe) as client:
            response = await client.get("/Courses/get-course/1")

            assert client.state.active == live_url

        assert response.success is True
        assert probe.calls == [DEAD_HEALTH, health_of(live_url)]

    async def test_real_probe_skips_refused_candidate(self, live_url: str) -> None:
        async with ApiClient([DEAD, live_url], probe=HttpxProbe(), probe_timeout=1.0) as client:
            response = await client.get("/Courses/get-course/2")

            assert client.state.active == live_url
            assert client.state.last_probe_ok(DEAD) is False

        assert response.success is True

    async def test_no_endpoint_sends_nothing(self, live_url: str, backend: Backend) -> None:
        """Test that an all-down candidate list fails without any request."""
        probe = RecordingProbe()

        async with ApiClient([DEAD, live_url], probe=probe) as client:
            response = await client.get("/Courses/get-course/1")

        assert response.success is False
        assert response.error_code == ErrorCode.NO_ENDPOINT
        assert DEAD in (response.message or "")
        assert live_url in (response.message or "")
        assert backend.hits == []

    async def test_network_failure_triggers_reprobe(self, live_url: str) -> None:
        """Test that a refused connection invalidates the endpoint so the next call re-probes."""
        probe = RecordingProbe({DEAD_HEALTH: 200, health_of(live_url): 200})

        async with ApiClient([DEAD, live_url], probe=probe) as client:
            first = await client.get("/Courses/get-course/1")
            assert client.state.active is None

            probe.statuses[DEAD_HEALTH] = None
            second = await client.get("/Courses/get-course/1")

        assert first.success is False
        assert first.error_code == ErrorCode.NETWORK_ERROR
        assert first.status_code is None
        assert second.success is True
        assert probe.calls == [DEAD_HEALTH, DEAD_HEALTH, health_of(live_url)]

    async def test_test_connection(self, live_url: str) -> None:
        async with ApiClient([live_url], probe=RecordingProbe({health_of(live_url): 200})) as client:
            assert await client.test_connection() is True

        async with ApiClient([DEAD], probe=RecordingProbe()) as client:
            assert await client.test_connection() is False

    async def test_absolute_url_skips_resolution(self, live_url: str) -> None:
        probe = RecordingProbe()

        async with ApiClient([DEAD], probe=probe) as client:
            response = await client.get(f"{live_url}/echo")

        assert response.success is True
        assert probe.calls == []


class TestWire:
    """Test what goes over the wire."""

    async def test_bearer_token_and_params(self, live_url: str, backend: Backend) -> None:
        store = InMemorySessionStore()
        store.save(access_token="access-1", refresh_token="refresh-1")

        async with ApiClient([live_url], session_store=store) as client:
            _ = await client.get("/echo", params={"isRead": False, "page": 2, "type": None})

        assert backend.last_headers["Authorization"] == "Bearer access-1"
        assert backend.last_headers["Accept"] == "application/json"
        assert backend.last_query == {"isRead": "false", "page": "2"}

    async def test_caller_header_wins(self, live_url: str, backend: Backend) -> None:
        store = InMemorySessionStore()
        store.save(access_token="access-1", refresh_token="refresh-1")

        async with ApiClient([live_url], session_store=store) as client:
            _ = await client.get("/echo", headers={"Authorization": "Bearer override", "X-Trace": "t1"})

        assert backend.last_headers["Authorization"] == "Bearer override"
        assert backend.last_headers["X-Trace"] == "t1"

    async def test_no_authorization_when_signed_out(self, live_url: str, backend: Backend) -> None:
        async with ApiClient([live_url]) as client:
            _ = await client.get("/echo")

        assert "Authorization" not in backend.last_headers
