"""Resilient API client.

Public entry point used by every domain façade. Composes the endpoint
resolver and the request executor:

- no live endpoint: a ``NO_ENDPOINT`` failure naming every candidate, without
  any request being sent
- connectivity failure (network error or timeout): the cached endpoint is
  invalidated so the next call re-probes the candidate list
- HTTP error status: the cached endpoint is kept, the server did answer
- 401 with ``AUTH_005`` (expired access token): the registered token
  refresher runs once and the request is replayed; a failed refresh clears
  the stored session
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Final, Self

from learnquest_client.api.endpoints import EndpointResolver, EndpointState
from learnquest_client.api.executor import RequestExecutor, is_absolute_url, join_url
from learnquest_client.api.multipart import FileUpload, MultipartBody
from learnquest_client.api.session import InMemorySessionStore
from learnquest_client.core.config import ApiConfig, MainConfig
from learnquest_client.types.aliases import QueryParams, TokenRefresher
from learnquest_client.types.models import ApiResponse, ErrorCode
from learnquest_client.types.protocols import Probe, SessionStore

TOKEN_EXPIRED_CODE: Final[str] = "AUTH_005"


class ApiClient:
    """Failover HTTP client returning normalized envelopes.

    Example:
        >>> async with ApiClient(["http://localhost:5268/api", "https://localhost:7217/api"]) as client:
        ...     response = await client.get("/Courses")
        ...     if response.success:
        ...         print(response.data)
    """

    def __init__(
        self,
        candidates: Sequence[str] | EndpointState,
        *,
        session_store: SessionStore | None = None,
        probe: Probe | None = None,
        health_path: str = "/health",
        probe_timeout: float = 3.0,
        request_timeout: float = 15.0,
        accept_not_found_as_alive: bool = False,
        executor: RequestExecutor | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            candidates: Ordered base URLs, or a prepared endpoint state
            session_store: Token store; in-memory when omitted
            probe: Liveness probe; httpx-backed when omitted
            health_path: Health route appended to each candidate's root
            probe_timeout: Probe timeout in seconds
            request_timeout: Default request timeout in seconds
            accept_not_found_as_alive: Count a 404 health answer as alive
            executor: Prepared executor (tests); built from the store otherwise

        Raises:
            ValueError: If the candidate list is empty
        """
        self._state: EndpointState = (
            candidates if isinstance(candidates, EndpointState) else EndpointState.from_urls(candidates)
        )
        self._session_store: SessionStore = session_store if session_store is not None else InMemorySessionStore()
        self._resolver: EndpointResolver = EndpointResolver(
            self._state,
            probe,
            health_path=health_path,
            probe_timeout=probe_timeout,
            accept_not_found_as_alive=accept_not_found_as_alive,
        )
        self._executor: RequestExecutor = (
            executor
            if executor is not None
            else RequestExecutor(self._session_store, default_timeout=request_timeout)
        )
        self._token_refresher: TokenRefresher | None = None
        self._refreshing: bool = False
        self._logger: logging.Logger = logging.getLogger(__name__)

    @classmethod
    def from_config(
        cls,
        config: MainConfig | ApiConfig,
        *,
        session_store: SessionStore | None = None,
        probe: Probe | None = None,
    ) -> Self:
        """Build a client from validated configuration."""
        api = config.api if isinstance(config, MainConfig) else config
        return cls(
            api.candidates(),
            session_store=session_store,
            probe=probe,
            health_path=api.health_path,
            probe_timeout=api.probe_timeout,
            request_timeout=api.request_timeout,
            accept_not_found_as_alive=api.accept_not_found_as_alive,
        )

    async def __aenter__(self) -> Self:
        _ = await self._executor.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self._executor.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def state(self) -> EndpointState:
        return self._state

    @property
    def resolver(self) -> EndpointResolver:
        return self._resolver

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._state.candidates

    def set_token_refresher(self, refresher: TokenRefresher | None) -> None:
        """Register the coroutine used to renew an expired access token."""
        self._token_refresher = refresher

    def no_endpoint_response(self) -> ApiResponse[object]:
        tried = ", ".join(self._state.candidates)
        return ApiResponse.fail(
            f"cannot reach the server; endpoints tried: {tried}",
            error_code=ErrorCode.NO_ENDPOINT,
        )

    async def resolve_url(self, path: str) -> str | None:
        """Resolve the live endpoint and join ``path`` onto it.

        Returns:
            Absolute URL, or None when no endpoint is reachable
        """
        if is_absolute_url(path):
            return path
        base_url = await self._resolver.resolve()
        if base_url is None:
            return None
        return join_url(base_url, path)

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        params: QueryParams | None = None,
        json: object | None = None,
        form: MultipartBody | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        """Send one request through the live endpoint.

        Args:
            path: Path relative to the API base, or an absolute URL
            method: HTTP method
            params: Query parameters (None values dropped)
            json: JSON-serializable body
            form: Multipart body recipe (mutually exclusive with ``json``)
            headers: Extra headers, winning over defaults
            timeout: Timeout override in seconds

        Returns:
            Normalized response envelope; never raises for network, HTTP or
            parse failures

        Raises:
            ValueError: If both ``json`` and ``form`` are given
        """
        response = await self._send(
            path, method=method, params=params, json=json, form=form, headers=headers, timeout=timeout
        )

        if response.status_code == 401 and response.error_code == TOKEN_EXPIRED_CODE:
            if await self._refresh_session():
                self._logger.info("Access token renewed, replaying %s %s", method.upper(), path)
                response = await self._send(
                    path, method=method, params=params, json=json, form=form, headers=headers, timeout=timeout
                )
            else:
                self._logger.warning("Access token expired and could not be renewed; clearing session")
                self._session_store.clear()

        return response

    async def _send(
        self,
        path: str,
        *,
        method: str,
        params: QueryParams | None,
        json: object | None,
        form: MultipartBody | None,
        headers: Mapping[str, str] | None,
        timeout: float | None,
    ) -> ApiResponse[object]:
        if json is not None and form is not None:
            msg = "A request carries either a JSON body or a multipart form, not both"
            raise ValueError(msg)

        if is_absolute_url(path):
            base_url = path
        else:
            resolved = await self._resolver.resolve()
            if resolved is None:
                return self.no_endpoint_response()
            base_url = resolved

        response = await self._executor.execute(
            base_url,
            path,
            method=method,
            params=params,
            json=json,
            form=form,
            headers=headers,
            timeout=timeout,
        )

        if response.is_connectivity_failure and not is_absolute_url(path):
            self._resolver.invalidate()
        return response

    async def _refresh_session(self) -> bool:
        # The refresh call itself can answer AUTH_005; never recurse into it
        if self._refreshing or self._token_refresher is None or self._session_store.refresh_token is None:
            return False
        self._refreshing = True
        try:
            return await self._token_refresher()
        except Exception:
            self._logger.exception("Token refresher raised")
            return False
        finally:
            self._refreshing = False

    async def get(
        self,
        path: str,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        return await self.request(path, method="GET", params=params, headers=headers, timeout=timeout)

    async def post(
        self,
        path: str,
        json: object | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        return await self.request(path, method="POST", params=params, json=json, headers=headers, timeout=timeout)

    async def put(
        self,
        path: str,
        json: object | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        return await self.request(path, method="PUT", params=params, json=json, headers=headers, timeout=timeout)

    async def patch(
        self,
        path: str,
        json: object | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        return await self.request(path, method="PATCH", params=params, json=json, headers=headers, timeout=timeout)

    async def delete(
        self,
        path: str,
        json: object | None = None,
        *,
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        return await self.request(path, method="DELETE", params=params, json=json, headers=headers, timeout=timeout)

    async def upload(
        self,
        path: str,
        fields: Mapping[str, object] | None = None,
        files: Mapping[str, FileUpload | Sequence[FileUpload]] | None = None,
        *,
        method: str = "POST",
        params: QueryParams | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        """Send a multipart request built from fields and file parts."""
        return await self.request(
            path,
            method=method,
            params=params,
            form=MultipartBody(fields=fields, files=files),
            headers=headers,
            timeout=timeout,
        )

    async def test_connection(self) -> bool:
        """Return True when some candidate endpoint is reachable."""
        return await self._resolver.resolve() is not None
