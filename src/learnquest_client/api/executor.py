"""Single HTTP exchange with timeout and envelope normalization.

The executor performs exactly one request against an already-resolved base
URL. Whatever happens on the wire (answer, timeout, refused connection, TLS
failure, garbage body) the caller gets an :class:`ApiResponse` back; only
programmer errors raise.
"""

import asyncio
import json as jsonlib
import logging
import uuid
from collections.abc import Mapping
from typing import Final, Self

import aiohttp

from learnquest_client.api.envelope import adapt_response
from learnquest_client.api.multipart import MultipartBody
from learnquest_client.types.aliases import QueryParams
from learnquest_client.types.models import ApiResponse, ErrorCode
from learnquest_client.types.protocols import SessionStore
from learnquest_client.utils.logging import reset_request_id, set_request_id
from learnquest_client.utils.sanitization import sanitize_exception, sanitize_url

REQUEST_ID_HEADER: Final[str] = "X-Request-Id"
TIMEOUT_STATUS: Final[int] = 408


def is_absolute_url(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def join_url(base_url: str, path: str) -> str:
    """Join a base URL and a request path.

    Absolute ``http(s)://`` paths are used as-is.

    Examples:
        >>> join_url("http://localhost:5268/api/", "/Auth/signin")
        'http://localhost:5268/api/Auth/signin'
    """
    if is_absolute_url(path):
        return path
    if not path:
        return base_url.rstrip("/")
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def decode_body(raw: bytes, charset: str | None) -> str:
    """Decode a response body, falling back to UTF-8 for unknown charsets."""
    try:
        return raw.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def encode_params(params: QueryParams | None) -> dict[str, str]:
    """Render query parameters, dropping None and lowercasing booleans."""
    encoded: dict[str, str] = {}
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        else:
            encoded[key] = str(value)
    return encoded


class RequestExecutor:
    """Async HTTP executor owning one ``aiohttp.ClientSession``.

    Header merge order is defaults, then the bearer token from the session
    store, then caller headers (caller wins on conflict).

    Example:
        >>> async with RequestExecutor(store) as executor:
        ...     response = await executor.execute(
        ...         "http://localhost:5268/api", "/Courses", method="GET"
        ...     )
    """

    def __init__(
        self,
        session_store: SessionStore,
        *,
        default_timeout: float = 15.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            session_store: Source of the bearer token for each request
            default_timeout: Timeout in seconds when a call passes none
            session: Externally owned aiohttp session; created on enter otherwise
        """
        self._session_store: SessionStore = session_store
        self._default_timeout: float = default_timeout
        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None
        self._logger: logging.Logger = logging.getLogger(__name__)

    @property
    def default_timeout(self) -> float:
        return self._default_timeout

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            msg = "Request executor session not initialized. Use 'async with' context manager."
            raise RuntimeError(msg)
        return self._session

    async def __aenter__(self) -> Self:
        if self._session is None:
            # asyncio.timeout enforces per-request limits; aiohttp's own total timeout is disabled
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None),
                json_serialize=jsonlib.dumps,
            )
            self._owns_session = True
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def build_headers(
        self,
        headers: Mapping[str, str] | None = None,
        *,
        multipart: bool = False,
    ) -> dict[str, str]:
        """Merge default, auth and caller headers.

        Args:
            headers: Caller-supplied headers (win on conflict)
            multipart: Omit ``Content-Type`` so aiohttp sets the boundary

        Returns:
            Final request headers
        """
        merged: dict[str, str] = {"Accept": "application/json"}
        if not multipart:
            merged["Content-Type"] = "application/json"

        token = self._session_store.access_token
        if token:
            merged["Authorization"] = f"Bearer {token}"

        if headers:
            # Case-insensitive override: drop any default spelled differently
            lowered = {key.lower() for key in headers}
            merged = {key: value for key, value in merged.items() if key.lower() not in lowered}
            merged.update(headers)
        return merged

    async def execute(
        self,
        base_url: str,
        path: str,
        *,
        method: str = "GET",
        params: QueryParams | None = None,
        json: object | None = None,
        form: MultipartBody | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ApiResponse[object]:
        """Perform one HTTP exchange and normalize the outcome.

        Args:
            base_url: Resolved API base URL
            path: Relative path, or an absolute ``http(s)://`` URL
            method: HTTP method
            params: Query parameters
            json: JSON-serializable body
            form: Multipart body recipe (mutually exclusive with ``json``)
            headers: Extra headers, merged last
            timeout: Timeout override in seconds

        Returns:
            Normalized response envelope

        Raises:
            ValueError: If both ``json`` and ``form`` are given
            RuntimeError: If used outside its async context
        """
        if json is not None and form is not None:
            msg = "A request carries either a JSON body or a multipart form, not both"
            raise ValueError(msg)

        session = self.session
        url = join_url(base_url, path)
        effective_timeout = self._default_timeout if timeout is None else timeout
        request_headers = self.build_headers(headers, multipart=form is not None)
        request_token = set_request_id(uuid.uuid4().hex[:12])

        try:
            self._logger.debug("%s %s", method.upper(), sanitize_url(url))
            async with asyncio.timeout(effective_timeout):
                async with session.request(
                    method.upper(),
                    url,
                    params=encode_params(params),
                    json=json,
                    data=form.build() if form is not None else None,
                    headers=request_headers,
                ) as response:
                    raw = await response.read()
                    text = decode_body(raw, response.charset)
                    result = adapt_response(
                        response.status,
                        response.headers.get("Content-Type"),
                        text,
                        request_id=response.headers.get(REQUEST_ID_HEADER),
                    )
            self._log_outcome(method, url, result)
            return result
        except TimeoutError:
            self._logger.warning(
                "%s %s timed out after %.1fs", method.upper(), sanitize_url(url), effective_timeout
            )
            return ApiResponse.fail(
                f"request timeout after {effective_timeout:g}s",
                error_code=ErrorCode.TIMEOUT,
                status_code=TIMEOUT_STATUS,
            )
        except (aiohttp.ClientError, OSError) as exc:
            self._logger.warning(
                "%s %s failed: %s", method.upper(), sanitize_url(url), sanitize_exception(exc)
            )
            return ApiResponse.fail(
                f"network error: {sanitize_exception(exc)}",
                error_code=ErrorCode.NETWORK_ERROR,
            )
        finally:
            reset_request_id(request_token)

    def _log_outcome(self, method: str, url: str, result: ApiResponse[object]) -> None:
        if result.success:
            self._logger.debug("%s %s -> %s", method.upper(), sanitize_url(url), result.status_code)
        else:
            self._logger.info(
                "%s %s -> %s (%s)",
                method.upper(),
                sanitize_url(url),
                result.status_code,
                result.error_code,
            )
