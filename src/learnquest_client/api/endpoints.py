"""Endpoint resolution with sequential liveness probing.

The client is configured with an ordered list of candidate base URLs (for
example the HTTP and HTTPS variants of the same service). The resolver probes
them strictly in list order and caches the first live one in an explicit
:class:`EndpointState` owned by a single client instance.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import httpx

from learnquest_client.types.models import ProbeResult
from learnquest_client.types.protocols import Probe

logger = logging.getLogger(__name__)

API_SUFFIX = "/api"


def normalize_candidates(urls: Iterable[str]) -> tuple[str, ...]:
    """Strip trailing slashes and drop duplicates, keeping first occurrence.

    Raises:
        ValueError: If no candidate remains
    """
    candidates = tuple(dict.fromkeys(url.rstrip("/") for url in urls if url.strip()))
    if not candidates:
        msg = "Endpoint candidate list must not be empty"
        raise ValueError(msg)
    return candidates


def health_url(candidate: str, health_path: str) -> str:
    """Build the health URL for a candidate base URL.

    The health route lives beside the API root, so a trailing ``/api`` is
    removed before the path is appended.

    Examples:
        >>> health_url("http://localhost:5268/api", "/health")
        'http://localhost:5268/health'
    """
    root = candidate.rstrip("/")
    if root.lower().endswith(API_SUFFIX):
        root = root[: -len(API_SUFFIX)]
    return f"{root}{health_path}"


@dataclass(slots=True)
class EndpointState:
    """Mutable endpoint cache owned by one client instance.

    Attributes:
        candidates: Ordered candidate base URLs (failover priority)
        active: Currently cached live endpoint, if any
        last_probe: Most recent probe outcome per candidate
        resolutions: Number of full probe sequences run so far
    """

    candidates: tuple[str, ...]
    active: str | None = None
    last_probe: dict[str, ProbeResult] = field(default_factory=dict)
    resolutions: int = 0

    @classmethod
    def from_urls(cls, urls: Iterable[str]) -> "EndpointState":
        return cls(candidates=normalize_candidates(urls))

    def last_probe_at(self, candidate: str) -> datetime | None:
        result = self.last_probe.get(candidate)
        return result.checked_at if result is not None else None

    def last_probe_ok(self, candidate: str) -> bool | None:
        result = self.last_probe.get(candidate)
        return result.alive if result is not None else None


class HttpxProbe:
    """Default liveness probe backed by ``httpx.AsyncClient``.

    Transport failures (refused connection, DNS, TLS, timeout) are reported as
    ``None`` so the resolver moves on to the next candidate.
    """

    def __init__(self, *, verify: bool = True) -> None:
        self._verify: bool = verify

    async def __call__(self, url: str, *, timeout: float) -> int | None:
        try:
            async with httpx.AsyncClient(timeout=timeout, verify=self._verify) as client:
                response = await client.get(url)
                return response.status_code
        except (httpx.HTTPError, OSError) as exc:
            logger.debug("Probe of %s failed: %s", url, type(exc).__name__)
            return None


class EndpointResolver:
    """Find the first reachable candidate and cache it.

    Example:
        >>> state = EndpointState.from_urls(["http://dead:1/api", "http://localhost:5268/api"])
        >>> resolver = EndpointResolver(state)
        >>> await resolver.resolve()
        'http://localhost:5268/api'
    """

    def __init__(
        self,
        state: EndpointState,
        probe: Probe | None = None,
        *,
        health_path: str = "/health",
        probe_timeout: float = 3.0,
        accept_not_found_as_alive: bool = False,
    ) -> None:
        self._state: EndpointState = state
        self._probe: Probe = probe if probe is not None else HttpxProbe()
        self._health_path: str = health_path
        self._probe_timeout: float = probe_timeout
        self._accept_not_found_as_alive: bool = accept_not_found_as_alive
        self._lock: asyncio.Lock = asyncio.Lock()

    @property
    def state(self) -> EndpointState:
        return self._state

    @property
    def candidates(self) -> tuple[str, ...]:
        return self._state.candidates

    def is_alive_status(self, status: int | None) -> bool:
        if status is None:
            return False
        if 200 <= status <= 299:
            return True
        return status == 404 and self._accept_not_found_as_alive

    async def probe(self, candidate: str) -> ProbeResult:
        """Probe a single candidate and record the outcome in the state."""
        url = health_url(candidate, self._health_path)
        error_message: str | None = None
        try:
            status = await self._probe(url, timeout=self._probe_timeout)
        except Exception as exc:
            # A raising probe counts as unreachable
            logger.warning("Probe for %s raised %s", candidate, type(exc).__name__)
            status = None
            error_message = str(exc)

        result = ProbeResult(
            candidate=candidate,
            alive=self.is_alive_status(status),
            status=status,
            checked_at=datetime.now(UTC),
            error_message=error_message,
        )
        self._state.last_probe[candidate] = result
        return result

    async def resolve(self) -> str | None:
        """Return the cached endpoint, probing candidates in order if needed.

        Returns:
            The live base URL, or None when no candidate answered
        """
        if self._state.active is not None:
            return self._state.active

        async with self._lock:
            # Another caller may have resolved while this one waited
            if self._state.active is not None:
                return self._state.active

            self._state.resolutions += 1
            for candidate in self._state.candidates:
                result = await self.probe(candidate)
                if result.alive:
                    self._state.active = candidate
                    logger.info("Resolved API endpoint %s (status=%s)", candidate, result.status)
                    return candidate
                logger.debug("Candidate %s not alive (status=%s)", candidate, result.status)

        logger.warning("No reachable API endpoint among %d candidate(s)", len(self._state.candidates))
        return None

    def invalidate(self) -> None:
        """Forget the cached endpoint so the next resolve re-probes."""
        if self._state.active is not None:
            logger.info("Invalidating cached API endpoint %s", self._state.active)
        self._state.active = None
