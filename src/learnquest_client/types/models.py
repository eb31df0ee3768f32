"""Data models for the learnquest-client core.

This module defines the immutable dataclasses used at the transport seam:
the normalized response envelope every request resolves to, the error codes
the core itself produces, and the result of an endpoint liveness probe.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Final, Generic, TypeVar


class ErrorCode(StrEnum):
    """Error codes produced by the client core.

    Backend-supplied codes (e.g. ``AUTH_005``) are carried through the envelope
    as plain strings and never collide with these values.
    """

    NO_ENDPOINT = "NO_ENDPOINT"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    HTTP_ERROR = "HTTP_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Failures that mean "the server did not answer", as opposed to "the server said no"
CONNECTIVITY_ERROR_CODES: Final[frozenset[str]] = frozenset(
    {ErrorCode.NETWORK_ERROR, ErrorCode.TIMEOUT}
)

T = TypeVar("T")
U = TypeVar("U")


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, frozen=True)
class ApiResponse(Generic[T]):
    """Normalized response envelope.

    Every request made through the client resolves to one of these, whatever
    happened on the wire: HTTP success, HTTP error status, timeout, network
    failure or an unparseable body. Callers branch on ``success`` and never
    have to catch transport exceptions.
    """

    success: bool
    data: T | None = None
    message: str | None = None
    error_code: str | None = None
    errors: Mapping[str, Sequence[str]] | None = None
    status_code: int | None = None
    request_id: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def ok(
        cls,
        data: T | None = None,
        *,
        message: str | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> "ApiResponse[T]":
        """Build a success envelope.

        Args:
            data: Unwrapped payload
            message: Optional server-supplied message
            status_code: HTTP status code of the exchange
            request_id: Value of the ``X-Request-Id`` response header

        Returns:
            Success envelope
        """
        return cls(
            success=True,
            data=data,
            message=message,
            status_code=status_code,
            request_id=request_id,
        )

    @classmethod
    def fail(
        cls,
        message: str,
        *,
        error_code: str | None = None,
        errors: Mapping[str, Sequence[str]] | None = None,
        status_code: int | None = None,
        request_id: str | None = None,
    ) -> "ApiResponse[T]":
        """Build a failure envelope.

        Args:
            message: Human-readable failure description
            error_code: Core or backend error code
            errors: Field-level validation errors
            status_code: HTTP status code, if the server answered
            request_id: Value of the ``X-Request-Id`` response header

        Returns:
            Failure envelope
        """
        return cls(
            success=False,
            message=message,
            error_code=error_code,
            errors=errors,
            status_code=status_code,
            request_id=request_id,
        )

    @property
    def is_connectivity_failure(self) -> bool:
        """True when the request failed before any server answered."""
        return not self.success and self.error_code in CONNECTIVITY_ERROR_CODES

    def map_data(self, func: Callable[[T], U]) -> "ApiResponse[U]":
        """Return a copy of the envelope with ``data`` transformed.

        ``func`` is only applied when ``data`` is present.

        Args:
            func: Conversion applied to the payload

        Returns:
            New envelope carrying the converted payload
        """
        return ApiResponse(
            success=self.success,
            data=func(self.data) if self.data is not None else None,
            message=self.message,
            error_code=self.error_code,
            errors=self.errors,
            status_code=self.status_code,
            request_id=self.request_id,
            timestamp=self.timestamp,
        )

    def as_failure(self, message: str, *, error_code: str) -> "ApiResponse[U]":
        """Return a failure copy keeping the transport metadata.

        Args:
            message: Replacement failure message
            error_code: Replacement error code

        Returns:
            Failure envelope with the same status code and request id
        """
        return ApiResponse(
            success=False,
            message=message,
            error_code=error_code,
            errors=self.errors,
            status_code=self.status_code,
            request_id=self.request_id,
            timestamp=self.timestamp,
        )


@dataclass(slots=True, frozen=True)
class ProbeResult:
    """Outcome of a single endpoint liveness probe."""

    candidate: str
    alive: bool
    status: int | None
    checked_at: datetime
    error_message: str | None = None
