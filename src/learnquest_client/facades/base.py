"""Shared plumbing for domain façades."""

import logging
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from learnquest_client.api.client import ApiClient
from learnquest_client.types.models import ApiResponse, ErrorCode

T = TypeVar("T")

logger = logging.getLogger(__name__)

# TypeAdapter construction is not free; one per target type is enough
_ADAPTERS: dict[object, TypeAdapter[Any]] = {}  # pyright: ignore[reportExplicitAny]


def _adapter(target: object) -> TypeAdapter[Any]:  # pyright: ignore[reportExplicitAny]
    adapter = _ADAPTERS.get(target)
    if adapter is None:
        adapter = TypeAdapter(target)
        _ADAPTERS[target] = adapter
    return adapter


def convert(response: ApiResponse[object], target: type[T]) -> ApiResponse[T]:
    """Validate the payload of a success envelope into ``target``.

    Failures pass through with their metadata. A success whose payload does
    not validate becomes an ``INVALID_RESPONSE`` failure; a success without
    payload keeps ``data=None``.

    Args:
        response: Raw envelope from the client
        target: Model class or typing construct (``list[Course]``)

    Returns:
        Envelope carrying the typed payload
    """
    if not response.success or response.data is None:
        return response.map_data(lambda _: None)  # pyright: ignore[reportReturnType]
    try:
        value: T = _adapter(target).validate_python(response.data)  # pyright: ignore[reportAny]
    except ValidationError as exc:
        logger.warning(
            "Response payload did not match %s: %d validation error(s)",
            getattr(target, "__name__", str(target)),
            exc.error_count(),
        )
        return response.as_failure(
            f"unexpected response payload: {exc.error_count()} validation error(s)",
            error_code=ErrorCode.INVALID_RESPONSE,
        )
    return response.map_data(lambda _: value)


class Facade:
    """Base class holding the shared client."""

    def __init__(self, client: ApiClient) -> None:
        self._client: ApiClient = client

    @property
    def client(self) -> ApiClient:
        return self._client
