"""Response envelope adapter.

Turns one raw HTTP answer (status, content type, body text) into an
:class:`ApiResponse`. The backend is inconsistent about key casing, so every
lookup prefers the lowercase key and falls back to the PascalCase one:

======================  ======================
preferred               fallback
======================  ======================
``data``                ``Data``
``message``             ``Message``
``errors``              ``Errors``
``errorCode``           ``ErrorCode``
``success``             ``Success``
======================  ======================
"""

import json
from collections.abc import Mapping, Sequence
from typing import Final

from typing_extensions import TypeIs

from learnquest_client.types.models import ApiResponse, ErrorCode

_MISSING: Final = object()

_STATUS_MESSAGES: Final[Mapping[int, str]] = {
    400: "invalid data",
    401: "unauthorized",
    403: "forbidden",
    404: "not found",
}

GENERAL_ERRORS_KEY: Final[str] = "general"


def _is_object(value: object) -> TypeIs[Mapping[str, object]]:
    return isinstance(value, Mapping)


def _is_list(value: object) -> TypeIs[Sequence[object]]:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def pick(body: Mapping[str, object], key: str) -> object:
    """Look up ``key`` in a response body, lowercase first.

    Args:
        body: Decoded JSON object
        key: Key in its camelCase spelling (``data``, ``errorCode``)

    Returns:
        The value, or a module sentinel when neither spelling is present
    """
    if key in body:
        return body[key]
    pascal = key[:1].upper() + key[1:]
    if pascal in body:
        return body[pascal]
    return _MISSING


def status_message(status: int) -> str:
    """Default failure message for a status when the body carries none."""
    if status in _STATUS_MESSAGES:
        return _STATUS_MESSAGES[status]
    if 500 <= status <= 599:
        return "server error"
    return f"request failed with status {status}"


def normalize_errors(raw: object) -> dict[str, list[str]] | None:
    """Normalize a backend ``errors`` value to ``{field: [messages]}``.

    A bare list is stored under ``"general"``; a scalar per field becomes a
    one-element list.
    """
    if raw is _MISSING or raw is None:
        return None
    if _is_object(raw):
        normalized: dict[str, list[str]] = {}
        for field, messages in raw.items():
            if _is_list(messages):
                normalized[str(field)] = [str(item) for item in messages]
            elif messages is not None:
                normalized[str(field)] = [str(messages)]
        return normalized or None
    if _is_list(raw):
        items = [str(item) for item in raw]
        return {GENERAL_ERRORS_KEY: items} if items else None
    return {GENERAL_ERRORS_KEY: [str(raw)]}


def _is_json_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _optional_str(value: object) -> str | None:
    if value is _MISSING or value is None:
        return None
    return str(value)


def adapt_response(
    status: int,
    content_type: str | None,
    text: str,
    *,
    request_id: str | None = None,
) -> ApiResponse[object]:
    """Build the normalized envelope for one HTTP answer.

    Args:
        status: HTTP status code
        content_type: Value of the ``Content-Type`` response header
        text: Decoded response body
        request_id: Value of the ``X-Request-Id`` response header

    Returns:
        Success envelope for 2xx answers (unless the body says
        ``success: false``), failure envelope otherwise
    """
    is_2xx = 200 <= status <= 299
    body: object = _MISSING

    if _is_json_content_type(content_type) and text.strip():
        try:
            body = json.loads(text)  # pyright: ignore[reportAny]
        except ValueError:
            body = _MISSING

    if body is _MISSING:
        # Non-JSON (or broken JSON) bodies degrade to a text message
        message = text.strip() or None
        if is_2xx:
            return ApiResponse.ok(message=message, status_code=status, request_id=request_id)
        return ApiResponse.fail(
            message or status_message(status),
            error_code=ErrorCode.HTTP_ERROR,
            status_code=status,
            request_id=request_id,
        )

    if not _is_object(body):
        # JSON arrays and scalars are payloads in their own right
        if is_2xx:
            return ApiResponse.ok(body, status_code=status, request_id=request_id)
        return ApiResponse.fail(
            status_message(status),
            error_code=ErrorCode.HTTP_ERROR,
            status_code=status,
            request_id=request_id,
        )

    message = _optional_str(pick(body, "message"))
    error_code = _optional_str(pick(body, "errorCode"))
    errors = normalize_errors(pick(body, "errors"))
    success_flag = pick(body, "success")

    if is_2xx and success_flag is not False:
        data = pick(body, "data")
        return ApiResponse.ok(
            body if data is _MISSING else data,
            message=message,
            status_code=status,
            request_id=request_id,
        )

    if is_2xx:
        fallback_message = "request failed"
        fallback_code = ErrorCode.UNKNOWN_ERROR
    else:
        fallback_message = status_message(status)
        fallback_code = ErrorCode.HTTP_ERROR

    return ApiResponse.fail(
        message or fallback_message,
        error_code=error_code or fallback_code,
        errors=errors,
        status_code=status,
        request_id=request_id,
    )
