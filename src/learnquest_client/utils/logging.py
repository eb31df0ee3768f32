"""Logging infrastructure with request-id tracking and secret redaction.

Every outgoing API call gets a request id stored in a ContextVar, so log lines
emitted while that request is in flight (executor, client retry, façade
conversion) can be correlated. Log records pass through a redacting filter
that strips bearer tokens, JWTs and token query parameters before output.
"""

import contextvars
import logging
import sys
from pathlib import Path
from typing import Final

from typing_extensions import override

from learnquest_client.utils.sanitization import (
    sanitize_args,
    sanitize_value,
)

# Request ID of the API call currently in flight; inherited by child tasks
request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id",
    default=None,
)

DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s"

# LogRecord attributes that are never treated as user-supplied extra fields
_STANDARD_ATTRS: Final[frozenset[str]] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "request_id",
    }
)


class RequestIDFilter(logging.Filter):
    """Logging filter that stamps records with the current request id.

    Records logged outside any request get ``"-"``.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        request_id = request_id_var.get()
        record.request_id = request_id if request_id is not None else "-"
        return True


class SecretRedactingFilter(logging.Filter):
    """Logging filter that redacts credentials from log records.

    Sanitizes the message text, the ``%`` formatting arguments and any
    extra fields attached via ``extra={...}``. Extra fields whose name looks
    sensitive (``refreshToken``, ``password``) are replaced wholesale.

    Examples:
        >>> logger.info("Opening stream %s", "https://host/api/Notifications/real-time?token=abc")
        # Logged as: "Opening stream https://host/api/Notifications/real-time?token=<REDACTED>"
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            sanitized_msg = sanitize_value(record.msg)
            if isinstance(sanitized_msg, str):
                record.msg = sanitized_msg

        if record.args and isinstance(record.args, tuple):
            record.args = sanitize_args(record.args)

        for attr_name in list(record.__dict__.keys()):
            if attr_name in _STANDARD_ATTRS or attr_name.startswith("_"):
                continue
            attr_value: object = getattr(record, attr_name)  # pyright: ignore[reportAny]
            setattr(record, attr_name, sanitize_value(attr_value, field_name=attr_name))

        return True


def configure_logging(
    *,
    log_level: str = "INFO",
    enable_console: bool = True,
    log_file: Path | None = None,
) -> None:
    """Configure root logging with request-id stamping and secret redaction.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        enable_console: Attach a stderr handler
        log_file: Optional file to append log output to

    Example:
        >>> configure_logging(log_level="DEBUG")
        >>> get_logger(__name__).info("Resolved endpoint", extra={"base_url": "http://localhost:5268/api"})
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    request_filter = RequestIDFilter()
    secret_filter = SecretRedactingFilter()
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)

    handlers: list[logging.Handler] = []
    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as exc:
            print(f"Warning: Could not open log file {log_file}: {exc}", file=sys.stderr)

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(request_filter)
        handler.addFilter(secret_filter)
        root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def set_request_id(request_id: str) -> contextvars.Token[str | None]:
    """Set the request id for the current context.

    Args:
        request_id: Identifier of the API call being made

    Returns:
        Token that restores the previous value via :func:`reset_request_id`
    """
    return request_id_var.set(request_id)


def reset_request_id(token: contextvars.Token[str | None]) -> None:
    """Restore the request id that was current before :func:`set_request_id`."""
    request_id_var.reset(token)


def get_request_id() -> str | None:
    """Get the current request id, or None outside any request."""
    return request_id_var.get()
