"""Type definitions and protocols for learnquest-client.

This package provides:
- Data models (immutable dataclasses)
- Protocol definitions (structural subtyping interfaces)
- Type aliases
"""

from learnquest_client.types.aliases import (
    ErrorCallback,
    JsonObject,
    MessageCallback,
    OpenCallback,
    QueryParams,
    TokenRefresher,
)
from learnquest_client.types.models import (
    CONNECTIVITY_ERROR_CODES,
    ApiResponse,
    ErrorCode,
    ProbeResult,
)
from learnquest_client.types.protocols import (
    Probe,
    SessionStore,
)

__all__ = [
    # Type aliases
    "ErrorCallback",
    "JsonObject",
    "MessageCallback",
    "OpenCallback",
    "QueryParams",
    "TokenRefresher",
    # Data models
    "CONNECTIVITY_ERROR_CODES",
    "ApiResponse",
    "ErrorCode",
    "ProbeResult",
    # Protocols
    "Probe",
    "SessionStore",
]
