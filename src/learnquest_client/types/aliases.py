"""Type aliases shared across the package.

This module defines the callback and payload shapes shared between the
client, the façades and the real-time layer.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import TypeAlias

# JSON object as received from or sent to the backend, before validation
JsonObject: TypeAlias = Mapping[str, object]

# Query-string parameters; None values are dropped before sending
QueryParams: TypeAlias = Mapping[str, str | int | float | bool | None]

# Refreshes the stored session; returns True when a new access token was saved
TokenRefresher: TypeAlias = Callable[[], Awaitable[bool]]

# Push-stream callbacks: raw message payload, transport error, handshake done
MessageCallback: TypeAlias = Callable[[str], None]
ErrorCallback: TypeAlias = Callable[[BaseException], None]
OpenCallback: TypeAlias = Callable[[], None]
