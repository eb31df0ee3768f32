"""Protocol definitions for component interfaces.

This module defines structural subtyping protocols for the seams of the
client core, so transports and storage can be swapped in tests without
inheritance.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Probe(Protocol):
    """Liveness probe for a single health URL."""

    async def __call__(self, url: str, *, timeout: float) -> int | None:
        """Issue one bounded-time health request.

        Args:
            url: Absolute health-check URL
            timeout: Probe timeout in seconds (keyword-only)

        Returns:
            HTTP status code of the answer, or None when the server could not
            be reached within the timeout
        """
        ...


@runtime_checkable
class SessionStore(Protocol):
    """Storage for the bearer tokens of the signed-in user.

    Read by every request to build the ``Authorization`` header and written
    only by the auth façade.
    """

    @property
    def access_token(self) -> str | None:
        """Current access token, if signed in."""
        ...

    @property
    def refresh_token(self) -> str | None:
        """Current refresh token, if signed in."""
        ...

    @property
    def auto_login_token(self) -> str | None:
        """Long-lived auto-login token, if the backend issued one."""
        ...

    def save(
        self,
        *,
        access_token: str,
        refresh_token: str,
        auto_login_token: str | None = None,
    ) -> None:
        """Persist a new token pair.

        Args:
            access_token: Bearer token for API requests
            refresh_token: Token used to obtain a new access token
            auto_login_token: Optional auto-login token; kept unchanged when None
        """
        ...

    def clear(self) -> None:
        """Forget every stored token."""
        ...
