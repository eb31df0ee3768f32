"""Session token storage.

The stores here hold the bearer tokens of the signed-in user. Every request
reads the access token to build the ``Authorization`` header; only the auth
façade writes them.
"""

import json
import logging
from pathlib import Path

from typing_extensions import override

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Raised when a session operation's precondition is not met.

    The only case today is refreshing without a stored refresh token.
    """


class InMemorySessionStore:
    """Session store kept in process memory."""

    def __init__(self) -> None:
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self._auto_login_token: str | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @property
    def auto_login_token(self) -> str | None:
        return self._auto_login_token

    def save(
        self,
        *,
        access_token: str,
        refresh_token: str,
        auto_login_token: str | None = None,
    ) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token
        if auto_login_token is not None:
            self._auto_login_token = auto_login_token

    def clear(self) -> None:
        self._access_token = None
        self._refresh_token = None
        self._auto_login_token = None

    @override
    def __repr__(self) -> str:
        return f"{type(self).__name__}(signed_in={self._access_token is not None})"


class FileSessionStore(InMemorySessionStore):
    """Session store persisted as a small JSON file.

    The file is read once at construction, rewritten on every ``save`` and
    removed on ``clear``. A corrupt or unreadable file is treated as an empty
    session and logged.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path: Path = path
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            raw: object = json.loads(self._path.read_text(encoding="utf-8"))  # pyright: ignore[reportAny]
        except (OSError, ValueError) as exc:
            logger.warning(
                "Ignoring unreadable session file",
                extra={"path": str(self._path), "error_type": type(exc).__name__},
            )
            return
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed session file", extra={"path": str(self._path)})
            return
        access = raw.get("accessToken")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        refresh = raw.get("refreshToken")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        auto_login = raw.get("autoLoginToken")  # pyright: ignore[reportUnknownMemberType, reportUnknownVariableType]
        if isinstance(access, str) and isinstance(refresh, str):
            super().save(
                access_token=access,
                refresh_token=refresh,
                auto_login_token=auto_login if isinstance(auto_login, str) else None,
            )

    @override
    def save(
        self,
        *,
        access_token: str,
        refresh_token: str,
        auto_login_token: str | None = None,
    ) -> None:
        super().save(
            access_token=access_token,
            refresh_token=refresh_token,
            auto_login_token=auto_login_token,
        )
        payload = {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "autoLoginToken": self.auto_login_token,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        _ = self._path.write_text(json.dumps(payload), encoding="utf-8")

    @override
    def clear(self) -> None:
        super().clear()
        self._path.unlink(missing_ok=True)
