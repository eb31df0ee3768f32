"""Authentication façade.

Sign-in, refresh and auto-login persist the issued tokens into the client's
session store; logout clears it whatever the server answers, so the client
never stays signed in against a dead backend.
"""

import logging

from learnquest_client.api.client import ApiClient
from learnquest_client.api.session import SessionError
from learnquest_client.facades.base import Facade, convert
from learnquest_client.models.auth import (
    AutoLoginResult,
    ForgetPasswordRequest,
    RefreshTokenResult,
    ResetPasswordRequest,
    SigninRequest,
    SigninResult,
    SignupRequest,
    VerifyAccountRequest,
)
from learnquest_client.types.models import ApiResponse

logger = logging.getLogger(__name__)


class AuthFacade(Facade):
    """Account and session operations under ``/Auth``."""

    def __init__(self, client: ApiClient, *, register_refresher: bool = True) -> None:
        """Initialize the façade.

        Args:
            client: Shared API client
            register_refresher: Install :meth:`try_refresh` as the client's
                expired-token handler
        """
        super().__init__(client)
        if register_refresher:
            client.set_token_refresher(self.try_refresh)

    @property
    def is_authenticated(self) -> bool:
        return self._client.session_store.access_token is not None

    async def test_connection(self) -> bool:
        return await self._client.test_connection()

    async def signup(self, request: SignupRequest) -> ApiResponse[object]:
        logger.info("Signing up %s", request.email_address)
        return await self._client.post("/Auth/signup", request.to_payload())

    async def verify_account(self, verification_code: str) -> ApiResponse[object]:
        payload = VerifyAccountRequest(verification_code=verification_code).to_payload()
        return await self._client.post("/Auth/verify-account", payload)

    async def resend_verification_code(self) -> ApiResponse[object]:
        return await self._client.post("/Auth/resend-verification-code")

    async def signin(self, request: SigninRequest) -> ApiResponse[SigninResult]:
        """Sign in and persist the issued tokens on success."""
        response = convert(await self._client.post("/Auth/signin", request.to_payload()), SigninResult)
        if response.success and response.data is not None:
            self._client.session_store.save(
                access_token=response.data.token,
                refresh_token=response.data.refresh_token,
                auto_login_token=response.data.auto_login_token,
            )
            logger.info("Signed in (user_id=%s)", response.data.user_id)
        return response

    async def refresh_token(self, old_refresh_token: str | None = None) -> ApiResponse[RefreshTokenResult]:
        """Exchange a refresh token for a new token pair.

        Args:
            old_refresh_token: Token to exchange; the stored one when omitted

        Returns:
            Envelope with the new tokens, which are also persisted

        Raises:
            SessionError: If no refresh token is given or stored
        """
        refresh = old_refresh_token or self._client.session_store.refresh_token
        if not refresh:
            msg = "No refresh token available; sign in first"
            raise SessionError(msg)

        response = convert(
            await self._client.post("/Auth/refresh-token", {"oldRefreshToken": refresh}),
            RefreshTokenResult,
        )
        if response.success and response.data is not None:
            self._client.session_store.save(
                access_token=response.data.token,
                refresh_token=response.data.refresh_token,
            )
            logger.info("Access token refreshed")
        return response

    async def try_refresh(self) -> bool:
        """Refresh the stored session; False instead of raising."""
        try:
            response = await self.refresh_token()
        except SessionError:
            return False
        return response.success

    async def auto_login_from_cookie(self) -> ApiResponse[AutoLoginResult]:
        """Restore a session from the backend's auto-login cookie."""
        response = convert(await self._client.post("/Auth/auto-login-from-cookie"), AutoLoginResult)
        if response.success and response.data is not None:
            self._client.session_store.save(
                access_token=response.data.token,
                refresh_token=response.data.refresh_token,
            )
        return response

    async def forget_password(self, email: str) -> ApiResponse[object]:
        payload = ForgetPasswordRequest(email=email).to_payload()
        return await self._client.post("/Auth/forget-password", payload)

    async def reset_password(self, request: ResetPasswordRequest) -> ApiResponse[object]:
        return await self._client.post("/Auth/reset-password", request.to_payload())

    async def logout(self) -> ApiResponse[object]:
        """Notify the server and clear the local session regardless of outcome."""
        try:
            response = await self._client.post("/Auth/logout")
        finally:
            self._client.session_store.clear()
        logger.info("Signed out (server acknowledged=%s)", response.success)
        return response
