"""Authentication DTOs."""

from pydantic import Field

from learnquest_client.models.base import ApiModel


class SignupRequest(ApiModel):
    first_name: str
    last_name: str
    email_address: str
    password: str = Field(repr=False)
    user_conf_password: str = Field(repr=False)


class SigninRequest(ApiModel):
    email: str
    password: str = Field(repr=False)
    remember_me: bool = False


class VerifyAccountRequest(ApiModel):
    verification_code: str


class ForgetPasswordRequest(ApiModel):
    email: str


class ResetPasswordRequest(ApiModel):
    email: str
    code: str
    new_password: str = Field(repr=False)


class SigninResult(ApiModel):
    """Tokens issued by a successful sign-in."""

    token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expiration: str | None = None
    role: str | None = None
    user_id: int | None = None
    auto_login_token: str | None = Field(default=None, repr=False)


class RefreshTokenResult(ApiModel):
    """Tokens issued by a successful refresh."""

    token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expiration: str | None = None
    user_id: int | None = None


class AutoLoginResult(ApiModel):
    """Session restored from the auto-login cookie."""

    token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expiration: str | None = None
    role: str | None = None
    user_id: int | None = None
    full_name: str | None = None
    email_address: str | None = None
