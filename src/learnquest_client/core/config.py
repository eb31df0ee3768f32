"""Configuration system for learnquest-client.

This module implements the configuration schema using Pydantic for
validation, with support for ``${VAR}`` environment variable resolution in
YAML files, environment overrides for the endpoint list, and fail-fast
validation with actionable error messages.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Final, cast

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

# Matches ${VARIABLE_NAME} references inside YAML string values
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")

# Environment overrides for the endpoint candidate list
API_URL_ENV: Final[str] = "LEARNQUEST_API_URL"
FALLBACK_URLS_ENV: Final[str] = "LEARNQUEST_FALLBACK_URLS"

DEFAULT_BASE_URL: Final[str] = "http://localhost:5268/api"
DEFAULT_FALLBACK_URLS: Final[tuple[str, ...]] = ("https://localhost:7217/api",)


def _check_http_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        msg = f"URL must start with http:// or https://, got: {value!r}"
        raise ValueError(msg)
    return value.rstrip("/")


class ApiConfig(BaseModel):
    """Configuration for endpoint resolution and request execution."""

    base_url: Annotated[
        str,
        Field(description="Primary API base URL, including the /api suffix"),
    ] = DEFAULT_BASE_URL
    fallback_urls: Annotated[
        list[str],
        Field(description="Fallback API base URLs tried in order after base_url"),
    ] = list(DEFAULT_FALLBACK_URLS)
    health_path: Annotated[
        str,
        Field(
            pattern=r"^/",
            description="Health path appended to the base URL without its /api suffix",
        ),
    ] = "/health"
    probe_timeout: Annotated[
        float,
        Field(gt=0, description="Liveness probe timeout in seconds"),
    ] = 3.0
    request_timeout: Annotated[
        float,
        Field(gt=0, description="Default per-request timeout in seconds"),
    ] = 15.0
    accept_not_found_as_alive: Annotated[
        bool,
        Field(description="Treat a 404 health answer as a live server"),
    ] = False

    @field_validator("base_url", mode="after")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the primary base URL scheme and strip trailing slashes."""
        return _check_http_url(v)

    @field_validator("fallback_urls", mode="after")
    @classmethod
    def validate_fallback_urls(cls, v: list[str]) -> list[str]:
        """Validate every fallback URL scheme and strip trailing slashes."""
        return [_check_http_url(url) for url in v]

    def candidates(self) -> tuple[str, ...]:
        """Build the ordered, de-duplicated endpoint candidate list.

        Returns:
            ``base_url`` followed by ``fallback_urls``, first occurrence wins
        """
        return tuple(dict.fromkeys([self.base_url, *self.fallback_urls]))


class RealtimeConfig(BaseModel):
    """Configuration for the notification synchronizer and push stream."""

    stream_path: Annotated[
        str,
        Field(pattern=r"^/", description="Push stream path relative to the base URL"),
    ] = "/Notifications/real-time"
    page_size: Annotated[
        int,
        Field(gt=0, le=500, description="Page size for notification pulls"),
    ] = 50
    auto_connect: Annotated[
        bool,
        Field(description="Open the push stream as soon as the session is authenticated"),
    ] = True


class SessionConfig(BaseModel):
    """Configuration for session token persistence."""

    storage_path: Annotated[
        Path | None,
        Field(description="JSON file holding session tokens; in-memory when unset"),
    ] = None


class ApplicationConfig(BaseModel):
    """Configuration for application-level settings."""

    log_level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "INFO"
    log_file: Annotated[
        Path | None,
        Field(description="Optional log file in addition to console output"),
    ] = None


class MainConfig(BaseModel):
    """Main configuration schema.

    Top-level container aggregating all configuration sections:
    - api: Endpoint candidates, probing and request timeouts
    - realtime: Notification paging and push stream settings
    - session: Token storage location
    - application: Logging settings

    Every section has defaults, so an empty file is a valid configuration.
    """

    api: Annotated[ApiConfig, Field(description="API client configuration")] = ApiConfig()
    realtime: Annotated[
        RealtimeConfig,
        Field(description="Real-time notification configuration"),
    ] = RealtimeConfig()
    session: Annotated[SessionConfig, Field(description="Session storage configuration")] = SessionConfig()
    application: Annotated[
        ApplicationConfig,
        Field(description="Application-level configuration"),
    ] = ApplicationConfig()


class EnvironmentVariableError(Exception):
    """Raised when a ``${VAR}`` reference names an unset environment variable."""


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails.

    Messages are multi-line and actionable: they name the file, the failing
    field path and what to fix.
    """


def resolve_env_var(value: str) -> str:
    """Resolve environment variable references in a string value.

    Args:
        value: String potentially containing ``${VAR}`` references

    Returns:
        String with environment variables resolved

    Raises:
        EnvironmentVariableError: If a referenced variable is not set

    Examples:
        >>> os.environ["LQ_HOST"] = "api.example.com"
        >>> resolve_env_var("https://${LQ_HOST}/api")
        'https://api.example.com/api'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            msg = (
                f"Required environment variable '{var_name}' is not set. "
                f"Please set this variable before starting the client."
            )
            raise EnvironmentVariableError(msg)
        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def resolve_env_vars(data: object) -> object:
    """Recursively resolve environment variables in YAML-loaded data.

    Strings are resolved, mappings and lists are walked, other scalars are
    preserved as-is.

    Args:
        data: Unvalidated YAML data

    Returns:
        New structure with environment variables resolved

    Raises:
        EnvironmentVariableError: If a referenced variable is not set
    """
    if isinstance(data, str):
        return resolve_env_var(data)
    if isinstance(data, Mapping):
        return {str(key): resolve_env_vars(value) for key, value in data.items()}  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
    if isinstance(data, list):
        return [resolve_env_vars(item) for item in data]  # pyright: ignore[reportUnknownVariableType]  # YAML boundary
    return data


def apply_env_overrides(data: Mapping[str, object], environ: Mapping[str, str] | None = None) -> dict[str, object]:
    """Overlay ``LEARNQUEST_API_URL`` / ``LEARNQUEST_FALLBACK_URLS`` on raw config.

    ``LEARNQUEST_FALLBACK_URLS`` is a comma-separated list; blank entries are
    ignored.

    Args:
        data: Raw (env-resolved, unvalidated) configuration mapping
        environ: Environment to read; defaults to ``os.environ``

    Returns:
        New configuration mapping with overrides applied
    """
    env = os.environ if environ is None else environ
    result = dict(data)
    api_section = result.get("api")
    api: dict[str, object] = dict(api_section) if isinstance(api_section, Mapping) else {}  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary

    base_url = env.get(API_URL_ENV)
    if base_url:
        api["base_url"] = base_url.strip()

    fallback_urls = env.get(FALLBACK_URLS_ENV)
    if fallback_urls is not None:
        api["fallback_urls"] = [url.strip() for url in fallback_urls.split(",") if url.strip()]

    if api:
        result["api"] = api
    return result


def _format_validation_error(error: ValidationError, source: str) -> str:
    error_lines = ["Configuration validation failed:", ""]
    for detail in error.errors():
        field_path = " → ".join(str(loc) for loc in detail["loc"])
        error_lines.append(f"  Field: {field_path}")
        error_lines.append(f"  Error: {detail['msg']}")
        error_lines.append(f"  Type: {detail['type']}")
        error_lines.append("")
    error_lines.append(f"Configuration source: {source}")
    error_lines.append("Please fix the above errors and try again.")
    return "\n".join(error_lines)


def load_main_config(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> MainConfig:
    """Load and validate configuration from an optional YAML file.

    Without a path, defaults plus environment overrides are validated.

    Args:
        config_path: Path to the YAML configuration file, or None
        environ: Environment for overrides; defaults to ``os.environ``

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If the file cannot be loaded, resolved or validated

    Examples:
        >>> config = load_main_config(Path("config/learnquest.yaml"))
        >>> config.api.candidates()
        ('http://localhost:5268/api', 'https://localhost:7217/api')
    """
    raw_data: object = {}
    source = "<defaults>"

    if config_path is not None:
        source = str(config_path)
        if not config_path.exists():
            msg = (
                f"Configuration file not found: {config_path}\n"
                f"Please create a configuration file at this location or omit --config."
            )
            raise ConfigurationError(msg)

        try:
            with config_path.open("r", encoding="utf-8") as f:
                raw_data = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
        except yaml.YAMLError as e:
            msg = (
                f"Failed to parse YAML configuration file: {config_path}\n"
                f"YAML parsing error: {e}\n"
                f"Please check the file for syntax errors."
            )
            raise ConfigurationError(msg) from e
        except OSError as e:
            msg = f"Failed to read configuration file: {config_path}\nError: {e}\nPlease check file permissions."
            raise ConfigurationError(msg) from e

        # An empty file loads as None
        if raw_data is None:
            raw_data = {}

    if not isinstance(raw_data, Mapping):
        msg = (
            f"Invalid configuration file format: {source}\n"
            f"Expected YAML dictionary at root level, got: {type(raw_data).__name__}\n"
            f"Configuration file must contain key-value pairs."
        )
        raise ConfigurationError(msg)

    try:
        resolved = resolve_env_vars(raw_data)
    except EnvironmentVariableError as e:
        msg = (
            f"Environment variable resolution failed in: {source}\n"
            f"{e}\n"
            f"Set the required environment variable before starting the client."
        )
        raise ConfigurationError(msg) from e

    # resolve_env_vars maps a Mapping to a dict
    data = apply_env_overrides(cast("dict[str, object]", resolved), environ)

    try:
        return MainConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e, source)) from e
