"""
Configuration module for the Steam sign-in service.

This module uses Pydantic Settings to load and validate environment variables
for the Steam OpenID handshake, the Steam Web API profile lookup, session
cookies and logging.

Two settings classes live here:

- SteamAuthSettings: per-AuthSession configuration. Values may be passed
  explicitly, but STEAM_AUTH_* environment variables always win.
- AppSettings: process-wide service configuration, cached by get_settings().
"""

from functools import lru_cache
from typing import Any, Dict, Optional, Tuple, Type
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


STEAM_OPENID_ENDPOINT = "https://steamcommunity.com/openid/login"
STEAM_API_BASE_URL = "https://api.steampowered.com"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _validate_http_url(value: Optional[str], field_name: str) -> Optional[str]:
    """Reject anything that is not an absolute http(s) URL."""
    if value is None:
        return value

    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(
            f"{field_name} must be an absolute http(s) URL, got: {value!r}"
        )
    return value


def _validate_redirect_target(value: Optional[str], field_name: str) -> Optional[str]:
    """Accept an absolute http(s) URL or a site-relative path."""
    if value is not None and value.startswith("/") and not value.startswith("//"):
        return value
    return _validate_http_url(value, field_name)


class SteamAuthSettings(BaseSettings):
    """
    Resolved configuration for a single AuthSession.

    Environment variables take precedence over explicitly passed values, so
    an operator can always override what the code hard-wires. Empty
    environment values are ignored rather than treated as overrides.
    """

    # =========================================================================
    # Steam Web API
    # =========================================================================

    API_KEY: str = Field(
        default="",
        description="Steam Web API key (https://steamcommunity.com/dev/apikey)",
        repr=False,
    )

    API_BASE_URL: str = Field(
        default=STEAM_API_BASE_URL,
        description="Base URL of the Steam Web API",
    )

    SKIP_API: bool = Field(
        default=False,
        description="Only keep the steamid, never call GetPlayerSummaries",
    )

    # =========================================================================
    # Site Configuration
    # =========================================================================

    DOMAIN_NAME: Optional[str] = Field(
        default=None,
        description="Your website's domain (informational)",
    )

    LOGIN_PAGE: Optional[str] = Field(
        default=None,
        description="Page Steam returns to after login (defaults to the current page)",
    )

    LOGOUT_PAGE: Optional[str] = Field(
        default=None,
        description="Page to redirect to after logout",
    )

    # =========================================================================
    # OpenID Provider
    # =========================================================================

    OPENID_ENDPOINT: str = Field(
        default=STEAM_OPENID_ENDPOINT,
        description="Steam OpenID 2.0 endpoint used for redirect and verification",
    )

    HTTP_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for the verification and profile lookup requests",
        gt=0,
        le=120,
    )

    model_config = SettingsConfigDict(
        env_prefix="STEAM_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # Environment first: overrides beat explicit constructor arguments
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("LOGIN_PAGE")
    @classmethod
    def validate_login_page(cls, v: Optional[str], info) -> Optional[str]:
        # OpenID return_to must be absolute
        return _validate_http_url(v or None, info.field_name)

    @field_validator("LOGOUT_PAGE")
    @classmethod
    def validate_logout_page(cls, v: Optional[str], info) -> Optional[str]:
        return _validate_redirect_target(v or None, info.field_name)

    @field_validator("OPENID_ENDPOINT", "API_BASE_URL")
    @classmethod
    def validate_endpoints(cls, v: str, info) -> str:
        return _validate_http_url(v, info.field_name).rstrip("/")

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def player_summaries_url(self) -> str:
        """Full URL of the GetPlayerSummaries v0002 endpoint."""
        return f"{self.API_BASE_URL}/ISteamUser/GetPlayerSummaries/v0002/"

    @property
    def masked_api_key(self) -> str:
        if not self.API_KEY:
            return ""
        return f"{self.API_KEY[:4]}{'*' * max(len(self.API_KEY) - 4, 0)}"

    def safe_dump(self) -> Dict[str, Any]:
        """Settings as a dict with the API key masked, for debug output."""
        data = self.model_dump()
        data["API_KEY"] = self.masked_api_key
        return data


def resolve_steam_settings(
    api_key: Optional[str] = None,
    domain_name: Optional[str] = None,
    login_page: Optional[str] = None,
    logout_page: Optional[str] = None,
    skip_api: Optional[bool] = None,
    **overrides: Any,
) -> SteamAuthSettings:
    """
    Build SteamAuthSettings from explicit arguments.

    Arguments left as None are not passed on, so the field default (or the
    environment) applies. Extra keyword arguments are passed through using
    the upper-case field names, e.g. HTTP_TIMEOUT_SECONDS=5.
    """
    explicit = {
        "API_KEY": api_key,
        "DOMAIN_NAME": domain_name,
        "LOGIN_PAGE": login_page,
        "LOGOUT_PAGE": logout_page,
        "SKIP_API": skip_api,
    }
    explicit.update(overrides)
    return SteamAuthSettings(**{k: v for k, v in explicit.items() if v is not None})


class AppSettings(BaseSettings):
    """
    Service-wide settings loaded from environment variables.

    Session cookie, logging and server bind configuration.
    """

    # =========================================================================
    # Session Cookie Configuration
    # =========================================================================

    SESSION_SECRET: str = Field(
        default="change-me-in-production",
        description="Secret used to sign the session cookie",
        min_length=16,
        repr=False,
    )

    SESSION_COOKIE_NAME: str = Field(
        default="steamauth_session",
        description="Name of the session cookie",
    )

    SESSION_MAX_AGE_SECONDS: int = Field(
        default=14 * 24 * 3600,
        description="Session cookie lifetime in seconds",
        ge=60,
    )

    SESSION_HTTPS_ONLY: bool = Field(
        default=False,
        description="Only send the session cookie over HTTPS",
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the server",
    )

    PORT: int = Field(
        default=8080,
        description="Port to bind the server",
        ge=1,
        le=65535,
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def debug_enabled(self) -> bool:
        return self.LOG_LEVEL == "DEBUG"


# =============================================================================
# Settings Singleton
# =============================================================================

@lru_cache()
def get_settings() -> AppSettings:
    """
    Get or create the cached AppSettings instance.

    Raises:
        ValidationError: If environment variables are present but invalid.
    """
    return AppSettings()
