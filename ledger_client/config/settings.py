"""
Configuration Management for Ledger Client

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The API base URL is a deployment-time setting and is validated at startup,
everything else has a sensible default.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SESSION_PATH = Path.home() / ".ledger_client" / "session.json"


class ApiSettings(BaseSettings):
    """Ledger API connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        ...,
        description="Base URL of the ledger API (e.g. https://ledger.example.com/api)"
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Request timeout in seconds"
    )
    read_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for read requests that hit a network error"
    )

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"API base URL must start with http:// or https://, got {v!r}")
        return v.rstrip("/")


class SessionSettings(BaseSettings):
    """Where the access and refresh tokens are kept between runs."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Token storage backend"
    )
    storage_path: Path = Field(
        default=DEFAULT_SESSION_PATH,
        description="JSON file holding the session tokens"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log everything, including each request sent (overrides log_level)"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Minimum level for local logs"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        min_length=1,
        max_length=4,
        description="Symbol prefixed to every amount"
    )
    display_timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone for timestamps (None keeps the server's offset)"
    )

    @field_validator('display_timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject unknown timezone names early."""
        if v:
            try:
                ZoneInfo(v)
            except ZoneInfoNotFoundError as e:
                raise ValueError(f"Unknown timezone: {v}") from e
        return v or None

    @property
    def effective_log_level(self) -> str:
        """Level passed to configure_logging()."""
        return "DEBUG" if self.debug_mode else self.log_level

    @property
    def display_tz(self) -> Optional[ZoneInfo]:
        """Get the display timezone as a tzinfo."""
        return ZoneInfo(self.display_timezone) if self.display_timezone else None


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the groups that failed.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("api", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
