"""Configuration package."""

from ledger_client.config.settings import (
    ApiSettings,
    AppSettings,
    SessionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "SessionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
