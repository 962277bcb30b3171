"""Configuration package."""

from prevoyance.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    PensionSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "PensionSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
