"""Configuration package."""

from safebank.config.settings import (
    SafeBankSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "SafeBankSettings",
    "get_settings",
    "validate_all_settings",
]
