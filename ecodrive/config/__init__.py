"""Configuration package."""

from ecodrive.config.settings import (
    DEFAULT_FUEL_PRICE,
    DEFAULT_KEY_PREFIX,
    PLACEHOLDER_API_KEYS,
    SEED_DRIVERS,
    AppSettings,
    GeminiSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_FUEL_PRICE",
    "DEFAULT_KEY_PREFIX",
    "PLACEHOLDER_API_KEYS",
    "SEED_DRIVERS",
    "AppSettings",
    "GeminiSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
