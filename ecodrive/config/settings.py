"""
Configuration Management for EcoDrive

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here, including the
seed values used the first time the store is opened. Seeds are
configuration, not business logic.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# First-run seed values for the drivers collection: (name, km per liter)
SEED_DRIVERS: tuple[tuple[str, float], ...] = (
    ("Pai", 12.0),
    ("Mãe", 10.0),
)

# First-run settings value and storage namespace
DEFAULT_FUEL_PRICE = 5.89
DEFAULT_KEY_PREFIX = "ecodrive_"

# Values that mean "no key was configured"
PLACEHOLDER_API_KEYS = frozenset({"", "PLACEHOLDER_API_KEY"})


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration (place search and distance estimation)."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (missing means lookups are unavailable)"
    )
    model_name: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )

    @property
    def is_configured(self) -> bool:
        """True when a real API key is present."""
        return (self.api_key or "").strip() not in PLACEHOLDER_API_KEYS


class StorageSettings(BaseSettings):
    """Local key-value store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ECODRIVE_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(file|memory)$",
        description="Persistence medium: 'file' (JSON on disk) or 'memory'"
    )
    data_path: str = Field(
        default="ecodrive_data.json",
        description="Path of the JSON document used by the file backend"
    )
    key_prefix: str = Field(
        default=DEFAULT_KEY_PREFIX,
        description="Namespace prepended to every storage key"
    )
    quota_bytes: Optional[int] = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum total size of stored values (None = unlimited)"
    )
    default_fuel_price: float = Field(
        default=DEFAULT_FUEL_PRICE,
        gt=0,
        description="Fuel price used when no settings have been saved yet"
    )

    @field_validator('key_prefix')
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        """Keys must stay namespaced."""
        if not v.strip():
            raise ValueError("key_prefix cannot be empty")
        return v.strip()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ECODRIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Dashboard
    timeline_window: int = Field(
        default=10,
        ge=1,
        le=100,
        description="How many of the latest trips the cost timeline shows"
    )
    recent_locations_limit: int = Field(
        default=5,
        ge=1,
        le=20,
        description="How many recent places are offered as suggestions"
    )

    # Validation thresholds
    future_date_tolerance_days: int = Field(
        default=30,
        ge=0,
        description="How many days in the future a trip date can be before a warning"
    )


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

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an extra
    "<name>_error" entry describing each failure.
    """
    results = {}

    settings = get_settings()

    try:
        gemini = settings.gemini
        results["gemini"] = gemini.is_configured
        if not gemini.is_configured:
            results["gemini_error"] = "GEMINI_API_KEY is not set"
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.storage
        results["storage"] = True
    except Exception as e:
        results["storage"] = False
        results["storage_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
