"""Services package."""

from ecodrive.services.storage import (
    FuelStore,
    InMemoryBackend,
    JsonFileBackend,
    KeyValueBackend,
    QuotaExceededError,
    StaleWriteError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

__all__ = [
    # Storage services
    "FuelStore",
    "InMemoryBackend",
    "JsonFileBackend",
    "KeyValueBackend",
    "QuotaExceededError",
    "StaleWriteError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
]
