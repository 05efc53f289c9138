"""
Storage Services Package

Provides the key-value medium abstraction, its local implementations,
and the persisted store built on top of them.
"""

from ecodrive.services.storage.interface import (
    KeyValueBackend,
    QuotaExceededError,
    StaleWriteError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from ecodrive.services.storage.local_storage import (
    InMemoryBackend,
    JsonFileBackend,
)
from ecodrive.services.storage.store import (
    SCHEMA_VERSION,
    FuelStore,
    PersistedResource,
)

__all__ = [
    # Interfaces
    "KeyValueBackend",
    # Exceptions
    "QuotaExceededError",
    "StaleWriteError",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Local implementations
    "InMemoryBackend",
    "JsonFileBackend",
    # Store
    "SCHEMA_VERSION",
    "FuelStore",
    "PersistedResource",
]
