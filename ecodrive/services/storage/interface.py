"""
Abstract Storage Interface

DESIGN DECISION: The store talks to a plain key-value medium with
string values, the same shape as browser local storage. This allows us to:
1. Keep the JSON layout compatible with data written by the browser app
2. Use in-memory storage for testing
3. Swap the on-disk file for something else later
4. Keep serialization and defaults out of the medium itself

The interface is intentionally tiny - get, set, remove, list keys.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueBackend(ABC):
    """
    Abstract key-value persistence medium.

    Values are opaque strings. Implementations raise StorageWriteError
    (or a subclass) when a write is rejected; reads of a missing key
    return None.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Returns:
            The stored string, or None if the key has no entry
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Raises:
            QuotaExceededError: If the medium has no room for the value
            StorageWriteError: If the write fails for any other reason
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete a key. Removing a missing key is not an error."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all keys currently stored."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored entry exists but cannot be parsed. Absorbed by the store."""
    pass


class StorageWriteError(StorageError):
    """The medium rejected a write. The mutation did not persist."""
    pass


class QuotaExceededError(StorageWriteError):
    """The medium is full."""
    pass


class StaleWriteError(StorageWriteError):
    """Another writer changed the value between our read and our write."""

    def __init__(self, key: str, expected_revision: int, actual_revision: int):
        self.key = key
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
        super().__init__(
            f"Stale write to {key}: expected revision {expected_revision}, "
            f"found {actual_revision}"
        )
