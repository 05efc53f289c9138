"""
Local Key-Value Storage Implementations

DESIGN DECISION: The browser app kept everything in localStorage.
Here the same medium is a single JSON document on disk, mapping each
key to its serialized string value. This means:
1. A localStorage dump can be dropped in as the data file
2. No database setup required
3. The file is human-readable and easy to back up

TRADEOFFS:
- Every write rewrites the whole document (fine for household volumes)
- Writes are atomic (temp file + rename) but not locked across processes;
  the store's revision check catches most lost updates
- A byte quota mimics the browser's storage limit so "disk full"
  paths are testable
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional, Union

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ecodrive.services.storage.interface import (
    KeyValueBackend,
    QuotaExceededError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)


def _entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


def _check_quota(
    items: dict[str, str],
    key: str,
    value: str,
    quota_bytes: Optional[int],
) -> None:
    """Raise QuotaExceededError if storing key=value would exceed the quota."""
    if quota_bytes is None:
        return
    used = sum(_entry_size(k, v) for k, v in items.items() if k != key)
    needed = _entry_size(key, value)
    if used + needed > quota_bytes:
        raise QuotaExceededError(
            f"Storing {key} needs {needed} bytes but only "
            f"{max(quota_bytes - used, 0)} of {quota_bytes} are free"
        )


class InMemoryBackend(KeyValueBackend):
    """
    Dict-backed medium.

    Used in tests and for throwaway sessions. Nothing survives the process.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self._items: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        _check_quota(self._items, key, value, self._quota_bytes)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileBackend(KeyValueBackend):
    """
    File-backed medium.

    The whole document is re-read on every access so that two processes
    sharing the file see each other's writes.
    """

    def __init__(
        self,
        path: Union[str, Path],
        quota_bytes: Optional[int] = None,
    ):
        self._path = Path(path)
        self._quota_bytes = quota_bytes
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read_document(self) -> dict[str, str]:
        """
        Read the key -> value mapping from disk.

        A missing file is an empty store. A corrupt file is moved aside
        (so it can be inspected) and treated as empty.
        """
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as e:
            self._quarantine(f"not valid UTF-8 ({e.reason})")
            return {}

        try:
            document = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            self._quarantine(str(e))
            return {}

        if not isinstance(document, dict):
            self._quarantine("top-level value is not an object")
            return {}

        # Values must be strings; anything else was not written by us
        return {str(k): v for k, v in document.items() if isinstance(v, str)}

    def _quarantine(self, reason: str) -> None:
        backup = self._path.with_suffix(self._path.suffix + ".corrupt")
        logger.warning(
            "storage_file_corrupt",
            path=str(self._path),
            backup=str(backup),
            reason=reason,
        )
        try:
            os.replace(self._path, backup)
        except OSError as e:
            logger.error("storage_quarantine_failed", path=str(self._path), error=str(e))

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_document(self, document: dict[str, str]) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(document, tmp, ensure_ascii=False, indent=2)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_document().get(key)

    def _read_for_write(self) -> dict[str, str]:
        try:
            return self._read_document()
        except OSError as e:
            raise StorageWriteError(f"Failed to read {self._path} before writing: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            document = self._read_for_write()
            _check_quota(document, key, value, self._quota_bytes)
            document[key] = value
            try:
                self._write_document(document)
            except OSError as e:
                raise StorageWriteError(f"Failed to write {self._path}: {e}") from e

    def remove_item(self, key: str) -> None:
        with self._lock:
            document = self._read_for_write()
            if key not in document:
                return
            del document[key]
            try:
                self._write_document(document)
            except OSError as e:
                raise StorageWriteError(f"Failed to write {self._path}: {e}") from e

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read_document())
