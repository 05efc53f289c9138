"""
Persisted Store

Owns the three collections EcoDrive keeps: drivers, settings and trips.
Each lives under its own namespaced key as a JSON envelope:

    {"schema_version": 1, "revision": 7, "data": <value>}

CONTRACT:
- load() never raises. A missing entry, a failed read, unparsable JSON,
  an unknown schema version or a value of the wrong shape all yield
  the default.
- save() writes the whole value and raises StorageWriteError if the
  medium refuses it. Nothing is silently dropped: list records that
  failed validation on load are written back as they were.
- Trips are stored newest-first; append_trip prepends.

MIGRATION: values written by the browser app have no envelope. They are
read as schema version 0 and rewritten with an envelope on the next save.

CONCURRENCY: every save bumps the revision. append_trip/delete_trip
write only if the revision they read is still current and retry the
whole read-modify-write otherwise. Within one process a lock serializes
mutations. Across processes the revision check and the write are two
separate file operations, so a narrow lost-update window remains.
"""

import json
import threading
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ecodrive.config import DEFAULT_FUEL_PRICE, DEFAULT_KEY_PREFIX, SEED_DRIVERS
from ecodrive.models.trip import Driver, FuelSettings, Trip
from ecodrive.services.storage.interface import (
    KeyValueBackend,
    StaleWriteError,
    StorageReadError,
    StorageWriteError,
)


logger = structlog.get_logger(__name__)

SCHEMA_VERSION = 1


def _migrate_v0(data: Any) -> Any:
    # Browser layout is already camelCase; only the envelope was missing
    return data


# schema_version -> function that upgrades data to schema_version + 1
MIGRATIONS: dict[int, Callable[[Any], Any]] = {
    0: _migrate_v0,
}


class PersistedResource:
    """
    One keyed value in the medium.

    Either a single model (many=False) or a list of models (many=True).
    For lists, records that no longer validate are skipped one by one
    rather than discarding the whole collection. Skipped records are kept
    as they were stored and written back after the readable ones on every
    save, so a mutation never erases data this version cannot read.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        key: str,
        model: type[BaseModel],
        default_factory: Callable[[], Any],
        many: bool = False,
    ):
        self._backend = backend
        self.key = key
        self._model = model
        self._default_factory = default_factory
        self._many = many

    # ------------------------------------------------------------------
    # Envelope handling
    # ------------------------------------------------------------------

    def _read_envelope(self) -> Optional[tuple[int, int, Any]]:
        """
        Read and unwrap the stored entry.

        Returns:
            (schema_version, revision, data), or None if there is no entry

        Raises:
            StorageReadError: If the entry exists but cannot be read or
                understood. A failure of the medium itself is chained as
                the cause.
        """
        try:
            raw = self._backend.get_item(self.key)
        except (OSError, ValueError) as e:
            raise StorageReadError(f"{self.key}: medium read failed ({e})") from e
        if raw is None:
            return None

        try:
            stored = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise StorageReadError(f"{self.key}: invalid JSON ({e})") from e

        if isinstance(stored, dict) and "schema_version" in stored and "data" in stored:
            version = stored.get("schema_version")
            revision = stored.get("revision", 0)
            if not isinstance(version, int) or not isinstance(revision, int):
                raise StorageReadError(f"{self.key}: malformed envelope")
            if version > SCHEMA_VERSION:
                raise StorageReadError(
                    f"{self.key}: schema version {version} is newer than "
                    f"supported version {SCHEMA_VERSION}"
                )
            return version, revision, stored["data"]

        # Legacy value, written before envelopes existed
        return 0, 0, stored

    def _current_state(self) -> tuple[int, list[Any]]:
        """
        Revision and skipped raw records of the stored entry, for a write.

        An unreadable value counts as revision 0 with nothing to keep.

        Raises:
            StorageWriteError: If the medium itself failed to read
        """
        try:
            envelope = self._read_envelope()
            if envelope is None:
                return 0, []
            version, revision, data = envelope
            skipped = []
            if self._many:
                _, skipped = self._partition(self._migrate(version, data), warn=False)
            return revision, skipped
        except StorageReadError as e:
            if isinstance(e.__cause__, OSError):
                raise StorageWriteError(str(e)) from e
            return 0, []

    @staticmethod
    def _migrate(version: int, data: Any) -> Any:
        while version < SCHEMA_VERSION:
            data = MIGRATIONS[version](data)
            version += 1
        return data

    # ------------------------------------------------------------------
    # (De)serialization
    # ------------------------------------------------------------------

    def _partition(self, data: Any, warn: bool = True) -> tuple[list[Any], list[Any]]:
        """Split a stored list into (valid models, raw records that failed)."""
        if not isinstance(data, list):
            raise StorageReadError(f"{self.key}: expected a list, got {type(data).__name__}")

        records, skipped = [], []
        for index, item in enumerate(data):
            try:
                records.append(self._model.model_validate(item))
            except ValidationError as e:
                skipped.append(item)
                if warn:
                    logger.warning(
                        "stored_record_skipped",
                        key=self.key,
                        index=index,
                        error_count=e.error_count(),
                    )
        return records, skipped

    def _decode(self, data: Any) -> Any:
        if not self._many:
            try:
                return self._model.model_validate(data)
            except ValidationError as e:
                raise StorageReadError(f"{self.key}: {e.error_count()} invalid fields") from e
        records, _ = self._partition(data)
        return records

    def _encode(self, value: Any) -> Any:
        if self._many:
            return [item.model_dump(mode="json", by_alias=True) for item in value]
        return value.model_dump(mode="json", by_alias=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def load_with_revision(self) -> tuple[Any, int]:
        """Load the value and the revision it was read at."""
        try:
            envelope = self._read_envelope()
            if envelope is None:
                return self._default_factory(), 0
            version, revision, data = envelope
            return self._decode(self._migrate(version, data)), revision
        except StorageReadError as e:
            logger.warning("storage_read_recovered", key=self.key, error=str(e))
            return self._default_factory(), 0

    def load(self) -> Any:
        """Load the value, falling back to the default. Never raises."""
        value, _ = self.load_with_revision()
        return value

    def save(self, value: Any, expected_revision: Optional[int] = None) -> int:
        """
        Replace the stored value.

        For lists, records of the stored value that could not be read are
        appended after the new records unchanged.

        Args:
            value: The full value to store
            expected_revision: If given, write only if the stored revision
                still equals it

        Returns:
            The new revision

        Raises:
            StaleWriteError: If expected_revision no longer matches
            StorageWriteError: If the medium rejects the write
        """
        current, skipped = self._current_state()
        if expected_revision is not None and current != expected_revision:
            raise StaleWriteError(self.key, expected_revision, current)

        data = self._encode(value)
        if skipped:
            logger.warning("stored_records_preserved", key=self.key, count=len(skipped))
            data.extend(skipped)

        envelope = {
            "schema_version": SCHEMA_VERSION,
            "revision": current + 1,
            "data": data,
        }
        try:
            self._backend.set_item(self.key, json.dumps(envelope, ensure_ascii=False))
        except OSError as e:
            raise StorageWriteError(f"{self.key}: medium write failed ({e})") from e
        return current + 1


_retry_on_stale = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
    retry=retry_if_exception_type(StaleWriteError),
    reraise=True,
)


class FuelStore:
    """
    The persisted state of EcoDrive.

    Usage:
        store = FuelStore(JsonFileBackend("ecodrive_data.json"))
        drivers = store.load_drivers()
        store.append_trip(trip)
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        default_fuel_price: float = DEFAULT_FUEL_PRICE,
        seed_drivers: tuple[tuple[str, float], ...] = SEED_DRIVERS,
    ):
        self._backend = backend
        self._default_fuel_price = default_fuel_price
        self._seed_drivers = seed_drivers
        self._lock = threading.RLock()

        self.drivers = PersistedResource(
            backend,
            f"{key_prefix}drivers",
            Driver,
            self._default_drivers,
            many=True,
        )
        self.settings = PersistedResource(
            backend,
            f"{key_prefix}settings",
            FuelSettings,
            self._default_settings,
        )
        self.trips = PersistedResource(
            backend,
            f"{key_prefix}trips",
            Trip,
            list,
            many=True,
        )

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    def _default_drivers(self) -> list[Driver]:
        # Stable ids so trips recorded before the first save still resolve
        return [
            Driver(id=str(index), name=name, avg_consumption=consumption)
            for index, (name, consumption) in enumerate(self._seed_drivers, start=1)
        ]

    def _default_settings(self) -> FuelSettings:
        return FuelSettings(fuel_price=self._default_fuel_price)

    # Drivers

    def load_drivers(self) -> list[Driver]:
        return self.drivers.load()

    def save_drivers(self, drivers: list[Driver]) -> None:
        with self._lock:
            self.drivers.save(drivers)

    # Settings

    def load_settings(self) -> FuelSettings:
        return self.settings.load()

    def save_settings(self, settings: FuelSettings) -> None:
        with self._lock:
            self.settings.save(settings)

    # Trips

    def load_trips(self) -> list[Trip]:
        """All trips, newest first."""
        return self.trips.load()

    def save_trips(self, trips: list[Trip]) -> None:
        with self._lock:
            self.trips.save(trips)

    @_retry_on_stale
    def append_trip(self, trip: Trip) -> list[Trip]:
        """
        Insert a trip at the front of the collection.

        Returns:
            The collection as written
        """
        with self._lock:
            trips, revision = self.trips.load_with_revision()
            trips.insert(0, trip)
            self.trips.save(trips, expected_revision=revision)
            return trips

    @_retry_on_stale
    def delete_trip(self, trip_id: str) -> list[Trip]:
        """
        Remove the trip with this id. Unknown ids are a no-op.

        Returns:
            The collection as it now stands
        """
        with self._lock:
            trips, revision = self.trips.load_with_revision()
            remaining = [t for t in trips if t.id != trip_id]
            if len(remaining) == len(trips):
                return trips
            self.trips.save(remaining, expected_revision=revision)
            return remaining
