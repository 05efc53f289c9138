"""Tests for the persisted store and its key-value backends."""

import json
from datetime import date

import pytest

from conftest import make_trip
from ecodrive.models.trip import Driver, FuelSettings
from ecodrive.services.storage import (
    SCHEMA_VERSION,
    FuelStore,
    InMemoryBackend,
    JsonFileBackend,
    QuotaExceededError,
    StaleWriteError,
    StorageWriteError,
)


class InterleavingBackend(InMemoryBackend):
    """Runs a hook just before the Nth read, to simulate another writer."""

    def __init__(self):
        super().__init__()
        self.reads = 0
        self.hooks = {}

    def get_item(self, key):
        self.reads += 1
        hook = self.hooks.pop(self.reads, None)
        if hook:
            hook()
        return super().get_item(key)


class TestDefaults:
    """Tests for first-run values."""

    def test_seed_drivers(self, store):
        """Test that an empty store yields the two seeded drivers."""
        drivers = store.load_drivers()
        assert [(d.id, d.name, d.avg_consumption) for d in drivers] == [
            ("1", "Pai", 12.0),
            ("2", "Mãe", 10.0),
        ]

    def test_default_fuel_price(self, store):
        """Test the default settings value."""
        assert store.load_settings().fuel_price == 5.89

    def test_no_trips(self, store):
        """Test that an empty store has no trips."""
        assert store.load_trips() == []

    def test_load_does_not_write(self, store, backend):
        """Test that reading defaults leaves the medium empty."""
        store.load_drivers()
        store.load_settings()
        store.load_trips()
        assert backend.keys() == []


class TestRoundTrip:
    """Tests for save then load."""

    def test_drivers_round_trip(self, store):
        """Test that saved drivers load back equal."""
        drivers = [Driver(name="Ana", avg_consumption=14.5)]
        store.save_drivers(drivers)
        assert store.load_drivers() == drivers

    def test_settings_round_trip(self, store):
        """Test that saved settings load back equal."""
        store.save_settings(FuelSettings(fuel_price=6.19))
        assert store.load_settings().fuel_price == 6.19

    def test_keys_are_namespaced(self, backend):
        """Test that every key carries the configured prefix."""
        store = FuelStore(backend, key_prefix="casa_")
        store.save_settings(FuelSettings(fuel_price=5))
        store.append_trip(make_trip())
        assert sorted(backend.keys()) == ["casa_settings", "casa_trips"]

    def test_envelope_layout(self, store, backend):
        """Test the stored envelope and camelCase payload."""
        trip = make_trip()
        store.append_trip(trip)
        stored = json.loads(backend.get_item("ecodrive_trips"))
        assert stored["schema_version"] == SCHEMA_VERSION
        assert stored["revision"] == 1
        assert stored["data"][0]["id"] == trip.id
        assert stored["data"][0]["driverName"] == "Pai"

    def test_revision_increments(self, store):
        """Test that each save bumps the revision."""
        store.append_trip(make_trip())
        store.append_trip(make_trip())
        _, revision = store.trips.load_with_revision()
        assert revision == 2


class TestRecovery:
    """Tests for reads that cannot be understood."""

    def test_corrupt_json_falls_back_to_default(self, store, backend):
        """Test that unparsable settings yield the default price."""
        backend.set_item("ecodrive_settings", "{not json")
        assert store.load_settings().fuel_price == 5.89

    def test_wrong_shape_falls_back_to_default(self, store, backend):
        """Test that a non-list trips value yields an empty list."""
        backend.set_item("ecodrive_trips", json.dumps({"oops": True}))
        assert store.load_trips() == []

    def test_future_schema_falls_back_to_default(self, store, backend):
        """Test that a newer schema version is not guessed at."""
        backend.set_item("ecodrive_drivers", json.dumps({
            "schema_version": SCHEMA_VERSION + 1,
            "revision": 3,
            "data": [],
        }))
        assert [d.name for d in store.load_drivers()] == ["Pai", "Mãe"]

    def test_legacy_value_loads(self, store, backend):
        """Test that a value written without an envelope is migrated."""
        backend.set_item("ecodrive_trips", json.dumps([{
            "id": "t1",
            "driverId": "1",
            "driverName": "Pai",
            "origin": "Casa",
            "destination": "Praia",
            "distance": 60,
            "isRoundTrip": True,
            "totalDistance": 120,
            "cost": 58.9,
            "date": "2023-12-24T09:00:00.000Z",
            "category": "Lazer",
        }]))
        trips = store.load_trips()
        assert len(trips) == 1
        assert trips[0].travel_date == date(2023, 12, 24)

        store.append_trip(make_trip())
        stored = json.loads(backend.get_item("ecodrive_trips"))
        assert stored["schema_version"] == SCHEMA_VERSION
        assert [t["id"] for t in stored["data"]][1] == "t1"

    def test_invalid_records_are_skipped(self, store, backend):
        """Test that one bad record does not discard the collection."""
        good = make_trip().model_dump(mode="json", by_alias=True)
        backend.set_item("ecodrive_trips", json.dumps([good, {"id": "broken"}]))
        trips = store.load_trips()
        assert [t.id for t in trips] == [good["id"]]

    def test_skipped_record_survives_append(self, store, backend):
        """Test that an unreadable record is written back unchanged."""
        good = make_trip().model_dump(mode="json", by_alias=True)
        broken = {"id": "broken", "origin": "Casa"}
        backend.set_item("ecodrive_trips", json.dumps([good, broken]))

        new_trip = make_trip()
        store.append_trip(new_trip)

        stored = json.loads(backend.get_item("ecodrive_trips"))["data"]
        assert [t["id"] for t in stored] == [new_trip.id, good["id"], "broken"]
        assert stored[-1] == broken

    def test_skipped_record_survives_delete_and_save(self, store, backend):
        """Test that every write path keeps unreadable records."""
        first = make_trip()
        broken = {"id": "broken"}
        backend.set_item("ecodrive_trips", json.dumps([
            first.model_dump(mode="json", by_alias=True),
            broken,
        ]))

        store.delete_trip(first.id)
        store.save_trips([])

        stored = json.loads(backend.get_item("ecodrive_trips"))["data"]
        assert stored == [broken]
        assert store.load_trips() == []

    def test_unknown_category_is_kept(self, store, backend):
        """Test that a category label outside the current set still loads."""
        legacy = dict(make_trip().model_dump(mode="json", by_alias=True), id="legacy", category="Viagem")
        backend.set_item("ecodrive_trips", json.dumps([legacy]))

        store.append_trip(make_trip())

        trips = store.load_trips()
        assert [t.id for t in trips][1] == "legacy"
        assert trips[1].category_label == "Viagem"


class TestMutations:
    """Tests for append and delete."""

    def test_append_prepends(self, store):
        """Test that the newest trip comes first."""
        first = make_trip()
        second = make_trip()
        store.append_trip(first)
        trips = store.append_trip(second)
        assert [t.id for t in trips] == [second.id, first.id]
        assert [t.id for t in store.load_trips()] == [second.id, first.id]

    def test_append_then_delete_restores_collection(self, store):
        """Test that deleting an appended trip restores the previous state."""
        existing = make_trip(origin="Casa", destination="Mercado")
        store.append_trip(existing)
        before = store.load_trips()

        trip = make_trip()
        store.append_trip(trip)
        store.delete_trip(trip.id)

        assert store.load_trips() == before

    def test_delete_unknown_id_is_noop(self, store):
        """Test that deleting a missing id does not write."""
        store.append_trip(make_trip())
        _, revision = store.trips.load_with_revision()

        trips = store.delete_trip("does-not-exist")

        assert len(trips) == 1
        assert store.trips.load_with_revision()[1] == revision

    def test_delete_keeps_other_trips(self, store):
        """Test that only the matching trip is removed."""
        a, b, c = make_trip(), make_trip(), make_trip()
        for trip in (a, b, c):
            store.append_trip(trip)
        remaining = store.delete_trip(b.id)
        assert [t.id for t in remaining] == [c.id, a.id]


class TestConcurrency:
    """Tests for the optimistic revision check."""

    def test_stale_expected_revision_raises(self, store):
        """Test that a save against an old revision is rejected."""
        store.append_trip(make_trip())
        with pytest.raises(StaleWriteError) as exc_info:
            store.trips.save([], expected_revision=0)
        assert exc_info.value.actual_revision == 1
        assert isinstance(exc_info.value, StorageWriteError)

    def test_append_retries_after_concurrent_write(self):
        """Test that a conflicting append is retried and both trips survive."""
        backend = InterleavingBackend()
        ours = FuelStore(backend)
        theirs = FuelStore(backend)
        their_trip = make_trip(driver_name="Mãe", driver_id="2")
        our_trip = make_trip()

        # Read 1 is our load, read 2 is our revision check
        backend.hooks[2] = lambda: theirs.append_trip(their_trip)

        trips = ours.append_trip(our_trip)

        assert [t.id for t in trips] == [our_trip.id, their_trip.id]
        assert [t.id for t in ours.load_trips()] == [our_trip.id, their_trip.id]


class TestQuota:
    """Tests for a full medium."""

    def test_quota_exceeded_keeps_previous_value(self):
        """Test that a refused write leaves the stored value intact."""
        store = FuelStore(InMemoryBackend(quota_bytes=1000))
        first = make_trip()
        store.append_trip(first)

        with pytest.raises(QuotaExceededError):
            store.save_trips([make_trip() for _ in range(10)])

        assert [t.id for t in store.load_trips()] == [first.id]

    def test_quota_error_is_a_write_error(self):
        """Test the exception hierarchy."""
        store = FuelStore(InMemoryBackend(quota_bytes=10))
        with pytest.raises(StorageWriteError):
            store.save_settings(FuelSettings(fuel_price=5))


class TestJsonFileBackend:
    """Tests for the on-disk medium."""

    def test_values_survive_a_new_instance(self, tmp_path):
        """Test that a second backend on the same file sees the data."""
        path = tmp_path / "data.json"
        FuelStore(JsonFileBackend(path)).save_settings(FuelSettings(fuel_price=6.5))

        assert FuelStore(JsonFileBackend(path)).load_settings().fuel_price == 6.5

    def test_file_is_a_string_map(self, tmp_path):
        """Test that the document maps keys to serialized strings."""
        path = tmp_path / "data.json"
        backend = JsonFileBackend(path)
        backend.set_item("ecodrive_settings", '{"x": 1}')

        document = json.loads(path.read_text(encoding="utf-8"))
        assert document == {"ecodrive_settings": '{"x": 1}'}

    def test_missing_file_is_empty(self, tmp_path):
        """Test that a missing file reads as an empty store."""
        backend = JsonFileBackend(tmp_path / "nope.json")
        assert backend.keys() == []
        assert backend.get_item("anything") is None

    def test_corrupt_file_is_quarantined(self, tmp_path):
        """Test that an unreadable file is moved aside and treated as empty."""
        path = tmp_path / "data.json"
        path.write_text("{{{", encoding="utf-8")
        backend = JsonFileBackend(path)

        assert backend.get_item("ecodrive_trips") is None
        assert (tmp_path / "data.json.corrupt").exists()
        assert not path.exists()

    def test_invalid_utf8_is_quarantined(self, tmp_path):
        """Test that undecodable bytes yield defaults and are moved aside."""
        path = tmp_path / "data.json"
        path.write_bytes(b'{"ecodrive_settings": "\xff\xfe"}')

        assert FuelStore(JsonFileBackend(path)).load_settings().fuel_price == 5.89
        assert (tmp_path / "data.json.corrupt").exists()

    def test_unreadable_path_loads_defaults(self, tmp_path):
        """Test that a read failure of the medium never escapes load."""
        path = tmp_path / "data.json"
        path.mkdir()
        store = FuelStore(JsonFileBackend(path))

        assert store.load_trips() == []
        assert store.load_settings().fuel_price == 5.89
        assert [d.name for d in store.load_drivers()] == ["Pai", "Mãe"]

    def test_unreadable_path_write_raises_write_error(self, tmp_path):
        """Test that a write on an unreadable medium surfaces as StorageWriteError."""
        path = tmp_path / "data.json"
        path.mkdir()
        store = FuelStore(JsonFileBackend(path))

        with pytest.raises(StorageWriteError):
            store.save_settings(FuelSettings(fuel_price=6))
        with pytest.raises(StorageWriteError):
            store.append_trip(make_trip())

    def test_remove_item(self, tmp_path):
        """Test key removal."""
        backend = JsonFileBackend(tmp_path / "data.json")
        backend.set_item("a", "1")
        backend.set_item("b", "2")
        backend.remove_item("a")
        backend.remove_item("missing")
        assert backend.keys() == ["b"]

    def test_quota_enforced(self, tmp_path):
        """Test that the file backend honours its quota."""
        backend = JsonFileBackend(tmp_path / "data.json", quota_bytes=8)
        with pytest.raises(QuotaExceededError):
            backend.set_item("key", "a long value")
        assert backend.keys() == []
