"""
Session Context

Holds the in-memory copy of the three stored collections for one user
session. Flows read from it and, after every successful write, replace
the affected collection with what the store actually wrote.
"""

from typing import Optional

from ecodrive.models.trip import Driver, FuelSettings, Trip
from ecodrive.services.storage import FuelStore


class SessionContext:
    """The drivers, settings and trips a UI is currently showing."""

    def __init__(
        self,
        store: FuelStore,
        drivers: list[Driver],
        settings: FuelSettings,
        trips: list[Trip],
    ):
        self.store = store
        self.drivers = drivers
        self.settings = settings
        self.trips = trips

    @classmethod
    def load(cls, store: FuelStore) -> "SessionContext":
        """Initialize from the store. Never raises; missing data loads as defaults."""
        return cls(
            store=store,
            drivers=store.load_drivers(),
            settings=store.load_settings(),
            trips=store.load_trips(),
        )

    def refresh(self) -> None:
        """Reload everything, picking up writes made by other sessions."""
        self.drivers = self.store.load_drivers()
        self.settings = self.store.load_settings()
        self.trips = self.store.load_trips()

    def find_driver(self, driver_id: str) -> Optional[Driver]:
        for driver in self.drivers:
            if driver.id == driver_id:
                return driver
        return None
