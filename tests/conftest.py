"""
Shared fixtures.

No real API calls in tests: the location agent always gets a FakeModel.
"""

from datetime import date
from typing import Optional

import pytest

from ecodrive.agents import LocationAgent
from ecodrive.audit import AuditLogger
from ecodrive.config import AppSettings, GeminiSettings
from ecodrive.models.trip import Trip, TripCategory
from ecodrive.orchestrator import DashboardFlow, SettingsFlow, TripFlow
from ecodrive.services.storage import FuelStore, InMemoryBackend
from ecodrive.session import SessionContext


class FakeResponse:
    """Stands in for a GenerateContentResponse."""

    def __init__(self, text: str, candidates: Optional[list] = None):
        self.text = text
        self.candidates = candidates or []


class FakeModel:
    """
    Replays canned replies in order.

    An Exception instance in the list is raised instead of returned.
    The last reply is repeated once the list runs out.
    """

    def __init__(self, *replies):
        self._replies = list(replies)
        self.prompts: list[str] = []

    async def generate_content_async(self, prompt: str):
        self.prompts.append(prompt)
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return FakeResponse(reply)
        return reply


def make_trip(
    driver_id: str = "1",
    driver_name: str = "Pai",
    distance: float = 10.0,
    is_round_trip: bool = False,
    cost: float = 4.9,
    travel_date: date = date(2024, 5, 1),
    category: Optional[str] = TripCategory.WORK,
    origin: str = "Casa",
    destination: str = "Escritório",
) -> Trip:
    return Trip(
        driver_id=driver_id,
        driver_name=driver_name,
        origin=origin,
        destination=destination,
        distance=distance,
        is_round_trip=is_round_trip,
        total_distance=distance * (2 if is_round_trip else 1),
        cost=cost,
        travel_date=travel_date,
        category=category,
    )


def snapshot(backend: InMemoryBackend) -> dict[str, Optional[str]]:
    """Every key and raw value currently in the medium."""
    return {key: backend.get_item(key) for key in backend.keys()}


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    return FuelStore(backend)


@pytest.fixture
def session(store):
    return SessionContext.load(store)


@pytest.fixture
def app_settings():
    return AppSettings(future_date_tolerance_days=30, timeline_window=10, recent_locations_limit=5)


@pytest.fixture
def gemini_settings():
    return GeminiSettings(api_key="test-key")


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def make_trip_flow(store, audit_logger, app_settings, gemini_settings):
    """Build a TripFlow whose agent replays the given replies."""

    def _make(*replies) -> tuple[TripFlow, FakeModel]:
        model = FakeModel(*replies)
        agent = LocationAgent(settings=gemini_settings, model=model, retry_attempts=1)
        flow = TripFlow(
            store=store,
            location_agent=agent,
            audit_logger=audit_logger,
            app_settings=app_settings,
        )
        return flow, model

    return _make


@pytest.fixture
def settings_flow(store, audit_logger):
    return SettingsFlow(store=store, audit_logger=audit_logger)


@pytest.fixture
def dashboard_flow(app_settings):
    return DashboardFlow(app_settings=app_settings)
