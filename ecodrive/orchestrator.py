"""
Main Orchestrator for EcoDrive

This module ties together all the components and defines the
end-to-end flows for:
1. Trip recording (form → validate → distance lookup → cost → save)
2. Household settings (drivers and fuel price)
3. Dashboard (stored trips → aggregated figures)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is looked up before the form is valid
- Nothing is persisted before the cost is computed
- A failed lookup or a refused write leaves the store untouched
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

import math
from typing import Optional
from uuid import UUID

from ecodrive.agents import LocationAgent, LookupUnavailable, RouteNotFound
from ecodrive.audit import AuditLogger, create_correlation_id
from ecodrive.calculator import DomainError, compute_trip
from ecodrive.config import AppSettings, Settings, get_settings
from ecodrive.models.dashboard import DashboardStats, SearchResponse
from ecodrive.models.trip import (
    Coordinates,
    Driver,
    FuelSettings,
    Trip,
    TripDraft,
    ValidationIssue,
    ValidationResult,
)
from ecodrive.queries import compute_dashboard_stats
from ecodrive.services.storage import (
    FuelStore,
    InMemoryBackend,
    JsonFileBackend,
    StorageWriteError,
)
from ecodrive.session import SessionContext
from ecodrive.validation import (
    TripFormValidator,
    get_user_friendly_summary,
    validate_new_driver,
)


class InvalidInputError(ValueError):
    """User input was rejected before anything was looked up or written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(get_user_friendly_summary(result))


class TripValidationError(InvalidInputError):
    """The trip form has blocking errors."""
    pass


def _issues_for_audit(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
    ]


class TripFlow:
    """
    Orchestrates trip recording.

    Flow:
    1. Validate → blocking errors stop here (no lookup, no write)
    2. Look up distance → km <= 0 means no route, stop here
    3. Compute → cost snapshot from the current fuel price
    4. Save → prepend to the stored collection
    5. Update the session with what was written

    A Trip is created only after step 3 and persisted only in step 4.
    """

    def __init__(
        self,
        store: FuelStore,
        location_agent: Optional[LocationAgent] = None,
        validator: Optional[TripFormValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self._store = store
        self._location_agent = location_agent or LocationAgent()
        self._app_settings = app_settings or get_settings().app
        self._validator = validator or TripFormValidator(self._app_settings)
        self._audit_logger = audit_logger

    async def record_trip(
        self,
        session: SessionContext,
        draft: TripDraft,
        coords: Optional[Coordinates] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Trip:
        """
        Turn a submitted form into a stored trip.

        Returns:
            The persisted Trip

        Raises:
            TripValidationError: If the form has blocking errors
            LookupUnavailable: If the distance lookup could not run
            RouteNotFound: If no route was found between the places
            DomainError: If the stored price or consumption is unusable
            StorageWriteError: If the store refused the write
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            self._audit_logger.log_trip_submitted(
                origin=draft.origin,
                destination=draft.destination,
                driver_id=draft.driver_id,
                correlation_id=correlation_id,
            )

        # Step 1: Validate
        result = self._validator.validate(draft, session.drivers)
        if not result.is_valid:
            if self._audit_logger:
                self._audit_logger.log_validation_failed(
                    issues=_issues_for_audit(result),
                    correlation_id=correlation_id,
                )
            raise TripValidationError(result)

        driver = session.find_driver(draft.driver_id)

        # Step 2: Distance lookup
        try:
            distance = await self._location_agent.calculate_distance(
                draft.origin,
                draft.destination,
                coords,
            )
        except LookupUnavailable as e:
            if self._audit_logger:
                self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if not distance.route_found:
            if self._audit_logger:
                self._audit_logger.log_route_not_found(
                    origin=draft.origin,
                    destination=draft.destination,
                    correlation_id=correlation_id,
                )
            raise RouteNotFound(draft.origin, draft.destination)

        if self._audit_logger:
            self._audit_logger.log_distance_resolved(
                origin=draft.origin,
                destination=draft.destination,
                km=distance.km,
                correlation_id=correlation_id,
            )

        # Step 3: Compute the cost snapshot
        try:
            economics = compute_trip(
                distance_km=distance.km,
                round_trip=draft.is_round_trip,
                avg_consumption=driver.avg_consumption,
                fuel_price=session.settings.fuel_price,
            )
        except DomainError as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type="domain_error",
                    error_message=str(e),
                    details={"driver_id": driver.id, "km": distance.km},
                    correlation_id=correlation_id,
                )
            raise

        trip = Trip(
            driver_id=driver.id,
            driver_name=driver.name,
            origin=draft.origin,
            destination=draft.destination,
            distance=distance.km,
            is_round_trip=draft.is_round_trip,
            total_distance=economics.total_distance,
            cost=economics.cost,
            travel_date=draft.travel_date,
            category=draft.category,
        )

        # Step 4: Save
        try:
            session.trips = self._store.append_trip(trip)
        except StorageWriteError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    entity_type="trip",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_trip_saved(
                trip_id=trip.id,
                driver_name=trip.driver_name,
                total_distance=trip.total_distance,
                cost=trip.cost,
                correlation_id=correlation_id,
            )

        return trip

    def delete_trip(self, session: SessionContext, trip_id: str) -> bool:
        """
        Delete a trip by id.

        Returns:
            True if a trip was removed, False if the id was unknown
        """
        before = len(session.trips)
        try:
            session.trips = self._store.delete_trip(trip_id)
        except StorageWriteError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    entity_type="trip",
                    error_message=str(e),
                )
            raise

        found = len(session.trips) < before
        if self._audit_logger:
            self._audit_logger.log_trip_deleted(trip_id=trip_id, found=found)
        return found

    async def search_places(
        self,
        query: str,
        coords: Optional[Coordinates] = None,
    ) -> SearchResponse:
        """Place suggestions for a form field. Never raises."""
        response = await self._location_agent.search_places(query, coords)
        if self._audit_logger:
            self._audit_logger.log_place_search(
                query=query,
                result_count=len(response.places),
            )
        return response

    def recent_locations(
        self,
        session: SessionContext,
        limit: Optional[int] = None,
    ) -> list[str]:
        """
        Distinct places from the latest trips, newest first.

        Each trip contributes its origin, then its destination.
        """
        limit = limit or self._app_settings.recent_locations_limit
        locations: list[str] = []
        for trip in session.trips:
            for place in (trip.origin, trip.destination):
                if place and place not in locations:
                    locations.append(place)
            if len(locations) >= limit:
                break
        return locations[:limit]


class SettingsFlow:
    """
    Orchestrates household settings.

    Drivers and the fuel price only affect trips recorded afterwards.
    Removing a driver never touches the trips that reference them.
    """

    def __init__(
        self,
        store: FuelStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger

    def _save_drivers(self, drivers: list[Driver]) -> None:
        try:
            self._store.save_drivers(drivers)
        except StorageWriteError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    entity_type="drivers",
                    error_message=str(e),
                )
            raise

    def add_driver(
        self,
        session: SessionContext,
        name: str,
        avg_consumption: float,
    ) -> Driver:
        """
        Add a driver.

        Raises:
            InvalidInputError: If the name is blank or consumption is not positive
            StorageWriteError: If the store refused the write
        """
        result = validate_new_driver(name, avg_consumption)
        if not result.is_valid:
            raise InvalidInputError(result)

        driver = Driver(name=name, avg_consumption=avg_consumption)
        drivers = [*session.drivers, driver]
        self._save_drivers(drivers)
        session.drivers = drivers

        if self._audit_logger:
            self._audit_logger.log_driver_added(
                driver_id=driver.id,
                name=driver.name,
                avg_consumption=driver.avg_consumption,
            )
        return driver

    def remove_driver(self, session: SessionContext, driver_id: str) -> None:
        """Remove a driver. Their trips stay, with the stored driver name."""
        drivers = [d for d in session.drivers if d.id != driver_id]
        self._save_drivers(drivers)
        session.drivers = drivers

        if self._audit_logger:
            self._audit_logger.log_driver_removed(driver_id=driver_id)

    def update_fuel_price(self, session: SessionContext, price: float) -> FuelSettings:
        """
        Replace the fuel price used for new trips.

        Raises:
            InvalidInputError: If the price is negative or not a number
            StorageWriteError: If the store refused the write
        """
        if price is None or not math.isfinite(price) or price < 0:
            raise InvalidInputError(ValidationResult(issues=[ValidationIssue(
                field="fuel_price",
                issue_type="invalid_value",
                message="O preço do combustível não pode ser negativo",
                severity="error",
            )]))

        settings = FuelSettings(fuel_price=price)
        try:
            self._store.save_settings(settings)
        except StorageWriteError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    entity_type="settings",
                    error_message=str(e),
                )
            raise
        session.settings = settings

        if self._audit_logger:
            self._audit_logger.log_settings_updated(fuel_price=price)
        return settings


class DashboardFlow:
    """Read-only: aggregates whatever the session currently holds."""

    def __init__(self, app_settings: Optional[AppSettings] = None):
        self._app_settings = app_settings or get_settings().app

    def stats(self, session: SessionContext) -> DashboardStats:
        return compute_dashboard_stats(
            session.trips,
            session.drivers,
            timeline_window=self._app_settings.timeline_window,
        )


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[SessionContext, TripFlow, SettingsFlow, DashboardFlow]:
    """
    Factory function to create all application components.

    Args:
        settings: Configuration to wire from. Defaults to the environment.

    Returns:
        (session, trip_flow, settings_flow, dashboard_flow)
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    if storage_settings.backend == "memory":
        backend = InMemoryBackend(quota_bytes=storage_settings.quota_bytes)
    else:
        backend = JsonFileBackend(
            storage_settings.data_path,
            quota_bytes=storage_settings.quota_bytes,
        )

    store = FuelStore(
        backend,
        key_prefix=storage_settings.key_prefix,
        default_fuel_price=storage_settings.default_fuel_price,
    )
    audit_logger = AuditLogger()

    trip_flow = TripFlow(
        store=store,
        location_agent=LocationAgent(settings.gemini),
        audit_logger=audit_logger,
        app_settings=app_settings,
    )
    settings_flow = SettingsFlow(store=store, audit_logger=audit_logger)
    dashboard_flow = DashboardFlow(app_settings=app_settings)

    return SessionContext.load(store), trip_flow, settings_flow, dashboard_flow
