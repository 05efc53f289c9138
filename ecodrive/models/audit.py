"""
Audit Models for EcoDrive

Every user-visible mutation and every failure of the trip submission
flow produces an audit event. This provides:
1. Traceability of what was recorded, changed or rejected
2. Debugging information when a lookup or a write fails
3. Ability to reconstruct a session's history from the log

DESIGN DECISION: Audit events are emitted, never edited.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every step of the trip submission flow has its own event type.
    """
    # Trip submission
    TRIP_SUBMITTED = "trip_submitted"
    TRIP_VALIDATION_FAILED = "trip_validation_failed"
    DISTANCE_RESOLVED = "distance_resolved"
    ROUTE_NOT_FOUND = "route_not_found"
    TRIP_SAVED = "trip_saved"
    TRIP_DELETED = "trip_deleted"
    SAVE_FAILED = "save_failed"

    # Settings
    DRIVER_ADDED = "driver_added"
    DRIVER_REMOVED = "driver_removed"
    SETTINGS_UPDATED = "settings_updated"

    # Lookups
    PLACE_SEARCH_EXECUTED = "place_search_executed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'trip', 'driver', 'settings')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events of one trip submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.trip_saved(trip_id, driver_name, total_distance, cost, correlation_id)
        event = AuditEventBuilder.driver_added(driver_id, name, avg_consumption)
    """

    @staticmethod
    def trip_submitted(
        origin: str,
        destination: str,
        driver_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_SUBMITTED,
            entity_type="driver",
            entity_id=driver_id,
            correlation_id=correlation_id,
            description=f"Trip submitted: {origin} -> {destination}",
            details={
                "origin": origin,
                "destination": destination,
            },
            is_user_action=True,
        )

    @staticmethod
    def trip_validation_failed(
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="trip",
            correlation_id=correlation_id,
            description=f"Trip form rejected with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def distance_resolved(
        origin: str,
        destination: str,
        km: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISTANCE_RESOLVED,
            entity_type="route",
            correlation_id=correlation_id,
            description=f"Distance resolved: {km:.1f} km",
            details={
                "origin": origin,
                "destination": destination,
                "km": km,
            },
        )

    @staticmethod
    def route_not_found(
        origin: str,
        destination: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROUTE_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type="route",
            correlation_id=correlation_id,
            description=f"No route found: {origin} -> {destination}",
            details={
                "origin": origin,
                "destination": destination,
            },
        )

    @staticmethod
    def trip_saved(
        trip_id: str,
        driver_name: str,
        total_distance: float,
        cost: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_SAVED,
            entity_type="trip",
            entity_id=trip_id,
            correlation_id=correlation_id,
            description=f"Trip saved: {driver_name} - {total_distance:.1f} km",
            details={
                "driver_name": driver_name,
                "total_distance": total_distance,
                "cost": round(cost, 2),
            },
        )

    @staticmethod
    def trip_deleted(trip_id: str, found: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRIP_DELETED,
            entity_type="trip",
            entity_id=trip_id,
            description="Trip deleted" if found else "Trip delete requested for unknown id",
            details={"found": found},
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Could not persist {entity_type}",
            error_message=error_message,
        )

    @staticmethod
    def driver_added(driver_id: str, name: str, avg_consumption: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRIVER_ADDED,
            entity_type="driver",
            entity_id=driver_id,
            description=f"Driver added: {name}",
            details={"avg_consumption": avg_consumption},
            is_user_action=True,
        )

    @staticmethod
    def driver_removed(driver_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DRIVER_REMOVED,
            entity_type="driver",
            entity_id=driver_id,
            description="Driver removed (existing trips keep their snapshot)",
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(fuel_price: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            description=f"Fuel price set to {fuel_price:.2f}",
            details={"fuel_price": fuel_price},
            is_user_action=True,
        )

    @staticmethod
    def place_search_executed(query: str, result_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PLACE_SEARCH_EXECUTED,
            entity_type="query",
            description=f"Place search returned {result_count} results",
            details={
                "query": query,
                "result_count": result_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
