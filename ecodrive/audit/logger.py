"""
Audit Logger

DESIGN DECISION: Every user-visible mutation and every rejected trip
submission is logged as a structured event. This provides:
1. Traceability of what was recorded and why something was rejected
2. Debugging capability for flaky distance lookups
3. Correlation of all events belonging to one submission

The audit logger:
- Is synchronous; store operations are synchronous too
- Never raises - a logging failure must not break a user action
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from ecodrive.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Writes every event to the structured local log at a level matching
    its severity, and keeps the last events in memory so a UI can show
    recent activity.
    """

    def __init__(self, history_size: int = 100):
        self._logger = structlog.get_logger("ecodrive.audit")
        self._history: list[AuditEvent] = []
        self._history_size = history_size

    @property
    def recent_events(self) -> list[AuditEvent]:
        """Most recent events, newest first."""
        return list(reversed(self._history))

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written to the local log.
        """
        self._history.append(event)
        if len(self._history) > self._history_size:
            del self._history[0]

        log_dict = event.to_log_dict()
        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    def log_trip_submitted(
        self,
        origin: str,
        destination: str,
        driver_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log the start of a trip submission."""
        self.log(AuditEventBuilder.trip_submitted(
            origin=origin,
            destination=destination,
            driver_id=driver_id,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log a rejected trip form."""
        self.log(AuditEventBuilder.trip_validation_failed(
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_distance_resolved(
        self,
        origin: str,
        destination: str,
        km: float,
        correlation_id: UUID,
    ) -> None:
        """Log a successful distance lookup."""
        self.log(AuditEventBuilder.distance_resolved(
            origin=origin,
            destination=destination,
            km=km,
            correlation_id=correlation_id,
        ))

    def log_route_not_found(
        self,
        origin: str,
        destination: str,
        correlation_id: UUID,
    ) -> None:
        """Log a lookup that found no route."""
        self.log(AuditEventBuilder.route_not_found(
            origin=origin,
            destination=destination,
            correlation_id=correlation_id,
        ))

    def log_trip_saved(
        self,
        trip_id: str,
        driver_name: str,
        total_distance: float,
        cost: float,
        correlation_id: UUID,
    ) -> None:
        """Log a persisted trip."""
        self.log(AuditEventBuilder.trip_saved(
            trip_id=trip_id,
            driver_name=driver_name,
            total_distance=total_distance,
            cost=cost,
            correlation_id=correlation_id,
        ))

    def log_trip_deleted(self, trip_id: str, found: bool) -> None:
        """Log a trip deletion."""
        self.log(AuditEventBuilder.trip_deleted(trip_id=trip_id, found=found))

    def log_save_failed(
        self,
        entity_type: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a write the medium refused."""
        self.log(AuditEventBuilder.save_failed(
            entity_type=entity_type,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_driver_added(self, driver_id: str, name: str, avg_consumption: float) -> None:
        self.log(AuditEventBuilder.driver_added(
            driver_id=driver_id,
            name=name,
            avg_consumption=avg_consumption,
        ))

    def log_driver_removed(self, driver_id: str) -> None:
        self.log(AuditEventBuilder.driver_removed(driver_id=driver_id))

    def log_settings_updated(self, fuel_price: float) -> None:
        self.log(AuditEventBuilder.settings_updated(fuel_price=fuel_price))

    def log_place_search(self, query: str, result_count: int) -> None:
        self.log(AuditEventBuilder.place_search_executed(
            query=query,
            result_count=result_count,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a trip submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
