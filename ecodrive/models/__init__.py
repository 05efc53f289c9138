"""
Data Models Package

This package contains all Pydantic models used in EcoDrive.
All data flowing through the system must conform to these schemas.
"""

from ecodrive.models.trip import (
    Coordinates,
    Driver,
    FuelSettings,
    Trip,
    TripCategory,
    TripCost,
    TripDraft,
    ValidationIssue,
    ValidationResult,
    new_id,
)
from ecodrive.models.dashboard import (
    CategoryTotal,
    DashboardStats,
    DistanceResult,
    DriverRollup,
    PlaceResult,
    SearchResponse,
    TimelinePoint,
)
from ecodrive.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Trip models
    "Coordinates",
    "Driver",
    "FuelSettings",
    "Trip",
    "TripCategory",
    "TripCost",
    "TripDraft",
    "ValidationIssue",
    "ValidationResult",
    "new_id",
    # Dashboard and location models
    "CategoryTotal",
    "DashboardStats",
    "DistanceResult",
    "DriverRollup",
    "PlaceResult",
    "SearchResponse",
    "TimelinePoint",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
