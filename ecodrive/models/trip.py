"""
Core Data Models for EcoDrive

These models define the schemas for everything the store persists and
everything the flows hand back to a UI. They are designed to:
1. Enforce type safety at runtime
2. Serialize to the same camelCase JSON layout the browser app wrote
3. Tolerate old stored data without inventing values

DESIGN DECISION: Field names are snake_case in Python and camelCase on
disk (alias generator). Existing local-storage dumps therefore load as-is.
"""

from datetime import date
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


def new_id() -> str:
    """Random 128-bit identifier, as a string."""
    return str(uuid4())


class _StoredModel(BaseModel):
    """Base for models that round-trip through the persisted store."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TripCategory(str, Enum):
    """
    Supported trip categories.

    OTHER doubles as the fallback bucket for trips stored without
    a category.
    """
    WORK = "Trabalho"
    LEISURE = "Lazer"
    ESSENTIAL = "Essencial"
    EDUCATION = "Educação"
    OTHER = "Outros"


# =============================================================================
# STORED RECORDS
# =============================================================================

class Driver(_StoredModel):
    """A household member and the fuel efficiency of the car they drive."""

    id: str = Field(
        default_factory=new_id,
        description="Opaque unique identifier"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    avg_consumption: float = Field(
        ...,
        gt=0,
        description="Kilometers traveled per liter of fuel"
    )


class FuelSettings(_StoredModel):
    """Singleton settings record. Always replaced as a whole."""

    fuel_price: float = Field(
        ...,
        ge=0,
        description="Price of one liter of fuel"
    )


class Trip(_StoredModel):
    """
    A recorded journey.

    CRITICAL: total_distance and cost are snapshots taken when the trip
    was recorded. Later fuel price or consumption changes never touch them.
    driver_name is a snapshot too; driver_id may point at a driver that
    no longer exists.
    """

    id: str = Field(
        default_factory=new_id,
        description="Opaque unique identifier"
    )
    driver_id: str = Field(
        ...,
        description="Driver reference (not enforced)"
    )
    driver_name: str = Field(
        default="",
        description="Driver name at the time the trip was recorded"
    )
    origin: str
    destination: str
    distance: float = Field(
        ...,
        ge=0,
        description="One-way distance in km"
    )
    is_round_trip: bool = False
    total_distance: float = Field(
        ...,
        ge=0,
        description="distance x 2 for round trips"
    )
    cost: float = Field(
        ...,
        ge=0,
        description="Fuel cost at recording time"
    )
    travel_date: date = Field(
        ...,
        alias="date",
        description="Calendar date of travel"
    )
    category: Optional[str] = Field(
        default=None,
        description="Trip category label; absent on some older records. "
                    "New trips use a TripCategory value; stored labels outside "
                    "it are kept as written."
    )

    @field_validator('travel_date', mode='before')
    @classmethod
    def accept_iso_timestamp(cls, v):
        """Older records stored a full ISO timestamp; keep the calendar date."""
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    @field_validator('category', mode='before')
    @classmethod
    def normalize_category(cls, v):
        """Enum members are stored by value; an empty label is absent."""
        if isinstance(v, Enum):
            return v.value
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def category_label(self) -> str:
        """Category name used for grouping; absent means OTHER."""
        return self.category or TripCategory.OTHER.value


# =============================================================================
# INPUT AND CALCULATION MODELS
# =============================================================================

class Coordinates(BaseModel):
    """Approximate user position, used to bias place lookups."""

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class TripDraft(BaseModel):
    """
    What the user typed into the trip form.

    Nothing here is trusted yet: the draft is validated, the distance is
    looked up, and only then a Trip is built from it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    driver_id: str = ""
    origin: str = ""
    destination: str = ""
    is_round_trip: bool = False
    category: TripCategory = TripCategory.WORK
    travel_date: date = Field(default_factory=date.today)


class TripCost(BaseModel):
    """Result of the trip economics calculation."""

    total_distance: float
    cost: float


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of validating user input before anything is looked up or saved."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
