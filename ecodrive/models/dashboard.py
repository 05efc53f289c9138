"""
Dashboard and Location Models

Output shapes of the aggregation engine and of the location collaborator.
These are never persisted; they are rebuilt on every call.
"""

from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# DASHBOARD MODELS
# =============================================================================

class DriverRollup(BaseModel):
    """Totals for one driver who has at least one trip."""

    driver_id: str
    name: str
    spent: float = Field(ge=0)
    trips: int = Field(ge=1)
    km: float = Field(ge=0)


class CategoryTotal(BaseModel):
    """Sum of trip costs for one category."""

    name: str
    value: float = Field(ge=0)


class TimelinePoint(BaseModel):
    """One trip in the cost trend, labelled by day/month."""

    date: str = Field(description="Display date, dd/mm")
    cost: float = Field(ge=0)


class DashboardStats(BaseModel):
    """
    Everything the dashboard shows.

    Computed from scratch from the trip and driver collections;
    identical inputs always produce an identical value.
    """

    total_trips: int = 0
    total_spent: float = 0.0
    total_distance: float = 0.0
    avg_cost_per_km: float = 0.0
    top_driver: str = "-"
    driver_data: list[DriverRollup] = Field(default_factory=list)
    category_data: list[CategoryTotal] = Field(default_factory=list)
    timeline_data: list[TimelinePoint] = Field(default_factory=list)


# =============================================================================
# LOCATION MODELS (external collaborator contract)
# =============================================================================

class PlaceResult(BaseModel):
    """A candidate place returned by a search."""

    name: str = Field(default="Local encontrado")
    address: str = ""
    uri: Optional[str] = None


class SearchResponse(BaseModel):
    """
    Result of a place search.

    Always a valid value: failures come back as an explanatory summary
    and an empty place list.
    """

    summary: str
    places: list[PlaceResult] = Field(default_factory=list)


class DistanceResult(BaseModel):
    """
    Estimated driving distance between two places.

    km <= 0 means no route was found.
    """

    km: float = 0.0
    source_uri: Optional[str] = None

    @property
    def route_found(self) -> bool:
        return self.km > 0
