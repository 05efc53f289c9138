"""
Dashboard Aggregation Engine

DESIGN DECISION: Aggregation is a pure function of the trip and driver
collections. It is recomputed on every call - no caching, no incremental
state - so the dashboard can never drift from what is stored.

It only ever reads the stored cost and total_distance of each trip.
Nothing is recomputed from today's fuel price.
"""

from typing import Optional

from ecodrive.models.dashboard import (
    CategoryTotal,
    DashboardStats,
    DriverRollup,
    TimelinePoint,
)
from ecodrive.models.trip import Driver, Trip


DEFAULT_TIMELINE_WINDOW = 10
NO_TOP_DRIVER = "-"


def _driver_rollups(trips: list[Trip], drivers: list[Driver]) -> list[DriverRollup]:
    """
    Per-driver totals, in driver order.

    Drivers without trips are left out. Trips whose driver no longer
    exists count toward the overall totals but toward no driver.
    """
    rollups = []
    for driver in drivers:
        driver_trips = [t for t in trips if t.driver_id == driver.id]
        if not driver_trips:
            continue
        rollups.append(DriverRollup(
            driver_id=driver.id,
            name=driver.name,
            spent=sum(t.cost for t in driver_trips),
            trips=len(driver_trips),
            km=sum(t.total_distance for t in driver_trips),
        ))
    return rollups


def _category_totals(trips: list[Trip]) -> list[CategoryTotal]:
    """Cost per category, in first-seen order. Missing category -> Outros."""
    groups: dict[str, float] = {}
    for trip in trips:
        key = trip.category_label
        groups[key] = groups.get(key, 0.0) + trip.cost
    return [CategoryTotal(name=name, value=value) for name, value in groups.items()]


def _top_driver(rollups: list[DriverRollup]) -> str:
    # sorted() is stable: on equal km the earlier driver wins
    ranked = sorted(rollups, key=lambda r: r.km, reverse=True)
    return ranked[0].name if ranked else NO_TOP_DRIVER


def _timeline(trips: list[Trip], window: int) -> list[TimelinePoint]:
    """The latest `window` trips, oldest first."""
    chronological = list(reversed(trips))
    return [
        TimelinePoint(date=t.travel_date.strftime("%d/%m"), cost=t.cost)
        for t in chronological[-window:]
    ]


def compute_dashboard_stats(
    trips: list[Trip],
    drivers: list[Driver],
    timeline_window: Optional[int] = None,
) -> DashboardStats:
    """
    Compute every dashboard figure from the full collections.

    Args:
        trips: All trips, newest first (store order)
        drivers: All drivers
        timeline_window: How many recent trips the timeline shows

    Returns:
        A fresh DashboardStats. Calling twice with the same inputs
        returns equal values.
    """
    window = timeline_window or DEFAULT_TIMELINE_WINDOW

    total_spent = sum(t.cost for t in trips)
    total_distance = sum(t.total_distance for t in trips)
    avg_cost_per_km = total_spent / total_distance if total_distance > 0 else 0.0

    rollups = _driver_rollups(trips, drivers)

    return DashboardStats(
        total_trips=len(trips),
        total_spent=total_spent,
        total_distance=total_distance,
        avg_cost_per_km=avg_cost_per_km,
        top_driver=_top_driver(rollups),
        driver_data=rollups,
        category_data=_category_totals(trips),
        timeline_data=_timeline(trips, window),
    )
