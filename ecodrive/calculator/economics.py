"""
Trip Economics

DESIGN DECISION: Cost is computed exactly once, when a trip is recorded,
and stored with the trip. This module is the only place that formula lives.

    total_distance = distance * (2 if round trip else 1)
    cost           = total_distance / km_per_liter * price_per_liter

Pure functions only - no I/O, no state.
"""

import math

from ecodrive.models.trip import TripCost


class DomainError(ArithmeticError):
    """Inputs that would make the cost meaningless (e.g. zero consumption)."""
    pass


def _require_finite(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise DomainError(f"{name} must be a finite number, got {value!r}")


def compute_trip(
    distance_km: float,
    round_trip: bool,
    avg_consumption: float,
    fuel_price: float,
) -> TripCost:
    """
    Compute the total distance and fuel cost of a trip.

    Args:
        distance_km: One-way distance in km (>= 0)
        round_trip: Whether the trip goes there and back
        avg_consumption: Driver's km per liter (> 0)
        fuel_price: Price per liter (>= 0)

    Raises:
        DomainError: If any input is outside its domain. Never returns
            inf or nan.
    """
    for name, value in (
        ("distance_km", distance_km),
        ("avg_consumption", avg_consumption),
        ("fuel_price", fuel_price),
    ):
        _require_finite(name, value)

    if avg_consumption <= 0:
        raise DomainError(
            f"avg_consumption must be positive, got {avg_consumption}"
        )
    if distance_km < 0:
        raise DomainError(f"distance_km cannot be negative, got {distance_km}")
    if fuel_price < 0:
        raise DomainError(f"fuel_price cannot be negative, got {fuel_price}")

    total_distance = distance_km * (2 if round_trip else 1)
    cost = total_distance / avg_consumption * fuel_price

    return TripCost(total_distance=total_distance, cost=cost)
