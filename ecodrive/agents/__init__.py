"""AI Agents package."""

from ecodrive.agents.location_agent import (
    LocationAgent,
    LocationError,
    LookupUnavailable,
    RouteNotFound,
)
from ecodrive.agents.parsing import extract_json_object, parse_distance_km

__all__ = [
    "LocationAgent",
    "LocationError",
    "LookupUnavailable",
    "RouteNotFound",
    "extract_json_object",
    "parse_distance_km",
]
