"""Input validation package."""

from ecodrive.validation.validator import (
    TripFormValidator,
    get_user_friendly_summary,
    validate_new_driver,
)

__all__ = ["TripFormValidator", "get_user_friendly_summary", "validate_new_driver"]
