"""Trip economics package."""

from ecodrive.calculator.economics import DomainError, compute_trip

__all__ = ["DomainError", "compute_trip"]
