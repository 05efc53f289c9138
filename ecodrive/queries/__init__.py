"""Dashboard aggregation package."""

from ecodrive.queries.dashboard import (
    DEFAULT_TIMELINE_WINDOW,
    NO_TOP_DRIVER,
    compute_dashboard_stats,
)

__all__ = ["DEFAULT_TIMELINE_WINDOW", "NO_TOP_DRIVER", "compute_dashboard_stats"]
