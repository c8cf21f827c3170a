"""Service layer namespace."""

__all__ = [
    "analytics",
    "analytics_cache",
    "calendar",
    "matcher",
    "plan_sync",
    "valuation",
]
