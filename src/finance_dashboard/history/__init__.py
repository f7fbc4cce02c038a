"""Net worth history and chart series."""

from .time_range import TimeRange, TimeRangeResolver, resolve_points

__all__ = ["TimeRange", "TimeRangeResolver", "resolve_points"]
