"""Net worth chart series for a selected time range."""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, List, Optional

import pytz

from ..client.cancellation import CancellationToken
from ..client.errors import RequestError
from ..client.models import ChartPoint
from ..client.resource_client import ResourceClient

logger = logging.getLogger(__name__)


class TimeRange(str, Enum):
    H24 = "24H"
    W1 = "1W"
    M1 = "1M"
    M3 = "3M"
    M6 = "6M"
    Y1 = "1Y"
    MAX = "Max"

    @classmethod
    def from_token(cls, token: str) -> "TimeRange":
        for member in cls:
            if member.value.lower() == str(token).strip().lower():
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Invalid time range: {token}. Must be one of: {valid}")


# Intraday ranges map to a number of hours of snapshots
INTRADAY_HOURS = {
    TimeRange.H24: 24,
    TimeRange.W1: 168,
}

# Ranges served by the graph-data endpoint
GRAPH_PERIODS = {TimeRange.M1, TimeRange.M3, TimeRange.M6}

# Width of the synthetic series drawn when there is no history yet
FALLBACK_SPANS = {
    TimeRange.H24: timedelta(hours=24),
    TimeRange.W1: timedelta(days=7),
    TimeRange.M1: timedelta(days=30),
    TimeRange.M3: timedelta(days=90),
    TimeRange.M6: timedelta(days=182),
    TimeRange.Y1: timedelta(days=365),
    TimeRange.MAX: timedelta(days=365),
}


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


def normalize_points(response: Any) -> List[ChartPoint]:
    """
    Convert a history response into chart points.

    Accepts a list of points or {"data": [...]}. A point's date is taken
    from "date", "month" or "timestamp" and its value from "value" or
    "total_networth"; points without any date are dropped.
    """
    if isinstance(response, dict):
        response = response.get("data")
    if not isinstance(response, list):
        return []

    points = []
    for item in response:
        if not isinstance(item, dict):
            continue
        label = item.get("date") or item.get("month") or item.get("timestamp")
        if not label:
            logger.debug(f"Dropping history point without a date: {item}")
            continue
        value = item.get("value") or item.get("total_networth") or 0
        points.append(ChartPoint(date=str(label), value=float(value)))
    return points


def fallback_points(time_range: TimeRange, current_net_worth: float, now: datetime) -> List[ChartPoint]:
    """Flat two-point line across the range at the current net worth."""
    start = now - FALLBACK_SPANS[time_range]
    return [
        ChartPoint(date=start.isoformat(), value=current_net_worth),
        ChartPoint(date=now.isoformat(), value=current_net_worth),
    ]


def resolve_points(
    time_range: TimeRange,
    current_net_worth: float,
    response: Any,
    now: Optional[datetime] = None,
) -> List[ChartPoint]:
    """
    Chart series for a range, never empty.

    Args:
        time_range: Selected range
        current_net_worth: Latest known net worth, used for the fallback
        response: Raw history response (None when the fetch failed)
        now: Current time, timezone-aware

    Returns:
        Backend points in backend order, or the two-point fallback
    """
    points = normalize_points(response)
    if points:
        return points
    return fallback_points(time_range, current_net_worth, now or _utc_now())


class TimeRangeResolver:
    """Fetches history for a time range and resolves it to a chart series."""

    def __init__(self, client: ResourceClient, clock: Optional[Callable[[], datetime]] = None):
        self.client = client
        self.clock = clock or _utc_now

    def query(self, time_range: TimeRange, cancel_token: Optional[CancellationToken] = None) -> Any:
        """Issue the history request that backs ``time_range``."""
        if time_range in INTRADAY_HOURS:
            return self.client.get_intraday_history(INTRADAY_HOURS[time_range], cancel_token=cancel_token)
        if time_range in GRAPH_PERIODS:
            return self.client.get_graph_data(time_range.value, cancel_token=cancel_token)
        if time_range == TimeRange.Y1:
            return self.client.get_net_worth_history(self.clock().year, cancel_token=cancel_token)
        return self.client.get_net_worth_history("all", cancel_token=cancel_token)

    def load(
        self,
        time_range: TimeRange,
        current_net_worth: float,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ChartPoint]:
        """
        Load the chart series for a range.

        History is not critical: a failed request is logged and the
        fallback series is returned. Cancellation still propagates.
        """
        try:
            response = self.query(time_range, cancel_token=cancel_token)
        except RequestError as e:
            logger.warning(f"Failed to load {time_range.value} history: {e}")
            response = None
        return resolve_points(time_range, current_net_worth, response, now=self.clock())
