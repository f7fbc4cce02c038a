"""Derivation of dashboard view models from backend resources."""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..client.models import (
    DashboardSummary,
    FetchResult,
    FetchStatus,
    Goal,
    GoalStatus,
    IncomeRecord,
    Investment,
    MonthlyTrackerEntry,
)
from ..utils.formatting import round_half_up
from .colors import platform_color

logger = logging.getLogger(__name__)

INPUT_AMOUNT_SPENT = "amount_spent"
INPUT_AVG_PRICE = "avg_price"
RECONCILE_TOLERANCE = 0.01


def _percent(part: float, whole: float) -> float:
    """part / whole as a percentage, 0 when whole is not positive."""
    if whole <= 0:
        return 0.0
    return part / whole * 100


@dataclass
class Platform:
    """A platform with its investments, cash and derived totals."""

    name: str
    investments: List[Investment]
    cash_balance: float
    color: str
    invested_value: float
    invested_cost: float
    cash_status: FetchStatus = FetchStatus.OK
    percent_of_total: float = 0.0

    @property
    def total_value(self) -> float:
        return self.invested_value + self.cash_balance

    @property
    def profit(self) -> float:
        """Investment P/L; cash is its own cost basis and contributes nothing."""
        return self.invested_value - self.invested_cost

    @property
    def profit_percent(self) -> float:
        return round_half_up(_percent(self.profit, self.invested_cost), 2)

    @property
    def is_cash_only(self) -> bool:
        return not self.investments


@dataclass
class PortfolioSummary:
    """All platforms, ordered by value, with grand totals."""

    platforms: List[Platform]
    total_value: float
    total_invested_value: float
    total_spent: float
    total_profit: float
    total_profit_percent: float
    total_cash: float

    @property
    def degraded_platforms(self) -> List[str]:
        """Platforms whose cash balance could not be fetched and shows as 0."""
        return [p.name for p in self.platforms if p.cash_status != FetchStatus.OK]


def _cash_entry(entry: Any) -> Tuple[float, FetchStatus]:
    if entry is None:
        return 0.0, FetchStatus.PENDING
    if isinstance(entry, FetchResult):
        value = entry.value_or(0.0)
        return float(value or 0.0), entry.status
    return float(entry), FetchStatus.OK


def build_portfolio(
    holdings: Mapping[str, List[Investment]],
    cash: Optional[Mapping[str, Any]] = None,
    colors: Optional[Dict[str, str]] = None,
) -> PortfolioSummary:
    """
    Combine holdings, cash balances and colors into a portfolio summary.

    Args:
        holdings: Platform name to investments; drives which platforms appear
        cash: Platform name to a FetchResult or a plain number (missing means 0)
        colors: Optional platform color overrides

    Returns:
        PortfolioSummary with platforms sorted by descending total value.
        Ties keep the order of ``holdings``.
    """
    cash = cash or {}
    platforms = []
    for name, investments in holdings.items():
        balance, status = _cash_entry(cash.get(name))
        platforms.append(Platform(
            name=name,
            investments=list(investments),
            cash_balance=balance,
            cash_status=status,
            color=platform_color(name, colors),
            invested_value=sum(inv.current_value for inv in investments),
            invested_cost=sum(inv.amount_spent for inv in investments),
        ))

    # sorted() is stable, including with reverse=True
    platforms = sorted(platforms, key=lambda p: p.total_value, reverse=True)

    total_value = sum(p.total_value for p in platforms)
    total_invested_value = sum(p.invested_value for p in platforms)
    total_spent = sum(p.invested_cost for p in platforms)
    total_profit = total_invested_value - total_spent

    for platform in platforms:
        platform.percent_of_total = _percent(platform.total_value, total_value)

    return PortfolioSummary(
        platforms=platforms,
        total_value=total_value,
        total_invested_value=total_invested_value,
        total_spent=total_spent,
        total_profit=total_profit,
        total_profit_percent=round_half_up(_percent(total_profit, total_spent), 2),
        total_cash=sum(p.cash_balance for p in platforms),
    )


def reconcile_totals(summary: PortfolioSummary, backend_summary: Optional[Dict[str, Any]]) -> Optional[float]:
    """
    Compare the locally computed total with the backend's own figure.

    Returns:
        Absolute difference, or None when the backend gave no total
    """
    if not backend_summary or backend_summary.get("total_value") is None:
        return None
    difference = abs(summary.total_value - float(backend_summary["total_value"]))
    if difference > RECONCILE_TOLERANCE:
        logger.warning(
            f"Portfolio total differs from backend summary by {difference:.2f} "
            f"({len(summary.platforms)} platforms)"
        )
    return difference


# Goals

@dataclass
class GoalProgress:
    """Progress of net worth towards a goal."""

    goal: Goal
    percent: float
    remaining: float
    days_remaining: int


def active_goals(goals: List[Goal]) -> List[Goal]:
    """Active goals, nearest target date first."""
    return sorted(
        (g for g in goals if g.status == GoalStatus.ACTIVE),
        key=lambda g: g.target_date,
    )


def select_primary_goal(goals: List[Goal]) -> Optional[Goal]:
    """
    Pick the goal to highlight.

    The first active goal flagged primary wins; otherwise the active goal
    with the earliest target date. Inactive goals are never primary.
    """
    for goal in goals:
        if goal.is_primary and goal.status == GoalStatus.ACTIVE:
            return goal
    candidates = active_goals(goals)
    return candidates[0] if candidates else None


def upcoming_goals(goals: List[Goal], limit: int = 3) -> List[Goal]:
    primary = select_primary_goal(goals)
    return [g for g in active_goals(goals) if g is not primary][:limit]


def goal_progress(goal: Goal, current_net_worth: float, today: Optional[date] = None) -> GoalProgress:
    today = today or date.today()
    percent = min(max(_percent(current_net_worth, goal.target_amount), 0.0), 100.0)
    return GoalProgress(
        goal=goal,
        percent=round_half_up(percent, 1),
        remaining=max(goal.target_amount - current_net_worth, 0.0),
        days_remaining=abs((goal.target_date - today).days),
    )


# Monthly tracker

@dataclass
class TrackerRow:
    entry: MonthlyTrackerEntry
    change: float = 0.0
    change_percent: float = 0.0


@dataclass
class TrackerYear:
    year: int
    rows: List[TrackerRow] = field(default_factory=list)


def month_over_month(current: float, previous: Optional[float]) -> Tuple[float, float]:
    """
    Change against the previous month.

    Returns:
        (change, percent). Both are 0 without a previous month; the percent
        is 0 when the previous total is 0 or negative.
    """
    if previous is None:
        return 0.0, 0.0
    change = current - previous
    return change, round_half_up(_percent(change, previous), 2)


def monthly_tracker_rows(entries: List[MonthlyTrackerEntry]) -> List[TrackerYear]:
    """
    Group snapshots into years, newest year first.

    Entries keep backend (chronological) order for the change calculation;
    rows are then returned newest month first. The first month of a year
    has no previous entry and shows no change.
    """
    grouped: "OrderedDict[int, List[MonthlyTrackerEntry]]" = OrderedDict()
    for entry in entries:
        grouped.setdefault(entry.year, []).append(entry)

    years = []
    for year in sorted(grouped, reverse=True):
        rows = []
        previous = None
        for entry in grouped[year]:
            change, percent = month_over_month(
                entry.total_networth,
                previous.total_networth if previous else None,
            )
            rows.append(TrackerRow(entry=entry, change=change, change_percent=percent))
            previous = entry
        rows.reverse()
        years.append(TrackerYear(year=year, rows=rows))
    return years


# Income

@dataclass
class IncomeRow:
    record: IncomeRecord
    percent_invested: float


@dataclass
class IncomeTotals:
    total_income: float
    total_invested: float
    percent_invested: float


def income_rows(records: List[IncomeRecord]) -> Tuple[List[IncomeRow], IncomeTotals]:
    """Rows by ascending year with "% invested", plus the totals row."""
    ordered = sorted(records, key=lambda r: r.year)
    rows = [IncomeRow(record=r, percent_invested=round_half_up(r.percent_invested, 1)) for r in ordered]
    total_income = sum(r.income for r in ordered)
    total_invested = sum(r.investment for r in ordered)
    totals = IncomeTotals(
        total_income=total_income,
        total_invested=total_invested,
        percent_invested=round_half_up(_percent(total_invested, total_income), 1),
    )
    return rows, totals


# Dashboard breakdown

@dataclass
class BreakdownRow:
    platform: str
    value: float
    percent_of_total: float
    month_change_amount: float
    month_change_percent: float
    color: str


def platform_breakdown(summary: DashboardSummary, colors: Optional[Dict[str, str]] = None) -> List[BreakdownRow]:
    """
    Per-platform rows for the home view, largest first.

    Uses the summary's per-platform change list; older backends only send
    the plain breakdown map, in which case changes are reported as 0.
    """
    if summary.platforms:
        items = [(p.platform, p.value, p.month_change_amount, p.month_change_percent) for p in summary.platforms]
    else:
        items = [(name, value, 0.0, 0.0) for name, value in summary.platform_breakdown.items()]

    rows = [
        BreakdownRow(
            platform=name,
            value=value,
            percent_of_total=_percent(value, summary.total_networth),
            month_change_amount=change,
            month_change_percent=change_percent,
            color=platform_color(name, colors),
        )
        for name, value, change, change_percent in items
    ]
    return sorted(rows, key=lambda r: r.value, reverse=True)


# Investment entry

def derive_investment_cost(holdings: float, amount: float, input_type: str = INPUT_AMOUNT_SPENT) -> Tuple[float, float]:
    """
    Fill in the cost field the user did not enter.

    Args:
        holdings: Units held
        amount: Either the total amount spent or the average buy price
        input_type: Which of the two ``amount`` is

    Returns:
        (amount_spent, average_buy_price)
    """
    if input_type == INPUT_AMOUNT_SPENT:
        average = amount / holdings if holdings > 0 else 0.0
        return amount, average
    if input_type == INPUT_AVG_PRICE:
        return holdings * amount, amount
    raise ValueError(f"Invalid input type: {input_type}. Must be '{INPUT_AMOUNT_SPENT}' or '{INPUT_AVG_PRICE}'")
