"""Dashboard views and mutations on top of the finance backend."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

from ..aggregation.aggregator import (
    INPUT_AMOUNT_SPENT,
    BreakdownRow,
    GoalProgress,
    IncomeRow,
    IncomeTotals,
    PortfolioSummary,
    TrackerYear,
    build_portfolio,
    derive_investment_cost,
    goal_progress,
    income_rows,
    monthly_tracker_rows,
    platform_breakdown,
    reconcile_totals,
    select_primary_goal,
    upcoming_goals,
)
from ..aggregation.coordinator import PartialFailureCoordinator
from ..client.auth import TokenProvider
from ..client.cancellation import CancellationToken
from ..client.errors import DashboardLoadError, MutationError, RequestCancelled, RequestError
from ..client.models import (
    ChartPoint,
    DashboardSummary,
    FetchResult,
    FetchStatus,
    Goal,
    GoalStatus,
    ImportResult,
    IncomeRecord,
    Investment,
    NetWorthSummary,
    PlatformCash,
    parse_date,
)
from ..client.resource_client import ResourceClient
from ..config.config import Config
from ..history.time_range import TimeRange, TimeRangeResolver
from ..utils.logging_utils import log_amount

logger = logging.getLogger(__name__)


@dataclass
class HomeView:
    summary: DashboardSummary
    breakdown: List[BreakdownRow]
    goals: List[Goal]
    primary_goal: Optional[Goal]
    upcoming_goals: List[Goal]
    primary_progress: Optional[GoalProgress]
    chart: List[ChartPoint]
    time_range: TimeRange = TimeRange.H24


@dataclass
class PortfolioView:
    summary: PortfolioSummary
    degraded: List[str] = field(default_factory=list)
    colors_status: FetchStatus = FetchStatus.OK
    reconciliation_difference: Optional[float] = None


@dataclass
class GoalsView:
    goals: List[Goal]
    current_net_worth: float
    progress: Dict[Any, GoalProgress] = field(default_factory=dict)
    net_worth_status: FetchStatus = FetchStatus.OK


@dataclass
class TrackerView:
    years: List[TrackerYear]


@dataclass
class IncomeView:
    rows: List[IncomeRow]
    totals: IncomeTotals


class DashboardService:
    """
    Loads dashboard views and applies user mutations.

    Critical fetches raise DashboardLoadError, non-critical fetches fall
    back to defaults, mutations raise MutationError and never change local
    state; reload the view afterwards to see the backend's result.
    """

    def __init__(
        self,
        client: ResourceClient,
        coordinator: Optional[PartialFailureCoordinator] = None,
        resolver: Optional[TimeRangeResolver] = None,
        privacy_mode: bool = False,
        reconcile: bool = False,
    ):
        """
        Initialize dashboard service.

        Args:
            client: ResourceClient for the backend
            coordinator: Runs concurrent fetches (created from the client if omitted)
            resolver: Chart resolver (created from the client if omitted)
            privacy_mode: Mask amounts in log output
            reconcile: Cross-check portfolio totals against the backend summary
        """
        self.client = client
        self.coordinator = coordinator or PartialFailureCoordinator(client)
        self.resolver = resolver or TimeRangeResolver(client)
        self.privacy_mode = privacy_mode
        self.reconcile = reconcile

    @classmethod
    def from_config(cls, config: Config) -> "DashboardService":
        client = ResourceClient(
            base_url=config.api_base_url,
            token_provider=TokenProvider(token=config.api_token, token_file=config.token_file),
            timeout=config.request_timeout,
            pool_size=config.max_workers,
        )
        coordinator = PartialFailureCoordinator(client, max_workers=config.max_workers)
        return cls(client, coordinator=coordinator, privacy_mode=config.privacy_mode)

    def close(self) -> None:
        self.coordinator.close()
        self.client.close()

    def __enter__(self) -> "DashboardService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require(
        self,
        view: str,
        result: FetchResult,
        message: str,
        cancel_token: Optional[CancellationToken],
    ) -> Any:
        """Unwrap a critical fetch or fail the whole view."""
        if result.ok:
            return result.value
        if result.status == FetchStatus.PENDING and cancel_token is not None and cancel_token.cancelled:
            raise RequestCancelled(f"{view} view cancelled")
        logger.error(f"Failed to load {view} view: {result.error}")
        raise DashboardLoadError(view, message) from result.error

    # Views

    def load_home(
        self,
        time_range: Union[TimeRange, str] = TimeRange.H24,
        cancel_token: Optional[CancellationToken] = None,
    ) -> HomeView:
        """Net worth headline, platform breakdown, goals and chart."""
        if not isinstance(time_range, TimeRange):
            time_range = TimeRange.from_token(time_range)

        results = self.coordinator.gather(
            {
                "summary": lambda: self.client.get_dashboard_summary(cancel_token=cancel_token),
                "goals": lambda: self.client.get_goals(cancel_token=cancel_token),
                "colors": lambda: self.client.get_platform_colors(cancel_token=cancel_token),
            },
            defaults={"goals": [], "colors": {}},
            cancel_token=cancel_token,
        )
        summary = self._require(
            "home",
            results["summary"],
            "Failed to load dashboard data. Please check if backend is running.",
            cancel_token,
        )
        goals = results["goals"].value_or([])
        colors = results["colors"].value_or({})

        primary = select_primary_goal(goals)
        chart = self.resolver.load(time_range, summary.total_networth, cancel_token=cancel_token)

        logger.info(f"Loaded home view: net worth {log_amount(summary.total_networth, self.privacy_mode)}, "
                    f"{len(goals)} goals, {len(chart)} chart points")
        return HomeView(
            summary=summary,
            breakdown=platform_breakdown(summary, colors),
            goals=goals,
            primary_goal=primary,
            upcoming_goals=upcoming_goals(goals),
            primary_progress=goal_progress(primary, summary.total_networth) if primary else None,
            chart=chart,
            time_range=time_range,
        )

    def load_chart(
        self,
        time_range: Union[TimeRange, str],
        current_net_worth: float,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ChartPoint]:
        """Chart series for a newly selected range."""
        if not isinstance(time_range, TimeRange):
            time_range = TimeRange.from_token(time_range)
        return self.resolver.load(time_range, current_net_worth, cancel_token=cancel_token)

    def load_portfolio(self, cancel_token: Optional[CancellationToken] = None) -> PortfolioView:
        """Holdings with per-platform cash and colors."""
        fetches: Dict[str, Callable[[], Any]] = {
            "holdings": lambda: self.client.get_holdings(cancel_token=cancel_token),
            "colors": lambda: self.client.get_platform_colors(cancel_token=cancel_token),
        }
        if self.reconcile:
            fetches["backend_summary"] = lambda: self.client.get_portfolio_summary(cancel_token=cancel_token)
        results = self.coordinator.gather(
            fetches,
            defaults={"colors": {}, "backend_summary": None},
            cancel_token=cancel_token,
        )
        holdings = self._require("portfolio", results["holdings"], "Failed to load investments.", cancel_token)

        cash = self.coordinator.fetch_cash_balances(list(holdings), cancel_token=cancel_token)
        summary = build_portfolio(holdings, cash, results["colors"].value_or({}))

        difference = None
        if self.reconcile:
            difference = reconcile_totals(summary, results["backend_summary"].value_or(None))

        logger.info(f"Loaded portfolio: {len(summary.platforms)} platforms, "
                    f"total {log_amount(summary.total_value, self.privacy_mode)}")
        return PortfolioView(
            summary=summary,
            degraded=summary.degraded_platforms,
            colors_status=results["colors"].status,
            reconciliation_difference=difference,
        )

    def load_goals(
        self,
        cancel_token: Optional[CancellationToken] = None,
        today: Optional[date] = None,
    ) -> GoalsView:
        """Goals with progress against current net worth."""
        results = self.coordinator.gather(
            {
                "goals": lambda: self.client.get_goals(cancel_token=cancel_token),
                "net_worth": lambda: self.client.get_net_worth_summary(cancel_token=cancel_token),
            },
            defaults={"net_worth": NetWorthSummary(total_networth=0.0)},
            cancel_token=cancel_token,
        )
        goals = self._require("goals", results["goals"], "Failed to load goals.", cancel_token)
        net_worth = results["net_worth"].value_or(NetWorthSummary(total_networth=0.0)).total_networth

        return GoalsView(
            goals=goals,
            current_net_worth=net_worth,
            progress={g.id: goal_progress(g, net_worth, today=today) for g in goals},
            net_worth_status=results["net_worth"].status,
        )

    def load_tracker(self, cancel_token: Optional[CancellationToken] = None) -> TrackerView:
        result = self.coordinator.fetch_required(
            "monthly tracker",
            lambda: self.client.get_monthly_tracker(cancel_token=cancel_token),
            cancel_token=cancel_token,
        )
        entries = self._require("tracker", result, "Failed to load tracker data.", cancel_token)
        return TrackerView(years=monthly_tracker_rows(entries))

    def load_income(self, cancel_token: Optional[CancellationToken] = None) -> IncomeView:
        result = self.coordinator.fetch_required(
            "income",
            lambda: self.client.get_income_data(cancel_token=cancel_token),
            cancel_token=cancel_token,
        )
        records = self._require("income", result, "Failed to load income data.", cancel_token)
        rows, totals = income_rows(records)
        return IncomeView(rows=rows, totals=totals)

    # Mutations

    def _mutate(self, operation: str, action: Callable[[], Any]) -> Any:
        try:
            return action()
        except RequestError as e:
            logger.error(f"Failed to {operation}: {e}")
            raise MutationError(operation, f"Failed to {operation}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            # The request went through but its response could not be decoded
            logger.error(f"Failed to {operation}: unreadable response: {e}")
            raise MutationError(operation, f"Failed to {operation}: unreadable response") from e

    def add_investment(
        self,
        platform: str,
        name: str,
        holdings: float,
        amount: float,
        input_type: str = INPUT_AMOUNT_SPENT,
        symbol: Optional[str] = None,
    ) -> Investment:
        """
        Add an investment entered by hand.

        ``amount`` is the total spent or the average price, per ``input_type``;
        the other figure is derived. The backend fills in the current price.
        """
        if not platform or not platform.strip():
            raise ValueError("Platform is required")
        if not name or not name.strip():
            raise ValueError("Investment name is required")
        amount_spent, average_price = derive_investment_cost(holdings, amount, input_type)
        investment = Investment(
            id=None,
            platform=platform.strip(),
            name=name.strip(),
            symbol=(symbol or "").strip() or None,
            holdings=holdings,
            amount_spent=amount_spent,
            average_buy_price=average_price,
            current_price=0.0,
        )
        return self._mutate("add investment", lambda: self.client.add_investment(investment))

    def update_investment(
        self,
        investment_id: int,
        holdings: float,
        average_buy_price: float,
        amount_spent: float,
    ) -> Investment:
        updates = {
            "holdings": holdings,
            "average_buy_price": average_buy_price,
            "amount_spent": amount_spent,
        }
        return self._mutate("update investment", lambda: self.client.update_investment(investment_id, updates))

    def delete_investment(self, investment_id: int) -> int:
        return self._mutate("delete investment", lambda: self.client.delete_investment(investment_id))

    def update_cash(self, platform: str, amount: float) -> PlatformCash:
        """
        Set a platform's cash balance and read it back.

        Returns:
            The balance as re-fetched from the backend after the update
        """
        self._mutate("update cash", lambda: self.client.update_platform_cash(platform, amount))
        cash = self._mutate("confirm cash update", lambda: self.client.get_platform_cash(platform))
        logger.info(f"Cash for {platform} now {log_amount(cash.cash_balance, self.privacy_mode)}")
        return cash

    def edit_platform(self, old_name: str, new_name: str, color: Optional[str] = None) -> None:
        """Rename and/or recolor a platform; the color applies to the new name."""
        new_name = (new_name or "").strip()
        if not new_name:
            raise ValueError("Platform name is required")
        if old_name != new_name:
            self._mutate("rename platform", lambda: self.client.rename_platform(old_name, new_name))
        if color:
            self._mutate("update platform color", lambda: self.client.update_platform_color(new_name, color))

    def import_trading212(self, api_key_id: str, api_secret_key: str) -> ImportResult:
        if not api_key_id or not api_secret_key:
            raise ValueError("Trading212 API key id and secret are required")
        result = self._mutate(
            "import from Trading212",
            lambda: self.client.import_trading212(api_key_id, api_secret_key),
        )
        logger.info(f"Trading212 sync: added {result.added}, deleted {result.deleted}, "
                    f"total synced {result.total_synced}")
        return result

    def create_goal(
        self,
        title: str,
        target_amount: float,
        target_date: Union[date, str, None],
        description: Optional[str] = None,
    ) -> Goal:
        """Create an active goal after checking the form is complete."""
        if not title or not title.strip():
            raise ValueError("Goal title is required")
        if not target_amount or target_amount <= 0:
            raise ValueError("Goal target amount must be positive")
        if not target_date:
            raise ValueError("Goal target date is required")
        goal = Goal(
            id=None,
            title=title.strip(),
            target_amount=float(target_amount),
            target_date=parse_date(target_date),
            status=GoalStatus.ACTIVE,
            description=description or None,
        )
        return self._mutate("create goal", lambda: self.client.create_goal(goal))

    def set_goal_status(self, goal_id: int, status: Union[GoalStatus, str]) -> Goal:
        status = GoalStatus(status)
        return self._mutate("update goal", lambda: self.client.update_goal(goal_id, {"status": status.value}))

    def toggle_goal_status(self, goal: Goal) -> Goal:
        """Pause an active goal or resume a paused one; completed goals are left alone."""
        if goal.status == GoalStatus.COMPLETED:
            logger.info(f"Goal {goal.id} is completed; not toggling")
            return goal
        new_status = GoalStatus.PAUSED if goal.status == GoalStatus.ACTIVE else GoalStatus.ACTIVE
        return self.set_goal_status(goal.id, new_status)

    def delete_goal(self, goal_id: int) -> int:
        return self._mutate("delete goal", lambda: self.client.delete_goal(goal_id))

    def save_income_records(self, records: List[IncomeRecord]) -> List[IncomeRecord]:
        """
        Save every income row, one request per year, concurrently.

        Raises:
            ValueError: If a year appears twice
            MutationError: Listing the years that failed, after all requests finish
        """
        years = [r.year for r in records]
        if len(set(years)) != len(years):
            raise ValueError("Each year can only appear once")

        results = self.coordinator.gather({
            record.year: self._income_update(record)
            for record in records
        })
        failed = [year for year, result in results.items() if not result.ok]
        if failed:
            logger.error(f"Failed to save income for: {', '.join(failed)}")
            raise MutationError("save income", f"Failed to save income for: {', '.join(failed)}")
        return [results[year].value for year in years]

    def _income_update(self, record: IncomeRecord) -> Callable[[], IncomeRecord]:
        def update() -> IncomeRecord:
            return self.client.update_income_data(record.year, record.income, record.investment)
        return update

    def refresh_snapshot(self) -> Any:
        """Ask the backend to record an intraday net worth snapshot now."""
        return self._mutate("record snapshot", self.client.trigger_intraday_snapshot)
