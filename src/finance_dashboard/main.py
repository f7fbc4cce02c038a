"""Main application entry point."""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from .client.cancellation import CancellationToken
from .client.errors import DashboardError
from .config import get_config
from .history.time_range import TimeRange
from .services.dashboard_service import (
    DashboardService,
    GoalsView,
    HomeView,
    IncomeView,
    PortfolioView,
    TrackerView,
)
from .utils.formatting import (
    format_change,
    format_chart_label,
    format_currency,
    format_percent,
    format_unit_price,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VIEWS = ["home", "portfolio", "goals", "tracker", "income"]


class DashboardApp:
    """Command line rendering of the dashboard views."""

    def __init__(self):
        """Initialize the dashboard app."""
        self.config = get_config()
        logging.getLogger().setLevel(self.config.log_level)
        self.service: Optional[DashboardService] = None
        self.cancel_token = CancellationToken()

        # Setup signal handlers
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Cancel in-flight fetches on shutdown signals."""
        logger.info(f"Received signal {signum}. Cancelling...")
        self.cancel_token.cancel()

    def initialize(self):
        logger.info(f"Connecting to finance backend at {self.config.api_base_url}")
        self.service = DashboardService.from_config(self.config)

    def _money(self, value: float) -> str:
        return format_currency(value, privacy_mode=self.config.privacy_mode)

    def render_home(self, view: HomeView) -> List[str]:
        summary = view.summary
        privacy = self.config.privacy_mode
        lines = [
            f"Net worth: {self._money(summary.total_networth)}",
            f"  This month: {format_change(summary.mom_change, privacy)} "
            f"({format_percent(summary.mom_change_percent, 1, signed=True)})",
            f"  Year to date: {format_change(summary.ytd_change, privacy)} "
            f"({format_percent(summary.ytd_change_percent, 1, signed=True)})",
            "",
            "Platforms:",
        ]
        for row in view.breakdown:
            lines.append(
                f"  {row.platform:<28} {self._money(row.value):>12} {format_percent(row.percent_of_total, 1):>7} "
                f"{format_change(row.month_change_amount, privacy)} ({format_percent(row.month_change_percent, 1)})"
            )
        lines.append("")
        if view.primary_goal and view.primary_progress:
            progress = view.primary_progress
            lines.append(
                f"Goal: {view.primary_goal.title} - {format_percent(progress.percent, 1)} of "
                f"{self._money(view.primary_goal.target_amount)}, {self._money(progress.remaining)} to go, "
                f"{progress.days_remaining} days"
            )
            for goal in view.upcoming_goals:
                lines.append(f"  Next: {goal.title} ({self._money(goal.target_amount)} by {goal.target_date:%b %Y})")
        else:
            lines.append("No active goals")
        lines.append("")
        lines.append(f"Chart ({view.time_range.value}):")
        for point in view.chart:
            lines.append(f"  {format_chart_label(point.date, self.config.timezone)}  {self._money(point.value)}")
        return lines

    def render_portfolio(self, view: PortfolioView) -> List[str]:
        summary = view.summary
        lines = [
            f"Portfolio value: {self._money(summary.total_value)}",
            f"  Invested: {self._money(summary.total_spent)}  "
            f"P/L: {self._money(summary.total_profit)} ({format_percent(summary.total_profit_percent, 2, signed=True)})",
        ]
        for platform in summary.platforms:
            lines.append("")
            lines.append(
                f"{platform.name} [{platform.color}] {self._money(platform.total_value)} "
                f"({format_percent(platform.percent_of_total, 1)})"
            )
            for inv in platform.investments:
                label = f"{inv.name} ({inv.symbol})" if inv.symbol else inv.name
                lines.append(
                    f"  {label:<32} {inv.holdings:>12.4f} @ {format_unit_price(inv.current_price):>12} "
                    f"{self._money(inv.current_value):>12} {format_percent(inv.gain_percent, 2, signed=True)}"
                )
            cash_note = "" if platform.name not in view.degraded else " (unavailable)"
            lines.append(f"  Cash: {self._money(platform.cash_balance)}{cash_note}")
        return lines

    def render_goals(self, view: GoalsView) -> List[str]:
        lines = [f"Current net worth: {self._money(view.current_net_worth)}"]
        for goal in view.goals:
            progress = view.progress[goal.id]
            lines.append(
                f"  [{goal.status.value}] {goal.title}: {self._money(goal.target_amount)} by "
                f"{goal.target_date:%b %Y} - {format_percent(progress.percent, 1)}"
            )
        if not view.goals:
            lines.append("  No goals yet")
        return lines

    def render_tracker(self, view: TrackerView) -> List[str]:
        lines = []
        privacy = self.config.privacy_mode
        for year in view.years:
            lines.append(str(year.year))
            for row in year.rows:
                change = format_change(row.change, privacy) if row.change else "-"
                lines.append(
                    f"  {row.entry.month:<10} {self._money(row.entry.total_networth):>12} {change:>10} "
                    f"{format_percent(row.change_percent, 2)}"
                )
        return lines

    def render_income(self, view: IncomeView) -> List[str]:
        lines = []
        for row in view.rows:
            lines.append(
                f"  {row.record.year:<6} {self._money(row.record.income):>12} {self._money(row.record.investment):>12} "
                f"{format_percent(row.percent_invested, 1)}"
            )
        totals = view.totals
        lines.append(
            f"  {'Total':<6} {self._money(totals.total_income):>12} {self._money(totals.total_invested):>12} "
            f"{format_percent(totals.percent_invested, 1)}"
        )
        return lines

    def run(self, view: str, time_range: str = TimeRange.H24.value) -> int:
        """
        Load and print one view.

        Returns:
            Process exit code
        """
        self.initialize()
        try:
            if view == "home":
                lines = self.render_home(self.service.load_home(time_range, cancel_token=self.cancel_token))
            elif view == "portfolio":
                lines = self.render_portfolio(self.service.load_portfolio(cancel_token=self.cancel_token))
            elif view == "goals":
                lines = self.render_goals(self.service.load_goals(cancel_token=self.cancel_token))
            elif view == "tracker":
                lines = self.render_tracker(self.service.load_tracker(cancel_token=self.cancel_token))
            else:
                lines = self.render_income(self.service.load_income(cancel_token=self.cancel_token))
        except DashboardError as e:
            logger.error(f"Error: {e}")
            return 1
        finally:
            self.shutdown()

        print("\n".join(lines))
        return 0

    def shutdown(self):
        if self.service:
            self.service.close()
            self.service = None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Personal finance dashboard")
    parser.add_argument("view", nargs="?", default="home", choices=VIEWS)
    parser.add_argument(
        "--range",
        dest="time_range",
        default=TimeRange.H24.value,
        choices=[r.value for r in TimeRange],
        help="Chart range for the home view",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    app = DashboardApp()
    return app.run(args.view, args.time_range)


if __name__ == "__main__":
    sys.exit(main())
