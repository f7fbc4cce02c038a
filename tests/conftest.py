"""Pytest configuration and fixtures."""

import pytest
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Set
from unittest.mock import Mock

import pytz

from finance_dashboard.client.errors import RequestError
from finance_dashboard.client.models import (
    DashboardSummary,
    Goal,
    GoalStatus,
    ImportResult,
    IncomeRecord,
    Investment,
    MonthlyTrackerEntry,
    NetWorthSummary,
    PlatformCash,
    PlatformChange,
)
from finance_dashboard.client.resource_client import ResourceClient


def make_investment(platform: str, name: str, holdings: float, price: float, spent: float,
                    investment_id: Optional[int] = None, symbol: Optional[str] = None) -> Investment:
    return Investment(
        id=investment_id,
        platform=platform,
        name=name,
        symbol=symbol,
        holdings=holdings,
        amount_spent=spent,
        average_buy_price=spent / holdings if holdings else 0.0,
        current_price=price,
    )


@pytest.fixture
def sample_holdings() -> Dict[str, List[Investment]]:
    """Three platforms: two with investments, one holding only cash."""
    return {
        "Trading212 ISA": [
            make_investment("Trading212 ISA", "Vanguard S&P 500", 3.0, 100.0, 250.0, 3, "VUSA"),
        ],
        "Degiro": [
            make_investment("Degiro", "Apple", 10.0, 150.0, 1000.0, 1, "AAPL"),
            make_investment("Degiro", "Microsoft", 5.0, 300.0, 1200.0, 2, "MSFT"),
        ],
        "Cash": [],
    }


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 15, 12, 0, tzinfo=pytz.utc)


@pytest.fixture
def mock_client():
    """Create a mock resource client with empty responses."""
    client = Mock(spec=ResourceClient)
    client.get_holdings.return_value = {}
    client.get_platform_colors.return_value = {}
    client.get_goals.return_value = []
    client.get_intraday_history.return_value = []
    client.get_graph_data.return_value = []
    client.get_net_worth_history.return_value = []
    return client


class FakeBackend:
    """In-memory stand-in for ResourceClient used by service tests."""

    def __init__(self):
        self.holdings: Dict[str, List[Investment]] = {}
        self.cash: Dict[str, float] = {}
        self.colors: Dict[str, str] = {}
        self.goals: List[Goal] = []
        self.dashboard_summary = DashboardSummary(total_networth=0.0)
        self.net_worth_summary = NetWorthSummary(total_networth=0.0)
        self.history: Dict[str, Any] = {}
        self.monthly: List[MonthlyTrackerEntry] = []
        self.income: Dict[str, IncomeRecord] = {}
        self.failing: Set[str] = set()
        self.calls: List[tuple] = []
        self.closed = False
        self._next_id = 100

    def _check(self, name: str, *args):
        self.calls.append((name,) + args)
        if name in self.failing or f"{name}:{args[0] if args else ''}" in self.failing:
            raise RequestError(f"API Error: 500 Internal Server Error - {name} failed", status=500)

    def close(self):
        self.closed = True

    # Holdings

    def get_holdings(self, cancel_token=None):
        self._check("get_holdings")
        return {name: list(items) for name, items in self.holdings.items()}

    def get_portfolio_summary(self, cancel_token=None):
        self._check("get_portfolio_summary")
        return {"total_value": 0.0}

    def add_investment(self, investment):
        self._check("add_investment", investment.platform)
        self._next_id += 1
        investment.id = self._next_id
        self.holdings.setdefault(investment.platform, []).append(investment)
        return investment

    def update_investment(self, investment_id, updates):
        self._check("update_investment", investment_id)
        for items in self.holdings.values():
            for inv in items:
                if inv.id == investment_id:
                    for key, value in updates.items():
                        setattr(inv, key, value)
                    return inv
        raise RequestError("API Error: 404 Not Found - investment", status=404)

    def delete_investment(self, investment_id):
        self._check("delete_investment", investment_id)
        for name, items in self.holdings.items():
            self.holdings[name] = [inv for inv in items if inv.id != investment_id]
        return investment_id

    # Cash

    def get_platform_cash(self, platform, cancel_token=None):
        self._check("get_platform_cash", platform)
        return PlatformCash(platform=platform, cash_balance=self.cash.get(platform, 0.0))

    def update_platform_cash(self, platform, cash_balance):
        self._check("update_platform_cash", platform)
        self.cash[platform] = cash_balance
        return PlatformCash(platform=platform, cash_balance=cash_balance)

    # Platforms

    def get_platform_colors(self, cancel_token=None):
        self._check("get_platform_colors")
        return dict(self.colors)

    def rename_platform(self, old_name, new_name):
        self._check("rename_platform", old_name)
        self.holdings[new_name] = self.holdings.pop(old_name, [])
        return {"old_name": old_name, "new_name": new_name}

    def update_platform_color(self, platform, color):
        self._check("update_platform_color", platform)
        self.colors[platform] = color
        return {"platform": platform, "color": color}

    def import_trading212(self, api_key_id, api_secret_key):
        self._check("import_trading212")
        return ImportResult(added=2, deleted=1, total_synced=5)

    # Goals

    def get_goals(self, cancel_token=None):
        self._check("get_goals")
        return list(self.goals)

    def create_goal(self, goal):
        self._check("create_goal")
        self._next_id += 1
        goal.id = self._next_id
        self.goals.append(goal)
        return goal

    def update_goal(self, goal_id, updates):
        self._check("update_goal", goal_id)
        for goal in self.goals:
            if goal.id == goal_id:
                if "status" in updates:
                    goal.status = GoalStatus(updates["status"])
                return goal
        raise RequestError("API Error: 404 Not Found - goal", status=404)

    def delete_goal(self, goal_id):
        self._check("delete_goal", goal_id)
        self.goals = [g for g in self.goals if g.id != goal_id]
        return goal_id

    # Net worth

    def get_dashboard_summary(self, cancel_token=None):
        self._check("get_dashboard_summary")
        return self.dashboard_summary

    def get_net_worth_summary(self, cancel_token=None):
        self._check("get_net_worth_summary")
        return self.net_worth_summary

    def get_intraday_history(self, hours, cancel_token=None):
        self._check("get_intraday_history", hours)
        return self.history.get(f"intraday:{hours}", [])

    def get_graph_data(self, period, cancel_token=None):
        self._check("get_graph_data", period)
        return self.history.get(f"graph:{period}", [])

    def get_net_worth_history(self, year, cancel_token=None):
        self._check("get_net_worth_history", year)
        return self.history.get(f"history:{year}", [])

    def get_monthly_tracker(self, cancel_token=None):
        self._check("get_monthly_tracker")
        return list(self.monthly)

    def trigger_intraday_snapshot(self):
        self._check("trigger_intraday_snapshot")
        return {"status": "ok"}

    # Cashflow

    def get_income_data(self, cancel_token=None):
        self._check("get_income_data")
        return list(self.income.values())

    def update_income_data(self, year, income, investment):
        self._check("update_income_data", year)
        record = IncomeRecord(year=year, income=income, investment=investment)
        self.income[year] = record
        return record


@pytest.fixture
def fake_backend(sample_holdings) -> FakeBackend:
    """Fake backend preloaded with holdings, cash, goals and a summary."""
    backend = FakeBackend()
    backend.holdings = sample_holdings
    backend.cash = {"Trading212 ISA": 50.0, "Degiro": 0.0, "Cash": 2000.0}
    backend.colors = {"Degiro": "#123456"}
    backend.goals = [
        Goal(id=1, title="House Deposit", target_amount=20000.0, target_date=date(2026, 6, 1)),
        Goal(id=2, title="Emergency Fund", target_amount=5000.0, target_date=date(2025, 9, 1)),
        Goal(id=3, title="Old Car", target_amount=3000.0, target_date=date(2024, 1, 1),
             status=GoalStatus.COMPLETED),
    ]
    backend.dashboard_summary = DashboardSummary(
        total_networth=5000.0,
        platform_breakdown={"Degiro": 3000.0, "Cash": 2000.0},
        mom_change=250.0,
        mom_change_percent=5.26,
        ytd_change=1000.0,
        ytd_change_percent=25.0,
        platforms=[
            PlatformChange(platform="Cash", value=2000.0, month_change_amount=0.0, month_change_percent=0.0),
            PlatformChange(platform="Degiro", value=3000.0, month_change_amount=250.0, month_change_percent=9.09),
        ],
    )
    backend.net_worth_summary = NetWorthSummary(total_networth=5000.0, platform_breakdown={"Degiro": 3000.0})
    return backend
