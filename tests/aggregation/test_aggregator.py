"""Unit tests for dashboard aggregation."""

import logging
from datetime import date

import pytest

from finance_dashboard.aggregation.aggregator import (
    INPUT_AMOUNT_SPENT,
    INPUT_AVG_PRICE,
    build_portfolio,
    derive_investment_cost,
    goal_progress,
    income_rows,
    month_over_month,
    monthly_tracker_rows,
    platform_breakdown,
    reconcile_totals,
    select_primary_goal,
    upcoming_goals,
)
from finance_dashboard.aggregation.colors import PLATFORM_COLORS
from finance_dashboard.client.errors import RequestError
from finance_dashboard.client.models import (
    DashboardSummary,
    FetchResult,
    FetchStatus,
    Goal,
    GoalStatus,
    IncomeRecord,
    Investment,
    MonthlyTrackerEntry,
)


def _investment(platform, name, holdings, price, spent):
    return Investment(id=None, platform=platform, name=name, holdings=holdings,
                      amount_spent=spent, average_buy_price=spent / holdings, current_price=price)


def _goal(goal_id, target_date, status=GoalStatus.ACTIVE, is_primary=False, target=10000.0):
    return Goal(id=goal_id, title=f"Goal {goal_id}", target_amount=target,
                target_date=target_date, status=status, is_primary=is_primary)


class TestBuildPortfolio:
    """Test platform and portfolio totals."""

    def test_cash_only_platform(self, sample_holdings):
        summary = build_portfolio(sample_holdings, cash={"Cash": 2000.0})

        cash_platform = next(p for p in summary.platforms if p.name == "Cash")
        assert cash_platform.is_cash_only
        assert cash_platform.total_value == 2000.0
        assert cash_platform.profit == 0.0
        assert cash_platform.profit_percent == 0.0

    def test_platform_totals(self, sample_holdings):
        summary = build_portfolio(sample_holdings, cash={"Degiro": 100.0})

        degiro = next(p for p in summary.platforms if p.name == "Degiro")
        assert degiro.invested_value == 3000.0
        assert degiro.invested_cost == 2200.0
        assert degiro.total_value == 3100.0
        assert degiro.profit == 800.0
        assert degiro.profit_percent == 36.36

    def test_grand_totals_are_sums(self, sample_holdings):
        cash = {"Trading212 ISA": 50.0, "Degiro": 0.0, "Cash": 2000.0}
        summary = build_portfolio(sample_holdings, cash=cash)

        assert summary.total_value == pytest.approx(sum(p.total_value for p in summary.platforms))
        assert summary.total_value == pytest.approx(5350.0)
        assert summary.total_invested_value == pytest.approx(3300.0)
        assert summary.total_spent == pytest.approx(2450.0)
        assert summary.total_profit == pytest.approx(850.0)
        assert summary.total_cash == pytest.approx(2050.0)
        assert summary.total_profit_percent == 34.69

    def test_cash_does_not_change_profit(self, sample_holdings):
        without_cash = build_portfolio(sample_holdings)
        with_cash = build_portfolio(sample_holdings, cash={"Degiro": 5000.0, "Cash": 300.0})

        assert with_cash.total_profit == without_cash.total_profit
        assert with_cash.total_profit_percent == without_cash.total_profit_percent

    def test_sorted_by_value_descending(self, sample_holdings):
        summary = build_portfolio(sample_holdings, cash={"Cash": 2000.0})

        assert [p.name for p in summary.platforms] == ["Degiro", "Cash", "Trading212 ISA"]

    def test_ties_keep_input_order(self):
        holdings = {
            "Zeta": [_investment("Zeta", "A", 1.0, 100.0, 100.0)],
            "Alpha": [_investment("Alpha", "B", 2.0, 50.0, 100.0)],
            "Mid": [],
        }
        summary = build_portfolio(holdings)

        assert [p.name for p in summary.platforms] == ["Zeta", "Alpha", "Mid"]

    def test_percent_of_total(self, sample_holdings):
        summary = build_portfolio(sample_holdings, cash={"Cash": 700.0})

        assert sum(p.percent_of_total for p in summary.platforms) == pytest.approx(100.0)
        degiro = next(p for p in summary.platforms if p.name == "Degiro")
        assert degiro.percent_of_total == pytest.approx(75.0)

    def test_empty_portfolio(self):
        summary = build_portfolio({})

        assert summary.platforms == []
        assert summary.total_value == 0.0
        assert summary.total_profit_percent == 0.0

    def test_failed_cash_is_zero_and_marked(self, sample_holdings):
        cash = {
            "Trading212 ISA": FetchResult.success(50.0),
            "Degiro": FetchResult.failure(RequestError("API Error: 500"), 0.0),
            "Cash": FetchResult.success(2000.0),
        }
        summary = build_portfolio(sample_holdings, cash=cash)

        degiro = next(p for p in summary.platforms if p.name == "Degiro")
        assert degiro.cash_balance == 0.0
        assert degiro.cash_status == FetchStatus.FAILED
        assert summary.degraded_platforms == ["Degiro"]
        assert summary.total_cash == 2050.0

    def test_missing_cash_is_pending(self, sample_holdings):
        summary = build_portfolio(sample_holdings, cash={"Degiro": 10.0, "Cash": 0.0})

        t212 = next(p for p in summary.platforms if p.name == "Trading212 ISA")
        assert t212.cash_balance == 0.0
        assert t212.cash_status == FetchStatus.PENDING

    def test_colors(self, sample_holdings):
        summary = build_portfolio(sample_holdings, colors={"Degiro": "#000000"})

        colors = {p.name: p.color for p in summary.platforms}
        assert colors["Degiro"] == "#000000"
        assert colors["Cash"] == PLATFORM_COLORS["Cash"]


class TestReconcile:

    def test_matching_totals(self, sample_holdings):
        summary = build_portfolio(sample_holdings)
        assert reconcile_totals(summary, {"total_value": summary.total_value}) == 0.0

    def test_mismatch_is_logged(self, sample_holdings, caplog):
        summary = build_portfolio(sample_holdings)

        with caplog.at_level(logging.WARNING):
            difference = reconcile_totals(summary, {"total_value": summary.total_value + 12.5})

        assert difference == pytest.approx(12.5)
        assert "differs from backend summary" in caplog.text

    def test_no_backend_total(self, sample_holdings):
        summary = build_portfolio(sample_holdings)
        assert reconcile_totals(summary, {}) is None
        assert reconcile_totals(summary, None) is None


class TestGoals:
    """Test primary goal selection and progress."""

    def test_flagged_primary_wins(self):
        goals = [_goal(1, date(2025, 6, 1)), _goal(2, date(2027, 1, 1), is_primary=True)]
        assert select_primary_goal(goals).id == 2

    def test_earliest_active_when_none_flagged(self):
        goals = [_goal(1, date(2026, 6, 1)), _goal(2, date(2025, 9, 1)), _goal(3, date(2028, 1, 1))]
        assert select_primary_goal(goals).id == 2

    def test_inactive_goals_never_primary(self):
        goals = [
            _goal(1, date(2024, 1, 1), status=GoalStatus.COMPLETED, is_primary=True),
            _goal(2, date(2024, 6, 1), status=GoalStatus.PAUSED),
            _goal(3, date(2026, 1, 1)),
        ]
        assert select_primary_goal(goals).id == 3

    def test_no_active_goals(self):
        goals = [_goal(1, date(2024, 1, 1), status=GoalStatus.COMPLETED)]
        assert select_primary_goal(goals) is None
        assert select_primary_goal([]) is None

    def test_upcoming_excludes_primary(self):
        goals = [_goal(i, date(2025, i, 1)) for i in range(1, 7)]
        upcoming = upcoming_goals(goals)

        assert [g.id for g in upcoming] == [2, 3, 4]

    def test_progress(self):
        goal = _goal(1, date(2025, 4, 14), target=20000.0)
        progress = goal_progress(goal, 5000.0, today=date(2025, 3, 15))

        assert progress.percent == 25.0
        assert progress.remaining == 15000.0
        assert progress.days_remaining == 30

    def test_progress_is_clamped(self):
        goal = _goal(1, date(2025, 4, 14), target=1000.0)

        assert goal_progress(goal, 5000.0, today=date(2025, 3, 15)).percent == 100.0
        assert goal_progress(goal, 5000.0, today=date(2025, 3, 15)).remaining == 0.0
        assert goal_progress(goal, -500.0, today=date(2025, 3, 15)).percent == 0.0

    def test_progress_with_zero_target(self):
        goal = _goal(1, date(2025, 4, 14), target=0.0)
        assert goal_progress(goal, 5000.0, today=date(2025, 3, 15)).percent == 0.0


class TestMonthlyTracker:

    def test_first_month_has_no_change(self):
        assert month_over_month(1000.0, None) == (0.0, 0.0)

    def test_change_and_percent(self):
        assert month_over_month(1100.0, 1000.0) == (100.0, 10.0)

    def test_zero_previous_month(self):
        change, percent = month_over_month(500.0, 0.0)
        assert change == 500.0
        assert percent == 0.0

    def test_rows_grouped_newest_first(self):
        entries = [
            MonthlyTrackerEntry(year=2024, month="Nov", total_networth=900.0),
            MonthlyTrackerEntry(year=2024, month="Dec", total_networth=1000.0),
            MonthlyTrackerEntry(year=2025, month="Jan", total_networth=1200.0),
            MonthlyTrackerEntry(year=2025, month="Feb", total_networth=1100.0),
        ]
        years = monthly_tracker_rows(entries)

        assert [y.year for y in years] == [2025, 2024]
        feb, jan = years[0].rows
        assert feb.entry.month == "Feb"
        assert feb.change == -100.0
        assert feb.change_percent == -8.33
        assert jan.change == 0.0
        dec = years[1].rows[0]
        assert dec.change == 100.0
        assert dec.change_percent == 11.11

    def test_empty_tracker(self):
        assert monthly_tracker_rows([]) == []


class TestIncome:

    def test_rows_and_totals(self):
        records = [
            IncomeRecord(year="2024", income=50000.0, investment=15000.0),
            IncomeRecord(year="2023", income=40000.0, investment=6000.0),
            IncomeRecord(year="2022", income=0.0, investment=0.0),
        ]
        rows, totals = income_rows(records)

        assert [r.record.year for r in rows] == ["2022", "2023", "2024"]
        assert [r.percent_invested for r in rows] == [0.0, 15.0, 30.0]
        assert totals.total_income == 90000.0
        assert totals.total_invested == 21000.0
        assert totals.percent_invested == 23.3

    def test_no_records(self):
        rows, totals = income_rows([])
        assert rows == []
        assert totals.percent_invested == 0.0


class TestPlatformBreakdown:

    def test_uses_platform_changes(self):
        summary = DashboardSummary.from_dict({
            "total_networth": 4000,
            "platforms": [
                {"platform": "Cash", "value": 1000, "month_change_amount": 0, "month_change_percent": 0},
                {"platform": "Degiro", "value": 3000, "month_change_amount": 120, "month_change_percent": 4.17},
            ],
        })
        rows = platform_breakdown(summary, colors={"Degiro": "#111111"})

        assert [r.platform for r in rows] == ["Degiro", "Cash"]
        assert rows[0].percent_of_total == 75.0
        assert rows[0].month_change_amount == 120.0
        assert rows[0].color == "#111111"

    def test_falls_back_to_breakdown_map(self):
        summary = DashboardSummary(total_networth=3000.0, platform_breakdown={"A": 1000.0, "B": 2000.0})
        rows = platform_breakdown(summary)

        assert [r.platform for r in rows] == ["B", "A"]
        assert all(r.month_change_amount == 0.0 for r in rows)

    def test_zero_net_worth(self):
        summary = DashboardSummary(total_networth=0.0, platform_breakdown={"A": 0.0})
        assert platform_breakdown(summary)[0].percent_of_total == 0.0


class TestDeriveInvestmentCost:

    def test_from_amount_spent(self):
        assert derive_investment_cost(4.0, 100.0, INPUT_AMOUNT_SPENT) == (100.0, 25.0)

    def test_from_average_price(self):
        assert derive_investment_cost(4.0, 25.0, INPUT_AVG_PRICE) == (100.0, 25.0)

    def test_zero_holdings(self):
        assert derive_investment_cost(0.0, 100.0, INPUT_AMOUNT_SPENT) == (100.0, 0.0)

    def test_invalid_input_type(self):
        with pytest.raises(ValueError, match="Invalid input type"):
            derive_investment_cost(1.0, 1.0, "units")
