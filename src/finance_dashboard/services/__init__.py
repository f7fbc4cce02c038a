"""Dashboard services."""

from .dashboard_service import (
    DashboardService,
    GoalsView,
    HomeView,
    IncomeView,
    PortfolioView,
    TrackerView,
)

__all__ = [
    "DashboardService",
    "GoalsView",
    "HomeView",
    "IncomeView",
    "PortfolioView",
    "TrackerView",
]
