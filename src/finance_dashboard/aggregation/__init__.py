"""Aggregation of backend resources into dashboard view models."""

from .aggregator import (
    Platform,
    PortfolioSummary,
    build_portfolio,
    goal_progress,
    income_rows,
    monthly_tracker_rows,
    platform_breakdown,
    select_primary_goal,
)
from .colors import platform_color
from .coordinator import PartialFailureCoordinator

__all__ = [
    "PartialFailureCoordinator",
    "Platform",
    "PortfolioSummary",
    "build_portfolio",
    "goal_progress",
    "income_rows",
    "monthly_tracker_rows",
    "platform_breakdown",
    "platform_color",
    "select_primary_goal",
]
