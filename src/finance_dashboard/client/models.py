"""Data models for backend resources and fetch outcomes."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


def _to_float(value: Any) -> float:
    """Coerce a backend number (possibly None or a string) to float."""
    if value is None or value == "":
        return 0.0
    return float(value)


def parse_date(value: Any) -> date:
    """
    Parse a backend date.

    Accepts date/datetime objects, ISO dates ("2025-03-01"), ISO datetimes
    and month precision strings ("2025-03", read as the first of the month).
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 7:
        text = f"{text}-01"
    return date.fromisoformat(text[:10])


@dataclass
class Investment:
    """A position held on a platform."""

    id: Optional[int]
    platform: str
    name: str
    holdings: float
    amount_spent: float
    average_buy_price: float
    current_price: float
    symbol: Optional[str] = None
    last_updated: Optional[str] = None

    @property
    def current_value(self) -> float:
        return self.holdings * self.current_price

    @property
    def gain(self) -> float:
        return self.current_value - self.amount_spent

    @property
    def gain_percent(self) -> float:
        """Gain as a percentage of amount spent, 0 when nothing was spent."""
        if self.amount_spent == 0:
            return 0.0
        return self.gain / self.amount_spent * 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any], platform: Optional[str] = None) -> "Investment":
        return cls(
            id=data.get("id"),
            platform=data.get("platform") or platform or "",
            name=data.get("name", ""),
            symbol=data.get("symbol") or None,
            holdings=_to_float(data.get("holdings")),
            amount_spent=_to_float(data.get("amount_spent")),
            average_buy_price=_to_float(data.get("average_buy_price")),
            current_price=_to_float(data.get("current_price")),
            last_updated=data.get("last_updated"),
        )

    def to_dict(self) -> dict:
        """Convert to the payload accepted by the holdings endpoint."""
        result = {
            "platform": self.platform,
            "name": self.name,
            "holdings": self.holdings,
            "amount_spent": self.amount_spent,
            "average_buy_price": self.average_buy_price,
            "current_price": self.current_price,
        }
        # Backend treats an absent symbol differently from an empty one
        if self.symbol:
            result["symbol"] = self.symbol
        return result


@dataclass
class PlatformCash:
    """Cash balance held on a platform."""

    platform: str
    cash_balance: float
    last_updated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], platform: Optional[str] = None) -> "PlatformCash":
        return cls(
            platform=data.get("platform") or platform or "",
            cash_balance=_to_float(data.get("cash_balance")),
            last_updated=data.get("last_updated"),
        )


@dataclass
class NetWorthSummary:
    """Total net worth with its per-platform breakdown."""

    total_networth: float
    platform_breakdown: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetWorthSummary":
        breakdown = data.get("platform_breakdown") or {}
        return cls(
            total_networth=_to_float(data.get("total_networth")),
            platform_breakdown={name: _to_float(value) for name, value in breakdown.items()},
        )


@dataclass
class PlatformChange:
    """A platform's value and its change over the month."""

    platform: str
    value: float
    month_change_amount: float = 0.0
    month_change_percent: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlatformChange":
        return cls(
            platform=data.get("platform", ""),
            value=_to_float(data.get("value")),
            month_change_amount=_to_float(data.get("month_change_amount")),
            month_change_percent=_to_float(data.get("month_change_percent")),
        )


@dataclass
class DashboardSummary:
    """Headline figures for the home view."""

    total_networth: float
    platform_breakdown: Dict[str, float] = field(default_factory=dict)
    mom_change: float = 0.0
    mom_change_percent: float = 0.0
    ytd_change: float = 0.0
    ytd_change_percent: float = 0.0
    platforms: List[PlatformChange] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DashboardSummary":
        breakdown = data.get("platform_breakdown") or {}
        return cls(
            total_networth=_to_float(data.get("total_networth")),
            platform_breakdown={name: _to_float(value) for name, value in breakdown.items()},
            mom_change=_to_float(data.get("mom_change")),
            mom_change_percent=_to_float(data.get("mom_change_percent")),
            ytd_change=_to_float(data.get("ytd_change")),
            ytd_change_percent=_to_float(data.get("ytd_change_percent")),
            platforms=[PlatformChange.from_dict(p) for p in data.get("platforms") or []],
        )


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


@dataclass
class Goal:
    """A savings target."""

    id: Optional[int]
    title: str
    target_amount: float
    target_date: date
    status: GoalStatus = GoalStatus.ACTIVE
    description: Optional[str] = None
    is_primary: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        return cls(
            id=data.get("id"),
            title=data.get("title", ""),
            description=data.get("description"),
            target_amount=_to_float(data.get("target_amount")),
            target_date=parse_date(data["target_date"]),
            status=GoalStatus(str(data.get("status") or "active").lower()),
            is_primary=bool(data.get("is_primary", False)),
        )

    def to_dict(self) -> dict:
        result = {
            "title": self.title,
            "target_amount": self.target_amount,
            "target_date": self.target_date.isoformat(),
            "status": self.status.value,
        }
        if self.description:
            result["description"] = self.description
        if self.is_primary:
            result["is_primary"] = True
        return result


@dataclass
class MonthlyTrackerEntry:
    """Net worth snapshot for one month."""

    year: int
    month: str
    total_networth: float
    platform_breakdown: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonthlyTrackerEntry":
        breakdown = data.get("platform_breakdown") or {}
        return cls(
            year=int(data["year"]),
            month=str(data.get("month", "")),
            total_networth=_to_float(data.get("total_networth")),
            platform_breakdown={name: _to_float(value) for name, value in breakdown.items()},
        )


@dataclass
class IncomeRecord:
    """Income and amount invested for one year."""

    year: str
    income: float
    investment: float

    @property
    def percent_invested(self) -> float:
        if self.income <= 0:
            return 0.0
        return self.investment / self.income * 100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IncomeRecord":
        return cls(
            year=str(data.get("year", "")),
            income=_to_float(data.get("income")),
            investment=_to_float(data.get("investment")),
        )


@dataclass
class ChartPoint:
    """A single point on the net worth chart."""

    date: str
    value: float

    def to_dict(self) -> dict:
        return {"date": self.date, "value": self.value}


@dataclass
class ImportResult:
    """Outcome of a Trading212 sync."""

    added: int = 0
    deleted: int = 0
    total_synced: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportResult":
        """
        Normalise both historical response shapes.

        Older backends answer with ``added``/``deleted``, newer ones with
        ``added_new``/``deleted_old``.
        """
        added = data.get("added") or data.get("added_new") or 0
        deleted = data.get("deleted") or data.get("deleted_old") or 0
        return cls(
            added=int(added),
            deleted=int(deleted),
            total_synced=int(data.get("total_synced") or 0),
        )


class FetchStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    PENDING = "pending"


@dataclass
class FetchResult:
    """Outcome of a non-critical fetch, keeping "failed" distinct from "zero"."""

    status: FetchStatus
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.OK

    def value_or(self, default: Any) -> Any:
        """Return the fetched value, or ``default`` when the fetch did not succeed."""
        if self.status == FetchStatus.OK:
            return self.value
        return default

    @classmethod
    def success(cls, value: Any) -> "FetchResult":
        return cls(status=FetchStatus.OK, value=value)

    @classmethod
    def failure(cls, error: BaseException, default: Any = None) -> "FetchResult":
        return cls(status=FetchStatus.FAILED, value=default, error=error)

    @classmethod
    def pending(cls, default: Any = None) -> "FetchResult":
        return cls(status=FetchStatus.PENDING, value=default)
