"""Number formatting for dashboard figures."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

import pytz

from .logging_utils import CURRENCY_SYMBOL, MASKED


def round_half_up(value: float, places: int = 0) -> float:
    """Round like a spreadsheet does (0.5 away from zero), not banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def format_currency(value: float, privacy_mode: bool = False) -> str:
    """Headline figure: whole units with thousands separators, e.g. "-£1,235"."""
    if privacy_mode:
        return MASKED
    rounded = int(round_half_up(value))
    sign = "-" if rounded < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(rounded):,}"


def format_change(value: float, privacy_mode: bool = False) -> str:
    """Signed whole-unit change, e.g. "+£250" or "-£40"."""
    if privacy_mode:
        return MASKED
    rounded = int(round_half_up(value))
    sign = "+" if rounded >= 0 else "-"
    return f"{sign}{CURRENCY_SYMBOL}{abs(rounded):,}"


def format_unit_price(value: float) -> str:
    """Unit price with up to 4 decimals, trailing zeros trimmed to a minimum of 2."""
    text = f"{round_half_up(value, 4):.4f}"
    whole, fraction = text.split(".")
    fraction = fraction.rstrip("0").ljust(2, "0")
    return f"{CURRENCY_SYMBOL}{whole}.{fraction}"


def format_percent(value: float, decimals: int = 2, signed: bool = False) -> str:
    rounded = round_half_up(value, decimals)
    prefix = "+" if signed and rounded >= 0 else ""
    return f"{prefix}{rounded:.{decimals}f}%"


def format_chart_label(label: str, timezone) -> str:
    """
    Render a chart point's date in the display timezone.

    Timestamps ("2025-03-15T12:00:00Z") are converted to ``timezone``;
    naive ones are taken as UTC. Plain dates and months are shown as-is.
    """
    if "T" not in label:
        return label
    try:
        moment = datetime.fromisoformat(label.replace("Z", "+00:00"))
    except ValueError:
        return label
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(timezone).strftime("%Y-%m-%d %H:%M %Z")
