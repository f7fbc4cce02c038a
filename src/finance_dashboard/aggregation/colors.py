"""Platform display colors."""

import hashlib
from typing import Dict, Optional

# Known platforms
PLATFORM_COLORS: Dict[str, str] = {
    "Degiro": "#2563eb",
    "Trading212 ISA": "#10b981",
    "EQ (GSK shares)": "#f43f5e",
    "InvestEngine ISA": "#f97316",
    "Crypto": "#a855f7",
    "HL Stocks & Shares LISA": "#0ea5e9",
    "Cash": "#14b8a6",
    "Vanguard": "#dc2626",
}

# Palette offered when recoloring a platform; unknown names hash into it
COLOR_PALETTE = [
    "#2563eb",
    "#10b981",
    "#f43f5e",
    "#f97316",
    "#a855f7",
    "#0ea5e9",
    "#14b8a6",
    "#dc2626",
    "#64748b",
    "#eab308",
]


def hashed_color(platform_name: str) -> str:
    """Pick a palette color from the name; stable across processes."""
    digest = hashlib.md5(platform_name.encode("utf-8")).hexdigest()
    return COLOR_PALETTE[int(digest, 16) % len(COLOR_PALETTE)]


def platform_color(platform_name: str, overrides: Optional[Dict[str, str]] = None) -> str:
    """
    Resolve the display color for a platform.

    An explicit override from the backend wins, then the known platform
    colors, then a color derived from the name.
    """
    if overrides and overrides.get(platform_name):
        return overrides[platform_name]
    if platform_name in PLATFORM_COLORS:
        return PLATFORM_COLORS[platform_name]
    return hashed_color(platform_name)
