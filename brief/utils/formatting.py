"""
Display formatting for brief output lines.

Every numeric value that ends up in a display line goes through one of these
helpers. They never raise: anything that is not a finite real number renders
as the sentinel.
"""
from __future__ import annotations

from typing import Any

from brief.utils.extract import SENTINEL, is_number


# ============================================================================
# Number Formatting
# ============================================================================

def fmt_percent(x: Any) -> str:
    """Two-decimal percentage, '+' prefix for positives only (0 -> '0.00%')."""
    if not is_number(x):
        return SENTINEL
    value = float(x)
    if value > 0:
        return f"+{value:.2f}%"
    return f"{value:.2f}%"


def fmt_fixed(x: Any, places: int = 2) -> str:
    """Fixed-point string with `places` digits, or the sentinel."""
    if not is_number(x):
        return SENTINEL
    return f"{float(x):.{max(0, int(places))}f}"


def fmt_grouped(x: Any) -> str:
    """
    Thousands-grouped number with no fixed decimal count.

    Matches en-US locale rendering: at most three fractional digits,
    trailing zeros dropped (17890.5 -> '17,890.5', 100.0 -> '100').
    """
    if not is_number(x):
        return SENTINEL
    if isinstance(x, int):
        return f"{x:,}"
    s = f"{float(x):,.3f}".rstrip("0").rstrip(".")
    return "0" if s == "-0" else s


def fmt_price(x: Any, style: str = "grouped") -> str:
    """Format a price by a symbol's price style: 'grouped' or 'fixed:<places>'."""
    kind, _, places = (style or "grouped").partition(":")
    if kind == "fixed":
        try:
            return fmt_fixed(x, int(places or 2))
        except ValueError:
            return fmt_fixed(x, 2)
    return fmt_grouped(x)


# ============================================================================
# Provider values
# ============================================================================

def fmt_value(x: Any) -> str:
    """Display text for a provider value that may arrive as a number or a string."""
    if x is None:
        return SENTINEL
    if isinstance(x, str):
        return x.strip() or SENTINEL
    return fmt_grouped(x)
