"""
Formatting helpers for narrative text (reasoning, action items, insights).
"""

from datetime import date
from typing import List, Optional

from constants import DATE_FORMAT


def format_currency(value: float, include_sign: bool = False) -> str:
    """
    Format a number as whole-dollar currency.

    Args:
        value: The numeric value to format
        include_sign: If True, prefix with +/- for positive/negative values

    Returns:
        Formatted string like "$1,234" or "+$1,234"
    """
    if value is None:
        return "—"

    if include_sign:
        return f"+${value:,.0f}" if value >= 0 else f"-${abs(value):,.0f}"
    if value < 0:
        return f"-${abs(value):,.0f}"
    return f"${value:,.0f}"


def format_percentage(value: float, decimals: int = 0) -> str:
    """Format a number as a percentage."""
    if value is None:
        return "—"
    return f"{value:.{decimals}f}%"


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    """'1 child', '2 children'"""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def format_date(value: Optional[date]) -> str:
    if value is None:
        return "—"
    return value.strftime(DATE_FORMAT)


def format_states(states: List[str]) -> str:
    """Comma-separated state list, or the single state"""
    return ', '.join(states)
