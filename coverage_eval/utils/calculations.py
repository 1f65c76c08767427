"""
Calculation helpers for Coverage Evaluation.

Date arithmetic used by the enrollment-window, age-transition and
wizard calculators.
"""

import calendar
from datetime import date, timedelta
from typing import Optional


# =============================================================================
# DATE ARITHMETIC
# =============================================================================

def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def add_months(value: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the target month's length.

    Example:
        add_months(date(2025, 1, 31), 1) -> date(2025, 2, 28)
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_years(value: date, years: int) -> date:
    """Add whole years; Feb 29 becomes Feb 28 in non-leap years."""
    return add_months(value, years * 12)


def first_of_month(value: date) -> date:
    return value.replace(day=1)


def first_of_next_month(value: date) -> date:
    return add_months(first_of_month(value), 1)


def end_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end is earlier)."""
    return (end - start).days


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end (never negative)."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return max(0, months)


def calculate_age(birth_date: date, on_date: Optional[date] = None) -> int:
    """
    Age in whole years on a given date.

    Birthdays later in the calendar year than on_date have not happened yet.
    """
    on_date = on_date or date.today()
    age = on_date.year - birth_date.year
    if (on_date.month, on_date.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age

