"""
Utility functions for Coverage Evaluation module.
"""

from .formatting import (
    format_currency,
    format_percentage,
    format_date,
    format_states,
    pluralize,
)

from .calculations import (
    add_days,
    add_months,
    add_years,
    calculate_age,
    days_between,
    months_between,
)

__all__ = [
    'format_currency',
    'format_percentage',
    'format_date',
    'format_states',
    'pluralize',
    'add_days',
    'add_months',
    'add_years',
    'calculate_age',
    'days_between',
    'months_between',
]
