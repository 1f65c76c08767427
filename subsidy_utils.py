"""
Subsidy Utilities - Single Source of Truth

Consolidates FPL and eligibility arithmetic so every calculator agrees:
- subsidy_calculator.py (premium tax credit / Medicaid)
- affordability.py (employer vs marketplace)
- edge_case_handlers.py (income volatility)
- job_change_wizard.py (COBRA vs marketplace)

Key concepts:
- SLCSP (Second Lowest Cost Silver Plan): benchmark premium for the subsidy
- FPL (Federal Poverty Level): income yardstick published per household size
- Expected contribution: share of income the household pays toward the benchmark
- Medicaid threshold: 138% FPL in expansion states, 100% elsewhere
"""

import logging
from typing import Optional

from constants import (
    ACA_AGE_CURVE,
    ACA_MAX_RATED_AGE,
    DEFAULT_INCOME_RANGE,
    EXPECTED_CONTRIBUTION_BRACKETS,
    FPL_2025_ALASKA,
    FPL_2025_ALASKA_ADDITIONAL,
    FPL_2025_CONTIGUOUS,
    FPL_2025_CONTIGUOUS_ADDITIONAL,
    FPL_2025_HAWAII,
    FPL_2025_HAWAII_ADDITIONAL,
    INCOME_RANGE_MIDPOINTS,
    MEDICAID_EXPANSION_FPL,
    MEDICAID_EXPANSION_STATES,
    MEDICAID_NON_EXPANSION_FPL,
    PTC_MAX_FPL,
    PTC_MIN_FPL,
)

logger = logging.getLogger(__name__)


# =============================================================================
# FPL CALCULATION
# =============================================================================

def get_fpl_for_household(household_size: int, state: Optional[str] = None) -> float:
    """
    Get Federal Poverty Level for a given household size.

    Uses 2025 FPL values (for 2026 plan year per ACA rules).

    Args:
        household_size: Number of people in household (1-8+)
        state: Optional state code for Alaska/Hawaii tables

    Returns:
        Annual FPL in dollars
    """
    if household_size < 1:
        household_size = 1

    if state == 'AK':
        fpl_table = FPL_2025_ALASKA
        per_additional = FPL_2025_ALASKA_ADDITIONAL
    elif state == 'HI':
        fpl_table = FPL_2025_HAWAII
        per_additional = FPL_2025_HAWAII_ADDITIONAL
    else:
        fpl_table = FPL_2025_CONTIGUOUS
        per_additional = FPL_2025_CONTIGUOUS_ADDITIONAL

    # Direct lookup up to 8, linear beyond
    if household_size <= 8:
        return float(fpl_table[household_size])
    return float(fpl_table[8] + (household_size - 8) * per_additional)


def calculate_fpl_percentage(
    annual_income: float,
    household_size: int,
    state: Optional[str] = None
) -> float:
    """
    Household income as a percentage of FPL (e.g. 200.0 for 200% FPL).

    Zero or negative income is 0% FPL.
    """
    if not annual_income or annual_income <= 0:
        return 0.0
    fpl = get_fpl_for_household(household_size, state)
    return (annual_income / fpl) * 100


# =============================================================================
# INCOME ESTIMATION
# =============================================================================

def estimate_annual_income(
    annual_income: Optional[float] = None,
    income_range: Optional[str] = None
) -> float:
    """
    Resolve household income from an exact figure or a bracket.

    Args:
        annual_income: Exact annual income (wins when provided)
        income_range: Bracket key such as '50k-75k'

    Returns:
        Annual income in dollars. Unknown brackets use the 'prefer-not-say' midpoint.
    """
    if annual_income is not None:
        return max(0.0, float(annual_income))

    if income_range in INCOME_RANGE_MIDPOINTS:
        return float(INCOME_RANGE_MIDPOINTS[income_range])

    logger.warning(f"Unknown income range '{income_range}', using default midpoint")
    return float(INCOME_RANGE_MIDPOINTS[DEFAULT_INCOME_RANGE])


# =============================================================================
# MEDICAID
# =============================================================================

def has_medicaid_expansion(state: Optional[str]) -> bool:
    """Check whether a state expanded Medicaid to 138% FPL."""
    if not state:
        return False
    return state.upper() in MEDICAID_EXPANSION_STATES


def get_medicaid_threshold(state: Optional[str]) -> int:
    """
    Medicaid income threshold (% FPL) for a state.

    Unknown state uses the expansion threshold.
    """
    if not state:
        return MEDICAID_EXPANSION_FPL
    if has_medicaid_expansion(state):
        return MEDICAID_EXPANSION_FPL
    return MEDICAID_NON_EXPANSION_FPL


def is_medicaid_eligible(fpl_percentage: float, state: Optional[str] = None) -> bool:
    return fpl_percentage < get_medicaid_threshold(state)


def is_ptc_eligible(fpl_percentage: float, state: Optional[str] = None) -> bool:
    """
    Premium tax credit band: above the Medicaid threshold, 100-400% FPL inclusive.
    """
    if is_medicaid_eligible(fpl_percentage, state):
        return False
    return PTC_MIN_FPL <= fpl_percentage <= PTC_MAX_FPL


# =============================================================================
# EXPECTED CONTRIBUTION SCHEDULE
# =============================================================================

def get_expected_contribution_percentage(fpl_percentage: float) -> Optional[float]:
    """
    Share of annual income a household is expected to pay toward the benchmark.

    Uses linear interpolation within FPL brackets. At or below 150% FPL
    the expected contribution is zero.

    Args:
        fpl_percentage: Household income as percentage of FPL

    Returns:
        Expected contribution as decimal (e.g., 0.04 for 4%),
        or None above 400% FPL (no subsidy)
    """
    if fpl_percentage > PTC_MAX_FPL:
        return None

    for lower_fpl, upper_fpl, lower_pct, upper_pct in EXPECTED_CONTRIBUTION_BRACKETS:
        if lower_fpl <= fpl_percentage <= upper_fpl:
            if upper_fpl == lower_fpl or upper_pct == lower_pct:
                return lower_pct / 100
            ratio = (fpl_percentage - lower_fpl) / (upper_fpl - lower_fpl)
            return (lower_pct + (upper_pct - lower_pct) * ratio) / 100

    # Negative FPL percentages only
    return 0.0


def calculate_monthly_subsidy(
    benchmark_premium: float,
    annual_income: float,
    fpl_percentage: float
) -> float:
    """
    Subsidy = benchmark - (annual income x expected % / 12), floored at 0.

    Returns 0 above 400% FPL.
    """
    expected_pct = get_expected_contribution_percentage(fpl_percentage)
    if expected_pct is None or benchmark_premium <= 0:
        return 0.0
    expected_monthly = max(0.0, annual_income) * expected_pct / 12
    return max(0.0, benchmark_premium - expected_monthly)


# =============================================================================
# AGE FACTOR
# =============================================================================

def get_age_factor(age: int) -> float:
    """
    Get the ACA 3:1 age curve factor for a given age.

    Children rate at 0.635; ages past 64 reuse the 64 factor.
    """
    clamped_age = max(0, min(ACA_MAX_RATED_AGE, int(age)))
    return ACA_AGE_CURVE.get(clamped_age, 1.0)
