"""
Multi-Year Cost Projections

Projects one member's healthcare costs forward year by year.

Provides functionality to:
- Inflate premiums and medical costs with separate compound rates
- Re-rate premiums along the ACA age curve as the member ages
- Switch to Medicare pricing from age 65
- Annotate milestone ages (26, 30, 40, 50, 60, 64, 65)
- Attach a p10 / p50 / p90 band that widens with the projection horizon
- Summarize the run as insights and as a pandas DataFrame
"""

import logging
import math
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from constants import (
    AGE_MILESTONES,
    BASE_OOP_BY_TIER,
    CHRONIC_CONDITION_COSTS,
    DEFAULT_STATE_BASE_RATE,
    DEFAULT_TOBACCO_SURCHARGE,
    ESTIMATED_MEDICAL_COSTS_BY_AGE,
    ESTIMATED_STATE_BASE_RATES,
    HEALTH_STATUS_MULTIPLIERS,
    MEDICARE_2024,
    MEDICARE_ELIGIBILITY_AGE,
    MEDIGAP_STATE_FACTORS,
    METAL_TIER_MULTIPLIERS,
    MIN_ADULT_AGE,
    TOBACCO_SURCHARGE_LIMITS,
)
from coverage_eval import Urgency
from coverage_eval.utils.formatting import format_currency
from subsidy_utils import get_age_factor

logger = logging.getLogger(__name__)

DEFAULT_INFLATION_FACTORS = {
    'medical_inflation': 0.055,
    'premium_inflation': 0.045,
    'general_cpi': 0.030,
}

DEFAULT_YEARS_TO_PROJECT = 5
DEFAULT_METAL_TIER = 'Silver'

# Relative spread of one year's total cost; the band widens with sqrt(years ahead)
COST_SPREAD = 0.25
Z_90 = 1.2816

# Annual cost for a chronic condition counted but not named
DEFAULT_CHRONIC_CONDITION_COST = 5000

# Medicare covers more of the medical bill than marketplace plans
MEDICARE_MEDICAL_COST_FACTOR = 0.8
MEDIGAP_AGE_INCREASE = 5

# Milestone events attached to projection years
AGE_TRANSITION_EVENTS = {
    26: {
        'type': 'age-26-off-parents',
        'description': "No longer eligible for parent's health insurance at age 26",
        'impact': 'Must obtain own coverage through employer, marketplace, or other source',
        'recommended_action': 'Research marketplace options 2-3 months before 26th birthday',
        'urgency': Urgency.HIGH,
    },
    30: {
        'type': 'age-rating-increase',
        'description': 'Premium age rating steps up at 30',
        'impact': 'Monthly premiums rise along the ACA age curve',
        'recommended_action': 'Compare plans at open enrollment before your 30th birthday',
        'urgency': Urgency.LOW,
    },
    40: {
        'type': 'age-rating-increase',
        'description': 'Premium age rating steps up at 40',
        'impact': 'Monthly premiums rise along the ACA age curve',
        'recommended_action': 'Review coverage tier and consider an HSA-eligible plan',
        'urgency': Urgency.LOW,
    },
    50: {
        'type': 'age-rating-increase',
        'description': 'Premium age rating steps up at 50',
        'impact': 'Premiums rise faster each year from 50 onward',
        'recommended_action': 'Budget for steeper annual premium increases',
        'urgency': Urgency.MODERATE,
    },
    60: {
        'type': 'early-retirement',
        'description': 'Common early-retirement age',
        'impact': 'Leaving employer coverage means buying marketplace coverage until 65',
        'recommended_action': 'Plan bridge coverage and income for subsidy eligibility',
        'urgency': Urgency.MODERATE,
    },
    64: {
        'type': 'max-aca-rating',
        'description': 'Maximum ACA premium age (3:1 ratio cap)',
        'impact': 'Premiums reach the highest rated age; Medicare is one year away',
        'recommended_action': 'Start learning Medicare enrollment windows',
        'urgency': Urgency.MODERATE,
    },
    65: {
        'type': 'medicare-eligible',
        'description': 'Eligible for Medicare at age 65',
        'impact': 'Transition from marketplace/employer to Medicare coverage',
        'recommended_action': 'Begin Medicare enrollment 3 months before 65th birthday',
        'urgency': Urgency.CRITICAL,
    },
}


# =============================================================================
# BASE COSTS
# =============================================================================

def get_state_base_rate(state: Optional[str]) -> float:
    return ESTIMATED_STATE_BASE_RATES.get((state or '').upper(), DEFAULT_STATE_BASE_RATE)


def get_tobacco_surcharge(state: Optional[str]) -> float:
    return TOBACCO_SURCHARGE_LIMITS.get((state or '').upper(), DEFAULT_TOBACCO_SURCHARGE)


def calculate_base_premium(age: int, state: str, metal_tier: str, uses_tobacco: bool = False) -> float:
    """
    Monthly premium for one member.

    premium = state base rate * age factor * metal tier multiplier,
    plus the state's tobacco surcharge for adult tobacco users.
    """
    premium = (
        get_state_base_rate(state)
        * get_age_factor(age)
        * METAL_TIER_MULTIPLIERS.get(metal_tier, 1.0)
    )
    if uses_tobacco and age >= MIN_ADULT_AGE:
        premium *= 1 + get_tobacco_surcharge(state)
    return premium


def calculate_base_medical_cost(
    age: int,
    health_status: str = 'good',
    chronic_conditions: Optional[List[str]] = None,
    chronic_condition_count: int = 0
) -> float:
    """
    Annual medical spend before inflation.

    Named conditions add their table cost; any remaining counted conditions
    add DEFAULT_CHRONIC_CONDITION_COST each.
    """
    base_cost = ESTIMATED_MEDICAL_COSTS_BY_AGE[-1][2]
    for min_age, max_age, cost in ESTIMATED_MEDICAL_COSTS_BY_AGE:
        if min_age <= age <= max_age:
            base_cost = cost
            break

    base_cost *= HEALTH_STATUS_MULTIPLIERS.get(health_status, 1.0)

    chronic_conditions = chronic_conditions or []
    for condition in chronic_conditions:
        key = condition.strip().lower().replace(' ', '-')
        base_cost += CHRONIC_CONDITION_COSTS.get(key, DEFAULT_CHRONIC_CONDITION_COST)

    unnamed = max(0, chronic_condition_count - len(chronic_conditions))
    base_cost += unnamed * DEFAULT_CHRONIC_CONDITION_COST
    return base_cost


def calculate_medicare_premium(age: int, state: Optional[str] = None) -> float:
    """Part B + Part D + Medigap Plan G, with Medigap rising $5/month per year past 65."""
    medigap = (
        MEDICARE_2024['MEDIGAP_BASE_PREMIUM'] * MEDIGAP_STATE_FACTORS.get((state or '').upper(), 1.0)
        + max(0, age - MEDICARE_ELIGIBILITY_AGE) * MEDIGAP_AGE_INCREASE
    )
    return MEDICARE_2024['PART_B_PREMIUM'] + MEDICARE_2024['PART_D_BASE_BENEFICIARY_PREMIUM'] + medigap


def calculate_projected_oop(age: int, health_status: str, metal_tier: str, inflation_factor: float) -> float:
    base_oop = BASE_OOP_BY_TIER.get(metal_tier, BASE_OOP_BY_TIER[DEFAULT_METAL_TIER])
    if age >= 50:
        base_oop *= 1.3
    elif age >= 40:
        base_oop *= 1.1
    base_oop *= HEALTH_STATUS_MULTIPLIERS.get(health_status, 1.0)
    return base_oop * inflation_factor


def check_for_transition(age: int, start_age: int) -> Optional[Dict]:
    """Milestone event reached this year, if the projection started before it."""
    if age in AGE_MILESTONES and start_age < age:
        event = dict(AGE_TRANSITION_EVENTS[age])
        event['age'] = age
        event['urgency'] = event['urgency'].value
        return event
    return None


def calculate_confidence_interval(total_cost: float, years_ahead: int) -> Dict[str, float]:
    """
    p10 / p50 / p90 around the expected total.

    Uses a log-normal band whose spread grows with sqrt(years_ahead + 1),
    so p10 <= p50 <= p90 always holds and later years are wider.
    """
    spread = COST_SPREAD * math.sqrt(years_ahead + 1)
    return {
        'p10': total_cost * math.exp(-Z_90 * spread),
        'p50': total_cost,
        'p90': total_cost * math.exp(Z_90 * spread),
    }


# =============================================================================
# PROJECTION
# =============================================================================

def generate_multi_year_projection(
    current_age: Optional[int],
    state: str,
    years_to_project: int = DEFAULT_YEARS_TO_PROJECT,
    end_age: Optional[int] = None,
    metal_tier: str = DEFAULT_METAL_TIER,
    uses_tobacco: bool = False,
    health_status: str = 'good',
    chronic_conditions: Optional[List[str]] = None,
    chronic_condition_count: int = 0,
    inflation_factors: Optional[Dict[str, float]] = None,
    current_monthly_premium: Optional[float] = None,
    start_year: Optional[int] = None,
) -> Optional[Dict]:
    """
    Project costs from the current age forward.

    Args:
        current_age: Member's current age (None skips the projection)
        state: Primary state for premium rating
        years_to_project: Years after the current one (ignored when end_age is set)
        end_age: Project through this age instead
        metal_tier: Catastrophic / Bronze / Silver / Gold / Platinum
        uses_tobacco: Apply the state tobacco surcharge
        health_status: excellent / good / fair / poor
        chronic_conditions: Named conditions
        chronic_condition_count: Total conditions when only a count is known
        inflation_factors: Overrides for medical_inflation / premium_inflation / general_cpi
        current_monthly_premium: Known premium (estimated when omitted)
        start_year: Calendar year of year 0 (defaults to this year)

    Returns:
        Dict with start_age, end_age, primary_state, metal_tier, projections,
        total_lifetime_cost, average_annual_cost, major_transitions,
        inflation_factors and insights; None when current_age is missing
    """
    if current_age is None:
        logger.warning("No primary age available; skipping multi-year projection")
        return None

    current_age = max(0, int(current_age))
    final_end_age = end_age if end_age is not None else current_age + max(0, years_to_project)
    total_years = max(0, final_end_age - current_age)
    inflation = {**DEFAULT_INFLATION_FACTORS, **(inflation_factors or {})}
    start_year = start_year or date.today().year

    if current_monthly_premium is not None:
        base_premium = current_monthly_premium
    else:
        base_premium = calculate_base_premium(current_age, state, metal_tier, uses_tobacco)
    base_medical = calculate_base_medical_cost(
        current_age, health_status, chronic_conditions, chronic_condition_count
    )
    base_age_factor = get_age_factor(current_age)

    projections = []
    transitions = []
    cumulative = 0.0

    for year in range(total_years + 1):
        age = current_age + year
        premium_inflation = (1 + inflation['premium_inflation']) ** year
        medical_inflation = (1 + inflation['medical_inflation']) ** year
        age_factor = get_age_factor(age)

        if age >= MEDICARE_ELIGIBILITY_AGE:
            monthly_premium = calculate_medicare_premium(age, state) * premium_inflation
            medical = base_medical * medical_inflation * MEDICARE_MEDICAL_COST_FACTOR
        else:
            monthly_premium = base_premium * (age_factor / base_age_factor) * premium_inflation
            medical = base_medical * medical_inflation

        transition = check_for_transition(age, current_age)
        if transition:
            transitions.append(transition)

        annual_premium = monthly_premium * 12
        oop = calculate_projected_oop(age, health_status, metal_tier, medical_inflation)
        total = annual_premium + medical + oop
        cumulative += total
        interval = calculate_confidence_interval(total, year)

        projections.append({
            'year': year,
            'age': age,
            'calendar_year': start_year + year,
            'projected_monthly_premium': round(monthly_premium, 2),
            'projected_annual_premium': round(annual_premium),
            'projected_medical_costs': round(medical),
            'projected_oop': round(oop),
            'total_annual_cost': round(total),
            'cumulative_cost': round(cumulative),
            'confidence_interval': {key: round(value) for key, value in interval.items()},
            'age_rating_factor': age_factor,
            'inflation_factor': premium_inflation,
            'transition': transition,
        })

    return {
        'start_age': current_age,
        'end_age': final_end_age,
        'primary_state': state,
        'metal_tier': metal_tier,
        'projections': projections,
        'total_lifetime_cost': round(cumulative),
        'average_annual_cost': round(cumulative / (total_years + 1)),
        'major_transitions': transitions,
        'inflation_factors': inflation,
        'insights': generate_insights(projections, transitions, inflation),
    }


def generate_insights(projections: List[Dict], transitions: List[Dict], inflation: Dict[str, float]) -> List[str]:
    insights = []
    if len(projections) < 2:
        return insights

    first, last = projections[0], projections[-1]
    if first['total_annual_cost'] > 0:
        increase_pct = (last['total_annual_cost'] - first['total_annual_cost']) / first['total_annual_cost'] * 100
        if increase_pct > 0:
            insights.append(
                f"Healthcare costs are projected to increase by {increase_pct:.0f}% over "
                f"{len(projections) - 1} years (from {format_currency(first['total_annual_cost'])} to "
                f"{format_currency(last['total_annual_cost'])} annually)"
            )

    insights.append(
        f"Total projected healthcare spending: {format_currency(last['cumulative_cost'])} "
        f"over {len(projections)} years"
    )

    if any(t['type'] == 'medicare-eligible' for t in transitions):
        insights.append(
            'Medicare eligibility at age 65 typically reduces monthly costs but requires careful '
            'planning for enrollment deadlines'
        )

    rating_increase = last['age_rating_factor'] - first['age_rating_factor']
    if rating_increase > 0.3:
        insights.append(
            f"Age-based premium rating will increase premiums by "
            f"{rating_increase / first['age_rating_factor'] * 100:.0f}% due to ACA age curve"
        )

    inflation_impact = ((1 + inflation['premium_inflation']) ** (len(projections) - 1) - 1) * 100
    insights.append(
        f"Healthcare inflation ({inflation['premium_inflation'] * 100:.1f}% annually) adds approximately "
        f"{inflation_impact:.0f}% to costs over the projection period"
    )
    return insights


# =============================================================================
# QUICK PROJECTION HELPERS
# =============================================================================

def quick_five_year_projection(current_age: int, state: str, metal_tier: str = DEFAULT_METAL_TIER) -> Optional[Dict]:
    return generate_multi_year_projection(current_age, state, years_to_project=5, metal_tier=metal_tier)


def project_to_medicare(current_age: int, state: str, metal_tier: str = DEFAULT_METAL_TIER) -> Optional[Dict]:
    """Project through age 65, or ten years for members already 65+."""
    if current_age >= MEDICARE_ELIGIBILITY_AGE:
        return generate_multi_year_projection(current_age, state, years_to_project=10, metal_tier=metal_tier)
    return generate_multi_year_projection(
        current_age, state, end_age=MEDICARE_ELIGIBILITY_AGE, metal_tier=metal_tier
    )


def calculate_yearly_breakdown(projection: Dict) -> pd.DataFrame:
    """
    Yearly cost components as a DataFrame.

    Columns: year, age, premium, medical, oop, total, cumulative, p10, p90
    """
    rows = [
        {
            'year': p['calendar_year'],
            'age': p['age'],
            'premium': p['projected_annual_premium'],
            'medical': p['projected_medical_costs'],
            'oop': p['projected_oop'],
            'total': p['total_annual_cost'],
            'cumulative': p['cumulative_cost'],
            'p10': p['confidence_interval']['p10'],
            'p90': p['confidence_interval']['p90'],
        }
        for p in projection.get('projections', [])
    ]
    return pd.DataFrame(rows, columns=['year', 'age', 'premium', 'medical', 'oop', 'total', 'cumulative', 'p10', 'p90'])
