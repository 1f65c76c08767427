"""
Current Coverage Comparison

Compares a household's existing plan with the recommended coverage and
produces typed suggestions plus a short list of improvement areas.
"""

from typing import Dict, List

from constants import THRESHOLDS
from coverage_eval import CostRange, Priority
from coverage_eval.utils.formatting import format_currency, format_states
from household_schema import CurrentInsurance

# Suggestion types
COST_SAVINGS = 'cost-savings'
NETWORK_EXPANSION = 'network-expansion'
COVERAGE_IMPROVEMENT = 'coverage-improvement'
PLAN_CHANGE = 'plan-change'

NETWORK_RESTRICTED_PLAN_TYPES = ('HMO', 'EPO')
MEDICARE_ADVANTAGE = 'Medicare Advantage'


def _suggestion(suggestion_type: str, title: str, description: str, priority: Priority,
                potential_savings: float = None) -> Dict:
    suggestion = {
        'type': suggestion_type,
        'title': title,
        'description': description,
        'priority': priority.value,
    }
    if potential_savings is not None:
        suggestion['potential_savings'] = round(potential_savings, 2)
    return suggestion


def _is_medicare_recommendation(recommendation: Dict) -> bool:
    return 'Medicare' in recommendation.get('recommended_insurance', '')


def _is_medigap_recommendation(recommendation: Dict) -> bool:
    text = f"{recommendation.get('recommended_insurance', '')} {recommendation.get('plan_type', '')}"
    return 'Medigap' in text or 'Extra Coverage' in text


def summarize_current_insurance(current: CurrentInsurance) -> str:
    return (
        f"{current.carrier} {current.plan_type} - {format_currency(current.monthly_cost)}/month "
        f"(Deductible: {format_currency(current.deductible)}, "
        f"Max OOP: {format_currency(current.out_of_pocket_max)})"
    ).strip()


def generate_suggestions(
    current: CurrentInsurance,
    recommendation: Dict,
    monthly_savings: float,
    states: List[str]
) -> List[Dict]:
    """
    Build personalized suggestions for a household with existing coverage.

    Args:
        current: Current plan details
        recommendation: Base recommendation dict
        monthly_savings: Current cost minus recommended average (positive = savings)
        states: Residence states

    Returns:
        List of suggestion dicts (type, title, description, priority, potential_savings)
    """
    suggestions = []
    states_list = format_states(states)
    state_count = len(states)
    many_states = state_count > 2

    if monthly_savings > THRESHOLDS['SIGNIFICANT_SAVINGS']:
        suggestions.append(_suggestion(
            COST_SAVINGS,
            'Significant Cost Savings Opportunity',
            f"You could save approximately {format_currency(monthly_savings)}/month "
            f"({format_currency(monthly_savings * 12)}/year) by switching to our recommended plan.",
            Priority.HIGH,
            potential_savings=monthly_savings,
        ))
    elif monthly_savings > THRESHOLDS['MODERATE_SAVINGS']:
        suggestions.append(_suggestion(
            COST_SAVINGS,
            'Moderate Cost Savings Available',
            f"Switching could save you around {format_currency(monthly_savings)}/month. Consider if the "
            f"network and coverage differences are worth the savings.",
            Priority.MEDIUM,
            potential_savings=monthly_savings,
        ))

    if current.plan_type in NETWORK_RESTRICTED_PLAN_TYPES:
        if many_states:
            description = (
                f"Your current {current.plan_type} plan likely has network restrictions that don't work "
                f"well across {state_count} states ({states_list}). A national PPO would provide seamless "
                f"coverage in all locations."
            )
        else:
            description = (
                f"Your current {current.plan_type} plan likely has network restrictions that don't work "
                f"well between {states_list}. A national PPO would provide seamless coverage in both locations."
            )
        suggestions.append(_suggestion(
            NETWORK_EXPANSION, 'Limited Network Coverage Across States', description, Priority.HIGH
        ))

    if _is_medicare_recommendation(recommendation) and 'Medicare' not in current.plan_type:
        suggestions.append(_suggestion(
            COVERAGE_IMPROVEMENT,
            'Medicare Eligibility Available',
            'You appear to be Medicare-eligible. Medicare with Medigap provides nationwide coverage with no '
            'network restrictions, which is ideal for multi-state living.',
            Priority.HIGH,
        ))

    if current.plan_type == MEDICARE_ADVANTAGE and _is_medigap_recommendation(recommendation):
        where = f'across {state_count} states' if many_states else f'in {states_list}'
        suggestions.append(_suggestion(
            PLAN_CHANGE,
            'Consider Switching from Medicare Advantage to Medigap',
            f"Medicare Advantage plans are typically network-based and may require different plans {where}. "
            f"Original Medicare with Medigap works seamlessly nationwide.",
            Priority.HIGH,
        ))

    if current.deductible > THRESHOLDS['HIGH_DEDUCTIBLE']:
        where = f'across {state_count} states' if many_states else 'between two states'
        suggestions.append(_suggestion(
            COVERAGE_IMPROVEMENT,
            'High Deductible Risk',
            f"Your current deductible of {format_currency(current.deductible)} is quite high. Consider if a "
            f"plan with a lower deductible might provide better protection, especially when splitting time {where}.",
            Priority.MEDIUM,
        ))

    if current.out_of_pocket_max > THRESHOLDS['HIGH_OUT_OF_POCKET_MAX']:
        suggestions.append(_suggestion(
            COVERAGE_IMPROVEMENT,
            'High Out-of-Pocket Maximum',
            f"Your current out-of-pocket maximum of {format_currency(current.out_of_pocket_max)} could expose "
            f"you to significant financial risk. Look for plans with lower maximums for better protection.",
            Priority.MEDIUM,
        ))

    if monthly_savings < THRESHOLDS['COST_INCREASE_WARNING']:
        where = f'across all {state_count} of your states' if many_states else f'in both {states_list}'
        suggestions.append(_suggestion(
            COST_SAVINGS,
            'Your Current Plan is More Affordable',
            f"Your current plan costs less than our recommendation. However, verify it provides adequate "
            f"coverage {where} before keeping it.",
            Priority.LOW,
        ))

    return suggestions


def identify_improvement_areas(current: CurrentInsurance, recommendation: Dict, monthly_savings: float) -> List[str]:
    areas = []
    if current.plan_type in NETWORK_RESTRICTED_PLAN_TYPES:
        areas.append('Multi-state network coverage')
    if monthly_savings > THRESHOLDS['MODERATE_SAVINGS']:
        areas.append('Monthly premium costs')
    if current.deductible > THRESHOLDS['HIGH_DEDUCTIBLE']:
        areas.append('Lower deductible options')
    if current.out_of_pocket_max > THRESHOLDS['HIGH_OUT_OF_POCKET_MAX']:
        areas.append('Out-of-pocket maximum protection')
    if _is_medicare_recommendation(recommendation) and 'Medicare' not in current.plan_type:
        areas.append('Medicare eligibility utilization')
    if current.plan_type == MEDICARE_ADVANTAGE and _is_medigap_recommendation(recommendation):
        areas.append('Plan flexibility for multi-state living')
    return areas


def compare_current_coverage(recommendation: Dict, current: CurrentInsurance, states: List[str]) -> Dict:
    """
    Compare the household's current plan with the recommendation.

    Returns:
        Dict with current_insurance_summary, cost_comparison, suggestions
        and improvement_areas, ready to merge into the recommendation
    """
    recommended = CostRange.from_dict(recommendation['estimated_monthly_cost'])
    monthly_savings = current.monthly_cost - recommended.average
    annual_savings = monthly_savings * 12

    return {
        'current_insurance_summary': summarize_current_insurance(current),
        'cost_comparison': {
            'current': current.monthly_cost,
            'recommended': recommended.to_dict(),
            'monthly_savings': round(monthly_savings, 2) if monthly_savings > 0 else None,
            'annual_savings': round(annual_savings, 2) if annual_savings > 0 else None,
        },
        'suggestions': generate_suggestions(current, recommendation, monthly_savings, states),
        'improvement_areas': identify_improvement_areas(current, recommendation, monthly_savings),
    }
