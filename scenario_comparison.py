"""
Scenario Comparison

Runs the full analysis for two household scenarios side by side and
explains how they differ in cost and coverage.

Typical use:
    base = HouseholdProfile.from_dict(payload)
    common = generate_common_scenarios(base)
    result = await compare_scenarios(common['baseline'], common['alternatives'][0])
"""

import asyncio
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Optional

from coverage_eval import CostRange
from coverage_eval.services.analysis_service import analyze_insurance
from coverage_eval.utils.formatting import format_currency, format_states
from household_schema import HealthProfile, HouseholdProfile, coerce_profile, normalize_keys

logger = logging.getLogger(__name__)

# Average monthly cost differences under this are a tie
COST_TIE_DOLLARS = 10
# Coverage score differences under this are a tie
COVERAGE_TIE_POINTS = 5
AGE_DIFFERENCE_YEARS = 1

LOWER_INCOME_RANGE = '50k-75k'
EMPLOYER_CONTRIBUTION_SCENARIO = 300


@dataclass
class Scenario:
    """A named household variant to analyze."""
    id: str
    name: str
    description: str
    profile: HouseholdProfile


# =============================================================================
# VALUE LABELS
# =============================================================================

BUDGET_LABELS = {
    'less-500': 'Under $500/month',
    '500-1000': '$500-1,000/month',
    '1000-2000': '$1,000-2,000/month',
    '2000-3500': '$2,000-3,500/month',
    '3500-plus': 'Over $3,500/month',
    'not-sure': 'Not sure',
}

INCOME_LABELS = {
    'under-30k': 'Under $30,000',
    '30k-50k': '$30,000-$50,000',
    '50k-75k': '$50,000-$75,000',
    '75k-100k': '$75,000-$100,000',
    '100k-150k': '$100,000-$150,000',
    '150k-plus': 'Over $150,000',
    'prefer-not-say': 'Prefer not to say',
}

DOCTOR_VISIT_LABELS = {'0-2': '0-2 visits', '3-5': '3-5 visits', '6-10': '6-10 visits', '10+': '10+ visits'}
SPECIALIST_VISIT_LABELS = {'none': 'None', '1-3': '1-3 visits', 'monthly-or-more': 'Monthly or more'}
ER_VISIT_LABELS = {'none': 'None', '1-2': '1-2 visits', '3+': '3+ visits'}
MEDICATION_COST_LABELS = {
    'under-50': 'Under $50',
    '50-200': '$50-$200',
    '200-500': '$200-$500',
    '500-1000': '$500-$1,000',
    'over-1000': 'Over $1,000',
}
FINANCIAL_PRIORITY_LABELS = {
    'lowest-premium': 'Lowest Premium',
    'lowest-deductible': 'Lowest Deductible',
    'lowest-oop-max': 'Lowest Out-of-Pocket Max',
    'balanced': 'Balanced',
}


def _label_from(mapping: Dict[str, str]) -> Callable[[Any], str]:
    def label(value: Any) -> str:
        if value is None or value == '':
            return 'Not specified'
        return mapping.get(str(value), str(value))
    return label


def _yes_no(value: Any) -> str:
    return 'Yes' if value is True else 'No'


def _currency(value: Any) -> str:
    try:
        return format_currency(float(value))
    except (TypeError, ValueError):
        return str(value)


# (attribute, label, formatter, lives on HealthProfile)
COMPARED_FIELDS = [
    ('num_adults', 'Number of Adults', None, False),
    ('num_children', 'Number of Children', None, False),
    ('budget', 'Budget', _label_from(BUDGET_LABELS), False),
    ('income_range', 'Income Range', _label_from(INCOME_LABELS), False),
    ('annual_income', 'Annual Income', _currency, False),
    ('has_employer_insurance', 'Employer Insurance', _yes_no, False),
    ('employer_contribution', 'Employer Contribution', _currency, False),
    ('has_chronic_conditions', 'Chronic Conditions', _yes_no, True),
    ('doctor_visits_per_year', 'Doctor Visits', _label_from(DOCTOR_VISIT_LABELS), True),
    ('specialist_visits_per_year', 'Specialist Visits', _label_from(SPECIALIST_VISIT_LABELS), True),
    ('er_visits_per_year', 'ER Visits', _label_from(ER_VISIT_LABELS), True),
    ('planned_procedures', 'Planned Procedures', _yes_no, True),
    ('takes_specialty_meds', 'Specialty Medications', _yes_no, True),
    ('monthly_medication_cost', 'Monthly Medication Cost', _label_from(MEDICATION_COST_LABELS), True),
    ('financial_priority', 'Financial Priority', _label_from(FINANCIAL_PRIORITY_LABELS), True),
]

NUMERIC_FIELDS = {'num_adults', 'num_children', 'employer_contribution', 'annual_income'}


# =============================================================================
# DIFFERENCES
# =============================================================================

def determine_change_type(field_name: str, value1: Any, value2: Any) -> str:
    if field_name in NUMERIC_FIELDS and value1 is not None and value2 is not None:
        if value2 > value1:
            return 'increase'
        if value2 < value1:
            return 'decrease'
    return 'change'


def _average(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def find_differences(profile1: HouseholdProfile, profile2: HouseholdProfile) -> List[Dict]:
    """
    Fields that differ between two households, with display values.

    Returns:
        List of dicts with field, label, scenario1_value, scenario2_value
        and change_type ('increase', 'decrease' or 'change')
    """
    differences = []

    for name, label, formatter, on_health in COMPARED_FIELDS:
        source1 = profile1.health if on_health else profile1
        source2 = profile2.health if on_health else profile2
        value1 = getattr(source1, name)
        value2 = getattr(source2, name)
        if value1 == value2:
            continue

        differences.append({
            'field': name,
            'label': label,
            'scenario1_value': formatter(value1) if formatter else value1,
            'scenario2_value': formatter(value2) if formatter else value2,
            'change_type': determine_change_type(name, value1, value2),
        })

    avg_age1 = _average(profile1.adult_ages)
    avg_age2 = _average(profile2.adult_ages)
    if abs(avg_age1 - avg_age2) > AGE_DIFFERENCE_YEARS:
        differences.append({
            'field': 'adult_ages',
            'label': 'Average Age',
            'scenario1_value': round(avg_age1),
            'scenario2_value': round(avg_age2),
            'change_type': 'increase' if avg_age2 > avg_age1 else 'decrease',
        })

    states1 = format_states(profile1.states)
    states2 = format_states(profile2.states)
    if states1 != states2:
        differences.append({
            'field': 'residences',
            'label': 'States',
            'scenario1_value': states1 or 'Not specified',
            'scenario2_value': states2 or 'Not specified',
            'change_type': 'change',
        })

    return differences


# =============================================================================
# COST AND COVERAGE
# =============================================================================

def calculate_cost_comparison(rec1: Dict, rec2: Dict) -> Dict:
    """
    Monthly and annual cost deltas (scenario 2 minus scenario 1).

    cheaper_scenario is '1', '2' or 'equal'.
    """
    cost1 = CostRange.from_dict(rec1['estimated_monthly_cost'])
    cost2 = CostRange.from_dict(rec2['estimated_monthly_cost'])

    low_diff = cost2.low - cost1.low
    high_diff = cost2.high - cost1.high
    avg_diff = cost2.average - cost1.average

    if abs(avg_diff) < COST_TIE_DOLLARS:
        cheaper = 'equal'
    else:
        cheaper = '1' if avg_diff > 0 else '2'

    return {
        'monthly_premium_diff': {
            'low': low_diff,
            'high': high_diff,
            'average_diff': round(avg_diff),
        },
        'annual_cost_diff': {
            'low': low_diff * 12,
            'high': high_diff * 12,
        },
        'cheaper_scenario': cheaper,
        'potential_annual_savings': round(abs(avg_diff) * 12),
    }


def calculate_risk_comparison(rec1: Dict, rec2: Dict, differences: List[Dict]) -> Dict:
    score_diff = rec2['coverage_gap_score'] - rec1['coverage_gap_score']
    if abs(score_diff) < COVERAGE_TIE_POINTS:
        better = 'equal'
    else:
        better = '2' if score_diff > 0 else '1'

    changed = {d['field']: d for d in differences}
    notes = []
    chronic = changed.get('has_chronic_conditions')
    if chronic and chronic['scenario2_value'] == 'Yes':
        notes.append('Chronic conditions increase healthcare utilization risk')
    if 'er_visits_per_year' in changed:
        notes.append('ER visit frequency significantly impacts out-of-pocket costs')
    if 'takes_specialty_meds' in changed:
        notes.append('Specialty medications often drive high annual healthcare costs')
    if 'adult_ages' in changed:
        notes.append('Age affects premium costs due to ACA age-rating curves')

    return {
        'coverage_score_diff': score_diff,
        'better_coverage_scenario': better,
        'risk_notes': notes,
    }


def _scenario_name(which: str, scenario1: Scenario, scenario2: Scenario) -> str:
    return scenario1.name if which == '1' else scenario2.name


def generate_insights(differences: List[Dict], cost: Dict, risk: Dict,
                      scenario1: Scenario, scenario2: Scenario) -> List[str]:
    insights = []

    if cost['cheaper_scenario'] != 'equal':
        insights.append(
            f"{_scenario_name(cost['cheaper_scenario'], scenario1, scenario2)} could save you approximately "
            f"{format_currency(cost['potential_annual_savings'])} per year"
        )

    if risk['better_coverage_scenario'] != 'equal':
        insights.append(
            f"{_scenario_name(risk['better_coverage_scenario'], scenario1, scenario2)} provides "
            f"{abs(risk['coverage_score_diff'])} points higher coverage score"
        )

    changed = {d['field'] for d in differences}
    if changed & {'income_range', 'annual_income'}:
        insights.append('Income level affects subsidy eligibility and out-of-pocket costs')
    if 'has_employer_insurance' in changed:
        insights.append('Employer insurance can significantly reduce premium costs')

    insights.extend(risk['risk_notes'])
    return insights


def generate_recommendation(cost: Dict, risk: Dict, scenario1: Scenario, scenario2: Scenario) -> str:
    """Cost and coverage each vote +1 / -1 for scenario 1."""
    votes = {'1': 1, '2': -1, 'equal': 0}
    total = votes[cost['cheaper_scenario']] + votes[risk['better_coverage_scenario']]

    if total > 0:
        advantage = 'lower costs' if cost['cheaper_scenario'] == '1' else 'better value'
        return (
            f'Based on both cost and coverage analysis, "{scenario1.name}" appears to be the better option. '
            f'It offers {advantage} for your situation.'
        )
    if total < 0:
        advantage = 'lower costs' if cost['cheaper_scenario'] == '2' else 'better value'
        return (
            f'Based on both cost and coverage analysis, "{scenario2.name}" appears to be the better option. '
            f'It offers {advantage} for your situation.'
        )
    if cost['cheaper_scenario'] != 'equal':
        cheaper = _scenario_name(cost['cheaper_scenario'], scenario1, scenario2)
        return (
            f'Both scenarios offer similar value, but "{cheaper}" has lower costs. '
            f'Consider your risk tolerance when choosing.'
        )
    return (
        'Both scenarios offer similar costs and coverage. Your choice should depend on personal '
        'preferences and specific plan features.'
    )


async def compare_scenarios(scenario1: Scenario, scenario2: Scenario, **analysis_kwargs) -> Dict:
    """
    Analyze two scenarios concurrently and compare them.

    Args:
        scenario1: First scenario
        scenario2: Second scenario
        **analysis_kwargs: Passed through to analyze_insurance (benchmark_source, config, rng)

    Returns:
        Dict with scenario1, scenario2 (each with its recommendation),
        differences, cost_comparison, risk_comparison, insights and
        recommendation
    """
    rec1, rec2 = await asyncio.gather(
        analyze_insurance(scenario1.profile, **analysis_kwargs),
        analyze_insurance(scenario2.profile, **analysis_kwargs),
    )

    differences = find_differences(scenario1.profile, scenario2.profile)
    cost = calculate_cost_comparison(rec1, rec2)
    risk = calculate_risk_comparison(rec1, rec2, differences)

    return {
        'scenario1': {'id': scenario1.id, 'name': scenario1.name, 'recommendation': rec1},
        'scenario2': {'id': scenario2.id, 'name': scenario2.name, 'recommendation': rec2},
        'differences': differences,
        'cost_comparison': cost,
        'risk_comparison': risk,
        'insights': generate_insights(differences, cost, risk, scenario1, scenario2),
        'recommendation': generate_recommendation(cost, risk, scenario1, scenario2),
    }


# =============================================================================
# SCENARIO BUILDERS
# =============================================================================

HEALTH_FIELDS = {f.name for f in fields(HealthProfile)}
PROFILE_FIELDS = {f.name for f in fields(HouseholdProfile)}


def apply_modifications(profile: HouseholdProfile, modifications: Optional[Dict[str, Any]] = None) -> HouseholdProfile:
    """
    Copy of a profile with fields overridden.

    Keys may be camelCase or snake_case; health fields are routed to the
    nested health profile.
    """
    modifications = normalize_keys(modifications)
    health_changes = {k: v for k, v in modifications.items() if k in HEALTH_FIELDS}
    profile_changes = {k: v for k, v in modifications.items() if k in PROFILE_FIELDS and k != 'health'}

    unknown = set(modifications) - HEALTH_FIELDS - PROFILE_FIELDS
    if unknown:
        logger.warning(f"Ignoring unknown scenario fields: {sorted(unknown)}")

    if health_changes:
        profile_changes['health'] = replace(profile.health, **health_changes)
    return replace(profile, **profile_changes)


def create_scenario(scenario_id: str, name: str, description: str, base: Any,
                    modifications: Optional[Dict[str, Any]] = None) -> Scenario:
    return Scenario(
        id=scenario_id,
        name=name,
        description=description,
        profile=apply_modifications(coerce_profile(base), modifications),
    )


def generate_common_scenarios(base: Any) -> Dict:
    """
    Baseline plus the what-ifs that apply to this household.

    Returns:
        Dict with baseline (Scenario) and alternatives (list of Scenario)
    """
    profile = coerce_profile(base)
    baseline = create_scenario(
        'baseline', 'Current Situation', 'Your current healthcare needs and circumstances', profile
    )

    alternatives = [create_scenario(
        'high-utilization',
        'Higher Healthcare Needs',
        'What if you had more doctor visits and healthcare needs?',
        profile,
        {
            'doctor_visits_per_year': '6-10',
            'specialist_visits_per_year': '1-3',
            'has_chronic_conditions': True,
        },
    )]

    if profile.income_range != 'under-30k' and profile.income_range != LOWER_INCOME_RANGE:
        alternatives.append(create_scenario(
            'lower-income',
            'Lower Income',
            'How would costs change with lower income (potentially more subsidies)?',
            profile,
            {'income_range': LOWER_INCOME_RANGE, 'annual_income': None},
        ))

    if not profile.has_employer_insurance:
        alternatives.append(create_scenario(
            'with-employer',
            'With Employer Insurance',
            'What if you had access to employer-sponsored coverage?',
            profile,
            {'has_employer_insurance': True, 'employer_contribution': EMPLOYER_CONTRIBUTION_SCENARIO},
        ))

    if not profile.health.planned_procedures:
        alternatives.append(create_scenario(
            'planned-procedure',
            'Planned Major Procedure',
            'What if you needed a major surgery or procedure?',
            profile,
            {'planned_procedures': True, 'er_visits_per_year': '1-2'},
        ))

    return {'baseline': baseline, 'alternatives': alternatives}
