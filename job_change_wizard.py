"""
Job Change Wizard

Compares COBRA continuation, a marketplace plan and short-term coverage
for someone leaving a job, with deadlines and a recommendation.

Key dates:
- COBRA election: 60 days from separation (coverage is retroactive)
- Marketplace SEP: 60 days from separation, coverage starts the 1st of next month
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from cobra_helper import COBRA_MAX_MONTHS, calculate_cobra_premium
from coverage_eval.utils.calculations import add_days, add_months, days_between, first_of_next_month
from coverage_eval.utils.formatting import format_currency
from state_cost_index import StateCostIndex, get_state_cost_factor
from subsidy_utils import (
    calculate_fpl_percentage,
    calculate_monthly_subsidy,
    get_age_factor,
    get_fpl_for_household,
)

logger = logging.getLogger(__name__)

SEP_WINDOW_DAYS = 60
COBRA_ELECTION_DAYS = 60
URGENT_DEADLINE_DAYS = 14
DEFAULT_COVERAGE_MONTHS = 12
SHORT_TERM_ELIGIBLE_MONTHS = 3

# Benchmark premium for a 40-year-old before age and location rating
MARKETPLACE_BASE_PREMIUM = 450
DEPENDENT_DISCOUNT = 0.7
CHILD_RATE_FACTOR = 0.635

# Marketplace must cost under this share of COBRA to win on price alone
MARKETPLACE_PRICE_RATIO = 0.8
MEANINGFUL_MONTHLY_SAVINGS = 200

ESTIMATED_ANNUAL_OOP = {
    'low': {'cobra': 500, 'marketplace': 800},
    'medium': {'cobra': 2500, 'marketplace': 3500},
    'high': {'cobra': 5000, 'marketplace': 6500},
}

SHORT_TERM_PREMIUM_BY_AGE = [(30, 100), (40, 130), (50, 180), (60, 250)]
SHORT_TERM_PREMIUM_60_PLUS = 350
SHORT_TERM_OOP_RISK = 5000
SHORT_TERM_RESTRICTED_STATES = {'CA', 'NY', 'NJ', 'MA', 'VT', 'RI'}


@dataclass
class JobChangeScenario:
    """Inputs for the job change wizard."""
    separation_date: date
    current_premium: float
    cobra_premium: float
    household_income: float
    household_size: int
    state: str
    age: int
    expected_utilization: str = 'medium'
    dependent_ages: List[int] = field(default_factory=list)
    has_new_job_offer: bool = False
    new_job_start_date: Optional[date] = None
    new_job_waiting_period: int = 0
    has_ongoing_prescriptions: bool = False
    wants_to_keep_providers: bool = False


# =============================================================================
# PREMIUM ESTIMATES
# =============================================================================

def estimate_marketplace_premium(
    age: int,
    state: str,
    dependent_ages: Optional[List[int]] = None,
    cost_index: Optional[StateCostIndex] = None
) -> float:
    """
    Unsubsidized monthly marketplace premium for the applicant and dependents.

    The applicant is rated on the ACA age curve; dependents get a flat
    child or adult factor with a dependent discount.
    """
    location = get_state_cost_factor(state, cost_index)
    total = MARKETPLACE_BASE_PREMIUM * get_age_factor(age) * location

    for dependent_age in dependent_ages or []:
        if dependent_age < 21:
            factor = CHILD_RATE_FACTOR
        else:
            factor = 0.8 if dependent_age < 40 else 1.0
        total += MARKETPLACE_BASE_PREMIUM * factor * location * DEPENDENT_DISCOUNT

    return total


def estimate_short_term_premium(age: int, state: str) -> float:
    """Short-term plan premium; 0 where the state restricts these plans."""
    if state and state.upper() in SHORT_TERM_RESTRICTED_STATES:
        return 0.0
    for max_age, premium in SHORT_TERM_PREMIUM_BY_AGE:
        if age < max_age:
            return float(premium)
    return float(SHORT_TERM_PREMIUM_60_PLUS)


def estimate_annual_oop(utilization: str, cost_factor: float, option_type: str) -> float:
    band = ESTIMATED_ANNUAL_OOP.get(utilization)
    if band is None:
        logger.warning(f"Unknown utilization '{utilization}', assuming medium")
        band = ESTIMATED_ANNUAL_OOP['medium']
    return band[option_type] * cost_factor


def calculate_coverage_duration(scenario: JobChangeScenario) -> int:
    """Months of bridge coverage needed, 1-12 (12 without a new job)."""
    if not (scenario.has_new_job_offer and scenario.new_job_start_date):
        return DEFAULT_COVERAGE_MONTHS
    coverage_start = add_days(scenario.new_job_start_date, scenario.new_job_waiting_period or 0)
    months = math.ceil(days_between(scenario.separation_date, coverage_start) / 30)
    return max(1, min(DEFAULT_COVERAGE_MONTHS, months))


# =============================================================================
# ANALYSIS
# =============================================================================

def _timeline_event(when: date, event: str, action: str, urgent: bool = False) -> Dict:
    return {'date': when, 'event': event, 'action': action, 'urgent': urgent}


def _build_options(scenario: JobChangeScenario, duration: int, cost_factor: float,
                   subsidy_eligible: bool, monthly_subsidy: float, subsidized_premium: float) -> List[Dict]:
    options = []

    cobra_monthly = calculate_cobra_premium(scenario.cobra_premium)
    cobra_months = min(COBRA_MAX_MONTHS, duration)
    cobra_oop = estimate_annual_oop(scenario.expected_utilization, cost_factor, 'cobra')
    options.append({
        'type': 'cobra',
        'name': 'COBRA Continuation',
        'monthly_premium': round(cobra_monthly),
        'annual_premium': round(cobra_monthly * 12),
        'estimated_annual_cost': round(cobra_monthly * duration + cobra_oop * duration / 12),
        'duration_months': cobra_months,
        'start_date': scenario.separation_date,
        'end_date': add_months(scenario.separation_date, cobra_months),
        'benefits': [
            'Keep same doctors and network',
            'No gap in coverage (retroactive to separation)',
            'Same plan benefits you know',
            'Pre-existing conditions fully covered',
        ],
        'drawbacks': [
            f"High cost: {format_currency(cobra_monthly)}/month (full premium + 2%)",
            'Must pay entire premium yourself',
            'Limited to 18 months (36 for certain events)',
            'Payment due within 45 days of election',
        ],
        'network_compatibility': 'same',
        'risk_level': 'low',
    })

    marketplace_end = add_months(scenario.separation_date, duration)
    marketplace_oop = estimate_annual_oop(scenario.expected_utilization, cost_factor, 'marketplace')
    options.append({
        'type': 'marketplace',
        'name': 'Marketplace with Subsidy' if subsidy_eligible else 'Marketplace (Unsubsidized)',
        'monthly_premium': round(subsidized_premium),
        'annual_premium': round(subsidized_premium * 12),
        'estimated_annual_cost': round(subsidized_premium * duration + marketplace_oop * duration / 12),
        'duration_months': duration,
        'start_date': first_of_next_month(scenario.separation_date),
        'end_date': marketplace_end,
        'benefits': [
            f"Premium subsidy available: ~{format_currency(monthly_subsidy)}/month" if subsidy_eligible
            else 'Full plan selection available',
            'Multiple plan options (Bronze to Platinum)',
            'Can switch plans during Open Enrollment',
            'Cost-sharing reductions if income qualifies',
        ],
        'drawbacks': [
            'May need to change doctors/network',
            'Coverage starts 1st of next month (potential gap)',
            'Must re-enroll annually during Open Enrollment',
            'Must reconcile subsidy at tax time' if subsidy_eligible
            else 'No subsidy available at your income level',
        ],
        'network_compatibility': 'different',
        'risk_level': 'medium',
    })

    if duration <= SHORT_TERM_ELIGIBLE_MONTHS:
        short_term = estimate_short_term_premium(scenario.age, scenario.state)
        if short_term > 0:
            options.append({
                'type': 'short-term',
                'name': 'Short-Term Health Insurance',
                'monthly_premium': round(short_term),
                'annual_premium': round(short_term * duration),
                'estimated_annual_cost': round(short_term * duration + SHORT_TERM_OOP_RISK),
                'duration_months': duration,
                'start_date': scenario.separation_date,
                'end_date': marketplace_end,
                'benefits': [
                    'Lower premiums than COBRA/marketplace',
                    'Quick enrollment (can start immediately)',
                    'Good for healthy individuals',
                ],
                'drawbacks': [
                    'Limited coverage (may exclude pre-existing)',
                    'Not ACA-compliant (no essential benefits guarantee)',
                    'May have lifetime/annual caps',
                    'Not available in all states',
                ],
                'network_compatibility': 'varies',
                'risk_level': 'high',
            })

    return options


def analyze_job_change(
    scenario: JobChangeScenario,
    evaluation_date: Optional[date] = None,
    cost_index: Optional[StateCostIndex] = None
) -> Dict:
    """
    Compare coverage options after a job separation.

    Args:
        scenario: Separation details, premiums, income and preferences
        evaluation_date: "Today" for deadline countdowns
        cost_index: State cost index for location rating

    Returns:
        Dict with options, recommended_option, reasoning,
        coverage_gap_warning, sep_info, timeline, cost_comparison and
        subsidy_info
    """
    evaluation_date = evaluation_date or date.today()
    reasoning = []

    sep_deadline = add_days(scenario.separation_date, SEP_WINDOW_DAYS)
    cobra_deadline = add_days(scenario.separation_date, COBRA_ELECTION_DAYS)
    days_until_deadline = days_between(evaluation_date, sep_deadline)
    deadline_urgent = days_until_deadline < URGENT_DEADLINE_DAYS

    timeline = [
        _timeline_event(scenario.separation_date, 'Job Separation',
                        'Coverage ends at end of month (typically)'),
        _timeline_event(cobra_deadline, 'COBRA Election Deadline',
                        'Must elect COBRA within 60 days of separation', deadline_urgent),
        _timeline_event(sep_deadline, 'Marketplace SEP Deadline',
                        'Must enroll in marketplace plan within 60 days', deadline_urgent),
    ]

    fpl = get_fpl_for_household(scenario.household_size, scenario.state)
    fpl_percent = calculate_fpl_percentage(scenario.household_income, scenario.household_size, scenario.state)
    subsidy_eligible = 100 <= fpl_percent <= 400

    base_premium = estimate_marketplace_premium(scenario.age, scenario.state, scenario.dependent_ages, cost_index)
    monthly_subsidy = 0.0
    if subsidy_eligible:
        monthly_subsidy = calculate_monthly_subsidy(base_premium, scenario.household_income, fpl_percent)
    subsidized_premium = max(0.0, base_premium - monthly_subsidy)

    duration = calculate_coverage_duration(scenario)
    if scenario.has_new_job_offer and scenario.new_job_start_date:
        timeline.append(_timeline_event(scenario.new_job_start_date, 'New Job Start', 'Begin new employment'))
        if scenario.new_job_waiting_period > 0:
            timeline.append(_timeline_event(
                add_days(scenario.new_job_start_date, scenario.new_job_waiting_period),
                'New Coverage Begins',
                'Employer coverage becomes effective',
            ))

    cost_factor = get_state_cost_factor(scenario.state, cost_index)
    options = _build_options(scenario, duration, cost_factor, subsidy_eligible, monthly_subsidy, subsidized_premium)
    cobra_option, marketplace_option = options[0], options[1]

    cobra_total = round(calculate_cobra_premium(scenario.cobra_premium) * duration)
    marketplace_total = round(subsidized_premium * duration)
    savings = cobra_total - marketplace_total
    savings_percent = round(savings / cobra_total * 100) if cobra_total > 0 else 0

    if scenario.wants_to_keep_providers and scenario.has_ongoing_prescriptions:
        recommended = cobra_option
        reasoning.append('COBRA recommended to maintain current provider relationships and prescription coverage.')
    elif savings > MEANINGFUL_MONTHLY_SAVINGS * duration and subsidy_eligible:
        recommended = marketplace_option
        reasoning.append(
            f"Marketplace saves ~{format_currency(savings)} over {duration} months with subsidies."
        )
    elif duration <= 2 and not scenario.has_ongoing_prescriptions:
        recommended = cobra_option
        reasoning.append('COBRA recommended for short coverage gaps to avoid network disruption.')
    elif marketplace_total < cobra_total * MARKETPLACE_PRICE_RATIO:
        recommended = marketplace_option
        reasoning.append('Marketplace is significantly more affordable for your situation.')
    else:
        recommended = cobra_option
        reasoning.append('COBRA provides better value considering continuity of care.')

    if fpl_percent < 100:
        reasoning.append('Income below poverty level - may qualify for Medicaid. Check state eligibility.')
    elif fpl_percent <= 150:
        reasoning.append('Low income qualifies for maximum subsidies and cost-sharing reductions.')
    elif fpl_percent > 400:
        reasoning.append('Income above 400% FPL - no premium subsidies available.')

    coverage_gap_warning = None
    gap_days = days_between(scenario.separation_date, marketplace_option['start_date'])
    if gap_days > 0:
        coverage_gap_warning = (
            f"Warning: Marketplace coverage starts {gap_days} days after separation. Consider COBRA to "
            f"bridge the gap (you can enroll retroactively within 60 days)."
        )

    timeline.sort(key=lambda e: e['date'])

    return {
        'options': options,
        'recommended_option': recommended,
        'reasoning': reasoning,
        'coverage_gap_warning': coverage_gap_warning,
        'sep_info': {
            'deadline': sep_deadline,
            'days_remaining': max(0, days_until_deadline),
            'qualifying_event': 'Loss of job-based coverage',
        },
        'timeline': timeline,
        'cost_comparison': {
            'cobra_total': cobra_total,
            'marketplace_total': marketplace_total,
            'savings': savings,
            'savings_percent': savings_percent,
        },
        'subsidy_info': {
            'eligible': subsidy_eligible,
            'estimated_monthly_subsidy': round(monthly_subsidy),
            'estimated_annual_subsidy': round(monthly_subsidy * 12),
            'fpl': fpl,
            'fpl_percent': round(fpl_percent),
        },
    }


def quick_cobra_vs_marketplace(
    cobra_premium: float,
    age: int,
    income: float,
    household_size: int,
    state: str
) -> Dict:
    """One-line COBRA vs marketplace comparison for a single applicant."""
    cobra_cost = calculate_cobra_premium(cobra_premium)
    marketplace_premium = estimate_marketplace_premium(age, state)
    fpl_percent = calculate_fpl_percentage(income, household_size, state)
    subsidy = calculate_monthly_subsidy(marketplace_premium, income, fpl_percent) if fpl_percent >= 100 else 0.0
    marketplace_cost = max(0.0, marketplace_premium - subsidy)

    return {
        'cobra_monthly_cost': round(cobra_cost),
        'marketplace_monthly_cost': round(marketplace_cost),
        'recommendation': 'marketplace' if marketplace_cost < cobra_cost * MARKETPLACE_PRICE_RATIO else 'cobra',
        'monthly_savings': round(cobra_cost - marketplace_cost),
    }
