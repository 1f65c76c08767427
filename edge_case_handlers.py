"""
Edge Case Handlers

Life events and transitions that change a household's coverage options.

Provides functionality to:
- Compute Special Enrollment Period (SEP) windows for qualifying life events
- Enumerate upcoming age milestones (26, 30, 40, 50, 60, 64, 65)
- Estimate tax-reconciliation exposure when income changes mid-year
- Locate the annual Open Enrollment Period
"""

import logging
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Union

from constants import AGE_MILESTONES, OPEN_ENROLLMENT_END, OPEN_ENROLLMENT_START
from coverage_eval import Urgency
from coverage_eval.utils.calculations import (
    add_days,
    add_years,
    calculate_age,
    days_between,
    first_of_next_month,
)
from coverage_eval.utils.formatting import format_currency, format_percentage
from subsidy_utils import (
    calculate_fpl_percentage,
    calculate_monthly_subsidy,
    get_expected_contribution_percentage,
    get_medicaid_threshold,
    is_medicaid_eligible,
    is_ptc_eligible,
)

logger = logging.getLogger(__name__)


# =============================================================================
# SPECIAL ENROLLMENT PERIODS
# =============================================================================

class SEPReason(Enum):
    """Qualifying life events that open a Special Enrollment Period."""
    LOSS_OF_COVERAGE = "loss-of-coverage"
    MOVED = "moved"
    MARRIAGE = "marriage"
    DIVORCE = "divorce"
    BIRTH_ADOPTION = "birth-adoption"
    JOB_CHANGE = "job-change"
    INCOME_CHANGE = "income-change"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Union['SEPReason', str, None]) -> 'SEPReason':
        """Accept enum members, kebab-case or snake_case strings; unknown -> OTHER."""
        if isinstance(value, cls):
            return value
        if value:
            normalized = str(value).strip().lower().replace('_', '-')
            for reason in cls:
                if reason.value == normalized:
                    return reason
            logger.info(f"Unrecognized SEP reason '{value}', using standard window")
        return cls.OTHER


# (days before event, days after event)
SEP_WINDOW_OFFSETS = {
    SEPReason.LOSS_OF_COVERAGE: (60, 60),
    SEPReason.MOVED: (60, 60),
    SEPReason.JOB_CHANGE: (60, 60),
    SEPReason.MARRIAGE: (0, 60),
    SEPReason.DIVORCE: (0, 60),
    SEPReason.BIRTH_ADOPTION: (0, 60),
    SEPReason.INCOME_CHANGE: (0, 30),
    SEPReason.OTHER: (0, 60),
}

SEP_INSTRUCTIONS = {
    SEPReason.LOSS_OF_COVERAGE: [
        'Apply for coverage within 60 days of losing coverage',
        'Coverage will start the first day of the month after you enroll',
        'If you enroll by the 15th, coverage starts the 1st of next month',
    ],
    SEPReason.MOVED: [
        'You can change plans when moving to a new coverage area',
        'Must have had qualifying coverage before the move',
        'Can choose any available plan in new area',
    ],
    SEPReason.MARRIAGE: [
        'Report marriage to the Marketplace',
        'Update household size and income',
        'Can add or remove dependents',
    ],
    SEPReason.DIVORCE: [
        'Report divorce to the Marketplace',
        'Update household size and income',
        'Can add or remove dependents',
    ],
    SEPReason.BIRTH_ADOPTION: [
        'Add new child to your plan within 60 days',
        'Coverage can be retroactive to date of birth/adoption',
        'Update household size for subsidy recalculation',
    ],
    SEPReason.JOB_CHANGE: [
        'If losing employer coverage, you have a 60-day SEP',
        'If gaining employer coverage, compare costs carefully',
        'Update income information if salary changes',
    ],
    SEPReason.INCOME_CHANGE: [
        'Report income changes within 30 days',
        'Subsidy amount will be adjusted',
        'Avoid tax reconciliation surprises',
    ],
    SEPReason.OTHER: ['Contact the Marketplace for specific instructions'],
}

SEP_REQUIRED_DOCUMENTATION = {
    SEPReason.LOSS_OF_COVERAGE: [
        'Proof of prior coverage (insurance termination letter)',
        'Dates of coverage',
    ],
    SEPReason.MOVED: [
        'Proof of new address (lease, utility bill, etc.)',
        'Previous coverage documentation',
    ],
    SEPReason.MARRIAGE: ['Marriage certificate', 'Updated income information'],
    SEPReason.DIVORCE: ['Divorce decree', 'Updated income information'],
    SEPReason.BIRTH_ADOPTION: [
        'Birth certificate or adoption papers',
        'Social Security Number (or apply for one)',
    ],
    SEPReason.JOB_CHANGE: [
        'Employer coverage termination letter (if applicable)',
        'New job offer letter',
        'Updated income documentation',
    ],
    SEPReason.INCOME_CHANGE: [
        'Updated pay stubs',
        'Job loss/gain documentation',
        'Self-employment income records',
    ],
    SEPReason.OTHER: ['Documentation of qualifying event'],
}


def get_deadline_urgency(days_remaining: int) -> Urgency:
    """
    Urgency tier for a deadline.

    Expired windows (<= 0 days) are critical, as is anything within a week.
    """
    if days_remaining <= 7:
        return Urgency.CRITICAL
    if days_remaining <= 14:
        return Urgency.HIGH
    if days_remaining <= 30:
        return Urgency.MODERATE
    return Urgency.LOW


def calculate_special_enrollment_period(
    reason: Union[SEPReason, str],
    event_date: date,
    evaluation_date: Optional[date] = None
) -> Dict:
    """
    Compute the SEP window for a qualifying life event.

    Args:
        reason: Qualifying event (SEPReason or its string value)
        event_date: Date the event happened (or will happen)
        evaluation_date: "Today" for the calculation

    Returns:
        Dict with reason, event_date, enrollment_window_start,
        enrollment_window_end, coverage_effective_date, days_remaining,
        is_active, urgency, instructions and required_documentation.
        days_remaining is negative once the window has closed.
    """
    reason = SEPReason.parse(reason)
    evaluation_date = evaluation_date or date.today()
    days_before, days_after = SEP_WINDOW_OFFSETS[reason]

    window_start = add_days(event_date, -days_before)
    window_end = add_days(event_date, days_after)

    if reason == SEPReason.BIRTH_ADOPTION:
        coverage_effective = event_date
    else:
        coverage_effective = first_of_next_month(evaluation_date)

    days_remaining = days_between(evaluation_date, window_end)

    return {
        'reason': reason.value,
        'event_date': event_date,
        'enrollment_window_start': window_start,
        'enrollment_window_end': window_end,
        'coverage_effective_date': coverage_effective,
        'days_remaining': days_remaining,
        'is_active': window_start <= evaluation_date <= window_end,
        'urgency': get_deadline_urgency(days_remaining).value,
        'instructions': list(SEP_INSTRUCTIONS[reason]),
        'required_documentation': list(SEP_REQUIRED_DOCUMENTATION[reason]),
    }


# =============================================================================
# AGE TRANSITIONS
# =============================================================================

AGE_RATING_MILESTONES = (30, 40, 50, 60)


def _age_26_transition(days_until: int, concerns: List[str], planning: List[str]) -> Dict:
    urgency = Urgency.LOW
    if days_until <= 60:
        urgency = Urgency.CRITICAL
        concerns.append('Approaching age 26 - will lose parent coverage soon')
    elif days_until <= 180:
        urgency = Urgency.HIGH
        planning.append('Start planning for age 26 transition')

    return {
        'event': "Aging off parent's health plan",
        'impacts': [
            "No longer eligible for parent's health insurance",
            'Must obtain own coverage to avoid gap',
            'Qualifying event for Special Enrollment Period',
        ],
        'actions': [
            'Research individual marketplace plans',
            'Check if employer offers coverage',
            'Calculate expected costs and subsidies',
            'Enroll within 60 days of 26th birthday',
        ],
        'urgency': urgency,
    }


def _age_rating_transition(age: int, days_until: int) -> Dict:
    return {
        'event': 'Premium increase due to age rating',
        'impacts': [
            'Premiums increase as you age (ACA 3:1 age curve)',
            f'Age {age} milestone increases monthly premium',
        ],
        'actions': [
            'Review current plan during open enrollment',
            'Compare new premium costs',
            'Adjust coverage tier if needed',
        ],
        'urgency': Urgency.MODERATE if days_until <= 90 else Urgency.LOW,
    }


def _age_64_transition(days_until: int, planning: List[str]) -> Dict:
    urgency = Urgency.LOW
    if days_until <= 180:
        urgency = Urgency.MODERATE
        planning.append('Begin Medicare education and planning')

    return {
        'event': 'Maximum ACA premium age (3:1 ratio cap)',
        'impacts': [
            'Premiums at maximum allowed under ACA (3x base rate)',
            'Medicare eligibility in 1 year',
        ],
        'actions': [
            'Start planning for Medicare transition',
            'Learn about Medicare Parts A, B, C, D',
            'Understand Medicare enrollment windows',
        ],
        'urgency': urgency,
    }


def _age_65_transition(days_until: int, concerns: List[str], planning: List[str]) -> Dict:
    urgency = Urgency.LOW
    if days_until <= 90:
        urgency = Urgency.CRITICAL
        concerns.append('Medicare enrollment window approaching - enroll 3 months before 65th birthday')
    elif days_until <= 180:
        urgency = Urgency.HIGH
        concerns.append('Medicare eligibility within 6 months')
    elif days_until <= 365:
        urgency = Urgency.MODERATE
        planning.append('Start Medicare research and planning')

    return {
        'event': 'Medicare eligibility',
        'impacts': [
            'Eligible for Medicare Parts A & B',
            'Must enroll to avoid late penalties',
            'ACA marketplace coverage ends',
            'Different coverage and cost structure',
        ],
        'actions': [
            'Enroll in Medicare during Initial Enrollment Period (3 months before 65th birthday)',
            'Choose Medicare Advantage or Original Medicare + Medigap',
            'Select Part D prescription drug coverage',
            'Cancel ACA marketplace plan once Medicare starts',
        ],
        'urgency': urgency,
    }


def analyze_age_transitions(birth_date: date, evaluation_date: Optional[date] = None) -> Dict:
    """
    Enumerate upcoming age milestones for one person.

    Milestones already reached are omitted, so anyone 65 or older gets an
    empty transition list.

    Returns:
        Dict with current_age, birth_date, transitions (sorted by
        days_until), immediate_concerns and planning_recommendations
    """
    evaluation_date = evaluation_date or date.today()
    current_age = calculate_age(birth_date, evaluation_date)
    transitions = []
    concerns: List[str] = []
    planning: List[str] = []

    for age in AGE_MILESTONES:
        if current_age >= age:
            continue

        transition_date = add_years(birth_date, age)
        days_until = days_between(evaluation_date, transition_date)

        if age == 26:
            details = _age_26_transition(days_until, concerns, planning)
        elif age in AGE_RATING_MILESTONES:
            details = _age_rating_transition(age, days_until)
        elif age == 64:
            details = _age_64_transition(days_until, planning)
        elif age == 65:
            details = _age_65_transition(days_until, concerns, planning)
        else:
            continue

        transitions.append({
            'age': age,
            'date': transition_date,
            'days_until': days_until,
            'event': details['event'],
            'impacts': details['impacts'],
            'actions': details['actions'],
            'urgency': details['urgency'].value,
        })

    transitions.sort(key=lambda t: t['days_until'])

    return {
        'current_age': current_age,
        'birth_date': birth_date,
        'transitions': transitions,
        'immediate_concerns': concerns,
        'planning_recommendations': planning,
    }


# =============================================================================
# INCOME VOLATILITY
# =============================================================================

RECONCILIATION_NOTICE_AMOUNT = 500
SIGNIFICANT_INCOME_CHANGE_PCT = 25


def classify_reconciliation_risk(impact: float) -> str:
    """none / low / moderate / high / severe by absolute dollar impact."""
    magnitude = abs(impact)
    if magnitude == 0:
        return 'none'
    if magnitude < 500:
        return 'low'
    if magnitude < 1500:
        return 'moderate'
    if magnitude < 3000:
        return 'high'
    return 'severe'


def _implied_benchmark(current_income: float, current_fpl: float, current_ptc: float,
                       current_premium: float) -> float:
    """
    Benchmark premium implied by the subsidy currently received.

    subsidy = benchmark - expected contribution, so the benchmark is the
    subsidy plus the contribution. Without a subsidy the current premium
    stands in for the benchmark.
    """
    expected_pct = get_expected_contribution_percentage(current_fpl)
    if current_ptc > 0 and expected_pct is not None:
        return current_ptc + max(0.0, current_income) * expected_pct / 12
    return max(0.0, current_premium)


def analyze_income_volatility(
    current_income: float,
    projected_income: float,
    household_size: int,
    state: Optional[str],
    current_monthly_premium: float,
    current_monthly_ptc: float,
    months_remaining: int
) -> Dict:
    """
    Estimate how a mid-year income change affects eligibility and subsidies.

    Args:
        current_income: Annual income the current subsidy was based on
        projected_income: Expected annual income after the change
        household_size: Tax household size
        state: Residence state (Medicaid threshold, AK/HI FPL tables)
        current_monthly_premium: Current monthly premium before subsidy
        current_monthly_ptc: Advance premium tax credit received per month
        months_remaining: Months left in the coverage year

    Returns:
        Dict with income change, FPL percentages, eligibility before/after,
        threshold crossings, reconciliation impact and risk level,
        recommendations and warnings
    """
    income_change = projected_income - current_income
    percentage_change = (income_change / current_income) * 100 if current_income > 0 else 0.0

    current_fpl = calculate_fpl_percentage(current_income, household_size, state)
    projected_fpl = calculate_fpl_percentage(projected_income, household_size, state)
    months_remaining = max(0, min(12, int(months_remaining)))

    current_eligibility = {
        'medicaid': is_medicaid_eligible(current_fpl, state),
        'ptc': is_ptc_eligible(current_fpl, state),
        'monthly_ptc': current_monthly_ptc,
    }

    projected_ptc = 0.0
    if is_ptc_eligible(projected_fpl, state):
        benchmark = _implied_benchmark(current_income, current_fpl, current_monthly_ptc, current_monthly_premium)
        projected_ptc = round(calculate_monthly_subsidy(benchmark, projected_income, projected_fpl), 2)

    projected_eligibility = {
        'medicaid': is_medicaid_eligible(projected_fpl, state),
        'ptc': is_ptc_eligible(projected_fpl, state),
        'monthly_ptc': projected_ptc,
    }

    threshold = get_medicaid_threshold(state)
    thresholds_crossed = []
    if current_eligibility['medicaid'] != projected_eligibility['medicaid']:
        if projected_eligibility['medicaid']:
            thresholds_crossed.append(f'Becoming Medicaid eligible (income dropped below {threshold}% FPL)')
        else:
            thresholds_crossed.append(f'Losing Medicaid eligibility (income exceeded {threshold}% FPL)')

    if not current_eligibility['ptc'] and projected_eligibility['ptc']:
        thresholds_crossed.append('Becoming eligible for Premium Tax Credits')
    elif current_eligibility['ptc'] and not projected_eligibility['ptc']:
        thresholds_crossed.append('Losing Premium Tax Credit eligibility')

    crosses_threshold = bool(thresholds_crossed)

    # Positive impact means advance credits were larger than the new entitlement
    impact = round((current_monthly_ptc - projected_ptc) * months_remaining, 2)
    risk = classify_reconciliation_risk(impact)

    recommendations = []
    warnings = []

    if crosses_threshold:
        recommendations.append('Report income change to the Marketplace within 30 days')
        recommendations.append('Request subsidy adjustment to reflect new income')

    if impact > RECONCILIATION_NOTICE_AMOUNT:
        warnings.append(
            f"You may owe {format_currency(impact)} at tax time if income increased and subsidies not adjusted"
        )
        recommendations.append('Consider reducing advance premium tax credits now to avoid repayment')
    elif impact < -RECONCILIATION_NOTICE_AMOUNT:
        recommendations.append(
            f"You may receive a {format_currency(abs(impact))} tax refund if income decreased"
        )
        recommendations.append('Request increased subsidies now to reduce out-of-pocket costs')

    if projected_eligibility['medicaid'] and not current_eligibility['medicaid']:
        recommendations.append('Apply for Medicaid immediately - you may qualify for free/low-cost coverage')

    if abs(percentage_change) > SIGNIFICANT_INCOME_CHANGE_PCT:
        warnings.append(
            f"Significant income change ({format_percentage(abs(percentage_change))}) - immediate action required"
        )

    return {
        'current_income': current_income,
        'projected_income': projected_income,
        'income_change': income_change,
        'percentage_change': round(percentage_change, 1),
        'current_fpl': round(current_fpl, 1),
        'projected_fpl': round(projected_fpl, 1),
        'current_eligibility': current_eligibility,
        'projected_eligibility': projected_eligibility,
        'crosses_threshold': crosses_threshold,
        'thresholds_crossed': thresholds_crossed,
        'reconciliation_risk': risk,
        'estimated_reconciliation_impact': impact,
        'recommendations': recommendations,
        'warnings': warnings,
    }


# =============================================================================
# OPEN ENROLLMENT
# =============================================================================

def is_open_enrollment_period(on_date: Optional[date] = None) -> bool:
    """Open Enrollment runs November 1 through January 15."""
    on_date = on_date or date.today()
    start_month, _ = OPEN_ENROLLMENT_START
    end_month, end_day = OPEN_ENROLLMENT_END
    if on_date.month >= start_month:
        return True
    return on_date.month == end_month and on_date.day <= end_day


def get_next_open_enrollment(reference_date: Optional[date] = None) -> Dict:
    """
    The current or next Open Enrollment Period.

    During an open period this returns that period, so days_until is
    negative or zero.

    Returns:
        Dict with start, end and days_until
    """
    reference_date = reference_date or date.today()
    start_month, start_day = OPEN_ENROLLMENT_START
    end_month, end_day = OPEN_ENROLLMENT_END

    oep_year = reference_date.year
    if (reference_date.month, reference_date.day) <= (end_month, end_day):
        oep_year -= 1

    start = date(oep_year, start_month, start_day)
    end = date(oep_year + 1, end_month, end_day)

    return {
        'start': start,
        'end': end,
        'days_until': days_between(reference_date, start),
    }
