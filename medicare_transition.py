"""
Medicare Transition Planner

Plans the move from employer or marketplace coverage to Medicare at 65.

Provides functionality to:
- Lay out the enrollment windows (IEP, GEP, SEP, AEP, OEP) and key dates
- Estimate Part A/B/D, IRMAA and Medigap premiums
- Compare Medicare with current coverage (switch / delay / evaluate)
- List key decisions, warnings and a dated checklist
- Compute Part B / Part D late enrollment penalties
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, List, Optional

from constants import IRMAA_BRACKETS_2024, MEDICARE_2024, MEDICARE_ELIGIBILITY_AGE, MEDIGAP_STATE_FACTORS
from coverage_eval import Priority
from coverage_eval.utils.calculations import (
    add_days,
    add_months,
    add_years,
    days_between,
    end_of_month,
    first_of_month,
)
from coverage_eval.utils.formatting import format_currency

logger = logging.getLogger(__name__)

FILING_STATUSES = ('single', 'married_joint', 'married_separate')
DEFAULT_FILING_STATUS = 'single'

# Large employers (20+ employees) are primary over Medicare
EMPLOYER_SIZES = ('small', 'large')

IEP_MONTHS_BEFORE = 3
IEP_MONTHS_AFTER = 3
EMPLOYER_SEP_MONTHS = 8

HOSPITALIZATION_PROBABILITY = 0.1
MISC_ANNUAL_COST_SHARING = 500
MEDIGAP_ISSUE_AGE_INCREASE = 0.02
SAVINGS_DECISION_THRESHOLD = 1000


@dataclass
class MedicareTransitionInput:
    """Inputs for the Medicare transition planner."""
    date_of_birth: date
    current_monthly_premium: float
    has_employer_coverage: bool
    state: str
    employer_size: Optional[str] = None
    spouse_has_employer_coverage: bool = False
    magi: Optional[float] = None
    filing_status: Optional[str] = None
    wants_drug_coverage: bool = True
    has_va_or_tricare: bool = False
    still_working: bool = False

    @property
    def working_with_employer_coverage(self) -> bool:
        return self.has_employer_coverage and self.still_working


# =============================================================================
# PUBLIC HELPERS
# =============================================================================

def get_medicare_eligibility_date(date_of_birth: date) -> date:
    """Medicare starts the 1st of the 65th-birthday month."""
    return first_of_month(add_years(date_of_birth, MEDICARE_ELIGIBILITY_AGE))


def calculate_part_b_penalty(months_delayed: int) -> float:
    """Monthly Part B surcharge: 10% of the standard premium per full 12 months late."""
    periods = max(0, int(months_delayed)) // 12
    return round(MEDICARE_2024['PART_B_PREMIUM'] * periods * MEDICARE_2024['PART_B_PENALTY_RATE'], 2)


def calculate_part_d_penalty(months_delayed: int) -> float:
    """Monthly Part D surcharge: 1% of the national base premium per month late."""
    per_month = MEDICARE_2024['PART_D_BASE_BENEFICIARY_PREMIUM'] * MEDICARE_2024['PART_D_PENALTY_RATE']
    return round(per_month * max(0, int(months_delayed)), 2)


def get_irmaa_surcharge(magi: float, filing_status: str = DEFAULT_FILING_STATUS) -> Dict:
    """
    IRMAA surcharges for a 2-year-lookback MAGI.

    Returns:
        Dict with part_b_extra and part_d_extra (monthly dollars)
    """
    if filing_status not in IRMAA_BRACKETS_2024:
        logger.warning(f"Unknown filing status '{filing_status}', using single")
        filing_status = DEFAULT_FILING_STATUS

    brackets = IRMAA_BRACKETS_2024[filing_status]
    for max_magi, part_b_extra, part_d_extra in brackets:
        if magi <= max_magi:
            return {'part_b_extra': part_b_extra, 'part_d_extra': part_d_extra}

    _, part_b_extra, part_d_extra = brackets[-1]
    return {'part_b_extra': part_b_extra, 'part_d_extra': part_d_extra}


def estimate_medigap_premium(state: str, age: int = MEDICARE_ELIGIBILITY_AGE) -> int:
    """Medigap Plan G estimate with issue-age pricing."""
    state_factor = MEDIGAP_STATE_FACTORS.get((state or '').upper(), 1.0)
    age_factor = 1 + (age - MEDICARE_ELIGIBILITY_AGE) * MEDIGAP_ISSUE_AGE_INCREASE
    return round(MEDICARE_2024['MEDIGAP_BASE_PREMIUM'] * state_factor * age_factor)


# =============================================================================
# TIMELINE
# =============================================================================

def _enrollment_period(name: str, period_type: str, start: date, end: date, description: str,
                       applies: bool, penalty: Optional[str] = None) -> Dict:
    period = {
        'name': name,
        'type': period_type,
        'start_date': start,
        'end_date': end,
        'description': description,
        'applies': applies,
    }
    if penalty:
        period['penalty'] = penalty
    return period


def calculate_timeline(data: MedicareTransitionInput, today: date) -> Dict:
    """
    Enrollment windows and dated events around the 65th birthday.

    Returns:
        Dict with days_until_65, months_until_65, birthday_65,
        medicare_start_date, events and enrollment_periods
    """
    birthday_65 = add_years(data.date_of_birth, MEDICARE_ELIGIBILITY_AGE)
    medicare_start = first_of_month(birthday_65)
    days_until_65 = days_between(today, birthday_65)
    months_until_65 = math.ceil(days_until_65 / 30)

    iep_start = first_of_month(add_months(birthday_65, -IEP_MONTHS_BEFORE))
    iep_end = end_of_month(add_months(birthday_65, IEP_MONTHS_AFTER))

    next_year = today.year + 1
    periods = [
        _enrollment_period(
            'Initial Enrollment Period (IEP)', 'IEP', iep_start, iep_end,
            '7-month window around your 65th birthday to enroll in Medicare Parts A & B without penalty.',
            True,
        ),
        _enrollment_period(
            'General Enrollment Period (GEP)', 'GEP', date(next_year, 1, 1), date(next_year, 3, 31),
            'Annual period (Jan 1 - Mar 31) to enroll if you missed your IEP. Coverage starts July 1. '
            'Late penalties may apply.',
            days_until_65 < 0,
            penalty='Part B premium increases 10% for each 12-month period you were eligible but not enrolled.',
        ),
        _enrollment_period(
            'Annual Enrollment Period (AEP)', 'AEP', date(today.year, 10, 15), date(today.year, 12, 7),
            'Annual period (Oct 15 - Dec 7) to change Medicare Advantage or Part D plans.',
            True,
        ),
        _enrollment_period(
            'Open Enrollment Period (OEP)', 'OEP', date(next_year, 1, 1), date(next_year, 3, 31),
            'Period (Jan 1 - Mar 31) when Medicare Advantage enrollees can switch to Original Medicare.',
            True,
        ),
    ]

    if data.working_with_employer_coverage:
        periods.append(_enrollment_period(
            'Special Enrollment Period (SEP)', 'SEP', today, add_months(today, EMPLOYER_SEP_MONTHS),
            'You have 8 months after your employer coverage ends to enroll in Medicare Part B without penalty.',
            True,
        ))

    events = []
    if days_until_65 > 0:
        events = [
            {'date': iep_start, 'event': 'Initial Enrollment Period Begins',
             'action': 'You can start enrolling in Medicare Parts A & B',
             'urgent': False, 'category': 'enrollment'},
            {'date': birthday_65, 'event': '65th Birthday',
             'action': 'Medicare eligibility begins',
             'urgent': days_until_65 < 90, 'category': 'information'},
            {'date': medicare_start, 'event': 'Medicare Coverage Can Begin',
             'action': 'If enrolled, Medicare coverage starts the 1st of your birthday month',
             'urgent': False, 'category': 'coverage'},
            {'date': iep_end, 'event': 'Initial Enrollment Period Ends',
             'action': 'Last day to enroll without potential late penalties',
             'urgent': months_until_65 <= 4, 'category': 'deadline'},
        ]
        events.sort(key=lambda e: e['date'])

    return {
        'days_until_65': max(0, days_until_65),
        'months_until_65': max(0, months_until_65),
        'birthday_65': birthday_65,
        'medicare_start_date': medicare_start,
        'events': events,
        'enrollment_periods': periods,
    }


# =============================================================================
# COSTS AND COMPARISON
# =============================================================================

def calculate_costs(data: MedicareTransitionInput) -> Dict:
    """Monthly Medicare premiums and an annual out-of-pocket estimate."""
    part_a = 0.0
    part_b = MEDICARE_2024['PART_B_PREMIUM']
    irmaa = {'part_b_extra': 0.0, 'part_d_extra': 0.0}
    if data.magi:
        irmaa = get_irmaa_surcharge(data.magi, data.filing_status or DEFAULT_FILING_STATUS)

    part_d = MEDICARE_2024['PART_D_AVERAGE_PREMIUM'] if data.wants_drug_coverage else 0.0
    medigap = estimate_medigap_premium(data.state)

    total = part_a + part_b + irmaa['part_b_extra'] + part_d + irmaa['part_d_extra'] + medigap
    annual_oop = (
        MEDICARE_2024['PART_B_DEDUCTIBLE']
        + MEDICARE_2024['PART_A_DEDUCTIBLE'] * HOSPITALIZATION_PROBABILITY
        + MISC_ANNUAL_COST_SHARING
    )

    return {
        'part_a_premium': part_a,
        'part_b_premium': part_b,
        'part_b_irmaa': irmaa['part_b_extra'],
        'part_d_premium': part_d,
        'part_d_irmaa': irmaa['part_d_extra'],
        'medigap_premium': medigap,
        'total_monthly_premium': round(total, 2),
        'estimated_annual_oop': round(annual_oop),
    }


def compare_with_current_coverage(data: MedicareTransitionInput, costs: Dict) -> Dict:
    """
    Recommend switching to Medicare, delaying it, or evaluating further.

    Employer size decides first, then annual savings.
    """
    current_annual = data.current_monthly_premium * 12
    medicare_annual = costs['total_monthly_premium'] * 12 + costs['estimated_annual_oop']
    savings = current_annual - medicare_annual

    reasons = []
    recommendation = 'evaluate'

    if data.working_with_employer_coverage and data.employer_size == 'large':
        reasons.append(
            'Large employer coverage (20+ employees) is primary over Medicare. You can delay Part B '
            'without penalty while still employed.'
        )
        recommendation = 'delay'
    elif data.has_employer_coverage and data.employer_size == 'small':
        reasons.append(
            'Small employer coverage (<20 employees) is secondary to Medicare. You should enroll in '
            'Part B to avoid coverage gaps.'
        )
        recommendation = 'switch'
    elif savings > SAVINGS_DECISION_THRESHOLD:
        reasons.append(
            f"Medicare could save you approximately {format_currency(savings)} per year compared to "
            f"your current coverage."
        )
        recommendation = 'switch'
    elif savings < -SAVINGS_DECISION_THRESHOLD:
        reasons.append(
            f"Your current coverage costs approximately {format_currency(-savings)} less per year "
            f"than Medicare would."
        )
        if data.working_with_employer_coverage:
            recommendation = 'delay'
    else:
        reasons.append(
            'Medicare costs are comparable to your current coverage. Consider factors like network, '
            'drug coverage, and flexibility.'
        )

    if data.has_va_or_tricare:
        reasons.append(
            'VA/Tricare benefits can work alongside Medicare. Consider enrolling in Part A (free) while '
            'keeping your VA/Tricare coverage.'
        )

    return {
        'current_annual_cost': round(current_annual),
        'medicare_annual_cost': round(medicare_annual),
        'annual_savings': round(savings),
        'recommendation': recommendation,
        'reasons': reasons,
    }


# =============================================================================
# DECISIONS, WARNINGS, CHECKLIST
# =============================================================================

def generate_decisions(data: MedicareTransitionInput) -> List[Dict]:
    decisions = []
    large_employer = data.employer_size == 'large'

    if data.working_with_employer_coverage:
        decisions.append({
            'question': 'When should I enroll in Medicare Part B?',
            'options': [
                'During my Initial Enrollment Period (IEP)',
                'When I stop working or lose employer coverage',
                'During the General Enrollment Period',
            ],
            'recommendation': (
                'When I stop working or lose employer coverage' if large_employer
                else 'During my Initial Enrollment Period (IEP)'
            ),
            'explanation': (
                'With large employer coverage (20+ employees), your employer plan is primary. You can '
                'delay Part B without penalty.' if large_employer
                else 'With small employer coverage (<20 employees), Medicare is primary. Enroll during '
                     'your IEP to avoid gaps and penalties.'
            ),
        })

    decisions.append({
        'question': 'Should I choose Original Medicare or Medicare Advantage?',
        'options': ['Original Medicare + Medigap', 'Medicare Advantage (Part C)'],
        'recommendation': 'Depends on your priorities',
        'explanation': (
            'Original Medicare offers maximum provider choice but may have higher costs. Medicare '
            'Advantage often has lower premiums and extra benefits but restricted networks. Consider '
            'your healthcare needs and preferences.'
        ),
    })

    if data.wants_drug_coverage:
        decisions.append({
            'question': 'Should I enroll in Part D for drug coverage?',
            'options': ['Yes, during IEP', 'No, I have creditable drug coverage', 'Not sure'],
            'recommendation': (
                'Evaluate your current drug coverage creditability' if data.working_with_employer_coverage
                else 'Yes, during IEP'
            ),
            'explanation': (
                "If you don't have creditable drug coverage and delay Part D enrollment, you'll pay a "
                "permanent late penalty. Get documentation from your current plan about whether your "
                "drug coverage is \"creditable.\""
            ),
        })

    return decisions


def generate_warnings(data: MedicareTransitionInput, timeline: Dict) -> List[str]:
    warnings = []

    if 0 < timeline['days_until_65'] < 90:
        warnings.append(
            'URGENT: Your Initial Enrollment Period is approaching. Missing this window could result '
            'in late enrollment penalties.'
        )

    if data.has_employer_coverage and data.employer_size == 'small':
        warnings.append(
            'Important: With small employer coverage (<20 employees), Medicare becomes your primary '
            'insurance at 65. Failure to enroll in Part B may result in coverage gaps.'
        )

    if data.magi and data.filing_status in IRMAA_BRACKETS_2024:
        first_threshold = IRMAA_BRACKETS_2024[data.filing_status][0][0]
        if data.magi > first_threshold:
            warnings.append(
                'Your income may subject you to IRMAA surcharges on Parts B and D. Consider strategies '
                'like Roth conversions or timing income events.'
            )

    warnings.append(
        'Part D late enrollment penalty is 1% per month you were eligible but not enrolled without '
        'creditable coverage. This penalty is permanent.'
    )
    return warnings


def _checklist_item(item: str, due_date: date, priority: Priority) -> Dict:
    return {'item': item, 'due_date': due_date, 'completed': False, 'priority': priority.value}


def generate_checklist(data: MedicareTransitionInput, timeline: Dict) -> List[Dict]:
    birthday_65 = timeline['birthday_65']
    three_months_before = add_months(birthday_65, -3)
    employer_priority = Priority.HIGH if data.has_employer_coverage else Priority.LOW

    checklist = [
        _checklist_item('Get your Medicare number (from Social Security)', three_months_before, Priority.HIGH),
        _checklist_item('Review your current coverage and compare with Medicare options',
                        three_months_before, Priority.HIGH),
        _checklist_item('Decide between Original Medicare and Medicare Advantage',
                        three_months_before, Priority.HIGH),
    ]
    if data.wants_drug_coverage:
        checklist.append(_checklist_item('Research Part D prescription drug plans',
                                         three_months_before, Priority.MEDIUM))
    checklist.extend([
        _checklist_item('Get creditable coverage letter from employer (if applicable)',
                        three_months_before, employer_priority),
        _checklist_item('Compare Medigap policies in your state (if choosing Original Medicare)',
                        three_months_before, Priority.MEDIUM),
        _checklist_item('Notify employer of Medicare enrollment plans',
                        add_days(birthday_65, -30), employer_priority),
        _checklist_item('Enroll in Medicare Parts A and B', birthday_65, Priority.HIGH),
    ])
    return checklist


def analyze_medicare_transition(data: MedicareTransitionInput, evaluation_date: Optional[date] = None) -> Dict:
    """
    Full Medicare transition analysis.

    Args:
        data: Birth date, current coverage, income and preferences
        evaluation_date: "Today" for the timeline

    Returns:
        Dict with timeline, costs, comparison, decisions, warnings and checklist
    """
    today = evaluation_date or date.today()
    if data.employer_size is not None and data.employer_size not in EMPLOYER_SIZES:
        logger.warning(f"Unknown employer size '{data.employer_size}', ignoring")
        data = replace(data, employer_size=None)

    timeline = calculate_timeline(data, today)
    costs = calculate_costs(data)

    return {
        'timeline': timeline,
        'costs': costs,
        'comparison': compare_with_current_coverage(data, costs),
        'decisions': generate_decisions(data),
        'warnings': generate_warnings(data, timeline),
        'checklist': generate_checklist(data, timeline),
    }
