"""
COBRA Helper

COBRA continuation coverage: premium, worth-it analysis, a decision
flowchart and the best date to drop COBRA for a marketplace plan.

COBRA charges the full plan premium (employer + employee share) plus a
2% administrative fee, for up to 18 months after separation.
"""

from datetime import date
from typing import Dict, List, Optional

from coverage_eval import CostRange
from coverage_eval.utils.calculations import add_months, months_between
from coverage_eval.utils.formatting import format_currency, format_date, pluralize

COBRA_ADMIN_FEE_MULTIPLIER = 1.02
COBRA_MAX_MONTHS = 18

# Employee-share premiums are typically a fraction of the full premium
EMPLOYEE_SHARE_TO_FULL_PREMIUM = 3.5
COBRA_ESTIMATE_SPREAD = 0.1

SHORT_TERM_MONTHS = 3
AFFORDABLE_COBRA_RATIO = 0.8


def calculate_cobra_premium(full_monthly_premium: float) -> float:
    """Monthly COBRA premium: the full premium plus the 2% admin fee."""
    return full_monthly_premium * COBRA_ADMIN_FEE_MULTIPLIER


def get_cobra_months_remaining(months_since_job_loss: int) -> int:
    return max(0, COBRA_MAX_MONTHS - int(months_since_job_loss))


def analyze_cobra(
    current_monthly_cost: float,
    months_since_job_loss: int,
    has_preexisting_conditions: bool,
    alternative_cost: CostRange,
    full_monthly_premium: Optional[float] = None
) -> Dict:
    """
    Decide whether COBRA is worth continuing.

    Args:
        current_monthly_cost: Employee share paid while employed
        months_since_job_loss: Whole months since coverage ended
        has_preexisting_conditions: Ongoing treatment or conditions
        alternative_cost: Monthly marketplace cost range
        full_monthly_premium: Full plan premium, when known. Otherwise it is
            estimated from the employee share.

    Returns:
        Dict with is_worth_it, months_remaining, estimated_monthly_cost,
        pros, cons, alternatives, recommendation and warnings
    """
    months_remaining = get_cobra_months_remaining(months_since_job_loss)

    if full_monthly_premium is not None:
        cobra_cost = calculate_cobra_premium(full_monthly_premium)
    else:
        cobra_cost = calculate_cobra_premium(current_monthly_cost * EMPLOYEE_SHARE_TO_FULL_PREMIUM)
    estimated = CostRange(cobra_cost * (1 - COBRA_ESTIMATE_SPREAD), cobra_cost * (1 + COBRA_ESTIMATE_SPREAD))

    pros = [
        'Same coverage and doctors as before',
        'No waiting period or pre-existing condition exclusions',
        'Familiar plan - you know how it works',
        'Good for short-term coverage while job searching',
    ]
    cons = [
        f"Very expensive - typically {format_currency(cobra_cost)}/month or more",
        'No employer contribution - you pay 100% + 2% admin fee',
        f"Only available for {months_remaining} more months",
        'Premiums can increase annually',
    ]
    alternatives = [
        'ACA Marketplace plans (income-based subsidies available)',
        "Spouse's employer plan (special enrollment period)",
        'Short-term health insurance (limited coverage)',
        'Medicaid (if income qualifies)',
    ]
    warnings = []

    if 1 <= months_remaining <= SHORT_TERM_MONTHS:
        is_worth_it = True
        recommendation = (
            f"COBRA may be worth it for {pluralize(months_remaining, 'month')} if you're between jobs or "
            f"waiting for new employer coverage. Short-term is easier than switching plans."
        )
    elif has_preexisting_conditions and months_remaining > 0:
        is_worth_it = True
        recommendation = (
            'COBRA recommended if you have ongoing treatment or prescriptions that work well with your '
            'current plan. Continuity of care is valuable.'
        )
        warnings.append('Consider switching to ACA plan during next Open Enrollment to save money')
    elif estimated.high < alternative_cost.low * AFFORDABLE_COBRA_RATIO:
        is_worth_it = True
        recommendation = (
            'COBRA is unusually affordable compared to alternatives - this is rare but worth taking advantage of.'
        )
    else:
        is_worth_it = False
        monthly_difference = abs(cobra_cost - alternative_cost.average)
        recommendation = (
            f"COBRA is NOT recommended. At ~{format_currency(cobra_cost)}/month, you'll save "
            f"{format_currency(monthly_difference)}/month by switching to an ACA Marketplace plan with similar coverage."
        )
        cons.append(f"Could save {format_currency(monthly_difference * 12)}/year with marketplace plan")

    if 0 < months_remaining <= SHORT_TERM_MONTHS:
        warnings.append(
            f"URGENT: Only {pluralize(months_remaining, 'month')} of COBRA remaining - "
            f"enroll in alternative coverage NOW"
        )
    if months_remaining == 0:
        warnings.append('COBRA has expired - must find alternative coverage immediately')

    return {
        'is_worth_it': is_worth_it,
        'months_remaining': months_remaining,
        'estimated_monthly_cost': estimated.to_dict(),
        'pros': pros,
        'cons': cons,
        'alternatives': alternatives,
        'recommendation': recommendation,
        'warnings': warnings,
    }


def get_cobra_decision_flowchart() -> List[Dict]:
    """Yes/no questions walked in order; each 'no' falls through to the next."""
    return [
        {
            'question': 'Do you have a new job with health insurance starting soon (within 1-3 months)?',
            'yes_path': 'Consider COBRA for short-term continuity',
            'no_path': 'Continue to next question',
        },
        {
            'question': 'Are you in active treatment for a serious condition?',
            'yes_path': 'COBRA may be worth it to continue current care',
            'no_path': 'Continue to next question',
        },
        {
            'question': 'Would you qualify for marketplace subsidies (income under $60k individual/$120k family)?',
            'yes_path': 'Marketplace likely cheaper - switch ASAP',
            'no_path': 'Continue to next question',
        },
        {
            'question': 'Can you afford $1,500-2,000/month for COBRA?',
            'yes_path': 'COBRA possible but expensive - compare marketplace',
            'no_path': 'COBRA not affordable - explore marketplace and Medicaid',
        },
    ]


def calculate_cobra_drop_date(job_loss_date: date, next_open_enrollment: date) -> Dict:
    """
    When to leave COBRA.

    Open Enrollment before COBRA runs out is the switch point; otherwise
    COBRA exhaustion itself opens a Special Enrollment Period.
    """
    cobra_end = add_months(job_loss_date, COBRA_MAX_MONTHS)

    if next_open_enrollment < cobra_end:
        return {
            'drop_date': next_open_enrollment,
            'months_on_cobra': months_between(job_loss_date, next_open_enrollment),
            'reasoning': (
                f"Drop COBRA during Open Enrollment ({format_date(next_open_enrollment)}) to switch to a "
                f"marketplace plan and save money."
            ),
        }

    return {
        'drop_date': cobra_end,
        'months_on_cobra': COBRA_MAX_MONTHS,
        'reasoning': (
            f"COBRA coverage ends {format_date(cobra_end)}. You'll have a Special Enrollment Period to switch "
            f"to marketplace coverage at that time."
        ),
    }
