"""
ACA Premium Tax Credit (Subsidy) Calculator

Determines Medicaid and premium tax credit eligibility for a household and
sizes the monthly subsidy against a benchmark (SLCSP) premium.

Eligibility is one state machine keyed on income as % of FPL:
- Below the state's Medicaid threshold -> Medicaid (subsidy short-circuits)
- Medicaid threshold up to 400% FPL    -> premium tax credit
- Above 400% FPL                       -> no subsidy

Key concepts:
- SLCSP (Second Lowest Cost Silver Plan): benchmark premium for the subsidy
- FPL (Federal Poverty Level): determines the expected contribution
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from constants import BENCHMARK_FALLBACK_PER_PERSON, MEDICAID_EXPANSION_FPL, PTC_MAX_FPL
from coverage_eval.services.benchmark_service import BenchmarkQuote, BenchmarkService
from coverage_eval.utils.formatting import format_currency
from subsidy_utils import (
    calculate_fpl_percentage,
    calculate_monthly_subsidy,
    estimate_annual_income,
    get_expected_contribution_percentage,
    get_fpl_for_household,
    get_medicaid_threshold,
    has_medicaid_expansion,
    is_medicaid_eligible,
    is_ptc_eligible,
)

logger = logging.getLogger(__name__)


@dataclass
class SubsidyAnalysis:
    """Result of subsidy analysis for a household."""
    medicaid_eligible: bool
    subsidy_eligible: bool
    estimated_income: float
    household_size: int
    household_fpl: float
    fpl_percentage: float
    monthly_subsidy: float
    benchmark_premium: float
    benchmark_source: str  # 'real' or 'estimated'

    expected_contribution_pct: Optional[float] = None
    expected_monthly_contribution: Optional[float] = None
    medicaid_state: bool = False
    medicaid_threshold: int = MEDICAID_EXPANSION_FPL
    benchmark_plan_name: Optional[str] = None

    explanation: str = ''
    action_items: List[str] = field(default_factory=list)

    @property
    def is_real_slcsp(self) -> bool:
        return self.benchmark_source == 'real'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'medicaid_eligible': self.medicaid_eligible,
            'subsidy_eligible': self.subsidy_eligible,
            'estimated_income': self.estimated_income,
            'household_size': self.household_size,
            'household_fpl': self.household_fpl,
            'fpl_percentage': round(self.fpl_percentage, 1),
            'monthly_subsidy': round(self.monthly_subsidy, 2),
            'benchmark_premium': self.benchmark_premium,
            'benchmark_source': self.benchmark_source,
            'is_real_slcsp': self.is_real_slcsp,
            'benchmark_plan_name': self.benchmark_plan_name,
            'expected_contribution_pct': self.expected_contribution_pct,
            'expected_monthly_contribution': self.expected_monthly_contribution,
            'medicaid_state': self.medicaid_state,
            'medicaid_threshold': self.medicaid_threshold,
            'explanation': self.explanation,
            'action_items': list(self.action_items),
        }


def _medicaid_narrative(state: str, fpl_percentage: float, threshold: int) -> tuple:
    where = f" in {state}" if state else ''
    explanation = (
        f"Based on your household income, you may qualify for Medicaid{where}. "
        f"Your income is approximately {fpl_percentage:.0f}% of the Federal Poverty Level, "
        f"which is below the {threshold}% Medicaid threshold. "
        f"Medicaid provides free or low-cost health coverage."
    )
    action_items = [
        'You likely qualify for free or low-cost Medicaid coverage',
        f"Apply through your state Medicaid agency{where} or HealthCare.gov",
        'Medicaid usually costs $0-3/month with no deductibles',
        'You can apply any time of year (no waiting for open enrollment)',
    ]
    return explanation, action_items


def _subsidy_narrative(fpl_percentage: float, monthly_subsidy: float, expected_pct: float) -> tuple:
    explanation = (
        f"Based on your household income (approximately {fpl_percentage:.0f}% of FPL), "
        f"you likely qualify for premium tax credits. Your estimated subsidy could be around "
        f"{format_currency(monthly_subsidy)}/month, which would reduce your monthly premium costs. "
        f"You should pay no more than {expected_pct * 100:.1f}% of your income for the benchmark plan."
    )
    action_items = [
        'Shop on HealthCare.gov or your state marketplace to see exact subsidy amounts',
        'Compare plans after subsidy - you may find very affordable options',
        'Bring proof of income when applying (tax returns, pay stubs)',
    ]
    return explanation, action_items


def _over_limit_narrative(fpl_percentage: float) -> tuple:
    explanation = (
        f"Based on your household income (approximately {fpl_percentage:.0f}% of FPL), "
        f"you do not qualify for premium tax credits as your income exceeds {PTC_MAX_FPL}% "
        f"of the Federal Poverty Level. You can still purchase marketplace plans at full price, "
        f"or explore employer coverage if available."
    )
    action_items = [
        'Compare marketplace plans for the best value',
        'Check if employer coverage is available and more affordable',
        'Consider high-deductible plans with HSA for tax advantages',
    ]
    return explanation, action_items


def calculate_subsidy(
    num_adults: int,
    num_children: int,
    states: List[str],
    annual_income: Optional[float] = None,
    income_range: Optional[str] = None,
    benchmark: Optional[BenchmarkQuote] = None,
    benchmark_per_person: Optional[float] = None,
) -> SubsidyAnalysis:
    """
    Calculate Medicaid / premium tax credit eligibility and monthly subsidy.

    Args:
        num_adults: Adults in the household
        num_children: Children in the household
        states: Residence states; the first is treated as primary
        annual_income: Exact income (wins over income_range)
        income_range: Income bracket key
        benchmark: Benchmark quote from BenchmarkService (optional)
        benchmark_per_person: Estimate used when no quote is supplied

    Returns:
        SubsidyAnalysis
    """
    household_size = max(1, num_adults + num_children)
    primary_state = states[0].upper() if states and states[0] else ''
    if not primary_state:
        logger.warning(f"No states provided for subsidy calculation (household of {household_size})")

    if benchmark is None:
        service = BenchmarkService(
            fallback_per_person=benchmark_per_person or BENCHMARK_FALLBACK_PER_PERSON
        )
        benchmark = service.estimate(household_size)

    estimated_income = estimate_annual_income(annual_income, income_range)
    household_fpl = get_fpl_for_household(household_size, primary_state or None)
    fpl_percentage = calculate_fpl_percentage(estimated_income, household_size, primary_state or None)
    threshold = get_medicaid_threshold(primary_state or None)

    medicaid_eligible = is_medicaid_eligible(fpl_percentage, primary_state or None)
    subsidy_eligible = is_ptc_eligible(fpl_percentage, primary_state or None)

    expected_pct = get_expected_contribution_percentage(fpl_percentage)
    monthly_subsidy = 0.0
    expected_monthly = None
    if subsidy_eligible:
        monthly_subsidy = calculate_monthly_subsidy(
            benchmark.monthly_premium, estimated_income, fpl_percentage
        )
        expected_monthly = round(estimated_income * (expected_pct or 0.0) / 12, 2)

    if medicaid_eligible:
        explanation, action_items = _medicaid_narrative(primary_state, fpl_percentage, threshold)
    elif subsidy_eligible:
        explanation, action_items = _subsidy_narrative(fpl_percentage, monthly_subsidy, expected_pct or 0.0)
    else:
        explanation, action_items = _over_limit_narrative(fpl_percentage)

    return SubsidyAnalysis(
        medicaid_eligible=medicaid_eligible,
        subsidy_eligible=subsidy_eligible,
        estimated_income=estimated_income,
        household_size=household_size,
        household_fpl=household_fpl,
        fpl_percentage=fpl_percentage,
        monthly_subsidy=monthly_subsidy,
        benchmark_premium=benchmark.monthly_premium,
        benchmark_source='real' if benchmark.is_real else 'estimated',
        expected_contribution_pct=expected_pct if subsidy_eligible else None,
        expected_monthly_contribution=expected_monthly,
        medicaid_state=has_medicaid_expansion(primary_state),
        medicaid_threshold=threshold,
        benchmark_plan_name=benchmark.plan_name,
        explanation=explanation,
        action_items=action_items,
    )


async def calculate_subsidy_with_benchmark(
    num_adults: int,
    num_children: int,
    states: List[str],
    zip_code: Optional[str],
    ages: List[int],
    benchmark_service: BenchmarkService,
    annual_income: Optional[float] = None,
    income_range: Optional[str] = None,
) -> SubsidyAnalysis:
    """
    Calculate the subsidy after resolving the benchmark premium.

    A real benchmark is requested only with a valid ZIP and a complete age list;
    otherwise the service returns its per-person estimate.
    """
    household_size = max(1, num_adults + num_children)
    state = states[0] if states else ''
    quote = await benchmark_service.get_benchmark(
        state, zip_code, ages, household_size=household_size
    )
    return calculate_subsidy(
        num_adults,
        num_children,
        states,
        annual_income=annual_income,
        income_range=income_range,
        benchmark=quote,
    )
