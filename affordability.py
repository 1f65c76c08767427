"""
Employer Coverage Affordability Analysis

Provides functionality to:
- Estimate the employee's share of an employer plan after the employer contribution
- Apply the IRS affordability test to that share
- Compare it with post-subsidy marketplace cost and recommend keep vs switch

IRS Affordability Safe Harbor (2026):
Employer coverage is considered "affordable" if the employee's required
contribution ≤ 9.96% of household income. Households offered affordable
employer coverage generally cannot claim marketplace subsidies.
"""

from typing import Dict, Optional

from constants import AFFORDABILITY_THRESHOLD_2026
from coverage_eval import CostRange
from coverage_eval.utils.formatting import format_currency
from subsidy_utils import estimate_annual_income

# Costs within this many dollars per month favour keeping the employer plan
KEEP_TOLERANCE = 50

# Employer plan list price before contribution (monthly)
EMPLOYER_PLAN_SINGLE_COST = 800
EMPLOYER_PLAN_TWO_PERSON_COST = 1500
EMPLOYER_PLAN_ADDITIONAL_MEMBER_COST = 300


class EmployerPlanComparator:
    """Compare employer-sponsored coverage against the marketplace"""

    @staticmethod
    def estimate_employer_plan_cost(employer_contribution: float, household_size: int) -> float:
        """
        Employee's monthly share of the employer plan.

        Args:
            employer_contribution: Employer's monthly contribution
            household_size: Covered members

        Returns:
            max(0, list price - contribution)
        """
        if household_size <= 1:
            list_price = EMPLOYER_PLAN_SINGLE_COST
        else:
            list_price = EMPLOYER_PLAN_TWO_PERSON_COST + (household_size - 2) * EMPLOYER_PLAN_ADDITIONAL_MEMBER_COST
        return max(0.0, list_price - (employer_contribution or 0))

    @staticmethod
    def compare(
        employer_contribution: float,
        household_size: int,
        marketplace_cost_after_subsidy: CostRange,
        annual_income: Optional[float] = None,
        income_range: Optional[str] = None,
    ) -> Dict:
        """
        Compare the employer plan with post-subsidy marketplace cost.

        Returns:
            Dict with:
            {
                'is_affordable': bool,
                'employer_plan_cost_after_contribution': float,
                'marketplace_cost_after_subsidy': {'low', 'high'},
                'decision': 'keep' | 'switch' | 'compare',
                'recommendation': str,
                'monthly_savings': float or None,
                'explanation': str,
                'action_items': list
            }

        Logic:
            1. Employee share = list price - employer contribution
            2. Affordable when share ≤ 9.96% of monthly income
            3. Unaffordable -> switch (marketplace subsidies unlock)
            4. Affordable and cheaper than marketplace average -> keep
            5. Affordable but marketplace cheaper by more than $50 -> compare
            6. Otherwise keep (continuity)
        """
        estimated_income = estimate_annual_income(annual_income, income_range)
        employer_cost = EmployerPlanComparator.estimate_employer_plan_cost(
            employer_contribution, household_size
        )

        monthly_income = estimated_income / 12
        affordability_limit = monthly_income * AFFORDABILITY_THRESHOLD_2026
        is_affordable = employer_cost <= affordability_limit

        avg_marketplace = marketplace_cost_after_subsidy.average
        threshold_pct = f"{AFFORDABILITY_THRESHOLD_2026 * 100:.2f}%"
        action_items = []

        if not is_affordable:
            decision = 'switch'
            recommendation = 'Consider switching to marketplace coverage'
            monthly_savings = employer_cost - avg_marketplace
            if monthly_savings > 0:
                savings_text = (
                    f"Switching to the marketplace could save you approximately "
                    f"{format_currency(monthly_savings)}/month."
                )
            else:
                savings_text = 'The marketplace may offer comparable coverage at a similar or lower cost.'
            explanation = (
                f'Your employer coverage is considered "unaffordable" under ACA rules because '
                f'your share of the premium ({format_currency(employer_cost)}/month) exceeds {threshold_pct} '
                f'of your household income. This means you CAN qualify for marketplace subsidies even though '
                f'you have employer coverage available. {savings_text}'
            )
            action_items.extend([
                'Shop on HealthCare.gov or your state marketplace',
                'Compare coverage levels - employer vs. marketplace plans',
                'Check if your doctors are in marketplace plan networks',
                'Consider employer plan benefits (coverage quality, deductibles) vs. price savings',
            ])
        elif employer_cost < avg_marketplace:
            decision = 'keep'
            recommendation = "Keep your employer coverage - it's your best value"
            monthly_savings = avg_marketplace - employer_cost
            share_of_income = (employer_cost / monthly_income * 100) if monthly_income > 0 else 0.0
            explanation = (
                f"Your employer coverage is affordable (costs only {share_of_income:.1f}% of your income, "
                f"below the {threshold_pct} threshold) and likely your best value. "
                f"After your employer's contribution of {format_currency(employer_contribution)}/month, "
                f"you pay just {format_currency(employer_cost)}/month, which is about "
                f"{format_currency(monthly_savings)}/month less than marketplace options."
            )
            action_items.extend([
                'Confirm your employer plan covers all household members you need',
                "Review your employer plan's coverage details and network",
                'Understand your deductible and out-of-pocket maximum',
                'Take advantage of any employer HSA or FSA contributions',
            ])
        elif employer_cost - avg_marketplace > KEEP_TOLERANCE:
            decision = 'compare'
            monthly_savings = employer_cost - avg_marketplace
            recommendation = 'Compare marketplace plans - you might save money'
            explanation = (
                f"Your employer coverage is affordable under ACA rules, but marketplace plans "
                f"might be {format_currency(monthly_savings)}/month cheaper. However, since your employer "
                f'plan is "affordable," you may NOT be eligible for marketplace subsidies. '
                f"Double-check the subsidy rules with a marketplace navigator or HealthCare.gov."
            )
            action_items.extend([
                'Use marketplace calculator to check exact subsidy eligibility',
                'Compare coverage quality and networks carefully',
                'Factor in employer HSA/FSA contributions if available',
                'Consult with a health insurance navigator for personalized guidance',
            ])
        else:
            decision = 'keep'
            monthly_savings = None
            recommendation = 'Keep your employer coverage'
            explanation = (
                "Your employer coverage is affordable and competitively priced. The marketplace might be "
                "slightly cheaper, but since your employer plan meets affordability standards, you likely "
                "won't qualify for marketplace subsidies. Stick with your employer plan for simplicity."
            )
            action_items.extend([
                'Review your employer plan benefits to maximize value',
                'Contribute to employer HSA or FSA if available',
                "Understand your employer plan's network and coverage",
            ])

        return {
            'is_affordable': is_affordable,
            'employer_plan_cost_after_contribution': employer_cost,
            'marketplace_cost_after_subsidy': marketplace_cost_after_subsidy.to_dict(),
            'decision': decision,
            'recommendation': recommendation,
            'monthly_savings': round(monthly_savings, 2) if monthly_savings is not None else None,
            'explanation': explanation,
            'action_items': action_items,
        }


def compare_employer_to_marketplace(
    has_employer_insurance: bool,
    employer_contribution: float,
    household_size: int,
    marketplace_cost_after_subsidy: Optional[CostRange],
    annual_income: Optional[float] = None,
    income_range: Optional[str] = None,
) -> Optional[Dict]:
    """
    Employer-vs-marketplace comparison, or None when it does not apply.

    Skipped when the household has no employer offer or no subsidy context.
    """
    if not has_employer_insurance or marketplace_cost_after_subsidy is None:
        return None
    return EmployerPlanComparator.compare(
        employer_contribution,
        household_size,
        marketplace_cost_after_subsidy,
        annual_income=annual_income,
        income_range=income_range,
    )
