"""
Recommendation Generators

Builds the base coverage recommendation for a household. Each household
scenario (Medicare, Mixed, Non-Medicare) is one entry in a strategy table
holding its cost, coverage-score, plan and reasoning functions; the
scenario is selected once and the table entry does the rest.

Every generator is total: a household with no members still gets a
minimal, well-formed recommendation.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from alternatives import (
    get_medicare_alternatives,
    get_mixed_household_alternatives,
    get_non_medicare_alternatives,
)
from constants import (
    BUDGET_RANGES,
    CONCIERGE_COSTS,
    COVERAGE_SCORES,
    DEFAULT_BUDGET,
    INSURANCE_COSTS,
    MAX_RATED_CHILDREN,
)
from coverage_eval import CostRange, HouseholdContext, ScenarioType
from coverage_eval.utils.formatting import format_currency, format_states, pluralize
from coverage_scoring import calculate_coverage_score
from household_schema import HouseholdProfile
from state_cost_index import DEFAULT_STATE_COST_INDEX, StateCostIndex
from utilization_scorer import (
    calculate_utilization_score,
    get_recommended_metal_level,
    get_utilization_cost_multiplier,
)


# =============================================================================
# INPUTS
# =============================================================================

@dataclass
class RecommendationInputs:
    """Everything a strategy needs, computed once per analysis."""
    profile: HouseholdProfile
    context: HouseholdContext
    coverage_score: int
    health: Dict
    cost_index: StateCostIndex

    @property
    def states(self) -> List[str]:
        return self.context.states

    @property
    def states_list(self) -> str:
        return format_states(self.states)

    @property
    def state_count(self) -> int:
        return len(self.states)


# =============================================================================
# HEALTH PROFILE
# =============================================================================

def analyze_health_profile(profile: HouseholdProfile) -> Dict:
    """
    Summarize the health answers that shape plan guidance.

    Returns:
        Dict with is_high_utilization, has_provider_preference,
        has_chronic_conditions, prescription_count and the utilization score
    """
    health = profile.health
    utilization = calculate_utilization_score(health)
    has_chronic = health.chronic_condition_count > 0
    return {
        'is_high_utilization': (
            has_chronic
            or health.prescription_count == '4-or-more'
            or utilization['level'] in ('high', 'very-high')
        ),
        'has_provider_preference': health.provider_preference == 'specific-doctors',
        'has_chronic_conditions': has_chronic,
        'prescription_count': health.prescription_count or 'none',
        'utilization': utilization,
    }


def get_health_specific_actions(health_summary: Dict, profile: HouseholdProfile) -> List[str]:
    """Action items driven by health answers."""
    health = profile.health
    actions = []

    if health_summary['is_high_utilization']:
        actions.append('Check if your medications are covered by the plan formulary')
        actions.append('Verify your current doctors and specialists are in-network')
        actions.append('Compare total cost of care (premiums + deductible + copays), not just monthly premiums')

    if health_summary['has_chronic_conditions']:
        actions.append('Look for plans with low specialist copays and no referral requirements')
        actions.append('Verify coverage for disease management programs and preventive care')

    if health_summary['has_provider_preference']:
        actions.append('Call your preferred doctors to confirm they accept the insurance plan')
        actions.append('Check provider directory online before enrolling')

    if health.takes_specialty_meds:
        actions.append('CRITICAL: Verify specialty medication coverage and tier placement')
        actions.append('Ask about specialty pharmacy requirements and prior authorization')

    if health.monthly_medication_cost in ('over-1000', '500-1000'):
        actions.append('Compare prescription drug coverage carefully - this is a major cost driver')
        actions.append('Look for plans with lower medication tiers and copays')

    if (health.monthly_medication_cost and health.monthly_medication_cost != 'under-50'
            and not health.uses_mail_order_pharmacy):
        actions.append('Consider enrolling in mail-order pharmacy for 90-day supply discounts')

    if health.planned_procedures:
        actions.append('IMPORTANT: Get pre-authorization for planned procedures before enrolling')
        actions.append('Consider lower deductible plans to reduce upfront costs')

    if not health_summary['is_high_utilization'] and health_summary['prescription_count'] == 'none':
        actions.append('Consider HDHP + HSA for tax savings and lower premiums')

    return actions


def get_health_based_reasoning(health_summary: Dict) -> str:
    if health_summary['is_high_utilization']:
        return ('Given your health needs, prioritize plans with lower deductibles and good '
                'specialist access over the lowest premiums.')
    if health_summary['has_provider_preference']:
        return 'Since you have preferred doctors, verify they are in-network before choosing any plan.'
    if health_summary['prescription_count'] == 'none':
        return ("Since you're generally healthy, you may benefit from a high-deductible plan "
                "with HSA for significant premium savings.")
    return ''


# =============================================================================
# BUDGET
# =============================================================================

def check_budget_compatibility(budget: Optional[str], estimated_cost: CostRange) -> Optional[str]:
    """
    Note when the budget bracket cannot cover the low estimate.

    Returns:
        Subsidy note when the budget is too low, concierge note when the
        household chose 'not-sure', otherwise None
    """
    budget = budget or DEFAULT_BUDGET
    max_budget = BUDGET_RANGES.get(budget, BUDGET_RANGES[DEFAULT_BUDGET])

    if max_budget < estimated_cost.low:
        return ('Your budget is lower than estimated costs. Check healthcare.gov for ACA subsidies - '
                'you may qualify for income-based assistance.')

    if budget == 'not-sure':
        return (f"Consider concierge medicine add-on (${CONCIERGE_COSTS['LOW']}-"
                f"{CONCIERGE_COSTS['HIGH']}/month) for enhanced service and immediate access.")
    return None


# =============================================================================
# MEDICARE STRATEGY
# =============================================================================

def _medicare_cost(inputs: RecommendationInputs) -> CostRange:
    count = inputs.context.medicare_eligible_count
    base = CostRange(
        INSURANCE_COSTS['MEDICARE_PER_PERSON_LOW'] * count,
        INSURANCE_COSTS['MEDICARE_PER_PERSON_HIGH'] * count,
    )
    return inputs.cost_index.adjust_cost_range(base, inputs.states)


def _medicare_plan(inputs: RecommendationInputs) -> Tuple[str, str, str]:
    count = inputs.context.medicare_eligible_count
    return (
        'Basic Medicare + Extra Coverage',
        'Original Medicare + Medigap',
        f"{count} Medicare-eligible {'adult' if count == 1 else 'adults'}",
    )


def _medicare_reasoning(inputs: RecommendationInputs) -> str:
    if inputs.state_count > 2:
        reasoning = (
            f"Medicare works everywhere with any doctor across all {inputs.state_count} of your states. "
            f"Extra Coverage (Medigap Plan G or N) covers what Medicare doesn't and works everywhere. "
            f"Great for people with homes in multiple states."
        )
    else:
        reasoning = (
            "Medicare works everywhere with any doctor. Extra Coverage (Medigap Plan G or N) covers "
            "what Medicare doesn't and works in any state. Great if you split your time between states."
        )
    what_this_means = (
        "What this means:\n"
        "• Any doctor who accepts Medicare, in every state\n"
        "• No referrals needed to see specialists\n"
        "• Predictable costs with few surprise bills"
    )
    return _with_health_reasoning(reasoning, inputs) + '\n\n' + what_this_means


def _medicare_actions(inputs: RecommendationInputs) -> List[str]:
    health = inputs.health
    actions = [
        'Enroll in Medicare Part A and Part B during your enrollment window',
        'Compare Medigap Plan G and Plan N quotes for your ZIP code',
    ]
    if health['is_high_utilization'] or health['prescription_count'] != 'none':
        actions.append('IMPORTANT: Choose a Part D plan that covers all of your prescriptions')
    else:
        actions.append('Optional: Consider Part D if you take any prescriptions')
    actions.append('Call each doctor\'s office and ask: "Do you accept Medicare?"')
    actions.append(f'Verify coverage in all your states: {inputs.states_list}')
    actions.extend(get_health_specific_actions(health, inputs.profile))
    return actions


def _medicare_alternatives(inputs: RecommendationInputs) -> List[Dict]:
    return get_medicare_alternatives(inputs.context.medicare_eligible_count, inputs.states)


# =============================================================================
# MIXED HOUSEHOLD STRATEGY
# =============================================================================

def _mixed_cost(inputs: RecommendationInputs) -> CostRange:
    ctx = inputs.context
    base = CostRange(
        ctx.medicare_eligible_count * INSURANCE_COSTS['MEDICARE_PER_PERSON_LOW']
        + ctx.non_medicare_adult_count * INSURANCE_COSTS['ADULT_PPO_LOW']
        + ctx.num_children * INSURANCE_COSTS['CHILD_LOW'],
        ctx.medicare_eligible_count * INSURANCE_COSTS['MEDICARE_PER_PERSON_HIGH']
        + ctx.non_medicare_adult_count * INSURANCE_COSTS['ADULT_PPO_HIGH']
        + ctx.num_children * INSURANCE_COSTS['CHILD_HIGH'],
    )
    return inputs.cost_index.adjust_cost_range(base, inputs.states)


def _mixed_plan(inputs: RecommendationInputs) -> Tuple[str, str, str]:
    ctx = inputs.context
    children = pluralize(ctx.num_children, 'child', 'children')
    return (
        'Medicare + Extra Coverage for seniors, Nationwide Flexible Plan for others',
        'Medicare + Medigap / PPO',
        f"{ctx.medicare_eligible_count} Medicare-eligible, "
        f"{ctx.non_medicare_adult_count} under-65 adult(s), {children}",
    )


def _mixed_reasoning(inputs: RecommendationInputs) -> str:
    if inputs.state_count > 2:
        reasoning = (
            f"Medicare with Extra Coverage for seniors works everywhere. Nationwide Flexible Plan for "
            f"younger members gives access to doctors in all {inputs.state_count} of your states."
        )
    else:
        reasoning = (
            "Medicare with Extra Coverage for seniors works everywhere. Nationwide Flexible Plan for "
            "younger members works in both states."
        )
    what_this_means = (
        "What this means:\n"
        "• Seniors get Medicare + Extra Coverage (works anywhere)\n"
        "• Working-age adults/children get Nationwide Flexible Plan\n"
        "• Everyone covered in all your states"
    )
    return _with_health_reasoning(reasoning, inputs) + '\n\n' + what_this_means


def _mixed_actions(inputs: RecommendationInputs) -> List[str]:
    ctx = inputs.context
    actions = [f'Medicare + Medigap for {ctx.medicare_eligible_count} member(s) age 65+']
    ppo_item = (f'National PPO (UnitedHealthcare or Cigna) for '
                f'{ctx.non_medicare_adult_count} under-65 adult(s)')
    if inputs.health['is_high_utilization']:
        ppo_item += ' - PPO offers better specialist access'
    actions.append(ppo_item)
    if ctx.num_children > 0:
        actions.append(
            f"Add {pluralize(ctx.num_children, 'child', 'children')} to the PPO family plan"
        )
    actions.append('Consider family plan vs individual plans - compare total costs')
    actions.append(f'Verify PPO network coverage in all your states: {inputs.states_list}')
    actions.extend(get_health_specific_actions(inputs.health, inputs.profile))
    return actions


def _mixed_alternatives(inputs: RecommendationInputs) -> List[Dict]:
    ctx = inputs.context
    return get_mixed_household_alternatives(
        ctx.medicare_eligible_count, ctx.non_medicare_adult_count, ctx.num_children, inputs.states
    )


# =============================================================================
# NON-MEDICARE STRATEGY
# =============================================================================

def _non_medicare_base_cost(ctx: HouseholdContext) -> CostRange:
    adults, children = ctx.num_adults, ctx.num_children

    if ctx.household_size == 1:
        return CostRange(INSURANCE_COSTS['ADULT_PPO_LOW'], INSURANCE_COSTS['ADULT_PPO_HIGH'])

    if adults == 2 and children == 0:
        return CostRange(INSURANCE_COSTS['COUPLE_LOW'], INSURANCE_COSTS['COUPLE_HIGH'])

    if children > 0:
        additional_kids = max(0, min(children, MAX_RATED_CHILDREN) - 2)
        low = INSURANCE_COSTS['FAMILY_BASE_LOW'] + additional_kids * INSURANCE_COSTS['ADDITIONAL_CHILD_LOW']
        high = INSURANCE_COSTS['FAMILY_BASE_HIGH'] + additional_kids * INSURANCE_COSTS['ADDITIONAL_CHILD_HIGH']
        if adults == 1:
            low -= INSURANCE_COSTS['SINGLE_PARENT_ADJUSTMENT_LOW']
            high -= INSURANCE_COSTS['SINGLE_PARENT_ADJUSTMENT_HIGH']
        return CostRange(low, high)

    return CostRange(
        adults * INSURANCE_COSTS['ADULT_PPO_LOW'],
        adults * INSURANCE_COSTS['ADULT_PPO_HIGH'],
    )


def _non_medicare_cost(inputs: RecommendationInputs) -> CostRange:
    adjusted = inputs.cost_index.adjust_cost_range(_non_medicare_base_cost(inputs.context), inputs.states)
    multiplier = get_utilization_cost_multiplier(inputs.health['utilization'])
    return adjusted.scaled(multiplier)


def _non_medicare_plan(inputs: RecommendationInputs) -> Tuple[str, str, str]:
    ctx = inputs.context
    high_use = inputs.health['is_high_utilization']
    suffix = ' (Lower Deductible)' if high_use else ''

    if ctx.household_size == 0:
        name, breakdown = 'Coverage review needed', 'No household members entered'
    elif ctx.household_size == 1:
        name = f'Nationwide Flexible Plan{suffix}'
        breakdown = '1 adult' if ctx.num_adults == 1 else '1 child'
    elif ctx.num_adults == 2 and ctx.num_children == 0:
        name, breakdown = f'Nationwide Flexible Plan for Couples{suffix}', '2 adults'
    elif ctx.num_children > 0:
        name = f'Nationwide Flexible Family Plan{suffix}'
        breakdown = (f"{pluralize(ctx.num_adults, 'adult')}, "
                     f"{pluralize(ctx.num_children, 'child', 'children')}")
    else:
        name = f'Nationwide Flexible Plan for {ctx.num_adults} adults'
        breakdown = f'{ctx.num_adults} adults'

    if not high_use and inputs.health['prescription_count'] == 'none':
        plan_type = 'HDHP + HSA'
    else:
        plan_type = 'PPO'
    return name, plan_type, breakdown


def _non_medicare_reasoning(inputs: RecommendationInputs) -> str:
    ctx = inputs.context
    many = inputs.state_count > 2
    where = f'all {inputs.state_count} of your states' if many else inputs.states_list

    if ctx.household_size == 0:
        return 'Add at least one household member to receive a tailored recommendation.'
    if ctx.household_size == 1:
        reasoning = f'A flexible plan lets you see any doctor in {where} without needing permission.'
    elif ctx.num_adults == 2 and ctx.num_children == 0:
        reasoning = f'A couples plan gives complete coverage for both of you in {where} with any doctor you choose.'
    elif ctx.num_children > 0:
        reasoning = f'A family plan covers everyone in your household with access to doctors in {where}.'
    else:
        reasoning = 'Flexible plans for each adult give complete multi-state coverage.'

    what_this_means = (
        "What this means:\n"
        "• See any in-network doctor in every state you live in\n"
        "• No referrals needed for specialists\n"
        "• Out-of-network care is still partly covered"
    )
    return _with_health_reasoning(reasoning, inputs) + '\n\n' + what_this_means


def _non_medicare_actions(inputs: RecommendationInputs) -> List[str]:
    profile = inputs.profile
    health = profile.health
    utilization = inputs.health['utilization']
    actions = [
        'Shop on HealthCare.gov or your state marketplace during Open Enrollment (Nov 1 - Jan 15)',
    ]

    if utilization['reasoning']:
        actions.append('Your Healthcare Usage Profile:')
        actions.extend(f'→ {reason}' for reason in utilization['reasoning'])
        actions.append(f"→ Utilization level: {utilization['level']}")
        actions.append(
            f"→ Estimated annual medical spending: {format_currency(utilization['expected_annual_claims'])}"
        )

    actions.append('Recommended Plan Tier:')
    actions.append(f'→ {get_recommended_metal_level(utilization)} plans match your healthcare needs')

    deductible = utilization['recommended_deductible']
    if deductible == 'low':
        actions.append('→ Look for lower deductibles ($0-$2,000) to minimize out-of-pocket costs')
    elif deductible == 'medium':
        actions.append('→ Medium deductibles ($2,000-$5,000) offer good balance')
    else:
        actions.append('→ High deductibles ($5,000+) with HSA can save on premiums')

    plan_type = utilization['recommended_plan_type']
    if plan_type == 'PPO':
        actions.append('→ PPO plans recommended for specialist access without referrals')
    elif plan_type == 'HDHP':
        actions.append('→ HDHP + HSA recommended for tax savings and lower premiums')
    else:
        actions.append('→ HMO plans offer good value with coordinated care')

    actions.append('Verify Network Coverage:')
    actions.append(f'→ Check provider directories for all your states: {inputs.states_list}')
    actions.append('→ Call your preferred doctors to confirm they accept the plan')
    actions.append('→ Ask about in-network hospitals near each residence')

    actions.extend(get_health_specific_actions(inputs.health, profile))
    actions.extend(_financial_priority_actions(health.financial_priority, health.can_afford_unexpected_bill))
    return actions


FINANCIAL_PRIORITY_ACTIONS = {
    'lowest-premium': [
        '→ Sort plans by monthly premium (lowest first)',
        '→ Consider Bronze or Bronze HDHP plans',
        '→ Ensure you have emergency savings for higher deductibles',
    ],
    'lowest-deductible': [
        '→ Filter for plans with deductibles under $2,000',
        '→ Focus on Silver or Gold tier plans',
        '→ Insurance will start covering costs sooner when you need care',
    ],
    'lowest-oop-max': [
        '→ Filter for plans with out-of-pocket maximums under $5,000',
        '→ Consider Gold or Platinum plans for best catastrophic protection',
        '→ Best choice if worried about major medical expenses',
    ],
    'balanced': [
        '→ Compare total cost of care (premium x 12 + expected medical costs)',
        '→ Silver plans typically offer good balance',
        '→ Look for moderate deductibles ($2,000-$4,000)',
    ],
}

UNEXPECTED_BILL_ACTIONS = {
    'no-need-plan': [
        '→ IMPORTANT: Prioritize lower deductibles and out-of-pocket maximums',
        '→ Consider Silver or Gold plans to minimize surprise costs',
    ],
    'yes-difficulty': [
        '→ Balance premium savings with manageable deductibles',
        '→ Avoid deductibles over $5,000 to reduce financial stress',
    ],
}


def _financial_priority_actions(priority: Optional[str], unexpected_bill: Optional[str]) -> List[str]:
    if not priority:
        return []
    actions = ['Shopping Based on Your Financial Priority:']
    actions.extend(FINANCIAL_PRIORITY_ACTIONS.get(priority, []))
    actions.extend(UNEXPECTED_BILL_ACTIONS.get(unexpected_bill, []))
    return actions


def _non_medicare_alternatives(inputs: RecommendationInputs) -> List[Dict]:
    ctx = inputs.context
    return get_non_medicare_alternatives(ctx.num_adults, ctx.num_children, inputs.states, inputs.coverage_score)


def _with_health_reasoning(reasoning: str, inputs: RecommendationInputs) -> str:
    extra = get_health_based_reasoning(inputs.health)
    return f'{reasoning} {extra}' if extra else reasoning


# =============================================================================
# STRATEGY TABLE
# =============================================================================

@dataclass(frozen=True)
class RecommendationStrategy:
    """One household scenario's recommendation recipe."""
    scenario: ScenarioType
    cost_fn: Callable[[RecommendationInputs], CostRange]
    score_fn: Callable[[RecommendationInputs], int]
    plan_fn: Callable[[RecommendationInputs], Tuple[str, str, str]]
    reasoning_fn: Callable[[RecommendationInputs], str]
    actions_fn: Callable[[RecommendationInputs], List[str]]
    alternatives_fn: Callable[[RecommendationInputs], List[Dict]]


RECOMMENDATION_STRATEGIES = {
    ScenarioType.MEDICARE: RecommendationStrategy(
        scenario=ScenarioType.MEDICARE,
        cost_fn=_medicare_cost,
        score_fn=lambda inputs: COVERAGE_SCORES['MEDICARE_SCORE'],
        plan_fn=_medicare_plan,
        reasoning_fn=_medicare_reasoning,
        actions_fn=_medicare_actions,
        alternatives_fn=_medicare_alternatives,
    ),
    ScenarioType.MIXED: RecommendationStrategy(
        scenario=ScenarioType.MIXED,
        cost_fn=_mixed_cost,
        score_fn=lambda inputs: COVERAGE_SCORES['MIXED_HOUSEHOLD_SCORE'],
        plan_fn=_mixed_plan,
        reasoning_fn=_mixed_reasoning,
        actions_fn=_mixed_actions,
        alternatives_fn=_mixed_alternatives,
    ),
    ScenarioType.NON_MEDICARE: RecommendationStrategy(
        scenario=ScenarioType.NON_MEDICARE,
        cost_fn=_non_medicare_cost,
        score_fn=lambda inputs: inputs.coverage_score,
        plan_fn=_non_medicare_plan,
        reasoning_fn=_non_medicare_reasoning,
        actions_fn=_non_medicare_actions,
        alternatives_fn=_non_medicare_alternatives,
    ),
}


def generate_recommendation(
    profile: HouseholdProfile,
    scenario: Optional[ScenarioType] = None,
    coverage_score: Optional[int] = None,
    cost_index: Optional[StateCostIndex] = None,
) -> Dict:
    """
    Build the base recommendation for a household.

    Args:
        profile: Household profile
        scenario: Force a scenario (defaults to the household's own)
        coverage_score: Precomputed coverage score (computed from states if omitted)
        cost_index: State cost index (defaults to the bundled table)

    Returns:
        Dict with recommended_insurance, plan_type, household_breakdown,
        estimated_monthly_cost, coverage_gap_score, reasoning, action_items,
        alternative_options and scenario
    """
    context = profile.context()
    scenario = scenario or context.determine_scenario()
    if coverage_score is None:
        coverage_score = calculate_coverage_score(context.states)

    inputs = RecommendationInputs(
        profile=profile,
        context=context,
        coverage_score=coverage_score,
        health=analyze_health_profile(profile),
        cost_index=cost_index or DEFAULT_STATE_COST_INDEX,
    )
    strategy = RECOMMENDATION_STRATEGIES[scenario]

    cost = strategy.cost_fn(inputs)
    recommended, plan_type, breakdown = strategy.plan_fn(inputs)
    action_items = strategy.actions_fn(inputs)

    budget_note = check_budget_compatibility(profile.budget, cost)
    if budget_note:
        action_items.append(budget_note)

    return {
        'scenario': scenario.value,
        'recommended_insurance': recommended,
        'plan_type': plan_type,
        'household_breakdown': breakdown,
        'estimated_monthly_cost': cost.to_dict(),
        'coverage_gap_score': strategy.score_fn(inputs),
        'reasoning': strategy.reasoning_fn(inputs),
        'action_items': action_items,
        'alternative_options': strategy.alternatives_fn(inputs),
        'state_cost_index_version': inputs.cost_index.version,
    }


def get_medicare_recommendation(profile: HouseholdProfile, **kwargs) -> Dict:
    return generate_recommendation(profile, scenario=ScenarioType.MEDICARE, **kwargs)


def get_mixed_household_recommendation(profile: HouseholdProfile, **kwargs) -> Dict:
    return generate_recommendation(profile, scenario=ScenarioType.MIXED, **kwargs)


def get_non_medicare_recommendation(profile: HouseholdProfile, **kwargs) -> Dict:
    return generate_recommendation(profile, scenario=ScenarioType.NON_MEDICARE, **kwargs)
