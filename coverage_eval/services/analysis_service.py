"""
Analysis Service for Coverage Evaluation.

Main entry point for a household analysis. Runs the sub-analyses in a
fixed order and assembles a single JSON-ready recommendation:

1. Coverage score for the residence states
2. Subsidy / Medicaid eligibility (non-Medicare households with income)
3. Employer plan comparison (needs the post-subsidy marketplace cost)
4. Scenario recommendation, with Medicaid and employer overrides
5. Current-coverage comparison
6. Add-on scoring and multi-year projections (concurrently)
7. Monte Carlo risk analysis (needs the recommended plan type)

Every step after the recommendation is best-effort: a failure is logged
and the corresponding field is left out of the result.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import numpy as np

from addon_recommendations import generate_add_on_recommendations
from affordability import compare_employer_to_marketplace
from constants import INSURANCE_COSTS
from cost_projections import generate_multi_year_projection
from coverage_eval import CostRange
from coverage_eval.services.benchmark_service import (
    BenchmarkService,
    BenchmarkSource,
    InMemoryBenchmarkCache,
)
from coverage_eval.services.risk_service import RiskService
from coverage_scoring import calculate_coverage_score
from current_coverage_comparison import compare_current_coverage
from engine_config import EngineConfig
from household_schema import HouseholdProfile, coerce_profile
from recommendations import generate_recommendation
from state_cost_index import StateCostIndex
from subsidy_calculator import SubsidyAnalysis, calculate_subsidy_with_benchmark

logger = logging.getLogger(__name__)

MEDICAID_RECOMMENDATION = 'Medicaid (Free or Low-Cost Coverage)'
MEDICAID_MONTHLY_COST = CostRange(0, 50)

# More chronic conditions than this projects as 'fair' health
FAIR_HEALTH_CHRONIC_THRESHOLD = 2


# =============================================================================
# SUBSIDY AND EMPLOYER COMPARISON
# =============================================================================

def estimate_marketplace_cost(num_adults: int, num_children: int) -> CostRange:
    """Unsubsidized ACA marketplace range for the household."""
    return CostRange(
        INSURANCE_COSTS['ACA_ADULT_LOW'] * num_adults + INSURANCE_COSTS['ACA_CHILD_LOW'] * num_children,
        INSURANCE_COSTS['ACA_ADULT_HIGH'] * num_adults + INSURANCE_COSTS['ACA_CHILD_HIGH'] * num_children,
    )


def calculate_after_subsidy_cost(profile: HouseholdProfile, monthly_subsidy: float) -> CostRange:
    """Marketplace range net of the subsidy, floored at zero."""
    full = estimate_marketplace_cost(profile.num_adults, profile.num_children)
    return CostRange(
        max(0.0, full.low - monthly_subsidy),
        max(0.0, full.high - monthly_subsidy),
    )


def build_subsidy_summary(subsidy: SubsidyAnalysis, after_subsidy_cost: CostRange) -> Dict:
    summary = subsidy.to_dict()
    summary['estimated_after_subsidy_cost'] = after_subsidy_cost.to_dict()
    return summary


def apply_medicaid_override(recommendation: Dict, subsidy: SubsidyAnalysis) -> None:
    """Medicaid-eligible households are pointed at Medicaid regardless of scenario."""
    recommendation['recommended_insurance'] = MEDICAID_RECOMMENDATION
    recommendation['reasoning'] = subsidy.explanation
    recommendation['action_items'] = list(subsidy.action_items) + recommendation['action_items']
    recommendation['estimated_monthly_cost'] = MEDICAID_MONTHLY_COST.to_dict()


def apply_employer_comparison(recommendation: Dict, employer: Dict) -> None:
    """'Keep' advice leads the action items; anything else is appended."""
    advice = employer['recommendation']
    if 'keep' in advice.lower():
        recommendation['action_items'] = [advice] + list(employer['action_items']) + recommendation['action_items']
    else:
        recommendation['action_items'] = recommendation['action_items'] + list(employer['action_items'])


# =============================================================================
# ENRICHMENTS
# =============================================================================

def get_projection_health_status(profile: HouseholdProfile) -> str:
    if profile.health.chronic_condition_count > FAIR_HEALTH_CHRONIC_THRESHOLD:
        return 'fair'
    return 'good'


def summarize_projection(projection: Dict) -> Dict:
    """
    Condense a multi-year projection for the recommendation payload.

    The confidence range is taken from the final projected year.
    """
    years = projection['projections']
    last_interval = years[-1]['confidence_interval'] if years else {}
    transition_years = {
        entry['transition']['type']: entry for entry in years if entry.get('transition')
    }

    transitions = []
    for transition in projection['major_transitions']:
        entry = transition_years.get(transition['type'], {})
        transitions.append({
            'age': entry.get('age', transition['age']),
            'year': entry.get('calendar_year'),
            'type': transition['type'],
            'description': transition['description'],
            'impact': transition['impact'],
            'recommended_action': transition['recommended_action'],
        })

    return {
        'yearly_projections': [
            {
                'year': entry['year'],
                'calendar_year': entry['calendar_year'],
                'age': entry['age'],
                'monthly_premium': entry['projected_monthly_premium'],
                'annual_premium': entry['projected_annual_premium'],
                'estimated_medical_costs': entry['projected_medical_costs'],
                'estimated_oop': entry['projected_oop'],
                'total_annual_cost': entry['total_annual_cost'],
                'cumulative_cost': entry['cumulative_cost'],
                'has_transition': entry['transition'] is not None,
            }
            for entry in years
        ],
        'total_projected_cost': projection['total_lifetime_cost'],
        'average_annual_cost': projection['average_annual_cost'],
        'transitions': transitions,
        'insights': projection['insights'],
        'confidence_range': {
            'optimistic': last_interval.get('p10', 0),
            'expected': last_interval.get('p50', 0),
            'pessimistic': last_interval.get('p90', 0),
        },
    }


def generate_cost_projections(profile: HouseholdProfile, config: EngineConfig) -> Optional[Dict]:
    """Projection for the primary adult, or None when there is no adult age."""
    if not profile.adult_ages:
        logger.info("No adult ages provided; cost projections skipped")
        return None

    states = profile.states
    projection = generate_multi_year_projection(
        profile.adult_ages[0],
        states[0] if states else '',
        years_to_project=config.projection_years,
        metal_tier=config.projection_tier,
        uses_tobacco=bool(profile.adults_use_tobacco and profile.adults_use_tobacco[0]),
        health_status=get_projection_health_status(profile),
        chronic_conditions=profile.health.chronic_conditions if profile.health.has_chronic_conditions else [],
        inflation_factors=config.inflation_factors(),
    )
    if projection is None:
        return None
    return summarize_projection(projection)


async def _run_enrichment(name: str, func, *args, **kwargs) -> Optional[Any]:
    """Run a synchronous enrichment in a worker thread; None on failure."""
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except Exception as e:
        logger.warning(f"Error generating {name}: {e}")
        return None


# =============================================================================
# ORCHESTRATOR
# =============================================================================

async def analyze_insurance(
    form_data: Any,
    benchmark_source: Optional[BenchmarkSource] = None,
    config: Optional[EngineConfig] = None,
    rng: Optional[np.random.Generator] = None,
    benchmark_service: Optional[BenchmarkService] = None,
    cost_index: Optional[StateCostIndex] = None,
) -> Dict:
    """
    Analyze a household and build the full insurance recommendation.

    Args:
        form_data: HouseholdProfile or raw payload (camelCase or snake_case keys)
        benchmark_source: Real benchmark (SLCSP) provider; estimates are used without one
        config: Engine configuration (loaded from the environment when omitted)
        rng: Random generator for the risk simulation (seeded from config when omitted)
        benchmark_service: Pre-built service, e.g. to share a cache across calls
        cost_index: State cost index (defaults to the bundled table)

    Returns:
        Recommendation dict. Optional keys: subsidy_analysis,
        employer_plan_analysis, current-coverage fields,
        add_on_insurance_analysis, cost_projections, risk_analysis
    """
    config = config or EngineConfig.from_environment()

    try:
        profile = coerce_profile(form_data)
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Malformed household payload, analyzing an empty household: {e}")
        profile = HouseholdProfile()

    problems = profile.validate()
    if problems:
        logger.warning(f"Household validation issues: {'; '.join(problems)}")

    coverage_score = calculate_coverage_score(profile.states)

    if profile.household_size == 0:
        recommendation = generate_recommendation(profile, coverage_score=coverage_score, cost_index=cost_index)
        recommendation['validation_issues'] = problems
        return recommendation

    context = profile.context()

    # Subsidy and employer comparison
    subsidy: Optional[SubsidyAnalysis] = None
    employer: Optional[Dict] = None
    if not context.all_adults_medicare_eligible and profile.has_income:
        if benchmark_service is None:
            benchmark_service = BenchmarkService(
                source=benchmark_source,
                cache=InMemoryBenchmarkCache(ttl_hours=config.benchmark_cache_ttl_hours),
                fallback_per_person=config.benchmark_fallback_per_person,
            )
        try:
            subsidy = await calculate_subsidy_with_benchmark(
                profile.num_adults,
                profile.num_children,
                profile.states,
                profile.primary_zip,
                profile.all_ages,
                benchmark_service,
                annual_income=profile.annual_income,
                income_range=profile.income_range,
            )
        except Exception as e:
            logger.warning(f"Error calculating subsidy: {e}")

    after_subsidy_cost = None
    if subsidy is not None:
        after_subsidy_cost = calculate_after_subsidy_cost(profile, subsidy.monthly_subsidy)
        if profile.has_employer_insurance:
            try:
                employer = compare_employer_to_marketplace(
                    profile.has_employer_insurance,
                    profile.employer_contribution,
                    profile.household_size,
                    after_subsidy_cost,
                    annual_income=profile.annual_income,
                    income_range=profile.income_range,
                )
            except Exception as e:
                logger.warning(f"Error comparing employer coverage: {e}")

    recommendation = generate_recommendation(profile, coverage_score=coverage_score, cost_index=cost_index)
    if problems:
        recommendation['validation_issues'] = problems

    if subsidy is not None:
        recommendation['subsidy_analysis'] = build_subsidy_summary(subsidy, after_subsidy_cost)
        if subsidy.medicaid_eligible:
            apply_medicaid_override(recommendation, subsidy)

    if employer is not None:
        recommendation['employer_plan_analysis'] = employer
        apply_employer_comparison(recommendation, employer)

    try:
        current = profile.current_insurance
        if profile.has_current_insurance and current and current.carrier:
            recommendation.update(compare_current_coverage(recommendation, current, profile.states))
    except Exception as e:
        logger.warning(f"Error comparing current coverage: {e}")

    # Add-ons and projections are independent of each other
    pending: List = []
    if profile.interested_in_add_ons:
        pending.append(('add_on_insurance_analysis', _run_enrichment(
            'add-on recommendations',
            generate_add_on_recommendations,
            profile,
            excluded_categories=profile.excluded_add_on_categories,
            cost_index=cost_index,
        )))
    pending.append(('cost_projections', _run_enrichment(
        'cost projections', generate_cost_projections, profile, config
    )))

    results = await asyncio.gather(*(task for _, task in pending))
    for (key, _), value in zip(pending, results):
        if value is not None:
            recommendation[key] = value

    risk_service = RiskService(
        iterations=config.mc_iterations,
        sigma=config.mc_sigma,
        rng=rng,
        seed=config.mc_seed,
    )
    risk = await _run_enrichment(
        'risk analysis', risk_service.analyze, profile, recommendation.get('plan_type')
    )
    if risk is not None:
        recommendation['risk_analysis'] = risk

    return recommendation
