"""
Monte Carlo Risk Simulator

Simulates a year of out-of-pocket healthcare spend under a plan's
deductible and out-of-pocket maximum.

Medical expenses are drawn log-normally around the expected annual cost,
then passed through the cost-sharing function:
    out-of-pocket = min(expense, deductible)
                  + 20% coinsurance on the remainder,
                  capped at the out-of-pocket maximum

Randomness always comes from an injected numpy Generator (or a seed), so
runs are reproducible in tests.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from constants import PLAN_COST_SHARING
from coverage_eval.utils.formatting import format_currency

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 1000
DEFAULT_SIGMA = 0.6
COINSURANCE_RATE = 0.2

# Realized cost within 5% of the cap counts as hitting it
OOP_MAX_HIT_RATIO = 0.95

PERCENTILE_LADDER = [5, 10, 25, 50, 75, 90, 95, 99]
HISTOGRAM_BUCKETS = 5

# Deductibles at or above this are HSA-eligible
HSA_ELIGIBLE_DEDUCTIBLE = 1600


# =============================================================================
# SAMPLING
# =============================================================================

def resolve_rng(rng: Optional[np.random.Generator] = None, seed: Optional[int] = None) -> np.random.Generator:
    """Injected generator wins; otherwise build one from the seed (None = fresh entropy)."""
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def draw_medical_expenses(
    base_cost: float,
    iterations: int,
    sigma: float,
    rng: np.random.Generator
) -> np.ndarray:
    """
    Draw annual medical expenses from a log-normal centered on base_cost.

    A non-positive base cost yields all-zero expenses.
    """
    iterations = max(1, int(iterations))
    if base_cost <= 0:
        return np.zeros(iterations)
    return rng.lognormal(mean=np.log(base_cost), sigma=max(0.0, sigma), size=iterations)


def apply_cost_sharing(expenses: np.ndarray, deductible: float, out_of_pocket_max: float) -> np.ndarray:
    """Vectorized deductible / coinsurance / out-of-pocket-max function."""
    deductible = max(0.0, deductible)
    below_deductible = np.minimum(expenses, deductible)
    coinsurance = np.maximum(0.0, expenses - deductible) * COINSURANCE_RATE
    return np.minimum(below_deductible + coinsurance, max(0.0, out_of_pocket_max))


def summarize_simulation(
    expenses: np.ndarray,
    out_of_pocket: np.ndarray,
    deductible: float,
    out_of_pocket_max: float
) -> Dict:
    """
    Statistics over one set of simulated outcomes.

    Percentiles use the lower order statistic, so they are non-decreasing
    by rank for any sample.
    """
    count = len(out_of_pocket)
    ladder = np.percentile(out_of_pocket, PERCENTILE_LADDER, method='lower')
    percentiles = {f'p{rank}': int(round(value)) for rank, value in zip(PERCENTILE_LADDER, ladder)}

    exceeds_deductible = float(np.mean(expenses > deductible)) if count else 0.0
    hits_oop_max = float(np.mean(out_of_pocket >= out_of_pocket_max * OOP_MAX_HIT_RATIO)) if count else 0.0

    return {
        'median': percentiles['p50'],
        'mean': int(round(float(np.mean(out_of_pocket)))),
        'standard_deviation': int(round(float(np.std(out_of_pocket)))),
        'percentiles': percentiles,
        'probability_of_exceeding_deductible': int(round(exceeds_deductible * 100)),
        'probability_of_hitting_oop_max': int(round(hits_oop_max * 100)),
        'expected_value_at_risk': percentiles['p95'],
        'simulation_count': count,
    }


def simulate_out_of_pocket(
    base_cost: float,
    deductible: float,
    out_of_pocket_max: float,
    iterations: int = DEFAULT_ITERATIONS,
    sigma: float = DEFAULT_SIGMA,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return (medical expenses, realized out-of-pocket) sample arrays."""
    generator = resolve_rng(rng, seed)
    expenses = draw_medical_expenses(base_cost, iterations, sigma, generator)
    return expenses, apply_cost_sharing(expenses, deductible, out_of_pocket_max)


def run_monte_carlo(
    base_cost: float,
    deductible: float,
    out_of_pocket_max: float,
    iterations: int = DEFAULT_ITERATIONS,
    sigma: float = DEFAULT_SIGMA,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> Dict:
    """
    Run the simulation and return summary statistics.

    Args:
        base_cost: Expected annual medical cost
        deductible: Plan deductible
        out_of_pocket_max: Plan out-of-pocket maximum
        iterations: Number of draws
        sigma: Log-normal shape parameter
        rng: Injected numpy Generator
        seed: Seed used when no generator is injected

    Returns:
        Dict with median, mean, standard_deviation, percentiles (p5..p99),
        probability_of_exceeding_deductible, probability_of_hitting_oop_max,
        expected_value_at_risk and simulation_count
    """
    expenses, out_of_pocket = simulate_out_of_pocket(
        base_cost, deductible, out_of_pocket_max, iterations, sigma, rng, seed
    )
    return summarize_simulation(expenses, out_of_pocket, deductible, out_of_pocket_max)


async def run_monte_carlo_async(*args, **kwargs) -> Dict:
    """run_monte_carlo on a worker thread."""
    return await asyncio.to_thread(run_monte_carlo, *args, **kwargs)


# =============================================================================
# INTERPRETATION
# =============================================================================

RISK_DESCRIPTIONS = {
    'low': 'Your healthcare cost risk is low.',
    'moderate': 'Your healthcare cost risk is moderate.',
    'high': 'Your healthcare cost risk is elevated.',
    'very-high': 'Your healthcare cost risk is significant.',
}


def classify_simulation_risk(result: Dict) -> str:
    if result['probability_of_hitting_oop_max'] >= 30:
        return 'very-high'
    if result['probability_of_hitting_oop_max'] >= 15:
        return 'high'
    if result['probability_of_exceeding_deductible'] >= 50:
        return 'moderate'
    return 'low'


def interpret_results(result: Dict, deductible: float, out_of_pocket_max: float) -> Dict:
    """
    Plain-language reading of a simulation.

    Returns:
        Dict with risk_level, summary, insights and recommendations
    """
    risk_level = classify_simulation_risk(result)
    percentiles = result['percentiles']
    insights = [f"Your expected out-of-pocket cost is {format_currency(result['mean'])} per year"]
    recommendations = []

    if result['probability_of_exceeding_deductible'] > 50:
        insights.append(
            f"There's a {result['probability_of_exceeding_deductible']}% chance you'll exceed your deductible"
        )
    if result['probability_of_hitting_oop_max'] > 10:
        insights.append(
            f"There's a {result['probability_of_hitting_oop_max']}% chance of reaching your out-of-pocket maximum"
        )
    insights.append(
        f"Your costs could range from {format_currency(percentiles['p10'])} to "
        f"{format_currency(percentiles['p90'])} in most scenarios (80% confidence)"
    )

    if risk_level in ('high', 'very-high'):
        recommendations.append('Consider a plan with a lower out-of-pocket maximum')
        recommendations.append(
            f"Build an emergency health fund of at least {format_currency(percentiles['p95'])}"
        )
    if result['probability_of_exceeding_deductible'] > 70:
        recommendations.append('A higher premium plan with lower deductible may save money overall')
    if result['standard_deviation'] > result['mean'] * 0.5:
        recommendations.append('Your costs have high variability - consider supplemental insurance')
    if deductible >= HSA_ELIGIBLE_DEDUCTIBLE:
        recommendations.append('Consider opening an HSA to save pre-tax dollars for healthcare')

    summary = (
        f"{RISK_DESCRIPTIONS[risk_level]} Based on {result['simulation_count']:,} simulations, "
        f"you can expect to pay between {format_currency(percentiles['p25'])} and "
        f"{format_currency(percentiles['p75'])} in out-of-pocket costs (50% confidence), with a median of "
        f"{format_currency(result['median'])}. There's a {result['probability_of_hitting_oop_max']}% chance "
        f"of reaching your {format_currency(out_of_pocket_max)} out-of-pocket maximum."
    )

    return {
        'risk_level': risk_level,
        'summary': summary,
        'insights': insights,
        'recommendations': recommendations,
    }


def generate_histogram(out_of_pocket: np.ndarray, out_of_pocket_max: float,
                       bucket_count: int = HISTOGRAM_BUCKETS) -> List[Dict]:
    """
    Equal-width buckets from 0 to the out-of-pocket maximum.

    Percentages come from the simulated samples; the last bucket includes
    the cap itself.
    """
    upper = max(1.0, out_of_pocket_max)
    edges = np.linspace(0.0, upper, bucket_count + 1)
    counts, _ = np.histogram(np.clip(out_of_pocket, 0.0, upper), bins=edges)
    total = max(1, int(counts.sum()))

    buckets = []
    for i, count in enumerate(counts):
        low, high = int(round(edges[i])), int(round(edges[i + 1]))
        buckets.append({
            'label': f"{format_currency(low)}-{format_currency(high)}",
            'min': low,
            'max': high,
            'percentage': round(int(count) / total * 100, 1),
        })
    return buckets


def generate_monte_carlo_analysis(
    base_cost: float,
    deductible: float,
    out_of_pocket_max: float,
    iterations: int = DEFAULT_ITERATIONS,
    sigma: float = DEFAULT_SIGMA,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> Dict:
    """
    Simulation result plus interpretation and histogram.

    Returns:
        Dict with result, interpretation, histogram_data and input_parameters
    """
    expenses, out_of_pocket = simulate_out_of_pocket(
        base_cost, deductible, out_of_pocket_max, iterations, sigma, rng, seed
    )
    result = summarize_simulation(expenses, out_of_pocket, deductible, out_of_pocket_max)
    return {
        'result': result,
        'interpretation': interpret_results(result, deductible, out_of_pocket_max),
        'histogram_data': generate_histogram(out_of_pocket, out_of_pocket_max),
        'input_parameters': {
            'base_cost': base_cost,
            'deductible': deductible,
            'out_of_pocket_max': out_of_pocket_max,
            'iterations': result['simulation_count'],
            'sigma': sigma,
        },
    }


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def simulate_plan_costs(
    expected_medical_costs: float,
    plan_type: str,
    iterations: int = DEFAULT_ITERATIONS,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> Dict:
    """Analysis for a preset plan family (bronze, silver, gold, platinum, hdhp)."""
    if plan_type not in PLAN_COST_SHARING:
        raise ValueError(f"Unknown plan type: {plan_type}")
    deductible, oop_max = PLAN_COST_SHARING[plan_type]
    return generate_monte_carlo_analysis(
        expected_medical_costs, deductible, oop_max, iterations=iterations, rng=rng, seed=seed
    )


def compare_plans(
    expected_medical_costs: float,
    plan1: Dict,
    plan2: Dict,
    iterations: int = DEFAULT_ITERATIONS,
    sigma: float = DEFAULT_SIGMA,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> Dict:
    """
    Compare two plans against the same simulated expenses.

    Each plan dict carries name, deductible, out_of_pocket_max and
    monthly_premium.

    Returns:
        Dict with plan1_analysis, plan2_analysis and comparison
        (expected_total_cost_difference, better_plan_for_low_utilization,
        better_plan_for_high_utilization, break_even_cost)
    """
    generator = resolve_rng(rng, seed)
    expenses = draw_medical_expenses(expected_medical_costs, iterations, sigma, generator)

    analyses = []
    for plan in (plan1, plan2):
        out_of_pocket = apply_cost_sharing(expenses, plan['deductible'], plan['out_of_pocket_max'])
        result = summarize_simulation(expenses, out_of_pocket, plan['deductible'], plan['out_of_pocket_max'])
        analyses.append({
            'result': result,
            'interpretation': interpret_results(result, plan['deductible'], plan['out_of_pocket_max']),
            'histogram_data': generate_histogram(out_of_pocket, plan['out_of_pocket_max']),
        })

    plan1_annual = plan1['monthly_premium'] * 12
    plan2_annual = plan2['monthly_premium'] * 12
    r1, r2 = analyses[0]['result'], analyses[1]['result']

    premium_diff = plan1['monthly_premium'] - plan2['monthly_premium']
    deductible_diff = plan1['deductible'] - plan2['deductible']
    if expected_medical_costs > 0 and deductible_diff != 0:
        break_even = abs(premium_diff * 12 / (deductible_diff / expected_medical_costs))
    else:
        break_even = abs(premium_diff * 12)

    return {
        'plan1_analysis': analyses[0],
        'plan2_analysis': analyses[1],
        'comparison': {
            'expected_total_cost_difference': (r1['mean'] + plan1_annual) - (r2['mean'] + plan2_annual),
            'better_plan_for_low_utilization': (
                plan1['name'] if r1['percentiles']['p25'] + plan1_annual < r2['percentiles']['p25'] + plan2_annual
                else plan2['name']
            ),
            'better_plan_for_high_utilization': (
                plan1['name'] if r1['percentiles']['p90'] + plan1_annual < r2['percentiles']['p90'] + plan2_annual
                else plan2['name']
            ),
            'break_even_cost': round(break_even),
        },
    }
