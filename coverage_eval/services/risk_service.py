"""
Risk Service for Coverage Evaluation.

Turns a household's health profile into Monte Carlo inputs:
- Expected annual medical spend (base cost) from usage answers, age and tobacco use
- Deductible / out-of-pocket maximum from the recommended plan type

Base cost is assembled in one fixed order: visit-tier base, then additive
add-ons (specialists, ER, chronic conditions, procedures, medications),
then the age multiplier, then the tobacco multiplier.
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from constants import DEFAULT_COST_SHARING, PLAN_COST_SHARING
from household_schema import HouseholdProfile
from risk_simulator import DEFAULT_ITERATIONS, DEFAULT_SIGMA, generate_monte_carlo_analysis, resolve_rng

logger = logging.getLogger(__name__)

DEFAULT_BASE_COST = 3000
DEFAULT_PRIMARY_AGE = 40

DOCTOR_VISIT_BASE_COST = {
    '0-2': 2000,
    '3-5': 4000,
    '6-10': 6000,
    '10+': 10000,
}
SPECIALIST_ADDITIONAL_COST = {
    'monthly-or-more': 5000,
    '1-3': 2000,
}
ER_ADDITIONAL_COST = {
    '3+': 8000,
    '1-2': 3000,
}
MEDICATION_ADDITIONAL_COST = {
    '200-500': 3000,
    '500-1000': 7000,
    'over-1000': 12000,
}
CHRONIC_CONDITION_COST = 1500
PLANNED_PROCEDURE_COST = 15000
SPECIALTY_MEDICATION_COST = 10000

# (minimum age, multiplier), checked in order
AGE_COST_MULTIPLIERS = [
    (60, 1.6),
    (50, 1.3),
]
TOBACCO_COST_MULTIPLIER = 1.2

# Plan-type keywords mapped to cost-sharing presets, checked in order
PLAN_TYPE_KEYWORDS = [
    (('bronze', 'hdhp'), 'bronze'),
    (('silver',), 'silver'),
    (('gold',), 'gold'),
    (('platinum',), 'platinum'),
]


def get_age_multiplier(age: int) -> float:
    for minimum_age, multiplier in AGE_COST_MULTIPLIERS:
        if age >= minimum_age:
            return multiplier
    return 1.0


def estimate_base_medical_cost(profile: HouseholdProfile) -> float:
    """
    Expected annual medical spend for the simulator.

    Args:
        profile: Household profile (health answers, adult ages, tobacco flags)

    Returns:
        Base annual cost in dollars
    """
    health = profile.health
    base = DOCTOR_VISIT_BASE_COST.get(health.doctor_visits_per_year or '', DEFAULT_BASE_COST)

    base += SPECIALIST_ADDITIONAL_COST.get(health.specialist_visits_per_year or '', 0)
    base += ER_ADDITIONAL_COST.get(health.er_visits_per_year or '', 0)
    base += health.chronic_condition_count * CHRONIC_CONDITION_COST

    if health.planned_procedures:
        base += PLANNED_PROCEDURE_COST
    if health.takes_specialty_meds:
        base += SPECIALTY_MEDICATION_COST
    base += MEDICATION_ADDITIONAL_COST.get(health.monthly_medication_cost or '', 0)

    primary_age = profile.adult_ages[0] if profile.adult_ages else DEFAULT_PRIMARY_AGE
    base *= get_age_multiplier(primary_age)

    if any(profile.adults_use_tobacco):
        base *= TOBACCO_COST_MULTIPLIER

    return float(base)


def get_cost_sharing(plan_type: Optional[str]) -> Tuple[float, float]:
    """
    (deductible, out_of_pocket_max) for a recommended plan type.

    Matching is by keyword, so 'ACA Marketplace Silver' and 'silver' agree.
    Anything unrecognised (PPO, Medicare) uses the default preset.
    """
    plan_type = (plan_type or '').lower()
    for keywords, preset in PLAN_TYPE_KEYWORDS:
        if any(keyword in plan_type for keyword in keywords):
            return PLAN_COST_SHARING[preset]
    return DEFAULT_COST_SHARING


class RiskService:
    """
    Builds the Monte Carlo risk analysis attached to a recommendation.

    The random generator is owned by the service so that one seeded
    instance gives reproducible results across calls.
    """

    def __init__(
        self,
        iterations: int = DEFAULT_ITERATIONS,
        sigma: float = DEFAULT_SIGMA,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        """
        Initialize the risk service.

        Args:
            iterations: Simulated years per analysis
            sigma: Log-normal shape parameter
            rng: Injected random generator (wins over seed)
            seed: Seed for a fresh generator when rng is not supplied
        """
        self.iterations = iterations
        self.sigma = sigma
        self.rng = resolve_rng(rng, seed)

    def analyze(self, profile: HouseholdProfile, plan_type: Optional[str]) -> Dict:
        """
        Run the simulation for a household and plan type.

        Returns:
            Dict with result, interpretation, histogram_data and input_parameters
        """
        base_cost = estimate_base_medical_cost(profile)
        deductible, out_of_pocket_max = get_cost_sharing(plan_type)
        logger.debug(
            f"Risk analysis: base cost {base_cost:.0f}, deductible {deductible}, OOP max {out_of_pocket_max}"
        )
        return generate_monte_carlo_analysis(
            base_cost,
            deductible,
            out_of_pocket_max,
            iterations=self.iterations,
            sigma=self.sigma,
            rng=self.rng,
        )
