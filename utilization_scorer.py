"""
Healthcare Utilization Scorer

Calculates a 0-100 score estimating how heavily a household uses
healthcare, then derives plan-design guidance from it.

Point sources (capped at 100):
1. Doctor visits (0-30)
2. Specialist visits (0-25)
3. Emergency room visits (0-20)
4. Chronic conditions (0-15, 5 per condition)
5. Monthly medication cost (0-20)
6. Specialty medications (10)
7. Planned procedures (15)
"""

from typing import Dict, List

from household_schema import HealthProfile

# Points per answer
DOCTOR_VISIT_POINTS = {
    '10+': (30, 'Frequent doctor visits (10+/year) indicate high utilization'),
    '6-10': (20, 'Regular doctor visits (6-10/year) indicate moderate utilization'),
    '3-5': (10, 'Occasional doctor visits (3-5/year)'),
    '0-2': (0, 'Minimal doctor visits (0-2/year)'),
}

SPECIALIST_VISIT_POINTS = {
    'monthly-or-more': (25, 'Regular specialist care indicates complex health needs'),
    '1-3': (12, 'Occasional specialist visits'),
}

ER_VISIT_POINTS = {
    '3+': (20, 'Multiple ER visits indicate high acute care needs'),
    '1-2': (10, 'Some emergency care usage'),
}

MEDICATION_COST_POINTS = {
    'over-1000': (20, 'Very high medication costs (>$1,000/month)'),
    '500-1000': (15, 'High medication costs ($500-$1,000/month)'),
    '200-500': (10, 'Moderate medication costs ($200-$500/month)'),
    '50-200': (5, 'Low medication costs ($50-$200/month)'),
}

# Annual medication spend added to expected claims
MEDICATION_ANNUAL_COST = {
    'over-1000': 12000,
    '500-1000': 9000,
    '200-500': 4200,
    '50-200': 1500,
    'under-50': 300,
}

CHRONIC_POINTS_PER_CONDITION = 5
CHRONIC_POINTS_MAX = 15
SPECIALTY_MEDS_POINTS = 10
PLANNED_PROCEDURE_POINTS = 15

# (minimum score, level), checked in order
UTILIZATION_LEVELS = [
    (75, 'very-high'),
    (50, 'high'),
    (25, 'moderate'),
    (10, 'low'),
    (0, 'minimal'),
]

# Expected annual claims before medication, by level
EXPECTED_CLAIMS_BY_LEVEL = {
    'very-high': 15000,
    'high': 8000,
    'moderate': 4000,
    'low': 1500,
    'minimal': 500,
}

COST_MULTIPLIER_BY_LEVEL = {
    'very-high': 1.5,
    'high': 1.3,
    'moderate': 1.0,
    'low': 0.9,
    'minimal': 0.8,
}

METAL_LEVEL_BY_LEVEL = {
    'very-high': 'Gold or Platinum',
    'high': 'Gold',
    'moderate': 'Silver',
    'low': 'Bronze',
    'minimal': 'Bronze (HDHP)',
}


class UtilizationScorer:
    """Score healthcare utilization from a health profile"""

    def __init__(self, health: HealthProfile):
        self.health = health or HealthProfile()

    def calculate(self) -> Dict:
        """
        Calculate the utilization score and derived guidance.

        Returns:
            Dict with:
            {
                'score': int 0-100,
                'level': 'minimal' | 'low' | 'moderate' | 'high' | 'very-high',
                'expected_annual_claims': int,
                'recommended_deductible': 'high' | 'medium' | 'low',
                'recommended_plan_type': 'HDHP' | 'PPO' | 'HMO',
                'has_usage_data': bool,
                'reasoning': list of str
            }
        """
        health = self.health
        score = 0
        reasoning: List[str] = []

        for answer, table in (
            (health.doctor_visits_per_year, DOCTOR_VISIT_POINTS),
            (health.specialist_visits_per_year, SPECIALIST_VISIT_POINTS),
            (health.er_visits_per_year, ER_VISIT_POINTS),
        ):
            if answer in table:
                points, reason = table[answer]
                score += points
                reasoning.append(reason)

        condition_count = health.chronic_condition_count
        if condition_count > 0:
            score += min(CHRONIC_POINTS_MAX, condition_count * CHRONIC_POINTS_PER_CONDITION)
            reasoning.append(f'Managing {condition_count} chronic condition(s)')

        if health.monthly_medication_cost in MEDICATION_COST_POINTS:
            points, reason = MEDICATION_COST_POINTS[health.monthly_medication_cost]
            score += points
            reasoning.append(reason)

        if health.takes_specialty_meds:
            score += SPECIALTY_MEDS_POINTS
            reasoning.append('Takes specialty medications (biologics/injectables)')

        if health.planned_procedures:
            score += PLANNED_PROCEDURE_POINTS
            reasoning.append('Has planned surgeries/procedures this year')

        score = min(100, score)
        level = get_utilization_level(score)

        expected_claims = EXPECTED_CLAIMS_BY_LEVEL[level]
        expected_claims += MEDICATION_ANNUAL_COST.get(health.monthly_medication_cost, 0)

        if score >= 50 or health.planned_procedures:
            recommended_deductible = 'low'
        elif score >= 25:
            recommended_deductible = 'medium'
        else:
            recommended_deductible = 'high'

        if health.specialist_visits_per_year == 'monthly-or-more' or health.has_chronic_conditions:
            recommended_plan_type = 'PPO'
        elif score < 20 and not health.planned_procedures:
            recommended_plan_type = 'HDHP'
        else:
            recommended_plan_type = 'HMO'

        return {
            'score': score,
            'level': level,
            'expected_annual_claims': expected_claims,
            'recommended_deductible': recommended_deductible,
            'recommended_plan_type': recommended_plan_type,
            'has_usage_data': health.has_usage_data,
            'reasoning': reasoning,
        }


def get_utilization_level(score: int) -> str:
    for minimum, level in UTILIZATION_LEVELS:
        if score >= minimum:
            return level
    return 'minimal'


def calculate_utilization_score(health: HealthProfile) -> Dict:
    """Convenience wrapper around UtilizationScorer."""
    return UtilizationScorer(health).calculate()


def get_utilization_cost_multiplier(utilization: Dict) -> float:
    """
    Premium multiplier reflecting the coverage tier utilization calls for.

    Without any usage answers the baseline (1.0) applies.
    """
    if not utilization.get('has_usage_data', True):
        return 1.0
    return COST_MULTIPLIER_BY_LEVEL.get(utilization.get('level'), 1.0)


def get_recommended_metal_level(utilization: Dict) -> str:
    return METAL_LEVEL_BY_LEVEL.get(utilization.get('level'), 'Silver')


def estimate_total_cost_of_care(
    monthly_premium: float,
    deductible: float,
    expected_annual_claims: float
) -> Dict[str, float]:
    """
    Annual premium plus expected out-of-pocket spend.

    Out-of-pocket = claims up to the deductible, then 20% coinsurance.
    """
    annual_premium = monthly_premium * 12
    if expected_annual_claims > deductible:
        expected_oop = deductible + (expected_annual_claims - deductible) * 0.2
    else:
        expected_oop = expected_annual_claims
    return {
        'annual_premium': annual_premium,
        'expected_out_of_pocket': expected_oop,
        'total_cost': annual_premium + expected_oop,
    }
