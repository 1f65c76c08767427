"""
Actuarial Risk Curves for Add-On Insurance

Age-driven probability curves for the eight add-on categories. Each curve
returns a 0-100 probability score, a five-level risk label, an expected
annual utilization rate, an age-based cost multiplier and a short reason.

Curve shapes:
- dental / vision / accident / hospital-indemnity: piecewise-linear tables
- critical-illness: sigmoid rising through the 50s, boosted 55-75
- disability: plateau across working years, near zero after retirement
- long-term-care: sigmoid rising steeply after 60 with a ramp from 40
- life: bell curve over family-raising years, floored for seniors

All curves move by at most 30 points across any five-year span.
"""

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from constants import MAX_AGE
from coverage_eval import RiskLevel

ADD_ON_CATEGORIES = [
    'dental',
    'vision',
    'accident',
    'critical-illness',
    'hospital-indemnity',
    'disability',
    'long-term-care',
    'life',
]

# Age assumed when a household supplies no ages
DEFAULT_CURVE_AGE = 35


@dataclass
class ActuarialResult:
    """Curve output for one age and category."""
    probability_score: int
    risk_level: RiskLevel
    utilization_rate: float
    cost_multiplier: float
    reasoning: str

    def to_dict(self) -> Dict:
        return {
            'probability_score': self.probability_score,
            'risk_level': self.risk_level.value,
            'utilization_rate': self.utilization_rate,
            'cost_multiplier': self.cost_multiplier,
            'reasoning': self.reasoning,
        }


# =============================================================================
# CURVE PRIMITIVES
# =============================================================================

def sigmoid(x: float, midpoint: float, steepness: float) -> float:
    return 1 / (1 + math.exp(-steepness * (x - midpoint)))


def gaussian(x: float, mean: float, std_dev: float) -> float:
    return math.exp(-((x - mean) ** 2) / (2 * std_dev ** 2))


def piecewise(age: float, points: Sequence[Tuple[float, float]]) -> float:
    """Linear interpolation through (age, value) points, flat beyond the ends."""
    ordered = sorted(points)
    xs = [p[0] for p in ordered]
    ys = [p[1] for p in ordered]
    return float(np.interp(age, xs, ys))


def classify_risk(probability: float, thresholds: Sequence[Tuple[float, RiskLevel]],
                  floor: RiskLevel = RiskLevel.VERY_LOW) -> RiskLevel:
    for minimum, level in thresholds:
        if probability >= minimum:
            return level
    return floor


def _multiplier(value: float) -> float:
    # Multipliers below 1.0 would discount the base premium
    return max(1.0, value)


# =============================================================================
# CATEGORY CURVES
# =============================================================================

DENTAL_POINTS = [(0, 85), (5, 95), (12, 98), (18, 75), (30, 70), (50, 75), (65, 90), (80, 95), (120, 95)]
VISION_POINTS = [(0, 60), (8, 75), (18, 55), (30, 45), (40, 60), (50, 75), (60, 85), (70, 95), (120, 95)]
ACCIDENT_POINTS = [
    (0, 70), (3, 85), (10, 90), (16, 95), (25, 88), (35, 60),
    (50, 55), (65, 70), (75, 85), (90, 95), (120, 95),
]
HOSPITAL_POINTS = [(0, 55), (5, 40), (18, 35), (40, 40), (50, 55), (60, 70), (70, 85), (80, 95), (120, 98)]
DISABILITY_POINTS = [
    (0, 0), (14, 0), (18, 25), (25, 55), (30, 75), (40, 95), (50, 95),
    (55, 90), (60, 70), (65, 45), (70, 25), (75, 15), (80, 5), (120, 5),
]


def dental_curve(age: float) -> ActuarialResult:
    probability = piecewise(age, DENTAL_POINTS)
    if age < 18:
        reasoning = 'High cavity risk and orthodontic needs during childhood development'
    elif age >= 65:
        reasoning = 'Increased risk of tooth loss, gum disease, and complex dental procedures'
    else:
        reasoning = 'Regular preventive care and maintenance procedures'

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [(85, RiskLevel.VERY_HIGH), (70, RiskLevel.HIGH)],
                                 floor=RiskLevel.MODERATE),
        utilization_rate=0.8 if age < 18 or age >= 65 else 0.6,
        cost_multiplier=_multiplier(1.3 if age >= 65 else 1.0),
        reasoning=reasoning,
    )


def vision_curve(age: float) -> ActuarialResult:
    probability = piecewise(age, VISION_POINTS)
    if age >= 65:
        multiplier = 1.4
    elif age >= 40:
        multiplier = 1.1
    else:
        multiplier = 1.0

    if age < 18:
        reasoning = 'Regular vision screening during developmental years'
    elif age >= 65:
        reasoning = 'High risk of cataracts, macular degeneration, and glaucoma'
    elif age >= 40:
        reasoning = 'Presbyopia and age-related vision changes common after 40'
    else:
        reasoning = 'Routine vision correction and eye health monitoring'

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (85, RiskLevel.VERY_HIGH), (70, RiskLevel.HIGH), (50, RiskLevel.MODERATE),
        ], floor=RiskLevel.LOW),
        utilization_rate=0.7 if age >= 40 else 0.4,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


def accident_curve(age: float) -> ActuarialResult:
    probability = piecewise(age, ACCIDENT_POINTS)
    if age >= 70:
        multiplier = 1.5
    elif 16 <= age <= 25:
        multiplier = 1.2
    else:
        multiplier = 1.0

    if age <= 5:
        reasoning = 'High accident risk during early childhood development'
    elif 16 <= age <= 25:
        reasoning = 'Peak accident risk from driving, sports, and risky behavior'
    elif age >= 70:
        reasoning = 'Increased fall risk and injury severity in older adults'
    else:
        reasoning = 'General accident protection for unexpected injuries'

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (85, RiskLevel.VERY_HIGH), (70, RiskLevel.HIGH), (55, RiskLevel.MODERATE),
        ], floor=RiskLevel.LOW),
        utilization_rate=0.15 if age >= 70 or 5 <= age <= 25 else 0.08,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


def critical_illness_curve(age: float) -> ActuarialResult:
    probability = sigmoid(age, 50, 0.08) * 95
    if 55 <= age <= 75:
        probability = min(100.0, probability + 10)

    if age >= 60:
        multiplier = 2.0
    elif age >= 50:
        multiplier = 1.5
    elif age >= 40:
        multiplier = 1.2
    else:
        multiplier = 1.0

    if age < 30:
        reasoning = 'Low risk but provides financial protection for rare critical events'
    elif age < 40:
        reasoning = 'Early onset critical illness possible; best rates available now'
    elif age < 50:
        reasoning = 'Critical illness risk begins to increase significantly after 40'
    elif age < 65:
        reasoning = 'High risk period for cancer, heart attack, and stroke'
    else:
        reasoning = 'Peak age for critical illness; provides financial security for treatment'

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (80, RiskLevel.VERY_HIGH), (60, RiskLevel.HIGH), (35, RiskLevel.MODERATE), (15, RiskLevel.LOW),
        ]),
        utilization_rate=0.03 if age >= 50 else 0.015 if age >= 40 else 0.005,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


def hospital_indemnity_curve(age: float) -> ActuarialResult:
    probability = piecewise(age, HOSPITAL_POINTS)
    if age >= 70:
        multiplier = 1.6
    elif age >= 60:
        multiplier = 1.3
    elif age >= 50:
        multiplier = 1.1
    else:
        multiplier = 1.0

    if age >= 70:
        reasoning = 'Very high hospitalization risk; provides daily cash benefits'
    elif age >= 50:
        reasoning = 'Hospitalization risk increases with chronic conditions'
    elif age < 18:
        reasoning = 'Provides coverage for unexpected childhood illnesses and injuries'
    else:
        reasoning = 'Supplements health insurance for unexpected hospital stays'

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (80, RiskLevel.VERY_HIGH), (65, RiskLevel.HIGH), (45, RiskLevel.MODERATE),
        ], floor=RiskLevel.LOW),
        utilization_rate=0.25 if age >= 65 else 0.12 if age >= 50 else 0.05,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


def disability_curve(age: float) -> ActuarialResult:
    probability = piecewise(age, DISABILITY_POINTS)
    if age >= 50:
        multiplier = 1.4
    elif age >= 40:
        multiplier = 1.2
    else:
        multiplier = 1.0

    if age < 18:
        reasoning = 'Not applicable - no earned income'
    elif age < 25:
        reasoning = 'Early career; lower income to protect but good rates available'
    elif age < 40:
        reasoning = 'Critical protection during family-building and career-growth years'
    elif age < 55:
        reasoning = 'Peak earning years; essential income protection for family'
    elif age < 65:
        reasoning = 'Pre-retirement income protection; higher disability risk'
    else:
        reasoning = 'Not applicable - retired with no earned income to protect'

    if 40 <= age < 65:
        utilization = 0.04
    elif 25 <= age < 40:
        utilization = 0.02
    else:
        utilization = 0.01

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (80, RiskLevel.VERY_HIGH), (60, RiskLevel.HIGH), (30, RiskLevel.MODERATE), (10, RiskLevel.LOW),
        ]),
        utilization_rate=utilization,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


def long_term_care_curve(age: float) -> ActuarialResult:
    probability = sigmoid(age, 60, 0.10) * 95
    if 40 <= age < 50:
        probability = max(probability, 20 + 4.5 * (age - 40))
    elif 50 <= age < 60:
        probability = max(probability, 65 + (age - 50))
    elif 60 <= age < 70:
        probability = max(probability, 75 + (age - 60))
    elif age >= 70:
        probability = max(probability, 85 + min(10, age - 70))

    if age >= 70:
        multiplier = 3.0
    elif age >= 65:
        multiplier = 2.2
    elif age >= 60:
        multiplier = 1.6
    elif age >= 55:
        multiplier = 1.3
    else:
        multiplier = 1.0

    if age < 40:
        reasoning = 'Very low need; wait until age 50 for better actuarial fit'
    elif age < 50:
        reasoning = 'Planning ahead possible but premiums higher for years before use'
    elif age < 60:
        reasoning = 'Optimal age to purchase - balance of cost and future need'
    elif age < 70:
        reasoning = 'Important to secure coverage before rates become prohibitive'
    elif age < 80:
        reasoning = 'High need but very expensive; may be difficult to qualify'
    else:
        reasoning = 'Critical need but likely uninsurable; consider Medicaid planning'

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (80, RiskLevel.VERY_HIGH), (60, RiskLevel.HIGH), (40, RiskLevel.MODERATE), (15, RiskLevel.LOW),
        ]),
        utilization_rate=0.7 if age >= 65 else 0.5 if age >= 50 else 0.3,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


def life_curve(age: float) -> ActuarialResult:
    probability = gaussian(age, 40, 15) * 100 + 10 * gaussian(age, 40, 10)
    probability = min(100.0, probability)
    if age >= 70:
        probability = max(15.0, probability)

    if age >= 60:
        multiplier = 2.5
    elif age >= 50:
        multiplier = 1.6
    elif age >= 40:
        multiplier = 1.2
    else:
        multiplier = 1.0

    if age < 25:
        reasoning = 'Low need unless dependents; excellent rates for future planning'
    elif age < 40:
        reasoning = 'Critical protection for growing families and mortgage obligations'
    elif age < 55:
        reasoning = 'Essential coverage for family income and college funding'
    elif age < 65:
        reasoning = 'Income replacement until retirement; rates increase significantly'
    elif age < 75:
        reasoning = 'Limited need post-retirement; consider permanent life if needed'
    else:
        reasoning = 'Term insurance typically not cost-effective; consider final expense'

    if age >= 60:
        utilization = 0.015
    elif age >= 50:
        utilization = 0.008
    elif age >= 40:
        utilization = 0.004
    else:
        utilization = 0.001

    return ActuarialResult(
        probability_score=round(probability),
        risk_level=classify_risk(probability, [
            (80, RiskLevel.VERY_HIGH), (60, RiskLevel.HIGH), (35, RiskLevel.MODERATE),
        ], floor=RiskLevel.LOW),
        utilization_rate=utilization,
        cost_multiplier=_multiplier(multiplier),
        reasoning=reasoning,
    )


ACTUARIAL_CURVES: Dict[str, Callable[[float], ActuarialResult]] = {
    'dental': dental_curve,
    'vision': vision_curve,
    'accident': accident_curve,
    'critical-illness': critical_illness_curve,
    'hospital-indemnity': hospital_indemnity_curve,
    'disability': disability_curve,
    'long-term-care': long_term_care_curve,
    'life': life_curve,
}


# =============================================================================
# PUBLIC API
# =============================================================================

def calculate_actuarial_probability(age: float, category: str) -> ActuarialResult:
    """
    Evaluate one category's curve at an age.

    Args:
        age: Member age (clamped to 0-120)
        category: One of ADD_ON_CATEGORIES

    Returns:
        ActuarialResult; unknown categories get a neutral moderate result
    """
    valid_age = max(0, min(MAX_AGE, age))
    curve = ACTUARIAL_CURVES.get(category)
    if curve is None:
        return ActuarialResult(
            probability_score=50,
            risk_level=RiskLevel.MODERATE,
            utilization_rate=0.1,
            cost_multiplier=1.0,
            reasoning='Standard recommendation',
        )
    return curve(valid_age)


def calculate_household_actuarial_probability(ages: Optional[List[int]], category: str) -> ActuarialResult:
    """
    Household result for a category: the member with the highest probability.

    Ties keep the first member in the list.
    """
    if not ages:
        return calculate_actuarial_probability(DEFAULT_CURVE_AGE, category)

    best = None
    for age in ages:
        result = calculate_actuarial_probability(age, category)
        if best is None or result.probability_score > best.probability_score:
            best = result
    return best


def get_age_adjusted_cost(base_cost: float, age: float, category: str) -> int:
    """Monthly cost scaled by the category's age multiplier."""
    return round(base_cost * calculate_actuarial_probability(age, category).cost_multiplier)
