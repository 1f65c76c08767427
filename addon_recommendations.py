"""
Add-On Insurance Recommendation Engine

Scores eight optional coverages (dental, vision, accident, critical illness,
hospital indemnity, disability, long-term care, term life) for a household.

Provides functionality to:
- Score each product from the household's actuarial curves plus profile modifiers
- Bucket products into high / medium / low priority (75 / 50 / 25 thresholds)
- Price each product for the household with family and multi-state adjustments
- Export the scored catalog as a pandas DataFrame
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from actuarial_curves import calculate_household_actuarial_probability, get_age_adjusted_cost
from constants import BUDGET_RANGES
from coverage_eval import CostRange, Priority
from household_schema import HouseholdProfile
from state_cost_index import DEFAULT_STATE_COST_INDEX, StateCostIndex

logger = logging.getLogger(__name__)

PRIORITY_THRESHOLDS = {
    'HIGH': 75,
    'MEDIUM': 50,
    'LOW': 25,
}

ADD_ON_COST_ADJUSTMENTS = {
    'FAMILY_DISCOUNT': 0.9,
    'BUNDLE_DISCOUNT': 0.95,
    'MULTI_STATE_PREMIUM': 1.05,
}

# Budget brackets at or below this monthly maximum count as tight
TIGHT_BUDGET_MAX = 500
EXPENSIVE_ADD_ON_COST = 100

AGE_GROUP_BRACKETS = [
    ('Children (0-17)', 0, 17),
    ('Young Adults (18-30)', 18, 30),
    ('Adults (31-40)', 31, 40),
    ('Adults (41-50)', 41, 50),
    ('Pre-Retirement (51-64)', 51, 64),
    ('Seniors (65-74)', 65, 74),
    ('Seniors (75+)', 75, 120),
]


# =============================================================================
# PRODUCT CATALOG
# =============================================================================

@dataclass(frozen=True)
class AgeRecommendation:
    min_age: int
    max_age: int
    priority: Priority
    probability_threshold: int

    def covers(self, age: int) -> bool:
        return self.min_age <= age <= self.max_age


@dataclass(frozen=True)
class AddOnProduct:
    """One add-on insurance product with national-average monthly cost."""
    id: str
    name: str
    short_name: str
    category: str
    description: str
    base_cost_per_month: float
    typical_coverage: str
    benefits: Tuple[str, ...] = ()
    age_recommendations: Tuple[AgeRecommendation, ...] = ()


def _ages(*brackets) -> Tuple[AgeRecommendation, ...]:
    return tuple(AgeRecommendation(lo, hi, priority, threshold) for lo, hi, priority, threshold in brackets)


H, M, L = Priority.HIGH, Priority.MEDIUM, Priority.LOW

ADD_ON_PRODUCTS = [
    AddOnProduct(
        id='dental',
        name='Dental Insurance',
        short_name='Dental',
        category='dental',
        description='Coverage for preventive care, basic procedures, and major dental work',
        base_cost_per_month=45,
        typical_coverage='100% preventive, 80% basic, 50% major',
        benefits=('2 cleanings & exams per year', 'X-rays and diagnostics', 'Fillings and extractions',
                  'Root canals and crowns', 'Orthodontics (some plans)'),
        age_recommendations=_ages((0, 17, H, 95), (18, 30, M, 70), (31, 50, H, 85), (51, 64, H, 85),
                                  (65, 120, H, 90)),
    ),
    AddOnProduct(
        id='vision',
        name='Vision Insurance',
        short_name='Vision',
        category='vision',
        description='Coverage for eye exams, glasses, contact lenses, and vision correction',
        base_cost_per_month=22,
        typical_coverage='$150-300 frames allowance, exam covered',
        benefits=('Annual eye exam', 'Prescription glasses or contacts', 'Discounts on LASIK surgery',
                  'Frames and lenses allowance'),
        age_recommendations=_ages((0, 17, H, 90), (18, 40, M, 65), (41, 64, M, 70), (65, 120, H, 85)),
    ),
    AddOnProduct(
        id='accident',
        name='Accident Insurance',
        short_name='Accident',
        category='accident',
        description='Cash benefits for injuries from accidents, covering out-of-pocket costs',
        base_cost_per_month=35,
        typical_coverage='Lump sum payments based on injury type',
        benefits=('Emergency room visits', 'Ambulance transportation', 'Fractures and dislocations',
                  'Burns and lacerations', 'Follow-up care'),
        age_recommendations=_ages((0, 17, M, 70), (18, 30, H, 85), (31, 50, M, 60), (51, 120, L, 40)),
    ),
    AddOnProduct(
        id='critical-illness',
        name='Critical Illness Insurance',
        short_name='Critical Illness',
        category='critical-illness',
        description='Lump sum payment upon diagnosis of major illnesses like cancer, heart attack, or stroke',
        base_cost_per_month=100,
        typical_coverage='$10,000-$100,000 lump sum benefit',
        benefits=('Cancer diagnosis coverage', 'Heart attack and stroke', 'Organ transplant',
                  'Kidney failure', 'Major burn coverage'),
        age_recommendations=_ages((18, 30, L, 30), (31, 40, M, 60), (41, 50, H, 80), (51, 64, H, 90),
                                  (65, 74, H, 85), (75, 120, M, 65)),
    ),
    AddOnProduct(
        id='hospital-indemnity',
        name='Hospital Indemnity Insurance',
        short_name='Hospital Indemnity',
        category='hospital-indemnity',
        description='Daily cash benefit for hospital stays, regardless of medical bills',
        base_cost_per_month=55,
        typical_coverage='$100-500 per day of hospitalization',
        benefits=('Daily hospital confinement benefit', 'ICU daily benefit (higher amount)',
                  'Hospital admission benefit', 'Emergency room benefit', 'Ambulance benefit'),
        age_recommendations=_ages((18, 40, L, 35), (41, 50, M, 60), (51, 64, H, 75), (65, 74, H, 85),
                                  (75, 120, H, 95)),
    ),
    AddOnProduct(
        id='disability',
        name='Disability Insurance (Income Protection)',
        short_name='Disability',
        category='disability',
        description='Replaces portion of income if unable to work due to illness or injury',
        base_cost_per_month=125,
        typical_coverage='60% of pre-disability income',
        benefits=('Short-term disability (90 days - 2 years)', 'Long-term disability (2+ years)',
                  '50-70% income replacement', 'Own-occupation coverage',
                  'Residual benefits for partial disability'),
        age_recommendations=_ages((18, 30, L, 40), (31, 40, H, 90), (41, 50, H, 90), (51, 64, M, 70),
                                  (65, 120, L, 20)),
    ),
    AddOnProduct(
        id='long-term-care',
        name='Long-Term Care Insurance',
        short_name='Long-Term Care',
        category='long-term-care',
        description='Coverage for extended care services like nursing homes, assisted living, or in-home care',
        base_cost_per_month=200,
        typical_coverage='$150-300 per day for 3-5 years',
        benefits=('Nursing home care', 'Assisted living facility', 'In-home care services',
                  'Adult day care', 'Respite care for caregivers'),
        age_recommendations=_ages((18, 40, L, 10), (41, 50, L, 30), (51, 64, M, 70), (65, 74, H, 85),
                                  (75, 120, H, 90)),
    ),
    AddOnProduct(
        id='term-life',
        name='Term Life Insurance',
        short_name='Term Life',
        category='life',
        description='Death benefit to protect dependents and replace income for 10-30 years',
        base_cost_per_month=60,
        typical_coverage='$250,000-$1,000,000 death benefit',
        benefits=('Death benefit payment', 'Income replacement', 'Mortgage protection',
                  'College fund protection', 'Final expense coverage'),
        age_recommendations=_ages((18, 30, L, 40), (31, 40, H, 85), (41, 50, H, 85), (51, 64, M, 60),
                                  (65, 120, L, 30)),
    ),
]


def get_add_on_product(product_id: str) -> Optional[AddOnProduct]:
    return next((p for p in ADD_ON_PRODUCTS if p.id == product_id), None)


def get_add_on_products_by_category(category: str) -> List[AddOnProduct]:
    return [p for p in ADD_ON_PRODUCTS if p.category == category]


# =============================================================================
# SCORING
# =============================================================================

def get_priority_for_score(score: float) -> Priority:
    """
    Bucket a score: >= 75 high, >= 50 medium, otherwise low.

    Scores below 25 are still labelled low; callers drop them from the
    filtered recommendation list.
    """
    if score >= PRIORITY_THRESHOLDS['HIGH']:
        return Priority.HIGH
    if score >= PRIORITY_THRESHOLDS['MEDIUM']:
        return Priority.MEDIUM
    return Priority.LOW


def analyze_household_age_groups(ages: Iterable[int]) -> List[Dict]:
    """Group member ages into the display brackets that have members."""
    ages = list(ages)
    groups = []
    for name, lo, hi in AGE_GROUP_BRACKETS:
        members = [age for age in ages if lo <= age <= hi]
        if members:
            groups.append({
                'group_name': name,
                'min_age': lo,
                'max_age': hi,
                'member_count': len(members),
                'ages': members,
            })
    return groups


def calculate_modifiers(product: AddOnProduct, profile: HouseholdProfile) -> Tuple[int, List[str]]:
    """
    Score adjustments from the household profile.

    Returns:
        Tuple of (adjustment, reasons)
    """
    category = product.category
    health = profile.health
    adjustment = 0
    reasons = []

    if health.has_chronic_conditions and category in ('critical-illness', 'hospital-indemnity', 'disability'):
        adjustment += 10
        reasons.append('Beneficial for those with chronic conditions')

    if profile.num_children > 0 and category in ('dental', 'vision'):
        adjustment += 10
        reasons.append('Highly recommended for families with children')

    if health.prescription_count == '4-or-more' and category == 'critical-illness':
        adjustment += 5
        reasons.append('Additional protection for ongoing medical needs')

    budget = profile.budget
    if (budget and budget != 'not-sure' and BUDGET_RANGES.get(budget, 0) <= TIGHT_BUDGET_MAX
            and product.base_cost_per_month > EXPENSIVE_ADD_ON_COST):
        adjustment -= 10
        reasons.append('Consider budget constraints')

    if len(profile.residences) > 1 and category in ('accident', 'hospital-indemnity'):
        adjustment += 5
        reasons.append('Additional protection for frequent travelers')

    if profile.context().some_medicare_eligible and category in ('dental', 'vision', 'hospital-indemnity'):
        adjustment += 10
        reasons.append('Fills important gaps in Medicare coverage')

    return adjustment, reasons


def count_applicable_members(product: AddOnProduct, ages: Iterable[int]) -> int:
    """Members whose age falls in a bracket worth recommending (at least 1)."""
    count = 0
    for age in ages:
        if any(rec.covers(age) and rec.probability_threshold >= PRIORITY_THRESHOLDS['LOW']
               for rec in product.age_recommendations):
            count += 1
    return max(1, count)


def determine_age_group(age_groups: List[Dict], product: AddOnProduct) -> str:
    """Household age group where this product's bracket threshold is highest."""
    if not age_groups:
        return 'All household members'

    top_group = age_groups[0]
    top_score = 0
    for group in age_groups:
        for rec in product.age_recommendations:
            overlaps = rec.min_age <= group['max_age'] and rec.max_age >= group['min_age']
            if overlaps and rec.probability_threshold > top_score:
                top_score = rec.probability_threshold
                top_group = group
    return top_group['group_name']


def calculate_household_cost(
    adjusted_cost: float,
    applicable_members: int,
    multi_state: bool
) -> float:
    """
    Household monthly cost for one product.

    Two or more members earn the family discount; multiple residences add
    the multi-state premium. With both applied the household still pays
    less than per-member cost times member count.
    """
    household_cost = adjusted_cost * applicable_members
    if applicable_members >= 2:
        household_cost *= ADD_ON_COST_ADJUSTMENTS['FAMILY_DISCOUNT']
    if multi_state:
        household_cost *= ADD_ON_COST_ADJUSTMENTS['MULTI_STATE_PREMIUM']
    return household_cost


def score_add_on(
    product: AddOnProduct,
    profile: HouseholdProfile,
    age_groups: List[Dict],
    cost_index: StateCostIndex
) -> Dict:
    """Score and price one product for the household."""
    ages = profile.all_ages
    actuarial = calculate_household_actuarial_probability(ages, product.category)
    adjustment, modifier_reasons = calculate_modifiers(product, profile)
    final_score = max(0, min(100, actuarial.probability_score + adjustment))

    oldest = max(ages) if ages else 0
    age_adjusted = get_age_adjusted_cost(product.base_cost_per_month, oldest, product.category)
    state_adjusted = cost_index.adjust_cost_range(CostRange(age_adjusted, age_adjusted), profile.states)
    adjusted_cost = state_adjusted.average

    applicable = count_applicable_members(product, ages)
    household_cost = calculate_household_cost(adjusted_cost, applicable, len(profile.states) > 1)

    reasons = [actuarial.reasoning]
    if age_groups:
        reasons.append('Household composition: ' + ', '.join(g['group_name'] for g in age_groups))
    reasons.extend(modifier_reasons)
    if product.category in ('dental', 'vision'):
        reasons.append('Typically not covered by standard health insurance')

    return {
        'id': product.id,
        'name': product.name,
        'short_name': product.short_name,
        'category': product.category,
        'description': product.description,
        'typical_coverage': product.typical_coverage,
        'benefits': list(product.benefits),
        'priority': get_priority_for_score(final_score).value,
        'probability_score': round(final_score),
        'risk_level': actuarial.risk_level.value,
        'cost_multiplier': actuarial.cost_multiplier,
        'utilization_rate': actuarial.utilization_rate,
        'adjusted_cost_per_month': round(adjusted_cost),
        'household_cost_per_month': round(household_cost),
        'applicable_members': applicable,
        'reasons': reasons,
        'age_group': determine_age_group(age_groups, product),
    }


def _sort_key(recommendation: Dict):
    return (-Priority(recommendation['priority']).rank, -recommendation['probability_score'])


def empty_add_on_analysis() -> Dict:
    return {
        'recommendations': [],
        'all_recommendations': [],
        'high_priority': [],
        'medium_priority': [],
        'low_priority': [],
        'total_monthly_high_priority': 0,
        'total_monthly_all_recommended': 0,
        'household_age_groups': [],
    }


def generate_add_on_recommendations(
    profile: HouseholdProfile,
    excluded_categories: Optional[Iterable[str]] = None,
    cost_index: Optional[StateCostIndex] = None,
) -> Dict:
    """
    Score every add-on product for a household.

    Args:
        profile: Household profile
        excluded_categories: Categories to skip (defaults to the profile's exclusions)
        cost_index: State cost index for pricing

    Returns:
        Dict with:
        {
            'recommendations': scored products with score >= 25, sorted,
            'all_recommendations': every scored product, sorted,
            'high_priority' / 'medium_priority' / 'low_priority': buckets,
            'total_monthly_high_priority': int,
            'total_monthly_all_recommended': int,
            'household_age_groups': list of age-group dicts
        }
    """
    ages = profile.all_ages
    if not ages:
        logger.warning("No household ages provided for add-on recommendations")
        return empty_add_on_analysis()

    excluded = set(excluded_categories if excluded_categories is not None
                   else profile.excluded_add_on_categories)
    cost_index = cost_index or DEFAULT_STATE_COST_INDEX
    age_groups = analyze_household_age_groups(ages)

    all_recommendations = [
        score_add_on(product, profile, age_groups, cost_index)
        for product in ADD_ON_PRODUCTS
        if product.category not in excluded
    ]
    all_recommendations.sort(key=_sort_key)
    recommendations = [
        r for r in all_recommendations if r['probability_score'] >= PRIORITY_THRESHOLDS['LOW']
    ]

    high = [r for r in recommendations if r['priority'] == Priority.HIGH.value]
    medium = [r for r in recommendations if r['priority'] == Priority.MEDIUM.value]
    low = [r for r in recommendations if r['priority'] == Priority.LOW.value]

    return {
        'recommendations': recommendations,
        'all_recommendations': all_recommendations,
        'high_priority': high,
        'medium_priority': medium,
        'low_priority': low,
        'total_monthly_high_priority': sum(r['household_cost_per_month'] for r in high),
        'total_monthly_all_recommended': sum(r['household_cost_per_month'] for r in recommendations),
        'household_age_groups': age_groups,
    }


# =============================================================================
# SELECTION HELPERS
# =============================================================================

def calculate_bundle_discount(selected: List[Dict]) -> float:
    if len(selected) >= 3:
        return ADD_ON_COST_ADJUSTMENTS['BUNDLE_DISCOUNT']
    return 1.0


def calculate_total_add_on_cost(selected: List[Dict]) -> int:
    subtotal = sum(r['household_cost_per_month'] for r in selected)
    return round(subtotal * calculate_bundle_discount(selected))


def get_recommendations_by_priority(analysis: Dict, priority: Priority) -> List[Dict]:
    return [r for r in analysis['recommendations'] if r['priority'] == priority.value]


def filter_by_budget(recommendations: List[Dict], max_budget: float) -> List[Dict]:
    """Take recommendations in order while they fit within the budget."""
    total = 0
    selected = []
    for rec in recommendations:
        if total + rec['household_cost_per_month'] <= max_budget:
            selected.append(rec)
            total += rec['household_cost_per_month']
    return selected


def recommendations_to_dataframe(analysis: Dict) -> pd.DataFrame:
    """
    Flatten the scored catalog into a DataFrame.

    Columns: product, category, priority, probability_score, risk_level,
    cost_multiplier, adjusted_cost_per_month, household_cost_per_month,
    applicable_members, age_group, recommended
    """
    columns = [
        'product', 'category', 'priority', 'probability_score', 'risk_level',
        'cost_multiplier', 'adjusted_cost_per_month', 'household_cost_per_month',
        'applicable_members', 'age_group', 'recommended',
    ]
    recommended_ids = {r['id'] for r in analysis.get('recommendations', [])}
    rows = [
        {
            'product': r['name'],
            'category': r['category'],
            'priority': r['priority'],
            'probability_score': r['probability_score'],
            'risk_level': r['risk_level'],
            'cost_multiplier': r['cost_multiplier'],
            'adjusted_cost_per_month': r['adjusted_cost_per_month'],
            'household_cost_per_month': r['household_cost_per_month'],
            'applicable_members': r['applicable_members'],
            'age_group': r['age_group'],
            'recommended': r['id'] in recommended_ids,
        }
        for r in analysis.get('all_recommendations', [])
    ]
    return pd.DataFrame(rows, columns=columns)
