"""
Constants and reference data for the multi-residence coverage engine
Includes cost assumptions, eligibility thresholds and rating tables
"""

# Medicare eligibility
MEDICARE_ELIGIBILITY_AGE = 65
MIN_ADULT_AGE = 18
MAX_AGE = 120

# Last age rated in the ACA 3:1 curve; older ages reuse it
ACA_MAX_RATED_AGE = 64

# ==============================================================================
# ACA 3:1 AGE RATING CURVE
# ==============================================================================
# Source: CMS Market Rating Reforms, 45 CFR 147.102
# Federal default age rating curve - ratio relative to age 21 (base = 1.000)
# Age 21 = 1.000 (base), Age 64 = 3.000 (maximum allowed ratio)

ACA_AGE_CURVE = {
    # Children (0-20): All rated at 0.635 relative to age 21
    0: 0.635, 1: 0.635, 2: 0.635, 3: 0.635, 4: 0.635,
    5: 0.635, 6: 0.635, 7: 0.635, 8: 0.635, 9: 0.635,
    10: 0.635, 11: 0.635, 12: 0.635, 13: 0.635, 14: 0.635,
    15: 0.635, 16: 0.635, 17: 0.635, 18: 0.635, 19: 0.635,
    20: 0.635,
    # Young adults (21-24): Base rate at 1.000
    21: 1.000, 22: 1.000, 23: 1.000, 24: 1.000,
    # Adults (25-64): Gradual increase to 3.000
    25: 1.004, 26: 1.024, 27: 1.048, 28: 1.087, 29: 1.119,
    30: 1.135, 31: 1.159, 32: 1.183, 33: 1.198, 34: 1.214,
    35: 1.222, 36: 1.230, 37: 1.238, 38: 1.246, 39: 1.262,
    40: 1.278, 41: 1.302, 42: 1.325, 43: 1.357, 44: 1.397,
    45: 1.444, 46: 1.500, 47: 1.563, 48: 1.635, 49: 1.706,
    50: 1.786, 51: 1.865, 52: 1.952, 53: 2.040, 54: 2.135,
    55: 2.230, 56: 2.333, 57: 2.437, 58: 2.548, 59: 2.603,
    60: 2.714, 61: 2.810, 62: 2.873, 63: 2.952, 64: 3.000,
}

# Only the three oldest children under 21 are rated in a family premium
MAX_RATED_CHILDREN = 3

# ==============================================================================
# FEDERAL POVERTY LEVEL (2025 guidelines, used for 2026 coverage)
# ==============================================================================
# Source: HHS 2025 Poverty Guidelines
# Lookup by household size 1-8; larger households extrapolate linearly

FPL_2025_CONTIGUOUS = {
    1: 15650, 2: 21150, 3: 26650, 4: 32150,
    5: 37650, 6: 43150, 7: 48650, 8: 54150,
}
FPL_2025_CONTIGUOUS_ADDITIONAL = 5500

FPL_2025_ALASKA = {
    1: 19550, 2: 26430, 3: 33310, 4: 40190,
    5: 47070, 6: 53950, 7: 60830, 8: 67710,
}
FPL_2025_ALASKA_ADDITIONAL = 6880

FPL_2025_HAWAII = {
    1: 17990, 2: 24320, 3: 30650, 4: 36980,
    5: 43310, 6: 49640, 7: 55970, 8: 62300,
}
FPL_2025_HAWAII_ADDITIONAL = 6330

# FPL percentage gates
MEDICAID_EXPANSION_FPL = 138
MEDICAID_NON_EXPANSION_FPL = 100
PTC_MIN_FPL = 100
PTC_MAX_FPL = 400

# Expected contribution schedule: (fpl_floor, fpl_ceiling, pct_at_floor, pct_at_ceiling)
# Percentages of annual income; 0% at or below 150% FPL
EXPECTED_CONTRIBUTION_BRACKETS = [
    (0, 150, 0.0, 0.0),
    (150, 200, 0.0, 2.0),
    (200, 250, 2.0, 4.0),
    (250, 300, 4.0, 6.0),
    (300, 400, 6.0, 8.5),
]

# States that expanded Medicaid to 138% FPL
MEDICAID_EXPANSION_STATES = frozenset([
    'AK', 'AZ', 'AR', 'CA', 'CO', 'CT', 'DE', 'DC', 'HI', 'ID', 'IL', 'IN',
    'IA', 'KY', 'LA', 'ME', 'MD', 'MA', 'MI', 'MN', 'MO', 'MT', 'NE', 'NV',
    'NH', 'NJ', 'NM', 'NY', 'NC', 'ND', 'OH', 'OR', 'PA', 'RI', 'SD', 'UT',
    'VT', 'VA', 'WA', 'WV', 'WI',
])

# Midpoints used when only an income bracket is known
INCOME_RANGE_MIDPOINTS = {
    'under-30k': 25000,
    '30k-50k': 40000,
    '50k-75k': 62500,
    '75k-100k': 87500,
    '100k-150k': 125000,
    '150k-plus': 175000,
    'prefer-not-say': 75000,
}
DEFAULT_INCOME_RANGE = 'prefer-not-say'

# IRS Affordability Threshold (2026 Plan Year)
# Source: IRS Revenue Procedure 2024-35
# Employer coverage is affordable if the employee's share ≤ 9.96% of household income
AFFORDABILITY_THRESHOLD_2026 = 0.0996  # 9.96% of household income

# Heuristic benchmark (SLCSP) premium per covered person when no lookup is available
BENCHMARK_FALLBACK_PER_PERSON = 500

# ==============================================================================
# INSURANCE COST ASSUMPTIONS (monthly, USD)
# ==============================================================================

INSURANCE_COSTS = {
    # Medicare (Part B + Medigap)
    'MEDICARE_PER_PERSON_LOW': 300,
    'MEDICARE_PER_PERSON_HIGH': 500,
    # Non-Medicare adults
    'ADULT_PPO_LOW': 600,
    'ADULT_PPO_HIGH': 900,
    # Children
    'CHILD_LOW': 300,
    'CHILD_HIGH': 400,
    # Family plan base (2 adults + 2 children)
    'FAMILY_BASE_LOW': 1800,
    'FAMILY_BASE_HIGH': 2500,
    'ADDITIONAL_CHILD_LOW': 300,
    'ADDITIONAL_CHILD_HIGH': 400,
    'SINGLE_PARENT_ADJUSTMENT_LOW': 600,
    'SINGLE_PARENT_ADJUSTMENT_HIGH': 900,
    # Couples
    'COUPLE_LOW': 1200,
    'COUPLE_HIGH': 1800,
    # Medicare Advantage
    'MEDICARE_ADVANTAGE_LOW': 0,
    'MEDICARE_ADVANTAGE_HIGH': 150,
    # Medigap Plan N
    'MEDIGAP_PLAN_N_LOW': 250,
    'MEDIGAP_PLAN_N_HIGH': 400,
    # Regional PPO
    'REGIONAL_PPO_PER_PERSON_LOW': 400,
    'REGIONAL_PPO_PER_PERSON_HIGH': 650,
    # ACA Marketplace
    'ACA_ADULT_LOW': 400,
    'ACA_ADULT_HIGH': 800,
    'ACA_CHILD_LOW': 200,
    'ACA_CHILD_HIGH': 350,
    # High Deductible Health Plan
    'HDHP_ADULT_LOW': 350,
    'HDHP_ADULT_HIGH': 600,
    'HDHP_CHILD_LOW': 150,
    'HDHP_CHILD_HIGH': 250,
}

COPAY_AMOUNTS = {
    'DOCTOR_VISIT': 20,
    'EMERGENCY_ROOM': 50,
}

DEDUCTIBLE_RANGES = {
    'HDHP_FAMILY_LOW': 3000,
    'HDHP_FAMILY_HIGH': 7000,
}

# Typical subsidy reduction for marketplace plans (percent)
SUBSIDY_REDUCTION = {
    'LOW': 50,
    'HIGH': 80,
}

CONCIERGE_COSTS = {
    'LOW': 150,
    'HIGH': 400,
}

# ==============================================================================
# COVERAGE SCORING
# ==============================================================================

COVERAGE_SCORES = {
    'NO_STATES': 50,
    'SINGLE_STATE': 90,
    'ALL_POPULAR_STATES': 85,
    'ADJACENT_STATES': 75,
    'MANY_STATES': 80,        # 5+ states
    'MIXED_REGIONS': 85,      # 2-4 states
    'MEDICARE_SCORE': 90,
    'MIXED_HOUSEHOLD_SCORE': 85,
}

# States with strong national carrier networks
POPULAR_STATES = frozenset([
    'NY', 'CA', 'FL', 'TX', 'AZ', 'IL', 'PA', 'OH', 'NC', 'GA',
])

# Adjacent state pairs that often share regional networks
ADJACENT_STATE_PAIRS = frozenset(frozenset(pair) for pair in [
    ('NY', 'NJ'), ('NY', 'CT'), ('NY', 'PA'),
    ('WA', 'OR'), ('CA', 'NV'), ('CA', 'AZ'),
    ('FL', 'GA'), ('TX', 'LA'), ('IL', 'WI'),
    ('MA', 'NH'), ('MA', 'RI'), ('MA', 'CT'),
])

# Maximum monthly spend by budget bracket
BUDGET_RANGES = {
    'less-500': 500,
    '500-1000': 1000,
    '1000-2000': 2000,
    '2000-3500': 3500,
    '3500-plus': 10000,
    'not-sure': 10000,
}
DEFAULT_BUDGET = 'not-sure'

THRESHOLDS = {
    'HIGH_DEDUCTIBLE': 5000,
    'HIGH_OUT_OF_POCKET_MAX': 10000,
    'SIGNIFICANT_SAVINGS': 100,
    'MODERATE_SAVINGS': 50,
    'COST_INCREASE_WARNING': -100,
}

# ==============================================================================
# PREMIUM RATING
# ==============================================================================

# Premium multiplier per metal tier relative to Silver
METAL_TIER_MULTIPLIERS = {
    'Catastrophic': 0.60,
    'Bronze': 0.75,
    'Silver': 1.00,
    'Gold': 1.30,
    'Platinum': 1.60,
}

# Estimated age-21 Silver premium by state (monthly)
ESTIMATED_STATE_BASE_RATES = {
    'AK': 650, 'NY': 580, 'MA': 560, 'CT': 550, 'NJ': 545,
    'VT': 535, 'NH': 525, 'RI': 515, 'DE': 505, 'MD': 500,
    'CA': 480, 'WA': 470, 'OR': 460, 'CO': 450, 'IL': 445,
    'FL': 440, 'PA': 435, 'ME': 430, 'MN': 425, 'WI': 420,
    'NC': 410, 'NV': 410, 'AZ': 405, 'GA': 400, 'MI': 395,
    'OH': 390, 'IN': 385, 'MO': 380, 'SC': 375, 'TN': 370,
    'KY': 365, 'LA': 360, 'MS': 355, 'AR': 350, 'OK': 345,
    'KS': 340, 'NE': 338, 'IA': 335, 'ND': 332, 'SD': 330,
    'MT': 328, 'WY': 325, 'ID': 322, 'UT': 320, 'NM': 318,
    'TX': 315, 'WV': 312, 'AL': 335, 'HI': 505, 'DC': 415,
    'VA': 412,
}
DEFAULT_STATE_BASE_RATE = 410

# Maximum tobacco surcharge allowed by state (fraction of premium)
TOBACCO_SURCHARGE_LIMITS = {
    'CA': 0.0, 'CT': 0.0, 'MA': 0.0, 'NJ': 0.0,
    'NY': 0.0, 'RI': 0.0, 'VT': 0.0, 'DC': 0.0,
    'AR': 0.20, 'CO': 0.15, 'KY': 0.40,
}
DEFAULT_TOBACCO_SURCHARGE = 0.50

# Typical (deductible, out-of-pocket max) by plan family
PLAN_COST_SHARING = {
    'bronze': (7000, 9450),
    'silver': (5000, 9450),
    'gold': (1500, 8700),
    'platinum': (500, 4000),
    'hdhp': (3200, 8050),
}
DEFAULT_COST_SHARING = (3000, 8000)

# ==============================================================================
# MEDICAL COST ASSUMPTIONS
# ==============================================================================

# Expected annual medical spending by age band: (min_age, max_age, annual_cost)
ESTIMATED_MEDICAL_COSTS_BY_AGE = [
    (0, 29, 3000),
    (30, 49, 5000),
    (50, 64, 8000),
    (65, MAX_AGE, 12000),
]

HEALTH_STATUS_MULTIPLIERS = {
    'excellent': 0.6,
    'good': 1.0,
    'fair': 1.5,
    'poor': 2.5,
}

# Annual cost added per chronic condition
CHRONIC_CONDITION_COSTS = {
    'diabetes': 8000,
    'heart-disease': 12000,
    'hypertension': 3000,
    'asthma': 2000,
    'arthritis': 3000,
    'copd': 6000,
    'cancer': 30000,
    'kidney-disease': 15000,
    'depression': 2500,
    'obesity': 3000,
}

# Base annual out-of-pocket spend by metal tier
BASE_OOP_BY_TIER = {
    'Catastrophic': 5000,
    'Bronze': 4000,
    'Silver': 3000,
    'Gold': 2000,
    'Platinum': 1000,
}

# ==============================================================================
# MEDICARE (2024 figures)
# ==============================================================================
# Source: CMS 2024 Medicare Parts A & B Premiums and Deductibles

MEDICARE_2024 = {
    'PART_B_PREMIUM': 174.70,
    'PART_B_DEDUCTIBLE': 240,
    'PART_A_DEDUCTIBLE': 1632,
    'PART_D_AVERAGE_PREMIUM': 55,
    'PART_D_BASE_BENEFICIARY_PREMIUM': 34.70,
    'PART_D_PENALTY_RATE': 0.01,
    'PART_B_PENALTY_RATE': 0.10,
    'MEDIGAP_BASE_PREMIUM': 150,
}

# Medigap Plan G premium factor by state
MEDIGAP_STATE_FACTORS = {
    'FL': 1.25, 'NY': 1.35, 'CA': 1.20, 'TX': 1.0, 'PA': 1.15,
    'OH': 0.95, 'IL': 1.10, 'GA': 1.05, 'NC': 1.0, 'MI': 1.10,
}

# IRMAA brackets by filing status: (max_magi, part_b_surcharge, part_d_surcharge)
IRMAA_BRACKETS_2024 = {
    'single': [
        (103000, 0.0, 0.0),
        (129000, 69.90, 12.90),
        (161000, 174.70, 33.30),
        (193000, 279.50, 53.80),
        (500000, 384.30, 74.20),
        (float('inf'), 419.30, 81.00),
    ],
    'married_joint': [
        (206000, 0.0, 0.0),
        (258000, 69.90, 12.90),
        (322000, 174.70, 33.30),
        (386000, 279.50, 53.80),
        (750000, 384.30, 74.20),
        (float('inf'), 419.30, 81.00),
    ],
    'married_separate': [
        (103000, 0.0, 0.0),
        (397000, 384.30, 74.20),
        (float('inf'), 419.30, 81.00),
    ],
}

# ==============================================================================
# ENROLLMENT CALENDAR
# ==============================================================================

# Open enrollment runs Nov 1 through Jan 15 of the following year
OPEN_ENROLLMENT_START = (11, 1)
OPEN_ENROLLMENT_END = (1, 15)

# Milestone ages that change coverage or premiums
AGE_MILESTONES = [26, 30, 40, 50, 60, 64, 65]

# Date format for narrative text
DATE_FORMAT = "%Y-%m-%d"
