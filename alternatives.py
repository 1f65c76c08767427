"""
Alternative Coverage Options

Builds the secondary options shown next to each recommendation, with
monthly cost ranges and plain-language pros and cons.
"""

from typing import Dict, List

from constants import (
    COPAY_AMOUNTS,
    COVERAGE_SCORES,
    DEDUCTIBLE_RANGES,
    INSURANCE_COSTS,
    SUBSIDY_REDUCTION,
)
from coverage_eval import CostRange
from coverage_eval.utils.formatting import format_states


def _option(name: str, cost: CostRange, pros: List[str], cons: List[str]) -> Dict:
    return {
        'name': name,
        'monthly_cost': cost.to_dict(),
        'pros': pros,
        'cons': cons,
    }


def _multi_state_con(states: List[str], many_template: str, few_template: str) -> str:
    if len(states) > 2:
        return many_template.format(count=len(states))
    return few_template.format(states=format_states(states))


def _aca_cost(adult_count: int, child_count: int) -> CostRange:
    return CostRange(
        adult_count * INSURANCE_COSTS['ACA_ADULT_LOW'] + child_count * INSURANCE_COSTS['ACA_CHILD_LOW'],
        adult_count * INSURANCE_COSTS['ACA_ADULT_HIGH'] + child_count * INSURANCE_COSTS['ACA_CHILD_HIGH'],
    )


def get_medicare_alternatives(member_count: int, states: List[str]) -> List[Dict]:
    """Medicare Advantage and Medigap Plan N alternatives."""
    return [
        _option(
            'Medicare Advantage',
            CostRange(
                INSURANCE_COSTS['MEDICARE_ADVANTAGE_LOW'],
                INSURANCE_COSTS['MEDICARE_ADVANTAGE_HIGH'] * member_count,
            ),
            [
                'Lower monthly premiums (sometimes $0)',
                'Often includes dental, vision, and prescription coverage',
                'Out-of-pocket maximum protects you',
            ],
            [
                'Limited to specific networks in each state',
                _multi_state_con(
                    states,
                    'May need different plans across {count} states',
                    'May need different plans in {states}',
                ),
                'Requires referrals for specialists',
                'Coverage may not work seamlessly between states',
            ],
        ),
        _option(
            'Medicare + Medicare Supplement Plan N',
            CostRange(
                INSURANCE_COSTS['MEDIGAP_PLAN_N_LOW'] * member_count,
                INSURANCE_COSTS['MEDIGAP_PLAN_N_HIGH'] * member_count,
            ),
            [
                'Slightly lower premiums than Plan G',
                'Works nationwide with any Medicare provider',
                'No network restrictions',
            ],
            [
                f"Small copays for doctor visits (${COPAY_AMOUNTS['DOCTOR_VISIT']}) "
                f"and ER (${COPAY_AMOUNTS['EMERGENCY_ROOM']})",
                'Must pay Part B excess charges (rare)',
            ],
        ),
    ]


def get_mixed_household_alternatives(
    medicare_count: int,
    adult_count: int,
    child_count: int,
    states: List[str]
) -> List[Dict]:
    """Alternatives for households mixing Medicare and non-Medicare members."""
    alternatives = []

    if medicare_count > 0:
        alternatives.append(_option(
            'Medicare Advantage for seniors + PPO for others',
            CostRange(
                medicare_count * INSURANCE_COSTS['MEDICARE_ADVANTAGE_LOW']
                + adult_count * INSURANCE_COSTS['ADULT_PPO_LOW']
                + child_count * INSURANCE_COSTS['CHILD_LOW'],
                medicare_count * INSURANCE_COSTS['MEDICARE_ADVANTAGE_HIGH']
                + adult_count * INSURANCE_COSTS['ADULT_PPO_HIGH']
                + child_count * INSURANCE_COSTS['CHILD_HIGH'],
            ),
            [
                'Lower costs for Medicare-eligible members',
                'Single PPO plan covers all non-Medicare members',
            ],
            [
                'Medicare Advantage has network limitations',
                _multi_state_con(
                    states,
                    'May need separate MA plans across {count} states',
                    'May need separate MA plans in {states}',
                ),
                'Complex coordination between Medicare and private insurance',
            ],
        ))

    alternatives.append(_option(
        'ACA Marketplace plans for all non-Medicare members',
        _aca_cost(adult_count, child_count),
        [
            'Income-based subsidies may significantly reduce costs',
            'Guaranteed coverage regardless of health conditions',
            'Pediatric dental and vision included for children',
        ],
        [
            'Network coverage varies by state',
            _multi_state_con(
                states,
                'May need different plans across {count} states',
                'May need different plans for {states}',
            ),
            'Limited to specific enrollment periods',
        ],
    ))
    return alternatives


def get_non_medicare_alternatives(
    adult_count: int,
    child_count: int,
    states: List[str],
    coverage_score: int
) -> List[Dict]:
    """Regional PPO (adjacent states only), ACA marketplace and HDHP + HSA."""
    total_members = adult_count + child_count
    alternatives = []

    if coverage_score == COVERAGE_SCORES['ADJACENT_STATES'] and len(states) == 2:
        alternatives.append(_option(
            'Regional PPO Plan',
            CostRange(
                total_members * INSURANCE_COSTS['REGIONAL_PPO_PER_PERSON_LOW'],
                total_members * INSURANCE_COSTS['REGIONAL_PPO_PER_PERSON_HIGH'],
            ),
            [
                'Lower premiums than national plans',
                f'Good network coverage in {format_states(states)}',
                'Still allows out-of-network care at higher cost',
            ],
            [
                'Smaller provider network than national plans',
                'May have higher costs if you travel outside the region',
            ],
        ))

    alternatives.append(_option(
        'ACA Marketplace Plans',
        _aca_cost(adult_count, child_count),
        [
            f"Income-based subsidies can reduce costs by "
            f"{SUBSIDY_REDUCTION['LOW']}-{SUBSIDY_REDUCTION['HIGH']}%",
            'Guaranteed coverage regardless of pre-existing conditions',
            'Essential health benefits required',
        ],
        [
            'Network limited to specific state',
            _multi_state_con(
                states,
                'May need separate plans across {count} states',
                'May need separate plans in {states}',
            ),
            'Can only enroll during open enrollment (Nov-Jan) unless qualifying event',
        ],
    ))

    alternatives.append(_option(
        'High-Deductible Health Plan (HDHP) with HSA',
        CostRange(
            adult_count * INSURANCE_COSTS['HDHP_ADULT_LOW'] + child_count * INSURANCE_COSTS['HDHP_CHILD_LOW'],
            adult_count * INSURANCE_COSTS['HDHP_ADULT_HIGH'] + child_count * INSURANCE_COSTS['HDHP_CHILD_HIGH'],
        ),
        [
            'Significantly lower monthly premiums',
            'HSA contributions are tax-deductible',
            'HSA funds roll over year to year and grow tax-free',
            'Good option if your household is healthy',
        ],
        [
            f"High deductible (${DEDUCTIBLE_RANGES['HDHP_FAMILY_LOW']:,}-"
            f"${DEDUCTIBLE_RANGES['HDHP_FAMILY_HIGH']:,} for families)",
            'You pay full cost of care until deductible is met',
            'Not ideal if you have chronic conditions or need frequent care',
        ],
    ))
    return alternatives
