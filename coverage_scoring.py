"""
Coverage Score Calculator

Scores how well national and regional carrier networks serve the set of
states a household lives in (0-100, higher = easier to stay in network).

Rules, first match wins:
1. No states                         -> 50
2. One state                         -> 90
3. Every state has strong networks   -> 85
4. Exactly two adjacent states       -> 75
5. Five or more states               -> 80
6. Anything else (2-4 mixed regions) -> 85
"""

from typing import Iterable, List

from constants import ADJACENT_STATE_PAIRS, COVERAGE_SCORES, POPULAR_STATES


def is_adjacent_pair(state_a: str, state_b: str) -> bool:
    """True when two states commonly share a regional network."""
    return frozenset((state_a, state_b)) in ADJACENT_STATE_PAIRS


def calculate_coverage_score(states: Iterable[str]) -> int:
    """
    Calculate the network coverage score for a list of residence states.

    Args:
        states: State codes, already deduplicated by the caller

    Returns:
        Integer score 0-100
    """
    states: List[str] = [s.upper() for s in states if s]

    if len(states) == 0:
        return COVERAGE_SCORES['NO_STATES']
    if len(states) == 1:
        return COVERAGE_SCORES['SINGLE_STATE']

    if all(state in POPULAR_STATES for state in states):
        return COVERAGE_SCORES['ALL_POPULAR_STATES']

    if len(states) == 2 and is_adjacent_pair(states[0], states[1]):
        return COVERAGE_SCORES['ADJACENT_STATES']

    if len(states) >= 5:
        return COVERAGE_SCORES['MANY_STATES']

    return COVERAGE_SCORES['MIXED_REGIONS']
