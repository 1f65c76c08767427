"""
State Cost Index - versioned geographic premium multipliers

Provides functionality to:
- Look up the premium multiplier for a state (1.0 = national average)
- Adjust a monthly cost range for the set of states a household lives in

The table is versioned so analyses can record which index they priced against.
Callers that need a different table pass their own StateCostIndex.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from coverage_eval import CostRange

logger = logging.getLogger(__name__)


# =============================================================================
# 2024 GEOGRAPHIC COST INDEX
# =============================================================================
# Relative individual-market premium level by state (national average = 1.00)

GEOGRAPHIC_COST_INDEX_2024 = MappingProxyType({
    'AK': 1.45, 'NY': 1.28, 'MA': 1.25, 'CT': 1.23, 'NJ': 1.22,
    'VT': 1.21, 'NH': 1.18, 'RI': 1.17, 'DE': 1.15, 'MD': 1.14,
    'CA': 1.12, 'WA': 1.11, 'OR': 1.10, 'CO': 1.09, 'IL': 1.08,
    'FL': 1.07, 'PA': 1.06, 'ME': 1.05, 'MN': 1.04, 'WI': 1.03,
    'DC': 1.02, 'VA': 1.01, 'NC': 1.00, 'NV': 1.00, 'AZ': 0.99,
    'GA': 0.98, 'MI': 0.97, 'OH': 0.96, 'IN': 0.95, 'MO': 0.94,
    'SC': 0.93, 'TN': 0.92, 'KY': 0.91, 'LA': 0.90, 'MS': 0.89,
    'AR': 0.88, 'OK': 0.87, 'KS': 0.86, 'NE': 0.855, 'IA': 0.85,
    'ND': 0.845, 'SD': 0.84, 'MT': 0.835, 'WY': 0.83, 'ID': 0.825,
    'UT': 0.82, 'NM': 0.815, 'TX': 0.81, 'WV': 0.805, 'AL': 0.85,
    'HI': 1.15,
})


@dataclass(frozen=True)
class StateCostIndex:
    """Immutable state -> multiplier table with a version label."""
    version: str
    factors: Mapping[str, float] = field(default_factory=dict)
    default_factor: float = 1.0

    def __post_init__(self):
        # Read-only copy of the caller's table
        object.__setattr__(self, 'factors', MappingProxyType(dict(self.factors)))

    def factor_for(self, state: Optional[str]) -> float:
        """
        Get the premium multiplier for a state.

        Unknown or blank states price at the default factor.
        """
        if not state:
            return self.default_factor
        code = state.strip().upper()
        if code not in self.factors:
            logger.info(f"No cost index entry for state {code}, using {self.default_factor}")
            return self.default_factor
        return self.factors[code]

    def average_factor(self, states: Iterable[str]) -> Optional[float]:
        """Average multiplier across states, or None when no states are given."""
        states = [s for s in states if s]
        if not states:
            return None
        return sum(self.factor_for(s) for s in states) / len(states)

    def adjust_cost_range(self, cost: CostRange, states: Iterable[str]) -> CostRange:
        """
        Adjust a monthly cost range for the states a household lives in.

        Args:
            cost: Base cost range priced at the national average
            states: Residence state codes (deduplicated by the caller)

        Returns:
            New CostRange scaled by the average state multiplier and rounded.
            An empty state list returns the range unchanged.
        """
        factor = self.average_factor(states)
        if factor is None:
            return CostRange(cost.low, cost.high)
        return cost.scaled(factor)

    def to_dict(self) -> Dict:
        return {'version': self.version, 'default_factor': self.default_factor}


DEFAULT_STATE_COST_INDEX = StateCostIndex(
    version='2024.1',
    factors=GEOGRAPHIC_COST_INDEX_2024,
)


def get_state_cost_factor(state: Optional[str], index: Optional[StateCostIndex] = None) -> float:
    """Convenience lookup against the default index."""
    return (index or DEFAULT_STATE_COST_INDEX).factor_for(state)


def adjust_cost_for_states(
    cost: CostRange,
    states: Iterable[str],
    index: Optional[StateCostIndex] = None
) -> CostRange:
    """Adjust a cost range using the given (or default) state cost index."""
    return (index or DEFAULT_STATE_COST_INDEX).adjust_cost_range(cost, states)
