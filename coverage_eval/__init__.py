"""
Coverage Evaluation Module

Shared value types for the multi-residence coverage engine.
Calculators exchange these instead of loose tuples so every analysis
agrees on household shape, scenario and cost ranges.

Three Household Scenarios:
- Medicare: every adult is 65+ and there are no children
- Mixed: some members are Medicare-eligible, others are not
- Non-Medicare: nobody in the household is Medicare-eligible
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from constants import MEDICARE_ELIGIBILITY_AGE


class ScenarioType(Enum):
    """
    Household scenario used to pick a recommendation strategy.

    Selected exactly once per analysis by determine_scenario().
    """
    MEDICARE = "medicare"
    MIXED = "mixed"
    NON_MEDICARE = "non_medicare"


class Priority(Enum):
    """Priority bucket for suggestions and add-on products."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort weight (higher sorts first)."""
        return {'high': 3, 'medium': 2, 'low': 1}[self.value]


class RiskLevel(Enum):
    """Five-level ordinal risk scale."""
    VERY_LOW = "very-low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very-high"


class Urgency(Enum):
    """Urgency tier for enrollment windows and life transitions."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class CostRange:
    """
    Monthly cost range in dollars.

    Always normalized so that 0 <= low <= high.
    """
    low: float
    high: float

    def __post_init__(self):
        self.low = max(0.0, float(self.low))
        self.high = max(0.0, float(self.high))
        if self.low > self.high:
            self.low, self.high = self.high, self.low

    @property
    def average(self) -> float:
        return (self.low + self.high) / 2

    def scaled(self, factor: float) -> 'CostRange':
        """Return a new range multiplied by factor and rounded to whole dollars."""
        return CostRange(round(self.low * factor), round(self.high * factor))

    def plus(self, other: 'CostRange') -> 'CostRange':
        return CostRange(self.low + other.low, self.high + other.high)

    def to_dict(self) -> Dict[str, float]:
        return {'low': self.low, 'high': self.high}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CostRange':
        return cls(data.get('low', 0), data.get('high', 0))


@dataclass
class HouseholdContext:
    """
    Household-derived context for a single analysis.

    Computed once from the household profile and used throughout for
    scenario detection, cost ranges and subsidy sizing.
    """
    adult_ages: List[int]
    child_ages: List[int]
    states: List[str]
    has_medicare_flag: bool = False
    adults_use_tobacco: List[bool] = field(default_factory=list)

    @property
    def num_adults(self) -> int:
        return len(self.adult_ages)

    @property
    def num_children(self) -> int:
        return len(self.child_ages)

    @property
    def household_size(self) -> int:
        return self.num_adults + self.num_children

    @property
    def medicare_eligible_count(self) -> int:
        """Adults at or past the Medicare eligibility age"""
        return sum(1 for age in self.adult_ages if age >= MEDICARE_ELIGIBILITY_AGE)

    @property
    def non_medicare_adult_count(self) -> int:
        return self.num_adults - self.medicare_eligible_count

    @property
    def all_adults_medicare_eligible(self) -> bool:
        return self.num_adults > 0 and self.medicare_eligible_count == self.num_adults

    @property
    def some_medicare_eligible(self) -> bool:
        return self.has_medicare_flag or self.medicare_eligible_count > 0

    @property
    def is_multi_state(self) -> bool:
        return len(self.states) > 1

    @property
    def any_tobacco(self) -> bool:
        return any(self.adults_use_tobacco)

    def determine_scenario(self) -> ScenarioType:
        """Select the recommendation scenario for this household."""
        if self.all_adults_medicare_eligible and self.num_children == 0:
            return ScenarioType.MEDICARE
        if self.some_medicare_eligible:
            return ScenarioType.MIXED
        return ScenarioType.NON_MEDICARE
