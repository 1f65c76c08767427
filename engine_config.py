"""
Engine Configuration

Environment-driven settings for the coverage engine. Values are read from
the process environment (and a .env file when present) once per call to
EngineConfig.from_environment().

Variables:
- COVERAGE_MC_ITERATIONS, COVERAGE_MC_SIGMA, COVERAGE_MC_SEED
- COVERAGE_PROJECTION_YEARS, COVERAGE_PROJECTION_TIER
- COVERAGE_MEDICAL_INFLATION, COVERAGE_PREMIUM_INFLATION
- COVERAGE_BENCHMARK_FALLBACK_PER_PERSON, COVERAGE_BENCHMARK_CACHE_TTL_HOURS
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from dotenv import load_dotenv

from constants import BENCHMARK_FALLBACK_PER_PERSON, METAL_TIER_MULTIPLIERS
from cost_projections import DEFAULT_INFLATION_FACTORS

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MC_ITERATIONS = 1000
DEFAULT_MC_SIGMA = 0.6
DEFAULT_PROJECTION_YEARS = 5
DEFAULT_PROJECTION_TIER = 'Silver'
DEFAULT_MEDICAL_INFLATION = 0.055
DEFAULT_PREMIUM_INFLATION = 0.045
DEFAULT_BENCHMARK_CACHE_TTL_HOURS = 24

MAX_MC_ITERATIONS = 100000
MAX_PROJECTION_YEARS = 40


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}, using default {default}")
        return default


@dataclass
class EngineConfig:
    """Configuration for the analysis engine."""
    mc_iterations: int = DEFAULT_MC_ITERATIONS
    mc_sigma: float = DEFAULT_MC_SIGMA
    mc_seed: Optional[int] = None
    projection_years: int = DEFAULT_PROJECTION_YEARS
    projection_tier: str = DEFAULT_PROJECTION_TIER
    medical_inflation: float = DEFAULT_MEDICAL_INFLATION
    premium_inflation: float = DEFAULT_PREMIUM_INFLATION
    benchmark_fallback_per_person: float = BENCHMARK_FALLBACK_PER_PERSON
    benchmark_cache_ttl_hours: float = DEFAULT_BENCHMARK_CACHE_TTL_HOURS

    @classmethod
    def from_environment(cls) -> "EngineConfig":
        """Load configuration from environment variables, then repair invalid values."""
        config = cls(
            mc_iterations=_env_int("COVERAGE_MC_ITERATIONS", DEFAULT_MC_ITERATIONS),
            mc_sigma=_env_float("COVERAGE_MC_SIGMA", DEFAULT_MC_SIGMA),
            mc_seed=_env_int("COVERAGE_MC_SEED", None),
            projection_years=_env_int("COVERAGE_PROJECTION_YEARS", DEFAULT_PROJECTION_YEARS),
            projection_tier=os.getenv("COVERAGE_PROJECTION_TIER", DEFAULT_PROJECTION_TIER).strip()
            or DEFAULT_PROJECTION_TIER,
            medical_inflation=_env_float("COVERAGE_MEDICAL_INFLATION", DEFAULT_MEDICAL_INFLATION),
            premium_inflation=_env_float("COVERAGE_PREMIUM_INFLATION", DEFAULT_PREMIUM_INFLATION),
            benchmark_fallback_per_person=_env_float(
                "COVERAGE_BENCHMARK_FALLBACK_PER_PERSON", BENCHMARK_FALLBACK_PER_PERSON
            ),
            benchmark_cache_ttl_hours=_env_float(
                "COVERAGE_BENCHMARK_CACHE_TTL_HOURS", DEFAULT_BENCHMARK_CACHE_TTL_HOURS
            ),
        )
        return config.with_defaults_for_invalid()

    def _field_checks(self) -> List[Tuple[str, bool, str]]:
        """(field, is_valid, message) for every setting."""
        return [
            ('mc_iterations', 1 <= self.mc_iterations <= MAX_MC_ITERATIONS,
             f"mc_iterations must be between 1 and {MAX_MC_ITERATIONS}"),
            ('mc_sigma', self.mc_sigma >= 0, "mc_sigma cannot be negative"),
            ('projection_years', 1 <= self.projection_years <= MAX_PROJECTION_YEARS,
             f"projection_years must be between 1 and {MAX_PROJECTION_YEARS}"),
            ('projection_tier', self.projection_tier in METAL_TIER_MULTIPLIERS,
             f"projection_tier '{self.projection_tier}' is not a known metal tier"),
            ('medical_inflation', 0 <= self.medical_inflation < 1,
             "medical_inflation must be a rate between 0 and 1"),
            ('premium_inflation', 0 <= self.premium_inflation < 1,
             "premium_inflation must be a rate between 0 and 1"),
            ('benchmark_fallback_per_person', self.benchmark_fallback_per_person > 0,
             "benchmark_fallback_per_person must be positive"),
            ('benchmark_cache_ttl_hours', self.benchmark_cache_ttl_hours >= 0,
             "benchmark_cache_ttl_hours cannot be negative"),
        ]

    def validation_errors(self) -> List[str]:
        return [message for _, ok, message in self._field_checks() if not ok]

    def validate(self) -> Tuple[bool, str]:
        """Validate configuration. Returns (is_valid, error_message)."""
        errors = self.validation_errors()
        if errors:
            return False, "; ".join(errors)
        return True, ""

    def is_configured(self) -> bool:
        """True when every setting is within range."""
        return not self.validation_errors()

    def with_defaults_for_invalid(self) -> "EngineConfig":
        """Copy with each out-of-range setting reset to its default (logged)."""
        defaults = EngineConfig()
        repaired = replace(self)
        for name, ok, _ in self._field_checks():
            if not ok:
                default = getattr(defaults, name)
                logger.warning(f"Invalid {name}={getattr(self, name)!r}, using default {default}")
                setattr(repaired, name, default)
        return repaired

    def inflation_factors(self) -> Dict[str, float]:
        """Inflation factors in the shape the projection engine expects."""
        factors = dict(DEFAULT_INFLATION_FACTORS)
        factors['medical_inflation'] = self.medical_inflation
        factors['premium_inflation'] = self.premium_inflation
        return factors
