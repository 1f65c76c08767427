"""
Benchmark Service for Coverage Evaluation.

Resolves the benchmark (SLCSP) premium used for subsidy sizing.
A real lookup comes from an injected BenchmarkSource; when none is
configured, the lookup fails, or the inputs are incomplete, the service
falls back to a per-person estimate and marks the quote as estimated.

Lookups are cached through an injected BenchmarkCache keyed by
ZIP, household size and sorted ages.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from constants import BENCHMARK_FALLBACK_PER_PERSON

logger = logging.getLogger(__name__)

ZIP_PATTERN = re.compile(r'^\d{5}$')


class BenchmarkUnavailableError(Exception):
    """Raised by a benchmark source that cannot answer a lookup."""
    pass


@dataclass
class BenchmarkQuote:
    """Benchmark premium for a household (monthly)."""
    monthly_premium: float
    is_estimate: bool
    source: str  # 'api', 'cache' or 'estimate'
    plan_name: Optional[str] = None

    @property
    def is_real(self) -> bool:
        return not self.is_estimate

    def to_dict(self) -> Dict:
        return {
            'monthly_premium': self.monthly_premium,
            'is_estimate': self.is_estimate,
            'source': self.source,
            'plan_name': self.plan_name,
        }


class BenchmarkSource:
    """
    Interface for a benchmark premium provider.

    Implementations return a BenchmarkQuote, return None when the market
    has no benchmark plan, or raise BenchmarkUnavailableError.
    """

    async def get_slcsp(
        self,
        state: str,
        zip_code: str,
        ages: Sequence[int]
    ) -> Optional[BenchmarkQuote]:
        raise NotImplementedError


class BenchmarkCache:
    """Cache interface (get / set / evict) for benchmark quotes."""

    def get(self, key: str) -> Optional[BenchmarkQuote]:
        raise NotImplementedError

    def set(self, key: str, quote: BenchmarkQuote) -> None:
        raise NotImplementedError

    def evict(self, key: str) -> None:
        raise NotImplementedError


class InMemoryBenchmarkCache(BenchmarkCache):
    """Per-instance TTL cache. Each service owns its own instance."""

    def __init__(self, ttl_hours: float = 24, clock=None):
        self.ttl = timedelta(hours=ttl_hours)
        self._clock = clock or datetime.now
        self._entries: Dict[str, Tuple[datetime, BenchmarkQuote]] = {}

    def get(self, key: str) -> Optional[BenchmarkQuote]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, quote = entry
        if self._clock() - stored_at > self.ttl:
            self.evict(key)
            return None
        return quote

    def set(self, key: str, quote: BenchmarkQuote) -> None:
        self._entries[key] = (self._clock(), quote)

    def evict(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)


def build_cache_key(zip_code: str, ages: Sequence[int]) -> str:
    """Cache key: zip-size-sortedAges"""
    sorted_ages = ','.join(str(a) for a in sorted(ages))
    return f"{zip_code}-{len(ages)}-{sorted_ages}"


def is_valid_zip(zip_code: Optional[str]) -> bool:
    return bool(zip_code) and bool(ZIP_PATTERN.match(zip_code))


class BenchmarkService:
    """
    Resolve benchmark premiums with caching and graceful fallback.

    Used by the subsidy calculator and the analysis orchestrator.
    """

    def __init__(
        self,
        source: Optional[BenchmarkSource] = None,
        cache: Optional[BenchmarkCache] = None,
        fallback_per_person: float = BENCHMARK_FALLBACK_PER_PERSON,
    ):
        """
        Initialize the benchmark service.

        Args:
            source: Real benchmark provider (optional)
            cache: Quote cache (defaults to a fresh in-memory TTL cache)
            fallback_per_person: Monthly estimate per covered person
        """
        self.source = source
        self.cache = cache if cache is not None else InMemoryBenchmarkCache()
        self.fallback_per_person = fallback_per_person

    def estimate(self, household_size: int) -> BenchmarkQuote:
        """Heuristic benchmark: fixed premium per covered person."""
        return BenchmarkQuote(
            monthly_premium=float(max(1, household_size) * self.fallback_per_person),
            is_estimate=True,
            source='estimate',
        )

    async def get_benchmark(
        self,
        state: str,
        zip_code: Optional[str],
        ages: List[int],
        household_size: Optional[int] = None
    ) -> BenchmarkQuote:
        """
        Get the benchmark premium for a household.

        Args:
            state: Primary residence state
            zip_code: Primary residence ZIP (5 digits)
            ages: Ages of every covered member
            household_size: Expected member count; a mismatch with ages
                means the ages are incomplete

        Returns:
            BenchmarkQuote, never None
        """
        size = household_size if household_size is not None else len(ages)

        if self.source is None:
            return self.estimate(size)

        if not is_valid_zip(zip_code):
            logger.info(f"Invalid ZIP '{zip_code}' for benchmark lookup, using estimate")
            return self.estimate(size)

        if not ages or len(ages) != size:
            logger.info("Household ages incomplete for benchmark lookup, using estimate")
            return self.estimate(size)

        key = build_cache_key(zip_code, ages)
        cached = self.cache.get(key)
        if cached is not None:
            return BenchmarkQuote(
                monthly_premium=cached.monthly_premium,
                is_estimate=cached.is_estimate,
                source='cache',
                plan_name=cached.plan_name,
            )

        try:
            quote = await self.source.get_slcsp(state, zip_code, ages)
        except Exception as e:
            logger.warning(f"Error fetching benchmark premium for {zip_code}: {e}")
            return self.estimate(size)

        if quote is None or quote.monthly_premium <= 0:
            logger.info(f"No benchmark plan found for {zip_code}, using estimate")
            return self.estimate(size)

        self.cache.set(key, quote)
        return quote
