"""
Test Suite for Benchmark Service

Covers the estimate fallback, the injected TTL cache and the
real-benchmark path of the subsidy calculator.
"""

import unittest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

from coverage_eval.services.benchmark_service import (
    BenchmarkQuote,
    BenchmarkService,
    BenchmarkSource,
    BenchmarkUnavailableError,
    InMemoryBenchmarkCache,
    build_cache_key,
    is_valid_zip,
)
from subsidy_calculator import calculate_subsidy_with_benchmark


def make_source(return_value=None, side_effect=None) -> BenchmarkSource:
    source = BenchmarkSource()
    source.get_slcsp = AsyncMock(return_value=return_value, side_effect=side_effect)
    return source


REAL_QUOTE = BenchmarkQuote(monthly_premium=1234.0, is_estimate=False, source='api', plan_name='Silver 2')


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0)

    def __call__(self):
        return self.now


# =============================================================================
# HELPERS
# =============================================================================

class TestBenchmarkHelpers(unittest.TestCase):
    """ZIP validation and cache keys"""

    def test_valid_zip(self):
        """Exactly five digits"""
        self.assertTrue(is_valid_zip('27601'))
        self.assertFalse(is_valid_zip('2760'))
        self.assertFalse(is_valid_zip('27601-1234'))
        self.assertFalse(is_valid_zip(None))

    def test_cache_key_sorts_ages(self):
        """Age order does not change the key"""
        self.assertEqual(build_cache_key('27601', [40, 8, 38]), build_cache_key('27601', [8, 38, 40]))
        self.assertEqual(build_cache_key('27601', [40, 8]), '27601-2-8,40')


class TestInMemoryBenchmarkCache(unittest.TestCase):
    """get / set / evict with expiry"""

    def test_round_trip_and_evict(self):
        """Stored quotes come back until evicted"""
        cache = InMemoryBenchmarkCache()
        cache.set('k', REAL_QUOTE)
        self.assertIs(cache.get('k'), REAL_QUOTE)
        cache.evict('k')
        self.assertIsNone(cache.get('k'))
        self.assertEqual(len(cache), 0)

    def test_expiry(self):
        """Entries older than the TTL are dropped"""
        clock = FakeClock()
        cache = InMemoryBenchmarkCache(ttl_hours=1, clock=clock)
        cache.set('k', REAL_QUOTE)
        clock.now += timedelta(minutes=59)
        self.assertIsNotNone(cache.get('k'))
        clock.now += timedelta(minutes=2)
        self.assertIsNone(cache.get('k'))


# =============================================================================
# SERVICE
# =============================================================================

class TestBenchmarkService(unittest.IsolatedAsyncioTestCase):
    """Lookup with graceful fallback"""

    async def test_no_source_uses_estimate(self):
        """Without a source every lookup is an estimate"""
        quote = await BenchmarkService().get_benchmark('NC', '27601', [40, 38])
        self.assertTrue(quote.is_estimate)
        self.assertEqual(quote.monthly_premium, 1000.0)

    async def test_custom_fallback(self):
        """Per-person fallback is configurable"""
        service = BenchmarkService(fallback_per_person=450)
        self.assertEqual(service.estimate(3).monthly_premium, 1350.0)

    async def test_real_quote_cached(self):
        """Second lookup is served from the cache"""
        source = make_source(return_value=REAL_QUOTE)
        service = BenchmarkService(source=source)

        first = await service.get_benchmark('NC', '27601', [40, 38])
        second = await service.get_benchmark('NC', '27601', [38, 40])

        self.assertEqual(first.monthly_premium, 1234.0)
        self.assertFalse(first.is_estimate)
        self.assertEqual(second.source, 'cache')
        self.assertEqual(source.get_slcsp.await_count, 1)

    async def test_invalid_zip_skips_source(self):
        """Bad ZIP never reaches the source"""
        source = make_source(return_value=REAL_QUOTE)
        quote = await BenchmarkService(source=source).get_benchmark('NC', 'abc', [40])
        self.assertTrue(quote.is_estimate)
        source.get_slcsp.assert_not_awaited()

    async def test_incomplete_ages_skip_source(self):
        """Ages must cover the whole household"""
        source = make_source(return_value=REAL_QUOTE)
        quote = await BenchmarkService(source=source).get_benchmark('NC', '27601', [40], household_size=3)
        self.assertTrue(quote.is_estimate)
        self.assertEqual(quote.monthly_premium, 1500.0)
        source.get_slcsp.assert_not_awaited()

    async def test_source_failure_falls_back(self):
        """Unavailable source becomes an estimate, not an error"""
        source = make_source(side_effect=BenchmarkUnavailableError('down'))
        quote = await BenchmarkService(source=source).get_benchmark('NC', '27601', [40])
        self.assertTrue(quote.is_estimate)

    async def test_no_plan_found_falls_back(self):
        """None from the source is an estimate and is not cached"""
        source = make_source(return_value=None)
        cache = InMemoryBenchmarkCache()
        quote = await BenchmarkService(source=source, cache=cache).get_benchmark('NC', '27601', [40])
        self.assertTrue(quote.is_estimate)
        self.assertEqual(len(cache), 0)

    async def test_subsidy_records_real_benchmark(self):
        """Subsidy analysis labels a real benchmark"""
        service = BenchmarkService(source=make_source(return_value=REAL_QUOTE))
        result = await calculate_subsidy_with_benchmark(
            1, 0, ['NC'], '27601', [40], service, annual_income=30000
        )
        self.assertEqual(result.benchmark_source, 'real')
        self.assertEqual(result.benchmark_premium, 1234.0)
        self.assertEqual(result.benchmark_plan_name, 'Silver 2')


if __name__ == '__main__':
    unittest.main()
