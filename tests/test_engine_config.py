"""
Test Suite for Engine Configuration

Run with: python -m unittest tests.test_engine_config
"""

import os
import unittest
from unittest.mock import patch

from constants import BENCHMARK_FALLBACK_PER_PERSON
from engine_config import DEFAULT_MC_ITERATIONS, DEFAULT_PROJECTION_TIER, EngineConfig


class TestEngineConfig(unittest.TestCase):
    """Environment loading and repair of invalid values"""

    @patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        """Empty environment gives the defaults"""
        config = EngineConfig.from_environment()
        self.assertEqual(config, EngineConfig())
        self.assertIsNone(config.mc_seed)
        self.assertEqual(config.benchmark_fallback_per_person, BENCHMARK_FALLBACK_PER_PERSON)
        self.assertTrue(config.is_configured())

    @patch.dict(os.environ, {
        'COVERAGE_MC_ITERATIONS': '250',
        'COVERAGE_MC_SEED': '42',
        'COVERAGE_PROJECTION_YEARS': '10',
        'COVERAGE_PROJECTION_TIER': 'Gold',
        'COVERAGE_PREMIUM_INFLATION': '0.05',
    }, clear=True)
    def test_overrides(self):
        """Valid environment values are used"""
        config = EngineConfig.from_environment()
        self.assertEqual(config.mc_iterations, 250)
        self.assertEqual(config.mc_seed, 42)
        self.assertEqual(config.projection_years, 10)
        self.assertEqual(config.projection_tier, 'Gold')
        self.assertEqual(config.inflation_factors()['premium_inflation'], 0.05)

    @patch.dict(os.environ, {
        'COVERAGE_MC_ITERATIONS': 'lots',
        'COVERAGE_PROJECTION_TIER': 'Titanium',
        'COVERAGE_MC_SIGMA': '-1',
    }, clear=True)
    def test_invalid_values_fall_back(self):
        """Unparseable and out-of-range values revert to defaults"""
        with self.assertLogs('engine_config', level='WARNING'):
            config = EngineConfig.from_environment()
        self.assertEqual(config.mc_iterations, DEFAULT_MC_ITERATIONS)
        self.assertEqual(config.projection_tier, DEFAULT_PROJECTION_TIER)
        self.assertGreaterEqual(config.mc_sigma, 0)

    def test_validate_reports_errors(self):
        """validate() lists every problem"""
        config = EngineConfig(mc_iterations=0, premium_inflation=2.0)
        is_valid, message = config.validate()
        self.assertFalse(is_valid)
        self.assertIn('mc_iterations', message)
        self.assertIn('premium_inflation', message)
        self.assertEqual(len(config.validation_errors()), 2)

    def test_repair_does_not_mutate(self):
        """Repair returns a copy"""
        config = EngineConfig(projection_years=0)
        repaired = config.with_defaults_for_invalid()
        self.assertEqual(config.projection_years, 0)
        self.assertTrue(repaired.is_configured())


if __name__ == '__main__':
    unittest.main()
