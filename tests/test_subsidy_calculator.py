"""
Test Suite for Coverage Score, Subsidy and Employer Comparison

Run with: python -m unittest tests.test_subsidy_calculator
"""

import unittest

from affordability import KEEP_TOLERANCE, EmployerPlanComparator, compare_employer_to_marketplace
from coverage_eval import CostRange
from coverage_scoring import calculate_coverage_score, is_adjacent_pair
from subsidy_calculator import calculate_subsidy
from subsidy_utils import (
    calculate_fpl_percentage,
    calculate_monthly_subsidy,
    estimate_annual_income,
    get_expected_contribution_percentage,
    get_fpl_for_household,
    get_medicaid_threshold,
    is_medicaid_eligible,
    is_ptc_eligible,
)


# =============================================================================
# COVERAGE SCORE
# =============================================================================

class TestCoverageScore(unittest.TestCase):
    """Rules are evaluated in priority order, first match wins"""

    def test_no_states(self):
        """Empty state list scores 50"""
        self.assertEqual(calculate_coverage_score([]), 50)

    def test_single_state(self):
        """One state scores 90"""
        self.assertEqual(calculate_coverage_score(['MT']), 90)

    def test_all_popular_states(self):
        """Popular states win over the adjacency rule"""
        self.assertEqual(calculate_coverage_score(['NY', 'PA']), 85)

    def test_adjacent_pair(self):
        """Two adjacent states outside the popular set score 75"""
        self.assertEqual(calculate_coverage_score(['WA', 'OR']), 75)

    def test_adjacency_is_symmetric(self):
        """Pair order does not matter"""
        self.assertTrue(is_adjacent_pair('OR', 'WA'))
        self.assertFalse(is_adjacent_pair('WA', 'FL'))

    def test_many_states(self):
        """Five or more mixed states score 80"""
        self.assertEqual(calculate_coverage_score(['WA', 'MT', 'ME', 'NY', 'FL']), 80)

    def test_mixed_regions(self):
        """Two non-adjacent, non-popular states score 85"""
        self.assertEqual(calculate_coverage_score(['WA', 'ME']), 85)

    def test_lowercase_and_blank_entries(self):
        """Blank entries are ignored and codes are upper-cased"""
        self.assertEqual(calculate_coverage_score(['mt', '']), 90)


# =============================================================================
# FPL AND ELIGIBILITY
# =============================================================================

class TestFplUtilities(unittest.TestCase):
    """FPL table lookups and eligibility bands"""

    def test_fpl_table_lookup(self):
        """Household of one uses the first table entry"""
        self.assertEqual(get_fpl_for_household(1), 15650.0)

    def test_fpl_extrapolates_beyond_table(self):
        """Sizes past eight add the per-person increment"""
        self.assertEqual(get_fpl_for_household(10), 54150.0 + 2 * 5500)

    def test_fpl_alaska_table(self):
        """Alaska uses its own table"""
        self.assertEqual(get_fpl_for_household(1, 'AK'), 19550.0)

    def test_zero_household_treated_as_one(self):
        """Non-positive sizes clamp to one member"""
        self.assertEqual(get_fpl_for_household(0), get_fpl_for_household(1))

    def test_zero_income_is_zero_percent(self):
        """Zero income never divides"""
        self.assertEqual(calculate_fpl_percentage(0, 3), 0.0)

    def test_medicaid_threshold_by_state(self):
        """Expansion states use 138%, non-expansion states 100%"""
        self.assertEqual(get_medicaid_threshold('CA'), 138)
        self.assertEqual(get_medicaid_threshold('TX'), 100)
        self.assertEqual(get_medicaid_threshold(None), 138)

    def test_medicaid_and_ptc_mutually_exclusive(self):
        """No FPL percentage is both Medicaid and PTC eligible"""
        for state in ('CA', 'TX'):
            for fpl in range(0, 500, 5):
                self.assertFalse(
                    is_medicaid_eligible(fpl, state) and is_ptc_eligible(fpl, state),
                    f"{state} at {fpl}%",
                )

    def test_contribution_schedule(self):
        """Piecewise-linear schedule between bracket edges"""
        self.assertEqual(get_expected_contribution_percentage(150), 0.0)
        self.assertAlmostEqual(get_expected_contribution_percentage(175), 0.01)
        self.assertAlmostEqual(get_expected_contribution_percentage(400), 0.085)
        self.assertIsNone(get_expected_contribution_percentage(401))

    def test_monthly_subsidy_floor(self):
        """Subsidy never goes negative"""
        self.assertEqual(calculate_monthly_subsidy(100, 60000, 390), 0.0)

    def test_income_range_midpoint(self):
        """Brackets resolve to midpoints; exact income wins"""
        self.assertEqual(estimate_annual_income(None, '50k-75k'), 62500.0)
        self.assertEqual(estimate_annual_income(30000, '50k-75k'), 30000.0)

    def test_unknown_income_range(self):
        """Unknown bracket uses the default midpoint"""
        self.assertEqual(estimate_annual_income(None, 'lots'), 75000.0)


# =============================================================================
# SUBSIDY CALCULATOR
# =============================================================================

class TestSubsidyCalculator(unittest.TestCase):
    """Medicaid / PTC state machine"""

    def test_above_400_percent_no_subsidy(self):
        """Income over 400% FPL gets no subsidy"""
        result = calculate_subsidy(1, 0, ['CA'], annual_income=100000)
        self.assertFalse(result.subsidy_eligible)
        self.assertFalse(result.medicaid_eligible)
        self.assertEqual(result.monthly_subsidy, 0.0)

    def test_below_medicaid_threshold(self):
        """Income under 138% FPL in an expansion state is Medicaid"""
        result = calculate_subsidy(1, 0, ['CA'], annual_income=20000)
        self.assertTrue(result.medicaid_eligible)
        self.assertFalse(result.subsidy_eligible)
        self.assertEqual(result.monthly_subsidy, 0.0)

    def test_non_expansion_state_uses_100_percent(self):
        """Same income in a non-expansion state gets a subsidy instead"""
        result = calculate_subsidy(1, 0, ['TX'], annual_income=20000)
        self.assertFalse(result.medicaid_eligible)
        self.assertTrue(result.subsidy_eligible)
        self.assertGreater(result.monthly_subsidy, 0)

    def test_exactly_150_percent_full_benchmark(self):
        """At 150% FPL the expected contribution is zero"""
        income = get_fpl_for_household(1) * 1.5
        result = calculate_subsidy(1, 0, ['CA'], annual_income=income)
        self.assertTrue(result.subsidy_eligible)
        self.assertEqual(result.expected_contribution_pct, 0.0)
        self.assertAlmostEqual(result.monthly_subsidy, result.benchmark_premium)

    def test_estimated_benchmark_flag(self):
        """Without a quote the benchmark is marked estimated"""
        result = calculate_subsidy(2, 1, ['CA'], annual_income=60000)
        self.assertEqual(result.benchmark_source, 'estimated')
        self.assertFalse(result.is_real_slcsp)
        self.assertEqual(result.benchmark_premium, 1500.0)

    def test_zero_income(self):
        """Zero income is Medicaid eligible, not an error"""
        result = calculate_subsidy(1, 0, ['CA'], annual_income=0)
        self.assertEqual(result.fpl_percentage, 0.0)
        self.assertTrue(result.medicaid_eligible)

    def test_empty_states(self):
        """No state falls back to national defaults"""
        result = calculate_subsidy(1, 0, [], income_range='30k-50k')
        self.assertEqual(result.medicaid_threshold, 138)
        self.assertTrue(result.subsidy_eligible)

    def test_to_dict_is_serializable_shape(self):
        """Serialized analysis carries eligibility and narrative"""
        data = calculate_subsidy(1, 0, ['CA'], annual_income=30000).to_dict()
        for key in ('medicaid_eligible', 'subsidy_eligible', 'monthly_subsidy',
                    'fpl_percentage', 'benchmark_source', 'explanation', 'action_items'):
            self.assertIn(key, data)


# =============================================================================
# EMPLOYER COMPARISON
# =============================================================================

class TestEmployerComparison(unittest.TestCase):
    """Keep vs switch with a continuity bias"""

    def test_skipped_without_employer(self):
        """No employer offer returns None"""
        self.assertIsNone(compare_employer_to_marketplace(False, 500, 1, CostRange(100, 200)))

    def test_skipped_without_subsidy_context(self):
        """No post-subsidy cost returns None"""
        self.assertIsNone(compare_employer_to_marketplace(True, 500, 1, None))

    def test_employee_share(self):
        """List price minus contribution, floored at zero"""
        self.assertEqual(EmployerPlanComparator.estimate_employer_plan_cost(700, 1), 100)
        self.assertEqual(EmployerPlanComparator.estimate_employer_plan_cost(5000, 3), 0)
        self.assertEqual(EmployerPlanComparator.estimate_employer_plan_cost(0, 3), 1800)

    def test_unaffordable_switch(self):
        """Share above 9.96% of income recommends switching"""
        result = compare_employer_to_marketplace(True, 0, 1, CostRange(100, 200), annual_income=40000)
        self.assertFalse(result['is_affordable'])
        self.assertEqual(result['decision'], 'switch')

    def test_affordable_and_cheaper_keep(self):
        """Affordable and cheaper than marketplace keeps the employer plan"""
        result = compare_employer_to_marketplace(True, 700, 1, CostRange(400, 600), annual_income=100000)
        self.assertTrue(result['is_affordable'])
        self.assertEqual(result['decision'], 'keep')
        self.assertIn('keep', result['recommendation'].lower())

    def test_marketplace_much_cheaper_compare(self):
        """Marketplace cheaper by more than the tolerance suggests comparing"""
        result = compare_employer_to_marketplace(True, 500, 1, CostRange(100, 200), annual_income=100000)
        self.assertEqual(result['decision'], 'compare')
        self.assertEqual(result['monthly_savings'], 150)

    def test_within_tolerance_keep(self):
        """Small differences favour keeping"""
        marketplace = CostRange(300 - KEEP_TOLERANCE / 2 - 10, 300 - KEEP_TOLERANCE / 2 + 10)
        result = compare_employer_to_marketplace(True, 500, 1, marketplace, annual_income=100000)
        self.assertEqual(result['decision'], 'keep')


if __name__ == '__main__':
    unittest.main()
