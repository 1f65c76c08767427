"""
Test Suite for Scenario Comparison

The full analysis is patched out so these tests cover only the
comparison logic.

Run with: python -m unittest tests.test_scenario_comparison
"""

import unittest
from unittest.mock import AsyncMock, patch

from household_schema import HouseholdProfile
from scenario_comparison import (
    Scenario,
    apply_modifications,
    calculate_cost_comparison,
    compare_scenarios,
    create_scenario,
    find_differences,
    generate_common_scenarios,
)


BASE_PAYLOAD = {
    'residences': [{'state': 'NC', 'monthsPerYear': 12}],
    'adultAges': [40, 38],
    'childAges': [6],
    'incomeRange': '100k-150k',
    'budget': '1000-2000',
}


def make_recommendation(low, high, score=90) -> dict:
    return {'estimated_monthly_cost': {'low': low, 'high': high}, 'coverage_gap_score': score}


class TestModifications(unittest.TestCase):
    """Scenario builders"""

    def test_health_fields_routed(self):
        """Health keys land on the nested profile; the base is untouched"""
        base = HouseholdProfile.from_dict(BASE_PAYLOAD)
        modified = apply_modifications(base, {'doctorVisitsPerYear': '6-10', 'budget': 'less-500'})
        self.assertEqual(modified.health.doctor_visits_per_year, '6-10')
        self.assertEqual(modified.budget, 'less-500')
        self.assertIsNone(base.health.doctor_visits_per_year)

    def test_unknown_fields_ignored(self):
        """Unknown keys are logged and dropped"""
        base = HouseholdProfile.from_dict(BASE_PAYLOAD)
        with self.assertLogs('scenario_comparison', level='WARNING'):
            modified = apply_modifications(base, {'favoriteColor': 'blue'})
        self.assertEqual(modified, base)

    def test_common_scenarios(self):
        """Alternatives depend on the baseline"""
        common = generate_common_scenarios(BASE_PAYLOAD)
        ids = [s.id for s in common['alternatives']]
        self.assertEqual(common['baseline'].id, 'baseline')
        self.assertEqual(ids, ['high-utilization', 'lower-income', 'with-employer', 'planned-procedure'])

    def test_common_scenarios_skip_applicable(self):
        """Households already matching a what-if skip it"""
        payload = dict(BASE_PAYLOAD, incomeRange='50k-75k', hasEmployerInsurance=True)
        ids = [s.id for s in generate_common_scenarios(payload)['alternatives']]
        self.assertNotIn('lower-income', ids)
        self.assertNotIn('with-employer', ids)


class TestDifferences(unittest.TestCase):
    """Field-level differences"""

    def test_numeric_and_label_changes(self):
        """Numeric fields get a direction; others show labels"""
        base = HouseholdProfile.from_dict(BASE_PAYLOAD)
        other = apply_modifications(base, {'child_ages': [6, 3], 'income_range': '50k-75k'})
        differences = {d['field']: d for d in find_differences(base, other)}

        self.assertEqual(differences['num_children']['change_type'], 'increase')
        self.assertEqual(differences['income_range']['scenario2_value'], '$50,000-$75,000')
        self.assertEqual(differences['income_range']['change_type'], 'change')

    def test_age_and_state_changes(self):
        """Average age beyond a year and state lists are compared"""
        base = HouseholdProfile.from_dict(BASE_PAYLOAD)
        other = HouseholdProfile.from_dict(dict(
            BASE_PAYLOAD, adultAges=[50, 48], residences=[{'state': 'FL', 'monthsPerYear': 12}]
        ))
        fields = {d['field'] for d in find_differences(base, other)}
        self.assertIn('adult_ages', fields)
        self.assertIn('residences', fields)

    def test_identical_profiles(self):
        """Same household has no differences"""
        base = HouseholdProfile.from_dict(BASE_PAYLOAD)
        self.assertEqual(find_differences(base, base), [])


class TestCostComparison(unittest.TestCase):
    """Deltas and the tie rule"""

    def test_cheaper_second(self):
        """Scenario 2 cheaper by $100/month"""
        cost = calculate_cost_comparison(make_recommendation(600, 800), make_recommendation(500, 700))
        self.assertEqual(cost['cheaper_scenario'], '2')
        self.assertEqual(cost['monthly_premium_diff']['average_diff'], -100)
        self.assertEqual(cost['potential_annual_savings'], 1200)
        self.assertEqual(cost['annual_cost_diff']['low'], -1200)

    def test_tie_under_ten_dollars(self):
        """Less than $10 apart is equal"""
        cost = calculate_cost_comparison(make_recommendation(600, 800), make_recommendation(605, 805))
        self.assertEqual(cost['cheaper_scenario'], 'equal')


class TestCompareScenarios(unittest.IsolatedAsyncioTestCase):
    """End-to-end comparison with the analysis patched"""

    async def test_compare(self):
        """Cheaper, better-covered scenario 2 wins"""
        scenario1 = create_scenario('a', 'Stay Put', '', BASE_PAYLOAD)
        scenario2 = create_scenario('b', 'Move', '', BASE_PAYLOAD, {'income_range': '50k-75k'})
        analysis = AsyncMock(side_effect=[make_recommendation(900, 1100, 75),
                                          make_recommendation(500, 700, 90)])

        with patch('scenario_comparison.analyze_insurance', analysis):
            result = await compare_scenarios(scenario1, scenario2)

        self.assertEqual(analysis.await_count, 2)
        self.assertEqual(result['cost_comparison']['cheaper_scenario'], '2')
        self.assertEqual(result['risk_comparison']['better_coverage_scenario'], '2')
        self.assertIn('"Move" appears to be the better option', result['recommendation'])
        self.assertIn('Income level affects subsidy eligibility and out-of-pocket costs', result['insights'])
        self.assertIsInstance(scenario1, Scenario)

    async def test_analysis_kwargs_forwarded(self):
        """Extra keyword arguments reach the analysis"""
        scenario = create_scenario('a', 'A', '', BASE_PAYLOAD)
        analysis = AsyncMock(return_value=make_recommendation(500, 700))

        with patch('scenario_comparison.analyze_insurance', analysis):
            result = await compare_scenarios(scenario, scenario, config='cfg')

        self.assertEqual(analysis.await_args.kwargs, {'config': 'cfg'})
        self.assertIn('similar costs and coverage', result['recommendation'])


if __name__ == '__main__':
    unittest.main()
