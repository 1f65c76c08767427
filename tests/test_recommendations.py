"""
Test Suite for Household Schema, Utilization and Recommendation Generators

Run with: python -m unittest tests.test_recommendations
"""

import unittest

from coverage_eval import CostRange, ScenarioType
from current_coverage_comparison import compare_current_coverage
from household_schema import CurrentInsurance, HealthProfile, HouseholdProfile, normalize_keys
from recommendations import check_budget_compatibility, generate_recommendation
from state_cost_index import DEFAULT_STATE_COST_INDEX, StateCostIndex
from utilization_scorer import (
    calculate_utilization_score,
    estimate_total_cost_of_care,
    get_utilization_cost_multiplier,
)


def make_profile(**overrides) -> HouseholdProfile:
    payload = {
        'residences': [{'state': 'NC', 'zip': '27601', 'isPrimary': True, 'monthsPerYear': 12}],
        'adultAges': [40],
        'childAges': [],
    }
    payload.update(overrides)
    return HouseholdProfile.from_dict(payload)


# =============================================================================
# HOUSEHOLD SCHEMA
# =============================================================================

class TestHouseholdSchema(unittest.TestCase):
    """Payload normalization and validation"""

    def test_camel_case_aliases(self):
        """camelCase keys map to snake_case attributes"""
        profile = make_profile(incomeRange='50k-75k', hasEmployerInsurance=True, employerContribution=400)
        self.assertEqual(profile.income_range, '50k-75k')
        self.assertTrue(profile.has_employer_insurance)
        self.assertEqual(profile.employer_contribution, 400.0)
        self.assertEqual(profile.primary_zip, '27601')

    def test_canonical_key_wins(self):
        """A canonical key already present is not overwritten by its alias"""
        self.assertEqual(normalize_keys({'adult_ages': [30], 'adultAges': [40]}), {'adult_ages': [30]})

    def test_states_deduplicated_in_order(self):
        """Repeated residence states appear once"""
        profile = make_profile(residences=[
            {'state': 'fl', 'monthsPerYear': 6},
            {'state': 'NY', 'monthsPerYear': 3},
            {'state': 'FL', 'monthsPerYear': 3},
        ])
        self.assertEqual(profile.states, ['FL', 'NY'])

    def test_health_fields_at_top_level(self):
        """Health answers may sit at the top level of the payload"""
        profile = make_profile(hasChronicConditions=True, chronicConditions=['diabetes', 'asthma'])
        self.assertEqual(profile.health.chronic_condition_count, 2)
        self.assertTrue(profile.health.has_usage_data)

    def test_chronic_list_ignored_without_flag(self):
        """Conditions only count when the flag is set"""
        health = HealthProfile(has_chronic_conditions=False, chronic_conditions=['asthma'])
        self.assertEqual(health.chronic_condition_count, 0)

    def test_validation_messages(self):
        """Shape problems are reported, not raised"""
        profile = make_profile(adultAges=[130], residences=[
            {'state': 'NC', 'monthsPerYear': 8},
            {'state': 'FL', 'monthsPerYear': 8},
        ])
        problems = profile.validate()
        self.assertEqual(len(problems), 2)

    def test_empty_household_invalid(self):
        """No members is a validation problem"""
        self.assertIn('Household must include at least one member', HouseholdProfile().validate())

    def test_current_insurance_shapes(self):
        """Mappings become CurrentInsurance; anything else is dropped"""
        profile = HouseholdProfile.from_dict({
            'adultAges': [30], 'hasCurrentInsurance': True,
            'currentInsurance': {'carrier': 'Acme', 'planType': 'HMO'},
        })
        self.assertEqual(profile.current_insurance.carrier, 'Acme')

        for malformed in ('none', 42, ['Acme']):
            profile = HouseholdProfile.from_dict({
                'adultAges': [30], 'hasCurrentInsurance': True, 'currentInsurance': malformed,
            })
            self.assertIsNone(profile.current_insurance)


# =============================================================================
# UTILIZATION
# =============================================================================

class TestUtilizationScorer(unittest.TestCase):
    """Points, levels and derived guidance"""

    def test_no_answers(self):
        """No answers scores zero and keeps the baseline multiplier"""
        result = calculate_utilization_score(HealthProfile())
        self.assertEqual(result['score'], 0)
        self.assertEqual(result['level'], 'minimal')
        self.assertEqual(get_utilization_cost_multiplier(result), 1.0)

    def test_high_utilization(self):
        """Frequent care lands in the high band"""
        health = HealthProfile(
            doctor_visits_per_year='10+',
            specialist_visits_per_year='monthly-or-more',
        )
        result = calculate_utilization_score(health)
        self.assertEqual(result['score'], 55)
        self.assertEqual(result['level'], 'high')
        self.assertEqual(result['recommended_deductible'], 'low')
        self.assertEqual(result['recommended_plan_type'], 'PPO')
        self.assertEqual(get_utilization_cost_multiplier(result), 1.3)

    def test_score_capped(self):
        """Score never exceeds 100"""
        health = HealthProfile(
            doctor_visits_per_year='10+',
            specialist_visits_per_year='monthly-or-more',
            er_visits_per_year='3+',
            has_chronic_conditions=True,
            chronic_conditions=['a', 'b', 'c', 'd'],
            monthly_medication_cost='over-1000',
            takes_specialty_meds=True,
            planned_procedures=True,
        )
        result = calculate_utilization_score(health)
        self.assertEqual(result['score'], 100)
        self.assertEqual(result['level'], 'very-high')
        self.assertEqual(result['expected_annual_claims'], 15000 + 12000)

    def test_minimal_usage_multiplier(self):
        """Answered but light usage discounts the premium"""
        result = calculate_utilization_score(HealthProfile(doctor_visits_per_year='0-2'))
        self.assertEqual(result['level'], 'minimal')
        self.assertEqual(get_utilization_cost_multiplier(result), 0.8)

    def test_total_cost_of_care(self):
        """Claims to the deductible, then 20% coinsurance"""
        result = estimate_total_cost_of_care(500, 2000, 7000)
        self.assertEqual(result['annual_premium'], 6000)
        self.assertEqual(result['expected_out_of_pocket'], 3000)
        self.assertEqual(result['total_cost'], 9000)


# =============================================================================
# RECOMMENDATION GENERATORS
# =============================================================================

class TestRecommendationGenerators(unittest.TestCase):
    """Scenario selection and per-scenario output"""

    def test_single_medicare_adult(self):
        """Age 70, one state: Medicare family, score 90, state-scaled cost"""
        profile = make_profile(adultAges=[70], residences=[{'state': 'MT', 'monthsPerYear': 12}])
        rec = generate_recommendation(profile)

        self.assertEqual(rec['scenario'], ScenarioType.MEDICARE.value)
        self.assertIn('Medigap', rec['plan_type'])
        self.assertEqual(rec['coverage_gap_score'], 90)
        expected = CostRange(300, 500).scaled(DEFAULT_STATE_COST_INDEX.factor_for('MT'))
        self.assertEqual(rec['estimated_monthly_cost'], expected.to_dict())

    def test_family_in_two_states(self):
        """Two adults and two kids split between non-adjacent states"""
        profile = make_profile(
            adultAges=[35, 38],
            childAges=[8, 11],
            residences=[
                {'state': 'WA', 'monthsPerYear': 6, 'isPrimary': True},
                {'state': 'ME', 'monthsPerYear': 6},
            ],
        )
        rec = generate_recommendation(profile)

        self.assertEqual(rec['scenario'], ScenarioType.NON_MEDICARE.value)
        self.assertIn('Family', rec['recommended_insurance'])
        self.assertEqual(rec['coverage_gap_score'], 85)
        expected = DEFAULT_STATE_COST_INDEX.adjust_cost_range(CostRange(1800, 2500), ['WA', 'ME'])
        self.assertEqual(rec['estimated_monthly_cost'], expected.to_dict())

    def test_family_rating_caps_children(self):
        """Only three children are rated; more kids cost nothing extra"""
        three = generate_recommendation(make_profile(adultAges=[35, 38], childAges=[3, 6, 9]))
        five = generate_recommendation(make_profile(adultAges=[35, 38], childAges=[1, 3, 6, 9, 12]))
        self.assertEqual(three['estimated_monthly_cost'], {'low': 2100.0, 'high': 2900.0})
        self.assertEqual(five['estimated_monthly_cost'], three['estimated_monthly_cost'])

    def test_mixed_household(self):
        """One senior with a younger spouse is a mixed household"""
        profile = make_profile(adultAges=[67, 60])
        rec = generate_recommendation(profile)
        self.assertEqual(rec['scenario'], ScenarioType.MIXED.value)
        self.assertEqual(rec['coverage_gap_score'], 85)

    def test_medicare_flag_forces_mixed(self):
        """Explicit Medicare flag without a senior age is still mixed"""
        profile = make_profile(adultAges=[50], hasMedicareEligible=True)
        self.assertEqual(generate_recommendation(profile)['scenario'], ScenarioType.MIXED.value)

    def test_empty_household_minimal(self):
        """Zero members still returns a well-formed recommendation"""
        rec = generate_recommendation(HouseholdProfile())
        self.assertEqual(rec['estimated_monthly_cost'], {'low': 0.0, 'high': 0.0})
        self.assertTrue(rec['reasoning'])
        self.assertIsInstance(rec['action_items'], list)

    def test_cost_range_ordered(self):
        """Every scenario produces low <= high"""
        for ages, kids in (([70], []), ([67, 40], [5]), ([30], []), ([30, 32], [1, 2, 3, 4])):
            rec = generate_recommendation(make_profile(adultAges=ages, childAges=kids))
            cost = rec['estimated_monthly_cost']
            self.assertLessEqual(cost['low'], cost['high'])

    def test_alternatives_count(self):
        """Each scenario offers one to three alternatives"""
        for ages in ([70], [67, 40], [30]):
            alternatives = generate_recommendation(make_profile(adultAges=ages))['alternative_options']
            self.assertGreaterEqual(len(alternatives), 1)
            self.assertLessEqual(len(alternatives), 3)

    def test_custom_cost_index(self):
        """An injected index is used and its version recorded"""
        index = StateCostIndex(version='test', factors={'NC': 2.0})
        rec = generate_recommendation(make_profile(adultAges=[70]), cost_index=index)
        self.assertEqual(rec['estimated_monthly_cost'], {'low': 600.0, 'high': 1000.0})
        self.assertEqual(rec['state_cost_index_version'], 'test')

    def test_cost_index_read_only(self):
        """Index tables cannot be changed after construction"""
        with self.assertRaises(TypeError):
            DEFAULT_STATE_COST_INDEX.factors['NC'] = 5.0

        source = {'NC': 2.0}
        index = StateCostIndex(version='test', factors=source)
        source['NC'] = 9.0
        self.assertEqual(index.factor_for('NC'), 2.0)
        self.assertEqual(DEFAULT_STATE_COST_INDEX.factor_for('NC'), 1.0)

    def test_budget_note(self):
        """Budget below the low estimate adds a subsidy note"""
        self.assertIn('subsidies', check_budget_compatibility('less-500', CostRange(600, 900)))
        self.assertIn('concierge', check_budget_compatibility('not-sure', CostRange(600, 900)))
        self.assertIsNone(check_budget_compatibility('1000-2000', CostRange(600, 900)))


# =============================================================================
# CURRENT COVERAGE
# =============================================================================

class TestCurrentCoverageComparison(unittest.TestCase):
    """Savings and suggestions against the recommendation"""

    def test_hmo_with_savings(self):
        """Expensive HMO gets cost and network suggestions"""
        recommendation = {
            'recommended_insurance': 'Nationwide Flexible Plan',
            'plan_type': 'PPO',
            'estimated_monthly_cost': {'low': 500, 'high': 700},
        }
        current = CurrentInsurance(carrier='Acme', plan_type='HMO', monthly_cost=900,
                                   deductible=6000, out_of_pocket_max=12000)
        result = compare_current_coverage(recommendation, current, ['NC', 'FL'])

        self.assertEqual(result['cost_comparison']['monthly_savings'], 300)
        self.assertEqual(result['cost_comparison']['annual_savings'], 3600)
        types = [s['type'] for s in result['suggestions']]
        self.assertIn('cost-savings', types)
        self.assertIn('network-expansion', types)
        self.assertIn('Multi-state network coverage', result['improvement_areas'])
        self.assertIn('Lower deductible options', result['improvement_areas'])

    def test_current_plan_cheaper(self):
        """Cheaper current plan gets a low-priority note and no savings"""
        recommendation = {
            'recommended_insurance': 'Nationwide Flexible Plan',
            'plan_type': 'PPO',
            'estimated_monthly_cost': {'low': 800, 'high': 1000},
        }
        current = CurrentInsurance(carrier='Acme', plan_type='PPO', monthly_cost=500)
        result = compare_current_coverage(recommendation, current, ['NC'])

        self.assertIsNone(result['cost_comparison']['monthly_savings'])
        self.assertEqual(result['suggestions'][-1]['priority'], 'low')


if __name__ == '__main__':
    unittest.main()
