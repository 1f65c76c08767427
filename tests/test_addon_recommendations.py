"""
Test Suite for Actuarial Curves and Add-On Recommendations

Run with: python -m unittest tests.test_addon_recommendations
"""

import unittest

import pandas as pd

from actuarial_curves import (
    ADD_ON_CATEGORIES,
    calculate_actuarial_probability,
    calculate_household_actuarial_probability,
)
from addon_recommendations import (
    ADD_ON_PRODUCTS,
    calculate_household_cost,
    calculate_total_add_on_cost,
    filter_by_budget,
    generate_add_on_recommendations,
    get_priority_for_score,
    recommendations_to_dataframe,
)
from coverage_eval import Priority, RiskLevel
from household_schema import HouseholdProfile


def make_profile(adult_ages, child_ages=None, states=('NC',), **extra) -> HouseholdProfile:
    payload = {
        'residences': [{'state': s, 'monthsPerYear': 12 // len(states)} for s in states],
        'adultAges': adult_ages,
        'childAges': child_ages or [],
    }
    payload.update(extra)
    return HouseholdProfile.from_dict(payload)


# =============================================================================
# ACTUARIAL CURVES
# =============================================================================

class TestActuarialCurves(unittest.TestCase):
    """Curve ranges, shapes and smoothness"""

    def test_eight_categories(self):
        """Catalog and curves cover the same eight categories"""
        self.assertEqual(len(ADD_ON_CATEGORIES), 8)
        self.assertEqual({p.category for p in ADD_ON_PRODUCTS}, set(ADD_ON_CATEGORIES))

    def test_scores_in_range(self):
        """Scores are 0-100 and multipliers never discount"""
        for category in ADD_ON_CATEGORIES:
            for age in range(0, 121):
                result = calculate_actuarial_probability(age, category)
                self.assertGreaterEqual(result.probability_score, 0)
                self.assertLessEqual(result.probability_score, 100)
                self.assertGreaterEqual(result.cost_multiplier, 1.0)
                self.assertGreaterEqual(result.utilization_rate, 0.0)
                self.assertLessEqual(result.utilization_rate, 1.0)

    def test_curves_are_smooth(self):
        """No curve moves more than 30 points across five years"""
        for category in ADD_ON_CATEGORIES:
            for age in range(0, 116):
                now = calculate_actuarial_probability(age, category).probability_score
                later = calculate_actuarial_probability(age + 5, category).probability_score
                self.assertLessEqual(abs(later - now), 30, f"{category} at {age}")

    def test_disability_drops_after_retirement(self):
        """Disability peaks in working years then falls away"""
        peak = calculate_actuarial_probability(45, 'disability').probability_score
        retired = calculate_actuarial_probability(80, 'disability').probability_score
        self.assertGreaterEqual(peak, 90)
        self.assertLessEqual(retired, 10)

    def test_long_term_care_rises_after_60(self):
        """Long-term care climbs steeply into old age"""
        young = calculate_actuarial_probability(30, 'long-term-care').probability_score
        senior = calculate_actuarial_probability(75, 'long-term-care').probability_score
        self.assertLess(young, 20)
        self.assertGreaterEqual(senior, 85)
        self.assertEqual(calculate_actuarial_probability(75, 'long-term-care').risk_level, RiskLevel.VERY_HIGH)

    def test_long_term_care_planning_ramp(self):
        """The 40s ramp starts near the young-age level and meets the 50s floor"""
        scores = {age: calculate_actuarial_probability(age, 'long-term-care').probability_score
                  for age in (39, 40, 44, 45, 49, 50)}
        self.assertEqual(scores[39], 10)
        self.assertEqual(scores[40], 20)
        self.assertEqual(scores[44], 38)
        self.assertLessEqual(scores[44] - scores[39], 30)
        self.assertLessEqual(scores[50] - scores[45], 30)
        self.assertEqual(scores[50], 65)

    def test_life_peaks_mid_life(self):
        """Life cover peaks around 40 and is floored for seniors"""
        mid = calculate_actuarial_probability(40, 'life').probability_score
        child = calculate_actuarial_probability(5, 'life').probability_score
        senior = calculate_actuarial_probability(90, 'life').probability_score
        self.assertGreater(mid, child)
        self.assertGreaterEqual(senior, 15)

    def test_age_clamped(self):
        """Ages outside 0-120 are clamped"""
        self.assertEqual(
            calculate_actuarial_probability(150, 'dental').probability_score,
            calculate_actuarial_probability(120, 'dental').probability_score,
        )

    def test_unknown_category(self):
        """Unknown categories get a neutral result"""
        self.assertEqual(calculate_actuarial_probability(40, 'pet').probability_score, 50)

    def test_household_uses_max(self):
        """Household score is the worst-case member, not the sum"""
        household = calculate_household_actuarial_probability([30, 72], 'long-term-care')
        senior = calculate_actuarial_probability(72, 'long-term-care')
        self.assertEqual(household.probability_score, senior.probability_score)


# =============================================================================
# ADD-ON ENGINE
# =============================================================================

class TestAddOnRecommendations(unittest.TestCase):
    """Priority buckets, sorting and household pricing"""

    def test_priority_thresholds(self):
        """Buckets partition exactly at 75 and 50"""
        self.assertEqual(get_priority_for_score(75), Priority.HIGH)
        self.assertEqual(get_priority_for_score(74.9), Priority.MEDIUM)
        self.assertEqual(get_priority_for_score(50), Priority.MEDIUM)
        self.assertEqual(get_priority_for_score(49.9), Priority.LOW)

    def test_buckets_partition_filtered_list(self):
        """Every filtered recommendation is in exactly one bucket"""
        analysis = generate_add_on_recommendations(make_profile([42, 40], [8, 12]))
        bucketed = analysis['high_priority'] + analysis['medium_priority'] + analysis['low_priority']
        self.assertEqual(sorted(r['id'] for r in bucketed), sorted(r['id'] for r in analysis['recommendations']))
        for rec in analysis['high_priority']:
            self.assertGreaterEqual(rec['probability_score'], 75)
        for rec in analysis['medium_priority']:
            self.assertTrue(50 <= rec['probability_score'] < 75)
        for rec in analysis['low_priority']:
            self.assertTrue(25 <= rec['probability_score'] < 50)

    def test_low_scores_kept_in_all(self):
        """Scores under 25 are dropped from the filtered list only"""
        analysis = generate_add_on_recommendations(make_profile([85]))
        self.assertEqual(len(analysis['all_recommendations']), 8)
        dropped = [r for r in analysis['all_recommendations'] if r['probability_score'] < 25]
        self.assertTrue(dropped)
        for rec in dropped:
            self.assertNotIn(rec, analysis['recommendations'])

    def test_sorted_by_priority_then_score(self):
        """High before medium before low, then score descending"""
        recs = generate_add_on_recommendations(make_profile([55, 52]))['all_recommendations']
        keys = [(-Priority(r['priority']).rank, -r['probability_score']) for r in recs]
        self.assertEqual(keys, sorted(keys))

    def test_excluded_categories(self):
        """Excluded categories are not scored"""
        analysis = generate_add_on_recommendations(make_profile([40]), excluded_categories=['life', 'dental'])
        categories = {r['category'] for r in analysis['all_recommendations']}
        self.assertNotIn('life', categories)
        self.assertNotIn('dental', categories)

    def test_profile_exclusions_default(self):
        """Profile exclusions apply when none are passed"""
        profile = make_profile([40], excludedAddOnCategories=['vision'])
        categories = {r['category'] for r in generate_add_on_recommendations(profile)['all_recommendations']}
        self.assertNotIn('vision', categories)

    def test_children_boost_dental(self):
        """Families with children get a dental boost"""
        without = generate_add_on_recommendations(make_profile([40]))
        with_kids = generate_add_on_recommendations(make_profile([40], [10]))
        score = {r['category']: r['probability_score'] for r in without['all_recommendations']}
        boosted = {r['category']: r['probability_score'] for r in with_kids['all_recommendations']}
        self.assertGreater(boosted['dental'], score['dental'])

    def test_family_discount(self):
        """Household cost stays below per-member cost times members"""
        self.assertLess(calculate_household_cost(40, 4, multi_state=True), 40 * 4)
        self.assertEqual(calculate_household_cost(40, 1, multi_state=False), 40)
        self.assertAlmostEqual(calculate_household_cost(40, 1, multi_state=True), 42.0)

    def test_no_ages(self):
        """Empty household returns an empty analysis"""
        analysis = generate_add_on_recommendations(HouseholdProfile())
        self.assertEqual(analysis['recommendations'], [])
        self.assertEqual(analysis['total_monthly_all_recommended'], 0)

    def test_bundle_and_budget_helpers(self):
        """Bundle discount from three products; budget filter keeps order"""
        selected = [{'household_cost_per_month': 20}] * 3
        self.assertEqual(calculate_total_add_on_cost(selected), 57)
        recs = [{'household_cost_per_month': c} for c in (30, 50, 10)]
        self.assertEqual(filter_by_budget(recs, 45), [recs[0], recs[2]])

    def test_dataframe_export(self):
        """Scored catalog exports to a DataFrame with a recommended flag"""
        analysis = generate_add_on_recommendations(make_profile([60]))
        df = recommendations_to_dataframe(analysis)
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(len(df), len(analysis['all_recommendations']))
        self.assertIn('recommended', df.columns)
        self.assertEqual(int(df['recommended'].sum()), len(analysis['recommendations']))


if __name__ == '__main__':
    unittest.main()
