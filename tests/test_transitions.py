"""
Test Suite for COBRA, Job Change and Medicare Transition Planners

Run with: python -m unittest tests.test_transitions
"""

import unittest
from datetime import date

from cobra_helper import (
    analyze_cobra,
    calculate_cobra_drop_date,
    calculate_cobra_premium,
    get_cobra_decision_flowchart,
)
from coverage_eval import CostRange
from job_change_wizard import (
    JobChangeScenario,
    analyze_job_change,
    calculate_coverage_duration,
    estimate_short_term_premium,
    quick_cobra_vs_marketplace,
)
from medicare_transition import (
    MedicareTransitionInput,
    analyze_medicare_transition,
    calculate_part_b_penalty,
    calculate_part_d_penalty,
    estimate_medigap_premium,
    get_irmaa_surcharge,
    get_medicare_eligibility_date,
)


# =============================================================================
# COBRA
# =============================================================================

class TestCobraHelper(unittest.TestCase):
    """Premium, worth-it branches and drop date"""

    def test_admin_fee(self):
        """COBRA is the full premium plus 2%"""
        self.assertAlmostEqual(calculate_cobra_premium(1000), 1020)

    def test_short_remaining_window(self):
        """Two months left is worth keeping, with an urgent warning"""
        result = analyze_cobra(500, 16, False, CostRange(400, 600))
        self.assertTrue(result['is_worth_it'])
        self.assertEqual(result['months_remaining'], 2)
        self.assertTrue(any(w.startswith('URGENT') for w in result['warnings']))

    def test_preexisting_conditions(self):
        """Ongoing treatment favours continuity"""
        result = analyze_cobra(500, 3, True, CostRange(400, 600))
        self.assertTrue(result['is_worth_it'])
        self.assertIn('Consider switching to ACA plan during next Open Enrollment to save money',
                      result['warnings'])

    def test_not_worth_it(self):
        """Estimated from employee share, COBRA loses to the marketplace"""
        result = analyze_cobra(500, 3, False, CostRange(400, 600))
        self.assertFalse(result['is_worth_it'])
        self.assertIn('NOT recommended', result['recommendation'])
        self.assertAlmostEqual(result['estimated_monthly_cost']['low'], 1750 * 1.02 * 0.9)

    def test_estimate_includes_admin_fee(self):
        """The employee-share estimate carries the same 2% fee as a known premium"""
        estimated = analyze_cobra(500, 3, False, CostRange(400, 600))
        known = analyze_cobra(500, 3, False, CostRange(400, 600), full_monthly_premium=1750)
        self.assertEqual(estimated['estimated_monthly_cost'], known['estimated_monthly_cost'])
        self.assertAlmostEqual(estimated['estimated_monthly_cost']['high'], 1785 * 1.1)

    def test_known_full_premium_affordable(self):
        """A known full premium well under the marketplace is worth it"""
        result = analyze_cobra(200, 3, False, CostRange(2000, 2500), full_monthly_premium=1000)
        self.assertTrue(result['is_worth_it'])
        self.assertAlmostEqual(result['estimated_monthly_cost']['high'], 1020 * 1.1)

    def test_expired(self):
        """No months left"""
        result = analyze_cobra(500, 20, False, CostRange(100, 200))
        self.assertEqual(result['months_remaining'], 0)
        self.assertIn('COBRA has expired - must find alternative coverage immediately', result['warnings'])

    def test_drop_at_open_enrollment(self):
        """Open Enrollment before exhaustion is the switch point"""
        result = calculate_cobra_drop_date(date(2025, 3, 15), date(2025, 11, 1))
        self.assertEqual(result['drop_date'], date(2025, 11, 1))
        self.assertEqual(result['months_on_cobra'], 7)

    def test_drop_at_exhaustion(self):
        """Otherwise COBRA runs its full 18 months"""
        result = calculate_cobra_drop_date(date(2024, 1, 10), date(2026, 11, 1))
        self.assertEqual(result['drop_date'], date(2025, 7, 10))
        self.assertEqual(result['months_on_cobra'], 18)

    def test_flowchart(self):
        """Four questions, last one terminal both ways"""
        steps = get_cobra_decision_flowchart()
        self.assertEqual(len(steps), 4)
        self.assertNotIn('Continue', steps[-1]['no_path'])


# =============================================================================
# JOB CHANGE
# =============================================================================

def make_scenario(**overrides) -> JobChangeScenario:
    values = dict(
        separation_date=date(2025, 6, 15),
        current_premium=300,
        cobra_premium=900,
        household_income=40000,
        household_size=1,
        state='TX',
        age=45,
    )
    values.update(overrides)
    return JobChangeScenario(**values)


class TestJobChangeWizard(unittest.TestCase):
    """Option building and recommendation"""

    def test_subsidized_marketplace_recommended(self):
        """Large subsidized savings pick the marketplace"""
        result = analyze_job_change(make_scenario(), evaluation_date=date(2025, 6, 20))
        self.assertEqual([o['type'] for o in result['options']], ['cobra', 'marketplace'])
        self.assertEqual(result['recommended_option']['type'], 'marketplace')
        self.assertTrue(result['subsidy_info']['eligible'])
        self.assertEqual(result['cost_comparison']['cobra_total'], round(900 * 1.02 * 12))
        self.assertEqual(result['sep_info']['deadline'], date(2025, 8, 14))
        self.assertEqual(result['sep_info']['days_remaining'], 55)
        self.assertIsNotNone(result['coverage_gap_warning'])

    def test_continuity_preference(self):
        """Keeping providers with ongoing prescriptions picks COBRA"""
        scenario = make_scenario(wants_to_keep_providers=True, has_ongoing_prescriptions=True)
        result = analyze_job_change(scenario, evaluation_date=date(2025, 6, 20))
        self.assertEqual(result['recommended_option']['type'], 'cobra')

    def test_short_gap_offers_short_term(self):
        """New job soon adds a short-term option where allowed"""
        scenario = make_scenario(has_new_job_offer=True, new_job_start_date=date(2025, 8, 1))
        self.assertEqual(calculate_coverage_duration(scenario), 2)
        result = analyze_job_change(scenario, evaluation_date=date(2025, 6, 20))
        self.assertIn('short-term', [o['type'] for o in result['options']])
        dates = [e['date'] for e in result['timeline']]
        self.assertEqual(dates, sorted(dates))

    def test_short_term_omitted_in_restricting_state(self):
        """No short-term plans in restricting states"""
        scenario = make_scenario(state='CA', has_new_job_offer=True, new_job_start_date=date(2025, 8, 1))
        result = analyze_job_change(scenario, evaluation_date=date(2025, 6, 20))
        self.assertNotIn('short-term', [o['type'] for o in result['options']])
        self.assertEqual(estimate_short_term_premium(45, 'ny'), 0.0)

    def test_high_income_note(self):
        """Above 400% FPL there is no subsidy"""
        result = analyze_job_change(make_scenario(household_income=200000), evaluation_date=date(2025, 6, 20))
        self.assertFalse(result['subsidy_info']['eligible'])
        self.assertIn('Income above 400% FPL - no premium subsidies available.', result['reasoning'])

    def test_quick_comparison(self):
        """Shortcut agrees with the subsidized case"""
        result = quick_cobra_vs_marketplace(900, 45, 40000, 1, 'TX')
        self.assertEqual(result['recommendation'], 'marketplace')
        self.assertGreater(result['monthly_savings'], 0)


# =============================================================================
# MEDICARE TRANSITION
# =============================================================================

def make_medicare_input(**overrides) -> MedicareTransitionInput:
    values = dict(
        date_of_birth=date(1960, 12, 10),
        current_monthly_premium=1200,
        has_employer_coverage=False,
        state='NC',
    )
    values.update(overrides)
    return MedicareTransitionInput(**values)


class TestMedicareTransition(unittest.TestCase):
    """Timeline, costs and recommendation"""

    def test_eligibility_date(self):
        """First of the birthday month"""
        self.assertEqual(get_medicare_eligibility_date(date(1960, 8, 20)), date(2025, 8, 1))

    def test_penalties(self):
        """Part B per full year, Part D per month"""
        self.assertEqual(calculate_part_b_penalty(11), 0)
        self.assertAlmostEqual(calculate_part_b_penalty(24), 34.94)
        self.assertAlmostEqual(calculate_part_d_penalty(10), 3.47)

    def test_irmaa(self):
        """Brackets by MAGI; unknown status uses single"""
        self.assertEqual(get_irmaa_surcharge(100000), {'part_b_extra': 0.0, 'part_d_extra': 0.0})
        self.assertEqual(get_irmaa_surcharge(150000)['part_b_extra'], 174.70)
        self.assertEqual(get_irmaa_surcharge(150000, 'bogus'), get_irmaa_surcharge(150000, 'single'))

    def test_medigap_issue_age(self):
        """2% per year past 65"""
        self.assertEqual(estimate_medigap_premium('TX'), 150)
        self.assertEqual(estimate_medigap_premium('TX', 70), 165)

    def test_approaching_65(self):
        """Within 90 days: urgent warning and sorted events"""
        result = analyze_medicare_transition(make_medicare_input(), evaluation_date=date(2025, 10, 1))
        timeline = result['timeline']
        self.assertEqual(timeline['days_until_65'], 70)
        self.assertEqual(len(timeline['events']), 4)
        dates = [e['date'] for e in timeline['events']]
        self.assertEqual(dates, sorted(dates))
        self.assertTrue(result['warnings'][0].startswith('URGENT'))

    def test_expensive_current_plan_switch(self):
        """Large savings recommend switching"""
        result = analyze_medicare_transition(make_medicare_input(), evaluation_date=date(2025, 1, 1))
        self.assertEqual(result['comparison']['recommendation'], 'switch')
        self.assertGreater(result['comparison']['annual_savings'], 1000)

    def test_large_employer_delay(self):
        """Still working at a large employer delays Part B"""
        data = make_medicare_input(has_employer_coverage=True, still_working=True, employer_size='large')
        result = analyze_medicare_transition(data, evaluation_date=date(2025, 1, 1))
        self.assertEqual(result['comparison']['recommendation'], 'delay')
        self.assertIn('SEP', [p['type'] for p in result['timeline']['enrollment_periods']])

    def test_small_employer_switch(self):
        """Small employer coverage is secondary"""
        data = make_medicare_input(has_employer_coverage=True, employer_size='small')
        result = analyze_medicare_transition(data, evaluation_date=date(2025, 1, 1))
        self.assertEqual(result['comparison']['recommendation'], 'switch')
        self.assertTrue(any(w.startswith('Important') for w in result['warnings']))

    def test_unknown_employer_size_not_mutated(self):
        """Invalid employer size is ignored without changing the input"""
        data = make_medicare_input(has_employer_coverage=True, still_working=True, employer_size='medium')
        result = analyze_medicare_transition(data, evaluation_date=date(2025, 1, 1))
        self.assertEqual(data.employer_size, 'medium')
        self.assertNotEqual(result['comparison']['recommendation'], 'delay')

    def test_checklist_without_drug_coverage(self):
        """Part D item only when drug coverage is wanted"""
        with_drugs = analyze_medicare_transition(make_medicare_input(), evaluation_date=date(2025, 1, 1))
        without = analyze_medicare_transition(make_medicare_input(wants_drug_coverage=False),
                                              evaluation_date=date(2025, 1, 1))
        self.assertEqual(len(with_drugs['checklist']), len(without['checklist']) + 1)
        self.assertEqual(without['costs']['part_d_premium'], 0.0)


if __name__ == '__main__':
    unittest.main()
