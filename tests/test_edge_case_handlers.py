"""
Test Suite for Edge Case Handlers

Covers SEP windows, age milestones, income volatility and the
Open Enrollment calendar. Every test passes an explicit evaluation date.

Run with: python -m unittest tests.test_edge_case_handlers
"""

import unittest
from datetime import date, timedelta

from edge_case_handlers import (
    SEPReason,
    analyze_age_transitions,
    analyze_income_volatility,
    calculate_special_enrollment_period,
    classify_reconciliation_risk,
    get_deadline_urgency,
    get_next_open_enrollment,
    is_open_enrollment_period,
)


EVENT = date(2025, 6, 15)


# =============================================================================
# SPECIAL ENROLLMENT PERIODS
# =============================================================================

class TestSpecialEnrollmentPeriod(unittest.TestCase):
    """Windows, urgency and coverage start"""

    def test_reason_parsing(self):
        """Kebab-case, snake_case and unknown reasons"""
        self.assertEqual(SEPReason.parse('loss-of-coverage'), SEPReason.LOSS_OF_COVERAGE)
        self.assertEqual(SEPReason.parse('birth_adoption'), SEPReason.BIRTH_ADOPTION)
        self.assertEqual(SEPReason.parse('lottery-win'), SEPReason.OTHER)
        self.assertEqual(SEPReason.parse(None), SEPReason.OTHER)

    def test_loss_of_coverage_window(self):
        """60 days either side of the event"""
        sep = calculate_special_enrollment_period('loss-of-coverage', EVENT, EVENT)
        self.assertEqual(sep['enrollment_window_start'], EVENT - timedelta(days=60))
        self.assertEqual(sep['enrollment_window_end'], EVENT + timedelta(days=60))
        self.assertEqual(sep['coverage_effective_date'], date(2025, 7, 1))
        self.assertTrue(sep['is_active'])

    def test_urgency_as_window_closes(self):
        """55 days left is low urgency; 2 days left is critical"""
        early = calculate_special_enrollment_period('loss-of-coverage', EVENT, EVENT + timedelta(days=5))
        late = calculate_special_enrollment_period('loss-of-coverage', EVENT, EVENT + timedelta(days=58))
        self.assertEqual(early['days_remaining'], 55)
        self.assertEqual(early['urgency'], 'low')
        self.assertEqual(late['days_remaining'], 2)
        self.assertEqual(late['urgency'], 'critical')

    def test_after_window_negative_days(self):
        """Closed windows report negative days and are inactive"""
        sep = calculate_special_enrollment_period('moved', EVENT, EVENT + timedelta(days=61))
        self.assertEqual(sep['days_remaining'], -1)
        self.assertFalse(sep['is_active'])
        self.assertEqual(sep['urgency'], 'critical')

    def test_before_window(self):
        """Evaluating before the window opens is inactive"""
        sep = calculate_special_enrollment_period('marriage', EVENT, EVENT - timedelta(days=1))
        self.assertFalse(sep['is_active'])
        self.assertEqual(sep['days_remaining'], 61)

    def test_birth_coverage_retroactive(self):
        """Birth coverage starts on the event date"""
        sep = calculate_special_enrollment_period(SEPReason.BIRTH_ADOPTION, EVENT, EVENT + timedelta(days=10))
        self.assertEqual(sep['coverage_effective_date'], EVENT)
        self.assertTrue(sep['required_documentation'])

    def test_income_change_30_days(self):
        """Income changes have a 30-day window"""
        sep = calculate_special_enrollment_period('income-change', EVENT, EVENT)
        self.assertEqual(sep['enrollment_window_end'], EVENT + timedelta(days=30))

    def test_deadline_urgency_tiers(self):
        """Tier boundaries at 7, 14 and 30 days"""
        self.assertEqual(get_deadline_urgency(-3).value, 'critical')
        self.assertEqual(get_deadline_urgency(7).value, 'critical')
        self.assertEqual(get_deadline_urgency(8).value, 'high')
        self.assertEqual(get_deadline_urgency(30).value, 'moderate')
        self.assertEqual(get_deadline_urgency(31).value, 'low')


# =============================================================================
# AGE TRANSITIONS
# =============================================================================

class TestAgeTransitions(unittest.TestCase):
    """Upcoming milestones"""

    def test_all_milestones_sorted(self):
        """A 24-year-old has every milestone ahead, nearest first"""
        result = analyze_age_transitions(date(2000, 6, 15), date(2025, 3, 1))
        self.assertEqual(result['current_age'], 24)
        ages = [t['age'] for t in result['transitions']]
        self.assertEqual(ages, [26, 30, 40, 50, 60, 64, 65])
        days = [t['days_until'] for t in result['transitions']]
        self.assertEqual(days, sorted(days))

    def test_age_26_imminent(self):
        """Turning 26 within 60 days is critical"""
        result = analyze_age_transitions(date(2000, 6, 15), date(2026, 5, 1))
        first = result['transitions'][0]
        self.assertEqual(first['age'], 26)
        self.assertEqual(first['urgency'], 'critical')
        self.assertTrue(result['immediate_concerns'])

    def test_medicare_within_six_months(self):
        """65 within six months is high urgency"""
        result = analyze_age_transitions(date(1961, 1, 1), date(2025, 9, 1))
        self.assertEqual([t['age'] for t in result['transitions']], [65])
        self.assertEqual(result['transitions'][0]['urgency'], 'high')
        self.assertIn('Medicare eligibility within 6 months', result['immediate_concerns'])

    def test_past_65_empty(self):
        """Nothing left for a 66-year-old"""
        result = analyze_age_transitions(date(1959, 1, 1), date(2025, 6, 1))
        self.assertEqual(result['current_age'], 66)
        self.assertEqual(result['transitions'], [])


# =============================================================================
# INCOME VOLATILITY
# =============================================================================

class TestIncomeVolatility(unittest.TestCase):
    """Mid-year income changes"""

    def test_zero_current_income(self):
        """Zero income does not divide and moves from Medicaid to PTC"""
        result = analyze_income_volatility(0, 30000, 1, 'CA', 400, 0, 6)
        self.assertEqual(result['percentage_change'], 0.0)
        self.assertTrue(result['current_eligibility']['medicaid'])
        self.assertTrue(result['projected_eligibility']['ptc'])
        self.assertTrue(result['crosses_threshold'])
        self.assertLess(result['estimated_reconciliation_impact'], 0)
        self.assertEqual(result['reconciliation_risk'], 'high')

    def test_income_increase_owes_money(self):
        """Losing PTC eligibility mid-year means repayment"""
        result = analyze_income_volatility(30000, 70000, 1, 'NC', 500, 350, 6)
        self.assertFalse(result['projected_eligibility']['ptc'])
        self.assertIn('Losing Premium Tax Credit eligibility', result['thresholds_crossed'])
        self.assertEqual(result['estimated_reconciliation_impact'], 2100)
        self.assertEqual(result['reconciliation_risk'], 'high')
        self.assertTrue(any('owe' in w for w in result['warnings']))
        self.assertTrue(any('Significant income change' in w for w in result['warnings']))

    def test_months_clamped(self):
        """Months beyond a year are clamped to 12"""
        result = analyze_income_volatility(30000, 70000, 1, 'NC', 500, 350, 20)
        self.assertEqual(result['estimated_reconciliation_impact'], 350 * 12)
        self.assertEqual(result['reconciliation_risk'], 'severe')

    def test_no_change(self):
        """Same income, same subsidy, no exposure"""
        result = analyze_income_volatility(100000, 100000, 2, 'TX', 900, 0, 6)
        self.assertFalse(result['crosses_threshold'])
        self.assertEqual(result['reconciliation_risk'], 'none')

    def test_risk_bands(self):
        """Absolute impact bands"""
        self.assertEqual(classify_reconciliation_risk(-499), 'low')
        self.assertEqual(classify_reconciliation_risk(500), 'moderate')
        self.assertEqual(classify_reconciliation_risk(3000), 'severe')


# =============================================================================
# OPEN ENROLLMENT
# =============================================================================

class TestOpenEnrollment(unittest.TestCase):
    """November 1 through January 15"""

    def test_is_open(self):
        """Boundaries are inclusive"""
        self.assertTrue(is_open_enrollment_period(date(2025, 11, 1)))
        self.assertTrue(is_open_enrollment_period(date(2026, 1, 15)))
        self.assertFalse(is_open_enrollment_period(date(2026, 1, 16)))
        self.assertFalse(is_open_enrollment_period(date(2025, 10, 31)))

    def test_next_period(self):
        """Before November points at this year's period"""
        oep = get_next_open_enrollment(date(2025, 10, 1))
        self.assertEqual(oep['start'], date(2025, 11, 1))
        self.assertEqual(oep['end'], date(2026, 1, 15))
        self.assertEqual(oep['days_until'], 31)

    def test_during_period(self):
        """Inside the period returns the current one"""
        self.assertEqual(get_next_open_enrollment(date(2025, 12, 1))['days_until'], -30)
        self.assertEqual(get_next_open_enrollment(date(2026, 1, 10))['start'], date(2025, 11, 1))


if __name__ == '__main__':
    unittest.main()
