"""
Household Schema - Single Source of Truth

All calculators should accept a HouseholdProfile (or the dict it is built from).
Use HouseholdProfile.from_dict() to normalize payload keys before analysis.

This module solves the problem of inconsistent field naming between callers:
- Web payloads send camelCase ('adultAges', 'incomeRange')
- Internal code uses snake_case ('adult_ages', 'income_range')
- Residences may arrive with 'zip', 'zipCode' or 'zip_code'
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from constants import DEFAULT_BUDGET, MAX_AGE
from coverage_eval import HouseholdContext


# =============================================================================
# FIELD ALIASES
# =============================================================================
# Key = alias that might appear in raw payloads
# Value = canonical attribute name

FIELD_ALIASES = {
    # Household composition
    'adultAges': 'adult_ages',
    'childAges': 'child_ages',
    'adultsUseTobacco': 'adults_use_tobacco',
    'hasMedicareEligible': 'has_medicare_eligible',

    # Income and employer coverage
    'annualIncome': 'annual_income',
    'incomeRange': 'income_range',
    'hasEmployerInsurance': 'has_employer_insurance',
    'employerContribution': 'employer_contribution',

    # Current coverage
    'hasCurrentInsurance': 'has_current_insurance',
    'currentInsurance': 'current_insurance',

    # Preferences
    'interestedInAddOns': 'interested_in_add_ons',
    'excludedAddOnCategories': 'excluded_add_on_categories',

    # Health profile
    'hasChronicConditions': 'has_chronic_conditions',
    'chronicConditions': 'chronic_conditions',
    'doctorVisitsPerYear': 'doctor_visits_per_year',
    'specialistVisitsPerYear': 'specialist_visits_per_year',
    'erVisitsPerYear': 'er_visits_per_year',
    'prescriptionCount': 'prescription_count',
    'monthlyMedicationCost': 'monthly_medication_cost',
    'takesSpecialtyMeds': 'takes_specialty_meds',
    'plannedProcedures': 'planned_procedures',
    'usesMailOrderPharmacy': 'uses_mail_order_pharmacy',
    'providerPreference': 'provider_preference',
    'financialPriority': 'financial_priority',
    'canAffordUnexpectedBill': 'can_afford_unexpected_bill',

    # Residence
    'zip': 'zip_code',
    'zipCode': 'zip_code',
    'isPrimary': 'is_primary',
    'monthsPerYear': 'months_per_year',

    # Current insurance
    'planType': 'plan_type',
    'monthlyCost': 'monthly_cost',
    'outOfPocketMax': 'out_of_pocket_max',
    'coverageNotes': 'coverage_notes',
}


def normalize_keys(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Rename alias keys to their canonical names.

    Canonical keys already present win over aliases.

    Example:
        >>> normalize_keys({'adultAges': [40]})
        {'adult_ages': [40]}
    """
    if not data:
        return {}
    normalized = {}
    for key, value in data.items():
        canonical = FIELD_ALIASES.get(key, key)
        if canonical in normalized and key != canonical:
            continue
        normalized[canonical] = value
    return normalized


def _as_int_list(values: Any) -> List[int]:
    if not values:
        return []
    return [int(v) for v in values if v is not None]


# =============================================================================
# PROFILE DATACLASSES
# =============================================================================

@dataclass
class Residence:
    """One home the household lives in for part of the year."""
    state: str
    zip_code: str = ''
    is_primary: bool = False
    months_per_year: int = 12

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Residence':
        data = normalize_keys(data)
        return cls(
            state=(data.get('state') or '').strip().upper(),
            zip_code=str(data.get('zip_code') or '').strip(),
            is_primary=bool(data.get('is_primary', False)),
            months_per_year=int(data.get('months_per_year') or 0),
        )


@dataclass
class HealthProfile:
    """Self-reported health and healthcare usage."""
    has_chronic_conditions: bool = False
    chronic_conditions: List[str] = field(default_factory=list)
    doctor_visits_per_year: Optional[str] = None      # '0-2', '3-5', '6-10', '10+'
    specialist_visits_per_year: Optional[str] = None  # 'none', '1-3', 'monthly-or-more'
    er_visits_per_year: Optional[str] = None          # 'none', '1-2', '3+'
    prescription_count: Optional[str] = None          # 'none', '1-3', '4-or-more'
    monthly_medication_cost: Optional[str] = None     # 'under-50' ... 'over-1000'
    takes_specialty_meds: bool = False
    planned_procedures: bool = False
    uses_mail_order_pharmacy: bool = False
    provider_preference: Optional[str] = None         # 'specific-doctors', 'flexible'
    financial_priority: Optional[str] = None          # 'lowest-premium', 'balanced', ...
    can_afford_unexpected_bill: Optional[str] = None  # 'yes-easily', 'yes-difficulty', 'no-need-plan'

    @property
    def chronic_condition_count(self) -> int:
        """Chronic conditions only count when the flag is set"""
        if not self.has_chronic_conditions:
            return 0
        return len(self.chronic_conditions)

    @property
    def has_usage_data(self) -> bool:
        """True when any usage question was answered"""
        return any([
            self.doctor_visits_per_year,
            self.specialist_visits_per_year,
            self.er_visits_per_year,
            self.monthly_medication_cost,
            self.takes_specialty_meds,
            self.planned_procedures,
            self.chronic_condition_count > 0,
        ])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HealthProfile':
        data = normalize_keys(data)
        return cls(
            has_chronic_conditions=bool(data.get('has_chronic_conditions', False)),
            chronic_conditions=list(data.get('chronic_conditions') or []),
            doctor_visits_per_year=data.get('doctor_visits_per_year') or None,
            specialist_visits_per_year=data.get('specialist_visits_per_year') or None,
            er_visits_per_year=data.get('er_visits_per_year') or None,
            prescription_count=data.get('prescription_count') or None,
            monthly_medication_cost=data.get('monthly_medication_cost') or None,
            takes_specialty_meds=bool(data.get('takes_specialty_meds', False)),
            planned_procedures=bool(data.get('planned_procedures', False)),
            uses_mail_order_pharmacy=bool(data.get('uses_mail_order_pharmacy', False)),
            provider_preference=data.get('provider_preference') or None,
            financial_priority=data.get('financial_priority') or None,
            can_afford_unexpected_bill=data.get('can_afford_unexpected_bill') or None,
        )


@dataclass
class CurrentInsurance:
    """The plan the household holds today."""
    carrier: str = ''
    plan_type: str = ''
    monthly_cost: float = 0.0
    deductible: float = 0.0
    out_of_pocket_max: float = 0.0
    coverage_notes: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CurrentInsurance':
        data = normalize_keys(data)
        return cls(
            carrier=data.get('carrier') or '',
            plan_type=data.get('plan_type') or '',
            monthly_cost=float(data.get('monthly_cost') or 0),
            deductible=float(data.get('deductible') or 0),
            out_of_pocket_max=float(data.get('out_of_pocket_max') or 0),
            coverage_notes=data.get('coverage_notes') or '',
        )


@dataclass
class HouseholdProfile:
    """
    Validated household payload for one analysis.

    Ages are whole years. Residences must not add up to more than 12 months.
    """
    residences: List[Residence] = field(default_factory=list)
    adult_ages: List[int] = field(default_factory=list)
    child_ages: List[int] = field(default_factory=list)
    adults_use_tobacco: List[bool] = field(default_factory=list)
    has_medicare_eligible: bool = False

    annual_income: Optional[float] = None
    income_range: Optional[str] = None
    has_employer_insurance: bool = False
    employer_contribution: float = 0.0

    health: HealthProfile = field(default_factory=HealthProfile)

    has_current_insurance: bool = False
    current_insurance: Optional[CurrentInsurance] = None

    budget: str = DEFAULT_BUDGET
    interested_in_add_ons: bool = True
    excluded_add_on_categories: List[str] = field(default_factory=list)

    @property
    def states(self) -> List[str]:
        """Unique residence states in entry order"""
        seen = []
        for residence in self.residences:
            if residence.state and residence.state not in seen:
                seen.append(residence.state)
        return seen

    @property
    def primary_residence(self) -> Optional[Residence]:
        for residence in self.residences:
            if residence.is_primary:
                return residence
        return self.residences[0] if self.residences else None

    @property
    def primary_zip(self) -> str:
        residence = self.primary_residence
        return residence.zip_code if residence else ''

    @property
    def primary_state(self) -> str:
        residence = self.primary_residence
        return residence.state if residence else ''

    @property
    def num_adults(self) -> int:
        return len(self.adult_ages)

    @property
    def num_children(self) -> int:
        return len(self.child_ages)

    @property
    def household_size(self) -> int:
        return self.num_adults + self.num_children

    @property
    def all_ages(self) -> List[int]:
        return list(self.adult_ages) + list(self.child_ages)

    @property
    def total_residence_months(self) -> int:
        return sum(r.months_per_year for r in self.residences)

    @property
    def has_income(self) -> bool:
        return self.annual_income is not None or bool(self.income_range)

    def context(self) -> HouseholdContext:
        """Build the per-analysis household context."""
        return HouseholdContext(
            adult_ages=list(self.adult_ages),
            child_ages=list(self.child_ages),
            states=self.states,
            has_medicare_flag=self.has_medicare_eligible,
            adults_use_tobacco=list(self.adults_use_tobacco),
        )

    def validate(self) -> List[str]:
        """
        Check the profile for shape problems.

        Returns:
            List of human-readable problems (empty when the profile is well formed)
        """
        errors = []
        if self.household_size == 0:
            errors.append('Household must include at least one member')
        for age in self.all_ages:
            if age < 0 or age > MAX_AGE:
                errors.append(f'Age {age} is outside 0-{MAX_AGE}')
        if self.total_residence_months > 12:
            errors.append(
                f'Residence months add up to {self.total_residence_months} (maximum 12)'
            )
        if self.annual_income is not None and self.annual_income < 0:
            errors.append('Annual income cannot be negative')
        return errors

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HouseholdProfile':
        """
        Build a profile from a raw payload.

        Health fields may be nested under 'health' or sit at the top level.
        """
        data = normalize_keys(data)

        health_data = data.get('health')
        if isinstance(health_data, HealthProfile):
            health = health_data
        else:
            health = HealthProfile.from_dict({**data, **(health_data or {})})

        current = data.get('current_insurance')
        if isinstance(current, dict):
            current = CurrentInsurance.from_dict(current)
        elif not isinstance(current, CurrentInsurance):
            current = None

        residences = [
            r if isinstance(r, Residence) else Residence.from_dict(r)
            for r in (data.get('residences') or [])
        ]

        annual_income = data.get('annual_income')
        return cls(
            residences=residences,
            adult_ages=_as_int_list(data.get('adult_ages')),
            child_ages=_as_int_list(data.get('child_ages')),
            adults_use_tobacco=[bool(v) for v in (data.get('adults_use_tobacco') or [])],
            has_medicare_eligible=bool(data.get('has_medicare_eligible', False)),
            annual_income=float(annual_income) if annual_income is not None else None,
            income_range=data.get('income_range') or None,
            has_employer_insurance=bool(data.get('has_employer_insurance', False)),
            employer_contribution=float(data.get('employer_contribution') or 0),
            health=health,
            has_current_insurance=bool(data.get('has_current_insurance', False)),
            current_insurance=current,
            budget=data.get('budget') or DEFAULT_BUDGET,
            interested_in_add_ons=data.get('interested_in_add_ons', True) is not False,
            excluded_add_on_categories=list(data.get('excluded_add_on_categories') or []),
        )


def coerce_profile(form_data: Any) -> HouseholdProfile:
    """Accept either a HouseholdProfile or a raw payload dict."""
    if isinstance(form_data, HouseholdProfile):
        return form_data
    return HouseholdProfile.from_dict(form_data or {})
