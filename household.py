from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Optional, Tuple

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from config import DEFAULTS

logger = logging.getLogger(__name__)

# ---------- Classification tables ----------
ACCOUNT_WRAPPERS = {
    "workplace_pension": "pension",
    "sipp": "pension",
    "stocks_and_shares_isa": "isa",
    "cash_isa": "isa",
    "lifetime_isa": "isa",
    "gia": "gia",
    "cash_savings": "cash",
    "premium_bonds": "premium_bonds",
}

CONTRIBUTION_FREQUENCY_MULTIPLIERS = {
    "weekly": 52.14,
    "monthly": 12,
    "quarterly": 4,
    "annually": 1,
    "termly": 3,
}

OUTGOING_FREQUENCY_MULTIPLIERS = {
    "monthly": 12,
    "termly": 3,
    "annually": 1,
}

OUTGOING_CATEGORY_LABELS = {
    "school_fees": "School Fees",
    "mortgage": "Mortgage",
    "rent": "Rent",
    "childcare": "Childcare",
    "insurance": "Insurance",
    "other": "Other",
}

PENSION_METHODS = ("salary_sacrifice", "net_pay", "relief_at_source")
CONTRIBUTION_TARGETS = ("isa", "pension", "gia")
NI_YEARS_CAP = 50


def get_account_tax_wrapper(account_type: str) -> str:
    try:
        return ACCOUNT_WRAPPERS[account_type]
    except KeyError:
        raise ValueError(f"Unknown account type: {account_type!r}") from None


def annualise_contribution(amount: float, frequency: str) -> float:
    try:
        return amount * CONTRIBUTION_FREQUENCY_MULTIPLIERS[frequency]
    except KeyError:
        raise ValueError(f"Unknown contribution frequency: {frequency!r}") from None


def annualise_outgoing(amount: float, frequency: str) -> float:
    try:
        return amount * OUTGOING_FREQUENCY_MULTIPLIERS[frequency]
    except KeyError:
        raise ValueError(f"Unknown outgoing frequency: {frequency!r}") from None


# ---------- Records ----------
@dataclass(frozen=True)
class Person:
    id: str
    name: str
    date_of_birth: date
    relationship: str = "self"        # self | spouse
    planned_retirement_age: int = 60
    pension_access_age: int = 57
    state_retirement_age: int = 67
    ni_qualifying_years: int = 35
    student_loan_plan: str = "none"


@dataclass(frozen=True)
class Account:
    id: str
    person_id: str
    type: str
    current_value: float
    name: str = ""
    provider: str = ""

    @property
    def wrapper(self) -> str:
        return get_account_tax_wrapper(self.type)


@dataclass(frozen=True)
class PersonIncome:
    person_id: str
    gross_salary: float
    employer_pension_contribution: float = 0.0    # annual
    employee_pension_contribution: float = 0.0    # annual
    pension_contribution_method: str = "salary_sacrifice"
    salary_growth_rate: float = 0.0
    bonus_growth_rate: float = 0.0

    @property
    def total_pension_contribution(self) -> float:
        return self.employer_pension_contribution + self.employee_pension_contribution


@dataclass(frozen=True)
class BonusStructure:
    person_id: str
    total_bonus_annual: float = 0.0
    cash_bonus_annual: float = 0.0
    vesting_years: int = 0
    vesting_gap_years: int = 0
    estimated_annual_return: float = 0.0

    @property
    def deferred_bonus_annual(self) -> float:
        return max(0.0, self.total_bonus_annual - self.cash_bonus_annual)


@dataclass(frozen=True)
class Contribution:
    id: str
    person_id: str
    target: str                        # isa | pension | gia
    amount: float
    frequency: str = "monthly"
    label: str = ""

    @property
    def annual_amount(self) -> float:
        return annualise_contribution(self.amount, self.frequency)


@dataclass(frozen=True)
class Property:
    id: str
    estimated_value: float
    owner_person_ids: Tuple[str, ...] = ()
    mortgage_balance: float = 0.0
    label: str = ""
    appreciation_rate: float = 0.0
    mortgage_rate: Optional[float] = None
    mortgage_term: Optional[int] = None           # years
    mortgage_start_date: Optional[date] = None


@dataclass(frozen=True)
class CommittedOutgoing:
    id: str
    category: str
    amount: float                      # per occurrence
    frequency: str = "monthly"
    label: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    inflation_rate: Optional[float] = None
    person_id: Optional[str] = None
    linked_child_id: Optional[str] = None

    @property
    def annual_amount(self) -> float:
        return annualise_outgoing(self.amount, self.frequency)

    @property
    def display_label(self) -> str:
        return self.label or OUTGOING_CATEGORY_LABELS.get(self.category, self.category)


@dataclass(frozen=True)
class Child:
    id: str
    name: str
    date_of_birth: date
    school_fee_annual: float = 0.0
    fee_inflation_rate: float = 0.0
    school_start_age: int = DEFAULTS["school_start_age"]
    school_end_age: int = DEFAULTS["school_end_age"]


@dataclass(frozen=True)
class RetirementConfig:
    target_annual_income: float = 0.0
    withdrawal_rate: float = 0.04
    include_state_pension: bool = True
    scenario_rates: Tuple[float, ...] = (0.05, 0.07, 0.09)


@dataclass(frozen=True)
class EmergencyFundConfig:
    monthly_essential_expenses: float = 0.0
    target_months: int = 6
    monthly_lifestyle_spending: float = 0.0


@dataclass(frozen=True)
class Gift:
    id: str
    date: date
    amount: float
    recipient: str = ""
    description: str = ""


@dataclass(frozen=True)
class IHTConfig:
    estimated_property_value: float = 0.0
    passing_to_direct_descendants: bool = True
    gifts: Tuple[Gift, ...] = ()


@dataclass(frozen=True)
class Household:
    persons: Tuple[Person, ...] = ()
    accounts: Tuple[Account, ...] = ()
    income: Tuple[PersonIncome, ...] = ()
    bonus_structures: Tuple[BonusStructure, ...] = ()
    contributions: Tuple[Contribution, ...] = ()
    properties: Tuple[Property, ...] = ()
    committed_outgoings: Tuple[CommittedOutgoing, ...] = ()
    children: Tuple[Child, ...] = ()
    retirement: RetirementConfig = field(default_factory=RetirementConfig)
    emergency_fund: EmergencyFundConfig = field(default_factory=EmergencyFundConfig)
    iht: IHTConfig = field(default_factory=IHTConfig)

    @property
    def person_ids(self) -> frozenset:
        return frozenset(p.id for p in self.persons)

    def person(self, person_id: str) -> Optional[Person]:
        return next((p for p in self.persons if p.id == person_id), None)

    def primary_person(self) -> Optional[Person]:
        if not self.persons:
            return None
        return next((p for p in self.persons if p.relationship == "self"), self.persons[0])

    def income_for(self, person_id: str) -> Optional[PersonIncome]:
        return next((i for i in self.income if i.person_id == person_id), None)

    def bonus_for(self, person_id: str) -> Optional[BonusStructure]:
        return next((b for b in self.bonus_structures if b.person_id == person_id), None)

    def accounts_for(self, person_id: str) -> Tuple[Account, ...]:
        return tuple(a for a in self.accounts if a.person_id == person_id)

    def contributions_for(self, person_id: str) -> Tuple[Contribution, ...]:
        return tuple(c for c in self.contributions if c.person_id == person_id)


def linked_records(records, person_ids, kind: str = "record"):
    """Drop records whose person_id points at no known person."""
    kept = tuple(r for r in records if r.person_id in person_ids)
    dropped = len(records) - len(kept)
    if dropped:
        logger.debug("Excluded %d orphaned %s(s)", dropped, kind)
    return kept


# ---------- Property helpers ----------
def get_property_equity(prop: Property) -> float:
    return max(0.0, prop.estimated_value - prop.mortgage_balance)


def get_total_property_equity(properties) -> float:
    return sum(get_property_equity(p) for p in properties)


def get_mortgage_remaining_months(prop: Property, now: date) -> int:
    if not prop.mortgage_term or prop.mortgage_start_date is None:
        return 0
    elapsed = relativedelta(now, prop.mortgage_start_date)
    elapsed_months = elapsed.years * 12 + elapsed.months
    return max(0, prop.mortgage_term * 12 - elapsed_months)


def parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value)).date()
    except (ValueError, OverflowError):
        return None


# ---------- Loading from plain dicts ----------
def _records(cls, rows, date_fields=(), tuple_fields=()):
    out = []
    for row in rows or []:
        row = dict(row)
        for key in date_fields:
            if key in row:
                row[key] = parse_date(row[key])
        for key in tuple_fields:
            if key in row and row[key] is not None:
                row[key] = tuple(row[key])
        out.append(cls(**row))
    return tuple(out)


def household_from_dict(data: dict) -> Household:
    """Build a Household from a JSON-style dict with snake_case keys."""
    persons = []
    for person in _records(Person, data.get("persons"), date_fields=("date_of_birth",)):
        capped = min(NI_YEARS_CAP, max(0, int(person.ni_qualifying_years)))
        if capped != person.ni_qualifying_years:
            person = replace(person, ni_qualifying_years=capped)
        persons.append(person)

    iht_raw = dict(data.get("iht") or {})
    iht_raw["gifts"] = _records(Gift, iht_raw.get("gifts"), date_fields=("date",))
    retirement_raw = dict(data.get("retirement") or {})
    if "scenario_rates" in retirement_raw:
        retirement_raw["scenario_rates"] = tuple(retirement_raw["scenario_rates"])

    return Household(
        persons=tuple(persons),
        accounts=_records(Account, data.get("accounts")),
        income=_records(PersonIncome, data.get("income")),
        bonus_structures=_records(BonusStructure, data.get("bonus_structures")),
        contributions=_records(Contribution, data.get("contributions")),
        properties=_records(
            Property, data.get("properties"),
            date_fields=("mortgage_start_date",), tuple_fields=("owner_person_ids",),
        ),
        committed_outgoings=_records(
            CommittedOutgoing, data.get("committed_outgoings"),
            date_fields=("start_date", "end_date"),
        ),
        children=_records(Child, data.get("children"), date_fields=("date_of_birth",)),
        retirement=RetirementConfig(**retirement_raw),
        emergency_fund=EmergencyFundConfig(**(data.get("emergency_fund") or {})),
        iht=IHTConfig(**iht_raw),
    )
