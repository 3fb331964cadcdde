# lifetime.py
import logging
from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from config import DEFAULTS
from costs import calculate_expenditure
from deferred_bonus import deferred_vesting_in_year
from drawdown import calculate_gross_pension_withdrawal, estimate_pension_withdrawal_tax
from household import BonusStructure, Household, Person, PersonIncome, linked_records
from money import round_pounds
from projections import calculate_age, calculate_pro_rata_state_pension
from tax_uk import DEFAULT_TAX_ENGINE, TaxEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifetimeCashFlowYear:
    age: int
    calendar_year: int
    employment_income: int
    pension_income: int
    state_pension_income: int
    investment_income: int
    total_income: int
    total_expenditure: int
    surplus: int
    pension_tax: int = 0
    pension_pot: int = 0
    accessible_wealth: int = 0


@dataclass(frozen=True)
class LifetimeCashFlowEvent:
    age: int
    label: str


@dataclass(frozen=True)
class LifetimeCashFlowResult:
    data: List[LifetimeCashFlowYear]
    events: List[LifetimeCashFlowEvent]
    primary_person_name: str

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(row) for row in self.data])


@dataclass(frozen=True)
class PersonProfile:
    """Inputs for one person that stay fixed for the whole run."""
    person: Person
    current_age: int
    income: Optional[PersonIncome]
    bonus: Optional[BonusStructure]
    state_pension_annual: float
    discretionary_pension: float
    discretionary_savings: float

    def age_in(self, year_offset: int) -> int:
        return self.current_age + year_offset

    def is_employed(self, year_offset: int) -> bool:
        return self.age_in(year_offset) < self.person.planned_retirement_age


@dataclass(frozen=True)
class PotState:
    pension_pot: float
    accessible_wealth: float


# ---------- Set-up ----------
def _build_profiles(household: Household, now: date,
                    tax_engine: TaxEngine) -> Tuple[List[PersonProfile], List[PotState]]:
    ids = household.person_ids
    accounts = linked_records(household.accounts, ids, "account")
    incomes = linked_records(household.income, ids, "income")
    bonuses = linked_records(household.bonus_structures, ids, "bonus structure")
    contributions = linked_records(household.contributions, ids, "contribution")

    profiles, states = [], []
    for person in household.persons:
        own_accounts = [a for a in accounts if a.person_id == person.id]
        own_contribs = [c for c in contributions if c.person_id == person.id]
        profiles.append(PersonProfile(
            person=person,
            current_age=calculate_age(person.date_of_birth, now),
            income=next((i for i in incomes if i.person_id == person.id), None),
            bonus=next((b for b in bonuses if b.person_id == person.id), None),
            state_pension_annual=calculate_pro_rata_state_pension(
                person.ni_qualifying_years, tax_engine.constants),
            discretionary_pension=sum(c.annual_amount for c in own_contribs if c.target == "pension"),
            discretionary_savings=sum(c.annual_amount for c in own_contribs if c.target != "pension"),
        ))
        states.append(PotState(
            pension_pot=sum(a.current_value for a in own_accounts if a.wrapper == "pension"),
            accessible_wealth=sum(a.current_value for a in own_accounts if a.wrapper != "pension"),
        ))
    return profiles, states


def _build_events(profiles: Sequence[PersonProfile], primary: PersonProfile, household: Household,
                  end_age: int, now: date) -> List[LifetimeCashFlowEvent]:
    """Milestones on the primary person's age axis; (age, label) pairs are unique."""
    start = primary.current_age
    candidates = []
    for p in profiles:
        age_diff = p.current_age - start
        person = p.person
        candidates += [
            (person.planned_retirement_age - age_diff, f"{person.name} retires"),
            (person.pension_access_age - age_diff, f"{person.name} pension access"),
            (person.state_retirement_age - age_diff, f"{person.name} state pension"),
        ]
    for o in household.committed_outgoings:
        if o.end_date is not None:
            candidates.append((start + (o.end_date.year - now.year), f"{o.label or o.category} ends"))

    events, seen = [], set()
    for age, label in candidates:
        if start <= age <= end_age and (age, label) not in seen:
            seen.add((age, label))
            events.append(LifetimeCashFlowEvent(age=age, label=label))
    return events


# ---------- Income ----------
def _employment_income(profile: PersonProfile, year_offset: int, calendar_year: int, base_year: int,
                       tax_engine: TaxEngine) -> float:
    """Net take-home from salary, cash bonus and vesting deferred bonus."""
    if not profile.is_employed(year_offset):
        return 0.0
    income = profile.income
    bonus = profile.bonus
    salary_growth = (1 + income.salary_growth_rate) ** year_offset if income else 1.0
    bonus_rate = income.bonus_growth_rate if income else 0.0

    gross = income.gross_salary * salary_growth if income else 0.0
    if bonus is not None:
        gross += bonus.cash_bonus_annual * (1 + bonus_rate) ** year_offset
        gross += deferred_vesting_in_year(bonus, calendar_year, base_year, bonus_rate)
    if gross <= 0:
        return 0.0

    if income is None:
        income = PersonIncome(person_id=profile.person.id, gross_salary=gross)
    else:
        income = replace(
            income,
            gross_salary=gross,
            employee_pension_contribution=income.employee_pension_contribution * salary_growth,
            employer_pension_contribution=income.employer_pension_contribution * salary_growth,
        )
    return tax_engine.net_take_home(income, profile.person.student_loan_plan)


def _state_pension(profile: PersonProfile, year_offset: int) -> float:
    if profile.age_in(year_offset) >= profile.person.state_retirement_age:
        return profile.state_pension_annual
    return 0.0


# ---------- Transitions ----------
def _accrue_contributions(profile: PersonProfile, state: PotState, year_offset: int) -> PotState:
    if not profile.is_employed(year_offset):
        return state
    workplace = 0.0
    if profile.income is not None:
        workplace = profile.income.total_pension_contribution * (1 + profile.income.salary_growth_rate) ** year_offset
    return PotState(
        pension_pot=state.pension_pot + workplace + profile.discretionary_pension,
        accessible_wealth=state.accessible_wealth + profile.discretionary_savings,
    )


def _proportional_shares(balances: Sequence[float], eligible: Sequence[bool], amount: float) -> List[float]:
    total = sum(b for b, ok in zip(balances, eligible) if ok and b > 0)
    if total <= 0 or amount <= 0:
        return [0.0] * len(balances)
    return [amount * b / total if ok and b > 0 else 0.0 for b, ok in zip(balances, eligible)]


def _draw_pensions(profiles, states, year_offset: int, need: float, state_pensions, tax_engine: TaxEngine):
    """
    Cover `need` (net) from DC pots of persons past access age, shared by
    balance. Each share is grossed up against that person's state pension.
    Returns (states, net_drawn, tax_paid).
    """
    eligible = [p.age_in(year_offset) >= p.person.pension_access_age for p in profiles]
    shares = _proportional_shares([s.pension_pot for s in states], eligible, need)
    new_states, net_total, tax_total = [], 0.0, 0.0
    for state, share, other_income in zip(states, shares, state_pensions):
        if share <= 0:
            new_states.append(state)
            continue
        gross = min(calculate_gross_pension_withdrawal(share, other_income, tax_engine), state.pension_pot)
        tax = estimate_pension_withdrawal_tax(gross, other_income, tax_engine)
        net_total += gross - tax
        tax_total += tax
        new_states.append(replace(state, pension_pot=state.pension_pot - gross))
    return new_states, net_total, tax_total


def _draw_accessible(states, need: float):
    shares = _proportional_shares([s.accessible_wealth for s in states], [True] * len(states), need)
    new_states, drawn = [], 0.0
    for state, share in zip(states, shares):
        take = min(share, state.accessible_wealth)
        drawn += take
        new_states.append(replace(state, accessible_wealth=state.accessible_wealth - take))
    return new_states, drawn


def _grow(state: PotState, growth_rate: float) -> PotState:
    return PotState(
        pension_pot=state.pension_pot * (1 + growth_rate),
        accessible_wealth=state.accessible_wealth * (1 + growth_rate),
    )


def _reinvest_surplus(states, surplus: float):
    if surplus <= 0:
        return states
    balances = [s.accessible_wealth for s in states]
    total = sum(balances)
    if total > 0:
        shares = [surplus * b / total for b in balances]
    else:
        shares = [surplus / len(states)] * len(states)
    return [replace(s, accessible_wealth=s.accessible_wealth + share) for s, share in zip(states, shares)]


# ---------- Entry point ----------
def generate_lifetime_cash_flow(household: Household, growth_rate: float,
                                end_age: int = DEFAULTS["end_age"], now: Optional[date] = None,
                                tax_engine: Optional[TaxEngine] = None,
                                general_inflation: float = DEFAULTS["general_inflation"]) -> LifetimeCashFlowResult:
    if not household.persons:
        return LifetimeCashFlowResult(data=[], events=[], primary_person_name="")

    now = now or date.today()
    tax_engine = tax_engine or DEFAULT_TAX_ENGINE
    profiles, states = _build_profiles(household, now, tax_engine)
    primary_person = household.primary_person()
    primary = next(p for p in profiles if p.person.id == primary_person.id)
    events = _build_events(profiles, primary, household, end_age, now)

    years = end_age - primary.current_age
    logger.debug("Simulating %d years for %d person(s)", max(0, years + 1), len(profiles))

    data = []
    for year_offset in range(0, years + 1):
        calendar_year = now.year + year_offset

        employment = sum(_employment_income(p, year_offset, calendar_year, now.year, tax_engine) for p in profiles)
        state_pensions = [_state_pension(p, year_offset) for p in profiles]
        state_pension_total = sum(state_pensions)
        expenditure = calculate_expenditure(
            household.committed_outgoings,
            household.emergency_fund.monthly_lifestyle_spending,
            calendar_year,
            base_year=now.year,
            general_inflation=general_inflation,
        )

        states = [_accrue_contributions(p, s, year_offset) for p, s in zip(profiles, states)]

        # whole pounds, so the reported components cover the reported expenditure
        shortfall = max(0, round_pounds(expenditure) - round_pounds(employment) - round_pounds(state_pension_total))
        states, pension_drawn, pension_tax = _draw_pensions(
            profiles, states, year_offset, shortfall, state_pensions, tax_engine)
        states, investment_drawn = _draw_accessible(states, max(0.0, shortfall - pension_drawn))

        states = [_grow(s, growth_rate) for s in states]

        income = employment + pension_drawn + state_pension_total + investment_drawn
        states = _reinvest_surplus(states, income - expenditure)

        row = {
            "employment_income": round_pounds(employment),
            "pension_income": round_pounds(pension_drawn),
            "state_pension_income": round_pounds(state_pension_total),
            "investment_income": round_pounds(investment_drawn),
        }
        total_income = sum(row.values())
        total_expenditure = round_pounds(expenditure)
        data.append(LifetimeCashFlowYear(
            age=primary.current_age + year_offset,
            calendar_year=calendar_year,
            total_income=total_income,
            total_expenditure=total_expenditure,
            surplus=total_income - total_expenditure,
            pension_tax=round_pounds(pension_tax),
            pension_pot=round_pounds(sum(s.pension_pot for s in states)),
            accessible_wealth=round_pounds(sum(s.accessible_wealth for s in states)),
            **row,
        ))

    return LifetimeCashFlowResult(data=data, events=events, primary_person_name=primary_person.name)
