# Net-worth roll-ups. Records pointing at an unknown person are left out.
from dataclasses import dataclass
from typing import Dict, Iterable, List

from household import (
    Contribution, Household, Person, PersonIncome,
    get_property_equity, get_total_property_equity, linked_records,
)
from money import round_pence
from projections import calculate_pro_rata_state_pension
from tax_uk import UK_TAX_CONSTANTS, TaxConstants


@dataclass(frozen=True)
class PersonNetWorth:
    person_id: str
    name: str
    value: float


@dataclass(frozen=True)
class WealthSplit:
    person_id: str
    accessible: float
    pension: float


def _accounts(household: Household):
    return linked_records(household.accounts, household.person_ids, "account")


def get_total_net_worth(household: Household) -> float:
    accounts = sum(a.current_value for a in _accounts(household))
    return round_pence(accounts + get_total_property_equity(household.properties))


def get_investable_net_worth(household: Household) -> float:
    return round_pence(sum(a.current_value for a in _accounts(household)))


def get_net_worth_by_person(household: Household) -> List[PersonNetWorth]:
    """Accounts plus an equal share of each owned property's equity."""
    accounts = _accounts(household)
    out = []
    for person in household.persons:
        value = sum(a.current_value for a in accounts if a.person_id == person.id)
        for prop in household.properties:
            if person.id in prop.owner_person_ids:
                value += get_property_equity(prop) / max(1, len(prop.owner_person_ids))
        out.append(PersonNetWorth(person_id=person.id, name=person.name, value=round_pence(value)))
    return out


def get_net_worth_by_wrapper(household: Household) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for acc in _accounts(household):
        totals[acc.wrapper] = totals.get(acc.wrapper, 0.0) + acc.current_value
    return {k: round_pence(v) for k, v in totals.items()}


def get_net_worth_by_account_type(household: Household) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for acc in _accounts(household):
        totals[acc.type] = totals.get(acc.type, 0.0) + acc.current_value
    return {k: round_pence(v) for k, v in totals.items()}


def get_wealth_split(household: Household) -> List[WealthSplit]:
    """Accessible (everything outside a pension) vs pension wealth per person."""
    accounts = _accounts(household)
    out = []
    for person in household.persons:
        own = [a for a in accounts if a.person_id == person.id]
        out.append(WealthSplit(
            person_id=person.id,
            accessible=round_pence(sum(a.current_value for a in own if a.wrapper != "pension")),
            pension=round_pence(sum(a.current_value for a in own if a.wrapper == "pension")),
        ))
    return out


def calculate_total_annual_contributions(contributions: Iterable[Contribution],
                                         income: Iterable[PersonIncome]) -> float:
    """Discretionary contributions plus employee and employer pension contributions."""
    discretionary = sum(c.annual_amount for c in contributions)
    return discretionary + sum(i.total_pension_contribution for i in income)


def calculate_personal_annual_contributions(contributions: Iterable[Contribution],
                                            income: Iterable[PersonIncome]) -> float:
    """As above but without the employer's share: money the household itself puts in."""
    discretionary = sum(c.annual_amount for c in contributions)
    return discretionary + sum(i.employee_pension_contribution for i in income)


def household_annual_contributions(household: Household) -> float:
    ids = household.person_ids
    return calculate_total_annual_contributions(
        linked_records(household.contributions, ids, "contribution"),
        linked_records(household.income, ids, "income"),
    )


def calculate_household_state_pension(persons: Iterable[Person],
                                      constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    return sum(calculate_pro_rata_state_pension(p.ni_qualifying_years or 0, constants) for p in persons)
