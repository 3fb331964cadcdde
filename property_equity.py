import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, List, Optional

from household import Property, get_mortgage_remaining_months
from money import round_pounds


@dataclass(frozen=True)
class PropertyProjectionYear:
    year: int
    property_value: int
    mortgage_balance: int
    equity: int


@dataclass(frozen=True)
class AmortizationMonth:
    month: int
    opening_balance: int
    interest_payment: int
    principal_payment: int
    closing_balance: int


def _monthly_payment(balance: float, monthly_rate: float, months: int) -> float:
    factor = (1 + monthly_rate) ** months
    return balance * (monthly_rate * factor) / (factor - 1)


def _has_amortisation_terms(prop: Property) -> bool:
    return bool(prop.mortgage_rate) and bool(prop.mortgage_term) and prop.mortgage_start_date is not None


def project_mortgage_balance(prop: Property, years: int, now: date) -> List[float]:
    """Year-end balances; index 0 is today's balance. Static without rate/term/start."""
    balance = prop.mortgage_balance
    if not balance or balance <= 0:
        return [0.0] * (years + 1)
    if not _has_amortisation_terms(prop):
        return [balance] * (years + 1)

    remaining = get_mortgage_remaining_months(prop, now)
    if remaining <= 0:
        return [0.0] * (years + 1)

    monthly_rate = prop.mortgage_rate / 12.0
    payment = _monthly_payment(balance, monthly_rate, remaining)
    out = [balance]
    for _ in range(years):
        for _ in range(12):
            if balance <= 0:
                break
            interest = balance * monthly_rate
            balance -= min(payment - interest, balance)
        out.append(max(0.0, balance))
    return out


def project_property_equity(prop: Property, years: int, now: Optional[date] = None) -> List[PropertyProjectionYear]:
    now = now or date.today()
    mortgages = project_mortgage_balance(prop, years, now)
    out = []
    for y in range(years + 1):
        value = prop.estimated_value * (1 + (prop.appreciation_rate or 0.0)) ** y
        mortgage = mortgages[y]
        out.append(PropertyProjectionYear(
            year=y,
            property_value=round_pounds(value),
            mortgage_balance=round_pounds(mortgage),
            equity=round_pounds(max(0.0, value - mortgage)),
        ))
    return out


def generate_amortization_schedule(prop: Property, now: Optional[date] = None) -> List[AmortizationMonth]:
    now = now or date.today()
    if not prop.mortgage_balance or not _has_amortisation_terms(prop):
        return []
    remaining = get_mortgage_remaining_months(prop, now)
    if remaining <= 0:
        return []

    monthly_rate = prop.mortgage_rate / 12.0
    payment = _monthly_payment(prop.mortgage_balance, monthly_rate, remaining)
    balance = prop.mortgage_balance
    schedule = []
    for m in range(1, remaining + 1):
        interest = balance * monthly_rate
        principal = min(payment - interest, balance)
        closing = max(0.0, balance - principal)
        schedule.append(AmortizationMonth(
            month=m,
            opening_balance=round_pounds(balance),
            interest_payment=round_pounds(interest),
            principal_payment=round_pounds(principal),
            closing_balance=round_pounds(closing),
        ))
        balance = closing
    return schedule


def _projected_equity(properties: Iterable[Property], year_offset: int, now: date) -> float:
    total = 0.0
    for prop in properties:
        value = prop.estimated_value * (1 + (prop.appreciation_rate or 0.0)) ** year_offset
        mortgage = project_mortgage_balance(prop, year_offset, now)[year_offset]
        total += max(0.0, value - mortgage)
    return total


def project_total_property_equity(properties: Iterable[Property], year_offset: int,
                                  now: Optional[date] = None) -> int:
    return round_pounds(_projected_equity(properties, year_offset, now or date.today()))


def estate_property_growth_fn(properties: Iterable[Property], now: Optional[date] = None) -> Callable[[int], float]:
    """Unrounded projected equity by year offset, for estate projections."""
    properties = tuple(properties)
    now = now or date.today()
    return lambda year_offset: _projected_equity(properties, year_offset, now)


def calculate_mortgage_payoff_years(prop: Property, now: Optional[date] = None) -> Optional[int]:
    if not prop.mortgage_balance or prop.mortgage_balance <= 0:
        return 0
    if not _has_amortisation_terms(prop):
        return None
    remaining = get_mortgage_remaining_months(prop, now or date.today())
    return math.ceil(remaining / 12) if remaining > 0 else 0
