"""
Pension drawdown. 25% of a withdrawal is tax-free (PCLS); the rest is
taxed on top of the person's other income.
"""
import logging
from dataclasses import dataclass, replace
from typing import List, Sequence

import pandas as pd

from config import DEFAULTS
from money import round_pence, round_pounds
from tax_uk import DEFAULT_TAX_ENGINE, TaxEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonRetirementInput:
    name: str
    pension_access_age: int
    state_retirement_age: int
    pension_pot: float
    accessible_wealth: float
    state_pension_annual: float


def estimate_pension_withdrawal_tax(gross_withdrawal: float, other_income: float = 0.0,
                                    tax_engine: TaxEngine = DEFAULT_TAX_ENGINE) -> float:
    if gross_withdrawal <= 0:
        return 0.0
    pcls = tax_engine.constants.pcls_fraction
    taxable = gross_withdrawal * (1 - pcls)
    tax_on_total = tax_engine.income_tax(other_income + taxable).tax
    tax_on_other = tax_engine.income_tax(other_income).tax if other_income > 0 else 0.0
    return tax_on_total - tax_on_other


def net_pension_withdrawal(gross_withdrawal: float, other_income: float = 0.0,
                           tax_engine: TaxEngine = DEFAULT_TAX_ENGINE) -> float:
    return gross_withdrawal - estimate_pension_withdrawal_tax(gross_withdrawal, other_income, tax_engine)


def calculate_gross_pension_withdrawal(target_net: float, other_income: float = 0.0,
                                       tax_engine: TaxEngine = DEFAULT_TAX_ENGINE,
                                       iterations: int = DEFAULTS["gross_up_iterations"],
                                       tolerance: float = DEFAULTS["gross_up_tolerance"]) -> float:
    """
    Gross withdrawal (to the penny) whose net after tax is target_net.
    Bisection over [net, 2 x net]; the band structure has no closed-form inverse.
    """
    if target_net <= 0:
        return 0.0
    lo, hi = target_net, target_net * 2
    for _ in range(iterations):
        mid = (lo + hi) / 2
        net = net_pension_withdrawal(mid, other_income, tax_engine)
        if abs(net - target_net) < tolerance:
            return round_pence(mid)
        if net < target_net:
            lo = mid
        else:
            hi = mid
    logger.debug("Gross-up for net %.2f did not converge within %d steps", target_net, iterations)
    return round_pence((lo + hi) / 2)


@dataclass(frozen=True)
class _Pots:
    pension_pot: float
    accessible_wealth: float


def _proportional_draw(balances: Sequence[float], eligible: Sequence[bool], need: float) -> List[float]:
    total = sum(b for b, ok in zip(balances, eligible) if ok and b > 0)
    if total <= 0 or need <= 0:
        return [0.0] * len(balances)
    return [min(b / total * need, b) if ok and b > 0 else 0.0 for b, ok in zip(balances, eligible)]


def build_income_timeline(persons: Sequence[PersonRetirementInput], target_annual_income: float,
                          retirement_age: int, end_age: int, growth_rate: float) -> pd.DataFrame:
    """
    Year-by-year retirement income by source and person: state pension in
    full, then DC pension drawn proportionally, then accessible wealth.
    Every pot is drawn first and grown after.
    """
    pots = [_Pots(p.pension_pot, p.accessible_wealth) for p in persons]
    rows = []
    for age in range(retirement_age, end_age + 1):
        row = {"age": age}
        income = 0.0
        for p in persons:
            sp = p.state_pension_annual if age >= p.state_retirement_age else 0.0
            row[f"{p.name} State Pension"] = round_pounds(sp)
            income += sp

        need = max(0.0, target_annual_income - income)
        can_draw = [age >= p.pension_access_age for p in persons]
        draws = _proportional_draw([s.pension_pot for s in pots], can_draw, need)
        for p, draw in zip(persons, draws):
            row[f"{p.name} Pension"] = round_pounds(draw)
            income += draw
        pots = [replace(s, pension_pot=(s.pension_pot - d) * (1 + growth_rate)) for s, d in zip(pots, draws)]

        need = max(0.0, target_annual_income - income)
        draws = _proportional_draw([s.accessible_wealth for s in pots], [True] * len(pots), need)
        for p, draw in zip(persons, draws):
            row[f"{p.name} ISA/Savings"] = round_pounds(draw)
            income += draw
        pots = [replace(s, accessible_wealth=(s.accessible_wealth - d) * (1 + growth_rate)) for s, d in zip(pots, draws)]

        row["Shortfall"] = round_pounds(max(0.0, target_annual_income - income))
        rows.append(row)
    return pd.DataFrame(rows)


def build_drawdown_data(starting_pot: float, annual_spend: float, retirement_age: int, end_age: int,
                        scenario_rates: Sequence[float], state_pension_age: int, state_pension_annual: float,
                        include_tax: bool = True,
                        tax_engine: TaxEngine = DEFAULT_TAX_ENGINE) -> pd.DataFrame:
    """Pot depletion per growth scenario; one column per rate, labelled like '5%'."""
    pots = [starting_pot] * len(scenario_rates)
    rows = []
    for age in range(retirement_age, end_age + 1):
        state_pension = state_pension_annual if age >= state_pension_age else 0.0
        net_need = max(0.0, annual_spend - state_pension)
        if include_tax and net_need > 0:
            withdrawal = calculate_gross_pension_withdrawal(net_need, state_pension, tax_engine)
        else:
            withdrawal = net_need

        row = {"age": age}
        for i, rate in enumerate(scenario_rates):
            pots[i] = max(0.0, (pots[i] - withdrawal) * (1 + rate))
            row[f"{rate * 100:.0f}%"] = round_pounds(pots[i])
        rows.append(row)
    return pd.DataFrame(rows)
