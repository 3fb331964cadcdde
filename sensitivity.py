import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from aggregations import calculate_household_state_pension, household_annual_contributions
from config import DEFAULTS
from household import Household, linked_records
from projections import (
    calculate_adjusted_required_pot, calculate_age, get_mid_scenario_rate, project_final_value,
)
from tax_uk import UK_TAX_CONSTANTS, TaxConstants

logger = logging.getLogger(__name__)

METRIC_LABEL = "Projected Pot at Retirement"


@dataclass(frozen=True)
class SensitivityInput:
    label: str
    impact: float
    current_value: float
    unit: str


@dataclass(frozen=True)
class SensitivityResult:
    inputs: List[SensitivityInput] = field(default_factory=list)
    metric_label: str = METRIC_LABEL
    baseline_value: float = 0.0


def _required_pot_impact(household: Household, income_delta: float = 0.0, rate_delta: float = 0.0,
                         constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    """Change in required pot, negated; nan when either side is unreachable."""
    r = household.retirement
    state_pension = calculate_household_state_pension(household.persons, constants)
    base = calculate_adjusted_required_pot(
        r.target_annual_income, r.withdrawal_rate, r.include_state_pension, state_pension)
    moved = calculate_adjusted_required_pot(
        r.target_annual_income + income_delta, r.withdrawal_rate + rate_delta,
        r.include_state_pension, state_pension)
    if not (math.isfinite(base) and math.isfinite(moved)):
        return math.nan
    return -(moved - base)


def calculate_sensitivity(household: Household, now: Optional[date] = None,
                          constants: TaxConstants = UK_TAX_CONSTANTS) -> SensitivityResult:
    primary = household.primary_person()
    if primary is None:
        return SensitivityResult()

    now = now or date.today()
    pct = DEFAULTS["sensitivity_pct"]
    rate = get_mid_scenario_rate(household.retirement.scenario_rates)
    years = max(0, primary.planned_retirement_age - calculate_age(primary.date_of_birth, now))

    pot = sum(a.current_value for a in linked_records(household.accounts, household.person_ids, "account"))
    contrib = household_annual_contributions(household)
    baseline = project_final_value(pot, contrib, rate, years)

    def moved(p=pot, c=contrib, r=rate, y=years):
        return project_final_value(p, c, r, y) - baseline

    inputs = []
    if pot > 0:
        inputs.append(SensitivityInput("Current pot value", moved(p=pot * (1 + pct)), pot, "£"))
    if contrib > 0:
        inputs.append(SensitivityInput("Annual contributions", moved(c=contrib * (1 + pct)), contrib, "£"))
    inputs.append(SensitivityInput(
        "Investment return rate", moved(r=rate + DEFAULTS["sensitivity_rate_pp"]), rate * 100, "%"))
    if years > 0:
        inputs.append(SensitivityInput(
            "Retirement age", moved(y=years + 1), primary.planned_retirement_age, "years"))

    income = household.income_for(primary.id)
    if income is not None and income.gross_salary > 0:
        pension_ratio = income.total_pension_contribution / income.gross_salary
        extra_pension = income.gross_salary * pct * pension_ratio
        inputs.append(SensitivityInput("Salary", moved(c=contrib + extra_pension), income.gross_salary, "£"))

    retirement = household.retirement
    inputs.append(SensitivityInput(
        "Withdrawal rate",
        _required_pot_impact(household, rate_delta=-DEFAULTS["sensitivity_withdrawal_pp"], constants=constants),
        retirement.withdrawal_rate * 100,
        "%",
    ))
    inputs.append(SensitivityInput(
        "Target retirement income",
        _required_pot_impact(household, income_delta=DEFAULTS["sensitivity_income_delta"], constants=constants),
        retirement.target_annual_income,
        "£",
    ))

    ranked = []
    for item in inputs:
        if math.isfinite(item.impact):
            ranked.append(item)
        else:
            logger.debug("Skipping %s: required pot is unbounded", item.label)
    ranked.sort(key=lambda i: abs(i.impact), reverse=True)
    return SensitivityResult(inputs=ranked, metric_label=METRIC_LABEL, baseline_value=baseline)
