import math
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from config import DEFAULTS
from household import parse_date
from money import round_pence
from tax_uk import UK_TAX_CONSTANTS, TaxConstants


@dataclass(frozen=True)
class YearlyProjection:
    year: int
    value: float


@dataclass(frozen=True)
class ScenarioProjection:
    rate: float
    projections: List[YearlyProjection]


@dataclass(frozen=True)
class RetirementCountdown:
    years: int
    months: int


@dataclass(frozen=True)
class PensionBridgeResult:
    bridge_years: int
    bridge_pot_required: float
    shortfall: float
    sufficient: bool


def get_mid_scenario_rate(scenario_rates: Sequence[float],
                          fallback: float = DEFAULTS["fallback_scenario_rate"]) -> float:
    if not scenario_rates:
        return fallback
    return scenario_rates[len(scenario_rates) // 2]


# ---------- Compound growth ----------
def project_compound_growth(current_value: float, monthly_contribution: float,
                            annual_rate: float, years: int) -> List[YearlyProjection]:
    """Monthly compounding; each month's contribution lands after that month's growth."""
    out = []
    value = current_value
    monthly_rate = annual_rate / 12.0
    for year in range(1, int(years) + 1):
        for _ in range(12):
            value = value * (1 + monthly_rate) + monthly_contribution
        out.append(YearlyProjection(year=year, value=round_pence(value)))
    return out


def project_final_value(current_value: float, annual_contribution: float,
                        annual_rate: float, years: int) -> float:
    if years <= 0:
        return current_value
    projection = project_compound_growth(current_value, annual_contribution / 12.0, annual_rate, years)
    return projection[-1].value if projection else current_value


def project_scenarios(current_value: float, monthly_contribution: float,
                      rates: Sequence[float], years: int) -> List[ScenarioProjection]:
    return [
        ScenarioProjection(rate=r, projections=project_compound_growth(current_value, monthly_contribution, r, years))
        for r in rates
    ]


def project_compound_growth_with_growing_contributions(
        current_value: float, annual_contribution: float, contribution_growth_rate: float,
        investment_return_rate: float, years: int,
        contribution_years: Optional[int] = None) -> List[YearlyProjection]:
    """
    Annual compounding with a year-end contribution that grows each year.
    When contribution_years is given, contributions stop (and stop growing)
    once that many years have been paid in.
    """
    out = []
    value = current_value
    contribution = annual_contribution
    for year in range(1, int(years) + 1):
        value *= 1 + investment_return_rate
        contributing = contribution_years is None or year <= contribution_years
        if contributing:
            value += contribution
            contribution *= 1 + contribution_growth_rate
        out.append(YearlyProjection(year=year, value=round_pence(value)))
    return out


def project_scenarios_with_growth(current_value: float, annual_contribution: float,
                                  contribution_growth_rate: float, rates: Sequence[float],
                                  years: int, contribution_years: Optional[int] = None) -> List[ScenarioProjection]:
    return [
        ScenarioProjection(
            rate=r,
            projections=project_compound_growth_with_growing_contributions(
                current_value, annual_contribution, contribution_growth_rate, r, years, contribution_years),
        )
        for r in rates
    ]


def project_salary_trajectory(current_salary: float, growth_rate: float, years: int) -> List[dict]:
    out = []
    salary = current_salary
    for year in range(int(years) + 1):
        out.append({"year": year, "salary": round_pence(salary)})
        salary *= 1 + growth_rate
    return out


# ---------- Retirement targets ----------
def calculate_retirement_countdown(current_pot: float, annual_contribution: float,
                                   target_pot: float, annual_rate: float,
                                   max_months: int = DEFAULTS["countdown_max_months"]) -> RetirementCountdown:
    if current_pot >= target_pot:
        return RetirementCountdown(0, 0)
    monthly_contribution = annual_contribution / 12.0
    monthly_rate = annual_rate / 12.0
    value = current_pot
    months = 0
    while value < target_pot and months < max_months:
        value = value * (1 + monthly_rate) + monthly_contribution
        months += 1
    return RetirementCountdown(years=months // 12, months=months % 12)


def calculate_coast_fire(current_pot: float, target_pot: float, target_age: float,
                         current_age: float, rate: float) -> bool:
    years_to_grow = target_age - current_age
    if years_to_grow <= 0:
        return current_pot >= target_pot
    return current_pot * (1 + rate) ** years_to_grow >= target_pot


def calculate_required_savings(target_pot: float, current_pot: float, years: float, rate: float) -> float:
    """Monthly contribution needed to reach target_pot (future value of an annuity, inverted)."""
    if years <= 0:
        return target_pot - current_pot
    monthly_rate = rate / 12.0
    months = years * 12
    remaining = target_pot - current_pot * (1 + monthly_rate) ** months
    if remaining <= 0:
        return 0.0
    if abs(monthly_rate) < 1e-10:
        return round_pence(remaining / months)
    annuity_factor = ((1 + monthly_rate) ** months - 1) / monthly_rate
    return round_pence(remaining / annuity_factor)


def calculate_pension_bridge(retirement_age: float, pension_access_age: float,
                             annual_spend: float, accessible_wealth: float) -> PensionBridgeResult:
    bridge_years = max(0, pension_access_age - retirement_age)
    required = bridge_years * annual_spend
    return PensionBridgeResult(
        bridge_years=bridge_years,
        bridge_pot_required=round_pence(required),
        shortfall=round_pence(max(0.0, required - accessible_wealth)),
        sufficient=accessible_wealth >= required,
    )


def calculate_swr(pot: float, rate: float) -> float:
    return round_pence(pot * rate)


def calculate_required_pot(annual_income: float, rate: float) -> float:
    """Pot that sustains annual_income at the withdrawal rate; math.inf when rate <= 0."""
    if rate <= 0:
        return math.inf
    return round_pence(annual_income / rate)


def calculate_adjusted_required_pot(target_annual_income: float, withdrawal_rate: float,
                                    include_state_pension: bool, total_state_pension_annual: float) -> float:
    income_from_portfolio = target_annual_income
    if include_state_pension:
        income_from_portfolio = max(0.0, target_annual_income - total_state_pension_annual)
    return calculate_required_pot(income_from_portfolio, withdrawal_rate)


# ---------- Pension allowances & state pension ----------
def calculate_tapered_annual_allowance(threshold_income: float, adjusted_income: float,
                                       constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    p = constants.pension
    if threshold_income <= p.taper_threshold_income:
        return p.annual_allowance
    if adjusted_income <= p.taper_adjusted_income_threshold:
        return p.annual_allowance
    reduction = math.floor((adjusted_income - p.taper_adjusted_income_threshold) * p.taper_rate)
    return max(p.annual_allowance - reduction, p.minimum_tapered_allowance)


def calculate_pension_carry_forward(previous_allowances: Sequence[float], previous_used: Sequence[float],
                                    current_year_allowance: float,
                                    constants: TaxConstants = UK_TAX_CONSTANTS) -> dict:
    """
    Unused allowance from the previous tax years (most recent last) that can
    be brought forward. Only the last `carry_forward_years` years count.
    """
    window = constants.pension.carry_forward_years
    allowances = list(previous_allowances)[-window:]
    used = list(previous_used)[-window:]
    used += [0.0] * (len(allowances) - len(used))
    unused = [max(0.0, a - u) for a, u in zip(allowances, used)]
    carry_forward = sum(unused)
    return {
        "unused_by_year": unused,
        "carry_forward": round_pence(carry_forward),
        "total_available": round_pence(current_year_allowance + carry_forward),
    }


def calculate_pro_rata_state_pension(qualifying_years: float,
                                     constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    sp = constants.state_pension
    if qualifying_years < sp.minimum_qualifying_years:
        return 0.0
    proportion = min(1.0, qualifying_years / sp.qualifying_years_required)
    return round_pence(proportion * sp.full_annual)


def calculate_tax_efficiency_score(isa: float, pension: float, gia: float) -> float:
    total = isa + pension + gia
    if total <= 0:
        return 0.0
    return (isa + pension) / total


# ---------- Dates ----------
def calculate_age(date_of_birth, now: date) -> int:
    """Whole calendar years between date_of_birth and now; 0 for an unreadable date."""
    dob = parse_date(date_of_birth)
    if dob is None:
        return 0
    return max(0, now.year - dob.year - ((now.month, now.day) < (dob.month, dob.day)))


def year_fraction(start: date, end: date) -> float:
    return (end - start).days / 365.25


def project_deferred_bonus_value(amount: float, grant_date, vesting_date, rate: float) -> float:
    grant, vest = parse_date(grant_date), parse_date(vesting_date)
    if grant is None or vest is None:
        return amount
    years_to_vest = year_fraction(grant, vest)
    if years_to_vest <= 0:
        return amount
    return round_pence(amount * (1 + rate) ** years_to_vest)
