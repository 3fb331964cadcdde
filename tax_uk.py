# 2024/25 UK baseline; everything reads the versioned constants table.
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from household import PENSION_METHODS, PersonIncome
from money import round_pence


# ---------- Constants table ----------
@dataclass(frozen=True)
class TaxBands:
    pa: float                 # personal allowance
    brt: float                # basic rate upper limit
    hrt: float                # higher rate upper limit
    taper_start: float        # PA taper threshold
    taper_rate: float = 0.5   # £1 of PA lost per £2 over
    basic_rate: float = 0.20
    higher_rate: float = 0.40
    additional_rate: float = 0.45


@dataclass(frozen=True)
class NIConstants:
    primary_threshold: float = 12_570
    upper_earnings_limit: float = 50_270
    employee_rate: float = 0.08
    employee_rate_above_uel: float = 0.02


@dataclass(frozen=True)
class CGTConstants:
    annual_exempt_amount: float = 3_000
    basic_rate: float = 0.18
    higher_rate: float = 0.24


@dataclass(frozen=True)
class PensionAllowanceConstants:
    annual_allowance: float = 60_000
    taper_threshold_income: float = 200_000
    taper_adjusted_income_threshold: float = 260_000
    taper_rate: float = 0.5
    minimum_tapered_allowance: float = 10_000
    tax_free_lump_sum_cap: float = 268_275
    carry_forward_years: int = 3


@dataclass(frozen=True)
class IHTConstants:
    nil_rate_band: float = 325_000
    residence_nil_rate_band: float = 175_000
    rnrb_taper_threshold: float = 2_000_000
    rate: float = 0.40


@dataclass(frozen=True)
class StatePensionConstants:
    full_weekly: float = 221.20
    full_annual: float = 11_502.40
    qualifying_years_required: int = 35
    minimum_qualifying_years: int = 10


@dataclass(frozen=True)
class TaxConstants:
    tax_year: str
    tax_year_end: date
    bands: TaxBands
    ni: NIConstants = field(default_factory=NIConstants)
    student_loan: Dict[str, tuple] = field(default_factory=dict)   # plan -> (threshold, rate)
    cgt: CGTConstants = field(default_factory=CGTConstants)
    pension: PensionAllowanceConstants = field(default_factory=PensionAllowanceConstants)
    iht: IHTConstants = field(default_factory=IHTConstants)
    state_pension: StatePensionConstants = field(default_factory=StatePensionConstants)
    isa_annual_allowance: float = 20_000
    pcls_fraction: float = 0.25


# 2024/25 baseline
UK_TAX_CONSTANTS = TaxConstants(
    tax_year="2024/25",
    tax_year_end=date(2025, 4, 6),
    bands=TaxBands(pa=12_570, brt=50_270, hrt=125_140, taper_start=100_000),
    student_loan={
        "plan1": (24_990, 0.09),
        "plan2": (27_295, 0.09),
        "plan4": (31_395, 0.09),
        "plan5": (25_000, 0.09),
        "postgrad": (21_000, 0.06),
    },
)


def is_tax_year_stale(now: date, constants: TaxConstants = UK_TAX_CONSTANTS) -> bool:
    return now >= constants.tax_year_end


# ---------- Results ----------
@dataclass(frozen=True)
class BandSlice:
    band: str
    rate: float
    taxable_amount: float
    tax: float


@dataclass(frozen=True)
class IncomeTaxResult:
    tax: float
    effective_rate: float
    breakdown: List[BandSlice] = field(default_factory=list)


@dataclass(frozen=True)
class NIResult:
    ni: float
    breakdown: List[BandSlice] = field(default_factory=list)


@dataclass(frozen=True)
class TakeHomeResult:
    gross: float
    adjusted_gross: float
    income_tax: float
    ni: float
    student_loan: float
    pension_deduction: float
    take_home: float
    monthly_take_home: float


# ---------- Income tax ----------
def _check_method(method: str) -> None:
    if method not in PENSION_METHODS:
        raise ValueError(f"Unknown pension contribution method: {method!r}")


def _adjusted_gross_for_tax(gross: float, pension: float, method: str) -> float:
    _check_method(method)
    if method in ("salary_sacrifice", "net_pay"):
        return gross - pension
    # relief at source is paid from net pay; the basic band is extended instead
    return gross


def _adjusted_gross_for_ni(gross: float, pension: float, method: str) -> float:
    _check_method(method)
    if method == "salary_sacrifice":
        return gross - pension
    return gross


def personal_allowance(adjusted_net_income: float, bands: TaxBands) -> float:
    if adjusted_net_income <= bands.taper_start:
        return bands.pa
    reduction = int((adjusted_net_income - bands.taper_start) * bands.taper_rate)
    return max(0.0, bands.pa - reduction)


def calculate_income_tax(gross: float, pension_contribution: float = 0.0,
                         method: str = "salary_sacrifice",
                         constants: TaxConstants = UK_TAX_CONSTANTS) -> IncomeTaxResult:
    bands = constants.bands
    adjusted = _adjusted_gross_for_tax(gross, pension_contribution, method)
    pa = personal_allowance(adjusted, bands)

    basic_limit = bands.brt
    if method == "relief_at_source" and pension_contribution > 0:
        basic_limit += pension_contribution / (1 - bands.basic_rate)

    breakdown = [BandSlice("Personal Allowance", 0.0, max(0.0, min(adjusted, pa)), 0.0)]
    taxable = max(0.0, adjusted - pa)
    if taxable <= 0:
        return IncomeTaxResult(tax=0.0, effective_rate=0.0, breakdown=breakdown)

    basic_width = max(0.0, basic_limit - pa)
    higher_width = max(0.0, bands.hrt - basic_limit)

    basic_band = min(taxable, basic_width)
    above_basic = max(0.0, taxable - basic_width)
    higher_band = min(above_basic, higher_width)
    additional_band = max(0.0, above_basic - higher_width)

    total = 0.0
    for name, width, rate in (
        ("Basic Rate", basic_band, bands.basic_rate),
        ("Higher Rate", higher_band, bands.higher_rate),
        ("Additional Rate", additional_band, bands.additional_rate),
    ):
        if width > 0:
            breakdown.append(BandSlice(name, rate, width, width * rate))
            total += width * rate

    effective = total / adjusted if adjusted > 0 else 0.0
    return IncomeTaxResult(
        tax=round_pence(total),
        effective_rate=round(effective, 4),
        breakdown=breakdown,
    )


# ---------- NI / student loan / CGT ----------
def calculate_ni(gross: float, pension_contribution: float = 0.0,
                 method: str = "salary_sacrifice",
                 constants: TaxConstants = UK_TAX_CONSTANTS) -> NIResult:
    ni = constants.ni
    adjusted = _adjusted_gross_for_ni(gross, pension_contribution, method)

    breakdown = [BandSlice("Below Primary Threshold", 0.0, max(0.0, min(adjusted, ni.primary_threshold)), 0.0)]
    main = max(0.0, min(adjusted, ni.upper_earnings_limit) - ni.primary_threshold)
    upper = max(0.0, adjusted - ni.upper_earnings_limit)
    total = 0.0
    if main > 0:
        breakdown.append(BandSlice("Primary Threshold to UEL", ni.employee_rate, main, main * ni.employee_rate))
        total += main * ni.employee_rate
    if upper > 0:
        breakdown.append(BandSlice("Above UEL", ni.employee_rate_above_uel, upper, upper * ni.employee_rate_above_uel))
        total += upper * ni.employee_rate_above_uel
    return NIResult(ni=round_pence(total), breakdown=breakdown)


def calculate_student_loan(gross: float, plan: str,
                           constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    if plan in (None, "", "none"):
        return 0.0
    try:
        threshold, rate = constants.student_loan[plan]
    except KeyError:
        raise ValueError(f"Unknown student loan plan: {plan!r}") from None
    return round_pence(max(0.0, gross - threshold) * rate)


def calculate_cgt(gain: float, taxable_income: float,
                  constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    """CGT on a realised gain; the rate follows the holder's income band."""
    taxable_gain = max(0.0, gain - constants.cgt.annual_exempt_amount)
    if taxable_gain <= 0:
        return 0.0
    rate = constants.cgt.higher_rate if taxable_income > constants.bands.brt else constants.cgt.basic_rate
    return round_pence(taxable_gain * rate)


# ---------- Take-home ----------
def calculate_take_home_pay(income: PersonIncome,
                            constants: TaxConstants = UK_TAX_CONSTANTS) -> TakeHomeResult:
    gross = income.gross_salary
    pension = income.employee_pension_contribution
    method = income.pension_contribution_method

    adjusted = _adjusted_gross_for_tax(gross, pension, method)
    income_tax = calculate_income_tax(gross, pension, method, constants).tax
    ni = calculate_ni(gross, pension, method, constants).ni

    # every method leaves the employee contribution out of the pay packet
    take_home = gross - pension - income_tax - ni
    return TakeHomeResult(
        gross=gross,
        adjusted_gross=adjusted,
        income_tax=income_tax,
        ni=ni,
        student_loan=0.0,
        pension_deduction=pension,
        take_home=round_pence(take_home),
        monthly_take_home=round_pence(take_home / 12),
    )


def calculate_take_home_pay_with_student_loan(income: PersonIncome, plan: str,
                                              constants: TaxConstants = UK_TAX_CONSTANTS) -> TakeHomeResult:
    base = calculate_take_home_pay(income, constants)
    loan_gross = income.gross_salary
    if income.pension_contribution_method == "salary_sacrifice":
        loan_gross -= income.employee_pension_contribution
    loan = calculate_student_loan(loan_gross, plan, constants)
    take_home = base.take_home - loan
    return TakeHomeResult(
        gross=base.gross,
        adjusted_gross=base.adjusted_gross,
        income_tax=base.income_tax,
        ni=base.ni,
        student_loan=loan,
        pension_deduction=base.pension_deduction,
        take_home=round_pence(take_home),
        monthly_take_home=round_pence(take_home / 12),
    )


# ---------- Collaborator object ----------
class TaxEngine:
    """Bundles the tax functions around one constants table."""

    def __init__(self, constants: Optional[TaxConstants] = None):
        self.constants = constants or UK_TAX_CONSTANTS

    def income_tax(self, taxable_income: float) -> IncomeTaxResult:
        return calculate_income_tax(taxable_income, constants=self.constants)

    def take_home_pay(self, income: PersonIncome) -> TakeHomeResult:
        return calculate_take_home_pay(income, self.constants)

    def take_home_pay_with_student_loan(self, income: PersonIncome, plan: str) -> TakeHomeResult:
        return calculate_take_home_pay_with_student_loan(income, plan, self.constants)

    def net_take_home(self, income: PersonIncome, plan: str = "none") -> float:
        if plan in (None, "", "none"):
            return self.take_home_pay(income).take_home
        return self.take_home_pay_with_student_loan(income, plan).take_home


DEFAULT_TAX_ENGINE = TaxEngine()
