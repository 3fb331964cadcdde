# iht.py
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from config import DEFAULTS
from household import Gift, Household, get_total_property_equity, linked_records, parse_date
from money import round_pence
from property_equity import estate_property_growth_fn
from tax_uk import UK_TAX_CONSTANTS, TaxConstants


@dataclass(frozen=True)
class IHTResult:
    effective_nrb: float
    effective_rnrb: float
    combined_threshold: float
    taxable_amount: float
    iht_liability: float
    rnrb_taper_reduction: float


@dataclass(frozen=True)
class GiftStatus:
    gift: Gift
    years_since_gift: float
    fallen_out: bool


@dataclass(frozen=True)
class HouseholdIHT:
    in_estate: float
    outside_estate: float
    property_value: float
    gifts_within_window: float
    annual_savings_in_estate: float
    result: IHTResult
    gifts: List[GiftStatus]


def calculate_effective_nrb(nil_rate_band_per_person: float, number_of_persons: int,
                            gifts_within_7_years: float) -> float:
    return max(0.0, nil_rate_band_per_person * number_of_persons - gifts_within_7_years)


def calculate_rnrb_taper_reduction(estate_value: float,
                                   taper_threshold: float = UK_TAX_CONSTANTS.iht.rnrb_taper_threshold) -> int:
    if estate_value <= taper_threshold:
        return 0
    return int((estate_value - taper_threshold) // 2)


def calculate_effective_rnrb(rnrb_per_person: float, number_of_persons: int, estate_value: float,
                             constants: TaxConstants = UK_TAX_CONSTANTS) -> float:
    gross = rnrb_per_person * number_of_persons
    reduction = calculate_rnrb_taper_reduction(estate_value, constants.iht.rnrb_taper_threshold)
    return max(0.0, gross - reduction)


def calculate_iht(estate_value: float, number_of_persons: int, gifts_within_7_years: float,
                  passing_to_direct_descendants: bool,
                  constants: TaxConstants = UK_TAX_CONSTANTS) -> IHTResult:
    iht = constants.iht
    effective_nrb = calculate_effective_nrb(iht.nil_rate_band, number_of_persons, gifts_within_7_years)
    rnrb_per_person = iht.residence_nil_rate_band if passing_to_direct_descendants else 0.0
    effective_rnrb = calculate_effective_rnrb(rnrb_per_person, number_of_persons, estate_value, constants)

    combined = effective_nrb + effective_rnrb
    taxable = max(0.0, estate_value - combined)
    return IHTResult(
        effective_nrb=effective_nrb,
        effective_rnrb=effective_rnrb,
        combined_threshold=combined,
        taxable_amount=taxable,
        iht_liability=round_pence(taxable * iht.rate),
        rnrb_taper_reduction=calculate_rnrb_taper_reduction(estate_value, iht.rnrb_taper_threshold),
    )


def calculate_years_until_iht_exceeded(current_estate_value: float, combined_threshold: float,
                                       annual_savings_in_estate: float, growth_rate: float = 0.0,
                                       property_growth_fn: Optional[Callable[[int], float]] = None,
                                       property_base_value: float = 0.0,
                                       max_years: int = DEFAULTS["iht_max_years"]) -> Optional[int]:
    """
    Whole years until the estate reaches the threshold; 0 if it already has,
    None if it never does within max_years. With property_growth_fn the
    property share (property_base_value today) follows that function and
    only the rest compounds at growth_rate.
    """
    if current_estate_value >= combined_threshold:
        return 0
    if property_growth_fn is None and annual_savings_in_estate <= 0 and growth_rate <= 0:
        return None

    other = current_estate_value - (property_base_value if property_growth_fn else 0.0)
    for year in range(1, max_years + 1):
        other = other * (1 + growth_rate) + annual_savings_in_estate
        estate = other + property_growth_fn(year) if property_growth_fn else other
        if estate >= combined_threshold:
            return year
    return None


def years_since(when, now: date) -> float:
    """Elapsed 365.25-day years; 0 for an unreadable date."""
    parsed = parse_date(when)
    if parsed is None:
        return 0.0
    return (now - parsed).days / 365.25


def gift_statuses(gifts, now: date, window_years: int = DEFAULTS["gift_window_years"]) -> List[GiftStatus]:
    out = []
    for gift in gifts:
        years = years_since(gift.date, now)
        out.append(GiftStatus(gift=gift, years_since_gift=years, fallen_out=years >= window_years))
    return out


def gifts_within_window(gifts, now: date, window_years: int = DEFAULTS["gift_window_years"]) -> float:
    return sum(s.gift.amount for s in gift_statuses(gifts, now, window_years) if not s.fallen_out)


# ---------- Household ----------
def _estate_parts(household: Household):
    accounts = linked_records(household.accounts, household.person_ids, "account")
    pensions = sum(a.current_value for a in accounts if a.wrapper == "pension")
    other = sum(a.current_value for a in accounts if a.wrapper != "pension")
    property_value = household.iht.estimated_property_value or get_total_property_equity(household.properties)
    return property_value, other, pensions


def _annual_savings_in_estate(household: Household) -> float:
    contributions = linked_records(household.contributions, household.person_ids, "contribution")
    return sum(c.annual_amount for c in contributions if c.target in ("isa", "gia"))


def calculate_household_iht(household: Household, now: Optional[date] = None,
                            constants: TaxConstants = UK_TAX_CONSTANTS) -> HouseholdIHT:
    """Estate = property + every non-pension account; pensions sit outside it."""
    now = now or date.today()
    property_value, other, pensions = _estate_parts(household)
    in_estate = property_value + other
    persons = min(2, len(household.persons))
    gifted = gifts_within_window(household.iht.gifts, now)

    result = calculate_iht(in_estate, persons, gifted, household.iht.passing_to_direct_descendants, constants)
    return HouseholdIHT(
        in_estate=in_estate,
        outside_estate=pensions,
        property_value=property_value,
        gifts_within_window=gifted,
        annual_savings_in_estate=_annual_savings_in_estate(household),
        result=result,
        gifts=gift_statuses(household.iht.gifts, now),
    )


def project_household_iht_years(household: Household, growth_rate: float = DEFAULTS["growth_rate"],
                                now: Optional[date] = None, constants: TaxConstants = UK_TAX_CONSTANTS) -> Optional[int]:
    """
    Years until the household estate crosses its IHT threshold. Modelled
    properties appreciate (and amortise) on their own schedule; a bare
    estimated property value is treated as part of the compounding estate.
    """
    now = now or date.today()
    summary = calculate_household_iht(household, now, constants)
    growth_fn, base = None, 0.0
    if household.properties and not household.iht.estimated_property_value:
        growth_fn = estate_property_growth_fn(household.properties, now)
        base = summary.property_value
    return calculate_years_until_iht_exceeded(
        summary.in_estate,
        summary.result.combined_threshold,
        summary.annual_savings_in_estate,
        growth_rate,
        property_growth_fn=growth_fn,
        property_base_value=base,
    )
