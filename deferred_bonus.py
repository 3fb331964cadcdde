# Deferred part of a bonus: granted 1 Jan, vests in equal tranches after an optional gap.
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from household import BonusStructure
from projections import project_deferred_bonus_value, year_fraction


@dataclass(frozen=True)
class DeferredTranche:
    grant_date: date
    vesting_date: date
    amount: float
    estimated_annual_return: float

    @property
    def projected_value(self) -> float:
        return project_deferred_bonus_value(
            self.amount, self.grant_date, self.vesting_date, self.estimated_annual_return)


def generate_deferred_tranches(bonus: BonusStructure, reference_date: Optional[date] = None) -> List[DeferredTranche]:
    reference_date = reference_date or date.today()
    deferred = bonus.deferred_bonus_annual
    if deferred <= 0 or bonus.vesting_years <= 0:
        return []

    per_tranche = deferred / bonus.vesting_years
    grant_year = reference_date.year
    gap = bonus.vesting_gap_years or 0
    return [
        DeferredTranche(
            grant_date=date(grant_year, 1, 1),
            vesting_date=date(grant_year + gap + i, 1, 1),
            amount=per_tranche,
            estimated_annual_return=bonus.estimated_annual_return,
        )
        for i in range(1, bonus.vesting_years + 1)
    ]


def total_projected_deferred_value(bonus: BonusStructure, reference_date: Optional[date] = None) -> float:
    total = 0.0
    for tranche in generate_deferred_tranches(bonus, reference_date):
        years = year_fraction(tranche.grant_date, tranche.vesting_date)
        if years <= 0:
            total += tranche.amount
        else:
            total += tranche.amount * (1 + tranche.estimated_annual_return) ** years
    return total


def deferred_vesting_in_year(bonus: BonusStructure, calendar_year: int, base_year: int,
                             bonus_growth_rate: float = 0.0,
                             last_grant_year: Optional[int] = None) -> float:
    """
    Value vesting in calendar_year under a rolling scheme: one grant every
    year, each grant sized off the deferred bonus grown from base_year.
    Grants after last_grant_year (the final employed year) never happen.
    """
    deferred = bonus.deferred_bonus_annual
    if deferred <= 0 or bonus.vesting_years <= 0:
        return 0.0

    gap = bonus.vesting_gap_years or 0
    total = 0.0
    for i in range(1, bonus.vesting_years + 1):
        grant_year = calendar_year - gap - i
        if last_grant_year is not None and grant_year > last_grant_year:
            continue
        grant_amount = deferred * (1 + bonus_growth_rate) ** (grant_year - base_year)
        total += project_deferred_bonus_value(
            grant_amount / bonus.vesting_years,
            date(grant_year, 1, 1),
            date(calendar_year, 1, 1),
            bonus.estimated_annual_return,
        )
    return total
