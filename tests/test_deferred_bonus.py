from datetime import date

import pytest

from deferred_bonus import deferred_vesting_in_year, generate_deferred_tranches, total_projected_deferred_value
from household import BonusStructure

BONUS = BonusStructure(person_id="p1", total_bonus_annual=30_000, cash_bonus_annual=10_000,
                       vesting_years=2, vesting_gap_years=1)


def test_tranches_vest_after_the_gap():
    tranches = generate_deferred_tranches(BONUS, date(2025, 6, 1))

    assert [t.vesting_date for t in tranches] == [date(2027, 1, 1), date(2028, 1, 1)]
    assert [t.amount for t in tranches] == [10_000, 10_000]
    assert all(t.grant_date == date(2025, 1, 1) for t in tranches)


def test_no_tranches_without_deferred_component():
    cash_only = BonusStructure(person_id="p1", total_bonus_annual=5_000, cash_bonus_annual=5_000, vesting_years=3)

    assert generate_deferred_tranches(cash_only, date(2025, 6, 1)) == []


def test_total_projected_value_grows_unvested_tranches():
    growing = BonusStructure(person_id="p1", total_bonus_annual=30_000, cash_bonus_annual=10_000,
                             vesting_years=2, vesting_gap_years=1, estimated_annual_return=0.05)

    assert total_projected_deferred_value(BONUS, date(2025, 6, 1)) == pytest.approx(20_000)
    assert total_projected_deferred_value(growing, date(2025, 6, 1)) > 20_000


def test_rolling_vesting_in_a_calendar_year():
    # 2027 receives tranche 1 of the 2025 grant and tranche 2 of the 2024 grant
    assert deferred_vesting_in_year(BONUS, 2027, 2025) == pytest.approx(20_000)
    assert deferred_vesting_in_year(BONUS, 2027, 2025, last_grant_year=2024) == pytest.approx(10_000)
    assert deferred_vesting_in_year(BONUS, 2027, 2025, bonus_growth_rate=0.10) == pytest.approx(
        10_000 + 10_000 / 1.10)
