import math
from datetime import date

import pytest

from projections import (
    calculate_adjusted_required_pot,
    calculate_age,
    calculate_coast_fire,
    calculate_pension_bridge,
    calculate_pension_carry_forward,
    calculate_pro_rata_state_pension,
    calculate_required_pot,
    calculate_required_savings,
    calculate_retirement_countdown,
    calculate_swr,
    calculate_tapered_annual_allowance,
    calculate_tax_efficiency_score,
    get_mid_scenario_rate,
    project_compound_growth,
    project_compound_growth_with_growing_contributions,
    project_deferred_bonus_value,
    project_final_value,
    project_salary_trajectory,
    project_scenarios,
    project_scenarios_with_growth,
)


def test_compound_growth_doubles_roughly_per_rule_of_72():
    result = project_compound_growth(100_000, 0, 0.07, 10)

    assert len(result) == 10
    assert 190_000 < result[-1].value < 210_000


def test_compound_growth_zero_rate_and_contribution_is_flat():
    result = project_compound_growth(1_000, 0, 0.0, 3)

    assert [y.value for y in result] == [1_000, 1_000, 1_000]


def test_compound_growth_increases_with_rate_contribution_and_time():
    low = project_compound_growth(10_000, 100, 0.04, 5)[-1].value
    higher_rate = project_compound_growth(10_000, 100, 0.05, 5)[-1].value
    higher_contribution = project_compound_growth(10_000, 150, 0.04, 5)[-1].value
    longer = project_compound_growth(10_000, 100, 0.04, 6)[-1].value

    assert higher_rate > low
    assert higher_contribution > low
    assert longer > low


def test_final_value_matches_last_year_of_monthly_projection():
    series = project_compound_growth(25_000, 6_000 / 12, 0.06, 15)

    assert project_final_value(25_000, 6_000, 0.06, 15) == pytest.approx(series[-1].value, abs=0.01)


def test_final_value_with_no_years_is_the_current_value():
    assert project_final_value(12_345, 1_000, 0.07, 0) == 12_345


def test_scenarios_one_series_per_rate():
    scenarios = project_scenarios(1_000, 10, [0.05, 0.07], 2)

    assert [s.rate for s in scenarios] == [0.05, 0.07]
    assert scenarios[1].projections[-1].value > scenarios[0].projections[-1].value


def test_growing_contributions_compound_annually_and_stop():
    growing = project_compound_growth_with_growing_contributions(0, 1_000, 0.10, 0.0, 3)
    capped = project_compound_growth_with_growing_contributions(0, 1_000, 0.10, 0.0, 3, contribution_years=2)

    assert [y.value for y in growing] == [1_000, 2_100, 3_310]
    assert [y.value for y in capped] == [1_000, 2_100, 2_100]


def test_salary_trajectory_starts_at_today():
    trajectory = project_salary_trajectory(50_000, 0.03, 2)

    assert trajectory[0] == {"year": 0, "salary": 50_000}
    assert trajectory[2]["salary"] == pytest.approx(53_045)


def test_mid_scenario_rate_and_fallback():
    assert get_mid_scenario_rate([0.05, 0.07, 0.09]) == 0.07
    assert get_mid_scenario_rate([]) == 0.07


def test_countdown_zero_when_already_at_target():
    countdown = calculate_retirement_countdown(500_000, 10_000, 400_000, 0.05)

    assert (countdown.years, countdown.months) == (0, 0)


def test_countdown_counts_months():
    countdown = calculate_retirement_countdown(0, 12_000, 12_000, 0.0)

    assert (countdown.years, countdown.months) == (1, 0)


def test_countdown_is_capped_at_100_years():
    countdown = calculate_retirement_countdown(0, 0, 1_000, 0.0)

    assert (countdown.years, countdown.months) == (100, 0)


def test_coast_fire_with_equal_ages_compares_pot_to_target():
    assert calculate_coast_fire(100_000, 100_000, 60, 60, 0.05) is True
    assert calculate_coast_fire(99_999, 100_000, 60, 60, 0.05) is False


def test_coast_fire_grows_without_contributions():
    assert calculate_coast_fire(100_000, 190_000, 50, 40, 0.07) is True
    assert calculate_coast_fire(100_000, 250_000, 50, 40, 0.07) is False


def test_required_savings_edges():
    assert calculate_required_savings(100_000, 40_000, 0, 0.05) == 60_000
    assert calculate_required_savings(12_000, 0, 1, 0.0) == 1_000
    assert calculate_required_savings(10_000, 50_000, 5, 0.05) == 0


def test_pension_bridge_needs_nothing_when_retiring_after_access_age():
    bridge = calculate_pension_bridge(60, 57, 30_000, 0)

    assert bridge.bridge_years == 0
    assert bridge.bridge_pot_required == 0
    assert bridge.sufficient is True


def test_pension_bridge_shortfall():
    bridge = calculate_pension_bridge(55, 57, 30_000, 50_000)

    assert bridge.bridge_years == 2
    assert bridge.bridge_pot_required == 60_000
    assert bridge.shortfall == 10_000
    assert bridge.sufficient is False


def test_swr_and_required_pot():
    assert calculate_swr(1_000_000, 0.04) == 40_000
    assert calculate_required_pot(40_000, 0.04) == 1_000_000


def test_required_pot_is_unbounded_at_zero_or_negative_rate():
    assert calculate_required_pot(40_000, 0.0) == math.inf
    assert calculate_required_pot(40_000, -0.01) == math.inf


def test_adjusted_required_pot_nets_off_state_pension():
    with_sp = calculate_adjusted_required_pot(40_000, 0.04, True, 11_502.40)
    without = calculate_adjusted_required_pot(40_000, 0.04, False, 11_502.40)

    assert with_sp == pytest.approx(712_440)
    assert without == pytest.approx(1_000_000)


def test_pro_rata_state_pension():
    full = calculate_pro_rata_state_pension(35)

    assert calculate_pro_rata_state_pension(9) == 0
    assert calculate_pro_rata_state_pension(10) == pytest.approx(10 / 35 * 11_502.40, abs=0.01)
    assert full == pytest.approx(11_502.40)
    assert calculate_pro_rata_state_pension(40) == full


def test_tapered_annual_allowance():
    assert calculate_tapered_annual_allowance(150_000, 300_000) == 60_000
    assert calculate_tapered_annual_allowance(210_000, 250_000) == 60_000
    assert calculate_tapered_annual_allowance(210_000, 300_000) == 40_000
    assert calculate_tapered_annual_allowance(210_000, 400_000) == 10_000


def test_carry_forward_uses_last_three_years():
    result = calculate_pension_carry_forward(
        [40_000, 60_000, 60_000, 60_000], [0, 60_000, 40_000, 0], 60_000)

    assert result["unused_by_year"] == [0, 20_000, 60_000]
    assert result["carry_forward"] == 80_000
    assert result["total_available"] == 140_000


def test_tax_efficiency_score():
    assert calculate_tax_efficiency_score(0, 0, 0) == 0
    assert calculate_tax_efficiency_score(50, 25, 25) == 0.75


def test_age_is_calendar_based_across_leap_birthdays():
    dob = date(2000, 2, 29)

    assert calculate_age(dob, date(2025, 2, 28)) == 24
    assert calculate_age(dob, date(2025, 3, 1)) == 25
    assert calculate_age("2000-02-29", date(2024, 2, 29)) == 24
    assert calculate_age("not-a-date", date(2025, 1, 1)) == 0


def test_deferred_bonus_value():
    grown = project_deferred_bonus_value(1_000, date(2025, 1, 1), date(2027, 1, 1), 0.05)

    assert grown == pytest.approx(1_000 * 1.05 ** (730 / 365.25), abs=0.01)
    assert project_deferred_bonus_value(1_000, date(2025, 1, 1), date(2024, 1, 1), 0.05) == 1_000
    assert project_deferred_bonus_value(1_000, "garbage", "2027-01-01", 0.05) == 1_000


def test_scenarios_with_growth_one_series_per_rate():
    scenarios = project_scenarios_with_growth(1_000, 100, 0.0, [0.0, 0.10], 3, contribution_years=2)

    assert [s.rate for s in scenarios] == [0.0, 0.10]
    assert [p.value for p in scenarios[0].projections] == [1_100, 1_200, 1_200]
    assert [p.value for p in scenarios[1].projections] == [1_200, 1_420, 1_562]


def test_scenarios_with_growth_grows_the_contribution():
    flat, = project_scenarios_with_growth(1_000, 100, 0.5, [0.0], 2)

    assert [p.value for p in flat.projections] == [1_100, 1_250]
