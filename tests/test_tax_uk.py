from datetime import date

import pytest

from household import PersonIncome
from tax_uk import (
    DEFAULT_TAX_ENGINE,
    calculate_cgt,
    calculate_income_tax,
    calculate_ni,
    calculate_student_loan,
    calculate_take_home_pay,
    calculate_take_home_pay_with_student_loan,
    is_tax_year_stale,
    personal_allowance,
    UK_TAX_CONSTANTS,
)


def test_income_tax_basic_and_higher_rate():
    assert calculate_income_tax(12_570).tax == 0
    assert calculate_income_tax(30_000).tax == pytest.approx(3_486)
    assert calculate_income_tax(50_270).tax == pytest.approx(7_540)
    assert calculate_income_tax(100_000).tax == pytest.approx(27_432)


def test_personal_allowance_tapers_to_zero():
    bands = UK_TAX_CONSTANTS.bands

    assert personal_allowance(100_000, bands) == 12_570
    assert personal_allowance(110_000, bands) == 7_570
    assert personal_allowance(130_000, bands) == 0


def test_relief_at_source_extends_basic_band():
    ras = calculate_income_tax(60_000, 4_000, "relief_at_source").tax
    plain = calculate_income_tax(60_000).tax

    assert plain - ras == pytest.approx(1_000)


def test_unknown_pension_method_raises():
    with pytest.raises(ValueError):
        calculate_income_tax(30_000, 1_000, "magic")


def test_ni_main_rate():
    assert calculate_ni(30_000).ni == pytest.approx(1_394.40)
    assert calculate_ni(10_000).ni == 0


def test_student_loan_plans():
    assert calculate_student_loan(30_000, "plan2") == pytest.approx(243.45)
    assert calculate_student_loan(30_000, "none") == 0
    with pytest.raises(ValueError):
        calculate_student_loan(30_000, "plan9")


def test_cgt_rate_follows_income_band():
    assert calculate_cgt(13_000, 30_000) == pytest.approx(1_800)
    assert calculate_cgt(13_000, 80_000) == pytest.approx(2_400)
    assert calculate_cgt(2_000, 80_000) == 0


def test_take_home_pay():
    result = calculate_take_home_pay(PersonIncome(person_id="p", gross_salary=30_000))

    assert result.income_tax == pytest.approx(3_486)
    assert result.ni == pytest.approx(1_394.40)
    assert result.take_home == pytest.approx(25_119.60)
    assert result.monthly_take_home == pytest.approx(2_093.30)


def test_salary_sacrifice_reduces_tax_and_ni():
    sacrifice = PersonIncome(person_id="p", gross_salary=60_000, employee_pension_contribution=5_000)
    plain = PersonIncome(person_id="p", gross_salary=60_000)

    assert calculate_take_home_pay(sacrifice).ni < calculate_take_home_pay(plain).ni
    assert calculate_take_home_pay(sacrifice).income_tax < calculate_take_home_pay(plain).income_tax


def test_student_loan_variant_deducts_repayment():
    income = PersonIncome(person_id="p", gross_salary=30_000)
    with_loan = calculate_take_home_pay_with_student_loan(income, "plan2")

    assert with_loan.student_loan == pytest.approx(243.45)
    assert with_loan.take_home == pytest.approx(25_119.60 - 243.45)


def test_engine_routes_by_plan():
    income = PersonIncome(person_id="p", gross_salary=30_000)

    assert DEFAULT_TAX_ENGINE.net_take_home(income) == pytest.approx(25_119.60)
    assert DEFAULT_TAX_ENGINE.net_take_home(income, "plan2") == pytest.approx(24_876.15)


def test_tax_year_staleness():
    assert is_tax_year_stale(date(2025, 4, 6)) is True
    assert is_tax_year_stale(date(2025, 1, 1)) is False
