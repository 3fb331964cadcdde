from datetime import date

import pytest

from household import (
    Account, CommittedOutgoing, Contribution, EmergencyFundConfig, Household, Person,
    PersonIncome, Property, RetirementConfig,
)

NOW = date(2025, 6, 1)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def couple():
    """Alex (40) and Sam (37), one shared home, plus an orphaned account and contribution."""
    return Household(
        persons=(
            Person(id="p1", name="Alex", date_of_birth=date(1985, 3, 15), relationship="self",
                   planned_retirement_age=60, pension_access_age=57, state_retirement_age=67,
                   ni_qualifying_years=35),
            Person(id="p2", name="Sam", date_of_birth=date(1987, 8, 1), relationship="spouse",
                   planned_retirement_age=60, pension_access_age=57, state_retirement_age=67,
                   ni_qualifying_years=35),
        ),
        accounts=(
            Account(id="a1", person_id="p1", type="workplace_pension", current_value=200_000),
            Account(id="a2", person_id="p1", type="stocks_and_shares_isa", current_value=50_000),
            Account(id="a3", person_id="p2", type="sipp", current_value=100_000),
            Account(id="a4", person_id="p2", type="cash_savings", current_value=20_000),
            Account(id="a5", person_id="ghost", type="gia", current_value=999),
        ),
        income=(
            PersonIncome(person_id="p1", gross_salary=80_000, employer_pension_contribution=8_000,
                         employee_pension_contribution=4_000, salary_growth_rate=0.02),
            PersonIncome(person_id="p2", gross_salary=40_000, employer_pension_contribution=2_000,
                         employee_pension_contribution=2_000),
        ),
        contributions=(
            Contribution(id="c1", person_id="p1", target="isa", amount=500, frequency="monthly"),
            Contribution(id="c2", person_id="p2", target="gia", amount=100, frequency="monthly"),
            Contribution(id="c3", person_id="ghost", target="isa", amount=1_000, frequency="monthly"),
        ),
        properties=(
            Property(id="home", estimated_value=500_000, mortgage_balance=200_000,
                     owner_person_ids=("p1", "p2")),
        ),
        committed_outgoings=(
            CommittedOutgoing(id="o1", category="mortgage", amount=1_200, frequency="monthly",
                              label="Mortgage", end_date=date(2040, 12, 31)),
        ),
        retirement=RetirementConfig(target_annual_income=40_000, withdrawal_rate=0.04),
        emergency_fund=EmergencyFundConfig(monthly_lifestyle_spending=2_000),
    )


@pytest.fixture
def retiree():
    """Pat, 70, long retired on a full state pension."""
    return Household(
        persons=(
            Person(id="r1", name="Pat", date_of_birth=date(1955, 1, 1), planned_retirement_age=60,
                   pension_access_age=55, state_retirement_age=67, ni_qualifying_years=35),
        ),
        accounts=(Account(id="r-sipp", person_id="r1", type="sipp", current_value=500_000),),
        emergency_fund=EmergencyFundConfig(monthly_lifestyle_spending=2_500),
    )
