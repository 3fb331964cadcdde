from aggregations import get_investable_net_worth
from scenarios import (
    ContributionOverride,
    ScenarioOverrides,
    apply_scenario_overrides,
    compare,
)


def test_income_override_does_not_touch_the_base(couple):
    derived = apply_scenario_overrides(couple, ScenarioOverrides(income=({"person_id": "p1", "gross_salary": 0},)))

    assert couple.income[0].gross_salary == 80_000
    assert derived.income[0].gross_salary == 0
    assert derived.income[0].employer_pension_contribution == 8_000
    assert derived.income[1] is couple.income[1]


def test_applying_twice_is_identical(couple):
    overrides = ScenarioOverrides(market_shock_percent=-0.2, retirement={"withdrawal_rate": 0.035})

    assert apply_scenario_overrides(couple, overrides) == apply_scenario_overrides(couple, overrides)


def test_zero_shock_leaves_accounts_unchanged(couple):
    derived = apply_scenario_overrides(couple, ScenarioOverrides(market_shock_percent=0.0))

    assert derived.accounts == couple.accounts


def test_explicit_account_value_beats_the_shock(couple):
    derived = apply_scenario_overrides(couple, ScenarioOverrides(
        market_shock_percent=-0.5, account_values={"a1": 250_000}))
    values = {a.id: a.current_value for a in derived.accounts}

    assert values["a1"] == 250_000
    assert values["a2"] == 25_000
    assert values["a3"] == 50_000


def test_shock_is_floored_at_zero(couple):
    derived = apply_scenario_overrides(couple, ScenarioOverrides(market_shock_percent=-1.5))

    assert all(a.current_value == 0 for a in derived.accounts)


def test_contribution_override_replaces_only_listed_people(couple):
    derived = apply_scenario_overrides(couple, ScenarioOverrides(contribution_overrides=(
        ContributionOverride(person_id="p1", isa_contribution=10_000, pension_contribution=0),
    )))
    by_person = {}
    for c in derived.contributions:
        by_person.setdefault(c.person_id, []).append(c)

    assert [(c.id, c.target, c.amount, c.frequency) for c in by_person["p1"]] == [
        ("scenario-isa-p1", "isa", 10_000, "annually")]
    assert [c.id for c in by_person["p2"]] == ["c2"]


def test_person_and_retirement_overrides(couple):
    derived = apply_scenario_overrides(couple, {
        "person_overrides": [{"id": "p2", "planned_retirement_age": 55}],
        "retirement": {"target_annual_income": 50_000, "scenario_rates": [0.04, 0.06]},
    })

    assert derived.persons[1].planned_retirement_age == 55
    assert derived.persons[1].name == "Sam"
    assert derived.retirement.target_annual_income == 50_000
    assert derived.retirement.scenario_rates == (0.04, 0.06)
    assert derived.retirement.withdrawal_rate == 0.04


def test_steps_chain_in_order(couple):
    derived = apply_scenario_overrides(couple, {
        "income": [{"person_id": "p1", "gross_salary": 90_000}],
        "contribution_overrides": [{"person_id": "p2", "gia_contribution": 2_400}],
        "market_shock_percent": -0.1,
    })

    assert derived.income[0].gross_salary == 90_000
    assert any(c.id == "scenario-gia-p2" for c in derived.contributions)
    assert derived.accounts[0].current_value == 180_000


def test_compare_named_variants(couple):
    results = compare(couple, [
        ("crash", {"market_shock_percent": -0.3}),
        ("boom", ScenarioOverrides(market_shock_percent=0.1)),
    ], get_investable_net_worth)

    assert results["base"] == 370_000
    assert results["crash"] == 259_000
    assert results["boom"] == 407_000


def test_person_override_without_id_is_skipped(couple):
    derived = apply_scenario_overrides(couple, {"person_overrides": [{"planned_retirement_age": 50}]})

    assert derived.persons == couple.persons
