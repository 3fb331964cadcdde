from datetime import date

from household import Child, CommittedOutgoing
from school_fees import (
    calculate_school_end_date,
    calculate_school_start_date,
    calculate_school_years_remaining,
    calculate_total_school_fee_cost,
    generate_school_fee_outgoing,
    sync_school_fee_outgoings,
)

NOW = date(2025, 6, 1)


def _child(**kwargs):
    return Child(id="k1", name="Robin", date_of_birth=date(2020, 3, 1), school_fee_annual=15_000, **kwargs)


def test_school_dates():
    child = _child()

    assert calculate_school_start_date(child) == date(2024, 9, 1)
    assert calculate_school_end_date(child) == date(2038, 7, 31)


def test_years_remaining():
    assert calculate_school_years_remaining(_child(), NOW) == 13
    toddler = Child(id="k2", name="Ash", date_of_birth=date(2023, 1, 1))
    assert calculate_school_years_remaining(toddler, NOW) == 14
    leaver = Child(id="k3", name="Lee", date_of_birth=date(2005, 1, 1))
    assert calculate_school_years_remaining(leaver, NOW) == 0


def test_total_cost_compounds_fee_inflation():
    assert calculate_total_school_fee_cost(_child(), NOW) == 195_000
    assert calculate_total_school_fee_cost(_child(fee_inflation_rate=0.05), NOW) > 195_000


def test_generated_outgoing_is_termly_and_linked():
    outgoing = generate_school_fee_outgoing(_child(fee_inflation_rate=0.04))

    assert outgoing.id == "school-fee-k1"
    assert outgoing.frequency == "termly"
    assert outgoing.annual_amount == 15_000
    assert outgoing.linked_child_id == "k1"
    assert outgoing.inflation_rate == 0.04
    assert outgoing.end_date == date(2038, 7, 31)


def test_sync_keeps_manual_and_regenerates_linked():
    manual = CommittedOutgoing(id="rent", category="rent", amount=1_500)
    stale = CommittedOutgoing(id="school-fee-old", category="school_fees", amount=1, linked_child_id="gone")
    no_fees = Child(id="k2", name="Ash", date_of_birth=date(2023, 1, 1))

    synced = sync_school_fee_outgoings([_child(), no_fees], [manual, stale])

    assert [o.id for o in synced] == ["rent", "school-fee-k1"]
