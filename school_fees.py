# Outgoings with a linked_child_id are generated here and replaced on every sync.
from datetime import date
from typing import Iterable, Optional, Tuple

from household import Child, CommittedOutgoing
from money import round_pounds
from projections import calculate_age


def calculate_school_start_date(child: Child) -> date:
    """1 September of the year the child reaches school_start_age."""
    return date(child.date_of_birth.year + child.school_start_age, 9, 1)


def calculate_school_end_date(child: Child) -> date:
    """31 July of the year the child reaches school_end_age."""
    return date(child.date_of_birth.year + child.school_end_age, 7, 31)


def calculate_school_years_remaining(child: Child, now: Optional[date] = None) -> int:
    age = calculate_age(child.date_of_birth, now or date.today())
    if age < child.school_start_age:
        return child.school_end_age - child.school_start_age
    if age >= child.school_end_age:
        return 0
    return child.school_end_age - age


def calculate_total_school_fee_cost(child: Child, now: Optional[date] = None) -> int:
    years = calculate_school_years_remaining(child, now)
    if years <= 0 or child.school_fee_annual <= 0:
        return 0
    total = sum(child.school_fee_annual * (1 + child.fee_inflation_rate) ** y for y in range(years))
    return round_pounds(total)


def generate_school_fee_outgoing(child: Child) -> CommittedOutgoing:
    return CommittedOutgoing(
        id=f"school-fee-{child.id}",
        category="school_fees",
        label=f"School fees ({child.name})",
        amount=child.school_fee_annual / 3,
        frequency="termly",
        start_date=calculate_school_start_date(child),
        end_date=calculate_school_end_date(child),
        inflation_rate=child.fee_inflation_rate,
        linked_child_id=child.id,
    )


def sync_school_fee_outgoings(children: Iterable[Child],
                              existing: Iterable[CommittedOutgoing]) -> Tuple[CommittedOutgoing, ...]:
    """Keep manual outgoings, regenerate every child-linked one."""
    manual = [o for o in existing if not o.linked_child_id]
    generated = [generate_school_fee_outgoing(c) for c in children if c.school_fee_annual > 0]
    return tuple(manual + generated)
