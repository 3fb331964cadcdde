# Override blocks apply in a fixed order; the base household is never modified.
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from household import Contribution, Household


@dataclass(frozen=True)
class ContributionOverride:
    person_id: str
    isa_contribution: Optional[float] = None
    pension_contribution: Optional[float] = None
    gia_contribution: Optional[float] = None


@dataclass(frozen=True)
class ScenarioOverrides:
    person_overrides: Tuple[Mapping[str, Any], ...] = ()     # each carries "id"
    income: Tuple[Mapping[str, Any], ...] = ()               # each carries "person_id"
    contribution_overrides: Tuple[ContributionOverride, ...] = ()
    retirement: Optional[Mapping[str, Any]] = None
    account_values: Optional[Mapping[str, float]] = None
    market_shock_percent: Optional[float] = None             # -0.3 == 30% fall

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScenarioOverrides":
        return cls(
            person_overrides=tuple(data.get("person_overrides") or ()),
            income=tuple(data.get("income") or ()),
            contribution_overrides=tuple(
                ContributionOverride(**c) for c in data.get("contribution_overrides") or ()
            ),
            retirement=data.get("retirement"),
            account_values=data.get("account_values"),
            market_shock_percent=data.get("market_shock_percent"),
        )


def _merge(record, changes: Mapping[str, Any], key: str):
    return replace(record, **{k: v for k, v in changes.items() if k != key})


def apply_person_overrides(household: Household, overrides: Sequence[Mapping[str, Any]]) -> Household:
    if not overrides:
        return household
    by_id = {o["id"]: o for o in overrides if o.get("id")}
    persons = tuple(_merge(p, by_id[p.id], "id") if p.id in by_id else p for p in household.persons)
    return replace(household, persons=persons)


def apply_income_overrides(household: Household, overrides: Sequence[Mapping[str, Any]]) -> Household:
    """Only listed fields change; an explicit 0 (redundancy) is kept as 0."""
    if not overrides:
        return household
    by_person = {o["person_id"]: o for o in overrides}
    income = tuple(
        _merge(i, by_person[i.person_id], "person_id") if i.person_id in by_person else i
        for i in household.income
    )
    return replace(household, income=income)


def _synthetic_contributions(override: ContributionOverride) -> List[Contribution]:
    out = []
    for target, amount, label in (
        ("isa", override.isa_contribution, "ISA (scenario)"),
        ("pension", override.pension_contribution, "Pension (scenario)"),
        ("gia", override.gia_contribution, "GIA (scenario)"),
    ):
        if amount is not None and amount > 0:
            out.append(Contribution(
                id=f"scenario-{target}-{override.person_id}",
                person_id=override.person_id,
                target=target,
                amount=amount,
                frequency="annually",
                label=label,
            ))
    return out


def apply_contribution_overrides(household: Household,
                                 overrides: Sequence[ContributionOverride]) -> Household:
    """Every contribution of an overridden person is replaced; others are untouched."""
    if not overrides:
        return household
    replaced_ids = {o.person_id for o in overrides}
    kept = [c for c in household.contributions if c.person_id not in replaced_ids]
    synthetic = [c for o in overrides for c in _synthetic_contributions(o)]
    return replace(household, contributions=tuple(kept + synthetic))


def apply_retirement_overrides(household: Household, overrides: Optional[Mapping[str, Any]]) -> Household:
    if not overrides:
        return household
    changes = dict(overrides)
    if "scenario_rates" in changes:
        changes["scenario_rates"] = tuple(changes["scenario_rates"])
    return replace(household, retirement=replace(household.retirement, **changes))


def apply_account_overrides(household: Household, account_values: Optional[Mapping[str, float]] = None,
                            market_shock_percent: Optional[float] = None) -> Household:
    """Shock every account first, then explicit values win; results floor at 0."""
    if account_values is None and market_shock_percent is None:
        return household
    account_values = account_values or {}
    accounts = []
    for acc in household.accounts:
        value = acc.current_value
        if market_shock_percent is not None:
            value *= 1 + market_shock_percent
        if acc.id in account_values:
            value = account_values[acc.id]
        accounts.append(acc if value == acc.current_value else replace(acc, current_value=max(0.0, value)))
    return replace(household, accounts=tuple(accounts))


def apply_scenario_overrides(household: Household,
                             overrides: Union[ScenarioOverrides, Mapping[str, Any]]) -> Household:
    if not isinstance(overrides, ScenarioOverrides):
        overrides = ScenarioOverrides.from_dict(overrides)
    result = apply_person_overrides(household, overrides.person_overrides)
    result = apply_income_overrides(result, overrides.income)
    result = apply_contribution_overrides(result, overrides.contribution_overrides)
    result = apply_retirement_overrides(result, overrides.retirement)
    result = apply_account_overrides(result, overrides.account_values, overrides.market_shock_percent)
    return result


def compare(base: Household, variants: Iterable[Tuple[str, Union[ScenarioOverrides, Mapping[str, Any]]]],
            metric: Callable[[Household], Any]) -> Dict[str, Any]:
    """
    variants: list of (name, overrides)
    returns: dict name -> metric(derived household); "base" is always included
    """
    res = {"base": metric(base)}
    for name, overrides in variants:
        res[name] = metric(apply_scenario_overrides(base, overrides))
    return res
