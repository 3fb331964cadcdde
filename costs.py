from datetime import date
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from config import DEFAULTS
from household import CommittedOutgoing


def is_outgoing_active_in_year(outgoing: CommittedOutgoing, calendar_year: int) -> bool:
    if outgoing.start_date is not None and calendar_year < outgoing.start_date.year:
        return False
    if outgoing.end_date is not None and calendar_year > outgoing.end_date.year:
        return False
    return True


def outgoing_cost_in_year(outgoing: CommittedOutgoing, calendar_year: int, base_year: int) -> float:
    """Annualised cost, inflated from base_year at the outgoing's own rate."""
    if not is_outgoing_active_in_year(outgoing, calendar_year):
        return 0.0
    rate = outgoing.inflation_rate or 0.0
    return outgoing.annual_amount * (1 + rate) ** max(0, calendar_year - base_year)


def calculate_expenditure(outgoings: Iterable[CommittedOutgoing], monthly_lifestyle_spending: float,
                          calendar_year: int, base_year: Optional[int] = None,
                          general_inflation: float = DEFAULTS["general_inflation"]) -> float:
    """
    Committed outgoings active in calendar_year plus lifestyle spending.
    With no base_year the figures are today's prices (no inflation applied).
    """
    if base_year is None:
        base_year = calendar_year
    total = sum(outgoing_cost_in_year(o, calendar_year, base_year) for o in outgoings)
    lifestyle_years = max(0, calendar_year - base_year)
    total += monthly_lifestyle_spending * 12 * (1 + general_inflation) ** lifestyle_years
    return total


def project_outgoing_costs(outgoings: Iterable[CommittedOutgoing], monthly_lifestyle_spending: float,
                           years: int, base_year: Optional[int] = None,
                           general_inflation: float = DEFAULTS["general_inflation"]) -> pd.DataFrame:
    """
    Returns a DataFrame with the nominal annual cost of every outgoing (and
    lifestyle spending) for each future year; inactive years are 0.
    """
    base_year = base_year or date.today().year
    idx = np.arange(years + 1)
    rows = []
    for o in outgoings:
        rows.append(pd.DataFrame({
            "year": idx,
            "calendar_year": base_year + idx,
            "category": o.category,
            "label": o.display_label,
            "annual_nominal": [outgoing_cost_in_year(o, base_year + y, base_year) for y in idx],
        }))
    rows.append(pd.DataFrame({
        "year": idx,
        "calendar_year": base_year + idx,
        "category": "lifestyle",
        "label": "Lifestyle spending",
        "annual_nominal": monthly_lifestyle_spending * 12 * (1 + general_inflation) ** idx,
    }))
    out = pd.concat(rows, ignore_index=True)
    out["monthly_nominal"] = out["annual_nominal"] / 12
    return out


def basket_for_year(df: pd.DataFrame, year: int) -> dict:
    view = df[df["year"] == year]
    return {
        "annual_nominal": float(view["annual_nominal"].sum()),
        "monthly_nominal": float(view["monthly_nominal"].sum()),
    }
