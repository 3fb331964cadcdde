# exporters.py
import json
import math
from dataclasses import asdict
from datetime import date

import numpy as np

from household import Household
from lifetime import LifetimeCashFlowResult
from simulation import MonteCarloResult


def export_lifetime_cash_flow(result: LifetimeCashFlowResult) -> tuple[str, bytes]:
    df = result.to_frame()
    return "lifetime_cash_flow.csv", df.to_csv(index=False).encode()


def export_monte_carlo(result: MonteCarloResult) -> tuple[str, bytes]:
    df = result.to_frame()
    return "monte_carlo.csv", df.to_csv(index=False).encode()


def _json_default(o):
    # Handle numpy arrays/scalars and dates cleanly for JSON
    if isinstance(o, np.ndarray):
        return o.tolist()
    if isinstance(o, (np.floating, np.integer)):
        return o.item()
    if isinstance(o, date):
        return o.isoformat()
    if isinstance(o, (set, frozenset)):
        return sorted(o)
    # Let json raise for anything else unexpected
    raise TypeError(f"Object of type {o.__class__.__name__} is not JSON serializable")


def _sanitise(value):
    """Non-finite floats become null; JSON has no Infinity or NaN."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _sanitise(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitise(v) for v in value]
    return value


def export_household(household: Household) -> tuple[str, bytes]:
    """
    Snapshot of the household as JSON, readable by household_from_dict.
    """
    blob = json.dumps(_sanitise(asdict(household)), indent=2, default=_json_default, allow_nan=False)
    return "household.json", blob.encode()
