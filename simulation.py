"""
Log-normal annual returns: mu = ln(1 + E[r]) - sigma^2 / 2.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from config import DEFAULTS
from returns_presets import get_preset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonteCarloConfig:
    current_value: float
    annual_contribution: float
    expected_return: float
    volatility: float
    years: int
    runs: int = DEFAULTS["mc_runs"]
    percentiles: Tuple[int, ...] = DEFAULTS["mc_percentiles"]
    seed: int = DEFAULTS["mc_seed"]

    @classmethod
    def from_preset(cls, name: str, current_value: float, annual_contribution: float,
                    years: int, **kwargs) -> "MonteCarloConfig":
        preset = get_preset(name)
        return cls(
            current_value=current_value,
            annual_contribution=annual_contribution,
            expected_return=preset["expected_return"],
            volatility=preset["volatility"],
            years=years,
            **kwargs,
        )


@dataclass(frozen=True)
class MonteCarloYearResult:
    year: int
    percentiles: Dict[int, int]
    mean: int


@dataclass(frozen=True)
class MonteCarloResult:
    timeline: List[MonteCarloYearResult]
    config: MonteCarloConfig
    probability_of_success: Optional[float] = None

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for y in self.timeline:
            row = {"year": y.year}
            row.update({f"p{p}": v for p, v in y.percentiles.items()})
            row["mean"] = y.mean
            rows.append(row)
        return pd.DataFrame(rows)


def _validate(cfg: MonteCarloConfig):
    if cfg.expected_return <= -1:
        raise ValueError(f"expected_return must be greater than -1, got {cfg.expected_return}")
    if cfg.runs < 0:
        raise ValueError(f"runs must be non-negative, got {cfg.runs}")


def _standard_normals(rng: np.random.Generator, runs: int, years: int) -> np.ndarray:
    # one (u1, u2) pair per run-year, consumed run by run
    u = rng.random((runs, years, 2))
    u1 = np.where(u[..., 0] > 0, u[..., 0], 1e-10)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u[..., 1])


def simulate_paths(cfg: MonteCarloConfig) -> np.ndarray:
    """Portfolio value per run (rows) and year (columns, year 0 = today)."""
    _validate(cfg)
    years = max(0, int(cfg.years))
    rng = np.random.default_rng(cfg.seed)
    log_mu = np.log(1 + cfg.expected_return) - cfg.volatility ** 2 / 2
    returns = np.exp(log_mu + cfg.volatility * _standard_normals(rng, cfg.runs, years)) - 1

    paths = np.empty((cfg.runs, years + 1))
    paths[:, 0] = cfg.current_value
    for year in range(1, years + 1):
        paths[:, year] = np.maximum(0.0, paths[:, year - 1] * (1 + returns[:, year - 1]) + cfg.annual_contribution)
    logger.debug("Simulated %d paths over %d years (seed %d)", cfg.runs, years, cfg.seed)
    return paths


def _round(values: np.ndarray) -> np.ndarray:
    return np.floor(values + 0.5)


def run_monte_carlo(cfg: MonteCarloConfig, target_value: Optional[float] = None) -> MonteCarloResult:
    paths = simulate_paths(cfg)
    n = paths.shape[0]
    timeline = []
    for year in range(paths.shape[1]):
        if n == 0:
            timeline.append(MonteCarloYearResult(year=year, percentiles={p: 0 for p in cfg.percentiles}, mean=0))
            continue
        values = np.sort(paths[:, year])
        pct = {}
        for p in cfg.percentiles:
            idx = min(int(np.floor(p / 100 * n)), n - 1)
            pct[p] = int(_round(values[idx]))
        timeline.append(MonteCarloYearResult(year=year, percentiles=pct, mean=int(_round(values.mean()))))

    probability = None
    if target_value is not None:
        probability = _fraction_at_or_above(paths, target_value, paths.shape[1] - 1)
    return MonteCarloResult(timeline=timeline, config=cfg, probability_of_success=probability)


def _fraction_at_or_above(paths: np.ndarray, target_value: float, year: int) -> float:
    if paths.shape[0] == 0:
        return 0.0
    return float(np.mean(paths[:, year] >= target_value))


def compute_success_probability(cfg: MonteCarloConfig, target_value: float,
                                at_year: Optional[int] = None) -> float:
    """Share of paths at or above target_value at at_year (default: the final year)."""
    paths = simulate_paths(cfg)
    last = paths.shape[1] - 1
    year = last if at_year is None else min(max(0, int(at_year)), last)
    return _fraction_at_or_above(paths, target_value, year)
