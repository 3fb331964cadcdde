import logging

APP_NAME = "Household Projection Engine"

# Default assumptions (UK-leaning; rates are nominal decimals unless noted)
DEFAULTS = {
    "end_age": 95,
    "growth_rate": 0.05,
    "general_inflation": 0.02,        # lifestyle spending inflation

    # Growth & retirement math
    "countdown_max_months": 1_200,    # 100 years
    "fallback_scenario_rate": 0.07,

    # Pension drawdown
    "gross_up_iterations": 50,
    "gross_up_tolerance": 0.02,       # £

    # Monte Carlo
    "mc_runs": 1_000,
    "mc_seed": 42,
    "mc_percentiles": (10, 25, 50, 75, 90),

    # IHT
    "iht_max_years": 100,
    "gift_window_years": 7,

    # Sensitivity perturbations
    "sensitivity_pct": 0.10,
    "sensitivity_rate_pp": 0.01,
    "sensitivity_withdrawal_pp": 0.005,
    "sensitivity_income_delta": 5_000,

    # Child defaults
    "school_start_age": 4,
    "school_end_age": 18,
}


def configure_logging(level=logging.INFO):
    """Install a root handler for scripts and notebooks driving the engine."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
