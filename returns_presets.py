# Long-run return assumptions for the Monte Carlo engine.
# expected_return = arithmetic annual mean (real), volatility = annualised std dev.
# These are not promises, just sane defaults callers can override.

PRESETS = {
    "Global equity (MSCI ACWI)": {"expected_return": 0.05, "volatility": 0.17},
    "UK equity (FTSE All-Share)": {"expected_return": 0.04, "volatility": 0.16},
    "US equity (S&P 500)": {"expected_return": 0.055, "volatility": 0.18},
    "80/20 Global": {"expected_return": 0.045, "volatility": 0.14},
    "60/40 Global": {"expected_return": 0.04, "volatility": 0.11},
    "Bonds (Global Agg)": {"expected_return": 0.01, "volatility": 0.06},
    "Cash": {"expected_return": 0.005, "volatility": 0.01},
}


def get_preset(name: str) -> dict:
    try:
        return dict(PRESETS[name])
    except KeyError:
        raise ValueError(f"Unknown returns preset: {name!r}") from None
