import math


def round_pence(value: float) -> float:
    """Round half-up to the nearest penny."""
    return math.floor(value * 100 + 0.5) / 100


def round_pounds(value: float) -> int:
    """Round half-up to the nearest whole pound."""
    return int(math.floor(value + 0.5))
