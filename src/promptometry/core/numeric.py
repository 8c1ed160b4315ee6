"""Arithmetic helpers shared by the scoring stages."""

import math


def safe_ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for non-negative scores (2.5 -> 3, not 2)."""
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def round_score(value: float) -> int:
    """Round a score to the nearest integer, halves up."""
    return int(round_half_up(value))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def mean(values: list[float]) -> float:
    """Arithmetic mean, 0.0 for an empty list."""
    return safe_ratio(sum(values), len(values))
