"""Rounding helpers shared by estimators and aggregations."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounded up."""
    return math.floor(value + 0.5)


def round2(value: float) -> float:
    """Round to two decimal places."""
    return round(float(value), 2)
