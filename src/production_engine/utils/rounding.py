"""Rounding helpers for displayed figures."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going toward positive infinity.

    Built-in `round` uses banker's rounding, which disagrees with the figures
    shown to finance users (e.g. a 54.5% margin must display as 55, and a
    -54.5% margin as -54).
    """
    return math.floor(value + 0.5)
