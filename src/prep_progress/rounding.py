"""Rounding shared by the scheduler and scorers."""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Python's built-in ``round`` rounds ties to even (``round(7.5) == 8`` but
    ``round(8.5) == 8``), which would shift intervals and scores at .5.
    """
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)
