"""
WealthDesk — Compounding Engine

Future value of a single holding under annual compounding. No rounding is
applied here; currency rounding belongs to presentation.
"""

import numpy as np


def future_value(present_value: float, rate: float, years: int) -> float:
    """P * (1 + r)^n. Callers validate r >= -1 and n >= 0."""
    return present_value * (1 + rate) ** years


def annualised_growth_rate(current_value: float, future_value_: float, years: float) -> float:
    """
    Compound annual growth rate that takes ``current_value`` to ``future_value_``
    over ``years``. Zero when there is nothing to grow or no horizon.
    """
    if current_value <= 0 or years <= 0:
        return 0.0
    return (future_value_ / current_value) ** (1.0 / years) - 1.0


def growth_schedule(present_value: float, rate: float, years: int) -> np.ndarray:
    """Values at the end of year 0..years, inclusive."""
    periods = np.arange(int(years) + 1, dtype=np.float64)
    return present_value * np.power(1.0 + rate, periods)
