"""
Shared utility functions for PHSim.
"""

import math


def clamp(value: float, low: float, high: float) -> float:
    """
    Clamp value to the inclusive range [low, high].
    """
    if low > high:
        low, high = high, low
    return max(low, min(high, value))


def exp_filter(previous: float, target: float, decay: float) -> float:
    """
    One step of a first-order exponential lag.

    decay is exp(-dt/tau); the result moves from previous toward target.
    """
    return previous * decay + target * (1.0 - decay)


def saturated_vapour_pressure(temp_c: float) -> float:
    """Saturated water vapour pressure (kPa) at temp_c (Antoine-type fit)."""
    return 0.6105 * math.exp(17.27 * temp_c / (temp_c + 237.3))


def is_undefined(value) -> bool:
    """True for None or NaN."""
    return value is None or (isinstance(value, float) and math.isnan(value))
