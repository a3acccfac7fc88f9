"""Numeric primitives shared by the staffing and HR KPI calculations.

All helpers are pure and total: malformed input degrades to a safe value
instead of raising.
"""

import math
from typing import Any


# Scaled values are snapped to this many decimals before floor/ceil so float
# noise (1.1 / 0.1 == 11.000000000000002) does not add a whole step.
_SNAP_DECIMALS = 9


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value into [lo, hi]."""
    return max(lo, min(hi, value))


def safe_num(value: Any, allow_negative: bool = False) -> float:
    """Coerce value to a finite float.

    None, NaN, +/-inf, booleans and anything that is not a number become 0.
    Negative numbers become 0 unless allow_negative is set.

    Examples:
        safe_num(None)            # -> 0.0
        safe_num(float("nan"))    # -> 0.0
        safe_num(-2)              # -> 0.0
        safe_num(-2, True)        # -> -2.0
        safe_num("1.5")           # -> 1.5
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    if not allow_negative and number < 0:
        return 0.0
    return number


def is_finite_number(value: Any) -> bool:
    """True if value is an int/float (not bool) with a finite value."""
    if value is None or isinstance(value, bool):
        return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def round_to(value: float, decimals: int) -> float:
    """Round half up to a fixed number of decimals.

    Python's round() uses banker's rounding; demand figures and KPI rates
    are reported with half-up rounding instead (2.345 -> 2.35).
    """
    factor = 10 ** decimals
    scaled = value * factor
    if not math.isfinite(scaled):
        return value
    return math.floor(round(scaled, _SNAP_DECIMALS) + 0.5) / factor


def snap(value: float) -> float:
    """Drop float noise below the snap precision (0.1 + 0.2 -> 0.3)."""
    return round(value, _SNAP_DECIMALS)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +inf."""
    return int(math.floor(value + 0.5))


def ceil_to_step(value: float, step: float) -> float:
    """Round value UP to the next multiple of step.

    ceil_to_step(x, step) = ceil(x / step) * step

    A non-positive or non-finite step leaves the value unchanged, and so
    does a value too large to scale. The result is snapped so that
    29 * 0.1 comes back as 2.9, not 2.9000000000000004.
    """
    if not is_finite_number(step) or step <= 0:
        return value
    scaled = value / step
    if not math.isfinite(scaled):
        return value
    stepped = math.ceil(round(scaled, _SNAP_DECIMALS)) * step
    snapped = snap(stepped)
    # steps finer than the snap precision keep the raw multiple
    return snapped if snapped >= value else stepped


def ceil_div(value: float, divisor: float) -> int:
    """Integer ceiling of value / divisor with the same float-noise snap.

    A quotient that overflows to infinity gives 0.
    """
    quotient = value / divisor
    if not math.isfinite(quotient):
        return 0
    return int(math.ceil(round(quotient, _SNAP_DECIMALS)))


def normalize_complexity(level: Any) -> int:
    """Normalize a complexity level onto {-1, 0, 1, 2}.

    Missing or malformed levels count as 0 (normal).
    """
    lvl = safe_num(level, allow_negative=True)
    if lvl <= -1:
        return -1
    if lvl >= 2:
        return 2
    return round_half_up(lvl)
