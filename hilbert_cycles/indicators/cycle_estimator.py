"""
Homodyne discriminator turning I2 / Q2 into a dominant cycle period.

Comparisons are written as plain ``if`` tests rather than min / max so a NaN
period passes through the clamps untouched.
"""

import math

from numba import njit
from typing import Tuple

RAD2DEG = 180.0 / math.pi

MIN_PERIOD = 6.0
MAX_PERIOD = 50.0
MAX_GROWTH = 1.5
MAX_SHRINK = 0.67


@njit(error_model="numpy")
def update_period(i2: float, q2: float, prev_i2: float, prev_q2: float,
                  re: float, im: float, period: float) -> Tuple[float, float, float]:
    """
    One period update.

    Args:
        i2, q2: Smoothed in-phase / quadrature of this sample
        prev_i2, prev_q2: Values of the previous sample
        re, im: Smoothed homodyne products of the previous sample
        period: Previous period estimate

    Returns:
        (re, im, period) for this sample
    """
    re = 0.2 * (i2 * prev_i2 + q2 * prev_q2) + 0.8 * re
    im = 0.2 * (i2 * prev_q2 - q2 * prev_i2) + 0.8 * im

    prev_period = period
    # the angle is undefined when either product is zero; keep the old period
    if im != 0.0 and re != 0.0:
        period = 360.0 / (math.atan(im / re) * RAD2DEG)

    bound = MAX_GROWTH * prev_period
    if period > bound:
        period = bound
    bound = MAX_SHRINK * prev_period
    if period < bound:
        period = bound

    if period < MIN_PERIOD:
        period = MIN_PERIOD
    elif period > MAX_PERIOD:
        period = MAX_PERIOD

    period = 0.2 * period + 0.8 * prev_period
    return re, im, period


@njit(error_model="numpy")
def smooth_cycle_period(period: float, smooth_period: float) -> float:
    return 0.33 * period + 0.67 * smooth_period
