"""
HT_DCPHASE - Hilbert Transform dominant cycle phase.

For each sample the smoothed price is stored in a 50-slot ring, the
transformer and cycle estimator update the period, and the phase is read
off a one-cycle DFT of the ring: the sine and cosine correlations over the
last int(smoothPeriod + 0.5) smoothed prices.

Output is in degrees, roughly within (-45, 315].
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from numba import njit

from ..core.config_loader import DEFAULT_SETTINGS, EngineSettings, UnstableFunc
from ..core.numerics import PriceInput, as_price_array, extract_price
from ..core.types import OutputRange
from ..core.validation import (
    check_output_buffer,
    check_price_array,
    plan_output,
    resolve_index_range,
)
from .cycle_estimator import RAD2DEG, smooth_cycle_period, update_period
from .hilbert import adjusted_period, hilbert_transform, new_parity_block
from .price_filter import init_price_wma, new_wma_state, price_wma_step

logger = logging.getLogger(__name__)

SMOOTH_PRICE_CAPACITY = 50
DC_PHASE_WARMUP_TAPS = 34
DC_PHASE_BASE_LOOKBACK = 63

# |imag| at or below this is treated as a vanishing cosine correlation
IMAG_EPSILON = 0.01

TWO_PI = 2.0 * math.pi

# columns of the state trace
TRACE_PERIOD = 0
TRACE_SMOOTH_PERIOD = 1
TRACE_REAL = 2
TRACE_IMAG = 3
TRACE_COLUMNS = ["period", "smooth_period", "real_part", "imag_part"]


def ht_dcphase_lookback(settings: Optional[EngineSettings] = None) -> int:
    """Samples consumed before the first HT_DCPHASE output."""
    settings = settings or DEFAULT_SETTINGS
    return settings.unstable_period(UnstableFunc.HT_DCPHASE) + DC_PHASE_BASE_LOOKBACK


@njit(error_model="numpy")
def compute_dc_phase(ring: np.ndarray, cursor: int, smooth_period: float,
                     prev_phase: float) -> Tuple[float, float, float]:
    """
    Phase of the dominant cycle from the smoothed-price ring.

    Args:
        ring: Smoothed prices, newest at ``cursor``
        cursor: Slot of the current sample
        smooth_period: Smoothed cycle period
        prev_phase: Phase of the previous sample

    Returns:
        (phase in degrees, real part, imaginary part)
    """
    capacity = ring.shape[0]
    window_f = smooth_period + 0.5
    if window_f != window_f:
        window = 0
    elif window_f >= capacity:
        window = capacity
    else:
        window = int(window_f)

    real_part = 0.0
    imag_part = 0.0
    idx = cursor
    for i in range(window):
        angle = (i * TWO_PI) / window
        price = ring[idx]
        real_part += math.sin(angle) * price
        imag_part += math.cos(angle) * price
        if idx == 0:
            idx = capacity - 1
        else:
            idx -= 1

    phase = prev_phase
    if abs(imag_part) > IMAG_EPSILON:
        phase = math.atan(real_part / imag_part) * RAD2DEG
    elif real_part < 0.0:
        phase -= 90.0
    elif real_part > 0.0:
        phase += 90.0

    phase += 90.0
    phase += 360.0 / smooth_period
    if imag_part < 0.0:
        phase += 180.0
    if phase > 315.0:
        phase -= 360.0

    return phase, real_part, imag_part


@njit(error_model="numpy")
def _ht_dcphase_kernel(real, begin, end, lookback, even_block, odd_block,
                       ring, wma, out, trace, record):
    trailing_idx, today = init_price_wma(real, begin, lookback,
                                         DC_PHASE_WARMUP_TAPS, wma)

    period = 0.0
    smooth_period = 0.0
    re = 0.0
    im = 0.0
    prev_i2 = 0.0
    prev_q2 = 0.0
    dc_phase = 0.0
    # detrender delay line: lag3 is I1 for the current sample
    lag1 = 0.0
    lag2 = 0.0
    lag3 = 0.0

    capacity = ring.shape[0]
    ring_idx = 0
    out_idx = 0

    while today <= end:
        adjusted = adjusted_period(period)
        smoothed, trailing_idx = price_wma_step(real, trailing_idx, wma, real[today])
        ring[ring_idx] = smoothed

        detrender, q1, i2, q2 = hilbert_transform(today, even_block, odd_block,
                                                  smoothed, lag3, prev_i2,
                                                  prev_q2, adjusted)
        lag3 = lag2
        lag2 = lag1
        lag1 = detrender

        re, im, period = update_period(i2, q2, prev_i2, prev_q2, re, im, period)
        prev_i2 = i2
        prev_q2 = q2

        smooth_period = smooth_cycle_period(period, smooth_period)
        dc_phase, real_part, imag_part = compute_dc_phase(ring, ring_idx,
                                                          smooth_period, dc_phase)

        if today >= begin:
            out[out_idx] = dc_phase
            if record:
                trace[out_idx, TRACE_PERIOD] = period
                trace[out_idx, TRACE_SMOOTH_PERIOD] = smooth_period
                trace[out_idx, TRACE_REAL] = real_part
                trace[out_idx, TRACE_IMAG] = imag_part
            out_idx += 1

        ring_idx += 1
        if ring_idx == capacity:
            ring_idx = 0
        today += 1

    return out_idx


def _run_ht_dcphase(real: np.ndarray, start_idx: Optional[int], end_idx: Optional[int],
                    out: Optional[np.ndarray], settings: EngineSettings,
                    record: bool) -> Tuple[np.ndarray, np.ndarray, OutputRange]:
    check_price_array(real)
    start, end = resolve_index_range(real.shape[0], start_idx, end_idx)
    lookback = ht_dcphase_lookback(settings)
    begin, count = plan_output(start, end, lookback)
    out = check_output_buffer(out, count, "out", real.dtype)
    trace = np.empty((count if record else 0, len(TRACE_COLUMNS)), dtype=np.float64)

    if count == 0:
        logger.debug(
            f"HT_DCPHASE request [{start}, {end}] inside warm-up (lookback={lookback})"
        )
        return out[:0], trace, OutputRange(begin, 0)

    logger.debug(f"HT_DCPHASE begin={begin} count={count} lookback={lookback}")
    _ht_dcphase_kernel(
        real, begin, end, lookback,
        new_parity_block(real.dtype), new_parity_block(real.dtype),
        np.zeros(SMOOTH_PRICE_CAPACITY, dtype=real.dtype), new_wma_state(),
        out, trace, record,
    )
    return out[:count], trace, OutputRange(begin, count)


def ht_dcphase(real, start_idx: Optional[int] = None, end_idx: Optional[int] = None,
               out: Optional[np.ndarray] = None,
               settings: Optional[EngineSettings] = None) -> Tuple[np.ndarray, OutputRange]:
    """
    Dominant cycle phase over ``real[start_idx:end_idx + 1]``.

    Args:
        real: 1-D price array (float32 / float64 kept, other numbers widened)
        start_idx: First input index of interest (inclusive, default 0)
        end_idx: Last input index of interest (inclusive, default last)
        out: Optional caller-owned buffer of at least ``count`` values
        settings: EngineSettings, defaults to DEFAULT_SETTINGS

    Returns:
        (phase values in degrees, OutputRange mapping them to input indices)

    Raises:
        OutOfRangeParamError: invalid range, input or buffer
    """
    values, _, out_range = _run_ht_dcphase(as_price_array(real), start_idx, end_idx,
                                           out, settings or DEFAULT_SETTINGS, False)
    return values, out_range


def ht_dcphase_state(data: PriceInput, start_idx: Optional[int] = None,
                     end_idx: Optional[int] = None, column: str = "close",
                     settings: Optional[EngineSettings] = None) -> pd.DataFrame:
    """
    HT_DCPHASE with the cycle state behind every emitted value.

    Returns:
        DataFrame with dc_phase, period, smooth_period, real_part and
        imag_part columns, one row per emitted sample, indexed like ``data``
    """
    real, index = extract_price(data, column)
    values, trace, out_range = _run_ht_dcphase(real, start_idx, end_idx, None,
                                               settings or DEFAULT_SETTINGS, True)
    frame = pd.DataFrame(trace, columns=TRACE_COLUMNS,
                         index=index[out_range.begin:out_range.end])
    frame.insert(0, "dc_phase", values)
    return frame


def calc_ht_dcphase_fast(data: PriceInput, column: str = "close",
                         settings: Optional[EngineSettings] = None) -> pd.Series:
    """
    Calculate HT_DCPHASE using Numba (pandas wrapper).

    Args:
        data: DataFrame with a close column (any case), Series or array
        column: Price column to read from a DataFrame
        settings: EngineSettings, defaults to DEFAULT_SETTINGS

    Returns:
        Phase as a pandas Series aligned with ``data``; NaN during warm-up
    """
    real, index = extract_price(data, column)
    result = np.full(real.shape[0], np.nan)
    values, out_range = ht_dcphase(real, settings=settings)
    result[out_range.begin:out_range.end] = values
    return pd.Series(result, index=index, name="ht_dcphase")
