"""
MAMA / FAMA - MESA adaptive moving average and its following average.

The rate of change of the Hilbert phase sets the smoothing factor: a slowly
rotating phase (a clean cycle) gives alpha = fast_limit / deltaPhase, a
stalled or reversing phase gives fast_limit. FAMA follows MAMA with half
the alpha.
"""

import logging
import math
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from numba import njit

from ..core.config_loader import (
    DEFAULT_SETTINGS,
    EngineSettings,
    UnstableFunc,
    check_mama_limits,
)
from ..core.numerics import PriceInput, as_price_array, extract_price
from ..core.types import OutputRange
from ..core.validation import (
    check_output_buffer,
    check_price_array,
    plan_output,
    resolve_index_range,
)
from .cycle_estimator import RAD2DEG, update_period
from .hilbert import adjusted_period, hilbert_transform, new_parity_block
from .price_filter import init_price_wma, new_wma_state, price_wma_step

logger = logging.getLogger(__name__)

MAMA_WARMUP_TAPS = 9
MAMA_BASE_LOOKBACK = 32

TRACE_ALPHA = 0
TRACE_PHASE = 1
TRACE_DELTA = 2
TRACE_PERIOD = 3
TRACE_COLUMNS = ["alpha", "phase", "delta_phase", "period"]


def mama_lookback(settings: Optional[EngineSettings] = None) -> int:
    """Samples consumed before the first MAMA / FAMA output."""
    settings = settings or DEFAULT_SETTINGS
    return settings.unstable_period(UnstableFunc.MAMA) + MAMA_BASE_LOOKBACK


@njit(error_model="numpy")
def hilbert_phase(q1: float, i1: float) -> float:
    """Phase angle in degrees, 0 when the in-phase component vanishes."""
    if i1 != 0.0:
        return math.atan(q1 / i1) * RAD2DEG
    return 0.0


@njit(error_model="numpy")
def adaptive_alpha(prev_phase: float, phase: float, fast_limit: float,
                   slow_limit: float) -> Tuple[float, float]:
    """
    Smoothing factor from the phase change.

    Returns:
        (alpha, deltaPhase floored at 1)
    """
    delta = prev_phase - phase
    if delta < 1.0:
        delta = 1.0

    if delta > 1.0:
        alpha = fast_limit / delta
        if alpha < slow_limit:
            alpha = slow_limit
    else:
        alpha = fast_limit
    return alpha, delta


@njit(error_model="numpy")
def _mama_kernel(real, begin, end, lookback, fast_limit, slow_limit,
                 even_block, odd_block, wma, out_mama, out_fama, trace, record):
    trailing_idx, today = init_price_wma(real, begin, lookback,
                                         MAMA_WARMUP_TAPS, wma)

    period = 0.0
    re = 0.0
    im = 0.0
    prev_i2 = 0.0
    prev_q2 = 0.0
    prev_phase = 0.0
    mama_value = 0.0
    fama_value = 0.0
    lag1 = 0.0
    lag2 = 0.0
    lag3 = 0.0

    out_idx = 0

    while today <= end:
        adjusted = adjusted_period(period)
        price = real[today]
        smoothed, trailing_idx = price_wma_step(real, trailing_idx, wma, price)

        i1 = lag3
        detrender, q1, i2, q2 = hilbert_transform(today, even_block, odd_block,
                                                  smoothed, i1, prev_i2,
                                                  prev_q2, adjusted)
        lag3 = lag2
        lag2 = lag1
        lag1 = detrender

        phase = hilbert_phase(q1, i1)
        alpha, delta = adaptive_alpha(prev_phase, phase, fast_limit, slow_limit)
        prev_phase = phase

        mama_value = alpha * price + (1.0 - alpha) * mama_value
        half = alpha * 0.5
        fama_value = half * mama_value + (1.0 - half) * fama_value

        re, im, period = update_period(i2, q2, prev_i2, prev_q2, re, im, period)
        prev_i2 = i2
        prev_q2 = q2

        if today >= begin:
            out_mama[out_idx] = mama_value
            out_fama[out_idx] = fama_value
            if record:
                trace[out_idx, TRACE_ALPHA] = alpha
                trace[out_idx, TRACE_PHASE] = phase
                trace[out_idx, TRACE_DELTA] = delta
                trace[out_idx, TRACE_PERIOD] = period
            out_idx += 1

        today += 1

    return out_idx


def _resolve_limits(fast_limit: Optional[float], slow_limit: Optional[float],
                    settings: EngineSettings) -> Tuple[float, float]:
    fast = settings.fast_limit if fast_limit is None else float(fast_limit)
    slow = settings.slow_limit if slow_limit is None else float(slow_limit)
    try:
        check_mama_limits(fast, slow)
    except ValueError as e:
        logger.warning(f"Rejected MAMA limits: {e}")
        raise
    return fast, slow


def _run_mama(real: np.ndarray, fast_limit: Optional[float], slow_limit: Optional[float],
              start_idx: Optional[int], end_idx: Optional[int],
              out_mama: Optional[np.ndarray], out_fama: Optional[np.ndarray],
              settings: EngineSettings, record: bool):
    check_price_array(real)
    start, end = resolve_index_range(real.shape[0], start_idx, end_idx)
    fast, slow = _resolve_limits(fast_limit, slow_limit, settings)
    lookback = mama_lookback(settings)
    begin, count = plan_output(start, end, lookback)
    out_mama = check_output_buffer(out_mama, count, "out_mama", real.dtype)
    out_fama = check_output_buffer(out_fama, count, "out_fama", real.dtype)
    trace = np.empty((count if record else 0, len(TRACE_COLUMNS)), dtype=np.float64)

    if count == 0:
        logger.debug(
            f"MAMA request [{start}, {end}] inside warm-up (lookback={lookback})"
        )
        return out_mama[:0], out_fama[:0], trace, OutputRange(begin, 0)

    logger.debug(
        f"MAMA begin={begin} count={count} lookback={lookback} "
        f"fast_limit={fast} slow_limit={slow}"
    )
    _mama_kernel(
        real, begin, end, lookback, fast, slow,
        new_parity_block(real.dtype), new_parity_block(real.dtype), new_wma_state(),
        out_mama, out_fama, trace, record,
    )
    return out_mama[:count], out_fama[:count], trace, OutputRange(begin, count)


def mama(real, fast_limit: Optional[float] = None, slow_limit: Optional[float] = None,
         start_idx: Optional[int] = None, end_idx: Optional[int] = None,
         out_mama: Optional[np.ndarray] = None, out_fama: Optional[np.ndarray] = None,
         settings: Optional[EngineSettings] = None) -> Tuple[np.ndarray, np.ndarray, OutputRange]:
    """
    MESA adaptive moving average over ``real[start_idx:end_idx + 1]``.

    Args:
        real: 1-D price array
        fast_limit: Upper bound of alpha, in [0.01, 0.99] (settings default 0.5)
        slow_limit: Lower bound of alpha, in [0.01, 0.99] (settings default 0.05)
        start_idx / end_idx: Inclusive input range, default the whole input
        out_mama / out_fama: Optional caller-owned buffers
        settings: EngineSettings, defaults to DEFAULT_SETTINGS

    Returns:
        (MAMA, FAMA, OutputRange)

    Raises:
        BadParamError: a limit outside [0.01, 0.99]
        OutOfRangeParamError: invalid range, input or buffer
    """
    mama_values, fama_values, _, out_range = _run_mama(
        as_price_array(real), fast_limit, slow_limit, start_idx, end_idx,
        out_mama, out_fama, settings or DEFAULT_SETTINGS, False,
    )
    return mama_values, fama_values, out_range


def mama_state(data: PriceInput, fast_limit: Optional[float] = None,
               slow_limit: Optional[float] = None, start_idx: Optional[int] = None,
               end_idx: Optional[int] = None, column: str = "close",
               settings: Optional[EngineSettings] = None) -> pd.DataFrame:
    """MAMA / FAMA plus alpha, phase, delta_phase and period per emitted sample."""
    real, index = extract_price(data, column)
    mama_values, fama_values, trace, out_range = _run_mama(
        real, fast_limit, slow_limit, start_idx, end_idx, None, None,
        settings or DEFAULT_SETTINGS, True,
    )
    frame = pd.DataFrame(trace, columns=TRACE_COLUMNS,
                         index=index[out_range.begin:out_range.end])
    frame.insert(0, "fama", fama_values)
    frame.insert(0, "mama", mama_values)
    return frame


def calc_mama_fast(data: PriceInput, fast_limit: Optional[float] = None,
                   slow_limit: Optional[float] = None, column: str = "close",
                   settings: Optional[EngineSettings] = None) -> Tuple[pd.Series, pd.Series]:
    """
    Calculate MAMA / FAMA using Numba (pandas wrapper).

    Returns:
        Tuple of (MAMA, FAMA) as pandas Series; NaN during warm-up
    """
    real, index = extract_price(data, column)
    mama_result = np.full(real.shape[0], np.nan)
    fama_result = np.full(real.shape[0], np.nan)
    mama_values, fama_values, out_range = mama(real, fast_limit, slow_limit,
                                               settings=settings)
    mama_result[out_range.begin:out_range.end] = mama_values
    fama_result[out_range.begin:out_range.end] = fama_values
    return (
        pd.Series(mama_result, index=index, name="mama"),
        pd.Series(fama_result, index=index, name="fama"),
    )
