"""
4-bar weighted price smoother feeding the Hilbert pipeline.

Weights are 4, 3, 2, 1 over the last four prices, divided by 10. The
rolling form keeps a running weighted sum and a running plain sum so each
new price costs O(1): adding the new price at weight 4 and subtracting the
plain sum drops every older weight by one.
"""

import numpy as np
from numba import njit
from typing import Tuple

# slots of the 3-element state array
WMA_SUB = 0       # plain sum of the prices in the window
WMA_SUM = 1       # weighted sum of the prices in the window
WMA_TRAILING = 2  # price leaving the window on the next step

WMA_DIVISOR = 0.1


def new_wma_state() -> np.ndarray:
    """Zeroed accumulator for init_price_wma / price_wma_step."""
    return np.zeros(3, dtype=np.float64)


@njit(error_model="numpy")
def price_wma_step(real: np.ndarray, trailing_idx: int, state: np.ndarray,
                   new_price: float) -> Tuple[float, int]:
    """
    Push one price through the smoother.

    Returns:
        (smoothed price, advanced trailing index)
    """
    state[WMA_SUB] += new_price
    state[WMA_SUB] -= state[WMA_TRAILING]
    state[WMA_SUM] += new_price * 4.0
    state[WMA_TRAILING] = real[trailing_idx]
    smoothed = state[WMA_SUM] * WMA_DIVISOR
    state[WMA_SUM] -= state[WMA_SUB]
    return smoothed, trailing_idx + 1


@njit(error_model="numpy")
def init_price_wma(real: np.ndarray, start_idx: int, lookback: int,
                   warmup_taps: int, state: np.ndarray) -> Tuple[int, int]:
    """
    Seed the smoother from the first three prices of the warm-up window and
    run ``warmup_taps`` further prices through it.

    Args:
        real: Price array
        start_idx: First index that will be emitted (already >= lookback)
        lookback: Samples consumed before start_idx
        warmup_taps: Prices pushed through the step before the main scan
        state: Accumulator from new_wma_state(), updated in place

    Returns:
        (trailing index, next sample index for the main scan)
    """
    trailing_idx = start_idx - lookback
    today = trailing_idx

    price = real[today]
    state[WMA_SUB] = price
    state[WMA_SUM] = price
    today += 1

    price = real[today]
    state[WMA_SUB] += price
    state[WMA_SUM] += price * 2.0
    today += 1

    price = real[today]
    state[WMA_SUB] += price
    state[WMA_SUM] += price * 3.0
    today += 1

    state[WMA_TRAILING] = 0.0

    for _ in range(warmup_taps):
        _, trailing_idx = price_wma_step(real, trailing_idx, state, real[today])
        today += 1

    return trailing_idx, today
