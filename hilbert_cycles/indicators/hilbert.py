"""
Discretised Hilbert transformer with even / odd register blocks.

Every stage is the 7-tap FIR

    k * (0.0962*x[t] + 0.5769*x[t-2] - 0.5769*x[t-4] - 0.0962*x[t-6])

with k = 0.075*period + 0.54. Taps two samples apart always share parity,
so the history of a stage splits into an even and an odd half. Each half
lives in its own (stage, register) array and a step only ever receives the
block of its own parity. The only values crossing parities are the bridge
scalars: previous I2 / Q2 and the detrender delay line supplying
I1 = detrender[t-3].
"""

import numpy as np
from numba import njit
from typing import Tuple

# stage rows
DETRENDER = 0
Q1 = 1
JI = 2
JQ = 3
N_STAGES = 4

# register columns: three ring slots of 0.0962*input, then the feedback term
# and the previous stage input
RING_SLOTS = 3
PREV_FEEDBACK = 3
PREV_INPUT = 4
BLOCK_SHAPE = (N_STAGES, RING_SLOTS + 2)

HILBERT_A = 0.0962
HILBERT_B = 0.5769

# homodyne smoothing of I2 / Q2
IQ_WEIGHT = 0.2
IQ_CARRY = 0.8


def new_parity_block(dtype=np.float64) -> np.ndarray:
    """Zeroed register block for one parity."""
    return np.zeros(BLOCK_SHAPE, dtype=dtype)


@njit(error_model="numpy")
def adjusted_period(period: float) -> float:
    return 0.075 * period + 0.54


@njit(error_model="numpy")
def parity_cursor(today: int) -> int:
    """Ring slot used by the block of ``today``'s parity."""
    return (today // 2) % RING_SLOTS


@njit(error_model="numpy")
def hilbert_stage(block: np.ndarray, stage: int, cursor: int, value: float,
                  adjusted: float) -> float:
    """Advance one FIR stage of one parity block and return its output."""
    scaled = HILBERT_A * value
    out = -np.float64(block[stage, cursor])
    block[stage, cursor] = scaled
    out += scaled
    out -= block[stage, PREV_FEEDBACK]
    block[stage, PREV_FEEDBACK] = HILBERT_B * block[stage, PREV_INPUT]
    out += block[stage, PREV_FEEDBACK]
    block[stage, PREV_INPUT] = value
    return out * adjusted


@njit(error_model="numpy")
def hilbert_parity_step(block: np.ndarray, cursor: int, smoothed: float,
                        i1: float, prev_i2: float, prev_q2: float,
                        adjusted: float) -> Tuple[float, float, float, float]:
    """
    Run the four stages on one block.

    Returns:
        (detrender, Q1, I2, Q2)
    """
    detrender = hilbert_stage(block, DETRENDER, cursor, smoothed, adjusted)
    q1 = hilbert_stage(block, Q1, cursor, detrender, adjusted)
    ji = hilbert_stage(block, JI, cursor, i1, adjusted)
    jq = hilbert_stage(block, JQ, cursor, q1, adjusted)

    q2 = IQ_WEIGHT * (q1 + ji) + IQ_CARRY * prev_q2
    i2 = IQ_WEIGHT * (i1 - jq) + IQ_CARRY * prev_i2
    return detrender, q1, i2, q2


@njit(error_model="numpy")
def hilbert_transform(today: int, even_block: np.ndarray, odd_block: np.ndarray,
                      smoothed: float, i1: float, prev_i2: float, prev_q2: float,
                      adjusted: float) -> Tuple[float, float, float, float]:
    """Dispatch sample ``today`` to the block of its parity."""
    cursor = parity_cursor(today)
    if today % 2 == 0:
        return hilbert_parity_step(even_block, cursor, smoothed, i1,
                                   prev_i2, prev_q2, adjusted)
    return hilbert_parity_step(odd_block, cursor, smoothed, i1,
                               prev_i2, prev_q2, adjusted)
