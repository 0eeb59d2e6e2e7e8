"""
Request validation for the indicator entry points.

Every check runs once, before a kernel starts its scan; the kernels
themselves contain no error paths.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from .types import OutOfRangeParamError

logger = logging.getLogger(__name__)


def _reject(message: str) -> OutOfRangeParamError:
    logger.warning(f"Rejected request: {message}")
    return OutOfRangeParamError(message)


def check_price_array(real: np.ndarray) -> None:
    """The input must be a non-empty 1-D array."""
    if real.ndim != 1:
        raise _reject(f"price input must be 1-D, got shape {real.shape}")
    if real.shape[0] == 0:
        raise _reject("price input is empty")


def resolve_index_range(length: int,
                        start_idx: Optional[int],
                        end_idx: Optional[int]) -> Tuple[int, int]:
    """
    Resolve an inclusive [start_idx, end_idx] request against the input length.

    Missing bounds default to the whole input.
    """
    start = 0 if start_idx is None else int(start_idx)
    end = length - 1 if end_idx is None else int(end_idx)

    if start < 0:
        raise _reject(f"start_idx={start} must be >= 0")
    if end < start:
        raise _reject(f"end_idx={end} precedes start_idx={start}")
    if end >= length:
        raise _reject(f"end_idx={end} beyond input of length {length}")

    return start, end


def plan_output(start: int, end: int, lookback: int) -> Tuple[int, int]:
    """
    Clip the request to the first sample past warm-up.

    Returns:
        (first emitted input index, number of emitted samples); the count is
        0 when the whole request lies inside the warm-up region.
    """
    begin = max(start, lookback)
    if begin > end:
        return begin, 0
    return begin, end - begin + 1


def check_output_buffer(out: Optional[np.ndarray], required: int, name: str,
                        dtype: np.dtype) -> np.ndarray:
    """
    Return a usable output buffer, allocating one when the caller gave none.

    A caller-owned buffer must be a writable 1-D floating point ndarray
    holding at least ``required`` elements.
    """
    if out is None:
        return np.empty(required, dtype=dtype)

    if not isinstance(out, np.ndarray) or out.ndim != 1:
        raise _reject(f"{name} must be a 1-D ndarray")
    if out.dtype.type not in (np.float32, np.float64):
        raise _reject(f"{name} must be float32 or float64, got {out.dtype}")
    if not out.flags.writeable:
        raise _reject(f"{name} is read-only")
    if out.shape[0] < required:
        raise _reject(
            f"{name} holds {out.shape[0]} values, request needs {required}"
        )
    return out
