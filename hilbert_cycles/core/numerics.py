"""
Hilbert Cycles Core Numerics - input coercion for the numba kernels
"""

from typing import Tuple, Union

import numpy as np
import pandas as pd

# dtypes the kernels are specialised for; anything else is widened to float64
KERNEL_DTYPES = (np.float32, np.float64)

PriceInput = Union[pd.DataFrame, pd.Series, np.ndarray, list, tuple]


def as_price_array(values) -> np.ndarray:
    """
    Return a contiguous floating point view/copy of ``values``.

    float32 and float64 inputs keep their precision; integers, bools and
    object arrays of numbers become float64. NaN / inf are left untouched.
    """
    arr = np.asarray(values)
    if arr.dtype.type not in KERNEL_DTYPES:
        arr = arr.astype(np.float64)
    # 0-d input stays 0-d (ascontiguousarray would promote it to 1-D)
    return np.require(arr, requirements="C")


def extract_price(data: PriceInput, column: str = "close") -> Tuple[np.ndarray, pd.Index]:
    """
    Pull the price column out of a DataFrame (any case) or accept a Series /
    array directly.

    Args:
        data: DataFrame with ``column`` (or its capitalised form), Series, or array-like
        column: Column name to read from a DataFrame

    Returns:
        (price array, index to attach to the results)
    """
    if isinstance(data, pd.DataFrame):
        if column in data.columns:
            series = data[column]
        elif column.capitalize() in data.columns:
            series = data[column.capitalize()]
        else:
            raise KeyError(f"DataFrame has no '{column}' column")
        return as_price_array(series.values), data.index

    if isinstance(data, pd.Series):
        return as_price_array(data.values), data.index

    arr = as_price_array(data)
    return arr, pd.RangeIndex(len(arr))
