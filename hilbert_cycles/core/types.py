"""
Hilbert Cycles core types - error codes, exceptions and the output range
descriptor shared by every indicator entry point.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class ErrorCode(Enum):
    """Closed set of failure codes reported by the indicator layer."""
    BAD_PARAM = "bad_param"                    # limit / settings value outside its domain
    OUT_OF_RANGE_PARAM = "out_of_range_param"  # index range or output buffer unusable


class HilbertCycleError(ValueError):
    """Base class for validation failures raised before a scan starts."""

    code: ErrorCode = ErrorCode.BAD_PARAM

    def __init__(self, message: str):
        super().__init__(f"[{self.code.value}] {message}")
        self.detail = message


class BadParamError(HilbertCycleError):
    code = ErrorCode.BAD_PARAM


class OutOfRangeParamError(HilbertCycleError):
    code = ErrorCode.OUT_OF_RANGE_PARAM


@dataclass(frozen=True)
class OutputRange:
    """
    Maps output positions back to input indices.

    Output element ``i`` belongs to input index ``begin + i``; ``end`` is
    exclusive. A request that lies entirely inside the warm-up region
    yields ``count == 0``.
    """
    begin: int
    count: int

    @property
    def end(self) -> int:
        return self.begin + self.count

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    def input_indices(self) -> np.ndarray:
        return np.arange(self.begin, self.end)
