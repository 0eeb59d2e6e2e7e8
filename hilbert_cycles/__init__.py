"""Hilbert Cycles - adaptive cycle indicators built on a discretised Hilbert Transform"""
from .version import __version__
from .core.config_loader import DEFAULT_SETTINGS, EngineSettings, UnstableFunc, load_settings
from .core.types import BadParamError, ErrorCode, HilbertCycleError, OutOfRangeParamError, OutputRange
from .indicators import (
    calc_ht_dcphase_fast,
    calc_mama_fast,
    ht_dcphase,
    ht_dcphase_lookback,
    ht_dcphase_state,
    mama,
    mama_lookback,
    mama_state,
)

__all__ = [
    '__version__',
    'DEFAULT_SETTINGS', 'EngineSettings', 'UnstableFunc', 'load_settings',
    'BadParamError', 'ErrorCode', 'HilbertCycleError', 'OutOfRangeParamError', 'OutputRange',
    'ht_dcphase', 'ht_dcphase_lookback', 'ht_dcphase_state', 'calc_ht_dcphase_fast',
    'mama', 'mama_lookback', 'mama_state', 'calc_mama_fast',
]
