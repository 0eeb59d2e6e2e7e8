"""
Hilbert Transform Indicators

Dominant cycle phase (HT_DCPHASE) and the MESA adaptive moving average
(MAMA / FAMA), both driven by the same Hilbert transformer pipeline.
"""

from .dc_phase import calc_ht_dcphase_fast, ht_dcphase, ht_dcphase_lookback, ht_dcphase_state
from .mama import calc_mama_fast, mama, mama_lookback, mama_state

__all__ = [
    'ht_dcphase', 'ht_dcphase_lookback', 'ht_dcphase_state', 'calc_ht_dcphase_fast',
    'mama', 'mama_lookback', 'mama_state', 'calc_mama_fast',
]
