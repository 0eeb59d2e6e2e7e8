"""
Unit tests for HT_DCPHASE
"""

import math

import numpy as np
import pandas as pd
import pytest

from hilbert_cycles import (
    BadParamError,
    EngineSettings,
    ErrorCode,
    OutOfRangeParamError,
    OutputRange,
    UnstableFunc,
    calc_ht_dcphase_fast,
    ht_dcphase,
    ht_dcphase_lookback,
    ht_dcphase_state,
    load_settings,
)
from hilbert_cycles.indicators.dc_phase import SMOOTH_PRICE_CAPACITY, compute_dc_phase


def unit_ring(*slots):
    """Ring of zeros with weight ``w`` at each (slot, w) pair."""
    ring = np.zeros(SMOOTH_PRICE_CAPACITY)
    for slot, weight in slots:
        ring[slot] = weight
    return ring


class TestComputeDCPhase:
    """Test the one-cycle DFT phase."""

    def test_current_sample_only(self):
        """Only the newest slot set: real 0, imag 1, phase 0 before offsets."""
        ring = unit_ring((10, 1.0))
        phase, real_part, imag_part = compute_dc_phase(ring, 10, 20.0, 0.0)

        assert real_part == pytest.approx(0.0, abs=1e-12)
        assert imag_part == pytest.approx(1.0)
        assert phase == pytest.approx(90.0 + 360.0 / 20.0)

    def test_negative_imag_adds_half_turn(self):
        """Half a cycle back flips the cosine sign."""
        ring = unit_ring((0, 1.0))
        phase, _, imag_part = compute_dc_phase(ring, 10, 20.0, 0.0)

        assert imag_part == pytest.approx(-1.0)
        assert phase == pytest.approx(90.0 + 18.0 + 180.0, abs=1e-9)

    def test_wraps_above_315(self):
        """Results past 315 degrees are folded back by a full turn."""
        cursor = 20
        ring = unit_ring((cursor - 10, 0.1), (cursor - 15, 1.0))
        phase, real_part, imag_part = compute_dc_phase(ring, cursor, 20.0, 0.0)

        assert real_part < 0.0 and imag_part < 0.0
        expected = math.degrees(math.atan(real_part / imag_part)) + 90.0 + 18.0 + 180.0 - 360.0
        assert phase == pytest.approx(expected)
        assert phase <= 315.0

    def test_walks_backwards_through_wrap(self):
        """Slot 49 is one sample behind slot 0."""
        ring = unit_ring((SMOOTH_PRICE_CAPACITY - 1, 1.0))
        _, real_part, imag_part = compute_dc_phase(ring, 0, 20.0, 0.0)

        angle = 2.0 * math.pi / 20
        assert real_part == pytest.approx(math.sin(angle))
        assert imag_part == pytest.approx(math.cos(angle))

    def test_window_rounds_smooth_period(self):
        """int(smoothPeriod + 0.5) samples enter the sums."""
        ring = np.ones(SMOOTH_PRICE_CAPACITY)
        _, real_part, imag_part = compute_dc_phase(ring, 30, 14.6, 0.0)

        angles = 2.0 * np.pi * np.arange(15) / 15
        assert real_part == pytest.approx(np.sin(angles).sum(), abs=1e-12)
        assert imag_part == pytest.approx(np.cos(angles).sum(), abs=1e-12)

    def test_window_capped_at_ring_capacity(self):
        ring = np.ones(SMOOTH_PRICE_CAPACITY)
        _, real_part, imag_part = compute_dc_phase(ring, 0, 80.0, 0.0)

        angles = 2.0 * np.pi * np.arange(SMOOTH_PRICE_CAPACITY) / SMOOTH_PRICE_CAPACITY
        assert imag_part == pytest.approx(np.cos(angles).sum(), abs=1e-12)
        assert real_part == pytest.approx(np.sin(angles).sum(), abs=1e-12)

    @pytest.mark.parametrize("real_sign,nudge", [(1.0, 90.0), (-1.0, -90.0)])
    def test_vanishing_imag_nudges_previous_phase(self, real_sign, nudge):
        """|imag| <= 0.01 moves the previous phase a quarter turn towards real."""
        cursor = 25
        # a quarter cycle back: sine 1, cosine ~0
        ring = unit_ring((cursor - 5, real_sign))
        phase, real_part, imag_part = compute_dc_phase(ring, cursor, 20.0, 40.0)

        assert abs(imag_part) <= 0.01
        assert math.copysign(1.0, real_part) == real_sign
        expected = 40.0 + nudge + 90.0 + 18.0
        if imag_part < 0.0:
            expected += 180.0
        if expected > 315.0:
            expected -= 360.0
        assert phase == pytest.approx(expected)

    def test_empty_ring_keeps_previous_phase(self):
        """real == 0 and imag == 0 leave the previous phase before offsets."""
        ring = np.zeros(SMOOTH_PRICE_CAPACITY)
        phase, _, _ = compute_dc_phase(ring, 0, 20.0, 30.0)
        assert phase == pytest.approx(30.0 + 90.0 + 18.0)


class TestHTDCPhase:
    """Test the HT_DCPHASE entry point."""

    def test_lookback(self):
        assert ht_dcphase_lookback() == 63
        settings = load_settings(overrides={"unstable_period": {"ht_dcphase": 5}})
        assert ht_dcphase_lookback(settings) == 68

    def test_output_range_whole_input(self, random_walk):
        prices = random_walk(200)
        values, out_range = ht_dcphase(prices)

        assert out_range == OutputRange(63, 137)
        assert len(values) == 137
        assert np.isfinite(values).all()
        assert (values > -90.0).all() and (values <= 315.0).all()

    def test_warmup_exactness(self, random_walk):
        """Ending before the lookback yields nothing; ending on it yields one value."""
        prices = random_walk(100)

        values, out_range = ht_dcphase(prices, 0, 62)
        assert out_range.count == 0
        assert out_range.is_empty
        assert len(values) == 0

        values, out_range = ht_dcphase(prices, 0, 63)
        assert out_range == OutputRange(63, 1)
        assert len(values) == 1

    def test_start_past_lookback(self, random_walk):
        prices = random_walk(300)
        values, out_range = ht_dcphase(prices, 150, 199)

        assert out_range == OutputRange(150, 50)
        assert list(out_range.input_indices()) == list(range(150, 200))
        assert np.isfinite(values).all()

    def test_unstable_period_delays_output(self, random_walk):
        prices = random_walk(200)
        settings = load_settings().with_unstable_period(UnstableFunc.HT_DCPHASE, 10)

        _, out_range = ht_dcphase(prices, settings=settings)
        assert out_range == OutputRange(73, 127)

    def test_deterministic(self, random_walk):
        prices = random_walk(400, seed=9)
        first, _ = ht_dcphase(prices)
        second, _ = ht_dcphase(prices.copy())
        np.testing.assert_array_equal(first, second)

    def test_sine_cycle(self, sine_prices):
        """A 20-bar sine gives smoothPeriod ~20 and ~18 degrees of phase per bar."""
        state = ht_dcphase_state(sine_prices)
        tail = state.iloc[-120:]

        assert tail["smooth_period"].median() == pytest.approx(20.0, rel=0.15)
        steps = np.mod(np.diff(tail["dc_phase"].to_numpy()), 360.0)
        assert np.median(steps) == pytest.approx(18.0, abs=4.0)

    def test_constant_input(self):
        """
        A flat series never settles: imag stays under the branch threshold, so
        every step nudges the previous phase and the phase keeps drifting by
        360/smoothPeriod modulo quarter turns.
        """
        state = ht_dcphase_state(np.full(400, 100.0))
        tail = state.iloc[-50:]
        phase = tail["dc_phase"].to_numpy()

        assert np.isfinite(state.to_numpy()).all()
        assert (tail["imag_part"].abs() <= 0.01).all()
        assert (phase <= 315.0).all()

        residue = np.mod(np.diff(phase) - 360.0 / tail["smooth_period"].to_numpy()[1:], 90.0)
        assert (np.minimum(residue, 90.0 - residue) < 1e-6).all()
        assert np.ptp(phase) > 90.0


    def test_caller_buffer(self, random_walk):
        prices = random_walk(150)
        buffer = np.full(100, -1.0)

        values, out_range = ht_dcphase(prices, out=buffer)

        assert out_range.count == 87
        assert np.shares_memory(values, buffer)
        np.testing.assert_array_equal(buffer[:87], values)
        assert (buffer[87:] == -1.0).all()

    def test_float32_input(self, random_walk):
        prices = random_walk(200).astype(np.float32)
        values, _ = ht_dcphase(prices)
        assert values.dtype == np.float32
        assert np.isfinite(values).all()

    def test_integer_input_widened(self):
        prices = (np.arange(200) % 17 + 100).astype(np.int64)
        values, _ = ht_dcphase(prices)
        assert values.dtype == np.float64

    def test_list_input(self, random_walk):
        prices = random_walk(120)
        from_list, _ = ht_dcphase(list(prices))
        from_array, _ = ht_dcphase(prices)
        np.testing.assert_array_equal(from_list, from_array)

    def test_nan_propagates(self, random_walk):
        prices = random_walk(200)
        prices[120] = np.nan
        values, out_range = ht_dcphase(prices)
        assert np.isnan(values[120 - out_range.begin:]).all()
        assert np.isfinite(values[:120 - out_range.begin]).all()


class TestHTDCPhaseErrors:
    """Test request validation."""

    @pytest.mark.parametrize("start_idx,end_idx", [(-1, 50), (60, 50), (0, 100)])
    def test_bad_range(self, random_walk, start_idx, end_idx):
        with pytest.raises(OutOfRangeParamError) as exc_info:
            ht_dcphase(random_walk(100), start_idx, end_idx)
        assert exc_info.value.code is ErrorCode.OUT_OF_RANGE_PARAM

    def test_empty_input(self):
        with pytest.raises(OutOfRangeParamError):
            ht_dcphase(np.array([], dtype=np.float64))

    def test_two_dimensional_input(self):
        with pytest.raises(OutOfRangeParamError):
            ht_dcphase(np.ones((10, 10)))

    def test_scalar_input(self):
        with pytest.raises(OutOfRangeParamError):
            ht_dcphase(3.0)

    def test_negative_unstable_period_never_reaches_kernel(self):
        with pytest.raises(BadParamError):
            ht_dcphase(np.full(100, 50.0),
                       settings=EngineSettings(unstable_periods={"ht_dcphase": -60}))

    def test_buffer_too_small(self, random_walk):
        with pytest.raises(OutOfRangeParamError):
            ht_dcphase(random_walk(100), out=np.empty(10))

    def test_buffer_read_only(self, random_walk):
        buffer = np.empty(100)
        buffer.setflags(write=False)
        with pytest.raises(OutOfRangeParamError):
            ht_dcphase(random_walk(100), out=buffer)

    def test_buffer_wrong_dtype(self, random_walk):
        with pytest.raises(OutOfRangeParamError):
            ht_dcphase(random_walk(100), out=np.empty(100, dtype=np.int64))

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            ht_dcphase(np.array([]))


class TestHTDCPhasePandas:
    """Test the pandas wrappers."""

    def test_dataframe_capitalised_close(self, ohlc_frame):
        phase = calc_ht_dcphase_fast(ohlc_frame)

        assert isinstance(phase, pd.Series)
        assert phase.index.equals(ohlc_frame.index)
        assert phase.iloc[:63].isna().all()
        assert phase.iloc[63:].notna().all()

        values, _ = ht_dcphase(ohlc_frame["Close"].to_numpy())
        np.testing.assert_array_equal(phase.iloc[63:].to_numpy(), values)

    def test_series_and_named_column(self, ohlc_frame):
        from_series = calc_ht_dcphase_fast(ohlc_frame["High"])
        # "high" falls back to the capitalised "High" column
        from_column = calc_ht_dcphase_fast(ohlc_frame, column="high")

        assert from_series.iloc[63:].notna().all()
        pd.testing.assert_series_equal(from_series, from_column)

    def test_missing_column(self, ohlc_frame):
        with pytest.raises(KeyError):
            calc_ht_dcphase_fast(ohlc_frame, column="vwap")

    def test_short_input_all_nan(self, random_walk):
        phase = calc_ht_dcphase_fast(pd.Series(random_walk(40)))
        assert phase.isna().all()

    def test_state_frame(self, ohlc_frame):
        state = ht_dcphase_state(ohlc_frame, start_idx=100)

        assert list(state.columns) == [
            "dc_phase", "period", "smooth_period", "real_part", "imag_part",
        ]
        assert state.index.equals(ohlc_frame.index[100:])
        assert ((state["period"] > 0.0) & (state["period"] <= 50.0)).all()
