# pytest configuration for Hilbert Cycles

# Ensure package root is importable in tests regardless of CWD
import sys
import os
import random
import numpy as np
import pandas as pd
import pytest

ROOT = os.path.dirname(os.path.abspath(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# ---- Determinism & Stability ----

@pytest.fixture(autouse=True, scope="session")
def _global_seed():
    """Set global seeds for reproducible test runs."""
    random.seed(42)
    np.random.seed(42)

@pytest.fixture(autouse=True, scope="session")
def _pandas_settings():
    """Configure pandas for deterministic behavior."""
    pd.options.mode.copy_on_write = True

# ---- Price fixtures ----

@pytest.fixture
def sine_prices():
    """100 + 10*sin(2*pi*t/20) over 300 samples: a clean 20-bar cycle."""
    t = np.arange(300, dtype=np.float64)
    return 100.0 + 10.0 * np.sin(2.0 * np.pi * t / 20.0)

@pytest.fixture
def random_walk():
    """
    Factory for seeded random-walk closes.

    Usage:
        def test_example(random_walk):
            prices = random_walk(500, seed=7)
    """
    def _walk(n=400, seed=42, start=2000.0, scale=1.0):
        rng = np.random.default_rng(seed)
        return start + np.cumsum(rng.normal(0.0, scale, n))
    return _walk

@pytest.fixture
def step_prices():
    """100 for 100 samples, then 200 for 100 samples."""
    return np.concatenate([np.full(100, 100.0), np.full(100, 200.0)])

@pytest.fixture
def ohlc_frame(random_walk):
    """OHLC DataFrame on an hourly DatetimeIndex with capitalised columns."""
    close = random_walk(300, seed=11)
    index = pd.date_range("2024-01-01", periods=len(close), freq="h", tz="UTC")
    return pd.DataFrame({
        'Open': close + 0.5,
        'High': close + 2.0,
        'Low': close - 2.0,
        'Close': close,
    }, index=index)
