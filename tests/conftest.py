"""Pytest configuration and shared fixtures."""

import numpy as np
import pandas as pd
import pytest

from cvts.data.structs import TimeSeries


@pytest.fixture
def ramp_series():
    """Series 1, 2, ..., 20 where each value equals its 1-based position."""
    return TimeSeries(np.arange(1.0, 21.0))


@pytest.fixture
def monthly_series():
    """Four years of positive monthly data with trend and seasonality."""
    rng = np.random.RandomState(42)
    t = np.arange(48)
    values = 100 + 2.0 * t + 10 * np.sin(2 * np.pi * t / 12) + rng.normal(0, 2, 48)
    return TimeSeries(values, frequency=12, start=(2000, 1))


@pytest.fixture
def multiplicative_series():
    """Monthly series whose spread grows with its level."""
    rng = np.random.RandomState(7)
    t = np.arange(72)
    level = np.exp(0.04 * t) * 50
    season = 1 + 0.2 * np.sin(2 * np.pi * t / 12)
    noise = 1 + 0.05 * rng.standard_normal(72)
    return TimeSeries(level * season * noise, frequency=12, start=(2010, 1))


@pytest.fixture
def position_regressors():
    """Regressor table for ramp_series: one column equal to the position."""
    return pd.DataFrame({
        "position": np.arange(1.0, 21.0),
        "squared": np.arange(1.0, 21.0) ** 2,
    })

