"""Horizon-indexed matrix of true future values."""

from typing import Sequence
import logging

import numpy as np
import pandas as pd

from cvts.data.structs import TimeSeries

logger = logging.getLogger(__name__)


class ActualsMatrixBuilder:
    """
    Builds the matrix of values each origin's forecasts are scored against.

    Cell ``(t, h)`` of the full matrix is the series value at 1-based
    position ``t + h``, or NaN when that lies past the end of the series.
    Missing cells are left for the aggregator to drop, never imputed.
    """

    def __init__(self, max_horizon: int, min_obs: int):
        self.max_horizon = max_horizon
        self.min_obs = min_obs

    def full_matrix(self, series: TimeSeries) -> pd.DataFrame:
        """Actuals for every 1-based position ``1..n``."""
        x = series.values
        n = len(x)
        # 0-based row t holds x[t + h] for h = 1..max_horizon
        offsets = np.arange(n)[:, None] + np.arange(1, self.max_horizon + 1)[None, :]
        in_range = offsets < n
        values = np.full(offsets.shape, np.nan)
        values[in_range] = x[offsets[in_range]]
        return pd.DataFrame(
            values,
            index=pd.RangeIndex(1, n + 1, name="position"),
            columns=pd.RangeIndex(1, self.max_horizon + 1, name="horizon"),
        )

    def build(self, series: TimeSeries) -> pd.DataFrame:
        """Actuals restricted to origin-eligible positions ``min_obs..n-1``."""
        full = self.full_matrix(series)
        return full.loc[self.min_obs:len(series) - 1]

    def restrict_to_origins(
        self, actuals: pd.DataFrame, origins: Sequence[int]
    ) -> pd.DataFrame:
        """
        Rows of `actuals` (from `build`) for the evaluated origins.

        Origin ``i`` maps to the ``i``-th eligible row, i.e. position
        ``min_obs + i - 1``.
        """
        positions = [self.min_obs + i - 1 for i in origins]
        restricted = actuals.loc[positions].copy()
        restricted.index = pd.Index(list(origins), name="origin")
        return restricted
