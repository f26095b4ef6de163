"""Core data structures for rolling-origin evaluation."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from cvts.utils.error_handling import InputShapeError


@dataclass(frozen=True, eq=False)
class TimeSeries:
    """
    Regularly sampled numeric series with cycle-based time coordinates.

    Time of position ``p`` (0-based) is ``start_time + p / frequency`` where
    ``start_time = cycle + (position_in_cycle - 1) / frequency``.

    Attributes:
        values: 1-D float array of observations
        frequency: Observations per cycle (12 for monthly data, 1 for annual)
        start: (cycle, position-in-cycle) of the first observation
    """
    values: np.ndarray
    frequency: int = 1
    start: Tuple[int, int] = (1, 1)

    def __post_init__(self):
        """Validate and normalise after initialization."""
        try:
            values = np.array(self.values, dtype=float)
        except (TypeError, ValueError) as e:
            raise InputShapeError(f"Series values must be numeric: {e}") from e
        if values.ndim != 1:
            raise InputShapeError(
                f"Series must be 1-dimensional, got shape {values.shape}"
            )
        try:
            frequency = int(self.frequency)
        except (TypeError, ValueError, OverflowError) as e:
            raise InputShapeError(f"Frequency must be an integer: {e}") from e
        if frequency != self.frequency or frequency < 1:
            raise InputShapeError(
                f"Frequency must be a positive integer, got {self.frequency!r}"
            )
        cycle, position = self.start
        if not 1 <= int(position) <= frequency:
            raise InputShapeError(
                f"Start position {position} outside cycle of length {self.frequency}"
            )
        values.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "frequency", frequency)
        object.__setattr__(self, "start", (int(cycle), int(position)))

    def __len__(self) -> int:
        return len(self.values)

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.values.copy() if copy else self.values
        return self.values.astype(dtype)

    @property
    def start_time(self) -> float:
        return self.start[0] + (self.start[1] - 1) / self.frequency

    @property
    def end_time(self) -> float:
        return self.time_at(len(self) - 1)

    def time_at(self, position: int) -> float:
        """Time coordinate of 0-based `position`."""
        return self.start_time + position / self.frequency

    def position_at(self, time: float) -> int:
        """0-based position closest to time coordinate `time`."""
        return int(round((time - self.start_time) * self.frequency))

    def _start_for(self, position: int) -> Tuple[int, int]:
        absolute = self.start[0] * self.frequency + (self.start[1] - 1) + position
        cycle, offset = divmod(absolute, self.frequency)
        return cycle, offset + 1

    def slice(self, start: int, stop: int) -> "TimeSeries":
        """Sub-series covering 0-based positions ``[start, stop)``."""
        if start < 0 or stop > len(self) or start >= stop:
            raise IndexError(
                f"Slice [{start}, {stop}) outside series of length {len(self)}"
            )
        return TimeSeries(
            values=self.values[start:stop],
            frequency=self.frequency,
            start=self._start_for(start),
        )

    def window(
        self,
        start_time: Optional[float] = None,
        end_time: Optional[float] = None,
    ) -> "TimeSeries":
        """Sub-series between two time coordinates, both inclusive."""
        first = 0 if start_time is None else max(self.position_at(start_time), 0)
        last = len(self) - 1 if end_time is None else min(
            self.position_at(end_time), len(self) - 1
        )
        return self.slice(first, last + 1)

    def with_values(self, values: Any) -> "TimeSeries":
        """Same time coordinates, different observations."""
        values = np.asarray(values, dtype=float)
        if values.shape != self.values.shape:
            raise InputShapeError(
                f"Replacement values have shape {values.shape}, "
                f"expected {self.values.shape}"
            )
        return TimeSeries(values=values, frequency=self.frequency, start=self.start)

    def to_series(self, name: Optional[str] = None) -> pd.Series:
        """Convert to a pandas Series indexed by time coordinate."""
        index = pd.Index(
            [self.time_at(p) for p in range(len(self))], name="time"
        )
        return pd.Series(self.values, index=index, name=name)

    @classmethod
    def from_series(
        cls,
        series: Union[pd.Series, np.ndarray, list],
        frequency: int = 1,
        start: Tuple[int, int] = (1, 1),
    ) -> "TimeSeries":
        """Create from a pandas Series or array-like, ignoring its index."""
        if isinstance(series, pd.Series):
            series = series.to_numpy()
        return cls(values=series, frequency=frequency, start=start)


@dataclass(frozen=True)
class TrainingWindow:
    """
    Training window for one origin.

    Attributes:
        origin: 1-based origin index
        start: First 0-based series position in the window
        stop: One past the last position; also the first forecast target
        start_time: Time coordinate of `start`
        end_time: Time coordinate of `stop - 1`
        max_horizon: Number of steps forecast from this window
    """
    origin: int
    start: int
    stop: int
    start_time: float
    end_time: float
    max_horizon: int

    @property
    def length(self) -> int:
        return self.stop - self.start

    @property
    def future(self) -> Tuple[int, int]:
        """0-based ``[start, stop)`` of the positions being forecast."""
        return self.stop, self.stop + self.max_horizon

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "origin": self.origin,
            "start": self.start,
            "stop": self.stop,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "length": self.length,
        }


@dataclass(frozen=True, eq=False)
class SeriesOnly:
    """Training input without exogenous regressors."""
    series: TimeSeries

    def model_inputs(
        self, window: TrainingWindow
    ) -> Tuple[TimeSeries, Dict[str, Any]]:
        return self.series.slice(window.start, window.stop), {}


@dataclass(frozen=True, eq=False)
class SeriesWithRegressors:
    """
    Training input with a regressor table aligned row-for-row with the series.

    The table must already be padded to at least
    ``len(series) + max_horizon`` rows.
    """
    series: TimeSeries
    xreg: pd.DataFrame = field(repr=False)

    def model_inputs(
        self, window: TrainingWindow
    ) -> Tuple[TimeSeries, Dict[str, Any]]:
        future_start, future_stop = window.future
        kwargs = {
            "xreg": self.xreg.iloc[window.start:window.stop],
            "new_xreg": self.xreg.iloc[future_start:future_stop],
        }
        return self.series.slice(window.start, window.stop), kwargs


TrainingInput = Union[SeriesOnly, SeriesWithRegressors]
