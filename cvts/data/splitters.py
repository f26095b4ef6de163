"""Rolling-origin window planning."""

from typing import List
import logging

from cvts.data.structs import TimeSeries, TrainingWindow
from cvts.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


class WindowPlanner:
    """
    Plans forecast origins and the training window behind each one.

    Origins are 1-based step indices ``1, 1 + step_size, ... <= n - min_obs``.
    Origin ``i`` trains on data ending at 1-based series position
    ``min_obs + i - 1`` and forecasts positions ``min_obs + i ... min_obs + i
    - 1 + max_horizon``.
    """

    def __init__(
        self,
        min_obs: int = 12,
        step_size: int = 1,
        max_horizon: int = 1,
        fixed_window: bool = True,
    ):
        """
        Initialize WindowPlanner.

        Args:
            min_obs: Training observations before the first origin; also the
                window length when `fixed_window` is True
            step_size: Spacing between consecutive origins
            max_horizon: Forecast steps ahead of each origin
            fixed_window: Slide a window of `min_obs` observations if True,
                otherwise always train from the start of the series
        """
        if min_obs < 1:
            raise ConfigurationError(f"min_obs must be >= 1, got {min_obs}")
        if step_size < 1:
            raise ConfigurationError(f"step_size must be >= 1, got {step_size}")
        if max_horizon < 1:
            raise ConfigurationError(f"max_horizon must be >= 1, got {max_horizon}")
        self.min_obs = min_obs
        self.step_size = step_size
        self.max_horizon = max_horizon
        self.fixed_window = fixed_window

    def origins(self, n: int) -> List[int]:
        """
        Origin indices for a series of length `n`.

        Raises:
            ConfigurationError: If ``min_obs >= n`` so no origin exists
        """
        if self.min_obs >= n:
            raise ConfigurationError(
                f"min_obs ({self.min_obs}) must be smaller than the series "
                f"length ({n}); no forecast origin can be produced"
            )
        return list(range(1, n - self.min_obs + 1, self.step_size))

    def window_for(self, series: TimeSeries, origin: int) -> TrainingWindow:
        """Training window for a single origin."""
        stop = self.min_obs + origin - 1
        start = origin - 1 if self.fixed_window else 0

        # Time coordinates measured from the cycle-based series start
        freq = series.frequency
        base = series.start_time + (self.min_obs - 2) / freq
        end_time = base + origin / freq
        if self.fixed_window:
            start_time = base + (origin - self.min_obs + 1) / freq
        else:
            start_time = series.start_time

        return TrainingWindow(
            origin=origin,
            start=start,
            stop=stop,
            start_time=start_time,
            end_time=end_time,
            max_horizon=self.max_horizon,
        )

    def plan(self, series: TimeSeries) -> List[TrainingWindow]:
        """Training windows for every origin, in origin order."""
        windows = [self.window_for(series, i) for i in self.origins(len(series))]
        logger.debug(
            f"Planned {len(windows)} origins "
            f"({'fixed' if self.fixed_window else 'expanding'} window, "
            f"min_obs={self.min_obs}, step_size={self.step_size})"
        )
        return windows

