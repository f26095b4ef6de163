"""Series containers, input validation, window planning and transforms."""

from .structs import (
    SeriesOnly,
    SeriesWithRegressors,
    TimeSeries,
    TrainingInput,
    TrainingWindow,
)
from .validators import check_forecast_shape, prepare_regressors, validate_series
from .splitters import WindowPlanner
from .preprocessors import BoxCoxTransformer

__all__ = [
    "TimeSeries",
    "TrainingWindow",
    "TrainingInput",
    "SeriesOnly",
    "SeriesWithRegressors",
    "validate_series",
    "prepare_regressors",
    "check_forecast_shape",
    "WindowPlanner",
    "BoxCoxTransformer",
]
