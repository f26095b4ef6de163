"""Input validation for series and exogenous regressor tables."""

from typing import Any, Optional, Tuple, Union
import logging
import warnings

import numpy as np
import pandas as pd

from cvts.data.structs import TimeSeries
from cvts.utils.error_handling import (
    InputShapeError,
    ModelContractError,
    RegressorPaddingWarning,
)

logger = logging.getLogger(__name__)


def validate_series(
    x: Union[TimeSeries, pd.Series, np.ndarray, list],
    frequency: int = 1,
    start: Tuple[int, int] = (1, 1),
) -> TimeSeries:
    """
    Coerce the input series to a TimeSeries.

    Args:
        x: TimeSeries, pandas Series or 1-D array-like
        frequency: Observations per cycle (ignored for TimeSeries input)
        start: (cycle, position) of the first observation (ignored for
            TimeSeries input)

    Returns:
        TimeSeries

    Raises:
        InputShapeError: If the input is not a 1-D numeric sequence
    """
    if isinstance(x, TimeSeries):
        series = x
    elif isinstance(x, pd.DataFrame):
        raise InputShapeError("Series must be 1-dimensional, got a DataFrame")
    else:
        series = TimeSeries.from_series(x, frequency=frequency, start=start)

    if len(series) == 0:
        raise InputShapeError("Series is empty")
    return series


def prepare_regressors(
    xreg: Any,
    series_length: int,
    max_horizon: int,
) -> pd.DataFrame:
    """
    Validate a regressor table and pad it to cover every forecast target.

    Row ``i`` of the table must describe the same time index as series
    position ``i``. Tables shorter than ``series_length + max_horizon`` are
    extended with NaN rows so the future slice of the last origin is always
    well-formed.

    Args:
        xreg: DataFrame or 2-D numeric array
        series_length: Number of observations in the series
        max_horizon: Forecast steps ahead

    Returns:
        DataFrame with a RangeIndex and at least
        ``series_length + max_horizon`` rows

    Raises:
        InputShapeError: If the table is not 2-D numeric, has no or duplicated
            columns, or has fewer rows than the series
    """
    if isinstance(xreg, pd.Series):
        raise InputShapeError(
            "Regressors must be a 2-D table; wrap a single regressor with to_frame()"
        )

    if isinstance(xreg, pd.DataFrame):
        df = xreg.copy()
    else:
        array = np.asarray(xreg)
        if array.ndim != 2:
            raise InputShapeError(
                f"Regressors must be a 2-D table, got shape {array.shape}"
            )
        df = pd.DataFrame(
            array, columns=[f"xreg{j + 1}" for j in range(array.shape[1])]
        )

    if df.shape[1] == 0:
        raise InputShapeError("Regressor table has no columns")
    if df.columns.duplicated().any():
        dupes = df.columns[df.columns.duplicated()].tolist()
        raise InputShapeError(f"Duplicated regressor columns: {dupes}")

    non_numeric = [
        col for col in df.columns if not pd.api.types.is_numeric_dtype(df[col])
    ]
    if non_numeric:
        raise InputShapeError(f"Non-numeric regressor columns: {non_numeric}")

    if len(df) < series_length:
        raise InputShapeError(
            f"Regressor table has {len(df)} rows but the series has "
            f"{series_length}; rows must align with series positions"
        )

    df = df.astype(float).reset_index(drop=True)

    required = series_length + max_horizon
    if len(df) < required:
        n_missing = required - len(df)
        message = (
            f"Regressor table too short to forecast beyond the end of the series "
            f"({len(df)} rows, need {required}); appending {n_missing} NaN rows"
        )
        warnings.warn(message, RegressorPaddingWarning, stacklevel=3)
        logger.warning(message)
        padding = pd.DataFrame(
            np.nan, index=range(len(df), required), columns=df.columns
        )
        df = pd.concat([df, padding])

    return df


def check_forecast_shape(
    forecast: Any, max_horizon: int, origin: Optional[int] = None
) -> np.ndarray:
    """
    Coerce a model result to a float vector of length `max_horizon`.

    Raises:
        ModelContractError: If the result is not `max_horizon` numbers
    """
    where = f" at origin {origin}" if origin is not None else ""
    if isinstance(forecast, TimeSeries):
        forecast = forecast.values
    try:
        values = np.asarray(forecast, dtype=float)
    except (TypeError, ValueError) as e:
        raise ModelContractError(
            f"Model returned non-numeric forecasts{where}: {e}"
        ) from e

    if values.ndim != 1 or values.shape[0] != max_horizon:
        raise ModelContractError(
            f"Model returned shape {values.shape}{where}, "
            f"expected ({max_horizon},)"
        )
    return values
