"""
Rolling-origin (walk-forward) cross-validation of a forecasting function.

At each origin a caller-supplied model is fitted on a fixed or expanding
training window and asked for `max_horizon` forecasts; the forecasts are
lined up with the realised values by horizon and scored per horizon and on
average across horizons.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import time

import pandas as pd

from cvts.data.splitters import WindowPlanner
from cvts.data.structs import SeriesOnly, SeriesWithRegressors, TrainingInput
from cvts.data.validators import prepare_regressors, validate_series
from cvts.evaluation.actuals import ActualsMatrixBuilder
from cvts.evaluation.aggregation import ResultAggregator
from cvts.evaluation.control import CVControl
from cvts.evaluation.runner import ForecastRunner, OriginTask, ProgressCallback
from cvts.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

RESERVED_MODEL_KWARGS = ("xreg", "new_xreg")


@dataclass
class CVResult:
    """
    Output of one cross-validation run.

    Attributes:
        actuals: Origins x horizons matrix of realised values (NaN past the
            end of the series)
        forecasts: Origins x horizons matrix of back-transformed forecasts
        results: Accuracy table indexed by horizon with a trailing 'All' row
        origins: Evaluated origin indices, in order
    """
    actuals: pd.DataFrame
    forecasts: pd.DataFrame
    results: pd.DataFrame
    origins: List[int]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "actuals": self.actuals.to_dict(orient="split"),
            "forecasts": self.forecasts.to_dict(orient="split"),
            "results": self.results.reset_index().to_dict(orient="records"),
            "origins": list(self.origins),
        }


def cv_ts(
    x: Any,
    model: Callable[..., Any],
    control: Optional[CVControl] = None,
    xreg: Any = None,
    n_jobs: Optional[int] = 1,
    backend: str = "thread",
    progress: Optional[ProgressCallback] = None,
    frequency: int = 1,
    start: Tuple[int, int] = (1, 1),
    **model_kwargs: Any,
) -> CVResult:
    """
    Cross-validate a forecasting function with rolling forecast origins.

    The model is called as ``model(window, max_horizon, **kwargs)`` where
    `window` is a TimeSeries; with regressors, `kwargs` also holds ``xreg``
    (rows of the training window) and ``new_xreg`` (the `max_horizon` rows
    after it). It must return `max_horizon` numbers.

    Args:
        x: TimeSeries, pandas Series or 1-D array-like
        model: Forecasting function
        control: Run settings (library defaults if None)
        xreg: Optional regressor table aligned row-for-row with `x`
        n_jobs: Worker count; None or 1 runs sequentially
        backend: 'thread' or 'process' pool when `n_jobs` > 1
        progress: Called as ``progress(completed, total)`` after each origin
        frequency: Observations per cycle when `x` is not a TimeSeries
        start: (cycle, position) of the first observation when `x` is not a
            TimeSeries
        **model_kwargs: Extra keyword arguments for every model call

    Returns:
        CVResult with actuals, forecasts, per-horizon results and origins

    Raises:
        ConfigurationError: On invalid settings or ``min_obs >= len(x)``
        InputShapeError: On malformed series or regressors
        OriginFailedError: If the model fails at any origin
    """
    control = (control or CVControl()).validate()
    if control.preprocess and "lambda_" in model_kwargs:
        raise ConfigurationError(
            "Don't specify a lambda_ parameter when preprocess is True"
        )
    reserved = [k for k in RESERVED_MODEL_KWARGS if k in model_kwargs]
    if reserved:
        raise ConfigurationError(
            f"{reserved} are supplied by cv_ts; pass regressors through xreg"
        )
    if control.lambda_ is not None:
        if "lambda_" in model_kwargs:
            raise ConfigurationError(
                "lambda_ is set both in the control and as a model keyword; "
                "specify it in one place only"
            )
        model_kwargs = {**model_kwargs, "lambda_": control.lambda_}

    runner = ForecastRunner(n_jobs=n_jobs, backend=backend, progress=progress)

    series = validate_series(x, frequency=frequency, start=start)
    planner = WindowPlanner(
        min_obs=control.min_obs,
        step_size=control.step_size,
        max_horizon=control.max_horizon,
        fixed_window=control.fixed_window,
    )
    windows = planner.plan(series)

    training_input: TrainingInput
    if xreg is None:
        training_input = SeriesOnly(series)
    else:
        table = prepare_regressors(xreg, len(series), control.max_horizon)
        training_input = SeriesWithRegressors(series, table)

    builder = ActualsMatrixBuilder(max_horizon=control.max_horizon, min_obs=control.min_obs)
    actuals = builder.build(series)

    tasks = [
        OriginTask(
            window=window,
            training_input=training_input,
            model=model,
            preprocess=control.preprocess,
            pp_method=control.pp_method,
            transformer=control.transformer,
            model_kwargs=model_kwargs,
        )
        for window in windows
    ]

    logger.info(
        f"Cross-validating {getattr(model, '__name__', repr(model))} on "
        f"{len(series)} observations: {len(tasks)} origins, "
        f"max_horizon={control.max_horizon}, min_obs={control.min_obs}, "
        f"{'fixed' if control.fixed_window else 'expanding'} window"
    )
    started = time.time()

    forecasts = runner.run(tasks)

    origins = forecasts.index.tolist()
    actuals = builder.restrict_to_origins(actuals, origins)
    results = ResultAggregator(control.summary_func).aggregate(forecasts, actuals)

    logger.info(
        f"Cross-validation finished in {time.time() - started:.2f}s"
    )
    return CVResult(
        actuals=actuals,
        forecasts=forecasts,
        results=results,
        origins=origins,
    )
