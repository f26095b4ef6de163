"""Per-origin forecasting, sequential or on a worker pool."""

from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
import logging
import pickle

import numpy as np
import pandas as pd

from cvts.data.structs import TrainingInput, TrainingWindow
from cvts.data.validators import check_forecast_shape
from cvts.utils.error_handling import ConfigurationError, OriginFailedError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]

BACKENDS = {
    "thread": ThreadPoolExecutor,
    "process": ProcessPoolExecutor,
}


@dataclass(frozen=True)
class OriginTask:
    """
    Everything needed to forecast from one origin.

    Tasks share no mutable state, so they can run in any order and in any
    worker. With the process backend every field must be picklable.
    """
    window: TrainingWindow
    training_input: TrainingInput
    model: Callable[..., Any]
    preprocess: bool = False
    pp_method: str = "guerrero"
    transformer: Any = None
    model_kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def origin(self) -> int:
        return self.window.origin


def evaluate_origin(task: OriginTask) -> np.ndarray:
    """
    Forecast `max_horizon` steps from one origin.

    Slices the training window (and regressors), applies the forward
    transform if enabled, calls ``model(window, max_horizon, **kwargs)`` and
    back-transforms the result.

    Returns:
        Float vector of length `max_horizon`

    Raises:
        ModelContractError: If the model does not return `max_horizon` numbers
    """
    max_horizon = task.window.max_horizon
    window_series, kwargs = task.training_input.model_inputs(task.window)

    if task.preprocess:
        lam = task.transformer.estimate_param(window_series, task.pp_method)
        window_series = task.transformer.forward(window_series, lam)

    raw = task.model(window_series, max_horizon, **kwargs, **task.model_kwargs)
    forecast = check_forecast_shape(raw, max_horizon, origin=task.origin)

    if task.preprocess:
        forecast = check_forecast_shape(
            task.transformer.inverse(forecast, lam), max_horizon, origin=task.origin
        )
    return forecast


def combine_forecasts(
    origins: Sequence[int],
    results: Mapping[int, np.ndarray],
    max_horizon: int,
) -> pd.DataFrame:
    """
    Stack per-origin forecasts into the origins x horizons matrix.

    Rows follow `origins`, whatever order `results` was filled in.
    """
    missing = [i for i in origins if i not in results]
    if missing:
        raise ValueError(f"No forecasts for origins {missing}")
    values = np.vstack([results[i] for i in origins]) if origins else np.empty((0, max_horizon))
    return pd.DataFrame(
        values,
        index=pd.Index(list(origins), name="origin"),
        columns=pd.RangeIndex(1, max_horizon + 1, name="horizon"),
    )


class LoggingProgress:
    """Progress observer that logs every `every` completed origins."""

    def __init__(self, every: int = 10, log: Optional[logging.Logger] = None):
        self.every = max(1, every)
        self.log = log or logger

    def __call__(self, completed: int, total: int) -> None:
        if completed % self.every == 0 or completed == total:
            self.log.info(f"Evaluated {completed}/{total} origins")


class ForecastRunner:
    """
    Runs origin tasks and combines their forecasts.

    The first failing origin aborts the run: outstanding tasks are
    cancelled and OriginFailedError is raised with the origin and cause.
    """

    def __init__(
        self,
        n_jobs: Optional[int] = 1,
        backend: str = "thread",
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize ForecastRunner.

        Args:
            n_jobs: Worker count; None or 1 runs sequentially in the caller
            backend: 'thread' or 'process'
            progress: Called as ``progress(completed, total)`` after each origin
        """
        if backend not in BACKENDS:
            raise ConfigurationError(
                f"Unknown backend: {backend}. Supported backends are: {list(BACKENDS)}"
            )
        if n_jobs is not None and n_jobs < 1:
            raise ConfigurationError(f"n_jobs must be >= 1, got {n_jobs}")
        self.n_jobs = n_jobs or 1
        self.backend = backend
        self.progress = progress

    def _notify(self, completed: int, total: int) -> None:
        if self.progress is not None:
            self.progress(completed, total)

    def _run_sequential(self, tasks: Sequence[OriginTask]) -> Dict[int, np.ndarray]:
        results: Dict[int, np.ndarray] = {}
        for task in tasks:
            try:
                results[task.origin] = evaluate_origin(task)
            except Exception as e:
                logger.error(f"Origin {task.origin} failed: {e}")
                raise OriginFailedError(task.origin, e) from e
            self._notify(len(results), len(tasks))
        return results

    def _check_picklable(self, task: OriginTask) -> None:
        """Process workers receive tasks by pickle; fail before any origin runs."""
        try:
            pickle.dumps(task)
        except (pickle.PicklingError, AttributeError, TypeError) as e:
            raise ConfigurationError(
                f"backend='process' needs a picklable model, kwargs and inputs "
                f"(define the model at module level or use backend='thread'): {e}"
            ) from e

    def _run_parallel(self, tasks: Sequence[OriginTask]) -> Dict[int, np.ndarray]:
        results: Dict[int, np.ndarray] = {}
        if self.backend == "process":
            self._check_picklable(tasks[0])
        executor_cls = BACKENDS[self.backend]
        with executor_cls(max_workers=self.n_jobs) as executor:
            futures = {executor.submit(evaluate_origin, task): task.origin for task in tasks}
            try:
                for future in as_completed(futures):
                    origin = futures[future]
                    try:
                        results[origin] = future.result()
                    except Exception as e:
                        logger.error(f"Origin {origin} failed: {e}")
                        raise OriginFailedError(origin, e) from e
                    self._notify(len(results), len(tasks))
            except BaseException:
                cancelled = sum(future.cancel() for future in futures)
                if cancelled:
                    logger.info(f"Cancelled {cancelled} outstanding origins")
                raise
        return results

    def run(self, tasks: Sequence[OriginTask]) -> pd.DataFrame:
        """
        Forecast from every task's origin.

        Returns:
            Forecast matrix with one row per task, in task order
        """
        if not tasks:
            raise ValueError("No origin tasks to run")
        max_horizon = tasks[0].window.max_horizon

        if self.n_jobs == 1:
            results = self._run_sequential(tasks)
        else:
            logger.info(
                f"Evaluating {len(tasks)} origins on {self.n_jobs} {self.backend} workers"
            )
            results = self._run_parallel(tasks)

        return combine_forecasts([t.origin for t in tasks], results, max_horizon)
