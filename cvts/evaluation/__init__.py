"""Forecast execution, accuracy metrics and result aggregation."""

from cvts.evaluation.metrics import MetricsCalculator, ts_summary
from cvts.evaluation.control import CVControl, ts_control
from cvts.evaluation.actuals import ActualsMatrixBuilder
from cvts.evaluation.aggregation import ResultAggregator, truncate_pairs
from cvts.evaluation.runner import (
    ForecastRunner,
    LoggingProgress,
    OriginTask,
    combine_forecasts,
    evaluate_origin,
)
from cvts.evaluation.cross_validation import CVResult, cv_ts

__all__ = [
    "MetricsCalculator",
    "ts_summary",
    "CVControl",
    "ts_control",
    "ActualsMatrixBuilder",
    "ResultAggregator",
    "truncate_pairs",
    "ForecastRunner",
    "LoggingProgress",
    "OriginTask",
    "combine_forecasts",
    "evaluate_origin",
    "CVResult",
    "cv_ts",
]
