"""Rolling-origin cross-validation of time-series forecasting functions."""

from cvts.data.structs import TimeSeries
from cvts.evaluation.control import CVControl, ts_control
from cvts.evaluation.cross_validation import CVResult, cv_ts
from cvts.evaluation.metrics import ts_summary
from cvts.evaluation.runner import LoggingProgress
from cvts.utils.config_manager import ConfigManager
from cvts.utils.error_handling import (
    ConfigurationError,
    CVError,
    InputShapeError,
    ModelContractError,
    OriginFailedError,
    RegressorPaddingWarning,
)

__version__ = "0.1.0"

__all__ = [
    "TimeSeries",
    "CVControl",
    "ts_control",
    "CVResult",
    "cv_ts",
    "ts_summary",
    "LoggingProgress",
    "ConfigManager",
    "CVError",
    "ConfigurationError",
    "InputShapeError",
    "ModelContractError",
    "OriginFailedError",
    "RegressorPaddingWarning",
]
