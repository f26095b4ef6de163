"""Error types, logging and configuration helpers."""

from cvts.utils.error_handling import (
    ConfigurationError,
    CVError,
    FailureContext,
    InputShapeError,
    ModelContractError,
    OriginFailedError,
    RegressorPaddingWarning,
)
from cvts.utils.logging_config import JSONFormatter, setup_logging

__all__ = [
    "CVError",
    "ConfigurationError",
    "InputShapeError",
    "ModelContractError",
    "OriginFailedError",
    "RegressorPaddingWarning",
    "FailureContext",
    "JSONFormatter",
    "setup_logging",
]
