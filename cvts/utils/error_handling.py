"""Error types raised by the cross-validation engine."""

import traceback
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class CVError(Exception):
    """Base class for every error raised by cvts."""


class ConfigurationError(CVError, ValueError):
    """Invalid or ambiguous run configuration, detected before any model call."""


class InputShapeError(CVError, ValueError):
    """Series or regressor table with an unusable shape or dtype."""


class ModelContractError(CVError):
    """The model function returned something other than `horizon` numbers."""


class OriginFailedError(CVError, RuntimeError):
    """
    A model call failed at one origin and the whole run was aborted.

    Attributes:
        origin: 1-based origin index that failed
        cause: The underlying exception
        context: Snapshot of the failure for debugging
    """

    def __init__(self, origin: int, cause: BaseException):
        self.origin = origin
        self.cause = cause
        self.context = FailureContext.from_exception(origin, cause)
        super().__init__(
            f"Model failed at origin {origin}: {type(cause).__name__}: {cause}"
        )

    def __reduce__(self):
        return (type(self), (self.origin, self.cause))


class RegressorPaddingWarning(UserWarning):
    """Regressor table was shorter than series length + max horizon."""


@dataclass
class FailureContext:
    """Captures the exception details of a failed origin."""
    origin: int
    exception_type: str = ""
    exception_message: str = ""
    stack_trace: str = ""
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(
        cls, origin: int, exc: BaseException, extra: Optional[Dict[str, Any]] = None
    ) -> "FailureContext":
        """Create context from an exception raised while evaluating `origin`."""
        return cls(
            origin=origin,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            stack_trace="".join(traceback.format_tb(exc.__traceback__)),
            extra=extra or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "origin": self.origin,
            "exception_type": self.exception_type,
            "exception_message": self.exception_message,
            "stack_trace": self.stack_trace,
            "extra": self.extra,
        }
