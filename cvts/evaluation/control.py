"""Run configuration for rolling-origin cross-validation."""

from dataclasses import dataclass, field, fields, replace
from numbers import Integral
from typing import Any, Callable, Dict, Mapping, Optional
import logging

from cvts.data.preprocessors import BoxCoxTransformer
from cvts.evaluation.metrics import ts_summary
from cvts.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)

SummaryFunc = Callable[[Any, Any], Mapping[str, float]]


@dataclass(frozen=True)
class CVControl:
    """
    Settings fixed for one cross-validation run.

    Attributes:
        step_size: Spacing between consecutive origins
        max_horizon: Forecast steps ahead of each origin
        min_obs: Training observations before the first origin
        fixed_window: Slide a window of `min_obs` observations if True,
            otherwise expand from the start of the series
        summary_func: ``f(predictions, actuals) -> {metric: value}``
        preprocess: Box-Cox transform each training window before the model
            sees it and back-transform the forecasts
        pp_method: Lambda estimation method used when `preprocess` is True
        lambda_: Fixed transform parameter passed to the model as
            ``lambda_=``; must be None when `preprocess` is True
        transformer: Object with ``estimate_param``, ``forward`` and
            ``inverse`` used when `preprocess` is True
    """
    step_size: int = 1
    max_horizon: int = 1
    min_obs: int = 12
    fixed_window: bool = True
    summary_func: SummaryFunc = ts_summary
    preprocess: bool = False
    pp_method: str = "guerrero"
    lambda_: Optional[float] = None
    transformer: Any = field(default_factory=BoxCoxTransformer, compare=False)

    def validate(self) -> "CVControl":
        """
        Check the settings for consistency.

        Returns:
            Self for method chaining

        Raises:
            ConfigurationError: On invalid or ambiguous settings
        """
        for name in ("step_size", "max_horizon", "min_obs"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, Integral) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
            # numpy integers are stored as plain ints
            object.__setattr__(self, name, int(value))
        if not callable(self.summary_func):
            raise ConfigurationError("summary_func must be callable")
        if self.preprocess:
            if self.lambda_ is not None:
                raise ConfigurationError(
                    "Don't specify a lambda_ parameter when preprocess is True; "
                    "the transform parameter is estimated for each window"
                )
            for attr in ("estimate_param", "forward", "inverse"):
                if not callable(getattr(self.transformer, attr, None)):
                    raise ConfigurationError(f"transformer has no callable '{attr}'")
            methods = getattr(self.transformer, "METHODS", None)
            if methods is not None and self.pp_method not in methods:
                raise ConfigurationError(
                    f"Unknown pp_method: {self.pp_method}. "
                    f"Supported methods are: {list(methods)}"
                )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view of the settings (callables by qualified name)."""
        func = self.summary_func
        return {
            "step_size": self.step_size,
            "max_horizon": self.max_horizon,
            "min_obs": self.min_obs,
            "fixed_window": self.fixed_window,
            "summary_func": f"{func.__module__}:{getattr(func, '__qualname__', repr(func))}",
            "preprocess": self.preprocess,
            "pp_method": self.pp_method,
            "lambda_": self.lambda_,
        }


def ts_control(base: Optional[CVControl] = None, **overrides: Any) -> CVControl:
    """
    Build a validated CVControl from defaults plus keyword overrides.

    Args:
        base: Control to start from (library defaults if None)
        **overrides: Any CVControl field

    Raises:
        ConfigurationError: On unknown field names or invalid settings
    """
    known = {f.name for f in fields(CVControl)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigurationError(f"Unknown control settings: {unknown}")
    control = replace(base or CVControl(), **overrides)
    return control.validate()
