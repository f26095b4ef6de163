"""Point-forecast accuracy measures."""

from typing import Dict, Sequence
import logging

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

logger = logging.getLogger(__name__)


class MetricsCalculator:
    """Calculate accuracy measures for point forecasts."""

    FORECAST_METRICS = ("ME", "RMSE", "MAE", "MPE", "MAPE")

    def calculate_forecast_metrics(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
    ) -> Dict[str, float]:
        """
        Calculate test-set accuracy of point forecasts.

        Errors are ``actual - forecast``. Percentage measures are not
        finite when any actual is zero.

        Args:
            y_true: Actual values
            y_pred: Forecast values

        Returns:
            Dictionary with ME, RMSE, MAE, MPE and MAPE
        """
        y_true = np.asarray(y_true, dtype=float)
        y_pred = np.asarray(y_pred, dtype=float)
        if y_true.shape != y_pred.shape:
            raise ValueError(
                f"Shape mismatch: actuals {y_true.shape} vs predictions {y_pred.shape}"
            )
        if len(y_true) == 0:
            raise ValueError("Cannot compute accuracy of an empty forecast")

        errors = y_true - y_pred
        metrics: Dict[str, float] = {}

        metrics["ME"] = float(np.mean(errors))
        metrics["RMSE"] = float(np.sqrt(mean_squared_error(y_true, y_pred)))
        metrics["MAE"] = float(mean_absolute_error(y_true, y_pred))

        # A zero actual makes the percentage error infinite (NaN when the error is also zero)
        with np.errstate(divide="ignore", invalid="ignore"):
            pct = errors / y_true * 100
            metrics["MPE"] = float(np.mean(pct))
            metrics["MAPE"] = float(np.mean(np.abs(pct)))

        return metrics


_calculator = MetricsCalculator()


def ts_summary(predictions: Sequence[float], actuals: Sequence[float]) -> Dict[str, float]:
    """Default summary function: ME, RMSE, MAE, MPE and MAPE of the forecasts."""
    return _calculator.calculate_forecast_metrics(actuals, predictions)
