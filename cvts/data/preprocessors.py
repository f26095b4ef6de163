"""Variance-stabilising transforms applied around each model call."""

from typing import Any, Union
import logging

import numpy as np
from scipy.optimize import minimize_scalar

from cvts.data.structs import TimeSeries

logger = logging.getLogger(__name__)

ArrayOrSeries = Union[np.ndarray, TimeSeries]


def _values(x: Any) -> np.ndarray:
    if isinstance(x, TimeSeries):
        return x.values
    return np.asarray(x, dtype=float)


def _rewrap(template: Any, values: np.ndarray) -> ArrayOrSeries:
    if isinstance(template, TimeSeries):
        return template.with_values(values)
    return values


class BoxCoxTransformer:
    """
    Box-Cox power transform with per-window parameter estimation.

    Uses the signed-power form ``(sign(x) * |x|^lambda - 1) / lambda`` so
    that negative observations survive positive lambdas, with ``log`` at
    ``lambda == 0``.
    """

    METHODS = ("guerrero", "loglik")

    def __init__(self, lower: float = -1.0, upper: float = 2.0, nonseasonal_length: int = 2):
        """
        Initialize BoxCoxTransformer.

        Args:
            lower: Lower bound of the lambda search interval
            upper: Upper bound of the lambda search interval
            nonseasonal_length: Subseries length used by Guerrero's method
                when the series has no seasonal period
        """
        self.lower = lower
        self.upper = upper
        self.nonseasonal_length = nonseasonal_length

    def estimate_param(self, window: ArrayOrSeries, method: str = "guerrero") -> float:
        """
        Estimate lambda from a training window.

        Args:
            window: Training observations
            method: 'guerrero' or 'loglik'

        Returns:
            Estimated lambda

        Raises:
            ValueError: If method is unknown, or 'loglik' is used on
                non-positive data
        """
        if method not in self.METHODS:
            raise ValueError(
                f"Unknown method: {method}. Supported methods are: {list(self.METHODS)}"
            )
        x = _values(window)
        x = x[~np.isnan(x)]
        frequency = window.frequency if isinstance(window, TimeSeries) else 1

        lower = self.lower
        if np.any(x <= 0):
            lower = max(lower, 0.0)
        if len(x) <= 2 * frequency:
            return 1.0

        if method == "guerrero":
            return self._guerrero(x, frequency, lower)
        return self._loglik(x, frequency, lower)

    def forward(self, window: ArrayOrSeries, param: float) -> ArrayOrSeries:
        """Apply the transform with lambda `param`."""
        x = _values(window).copy()
        if param < 0:
            x[x < 0] = np.nan
        if param == 0:
            with np.errstate(divide="ignore", invalid="ignore"):
                out = np.log(x)
        else:
            out = (np.sign(x) * np.abs(x) ** param - 1) / param
        return _rewrap(window, out)

    def inverse(self, values: ArrayOrSeries, param: float) -> ArrayOrSeries:
        """Reverse the transform with lambda `param`."""
        x = _values(values).copy()
        if param < 0:
            x[x > -1 / param] = np.nan
        if param == 0:
            out = np.exp(x)
        else:
            xx = x * param + 1
            out = np.sign(xx) * np.abs(xx) ** (1 / param)
        return _rewrap(values, out)

    def _guerrero(self, x: np.ndarray, frequency: int, lower: float) -> float:
        """Minimise the coefficient of variation of subseries sd / mean^(1 - lambda)."""
        period = int(round(max(self.nonseasonal_length, frequency)))
        if len(x) <= 2 * period:
            return 1.0
        n_subseries = len(x) // period
        tail = x[len(x) - n_subseries * period:]
        # One column per subseries
        blocks = tail.reshape(n_subseries, period).T
        means = blocks.mean(axis=0)
        sds = blocks.std(axis=0, ddof=1)

        def cv(lam: float) -> float:
            with np.errstate(divide="ignore", invalid="ignore"):
                ratio = sds / means ** (1 - lam)
            ratio = ratio[np.isfinite(ratio)]
            if len(ratio) < 2 or ratio.mean() == 0:
                return np.inf
            return float(ratio.std(ddof=1) / ratio.mean())

        result = minimize_scalar(cv, bounds=(lower, self.upper), method="bounded")
        logger.debug(f"Guerrero lambda={result.x:.4f} (cv={result.fun:.4f})")
        return float(result.x)

    def _loglik(self, x: np.ndarray, frequency: int, lower: float) -> float:
        """Grid search the profile log-likelihood of a trend (+ season) regression."""
        if np.any(x <= 0):
            raise ValueError("Box-Cox log-likelihood requires strictly positive data")

        n = len(x)
        trend = np.arange(1, n + 1, dtype=float)
        columns = [np.ones(n), trend]
        if frequency > 1:
            season = np.arange(n) % frequency
            columns.extend((season == s).astype(float) for s in range(1, frequency))
        design = np.column_stack(columns)

        logx = np.log(x)
        xdot = np.exp(logx.mean())
        lambdas = np.arange(lower, self.upper + 1e-9, 0.05)
        loglik = np.empty(len(lambdas))
        for k, lam in enumerate(lambdas):
            if abs(lam) > 0.02:
                xt = (x ** lam - 1) / lam
            else:
                # Series expansion around lambda = 0
                ll = lam * logx
                xt = logx * (1 + ll / 2 * (1 + ll / 3 * (1 + ll / 4)))
            target = xt / xdot ** (lam - 1)
            coef, *_ = np.linalg.lstsq(design, target, rcond=None)
            resid = target - design @ coef
            loglik[k] = -n / 2 * np.log(np.sum(resid ** 2))

        best = float(lambdas[int(np.argmax(loglik))])
        logger.debug(f"Log-likelihood lambda={best:.2f}")
        return best
