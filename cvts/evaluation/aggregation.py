"""Per-horizon accuracy aggregation."""

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

OVERALL_LABEL = "All"


def truncate_pairs(
    predictions: np.ndarray, actuals: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Align one horizon's predictions with its actuals.

    Missing actuals are dropped and predictions are cut to the same length
    by position; then missing predictions are dropped and actuals are cut
    to that length. Missing actuals only occur at the tail, where horizons
    run past the end of the series.
    """
    a = actuals[~np.isnan(actuals)]
    p = predictions[:len(a)]
    p = p[~np.isnan(p)]
    a = a[:len(p)]
    return p, a


class ResultAggregator:
    """Scores forecasts against actuals for every horizon and overall."""

    def __init__(self, summary_func: Callable[[Any, Any], Mapping[str, Any]]):
        self.summary_func = summary_func

    def horizon_metrics(
        self, forecasts: pd.DataFrame, actuals: pd.DataFrame, horizon: int
    ) -> Optional[Dict[str, Any]]:
        """Metrics for one horizon, or None when no (prediction, actual) pair remains."""
        p, a = truncate_pairs(
            forecasts[horizon].to_numpy(dtype=float),
            actuals[horizon].to_numpy(dtype=float),
        )
        if len(p) == 0:
            logger.warning(
                f"No complete (forecast, actual) pairs at horizon {horizon}; "
                f"metrics are undefined"
            )
            return None
        return dict(self.summary_func(p, a))

    def aggregate(self, forecasts: pd.DataFrame, actuals: pd.DataFrame) -> pd.DataFrame:
        """
        Accuracy table with one row per horizon plus an 'All' row.

        Args:
            forecasts: Origins x horizons forecast matrix
            actuals: Origins x horizons actuals matrix for the same origins

        Returns:
            DataFrame indexed by horizon (``1..H`` then ``'All'``) with one
            column per metric. The 'All' row holds the column means of the
            numeric metrics over horizons with defined values.
        """
        if len(forecasts) != len(actuals):
            raise ValueError(
                f"Forecasts have {len(forecasts)} rows but actuals have {len(actuals)}"
            )
        horizons = list(forecasts.columns)

        records: List[Optional[Dict[str, Any]]] = [
            self.horizon_metrics(forecasts, actuals, h) for h in horizons
        ]

        # Undefined horizons are reported with the field set of defined ones
        field_names: List[str] = []
        for record in records:
            if record is not None:
                field_names.extend(k for k in record if k not in field_names)
        rows = [
            record if record is not None else {k: np.nan for k in field_names}
            for record in records
        ]

        if not field_names:
            return pd.DataFrame(
                index=pd.Index(horizons + [OVERALL_LABEL], dtype=object, name="horizon")
            )

        table = pd.DataFrame(rows, columns=field_names)
        table.index = pd.Index(horizons, dtype=object, name="horizon")

        numeric = table.select_dtypes(include=[np.number])
        overall = numeric.mean(axis=0)
        table.loc[OVERALL_LABEL] = overall.reindex(table.columns)
        return table
