"""Unit tests for per-horizon aggregation."""

import numpy as np
import pandas as pd
import pytest

from cvts.evaluation.aggregation import OVERALL_LABEL, ResultAggregator, truncate_pairs
from cvts.evaluation.metrics import ts_summary


def _matrix(values):
    values = np.asarray(values, dtype=float)
    return pd.DataFrame(
        values,
        index=pd.Index(range(1, values.shape[0] + 1), name="origin"),
        columns=pd.RangeIndex(1, values.shape[1] + 1, name="horizon"),
    )


class TestTruncatePairs:
    """Tests for the two-step symmetric truncation."""

    def test_drops_tail_actuals_and_matching_predictions(self):
        p, a = truncate_pairs(
            np.array([1.0, 2.0, 3.0, 4.0]), np.array([10.0, 20.0, np.nan, np.nan])
        )
        np.testing.assert_array_equal(p, [1.0, 2.0])
        np.testing.assert_array_equal(a, [10.0, 20.0])

    def test_missing_prediction_truncates_actuals_positionally(self):
        p, a = truncate_pairs(
            np.array([1.0, np.nan, 3.0, 4.0]), np.array([10.0, 20.0, 30.0, np.nan])
        )
        np.testing.assert_array_equal(p, [1.0, 3.0])
        np.testing.assert_array_equal(a, [10.0, 20.0])

    def test_no_pairs(self):
        p, a = truncate_pairs(np.array([np.nan, np.nan]), np.array([1.0, 2.0]))
        assert len(p) == 0 and len(a) == 0


class TestResultAggregator:
    """Tests for ResultAggregator class."""

    def test_one_row_per_horizon_plus_overall(self):
        forecasts = _matrix([[1, 1], [2, 2], [3, 3]])
        actuals = _matrix([[2, 3], [3, 4], [4, np.nan]])
        table = ResultAggregator(ts_summary).aggregate(forecasts, actuals)
        assert list(table.index) == [1, 2, OVERALL_LABEL]
        assert table.index.name == "horizon"
        assert table.loc[1, "ME"] == pytest.approx(1.0)
        assert table.loc[2, "ME"] == pytest.approx(2.0)
        assert table.loc[OVERALL_LABEL, "ME"] == pytest.approx(1.5)

    def test_overall_is_column_mean(self):
        rng = np.random.RandomState(0)
        forecasts = _matrix(rng.normal(size=(10, 4)))
        actuals = _matrix(rng.normal(size=(10, 4)) + 5)
        table = ResultAggregator(ts_summary).aggregate(forecasts, actuals)
        horizon_rows = table.drop(index=OVERALL_LABEL)
        pd.testing.assert_series_equal(
            table.loc[OVERALL_LABEL].astype(float),
            horizon_rows.astype(float).mean(axis=0),
            check_names=False,
        )

    def test_undefined_horizon_reports_nan(self, caplog):
        forecasts = _matrix([[1, np.nan], [2, np.nan], [3, np.nan]])
        actuals = _matrix([[2, 3], [3, 4], [4, 5]])
        with caplog.at_level("WARNING", logger="cvts.evaluation.aggregation"):
            table = ResultAggregator(ts_summary).aggregate(forecasts, actuals)
        assert table.loc[2].isna().all()
        assert table.loc[OVERALL_LABEL, "MAE"] == pytest.approx(table.loc[1, "MAE"])
        assert "horizon 2" in caplog.text

    def test_summary_receives_truncated_pairs(self):
        seen = []

        def spy(predictions, actuals):
            seen.append((list(predictions), list(actuals)))
            return {"n": float(len(predictions))}

        forecasts = _matrix([[1, 1, 1], [2, 2, 2], [3, 3, 3]])
        actuals = _matrix([[5, 6, 7], [6, 7, np.nan], [7, np.nan, np.nan]])
        table = ResultAggregator(spy).aggregate(forecasts, actuals)
        assert seen == [([1, 2, 3], [5, 6, 7]), ([1, 2], [6, 7]), ([1], [7])]
        assert table["n"].tolist() == [3.0, 2.0, 1.0, 2.0]

    def test_non_numeric_fields_are_undefined_overall(self):
        def labelled(predictions, actuals):
            return {"mae": float(np.mean(np.abs(actuals - predictions))), "label": "x"}

        table = ResultAggregator(labelled).aggregate(_matrix([[1, 1]]), _matrix([[2, 3]]))
        assert table.loc[OVERALL_LABEL, "mae"] == pytest.approx(1.5)
        assert pd.isna(table.loc[OVERALL_LABEL, "label"])

    def test_row_count_mismatch(self):
        with pytest.raises(ValueError):
            ResultAggregator(ts_summary).aggregate(_matrix([[1], [2]]), _matrix([[1]]))
