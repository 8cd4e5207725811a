import math

import pytest

from tabprep.core.cleaning import clean_data, handle_missing_values, handle_outliers
from tabprep.core.profiler import extract_feature_metadata


def _prepare(rows):
    metadata = extract_feature_metadata(rows)
    return clean_data(rows, metadata), metadata

# --- Cleaning ---

def test_strings_are_stripped_of_nul_and_whitespace():
    rows, _ = _prepare([{"colour": "  red\x00 "}, {"colour": "blue"}])
    assert rows[0]["colour"] == "red"

def test_numeric_coercion():
    rows, metadata = _prepare([{"amount": v} for v in ["1", "2", " 3 ", "4", "abc"]])
    assert metadata.feature_metadata["amount"].type == "numeric"
    assert [r["amount"] for r in rows] == [1.0, 2.0, 3.0, 4.0, None]

def test_boolean_coercion():
    rows, _ = _prepare([{"flag": v} for v in ["true", "FALSE", 1, 0, True]])
    assert [r["flag"] for r in rows] == [True, False, True, False, True]

def test_temporal_coercion():
    rows, _ = _prepare([{"order_date": "2024-03-05"}, {"order_date": "not a date"}])
    assert rows[0]["order_date"] == "2024-03-05T00:00:00.000Z"
    assert rows[1]["order_date"] is None

def test_unprofiled_columns_are_dropped():
    rows, _ = _prepare([{"a": 1}, {"a": 2, "extra": "x"}])
    assert rows[1] == {"a": 2.0}

def test_clean_does_not_mutate_input():
    raw = [{"colour": " red "}, {"colour": "blue"}]
    _prepare(raw)
    assert raw[0]["colour"] == " red "

# --- Missing values ---

def test_drop_removes_rows_with_any_missing():
    rows, metadata = _prepare([{"a": 1, "b": "x"}, {"a": None, "b": "y"}, {"a": 3, "b": ""}])
    result = handle_missing_values(rows, metadata, "drop")
    assert len(result) == 1
    assert len(result) <= len(rows)
    for row in result:
        assert all(v is not None and v != "" for v in row.values())

def test_mean_and_median():
    rows, metadata = _prepare([{"a": v} for v in [1, None, 2, 9]])
    assert handle_missing_values(rows, metadata, "mean")[1]["a"] == pytest.approx(4.0)
    assert handle_missing_values(rows, metadata, "median")[1]["a"] == pytest.approx(2.0)

def test_mean_leaves_categorical_alone():
    rows, metadata = _prepare([{"colour": "red"}, {"colour": None}, {"colour": "blue"}])
    assert handle_missing_values(rows, metadata, "mean")[1]["colour"] is None

def test_mode_fills_categorical():
    rows, metadata = _prepare([{"colour": c} for c in ["x", None, "x", "y"]])
    assert handle_missing_values(rows, metadata, "mode")[1]["colour"] == "x"

def test_forward_fill_with_default():
    rows, metadata = _prepare([{"a": v} for v in [None, 1, None, 3]])
    filled = handle_missing_values(rows, metadata, "forward_fill", fill_value_numeric=0.0)
    assert [r["a"] for r in filled] == [0.0, 1.0, 1.0, 3.0]

def test_forward_fill_without_default_keeps_leading_gap():
    rows, metadata = _prepare([{"a": v} for v in [None, 1, None, 3]])
    filled = handle_missing_values(rows, metadata, "forward_fill")
    assert [r["a"] for r in filled] == [None, 1.0, 1.0, 3.0]

def test_interpolate():
    rows, metadata = _prepare([{"a": v} for v in [None, 4, None, 6, None]])
    filled = handle_missing_values(rows, metadata, "interpolate")
    assert [r["a"] for r in filled] == [4.0, 4.0, 5.0, 6.0, 6.0]

def test_complete_columns_untouched():
    rows, metadata = _prepare([{"a": 1, "b": None}, {"a": 2, "b": 5}])
    filled = handle_missing_values(rows, metadata, "mean")
    assert [r["a"] for r in filled] == [1.0, 2.0]
    assert filled[0]["b"] == 5.0

def test_imputation_returns_new_rows():
    rows, metadata = _prepare([{"a": 1}, {"a": None}, {"a": 3}])
    handle_missing_values(rows, metadata, "mean")
    assert rows[1]["a"] is None

# --- Outliers ---

SKEWED = [1, 2, 3, 4, 5, 6, 7, 8, 9, 100]  # fences [-4.5, 15.5]


def test_cap_clamps_to_fence():
    rows, metadata = _prepare([{"x": v} for v in SKEWED])
    capped = handle_outliers(rows, metadata, "cap")
    assert capped[-1]["x"] == 15.5
    assert capped[0]["x"] == 1.0

def test_cap_is_idempotent():
    rows, metadata = _prepare([{"x": v} for v in SKEWED])
    once = handle_outliers(rows, metadata, "cap")
    twice = handle_outliers(once, metadata, "cap")
    assert once == twice

def test_remove_filters_outlier_rows():
    rows, metadata = _prepare([{"x": v, "z": v % 3} for v in SKEWED])
    kept = handle_outliers(rows, metadata, "remove")
    assert len(kept) == 9
    assert all(not k.startswith("_outlier_") for row in kept for k in row)

def test_transform_logs_skewed_column():
    rows, metadata = _prepare([{"x": v} for v in SKEWED])
    transformed = handle_outliers(rows, metadata, "transform")
    assert transformed[0]["x"] == pytest.approx(math.log1p(1))
    assert transformed[-1]["x"] == pytest.approx(math.log1p(100))

def test_transform_skipped_when_not_skewed():
    values = [-100, 1, 2, 3, 4, 5, 6, 7, 8, 100]
    rows, metadata = _prepare([{"x": v} for v in values])
    assert metadata.feature_metadata["x"].statistics.outliers_count == 2
    transformed = handle_outliers(rows, metadata, "transform")
    assert [r["x"] for r in transformed] == [float(v) for v in values]

def test_ignore_is_noop():
    rows, metadata = _prepare([{"x": v} for v in SKEWED])
    assert handle_outliers(rows, metadata, "ignore") == rows

def test_time_only_values_are_not_dates():
    """A clock time carries no calendar date and must not pick up today's."""
    rows, metadata = _prepare([{"start_time": "09:00"}, {"start_time": "17:30"}])
    assert metadata.feature_metadata["start_time"].type == "temporal"
    assert [r["start_time"] for r in rows] == [None, None]

def test_mixed_date_formats_in_one_column():
    rows, _ = _prepare([{"order_date": v} for v in ["2024-03-05", "2024/03/06", "March 7, 2024", "March 8", None]])
    assert [r["order_date"] for r in rows] == [
        "2024-03-05T00:00:00.000Z",
        "2024-03-06T00:00:00.000Z",
        "2024-03-07T00:00:00.000Z",
        None,
        None,
    ]
