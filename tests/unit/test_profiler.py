import pandas as pd
import pytest

from tabprep.core.profiler import (
    calculate_categorical_statistics,
    calculate_numeric_statistics,
    calculate_temporal_statistics,
    detect_column_type,
    detect_data_type,
    extract_feature_metadata,
)
from tabprep.core.values import parse_date, parse_dates
from tabprep.models import CategoricalStatistics, NumericStatistics, TemporalStatistics
from tabprep.utils.exceptions import EmptyInputError

# --- Type inference ---

def test_id_name_wins_over_values():
    assert detect_column_type([1, 2, 3], "user_id") == "id"
    assert detect_column_type(["a", "b"], "ID") == "id"

def test_temporal_name():
    assert detect_column_type(["2024-01-01"], "order_date") == "temporal"
    assert detect_column_type([1, 2], "timestamp") == "temporal"

def test_boolean_literals():
    assert detect_column_type(["true", "false", "TRUE", "False"], "flag") == "boolean"
    assert detect_column_type([1, 0, 1, 0, 1], "flag") == "boolean"
    assert detect_column_type([True, False], "flag") == "boolean"

def test_numeric_threshold_is_inclusive():
    """Four numeric values out of five is exactly 80%."""
    assert detect_column_type(["1", "2", "3", "4", "abc"], "amount") == "numeric"
    assert detect_column_type(["1", "2", "3", "x", "abc"], "amount") == "categorical"

def test_text_and_categorical():
    long_text = "x" * 60
    assert detect_column_type([long_text, long_text], "notes") == "text"
    assert detect_column_type(["red", "blue", "red"], "colour") == "categorical"

def test_no_values_defaults_to_categorical():
    assert detect_column_type([], "empty") == "categorical"

def test_detect_data_type():
    assert detect_data_type([1, "a"]) == "number"
    assert detect_data_type([True, False]) == "boolean"
    assert detect_data_type(["2024-01-01", "2024-02-01"]) == "date"
    assert detect_data_type(["apple", "pear"]) == "string"

# --- Numeric statistics ---

def test_numeric_statistics_one_to_ten():
    stats = calculate_numeric_statistics([float(v) for v in range(1, 11)])
    assert stats.mean == 5.5
    assert stats.median == 5.5
    assert stats.q50 == 5.5
    assert stats.q25 == 3
    assert stats.q75 == 8
    assert stats.iqr == 5
    assert stats.min == 1
    assert stats.max == 10
    assert stats.outliers_count == 0

def test_numeric_statistics_outliers_and_counts():
    stats = calculate_numeric_statistics([0, 1, 2, 3, 4, 5, 6, 7, 8, -1, 100])
    assert stats.outliers_count == 1
    assert stats.outliers_percentage == pytest.approx(100 / 11)
    assert stats.zero_count == 1
    assert stats.negative_count == 1
    assert stats.skewness > 1
    assert stats.distribution_type == "skewed"

def test_constant_column_has_zero_moments():
    stats = calculate_numeric_statistics([5.0, 5.0, 5.0, 5.0])
    assert stats.std == 0
    assert stats.skewness == 0
    assert stats.kurtosis == 0
    assert stats.distribution_type == "uniform"

def test_small_samples_have_zero_moments():
    stats = calculate_numeric_statistics([1.0, 2.0])
    assert stats.skewness == 0
    assert stats.kurtosis == 0

def test_empty_numeric_statistics():
    stats = calculate_numeric_statistics([])
    assert stats.mean == 0
    assert stats.outliers_count == 0

# --- Categorical statistics ---

def test_categorical_statistics():
    stats = calculate_categorical_statistics(["A", "B", "A", "C"])
    assert stats.value_counts == {"A": 2, "B": 1, "C": 1}
    assert stats.cardinality == 3
    assert stats.entropy == pytest.approx(1.5)
    assert stats.most_frequent == "A"
    assert stats.least_frequent == "C"
    assert stats.top_values[0].value == "A"
    assert stats.top_values[0].percentage == pytest.approx(50.0)

def test_top_values_capped_at_ten():
    stats = calculate_categorical_statistics([f"v{i}" for i in range(15)])
    assert len(stats.top_values) == 10
    assert stats.cardinality == 15

# --- Temporal statistics ---

def test_temporal_statistics_daily():
    dates = [f"2024-01-{day:02d}" for day in range(1, 12)]
    stats = calculate_temporal_statistics(dates)
    assert stats.min_date == "2024-01-01T00:00:00.000Z"
    assert stats.max_date == "2024-01-11T00:00:00.000Z"
    assert stats.date_range_days == 10
    assert stats.has_time_component is False
    assert stats.frequency == "daily"
    assert stats.gaps_detected == 0

def test_temporal_statistics_time_component():
    stats = calculate_temporal_statistics(["2024-01-01 10:30:00", "2024-01-02"])
    assert stats.has_time_component is True

def test_temporal_statistics_unparseable():
    stats = calculate_temporal_statistics(["nope", "still nope"])
    assert stats.min_date == ""
    assert stats.date_range_days == 0

# --- Metadata ---

def test_one_profile_per_first_row_column():
    rows = [
        {"a": 1, "b": "x", "c": None},
        {"a": 2, "b": None, "c": None},
        {"a": None, "b": "y", "c": "z"},
    ]
    metadata = extract_feature_metadata(rows)
    assert list(metadata.feature_metadata) == ["a", "b", "c"]
    assert metadata.total_features == 3
    for profile in metadata.feature_metadata.values():
        non_null = (len(rows) - profile.null_count) / len(rows) * 100
        assert profile.null_percentage + non_null == pytest.approx(100.0)

def test_statistics_variant_matches_type():
    rows = [
        {"amount": 1, "colour": "red", "order_date": "2024-01-01", "flag": True, "row_id": 1},
        {"amount": 2, "colour": "blue", "order_date": "2024-01-02", "flag": False, "row_id": 2},
    ]
    profiles = extract_feature_metadata(rows).feature_metadata
    assert isinstance(profiles["amount"].statistics, NumericStatistics)
    assert isinstance(profiles["colour"].statistics, CategoricalStatistics)
    assert isinstance(profiles["order_date"].statistics, TemporalStatistics)
    assert profiles["flag"].type == "boolean"
    assert profiles["flag"].statistics is None
    assert profiles["row_id"].type == "id"
    assert profiles["row_id"].statistics is None
    assert profiles["order_date"].feature_type == "datetime"

def test_sample_values_are_distinct_and_capped():
    rows = [{"colour": c} for c in ["a", "b", "a", "c", "d", "e", "f", "g"]]
    profile = extract_feature_metadata(rows).feature_metadata["colour"]
    assert profile.sample_values == ["a", "b", "c", "d", "e"]
    assert profile.unique_count == 7

def test_suggestions():
    rows = [{"small": v, "wide": v * 1000, "skewed": s, "colour": c}
            for v, s, c in zip([1, 2, 3, 4], [1, 1, 1, 50], ["a", "b", "a", "b"])]
    profiles = extract_feature_metadata(rows).feature_metadata
    assert profiles["small"].scaling_suggested == "min-max"
    assert profiles["wide"].scaling_suggested == "standard"
    assert profiles["skewed"].scaling_suggested == "robust"
    assert profiles["colour"].encoding_suggested == "one-hot"

def test_high_cardinality_suggests_target_encoding():
    rows = [{"city": f"c{i}"} for i in range(12)]
    profile = extract_feature_metadata(rows).feature_metadata["city"]
    assert profile.encoding_suggested == "target"
    assert profile.feature_type == "nominal"

def test_profiles_are_read_only():
    profile = extract_feature_metadata([{"a": 1}, {"a": 2}]).feature_metadata["a"]
    with pytest.raises(Exception):
        profile.type = "categorical"

# --- Quality score ---

def test_quality_score_missing_penalty():
    rows = [{"a": 1, "b": None}, {"a": 2, "b": None}, {"a": 3, "b": "x"}]
    metadata = extract_feature_metadata(rows)
    assert metadata.data_quality_score == 80
    assert metadata.ml_readiness == "ready"
    assert any('"b"' in rec for rec in metadata.preprocessing_recommendations)

def test_quality_score_outlier_penalty():
    """Two outliers in ten rows is 20%, above the 10% threshold."""
    rows = [{"x": v} for v in [1, 2, 3, 4, 5, 6, 7, 8, 100, 200]]
    metadata = extract_feature_metadata(rows)
    assert metadata.data_quality_score == 90
    assert any("outliers" in rec for rec in metadata.preprocessing_recommendations)

@pytest.mark.parametrize("empty_columns, readiness", [(2, "needs_cleaning"), (3, "not_suitable")])
def test_readiness_thresholds(empty_columns, readiness):
    rows = []
    for i in range(3):
        row = {"a": i}
        for c in range(empty_columns):
            row[f"e{c}"] = "x" if i == 0 else None
        rows.append(row)
    assert extract_feature_metadata(rows).ml_readiness == readiness

def test_needs_engineering_without_numeric_or_categorical():
    metadata = extract_feature_metadata([{"flag": True}, {"flag": False}])
    assert metadata.ml_readiness == "needs_engineering"

def test_empty_input_raises():
    with pytest.raises(EmptyInputError):
        extract_feature_metadata([])
    with pytest.raises(EmptyInputError):
        extract_feature_metadata([{}])

def test_temporal_statistics_ignore_clock_times():
    stats = calculate_temporal_statistics(["09:00", "17:30"])
    assert stats.min_date == ""
    assert stats.max_date == ""

def test_date_parsing_helpers():
    assert parse_date("09:00") is None
    assert parse_date("now") is None
    assert parse_date("2024-01-15T10:00:00+02:00") == pd.Timestamp("2024-01-15 08:00:00")
    assert parse_date(0) == pd.Timestamp("1970-01-01")
    assert parse_dates(["2024-01-01", "17:30", None]) == [pd.Timestamp("2024-01-01"), None, None]
