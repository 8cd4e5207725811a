"""
profiler.py
─────────────────────────────────────────────────────────────────────────────
Column type inference and per-column statistics.

Key features:
 - Semantic type per column (numeric / categorical / temporal / boolean /
   text / id), decided once from the column name and its non-missing values
 - Numeric, categorical and temporal statistics as tagged models
 - Advisory encoding / scaling suggestions consumed by later stages
 - Dataset quality score and ML readiness verdict
─────────────────────────────────────────────────────────────────────────────
"""

import math
import numbers
import re
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from tabprep.core.target import calculate_target_score, is_target_candidate
from tabprep.core.values import distinct, is_missing, parse_dates, to_iso, to_number
from tabprep.models import (
    CategoricalStatistics,
    ColumnProfile,
    Dataset,
    FeatureMetadata,
    NumericStatistics,
    TemporalStatistics,
    TopValue,
)
from tabprep.utils.exceptions import EmptyInputError
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

_ID_NAME = re.compile(r"id|_id|id$", re.IGNORECASE)
_TEMPORAL_NAME = re.compile(r"date|time|timestamp", re.IGNORECASE)

TYPE_THRESHOLD = 0.8
TEXT_MIN_AVG_LENGTH = 50
DTYPE_SAMPLE_SIZE = 100
SAMPLE_VALUES = 5
MAX_ONE_HOT_CATEGORIES = 10
HIGH_CARDINALITY = 50


# ── type inference ────────────────────────────────────────────────────────────
def _is_boolean_literal(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, str):
        return value.strip().lower() in ("true", "false")
    return isinstance(value, numbers.Real) and value in (0, 1)


def detect_column_type(values: List[Any], column_name: str) -> str:
    """First match wins: id name, temporal name, boolean, numeric, text, categorical."""
    if _ID_NAME.search(column_name):
        return "id"
    if _TEMPORAL_NAME.search(column_name):
        return "temporal"
    if not values:
        return "categorical"

    total = len(values)
    if sum(1 for v in values if _is_boolean_literal(v)) / total >= TYPE_THRESHOLD:
        return "boolean"
    if sum(1 for v in values if to_number(v) is not None) / total >= TYPE_THRESHOLD:
        return "numeric"
    if sum(len(str(v)) for v in values) / total > TEXT_MIN_AVG_LENGTH:
        return "text"
    return "categorical"


def detect_data_type(values: List[Any]) -> str:
    """Raw representation of the first values: number, boolean, date or string."""
    sample = values[:DTYPE_SAMPLE_SIZE]
    if any(isinstance(v, numbers.Real) and not isinstance(v, bool) for v in sample):
        return "number"
    if any(isinstance(v, bool) for v in sample):
        return "boolean"
    if any(ts is not None for ts in parse_dates(sample)):
        return "date"
    return "string"


# ── statistics ────────────────────────────────────────────────────────────────
def _median(sorted_values: np.ndarray) -> float:
    n = len(sorted_values)
    mid = n // 2
    if n % 2 == 0:
        return float((sorted_values[mid - 1] + sorted_values[mid]) / 2)
    return float(sorted_values[mid])


def calculate_numeric_statistics(values: List[float]) -> NumericStatistics:
    """
    Order statistics use nearest rank (sorted[floor(n*q)]); variance is the
    population variance. Skewness/kurtosis fall back to 0 for tiny samples
    and constant columns.
    """
    if not values:
        return NumericStatistics()

    arr = np.sort(np.asarray(values, dtype=float))
    n = len(arr)

    mean = float(arr.mean())
    median = _median(arr)
    variance = float(arr.var())
    std = math.sqrt(variance)

    q25 = float(arr[int(math.floor(n * 0.25))])
    q75 = float(arr[int(math.floor(n * 0.75))])
    iqr = q75 - q25
    lower, upper = q25 - 1.5 * iqr, q75 + 1.5 * iqr
    outliers = int(np.count_nonzero((arr < lower) | (arr > upper)))

    skewness = 0.0
    kurtosis = 0.0
    if std > 0:
        z = (arr - mean) / std
        if n > 2:
            skewness = float(n / ((n - 1) * (n - 2)) * np.sum(z ** 3))
        if n > 3:
            kurtosis = float(
                n * (n + 1) / ((n - 1) * (n - 2) * (n - 3)) * np.sum(z ** 4)
                - 3 * (n - 1) ** 2 / ((n - 2) * (n - 3))
            )

    if abs(skewness) > 1:
        distribution = "skewed"
    elif abs(kurtosis) < 0.5:
        distribution = "uniform"
    else:
        distribution = "normal"

    return NumericStatistics(
        min=float(arr[0]),
        max=float(arr[-1]),
        mean=mean,
        median=median,
        std=std,
        variance=variance,
        q25=q25,
        q50=median,
        q75=q75,
        iqr=iqr,
        skewness=skewness,
        kurtosis=kurtosis,
        outliers_count=outliers,
        outliers_percentage=outliers / n * 100,
        zero_count=int(np.count_nonzero(arr == 0)),
        negative_count=int(np.count_nonzero(arr < 0)),
        distribution_type=distribution,
    )


def calculate_categorical_statistics(values: List[Any]) -> CategoricalStatistics:
    counts = pd.Series([str(v) for v in values], dtype=object).value_counts(sort=False)
    if counts.empty:
        return CategoricalStatistics()

    total = int(counts.sum())
    # stable sort keeps first-seen order among equal counts
    ranked = counts.sort_values(ascending=False, kind="stable")
    probabilities = counts.to_numpy(dtype=float) / total
    entropy = float(-np.sum(probabilities * np.log2(probabilities)))

    return CategoricalStatistics(
        value_counts={str(k): int(v) for k, v in counts.items()},
        top_values=[
            TopValue(value=str(k), count=int(v), percentage=v / total * 100)
            for k, v in ranked.head(10).items()
        ],
        entropy=entropy,
        cardinality=len(counts),
        most_frequent=str(ranked.index[0]),
        least_frequent=str(ranked.index[-1]),
    )


def _infer_frequency(range_days: int, count: int) -> str:
    if range_days <= 0:
        return "irregular"
    avg_gap = range_days / count
    if 0.9 <= avg_gap <= 1.1:
        return "daily"
    if 6.5 <= avg_gap <= 7.5:
        return "weekly"
    if 28 <= avg_gap <= 31:
        return "monthly"
    if 360 <= avg_gap <= 370:
        return "yearly"
    return "irregular"


def calculate_temporal_statistics(values: List[Any]) -> TemporalStatistics:
    dates = sorted(ts for ts in parse_dates(values) if ts is not None)
    if not dates:
        return TemporalStatistics()

    first, last = dates[0], dates[-1]
    range_days = int(math.ceil((last - first).total_seconds() / 86400))
    has_time = any(d.hour or d.minute or d.second for d in dates)

    return TemporalStatistics(
        min_date=to_iso(first),
        max_date=to_iso(last),
        date_range_days=range_days,
        has_time_component=has_time,
        frequency=_infer_frequency(range_days, len(dates)),
        gaps_detected=0,
    )


# ── secondary classification & suggestions ────────────────────────────────────
def _numeric_feature_type(values: List[float]) -> str:
    if not values:
        return "continuous"
    unique_count = len(set(values))
    if unique_count / len(values) > 0.9:
        return "continuous"
    integers = sum(1 for v in values if float(v).is_integer())
    if integers / len(values) > 0.8 and unique_count < 50:
        return "discrete"
    return "continuous"


def _suggest_scaling(stats: NumericStatistics) -> str:
    if stats.std <= 0:
        return "none"
    cv = stats.std / abs(stats.mean or 1)
    if cv > 1:
        return "robust"
    if stats.min < 0 or stats.max > 100:
        return "standard"
    return "min-max"


def _suggest_encoding(unique_count: int) -> str:
    if unique_count < 2:
        return "label"
    if unique_count <= MAX_ONE_HOT_CATEGORIES:
        return "one-hot"
    return "target"


def _profile_column(name: str, raw: List[Any], row_count: int) -> ColumnProfile:
    values = [v for v in raw if not is_missing(v)]
    uniques = distinct(values)
    null_count = row_count - len(values)
    column_type = detect_column_type(values, name)

    fields: Dict[str, Any] = {}
    if column_type == "numeric":
        numeric_values = [n for n in (to_number(v) for v in values) if n is not None]
        stats = calculate_numeric_statistics(numeric_values)
        candidate = is_target_candidate(name, stats)
        fields.update(
            statistics=stats,
            feature_type=_numeric_feature_type(numeric_values),
            scaling_suggested=_suggest_scaling(stats),
            is_target_candidate=candidate,
            target_score=calculate_target_score(name, stats) if candidate else None,
        )
    elif column_type == "categorical":
        fields.update(
            statistics=calculate_categorical_statistics(values),
            feature_type="ordinal" if len(uniques) <= MAX_ONE_HOT_CATEGORIES else "nominal",
            encoding_suggested=_suggest_encoding(len(uniques)),
        )
    elif column_type == "temporal":
        fields.update(statistics=calculate_temporal_statistics(values), feature_type="datetime")

    logger.debug(f"Column '{name}': type={column_type}, nulls={null_count}, unique={len(uniques)}")

    return ColumnProfile(
        name=name,
        type=column_type,
        dtype=detect_data_type(values),
        null_count=null_count,
        null_percentage=null_count / row_count * 100,
        unique_count=len(uniques),
        unique_percentage=len(uniques) / row_count * 100,
        sample_values=uniques[:SAMPLE_VALUES],
        **fields,
    )


def _readiness(score: float, numeric: int, categorical: int) -> str:
    if score < 50:
        return "not_suitable"
    if score < 70:
        return "needs_cleaning"
    if numeric == 0 and categorical == 0:
        return "needs_engineering"
    return "ready"


# ── PUBLIC ENTRY POINT ────────────────────────────────────────────────────────
def extract_feature_metadata(dataset: Dataset) -> FeatureMetadata:
    """
    Profile every column of the first row.

    Args:
        dataset : list of row dicts; must contain at least one row with one column.

    Returns:
        FeatureMetadata with one ColumnProfile per column.

    Raises:
        EmptyInputError when there are no rows or the first row has no columns.
    """
    if not dataset:
        raise EmptyInputError("Cannot extract metadata from empty data.")
    columns = list(dataset[0].keys())
    if not columns:
        raise EmptyInputError("The first row has no columns.")

    row_count = len(dataset)
    logger.info(f"Profiling {len(columns)} columns over {row_count} rows")

    profiles: Dict[str, ColumnProfile] = {}
    recommendations: List[str] = []
    quality_score = 100.0

    for col in columns:
        profile = _profile_column(col, [row.get(col) for row in dataset], row_count)
        profiles[col] = profile

        if profile.null_percentage > 50:
            quality_score -= 20
            recommendations.append(f'Column "{col}" has {profile.null_percentage:.1f}% missing values')
        if isinstance(profile.statistics, NumericStatistics) and profile.statistics.outliers_percentage > 10:
            quality_score -= 10
            recommendations.append(
                f'Column "{col}" has {profile.statistics.outliers_percentage:.1f}% outliers'
            )
        if profile.unique_count == 1 and row_count > 1:
            recommendations.append(f'Column "{col}" is constant and carries no information')
        if profile.type == "categorical" and profile.unique_count > HIGH_CARDINALITY:
            recommendations.append(
                f'Column "{col}" has high cardinality ({profile.unique_count} values); consider grouping rare values'
            )
        if profile.type == "id":
            recommendations.append(f'Column "{col}" looks like an identifier and is excluded from modelling')

    def count(column_type: str) -> int:
        return sum(1 for p in profiles.values() if p.type == column_type)

    numeric, categorical = count("numeric"), count("categorical")
    quality_score = max(0.0, quality_score)
    readiness = _readiness(quality_score, numeric, categorical)

    logger.info(f"Profiling done. Quality score: {quality_score:.1f}/100, readiness: {readiness}")

    return FeatureMetadata(
        total_features=len(columns),
        numeric_features=numeric,
        categorical_features=categorical,
        temporal_features=count("temporal"),
        boolean_features=count("boolean"),
        text_features=count("text"),
        id_features=count("id"),
        target_features=sum(1 for p in profiles.values() if p.is_target_candidate),
        feature_metadata=profiles,
        data_quality_score=quality_score,
        preprocessing_recommendations=recommendations,
        ml_readiness=readiness,
    )
