"""
Cleaning stages: value normalisation, missing-value imputation and
outlier treatment. Each function returns new rows and leaves its input alone.
"""
import math
from typing import Any, Dict, List, Optional

from tabprep.core.values import is_missing, parse_dates, to_iso, to_number
from tabprep.models import (
    CategoricalStatistics,
    ColumnProfile,
    Dataset,
    FeatureMetadata,
    NumericStatistics,
)
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

OUTLIER_MARKER = "_outlier_"


# ── cleaning ──────────────────────────────────────────────────────────────────
def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in ("true", "1")


def _strip(value: Any) -> Any:
    if isinstance(value, str):
        return value.replace("\x00", "").strip()
    return value


def _clean_value(value: Any, profile: ColumnProfile) -> Any:
    value = _strip(value)
    if is_missing(value):
        if isinstance(value, str) and profile.type in ("categorical", "text", "id"):
            return value
        return None

    if profile.type == "numeric":
        return to_number(value)
    if profile.type == "boolean":
        return _to_bool(value)
    return value


def _clean_temporal(values: List[Any]) -> List[Optional[str]]:
    return [to_iso(ts) if ts is not None else None for ts in parse_dates(_strip(v) for v in values)]


def clean_data(dataset: Dataset, metadata: FeatureMetadata) -> Dataset:
    """
    Rebuild every row from the profiled columns only: strip NUL bytes and
    whitespace, then coerce numeric / boolean / temporal columns.
    Temporal columns are parsed once per column.
    """
    profiles = metadata.feature_metadata
    temporal = {
        col: _clean_temporal([row.get(col) for row in dataset])
        for col, profile in profiles.items()
        if profile.type == "temporal"
    }
    cleaned = [
        {
            col: temporal[col][i] if col in temporal else _clean_value(row.get(col), profile)
            for col, profile in profiles.items()
        }
        for i, row in enumerate(dataset)
    ]
    logger.info(f"Cleaned {len(cleaned)} rows across {len(profiles)} columns")
    return cleaned


# ── missing values ────────────────────────────────────────────────────────────
def _fill_value(profile: ColumnProfile, strategy: str) -> Any:
    stats = profile.statistics
    if strategy == "mean" and isinstance(stats, NumericStatistics):
        return stats.mean
    if strategy == "median" and isinstance(stats, NumericStatistics):
        return stats.median
    if strategy == "mode" and profile.type == "categorical" and isinstance(stats, CategoricalStatistics):
        return stats.most_frequent or None
    return None


def _default_for(profile: ColumnProfile, numeric_default: Optional[float],
                 categorical_default: Optional[str]) -> Any:
    if profile.type == "numeric":
        return numeric_default
    if profile.type == "categorical":
        return categorical_default
    return None


def _next_present(rows: Dataset, col: str, start: int) -> Any:
    for row in rows[start:]:
        if not is_missing(row.get(col)):
            return row[col]
    return None


def handle_missing_values(
    dataset: Dataset,
    metadata: FeatureMetadata,
    strategy: str = "mean",
    fill_value_numeric: Optional[float] = None,
    fill_value_categorical: Optional[str] = None,
) -> Dataset:
    """
    Fill or drop missing values.

    drop          : remove every row holding a missing value in any column
    mean / median : numeric columns, from the profiled statistics
    mode          : categorical columns, most frequent value
    forward_fill  : carry the last present value down, else the configured default
    interpolate   : numeric midpoint of the surrounding present values, falling
                    back to whichever side exists, then the configured default

    Columns profiled without missing values are never touched.
    """
    if strategy == "drop":
        kept = [row for row in dataset if not any(is_missing(v) for v in row.values())]
        logger.info(f"Dropped {len(dataset) - len(kept)} rows with missing values")
        return kept

    processed = [dict(row) for row in dataset]

    for col, profile in metadata.feature_metadata.items():
        if profile.null_count == 0:
            continue

        default = _default_for(profile, fill_value_numeric, fill_value_categorical)
        fill = _fill_value(profile, strategy)
        if fill is None and strategy not in ("forward_fill", "interpolate"):
            continue

        filled = 0
        last = None
        for i, row in enumerate(processed):
            if not is_missing(row.get(col)):
                last = row[col]
                continue

            value = None
            if strategy == "forward_fill":
                value = last if last is not None else default
            elif strategy == "interpolate" and profile.type == "numeric":
                following = _next_present(processed, col, i + 1)
                if last is not None and following is not None:
                    value = (last + following) / 2
                elif last is not None:
                    value = last
                elif following is not None:
                    value = following
                else:
                    value = default
            elif strategy == "interpolate":
                value = default
            else:
                value = fill

            if value is not None:
                row[col] = value
                filled += 1

        logger.debug(f"Column '{col}': filled {filled} missing values using {strategy}")

    logger.info(f"Missing values handled using: {strategy}")
    return processed


# ── outliers ──────────────────────────────────────────────────────────────────
def _numeric_with_outliers(metadata: FeatureMetadata) -> Dict[str, NumericStatistics]:
    return {
        col: profile.statistics
        for col, profile in metadata.feature_metadata.items()
        if profile.type == "numeric"
        and isinstance(profile.statistics, NumericStatistics)
        and profile.statistics.outliers_count > 0
    }


def handle_outliers(dataset: Dataset, metadata: FeatureMetadata, strategy: str = "cap") -> Dataset:
    """
    Treat values outside the Tukey fences of each numeric column.

    remove    : drop any row that is an outlier in at least one column
    cap       : clamp to the nearer fence
    transform : log1p positive values, only for columns with skewness > 1
    ignore    : no-op
    """
    if strategy == "ignore":
        return [dict(row) for row in dataset]

    processed = [dict(row) for row in dataset]

    for col, stats in _numeric_with_outliers(metadata).items():
        lower, upper = stats.lower_fence, stats.upper_fence

        if strategy == "transform" and stats.skewness <= 1:
            logger.debug(f"Column '{col}': skewness {stats.skewness:.2f}, log transform skipped")
            continue

        for row in processed:
            value = to_number(row.get(col))
            if value is None:
                continue
            if strategy == "remove":
                if value < lower or value > upper:
                    row[f"{OUTLIER_MARKER}{col}"] = True
            elif strategy == "cap":
                if value < lower:
                    row[col] = lower
                elif value > upper:
                    row[col] = upper
            elif strategy == "transform":
                if value > 0:
                    row[col] = math.log1p(value)

    if strategy == "remove":
        kept = [
            row for row in processed
            if not any(k.startswith(OUTLIER_MARKER) and v is True for k, v in row.items())
        ]
        logger.info(f"Removed {len(processed) - len(kept)} outlier rows")
        return kept

    logger.info(f"Outliers handled using: {strategy}")
    return processed
