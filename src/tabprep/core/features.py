"""
Derived features: calendar parts of temporal columns and pairwise
interactions between neighbouring numeric columns.
"""
from typing import List, Tuple

import pandas as pd

from tabprep.core.values import number_or_zero, parse_iso_dates
from tabprep.models import Dataset, FeatureMetadata
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

MAX_INTERACTION_PAIRS = 3


def _date_parts(col: str, ts: pd.Timestamp) -> dict:
    # Sunday = 0, Saturday = 6
    day_of_week = (ts.weekday() + 1) % 7
    return {
        f"{col}_year": ts.year,
        f"{col}_month": ts.month,
        f"{col}_day": ts.day,
        f"{col}_day_of_week": day_of_week,
        f"{col}_is_weekend": 1 if day_of_week in (0, 6) else 0,
    }


def interaction_pairs(metadata: FeatureMetadata) -> List[Tuple[str, str]]:
    """Up to three adjacent pairs of numeric columns, in profiled order."""
    numeric = [col for col, p in metadata.feature_metadata.items() if p.type == "numeric"]
    return [(numeric[i], numeric[i + 1]) for i in range(min(MAX_INTERACTION_PAIRS, len(numeric) - 1))]


def engineer_features(dataset: Dataset, metadata: FeatureMetadata) -> Tuple[Dataset, List[str]]:
    """
    Add `{col}_year/_month/_day/_day_of_week/_is_weekend` for temporal columns and
    `{a}_x_{b}` / `{a}_div_{b}` for numeric pairs.

    Rows whose date does not parse, or whose pair holds a zero operand, simply
    get no new columns. Returns the new rows and a description per feature group.
    """
    processed = [dict(row) for row in dataset]
    applied: List[str] = []

    temporal = [col for col, p in metadata.feature_metadata.items() if p.type == "temporal"]
    for col in temporal:
        derived = 0
        for row, ts in zip(processed, parse_iso_dates(row.get(col) for row in processed)):
            if ts is None:
                continue
            row.update(_date_parts(col, ts))
            derived += 1
        if derived:
            applied.append(f"Extracted year/month/day/day_of_week/is_weekend from '{col}'")
        logger.debug(f"Column '{col}': date parts derived for {derived} rows")

    for left, right in interaction_pairs(metadata):
        for row in processed:
            a = number_or_zero(row.get(left))
            b = number_or_zero(row.get(right))
            if a != 0 and b != 0:
                row[f"{left}_x_{right}"] = a * b
                row[f"{left}_div_{right}"] = a / b
        applied.append(f"Created interaction features '{left}_x_{right}' and '{left}_div_{right}'")

    logger.info(f"Feature engineering produced {len(applied)} feature groups")
    return processed, applied
