"""
Correlation-based feature ranking and the numeric correlation matrix.
"""
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from tabprep.core.values import number_or_zero
from tabprep.models import Dataset, FeatureMetadata
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_FEATURES = 20


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """
    (nΣxy - ΣxΣy) / sqrt((nΣx² - (Σx)²)(nΣy² - (Σy)²)); 0 when undefined.
    """
    if len(x) != len(y) or len(x) == 0:
        return 0.0
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    n = len(xs)

    sum_x, sum_y = xs.sum(), ys.sum()
    numerator = n * np.dot(xs, ys) - sum_x * sum_y
    denominator_sq = (n * np.dot(xs, xs) - sum_x ** 2) * (n * np.dot(ys, ys) - sum_y ** 2)
    if denominator_sq <= 0:
        return 0.0
    return float(numerator / math.sqrt(denominator_sq))


def _column(dataset: Dataset, col: str) -> List[float]:
    return [number_or_zero(row.get(col)) for row in dataset]


def select_features(
    dataset: Dataset,
    target_column: str,
    max_features: Optional[int] = None,
) -> Tuple[Dataset, List[str], Dict[str, float]]:
    """
    Rank every other column of the first row by |pearson r| against the target
    (non-numeric values count as 0) and keep the target plus the top N.

    Returns (rows, selected_features, importance).
    """
    if not dataset or target_column not in dataset[0]:
        logger.warning(f"Target column '{target_column}' not found, feature selection skipped")
        return [dict(row) for row in dataset], list(dataset[0].keys()) if dataset else [], {}

    target = _column(dataset, target_column)
    features = [col for col in dataset[0] if col != target_column]
    importance = {col: abs(pearson_correlation(_column(dataset, col), target)) for col in features}

    ranked = sorted(importance, key=importance.get, reverse=True)
    selected = ranked[: max_features or min(DEFAULT_MAX_FEATURES, len(ranked))]

    filtered = []
    for row in dataset:
        kept = {target_column: row.get(target_column)}
        kept.update({col: row[col] for col in selected if col in row})
        filtered.append(kept)

    logger.info(f"Selected {len(selected)} of {len(features)} features against '{target_column}'")
    return filtered, selected, importance


def calculate_correlation_matrix(dataset: Dataset, metadata: FeatureMetadata) -> Dict[str, Dict[str, float]]:
    """Pearson r for every pair of profiled numeric columns; diagonal is 1."""
    numeric = [col for col, p in metadata.feature_metadata.items() if p.type == "numeric"]
    columns = {col: _column(dataset, col) for col in numeric}
    matrix: Dict[str, Dict[str, float]] = {col: {} for col in numeric}

    for i, left in enumerate(numeric):
        matrix[left][left] = 1.0
        for right in numeric[i + 1:]:
            r = pearson_correlation(columns[left], columns[right])
            matrix[left][right] = r
            matrix[right][left] = r

    return matrix
