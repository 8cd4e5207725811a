"""
Target candidate detection.

Scores numeric columns for how well they would serve as a prediction target.
Name patterns give the base score, the spread and outlier share of the
column add bonuses on top.
"""
import re
from typing import Optional

from tabprep.models import FeatureMetadata, NumericStatistics
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

TARGET_NAME_PATTERNS = [
    re.compile(r"^(target|label|y|output|prediction|result|outcome|class|category)$", re.IGNORECASE),
    re.compile(r"^(price|cost|amount|value|revenue|sales|profit|loss)$", re.IGNORECASE),
    re.compile(r"^(score|rating|rank|priority)$", re.IGNORECASE),
    re.compile(r"^(status|state|condition|quality)$", re.IGNORECASE),
]

# (pattern, base score), most specific first; anything else scores 10
_SCORE_TIERS = [
    (re.compile(r"^(target|label|y|output)$", re.IGNORECASE), 50),
    (re.compile(r"^(price|cost|amount|value|revenue|sales)$", re.IGNORECASE), 40),
    (re.compile(r"^(score|rating|rank)$", re.IGNORECASE), 30),
]
_DEFAULT_TIER = 10


def _coefficient_of_variation(stats: NumericStatistics) -> float:
    return stats.std / abs(stats.mean or 1)


def is_target_candidate(column_name: str, stats: Optional[NumericStatistics]) -> bool:
    """
    A numeric column qualifies when its name matches a target pattern,
    or when it has any spread at all and is not id-like.
    """
    lower_name = column_name.lower()
    if any(pattern.match(lower_name) for pattern in TARGET_NAME_PATTERNS):
        return True
    if stats is not None and "id" not in lower_name:
        return stats.std > 0 and stats.variance > 0
    return False


def calculate_target_score(column_name: str, stats: NumericStatistics) -> float:
    """Additive 0-100 score: name tier + spread bonus + low-outlier bonus."""
    score = _DEFAULT_TIER
    for pattern, tier in _SCORE_TIERS:
        if pattern.match(column_name):
            score = tier
            break

    if stats.std > 0:
        cv = _coefficient_of_variation(stats)
        if 0.1 < cv < 2:
            score += 30
        elif cv > 0:
            score += 10

    if stats.outliers_percentage < 5:
        score += 20
    elif stats.outliers_percentage < 10:
        score += 10

    return float(min(100, score))


def detect_target_column(metadata: FeatureMetadata) -> Optional[str]:
    """Highest-scoring candidate; ties go to the earlier column."""
    candidates = [
        (name, profile.target_score or 0.0)
        for name, profile in metadata.feature_metadata.items()
        if profile.is_target_candidate
    ]
    if not candidates:
        logger.info("No target candidate found.")
        return None

    best, score = max(candidates, key=lambda item: item[1])
    logger.info(f"Detected target column '{best}' (score {score:.1f})")
    return best
