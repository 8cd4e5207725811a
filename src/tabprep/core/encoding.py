from typing import Dict, List, Optional, Tuple

from tabprep.core.values import category_key, distinct, is_missing
from tabprep.models import Dataset, EncodingInfo, FeatureMetadata
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

MAX_ONE_HOT_CATEGORIES = 10


def _label_encode(rows: Dataset, col: str, categories: List[str]) -> EncodingInfo:
    mapping = {value: code for code, value in enumerate(categories)}
    for row in rows:
        # unseen and missing both land on 0
        row[col] = mapping.get(category_key(row.get(col)), 0)
    return EncodingInfo(method="label", mapping=mapping)


def _one_hot_encode(rows: Dataset, col: str, categories: List[str]) -> EncodingInfo:
    kept = categories[:MAX_ONE_HOT_CATEGORIES]
    for row in rows:
        current = category_key(row.pop(col, None))
        for value in kept:
            row[f"{col}_{value}"] = 1 if current == value else 0
    return EncodingInfo(method="one-hot", categories=kept)


def encode_categorical(
    dataset: Dataset,
    metadata: FeatureMetadata,
    overrides: Optional[Dict[str, str]] = None,
) -> Tuple[Dataset, Dict[str, EncodingInfo], List[str]]:
    """
    Encode categorical columns according to their suggested strategy,
    or the caller's override.

    label   : integer codes in first-seen order
    one-hot : `{col}_{value}` indicators for up to 10 values, original dropped
    target  : reserved; the column passes through unchanged

    Returns (rows, encodings, skipped_columns).
    """
    overrides = overrides or {}
    processed = [dict(row) for row in dataset]
    encodings: Dict[str, EncodingInfo] = {}
    skipped: List[str] = []

    for col, profile in metadata.feature_metadata.items():
        if profile.type != "categorical":
            continue

        categories = distinct(
            category_key(row.get(col)) for row in processed if not is_missing(row.get(col))
        )
        forced = overrides.get(col)
        strategy = forced or profile.encoding_suggested

        if strategy == "none":
            continue
        if strategy == "label":
            encodings[col] = _label_encode(processed, col, categories)
        elif strategy == "one-hot" and (forced or len(categories) <= MAX_ONE_HOT_CATEGORIES):
            encodings[col] = _one_hot_encode(processed, col, categories)
        else:
            skipped.append(col)
            logger.debug(f"Column '{col}': {len(categories)} categories, left unencoded")
            continue

        logger.debug(f"Column '{col}': {encodings[col].method} encoded ({len(categories)} categories)")

    logger.info(f"Encoded {len(encodings)} categorical columns")
    return processed, encodings, skipped
