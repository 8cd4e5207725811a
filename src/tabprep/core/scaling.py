from typing import Dict, Optional, Tuple

from tabprep.core.values import to_number
from tabprep.models import Dataset, FeatureMetadata, NumericStatistics, ScalerParams
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)


def scaler_params(method: Optional[str], stats: NumericStatistics) -> Optional[ScalerParams]:
    """
    Centre and scale for a method, taken from the profiled statistics.
    None when the method is 'none' or the scale would be zero.
    """
    if method == "standard":
        center, scale = stats.mean, stats.std
    elif method == "min-max":
        center, scale = stats.min, stats.max - stats.min
    elif method == "robust":
        center, scale = stats.median, stats.iqr
    else:
        return None
    if scale <= 0:
        return None
    return ScalerParams(method=method, center=center, scale=scale)


def inverse_scale(value: float, params: ScalerParams) -> float:
    return value * params.scale + params.center


def scale_numeric(
    dataset: Dataset,
    metadata: FeatureMetadata,
    overrides: Optional[Dict[str, str]] = None,
) -> Tuple[Dataset, Dict[str, ScalerParams]]:
    """
    Scale profiled numeric columns with their suggested (or overridden) method:

    standard : (x - mean) / std
    min-max  : (x - min) / (max - min)
    robust   : (x - median) / iqr

    Parameters come from the statistics captured before any transformation and
    are returned so the scaling can be reversed with `inverse_scale`.
    Missing values stay missing.
    """
    overrides = overrides or {}
    processed = [dict(row) for row in dataset]
    scalers: Dict[str, ScalerParams] = {}

    for col, profile in metadata.feature_metadata.items():
        if profile.type != "numeric" or not isinstance(profile.statistics, NumericStatistics):
            continue

        method = overrides.get(col, profile.scaling_suggested)
        params = scaler_params(method, profile.statistics)
        if params is None:
            logger.debug(f"Column '{col}': scaling skipped (method={method})")
            continue

        for row in processed:
            value = to_number(row.get(col))
            if value is not None:
                row[col] = (value - params.center) / params.scale
        scalers[col] = params

    logger.info(f"Scaled {len(scalers)} numeric columns")
    return processed, scalers
