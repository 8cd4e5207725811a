"""
pipeline.py
─────────────────────────────────────────────────────────────────────────────
Runs the full preprocessing pipeline over an in-memory table.

Stages, in order (no stage ever goes back):
  profiling → cleaning → imputing → outlier handling → target detection
  → feature engineering → encoding → scaling → feature selection
  → correlation matrix

Every stage receives the previous stage's rows plus the profile built in the
first stage, and returns new rows. A failing stage aborts the whole run with
PreprocessingError; there is no partial result.
─────────────────────────────────────────────────────────────────────────────
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from tabprep.core.cleaning import clean_data, handle_missing_values, handle_outliers
from tabprep.core.encoding import encode_categorical
from tabprep.core.features import engineer_features
from tabprep.core.profiler import extract_feature_metadata
from tabprep.core.scaling import scale_numeric
from tabprep.core.selection import calculate_correlation_matrix, select_features
from tabprep.core.target import detect_target_column
from tabprep.models import Dataset, PreprocessingOptions, PreprocessingResult
from tabprep.utils.exceptions import AppException, EmptyInputError, InvalidOptionsError, PreprocessingError
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)


def _resolve_options(options: Union[PreprocessingOptions, Dict[str, Any], None]) -> PreprocessingOptions:
    if isinstance(options, PreprocessingOptions):
        return options
    try:
        return PreprocessingOptions.model_validate(options or {})
    except ValidationError as e:
        raise InvalidOptionsError(f"Invalid preprocessing options: {e}") from e


def preprocess(
    dataset: Dataset,
    options: Union[PreprocessingOptions, Dict[str, Any], None] = None,
) -> PreprocessingResult:
    """
    Profile, clean, impute, treat outliers, engineer, encode, scale and
    optionally select features.

    Args:
        dataset : list of row dicts. Never modified.
        options : PreprocessingOptions or an equivalent dict.

    Returns:
        PreprocessingResult with the processed rows, metadata and audit trail.

    Raises:
        EmptyInputError     : no rows, or no columns in the first row.
        InvalidOptionsError : options failed validation.
        PreprocessingError  : any stage failed.
    """
    if not dataset:
        raise EmptyInputError("Input data is empty.")
    if not dataset[0]:
        raise EmptyInputError("The first row has no columns.")

    opts = _resolve_options(options)
    logger.info(
        f"Starting preprocessing: {len(dataset)} rows, missing={opts.handle_missing}, "
        f"outliers={opts.handle_outliers}"
    )

    cleaning_applied: List[str] = []
    transformations: List[str] = []
    warnings: List[str] = []
    errors: List[str] = []
    stage = "profiling"

    try:
        metadata = extract_feature_metadata(dataset)

        stage = "cleaning"
        rows = clean_data(dataset, metadata)
        cleaning_applied.append("Data cleaning completed")

        stage = "imputing"
        rows = handle_missing_values(
            rows,
            metadata,
            opts.handle_missing,
            fill_value_numeric=opts.fill_value_numeric,
            fill_value_categorical=opts.fill_value_categorical,
        )
        cleaning_applied.append(f"Missing values handled using: {opts.handle_missing}")

        stage = "outlier_handling"
        if opts.handle_outliers != "ignore":
            rows = handle_outliers(rows, metadata, opts.handle_outliers)
            cleaning_applied.append(f"Outliers handled using: {opts.handle_outliers}")

        if not rows:
            warnings.append("No rows left after cleaning; downstream stages ran on an empty table")

        stage = "target_detection"
        target_column: Optional[str] = opts.target_column
        if target_column is None and opts.auto_detect_target:
            target_column = detect_target_column(metadata)
            if target_column:
                transformations.append(f"Auto-detected target column: {target_column}")
        if target_column is not None and target_column not in metadata.feature_metadata:
            warnings.append(f"Target column '{target_column}' does not exist in the data")

        stage = "feature_engineering"
        rows, engineered = engineer_features(rows, metadata)
        feature_engineering = ["Feature engineering completed", *engineered]

        stage = "encoding"
        encodings = {}
        if opts.encode_categorical:
            rows, encodings, skipped = encode_categorical(rows, metadata, opts.encoding_overrides)
            transformations.append("Categorical encoding applied")
            warnings.extend(
                f"Column '{col}' has too many categories for one-hot encoding and was left unencoded"
                for col in skipped
            )

        stage = "scaling"
        scalers = {}
        if opts.scale_numeric:
            rows, scalers = scale_numeric(rows, metadata, opts.scaling_overrides)
            transformations.append("Numeric scaling applied")

        stage = "feature_selection"
        importance = None
        if opts.feature_selection:
            # a categorical target is gone once one-hot encoded
            if target_column and rows and target_column in rows[0]:
                rows, selected, importance = select_features(rows, target_column, opts.max_features)
                transformations.append(f"Feature selection applied: {len(selected)} features selected")
            else:
                warnings.append("Feature selection requested without a usable target column; skipped")

        stage = "correlation_matrix"
        correlation_matrix = calculate_correlation_matrix(rows, metadata)

    except AppException:
        raise
    except Exception as e:
        errors.append(str(e))
        logger.error(f"Preprocessing failed during {stage}: {e}")
        raise PreprocessingError(
            f"Preprocessing failed during {stage}: {e}",
            stage=stage,
            warnings=warnings,
            errors=errors,
        ) from e

    logger.info(f"Preprocessing completed: {len(rows)} rows, {len(warnings)} warnings")

    return PreprocessingResult(
        processed_data=rows,
        feature_metadata=metadata,
        transformations_applied=transformations,
        cleaning_applied=cleaning_applied,
        feature_engineering_applied=feature_engineering,
        target_column=target_column,
        feature_importance=importance,
        correlation_matrix=correlation_matrix,
        encodings=encodings,
        scaling_parameters=scalers,
        warnings=warnings,
        errors=errors,
    )
