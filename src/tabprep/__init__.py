"""
tabprep: profiling, cleaning and feature engineering for in-memory tables.
"""
from tabprep.core.pipeline import preprocess
from tabprep.core.profiler import extract_feature_metadata
from tabprep.core.summary import generate_data_summary
from tabprep.core.target import detect_target_column
from tabprep.models import FeatureMetadata, PreprocessingOptions, PreprocessingResult
from tabprep.utils.exceptions import EmptyInputError, PreprocessingError

__all__ = [
    "preprocess",
    "extract_feature_metadata",
    "generate_data_summary",
    "detect_target_column",
    "FeatureMetadata",
    "PreprocessingOptions",
    "PreprocessingResult",
    "EmptyInputError",
    "PreprocessingError",
]

__version__ = "1.0.0"
