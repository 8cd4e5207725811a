from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

# A row maps column name -> scalar (int, float, str, bool or None).
Row = Dict[str, Any]
Dataset = List[Row]

ColumnType = Literal["numeric", "categorical", "temporal", "boolean", "text", "id"]
DataType = Literal["number", "string", "boolean", "date"]
FeatureType = Literal["continuous", "discrete", "ordinal", "nominal", "datetime", "target"]
EncodingStrategy = Literal["one-hot", "label", "ordinal", "target", "none"]
ScalingStrategy = Literal["standard", "min-max", "robust", "none"]
MLReadiness = Literal["ready", "needs_cleaning", "needs_engineering", "not_suitable"]
MissingStrategy = Literal["drop", "mean", "median", "mode", "forward_fill", "interpolate"]
OutlierStrategy = Literal["remove", "cap", "transform", "ignore"]


class NumericStatistics(BaseModel):
    """Descriptive statistics for a numeric column."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric"] = "numeric"
    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    std: float = 0.0
    variance: float = 0.0
    q25: float = 0.0
    q50: float = 0.0
    q75: float = 0.0
    iqr: float = 0.0
    skewness: float = 0.0
    kurtosis: float = 0.0
    outliers_count: int = 0
    outliers_percentage: float = 0.0
    zero_count: int = 0
    negative_count: int = 0
    distribution_type: Optional[Literal["normal", "uniform", "skewed", "bimodal"]] = None

    @property
    def lower_fence(self) -> float:
        return self.q25 - 1.5 * self.iqr

    @property
    def upper_fence(self) -> float:
        return self.q75 + 1.5 * self.iqr


class TopValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    count: int
    percentage: float


class CategoricalStatistics(BaseModel):
    """Frequency statistics for a categorical column."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["categorical"] = "categorical"
    value_counts: Dict[str, int] = Field(default_factory=dict)
    top_values: List[TopValue] = Field(default_factory=list)
    entropy: float = 0.0
    cardinality: int = 0
    most_frequent: str = ""
    least_frequent: str = ""


class TemporalStatistics(BaseModel):
    """Range and cadence of a date/time column."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["temporal"] = "temporal"
    min_date: str = ""
    max_date: str = ""
    date_range_days: int = 0
    has_time_component: bool = False
    frequency: Optional[Literal["daily", "weekly", "monthly", "yearly", "irregular"]] = None
    gaps_detected: int = 0


ColumnStatistics = Annotated[
    Union[NumericStatistics, CategoricalStatistics, TemporalStatistics],
    Field(discriminator="kind"),
]


class ColumnProfile(BaseModel):
    """Inferred type and statistics for one column. Read-only once built."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType
    dtype: DataType
    null_count: int
    null_percentage: float
    unique_count: int
    unique_percentage: float
    sample_values: List[Any] = Field(default_factory=list)
    statistics: Optional[ColumnStatistics] = None
    feature_type: Optional[FeatureType] = None
    encoding_suggested: Optional[EncodingStrategy] = None
    scaling_suggested: Optional[ScalingStrategy] = None
    is_target_candidate: bool = False
    target_score: Optional[float] = None


class FeatureMetadata(BaseModel):
    """Dataset-wide profiling result."""
    total_features: int
    numeric_features: int
    categorical_features: int
    temporal_features: int
    boolean_features: int = 0
    text_features: int = 0
    id_features: int = 0
    target_features: int
    feature_metadata: Dict[str, ColumnProfile]
    data_quality_score: float
    preprocessing_recommendations: List[str] = Field(default_factory=list)
    ml_readiness: MLReadiness


class PreprocessingOptions(BaseModel):
    """Caller-controlled pipeline switches. Unknown keys are ignored."""
    model_config = ConfigDict(extra="ignore")

    target_column: Optional[str] = None
    auto_detect_target: bool = False
    handle_missing: MissingStrategy = "mean"
    handle_outliers: OutlierStrategy = "cap"
    encode_categorical: bool = True
    scale_numeric: bool = True
    feature_selection: bool = False
    max_features: Optional[int] = Field(None, ge=1)
    fill_value_numeric: Optional[float] = None
    fill_value_categorical: Optional[str] = None
    encoding_overrides: Dict[str, Literal["label", "one-hot", "none"]] = Field(default_factory=dict)
    scaling_overrides: Dict[str, ScalingStrategy] = Field(default_factory=dict)


class EncodingInfo(BaseModel):
    """How a categorical column was encoded, enough to re-apply it to new rows."""
    method: Literal["label", "one-hot"]
    mapping: Dict[str, int] = Field(default_factory=dict)
    categories: List[str] = Field(default_factory=list)


class ScalerParams(BaseModel):
    """scaled = (x - center) / scale"""
    method: Literal["standard", "min-max", "robust"]
    center: float
    scale: float


class PreprocessingResult(BaseModel):
    processed_data: List[Row] = Field(default_factory=list)
    feature_metadata: FeatureMetadata
    transformations_applied: List[str] = Field(default_factory=list)
    cleaning_applied: List[str] = Field(default_factory=list)
    feature_engineering_applied: List[str] = Field(default_factory=list)
    target_column: Optional[str] = None
    feature_importance: Optional[Dict[str, float]] = None
    correlation_matrix: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    encodings: Dict[str, EncodingInfo] = Field(default_factory=dict)
    scaling_parameters: Dict[str, ScalerParams] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)


class ColumnSchema(BaseModel):
    """Represents metadata for a single uploaded column."""
    name: str
    dtype: str  # Simplified type: 'integer', 'float', 'string', 'boolean'


class DatasetContext(BaseModel):
    """
    An ingested upload: the parsed rows, their schema, and the slice
    that is small enough to hand to the preprocessing pipeline.
    """
    records: List[Row]
    columns: List[ColumnSchema]
    filename: str

    @property
    def total_rows(self) -> int:
        return len(self.records)

    def processing_rows(self, limit: int) -> Dataset:
        return self.records[:limit]

    def is_truncated(self, limit: int) -> bool:
        return self.total_rows > limit
