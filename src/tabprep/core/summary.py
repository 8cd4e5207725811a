from tabprep.models import Dataset, FeatureMetadata


def generate_data_summary(dataset: Dataset, metadata: FeatureMetadata) -> str:
    """
    Plain-text overview of a profiled dataset, meant to be pasted into an
    LLM prompt by the caller.
    """
    lines = [
        "Dataset Overview:",
        f"- Total Rows: {len(dataset)}",
        f"- Total Columns: {len(metadata.feature_metadata)}",
        f"- Numeric Features: {metadata.numeric_features}",
        f"- Categorical Features: {metadata.categorical_features}",
        f"- Temporal Features: {metadata.temporal_features}",
        f"- Data Quality Score: {metadata.data_quality_score:.1f}/100",
        f"- ML Readiness: {metadata.ml_readiness}",
    ]

    if metadata.target_features > 0:
        lines.append("\nTarget Candidates:")
        for col, profile in metadata.feature_metadata.items():
            if profile.is_target_candidate:
                score = f"{profile.target_score:.1f}" if profile.target_score is not None else "N/A"
                lines.append(f"- {col} (score: {score})")

    if metadata.preprocessing_recommendations:
        lines.append("\nRecommendations:")
        lines.extend(f"- {rec}" for rec in metadata.preprocessing_recommendations)

    return "\n".join(lines)
