import csv
import io

import pandas as pd

from tabprep.config import settings
from tabprep.models import ColumnSchema, Dataset, DatasetContext
from tabprep.utils.exceptions import FileProcessingError
from tabprep.utils.logger import get_logger

logger = get_logger(__name__)

TYPE_MAPPING = {
    'int64': 'integer', 'int32': 'integer',
    'float64': 'float', 'float32': 'float',
    'object': 'string',
    'bool': 'boolean',
}


def _read_frame(file_content: bytes, filename: str) -> pd.DataFrame:
    name = filename.lower()
    if name.endswith(".json"):
        return pd.read_json(io.BytesIO(file_content), orient="records")

    if name.endswith(".tsv"):
        delimiter = '\t'
    else:
        # Sniff the delimiter from a small decoded chunk
        try:
            decoded_chunk = file_content[:1024].decode('utf-8')
            delimiter = csv.Sniffer().sniff(decoded_chunk, delimiters=",;\t|").delimiter
        except (UnicodeDecodeError, csv.Error):
            delimiter = ','  # Fallback to comma
    logger.info(f"Detected delimiter: '{delimiter}'")
    return pd.read_csv(io.BytesIO(file_content), sep=delimiter, on_bad_lines='warn', encoding='utf-8')


def _to_records(df: pd.DataFrame) -> Dataset:
    """Rows as plain dicts: NaN becomes None, NUL bytes are stripped from strings."""
    records = df.astype(object).where(pd.notna(df), None).to_dict(orient="records")
    return [
        {key: value.replace("\x00", "") if isinstance(value, str) else value for key, value in row.items()}
        for row in records
    ]


def ingest_file(file_content: bytes, filename: str) -> DatasetContext:
    logger.info(f"Starting ingestion for file: {filename}")

    size_mb = len(file_content) / (1024 * 1024)
    if size_mb > settings.MAX_UPLOAD_SIZE_MB:
        raise FileProcessingError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.")
    if not file_content.strip():
        raise FileProcessingError("The uploaded file contains no data.")

    try:
        df = _read_frame(file_content, filename)
    except (ValueError, UnicodeDecodeError, pd.errors.ParserError) as e:
        # EmptyDataError is a ValueError
        logger.error(f"Error during ingestion: {str(e)}")
        raise FileProcessingError(f"Failed to parse file: {str(e)}") from e

    if df.empty:
        raise FileProcessingError("The uploaded file contains no data.")

    df.columns = [str(c).strip() for c in df.columns]

    columns_schema = [
        ColumnSchema(name=col, dtype=TYPE_MAPPING.get(str(df[col].dtype), 'string'))
        for col in df.columns
    ]

    logger.info(f"Ingestion successful. Shape: {df.shape}")

    return DatasetContext(
        records=_to_records(df),
        columns=columns_schema,
        filename=filename,
    )
