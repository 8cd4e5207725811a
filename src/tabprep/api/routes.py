from fastapi import FastAPI, UploadFile, File, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from tabprep.config import settings
from tabprep.utils.exceptions import AppException, PreprocessingError
from tabprep.utils.logger import get_logger

# Import core logic
from tabprep.core.ingestion import ingest_file
from tabprep.core.pipeline import preprocess
from tabprep.core.profiler import extract_feature_metadata
from tabprep.core.summary import generate_data_summary
from tabprep.models import PreprocessingOptions

logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs"
)

# Defaults the upload flow runs with
UPLOAD_OPTIONS = PreprocessingOptions(
    auto_detect_target=True,
    handle_missing="mean",
    handle_outliers="cap",
    encode_categorical=True,
    scale_numeric=True,
    feature_selection=False,
)


class ProfileRequest(BaseModel):
    data: List[Dict[str, Any]]


class PreprocessRequest(BaseModel):
    data: List[Dict[str, Any]]
    options: PreprocessingOptions = Field(default_factory=PreprocessingOptions)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    content: Dict[str, Any] = {"error": type(exc).__name__, "detail": exc.message}
    if isinstance(exc, PreprocessingError):
        content.update(stage=exc.stage, warnings=exc.warnings, errors=exc.errors)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "online", "message": f"{settings.APP_NAME} is running"}


@app.post("/profile")
def profile_rows(payload: ProfileRequest):
    """Profile a JSON table without transforming it."""
    metadata = extract_feature_metadata(payload.data)
    return {
        "feature_metadata": metadata.model_dump(),
        "summary": generate_data_summary(payload.data, metadata),
    }


@app.post("/preprocess")
def preprocess_rows(payload: PreprocessRequest):
    """Run the full pipeline over a JSON table."""
    result = preprocess(payload.data, payload.options)
    return {
        "result": result.model_dump(),
        "summary": generate_data_summary(result.processed_data, result.feature_metadata),
    }


@app.post("/upload")
async def upload_file(file: UploadFile = File(...)):
    """
    Uploads a CSV/TSV/JSON file and preprocesses it.
    Only the first MAX_PREPROCESS_ROWS rows go through the pipeline. If the
    pipeline fails, the raw rows are returned instead together with the error.
    """
    logger.info(f"Received file upload: {file.filename}")
    content = await file.read()

    # Process via Ingestion Layer
    context = ingest_file(content, file.filename or "upload.csv")
    limit = settings.MAX_PREPROCESS_ROWS
    rows = context.processing_rows(limit)

    response: Dict[str, Any] = {
        "filename": context.filename,
        "rows": context.total_rows,
        "rows_processed": len(rows),
        "columns": [{"name": c.name, "type": c.dtype} for c in context.columns],
    }

    try:
        result = preprocess(rows, UPLOAD_OPTIONS)
    except PreprocessingError as e:
        logger.warning(f"Preprocessing failed, returning raw data only: {e.message}")
        response.update(
            preprocessing_completed=False,
            preprocessing_error=e.message,
            data=rows,
            message=f"File processed. {context.total_rows} rows parsed, raw data returned.",
        )
        return response

    # A capped upload keeps its raw rows; the processed sample would not cover the file
    target_column: Optional[str] = result.target_column
    response.update(
        preprocessing_completed=True,
        target_column=target_column,
        data=context.records if context.is_truncated(limit) else result.processed_data,
        preprocessing_result=result.model_dump(exclude={"processed_data"}),
        summary=generate_data_summary(result.processed_data or rows, result.feature_metadata),
        message=f"File processed successfully. {context.total_rows} rows parsed, feature engineering completed.",
    )
    return response
