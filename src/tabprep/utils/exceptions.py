"""
Custom exception classes for the preprocessing service.
These allow us to differentiate between user errors (4xx) and system errors (5xx).
"""
from typing import List, Optional


class AppException(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class EmptyInputError(AppException):
    """Raised when the dataset has no rows or its first row has no columns."""
    def __init__(self, message: str = "Input data is empty."):
        super().__init__(message, status_code=400)


class InvalidOptionsError(AppException):
    """Raised when preprocessing options fail validation."""
    def __init__(self, message: str = "Invalid preprocessing options."):
        super().__init__(message, status_code=400)


class PreprocessingError(AppException):
    """
    Raised when a pipeline stage fails.
    Carries the stage name plus the warnings/errors gathered before the failure,
    so callers can log them and decide on a fallback (e.g. keep the raw rows).
    """
    def __init__(
        self,
        message: str = "Preprocessing failed.",
        stage: Optional[str] = None,
        warnings: Optional[List[str]] = None,
        errors: Optional[List[str]] = None,
    ):
        self.stage = stage
        self.warnings = list(warnings or [])
        self.errors = list(errors or [])
        super().__init__(message, status_code=500)


class FileProcessingError(AppException):
    """Raised when file upload or parsing fails."""
    def __init__(self, message: str = "Failed to process the uploaded file."):
        super().__init__(message, status_code=400)
