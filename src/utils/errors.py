"""
Error types for document ingestion and backend access
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Per-file failures reported by a batch"""
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    EXTRACTION_FAILURE = "extraction_failure"


class DocumentProcessingError(ValueError):
    """
    Raised when one uploaded file cannot be turned into text

    Args:
        message: User-facing message
        detail: Original diagnostic from the failing library (logged only)
    """

    kind: ErrorKind = ErrorKind.EXTRACTION_FAILURE

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class UnsupportedFileType(DocumentProcessingError):
    kind = ErrorKind.UNSUPPORTED_FILE_TYPE


class ExtractionFailure(DocumentProcessingError):
    kind = ErrorKind.EXTRACTION_FAILURE


class ConfigurationError(ValueError):
    """Invalid or missing startup configuration"""


class BackendError(Exception):
    """Non-2xx answer from the backend API"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        reason: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.reason = reason


class AppointmentConflictError(BackendError):
    """The requested slot is already taken (HTTP 409)"""
