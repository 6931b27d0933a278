"""Maps every failure code to a category, HTTP status and user-safe message."""

from dataclasses import dataclass
from typing import Any

from upload_pipeline.errors.codes import ErrorCategory, ErrorCode
from upload_pipeline.validation.models import Rejected


@dataclass(frozen=True)
class Classification:
    code: ErrorCode
    category: ErrorCategory
    http_status: int
    retryable: bool
    message: str


_CATEGORY_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.INPUT_SHAPE: 400,
    ErrorCategory.CONTENT_VALIDATION: 400,
    ErrorCategory.FIELD_VALIDATION: 400,
    ErrorCategory.STORAGE: 503,
    ErrorCategory.CANCELLED: 499,
    ErrorCategory.INTERNAL: 500,
}

_TABLE: dict[ErrorCode, tuple[ErrorCategory, str]] = {
    ErrorCode.FILE_TOO_LARGE: (
        ErrorCategory.INPUT_SHAPE,
        "File too large. Maximum size is 5MB.",
    ),
    ErrorCode.TOO_MANY_FILES: (
        ErrorCategory.INPUT_SHAPE,
        "Too many files. Only one file allowed.",
    ),
    ErrorCode.UNEXPECTED_FILE_FIELD: (
        ErrorCategory.INPUT_SHAPE,
        "Unexpected file field.",
    ),
    ErrorCode.FIELD_TOO_LARGE: (
        ErrorCategory.INPUT_SHAPE,
        "Form field value too large.",
    ),
    ErrorCode.FIELD_NAME_TOO_LONG: (
        ErrorCategory.INPUT_SHAPE,
        "Form field name too long.",
    ),
    ErrorCode.TOO_MANY_HEADERS: (
        ErrorCategory.INPUT_SHAPE,
        "Too many headers in request.",
    ),
    ErrorCode.MISSING_FILE: (
        ErrorCategory.INPUT_SHAPE,
        "A file is required.",
    ),
    ErrorCode.INVALID_FILE_TYPE: (
        ErrorCategory.CONTENT_VALIDATION,
        "Invalid file type.",
    ),
    ErrorCode.INVALID_FILE_EXTENSION: (
        ErrorCategory.CONTENT_VALIDATION,
        "Invalid file extension.",
    ),
    ErrorCode.SUSPICIOUS_FILE: (
        ErrorCategory.CONTENT_VALIDATION,
        "Suspicious file detected. File type not allowed for security reasons.",
    ),
    ErrorCode.FILENAME_TOO_LONG: (
        ErrorCategory.CONTENT_VALIDATION,
        "Filename too long. Maximum 255 characters allowed.",
    ),
    ErrorCode.INVALID_FILENAME: (
        ErrorCategory.CONTENT_VALIDATION,
        "Invalid filename detected.",
    ),
    ErrorCode.EMPTY_FILE: (
        ErrorCategory.CONTENT_VALIDATION,
        "Empty file uploaded. Please select a valid file.",
    ),
    ErrorCode.INVALID_FILE_SIGNATURE: (
        ErrorCategory.CONTENT_VALIDATION,
        "File appears to be corrupted or not a valid file of the declared type.",
    ),
    ErrorCode.VALIDATION_ERROR: (
        ErrorCategory.FIELD_VALIDATION,
        "Validation failed",
    ),
    ErrorCode.INVALID_DOMAIN: (
        ErrorCategory.FIELD_VALIDATION,
        "Invalid link domain",
    ),
    ErrorCode.STORAGE_UNAVAILABLE: (
        ErrorCategory.STORAGE,
        "File storage is temporarily unavailable. Please try again.",
    ),
    ErrorCode.UPLOAD_CANCELLED: (
        ErrorCategory.CANCELLED,
        "Upload cancelled.",
    ),
    ErrorCode.VALIDATION_MIDDLEWARE_ERROR: (
        ErrorCategory.INTERNAL,
        "Internal server error during validation",
    ),
    ErrorCode.UPLOAD_ERROR: (
        ErrorCategory.INTERNAL,
        "File upload failed. Please try again.",
    ),
}


def classify(code: str) -> Classification:
    """Classify a code; unknown codes fall back to UPLOAD_ERROR."""
    try:
        error_code = ErrorCode(code)
    except ValueError:
        error_code = ErrorCode.UPLOAD_ERROR
    category, message = _TABLE[error_code]
    return Classification(
        code=error_code,
        category=category,
        http_status=_CATEGORY_STATUS[category],
        retryable=category is ErrorCategory.STORAGE,
        message=message,
    )


def rejection(code: ErrorCode, message: str | None = None, **context: Any) -> Rejected:
    """Build a Rejected outcome using the classified message unless overridden."""
    classification = classify(code)
    return Rejected(
        code=classification.code.value,
        message=message or classification.message,
        context=context,
    )
