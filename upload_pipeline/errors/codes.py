from enum import Enum


class ErrorCode(str, Enum):
    """Stable machine-readable codes returned to callers."""

    # Ingestion ceilings
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    TOO_MANY_FILES = "TOO_MANY_FILES"
    UNEXPECTED_FILE_FIELD = "UNEXPECTED_FILE_FIELD"
    FIELD_TOO_LARGE = "FIELD_TOO_LARGE"
    FIELD_NAME_TOO_LONG = "FIELD_NAME_TOO_LONG"
    TOO_MANY_HEADERS = "TOO_MANY_HEADERS"
    MISSING_FILE = "MISSING_FILE"

    # Content validation
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    INVALID_FILE_EXTENSION = "INVALID_FILE_EXTENSION"
    SUSPICIOUS_FILE = "SUSPICIOUS_FILE"
    FILENAME_TOO_LONG = "FILENAME_TOO_LONG"
    INVALID_FILENAME = "INVALID_FILENAME"
    EMPTY_FILE = "EMPTY_FILE"
    INVALID_FILE_SIGNATURE = "INVALID_FILE_SIGNATURE"

    # Companion form fields
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DOMAIN = "INVALID_DOMAIN"

    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    UPLOAD_CANCELLED = "UPLOAD_CANCELLED"

    VALIDATION_MIDDLEWARE_ERROR = "VALIDATION_MIDDLEWARE_ERROR"
    UPLOAD_ERROR = "UPLOAD_ERROR"


class ErrorCategory(str, Enum):
    INPUT_SHAPE = "input_shape"
    CONTENT_VALIDATION = "content_validation"
    FIELD_VALIDATION = "field_validation"
    STORAGE = "storage"
    CANCELLED = "cancelled"
    INTERNAL = "internal"
