class StorageError(Exception):
    """Base exception for all object-storage errors."""

    retryable: bool = False


class StorageConfigurationError(StorageError):
    """Raised at startup when provider credentials are missing or unusable."""


class StorageNetworkError(StorageError):
    """Raised when the provider call fails due to network/timeout issues."""

    retryable = True


class StorageUnavailableError(StorageError):
    """Raised when the provider answers with a rate-limit or server-side error."""

    retryable = True


class StorageRejectedError(StorageError):
    """Raised when the provider refuses the request (auth, bad params)."""


class UploadCancelledError(StorageError):
    """Raised when the caller cancelled the upload before it completed."""


class StorageExhaustedError(StorageError):
    """Raised when every upload attempt failed."""

    def __init__(self, attempts: int, last_error: StorageError) -> None:
        super().__init__(f"Upload failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error
