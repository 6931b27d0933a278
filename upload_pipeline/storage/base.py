from abc import ABC, abstractmethod
from collections.abc import Sequence

from upload_pipeline.storage.models import DeletionReport, ObjectInfo, StoredObjectRef, UploadOptions
from upload_pipeline.storage.retry import CancellationToken


class BaseObjectStorage(ABC):
    """Contract for all object-storage provider adapters."""

    @abstractmethod
    def upload(
        self,
        data: bytes,
        options: UploadOptions,
        *,
        timeout_seconds: float,
        cancel: CancellationToken | None = None,
    ) -> StoredObjectRef:
        """Store ``data`` in one network call bounded by ``timeout_seconds`` in total.

        The provider either holds the complete object afterwards or nothing.

        Raises:
            StorageNetworkError: transport failure or timeout.
            StorageUnavailableError: rate limiting or provider-side failure.
            StorageRejectedError: the provider refused the request.
            UploadCancelledError: ``cancel`` fired while the call was in flight.
        """

    @abstractmethod
    def delete_many(self, public_ids: Sequence[str]) -> DeletionReport:
        """Best-effort bulk deletion; failures are reported per id, never raised."""

    @abstractmethod
    def resource(self, public_id: str) -> ObjectInfo | None:
        """Return object metadata, or None when the object does not exist."""

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the provider is reachable with the configured credentials."""

    def close(self) -> None:
        """Release pooled connections."""
