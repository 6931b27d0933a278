from collections.abc import Iterable

from upload_pipeline.logging.logger import Log
from upload_pipeline.storage.base import BaseObjectStorage
from upload_pipeline.storage.exceptions import (
    StorageError,
    StorageExhaustedError,
    UploadCancelledError,
)
from upload_pipeline.storage.models import DeletionReport, ObjectInfo, StoredObjectRef, UploadOptions
from upload_pipeline.storage.retry import CancellationToken, RetryPhase, RetryState


class RemotePersister:
    """Uploads validated bytes with bounded retries and exponential backoff.

    Every attempt targets the same public id with overwrite enabled, so a retry
    after an ambiguous failure replaces the object instead of duplicating it.
    """

    def __init__(
        self,
        storage: BaseObjectStorage,
        *,
        max_retries: int = 3,
        timeout_seconds: float = 60,
        backoff_base: float = 2.0,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self._storage = storage
        self._max_retries = max_retries
        self._timeout_seconds = timeout_seconds
        self._backoff_base = backoff_base

    def persist(
        self,
        data: bytes,
        options: UploadOptions,
        cancel: CancellationToken | None = None,
    ) -> StoredObjectRef:
        """Upload ``data``; raise StorageExhaustedError once attempts run out.

        Raises:
            UploadCancelledError: the token was cancelled before an attempt,
                while one was in flight, or during a backoff wait.
            StorageExhaustedError: all attempts failed, or one failed permanently.
        """
        token = cancel if cancel is not None else CancellationToken()
        state = RetryState(max_attempts=self._max_retries, backoff_base=self._backoff_base)

        while state.phase is RetryPhase.ATTEMPTING:
            if token.cancelled:
                raise UploadCancelledError(
                    f"Upload of {options.full_public_id} cancelled before attempt {state.attempt}"
                )
            attempt = state.attempt
            try:
                ref = self._storage.upload(
                    data,
                    options,
                    timeout_seconds=self._timeout_seconds,
                    cancel=token,
                )
            except UploadCancelledError:
                Log.info(f"Upload of {options.full_public_id} cancelled during attempt {attempt}")
                raise
            except StorageError as exc:
                Log.warning(
                    f"Storage upload attempt {attempt}/{self._max_retries} failed "
                    f"for {options.full_public_id}: {exc}"
                )
                delay = state.record_failure(exc)
                if delay is not None and token.wait(delay):
                    raise UploadCancelledError(
                        f"Upload of {options.full_public_id} cancelled during backoff"
                    ) from exc
                continue

            state.record_success()
            Log.info(
                f"Uploaded {ref.public_id} ({ref.size_bytes} bytes) on attempt {attempt}: {ref.url}"
            )
            return ref

        last_error = state.last_error or StorageError("upload failed")
        Log.error(
            f"All storage upload attempts failed for {options.full_public_id} "
            f"after {len(state.history)} attempt(s): {last_error}"
        )
        raise StorageExhaustedError(len(state.history), last_error) from last_error

    def delete(self, public_ids: Iterable[str]) -> DeletionReport:
        """Best-effort bulk deletion; partial failures are reported per id."""
        ids = list(dict.fromkeys(i for i in public_ids if i))
        if not ids:
            return DeletionReport()
        report = self._storage.delete_many(ids)
        Log.info(
            f"Deleted {len(report.deleted)} object(s), {len(report.not_found)} not found, "
            f"{len(report.failed)} failed"
        )
        if report.failed:
            Log.error(f"Failed to delete objects: {sorted(report.failed)}")
        return report

    def lookup(self, public_id: str) -> ObjectInfo | None:
        try:
            return self._storage.resource(public_id)
        except StorageError as exc:
            Log.warning(f"Failed to get file info for {public_id}: {exc}")
            raise
