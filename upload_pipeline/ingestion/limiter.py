from typing import BinaryIO

from upload_pipeline.errors.classifier import rejection
from upload_pipeline.errors.codes import ErrorCode
from upload_pipeline.ingestion.models import Admitted, IncomingFile, IngestionLimits, UploadRequest
from upload_pipeline.logging.logger import Log
from upload_pipeline.validation.models import Rejected, UploadCandidate

CHUNK_SIZE = 64 * 1024
_MIB = 1024 * 1024


def human_size(size: int) -> str:
    if size % _MIB == 0:
        return f"{size // _MIB}MB"
    return f"{size} bytes"


class PayloadTooLarge(Exception):
    """Raised by read_limited once the ceiling is crossed."""

    def __init__(self, limit: int, read: int) -> None:
        super().__init__(f"payload exceeds {limit} bytes (read {read})")
        self.limit = limit
        self.read = read


def read_limited(stream: BinaryIO, limit: int, chunk_size: int = CHUNK_SIZE) -> bytes:
    """Read a stream fully, aborting as soon as more than ``limit`` bytes arrive.

    At most one chunk past the ceiling is ever held in memory.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            raise PayloadTooLarge(limit, total)
        chunks.append(chunk)
    return b"".join(chunks)


class IngestionLimiter:
    """First line of defense: request-shape ceilings checked before validation."""

    def __init__(self, limits: IngestionLimits | None = None) -> None:
        self._limits = limits if limits is not None else IngestionLimits()

    @property
    def limits(self) -> IngestionLimits:
        return self._limits

    def admit(self, request: UploadRequest, expected_field: str) -> Admitted | Rejected:
        """Check every ceiling, then read the single file body under the size cap."""
        rejected = self._check_shape(request, expected_field)
        if rejected is not None:
            return rejected

        incoming = request.files[0]
        rejected = self._check_declared_size(incoming)
        if rejected is not None:
            return rejected

        try:
            data = read_limited(incoming.stream, self._limits.max_file_bytes)
        except PayloadTooLarge as exc:
            Log.warning(f"Upload body exceeded {exc.limit} bytes, aborted after {exc.read}")
            return self._file_too_large()

        candidate = UploadCandidate.from_bytes(
            data,
            content_type=incoming.content_type,
            filename=incoming.filename,
        )
        return Admitted(candidate=candidate, fields=dict(request.fields))

    def _check_shape(self, request: UploadRequest, expected_field: str) -> Rejected | None:
        limits = self._limits
        if request.header_pairs > limits.max_header_pairs:
            return rejection(ErrorCode.TOO_MANY_HEADERS, limit=limits.max_header_pairs)
        if len(request.files) > limits.max_files:
            return rejection(
                ErrorCode.TOO_MANY_FILES,
                f"Too many files. Only {limits.max_files} file(s) allowed.",
                max_files=limits.max_files,
            )
        for incoming in request.files:
            if incoming.field_name != expected_field:
                return rejection(
                    ErrorCode.UNEXPECTED_FILE_FIELD,
                    f"Unexpected file field. Use '{expected_field}' field name.",
                    expected_field=expected_field,
                )
        for name, value in request.fields.items():
            if len(name.encode("utf-8")) > limits.max_field_name_bytes:
                return rejection(
                    ErrorCode.FIELD_NAME_TOO_LONG,
                    limit=limits.max_field_name_bytes,
                )
            if len(value.encode("utf-8")) > limits.max_field_bytes:
                return rejection(
                    ErrorCode.FIELD_TOO_LARGE,
                    field=name,
                    limit=limits.max_field_bytes,
                )
        if not request.files:
            return rejection(ErrorCode.MISSING_FILE, expected_field=expected_field)
        return None

    def _check_declared_size(self, incoming: IncomingFile) -> Rejected | None:
        declared = incoming.declared_size
        if declared is not None and declared > self._limits.max_file_bytes:
            Log.warning(f"Declared upload size {declared} exceeds {self._limits.max_file_bytes}")
            return self._file_too_large()
        return None

    def _file_too_large(self) -> Rejected:
        max_size = human_size(self._limits.max_file_bytes)
        return rejection(
            ErrorCode.FILE_TOO_LARGE,
            f"File too large. Maximum size is {max_size}.",
            max_size=max_size,
        )
