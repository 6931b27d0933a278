from dataclasses import dataclass, field
from typing import BinaryIO

from upload_pipeline.config.settings import Settings
from upload_pipeline.validation.models import UploadCandidate


@dataclass(frozen=True)
class IncomingFile:
    """A file part as handed over by the routing layer, body not yet read."""

    field_name: str
    filename: str
    content_type: str
    stream: BinaryIO
    declared_size: int | None = None


@dataclass(frozen=True)
class UploadRequest:
    """One multipart upload request: file parts plus plain-text form fields."""

    files: list[IncomingFile] = field(default_factory=list)
    fields: dict[str, str] = field(default_factory=dict)
    header_pairs: int = 0


@dataclass(frozen=True)
class IngestionLimits:
    """Hard ceilings enforced before any content validation."""

    max_file_bytes: int = 5 * 1024 * 1024
    max_field_bytes: int = 10 * 1024 * 1024
    max_field_name_bytes: int = 100
    max_files: int = 1
    max_header_pairs: int = 2000

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionLimits":
        return cls(
            max_file_bytes=settings.max_file_bytes,
            max_field_bytes=settings.max_field_bytes,
            max_field_name_bytes=settings.max_field_name_bytes,
            max_files=settings.max_files,
            max_header_pairs=settings.max_header_pairs,
        )


@dataclass(frozen=True)
class Admitted:
    """Request passed every ceiling; the file body is now in memory."""

    candidate: UploadCandidate
    fields: dict[str, str]
