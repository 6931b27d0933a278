from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class UploadOptions:
    """Target of one persist call; the same public_id is reused on every retry."""

    public_id: str
    folder: str = ""
    content_type: str = "application/octet-stream"
    resource_type: str = "image"
    overwrite: bool = True

    @property
    def full_public_id(self) -> str:
        if not self.folder:
            return self.public_id
        return f"{self.folder.strip('/')}/{self.public_id}"


@dataclass(frozen=True)
class StoredObjectRef:
    """Durable locator for a persisted object. The caller owns its deletion."""

    url: str
    public_id: str
    size_bytes: int
    content_type: str


@dataclass(frozen=True)
class ObjectInfo:
    """Provider-side metadata of a stored object."""

    public_id: str
    url: str
    size_bytes: int
    format: str = ""
    resource_type: str = "image"
    created_at: str = ""


@dataclass(frozen=True)
class UploadAttempt:
    """One network call to the provider; discarded once the persist call ends."""

    number: int
    succeeded: bool
    at: datetime
    error: str = ""


@dataclass
class DeletionReport:
    """Per-id outcome of a bulk deletion."""

    deleted: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def retryable_ids(self) -> list[str]:
        return list(self.failed)

    def merge(self, other: "DeletionReport") -> None:
        self.deleted.extend(other.deleted)
        self.not_found.extend(other.not_found)
        self.failed.update(other.failed)
