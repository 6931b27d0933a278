from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class UploadCandidate:
    """A single uploaded file held in memory for the duration of one request."""

    data: bytes
    content_type: str
    filename: str
    size: int

    def __post_init__(self) -> None:
        if self.size != len(self.data):
            raise ValueError(
                f"Candidate size {self.size} does not match buffer length {len(self.data)}"
            )

    @classmethod
    def from_bytes(cls, data: bytes, *, content_type: str, filename: str) -> "UploadCandidate":
        return cls(data=data, content_type=content_type, filename=filename, size=len(data))


@dataclass(frozen=True)
class Accepted:
    """Candidate passed every check."""

    sanitized_filename: str
    storage_key: str


@dataclass(frozen=True)
class Rejected:
    """Candidate or request failed a check; carries a stable code and safe message."""

    code: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


ValidationOutcome = Accepted | Rejected
