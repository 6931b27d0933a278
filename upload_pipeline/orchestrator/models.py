from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from upload_pipeline.errors.classifier import classify
from upload_pipeline.storage.models import StoredObjectRef
from upload_pipeline.validation.models import Rejected


@dataclass(frozen=True)
class RequestContext:
    """Who sent the request and from where, as reported by the routing layer."""

    actor_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True)
class ProvenanceMetadata:
    """Audit annotations for an accepted upload. Never used for authorization."""

    actor_id: str | None
    ip_address: str | None
    user_agent: str | None
    uploaded_at: str

    @classmethod
    def stamp(cls, context: RequestContext, now: datetime | None = None) -> "ProvenanceMetadata":
        moment = now if now is not None else datetime.now(timezone.utc)
        return cls(
            actor_id=context.actor_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            uploaded_at=moment.isoformat(),
        )


@dataclass(frozen=True)
class UploadOutcome:
    """Uniform result of one upload request: either a stored object or a rejection."""

    success: bool
    stored: StoredObjectRef | None = None
    provenance: ProvenanceMetadata | None = None
    fields: dict[str, str] = field(default_factory=dict)
    rejection: Rejected | None = None

    @classmethod
    def succeeded(
        cls,
        stored: StoredObjectRef,
        provenance: ProvenanceMetadata,
        fields: dict[str, str] | None = None,
    ) -> "UploadOutcome":
        return cls(success=True, stored=stored, provenance=provenance, fields=fields or {})

    @classmethod
    def failed(cls, rejection: Rejected) -> "UploadOutcome":
        return cls(success=False, rejection=rejection)

    @property
    def code(self) -> str | None:
        return self.rejection.code if self.rejection is not None else None

    @property
    def http_status(self) -> int:
        if self.rejection is None:
            return 201
        return classify(self.rejection.code).http_status

    def to_dict(self) -> dict[str, Any]:
        if self.rejection is not None:
            return {
                "success": False,
                "message": self.rejection.message,
                "code": self.rejection.code,
                **self.rejection.context,
            }
        if self.stored is None or self.provenance is None:
            raise ValueError("Successful outcome must carry a stored object and provenance")
        return {
            "success": True,
            "url": self.stored.url,
            "public_id": self.stored.public_id,
            "size_bytes": self.stored.size_bytes,
            "content_type": self.stored.content_type,
            "fields": dict(self.fields),
            "provenance": asdict(self.provenance),
        }
