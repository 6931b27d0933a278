"""In-memory storage adapter.

No network calls. Useful for local development, tests, and as a template for
building real provider adapters: implement BaseObjectStorage and register the
provider in StorageFactory.
"""

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from upload_pipeline.storage.base import BaseObjectStorage
from upload_pipeline.storage.models import DeletionReport, ObjectInfo, StoredObjectRef, UploadOptions
from upload_pipeline.storage.retry import CancellationToken


@dataclass(frozen=True)
class _StoredObject:
    data: bytes
    content_type: str
    resource_type: str
    created_at: str


class InMemoryStorage(BaseObjectStorage):
    """Dict-backed object store; overwrites on an existing public id."""

    def __init__(self, base_url: str = "memory://uploads") -> None:
        self._base_url = base_url.rstrip("/")
        self._objects: dict[str, _StoredObject] = {}
        self._lock = threading.Lock()

    def upload(
        self,
        data: bytes,
        options: UploadOptions,
        *,
        timeout_seconds: float,
        cancel: CancellationToken | None = None,
    ) -> StoredObjectRef:
        _ = timeout_seconds, cancel
        public_id = options.full_public_id
        stored = _StoredObject(
            data=data,
            content_type=options.content_type,
            resource_type=options.resource_type,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._objects[public_id] = stored
        return StoredObjectRef(
            url=self._url(public_id),
            public_id=public_id,
            size_bytes=len(data),
            content_type=options.content_type,
        )

    def delete_many(self, public_ids: Sequence[str]) -> DeletionReport:
        report = DeletionReport()
        with self._lock:
            for public_id in public_ids:
                if self._objects.pop(public_id, None) is None:
                    report.not_found.append(public_id)
                else:
                    report.deleted.append(public_id)
        return report

    def resource(self, public_id: str) -> ObjectInfo | None:
        with self._lock:
            stored = self._objects.get(public_id)
        if stored is None:
            return None
        return ObjectInfo(
            public_id=public_id,
            url=self._url(public_id),
            size_bytes=len(stored.data),
            format=stored.content_type.rsplit("/", 1)[-1],
            resource_type=stored.resource_type,
            created_at=stored.created_at,
        )

    def ping(self) -> bool:
        return True

    def __contains__(self, public_id: str) -> bool:
        with self._lock:
            return public_id in self._objects

    def _url(self, public_id: str) -> str:
        return f"{self._base_url}/{public_id}"
