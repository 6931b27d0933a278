"""Cloudinary adapter speaking the provider's REST API over a pooled httpx client.

Uploads use the signed Upload API; deletion, lookup and ping use the Admin API
with basic auth. The adapter performs exactly one network call per method call;
retries belong to RemotePersister.

Every call runs against a total deadline. httpx timeouts bound each connect,
read and write separately, so the response body is streamed and the deadline
is checked between chunks; a provider trickling bytes cannot hold a call open.
"""

import hashlib
import json
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from upload_pipeline.logging.logger import Log
from upload_pipeline.storage.base import BaseObjectStorage
from upload_pipeline.storage.exceptions import (
    StorageError,
    StorageNetworkError,
    StorageRejectedError,
    StorageUnavailableError,
    UploadCancelledError,
)
from upload_pipeline.storage.models import DeletionReport, ObjectInfo, StoredObjectRef, UploadOptions
from upload_pipeline.storage.retry import CancellationToken

DEFAULT_API_BASE_URL = "https://api.cloudinary.com/v1_1"


def sign_params(params: Mapping[str, str], api_secret: str) -> str:
    """SHA-1 over ``k=v`` pairs sorted by key, joined with '&', followed by the secret."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] != "")
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class _Reply:
    """Status and fully read body of one provider call."""

    status_code: int
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)


class CloudinaryStorage(BaseObjectStorage):
    """Object storage backed by Cloudinary."""

    DELETE_BATCH_SIZE = 100

    def __init__(
        self,
        *,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 60,
        max_connections: int = 10,
        default_resource_type: str = "image",
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._timeout_seconds = timeout_seconds
        self._default_resource_type = default_resource_type
        self._clock = clock
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/{cloud_name}",
            timeout=timeout_seconds,
            limits=httpx.Limits(max_connections=max_connections),
            transport=transport,
        )
        self._admin_auth = httpx.BasicAuth(api_key, api_secret)

    def upload(
        self,
        data: bytes,
        options: UploadOptions,
        *,
        timeout_seconds: float,
        cancel: CancellationToken | None = None,
    ) -> StoredObjectRef:
        params = {
            "public_id": options.full_public_id,
            "overwrite": "true" if options.overwrite else "false",
            "timestamp": str(int(self._clock())),
        }
        form = {
            **params,
            "api_key": self._api_key,
            "signature": sign_params(params, self._api_secret),
        }
        reply = self._send(
            "POST",
            f"/{options.resource_type}/upload",
            timeout_seconds=timeout_seconds,
            cancel=cancel,
            data=form,
            files={"file": (options.public_id, data, options.content_type)},
        )
        payload = self._json(reply)
        url = payload.get("secure_url")
        public_id = payload.get("public_id")
        if not isinstance(url, str) or not isinstance(public_id, str):
            raise StorageError("Storage provider returned an incomplete upload response")
        return StoredObjectRef(
            url=url,
            public_id=public_id,
            size_bytes=int(payload.get("bytes") or len(data)),
            content_type=options.content_type,
        )

    def delete_many(self, public_ids: Sequence[str]) -> DeletionReport:
        report = DeletionReport()
        ids = list(public_ids)
        for start in range(0, len(ids), self.DELETE_BATCH_SIZE):
            report.merge(self._delete_batch(ids[start:start + self.DELETE_BATCH_SIZE]))
        return report

    def resource(self, public_id: str) -> ObjectInfo | None:
        reply = self._send(
            "GET",
            f"/resources/{self._default_resource_type}/upload/{public_id}",
            auth=self._admin_auth,
            allow_statuses=(404,),
        )
        if reply.status_code == 404:
            return None
        payload = self._json(reply)
        return ObjectInfo(
            public_id=str(payload.get("public_id", public_id)),
            url=str(payload.get("secure_url", "")),
            size_bytes=int(payload.get("bytes") or 0),
            format=str(payload.get("format", "")),
            resource_type=str(payload.get("resource_type", self._default_resource_type)),
            created_at=str(payload.get("created_at", "")),
        )

    def ping(self) -> bool:
        try:
            reply = self._send("GET", "/ping", auth=self._admin_auth)
            return self._json(reply).get("status") == "ok"
        except StorageError as exc:
            Log.warning(f"Storage provider ping failed: {exc}")
            return False

    def close(self) -> None:
        self._client.close()

    def _delete_batch(self, public_ids: list[str]) -> DeletionReport:
        report = DeletionReport()
        try:
            reply = self._send(
                "DELETE",
                f"/resources/{self._default_resource_type}/upload",
                params={"public_ids[]": public_ids},
                auth=self._admin_auth,
            )
            outcomes = self._json(reply).get("deleted") or {}
        except StorageError as exc:
            report.failed.update({public_id: str(exc) for public_id in public_ids})
            return report

        for public_id in public_ids:
            status = outcomes.get(public_id)
            if status == "deleted":
                report.deleted.append(public_id)
            elif status == "not_found":
                report.not_found.append(public_id)
            else:
                report.failed[public_id] = f"unexpected status: {status}"
        return report

    def _send(
        self,
        method: str,
        url: str,
        *,
        allow_statuses: tuple[int, ...] = (),
        timeout_seconds: float | None = None,
        cancel: CancellationToken | None = None,
        **kwargs: Any,
    ) -> _Reply:
        budget = timeout_seconds if timeout_seconds is not None else self._timeout_seconds
        deadline = time.monotonic() + budget
        try:
            with self._client.stream(method, url, timeout=budget, **kwargs) as response:
                reply = _Reply(
                    status_code=response.status_code,
                    body=self._read_body(response, deadline, budget, cancel),
                )
        except httpx.TimeoutException as exc:
            raise StorageNetworkError(f"Storage provider timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise StorageNetworkError(f"Storage provider network error: {exc}") from exc

        status = reply.status_code
        if status in allow_statuses or status < 400:
            return reply
        message = self._error_message(reply)
        if status == 429 or status >= 500:
            raise StorageUnavailableError(f"Storage provider unavailable ({status}): {message}")
        raise StorageRejectedError(f"Storage provider rejected request ({status}): {message}")

    @staticmethod
    def _read_body(
        response: httpx.Response,
        deadline: float,
        budget: float,
        cancel: CancellationToken | None,
    ) -> bytes:
        chunks: list[bytes] = []
        for chunk in response.iter_bytes():
            if cancel is not None and cancel.cancelled:
                raise UploadCancelledError("Storage call cancelled while awaiting the response")
            if time.monotonic() > deadline:
                raise StorageNetworkError(f"Storage provider timed out: exceeded {budget}s deadline")
            chunks.append(chunk)
        if time.monotonic() > deadline:
            raise StorageNetworkError(f"Storage provider timed out: exceeded {budget}s deadline")
        return b"".join(chunks)

    @staticmethod
    def _json(reply: _Reply) -> dict[str, Any]:
        try:
            payload = reply.json()
        except ValueError as exc:
            raise StorageError(f"Invalid JSON from storage provider: {exc}") from exc
        if not isinstance(payload, dict):
            raise StorageError("Storage provider response must be an object")
        return payload

    @staticmethod
    def _error_message(reply: _Reply) -> str:
        try:
            error = reply.json().get("error") or {}
        except (ValueError, AttributeError):
            return reply.body[:200].decode("utf-8", errors="replace")
        if isinstance(error, dict):
            return str(error.get("message", ""))
        return str(error)
