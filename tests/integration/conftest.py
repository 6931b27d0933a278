import re
from collections.abc import Generator

import httpx
import pytest

from upload_pipeline.config.settings import Settings
from upload_pipeline.orchestrator.service import UploadService, build_upload_service
from upload_pipeline.storage.cloudinary_adapter import CloudinaryStorage, sign_params

_DISPOSITION = re.compile(rb'name="([^"]+)"')


def _parse_multipart(request: httpx.Request) -> dict[str, bytes]:
    boundary = request.headers["content-type"].split("boundary=", 1)[1].encode()
    parts: dict[str, bytes] = {}
    for chunk in request.read().split(b"--" + boundary):
        chunk = chunk.removeprefix(b"\r\n").removesuffix(b"\r\n")
        if not chunk or chunk == b"--":
            continue
        head, _, body = chunk.partition(b"\r\n\r\n")
        match = _DISPOSITION.search(head)
        if match:
            parts[match.group(1).decode()] = body
    return parts


class FakeCloudinary:
    """Simulates the provider's Upload and Admin APIs behind httpx.MockTransport."""

    def __init__(self, api_secret: str) -> None:
        self._api_secret = api_secret
        self.objects: dict[str, bytes] = {}
        self.upload_calls = 0
        self.failures: list[int] = []

    def fail_next(self, *statuses: int) -> None:
        self.failures.extend(statuses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.failures:
            return httpx.Response(self.failures.pop(0), json={"error": {"message": "busy"}})
        path = request.url.path
        if request.method == "POST" and path.endswith("/upload"):
            return self._upload(request)
        if request.method == "DELETE":
            ids = request.url.params.get_list("public_ids[]")
            deleted = {
                i: "deleted" if self.objects.pop(i, None) is not None else "not_found"
                for i in ids
            }
            return httpx.Response(200, json={"deleted": deleted})
        if path.endswith("/ping"):
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(404, json={"error": {"message": "not found"}})

    def _upload(self, request: httpx.Request) -> httpx.Response:
        self.upload_calls += 1
        form = _parse_multipart(request)
        params = {k: form[k].decode() for k in ("public_id", "overwrite", "timestamp")}
        if form["signature"].decode() != sign_params(params, self._api_secret):
            return httpx.Response(401, json={"error": {"message": "Invalid Signature"}})
        public_id = params["public_id"]
        self.objects[public_id] = form["file"]
        return httpx.Response(
            200,
            json={
                "public_id": public_id,
                "secure_url": f"https://res.test/demo/upload/{public_id}",
                "bytes": len(form["file"]),
            },
        )


@pytest.fixture
def integration_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")
    monkeypatch.setenv("STORAGE_BACKOFF_BASE_SECONDS", "0.01")
    return Settings()


@pytest.fixture
def fake_cloudinary(integration_settings: Settings) -> FakeCloudinary:
    return FakeCloudinary(integration_settings.cloudinary_api_secret)


@pytest.fixture
def cloudinary_service(
    integration_settings: Settings,
    fake_cloudinary: FakeCloudinary,
) -> Generator[UploadService, None, None]:
    storage = CloudinaryStorage(
        cloud_name=integration_settings.cloudinary_cloud_name,
        api_key=integration_settings.cloudinary_api_key,
        api_secret=integration_settings.cloudinary_api_secret,
        base_url="https://api.test/v1_1",
        transport=httpx.MockTransport(fake_cloudinary),
    )
    try:
        yield build_upload_service(integration_settings, storage)
    finally:
        storage.close()
