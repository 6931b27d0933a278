import io
import logging
from unittest.mock import MagicMock

import pytest

from upload_pipeline.errors.codes import ErrorCode
from upload_pipeline.ingestion.limiter import IngestionLimiter
from upload_pipeline.ingestion.models import IncomingFile, UploadRequest
from upload_pipeline.orchestrator.call_sites import (
    ADVERTISEMENT,
    CERTIFICATE,
    PORTFOLIO,
    PROFILE_PICTURE,
)
from upload_pipeline.orchestrator.models import RequestContext
from upload_pipeline.orchestrator.orchestrator import UploadOrchestrator
from upload_pipeline.storage.exceptions import (
    StorageExhaustedError,
    StorageUnavailableError,
    UploadCancelledError,
)
from upload_pipeline.storage.models import StoredObjectRef
from upload_pipeline.storage.persister import RemotePersister
from upload_pipeline.validation.validator import ContentValidator

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 100


def _make_orchestrator() -> tuple[UploadOrchestrator, MagicMock]:
    persister = MagicMock(spec=RemotePersister)
    persister.persist.side_effect = lambda data, options, cancel=None: StoredObjectRef(
        url=f"https://cdn.test/{options.full_public_id}",
        public_id=options.full_public_id,
        size_bytes=len(data),
        content_type=options.content_type,
    )
    orchestrator = UploadOrchestrator(IngestionLimiter(), ContentValidator(), persister)
    return orchestrator, persister


def _request(
    data: bytes = PNG,
    *,
    field_name: str = "image",
    filename: str = "photo.png",
    content_type: str = "image/png",
    fields: dict[str, str] | None = None,
) -> UploadRequest:
    incoming = IncomingFile(
        field_name=field_name,
        filename=filename,
        content_type=content_type,
        stream=io.BytesIO(data),
    )
    return UploadRequest(files=[incoming], fields=fields or {})


class TestSuccessfulUpload:
    def test_profile_picture_is_persisted(self) -> None:
        orchestrator, persister = _make_orchestrator()
        context = RequestContext(actor_id="u1", ip_address="10.0.0.1", user_agent="ua")

        outcome = orchestrator.handle(_request(), PROFILE_PICTURE, context)

        assert outcome.success
        assert outcome.http_status == 201
        persister.persist.assert_called_once()
        data, options = persister.persist.call_args.args
        assert data == PNG
        assert options.folder == "profile_pictures"
        assert options.public_id.endswith("-photo")
        assert options.content_type == "image/png"

    def test_provenance_is_stamped(self) -> None:
        orchestrator, _persister = _make_orchestrator()
        context = RequestContext(actor_id="u1", ip_address="10.0.0.1", user_agent="ua")

        outcome = orchestrator.handle(_request(), PROFILE_PICTURE, context)

        assert outcome.provenance is not None
        assert outcome.provenance.actor_id == "u1"
        assert outcome.provenance.ip_address == "10.0.0.1"
        assert outcome.provenance.user_agent == "ua"
        assert outcome.provenance.uploaded_at

    def test_certificate_uses_auto_resource_type(self, sample_pdf_bytes: bytes) -> None:
        orchestrator, persister = _make_orchestrator()
        request = _request(
            sample_pdf_bytes,
            field_name="certificate",
            filename="cert.pdf",
            content_type="application/pdf",
        )

        outcome = orchestrator.handle(request, CERTIFICATE)

        assert outcome.success
        options = persister.persist.call_args.args[1]
        assert options.resource_type == "auto"
        assert options.folder == "certificates"

    def test_portfolio_fields_are_echoed(self) -> None:
        orchestrator, _persister = _make_orchestrator()
        request = _request(
            fields={"projectTitle": "Deck", "description": "A cedar deck with <b>stairs</b>."}
        )

        outcome = orchestrator.handle(request, PORTFOLIO)

        assert outcome.success
        assert outcome.fields == {
            "projectTitle": "Deck",
            "description": "A cedar deck with bstairs/b.",
        }
        assert outcome.to_dict()["fields"]["projectTitle"] == "Deck"

    def test_declared_type_is_normalized_for_storage(self) -> None:
        orchestrator, persister = _make_orchestrator()

        outcome = orchestrator.handle(_request(content_type="IMAGE/PNG "), PROFILE_PICTURE)

        assert outcome.success
        options = persister.persist.call_args.args[1]
        assert options.content_type == "image/png"
        assert outcome.stored is not None
        assert outcome.stored.content_type == "image/png"


class TestRejectionsNeverReachStorage:
    def test_limiter_rejection(self) -> None:
        orchestrator, persister = _make_orchestrator()

        outcome = orchestrator.handle(_request(field_name="avatar"), PROFILE_PICTURE)

        assert outcome.code == ErrorCode.UNEXPECTED_FILE_FIELD
        assert outcome.http_status == 400
        persister.persist.assert_not_called()

    def test_validator_rejection(self) -> None:
        orchestrator, persister = _make_orchestrator()

        outcome = orchestrator.handle(_request(filename="shell.php.png"), PROFILE_PICTURE)

        assert outcome.code == ErrorCode.SUSPICIOUS_FILE
        persister.persist.assert_not_called()

    def test_pdf_disguised_as_jpeg(self) -> None:
        orchestrator, persister = _make_orchestrator()
        request = _request(b"%PDF-1.7\n", filename="x.jpg", content_type="image/jpeg")

        outcome = orchestrator.handle(request, PROFILE_PICTURE)

        assert outcome.code == ErrorCode.INVALID_FILE_SIGNATURE
        persister.persist.assert_not_called()

    def test_signature_mismatch_is_logged_with_origin(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        orchestrator, _persister = _make_orchestrator()
        context = RequestContext(actor_id="u1", ip_address="198.51.100.4", user_agent="ua")
        request = _request(b"%PDF-1.7\n", filename="x.jpg", content_type="image/jpeg")

        with caplog.at_level(logging.WARNING, logger="upload_pipeline"):
            orchestrator.handle(request, PROFILE_PICTURE, context)

        mismatch = [m for m in caplog.messages if "file signature check" in m]
        assert len(mismatch) == 1
        assert "ip_address=198.51.100.4" in mismatch[0]
        assert "actor_id=u1" in mismatch[0]
        assert "declared_type=image/jpeg" in mismatch[0]
        assert "leading_bytes=25 50 44 46" in mismatch[0]

    def test_field_rejection(self) -> None:
        orchestrator, persister = _make_orchestrator()
        request = _request(fields={"title": "Sale"})

        outcome = orchestrator.handle(request, ADVERTISEMENT)

        assert outcome.code == ErrorCode.VALIDATION_ERROR
        persister.persist.assert_not_called()

    def test_blocked_link_domain(self) -> None:
        orchestrator, persister = _make_orchestrator()
        request = _request(
            fields={
                "title": "Spring Sale",
                "companyName": "Acme",
                "description": "Big discounts this week only.",
                "link": "http://localhost/admin",
            }
        )

        outcome = orchestrator.handle(request, ADVERTISEMENT)

        assert outcome.code == ErrorCode.INVALID_DOMAIN
        persister.persist.assert_not_called()

    def test_rejection_serializes_context(self) -> None:
        orchestrator, _persister = _make_orchestrator()

        outcome = orchestrator.handle(_request(field_name="avatar"), PROFILE_PICTURE)

        assert outcome.to_dict() == {
            "success": False,
            "message": "Unexpected file field. Use 'image' field name.",
            "code": "UNEXPECTED_FILE_FIELD",
            "expected_field": "image",
        }


class TestStorageFailures:
    def test_exhausted_storage_maps_to_unavailable(self) -> None:
        orchestrator, persister = _make_orchestrator()
        persister.persist.side_effect = StorageExhaustedError(3, StorageUnavailableError("503"))

        outcome = orchestrator.handle(_request(), PROFILE_PICTURE)

        assert outcome.code == ErrorCode.STORAGE_UNAVAILABLE
        assert outcome.http_status == 503
        assert outcome.rejection is not None
        assert outcome.rejection.context == {"attempts": 3}

    def test_cancelled_upload(self) -> None:
        orchestrator, persister = _make_orchestrator()
        persister.persist.side_effect = UploadCancelledError("client went away")

        outcome = orchestrator.handle(_request(), PROFILE_PICTURE)

        assert outcome.code == ErrorCode.UPLOAD_CANCELLED
        assert not outcome.success
