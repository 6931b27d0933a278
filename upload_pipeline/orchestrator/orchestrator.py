from upload_pipeline.errors.classifier import rejection
from upload_pipeline.errors.codes import ErrorCode
from upload_pipeline.ingestion.limiter import IngestionLimiter
from upload_pipeline.ingestion.models import UploadRequest
from upload_pipeline.logging.logger import Log
from upload_pipeline.orchestrator.call_sites import CallSite
from upload_pipeline.orchestrator.models import ProvenanceMetadata, RequestContext, UploadOutcome
from upload_pipeline.storage.exceptions import StorageExhaustedError, UploadCancelledError
from upload_pipeline.storage.models import UploadOptions
from upload_pipeline.storage.persister import RemotePersister
from upload_pipeline.storage.retry import CancellationToken
from upload_pipeline.validation.fields import validate_fields
from upload_pipeline.validation.filenames import storage_public_id
from upload_pipeline.validation.models import Rejected
from upload_pipeline.validation.signatures import leading_bytes
from upload_pipeline.validation.validator import ContentValidator


class UploadOrchestrator:
    """Sequences limiter -> validator -> form fields -> persister for one request.

    Rejections return before storage is contacted. The only side effect is the
    network write performed by the persister.
    """

    def __init__(
        self,
        limiter: IngestionLimiter,
        validator: ContentValidator,
        persister: RemotePersister,
    ) -> None:
        self._limiter = limiter
        self._validator = validator
        self._persister = persister

    def handle(
        self,
        request: UploadRequest,
        call_site: CallSite,
        context: RequestContext | None = None,
        cancel: CancellationToken | None = None,
    ) -> UploadOutcome:
        context = context if context is not None else RequestContext()

        admitted = self._limiter.admit(request, call_site.file_field)
        if isinstance(admitted, Rejected):
            return self._reject(call_site, context, admitted)

        candidate = admitted.candidate
        outcome = self._validator.validate(candidate, call_site.policy)
        if isinstance(outcome, Rejected):
            if outcome.code == ErrorCode.INVALID_FILE_SIGNATURE:
                Log.warning(
                    f"{call_site.name} upload failed file signature check",
                    declared_type=candidate.content_type.strip(),
                    leading_bytes=leading_bytes(candidate.data),
                    actor_id=context.actor_id,
                    ip_address=context.ip_address,
                )
            return self._reject(call_site, context, outcome)

        fields: dict[str, str] = {}
        if call_site.fields_model is not None:
            parsed = validate_fields(call_site.fields_model, admitted.fields)
            if isinstance(parsed, Rejected):
                return self._reject(call_site, context, parsed)
            fields = parsed.echo()

        options = UploadOptions(
            public_id=storage_public_id(outcome.storage_key),
            folder=call_site.folder,
            content_type=candidate.content_type.strip().lower(),
            resource_type=call_site.resource_type,
        )
        try:
            stored = self._persister.persist(candidate.data, options, cancel=cancel)
        except StorageExhaustedError as exc:
            Log.error(f"{call_site.name} upload failed, storage unavailable: {exc}")
            return UploadOutcome.failed(
                rejection(ErrorCode.STORAGE_UNAVAILABLE, attempts=exc.attempts)
            )
        except UploadCancelledError as exc:
            Log.info(f"{call_site.name} upload cancelled: {exc}")
            return UploadOutcome.failed(rejection(ErrorCode.UPLOAD_CANCELLED))

        provenance = ProvenanceMetadata.stamp(context)
        Log.info(
            f"{call_site.name} upload successful: {outcome.sanitized_filename} "
            f"({candidate.size} bytes, {options.content_type}) by {context.actor_id} "
            f"from {context.ip_address}"
        )
        return UploadOutcome.succeeded(stored, provenance, fields)

    @staticmethod
    def _reject(call_site: CallSite, context: RequestContext, rejected: Rejected) -> UploadOutcome:
        Log.warning(
            f"{call_site.name} upload rejected: {rejected.code} "
            f"(actor={context.actor_id}, ip={context.ip_address})"
        )
        return UploadOutcome.failed(rejected)
