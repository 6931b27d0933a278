from upload_pipeline.config.settings import Settings
from upload_pipeline.errors.classifier import rejection
from upload_pipeline.errors.codes import ErrorCode
from upload_pipeline.ingestion.limiter import IngestionLimiter
from upload_pipeline.ingestion.models import IngestionLimits, UploadRequest
from upload_pipeline.logging.logger import Log
from upload_pipeline.orchestrator.call_sites import get_call_site
from upload_pipeline.orchestrator.models import RequestContext, UploadOutcome
from upload_pipeline.orchestrator.orchestrator import UploadOrchestrator
from upload_pipeline.storage.base import BaseObjectStorage
from upload_pipeline.storage.factory import StorageFactory
from upload_pipeline.storage.models import DeletionReport, ObjectInfo
from upload_pipeline.storage.persister import RemotePersister
from upload_pipeline.storage.retry import CancellationToken
from upload_pipeline.validation.validator import ContentValidator


class UploadService:
    """Top-level boundary: any unexpected defect becomes an internal-error outcome."""

    def __init__(
        self,
        orchestrator: UploadOrchestrator,
        persister: RemotePersister,
        *,
        expose_errors: bool = False,
    ) -> None:
        self._orchestrator = orchestrator
        self._persister = persister
        self._expose_errors = expose_errors

    def handle(
        self,
        call_site_name: str,
        request: UploadRequest,
        context: RequestContext | None = None,
        cancel: CancellationToken | None = None,
    ) -> UploadOutcome:
        try:
            call_site = get_call_site(call_site_name)
            return self._orchestrator.handle(request, call_site, context, cancel)
        except Exception as exc:
            ctx = context or RequestContext()
            Log.exception(
                f"Upload pipeline error in {call_site_name}: {exc}",
                actor_id=ctx.actor_id,
                ip_address=ctx.ip_address,
            )
            details = {"error": str(exc)} if self._expose_errors else {}
            return UploadOutcome.failed(
                rejection(ErrorCode.VALIDATION_MIDDLEWARE_ERROR, **details)
            )

    def delete(self, public_ids: list[str]) -> DeletionReport:
        """Called by the domain layer when the record owning the objects is removed."""
        return self._persister.delete(public_ids)

    def lookup(self, public_id: str) -> ObjectInfo | None:
        return self._persister.lookup(public_id)


def build_upload_service(
    settings: Settings,
    storage: BaseObjectStorage | None = None,
) -> UploadService:
    """Build an UploadService with all required collaborators."""
    storage = storage if storage is not None else StorageFactory.create(settings)
    persister = StorageFactory.create_persister(settings, storage)
    orchestrator = UploadOrchestrator(
        limiter=IngestionLimiter(IngestionLimits.from_settings(settings)),
        validator=ContentValidator(),
        persister=persister,
    )
    return UploadService(
        orchestrator,
        persister,
        expose_errors=not settings.is_production,
    )
