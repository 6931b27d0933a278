from upload_pipeline.config.settings import Settings
from upload_pipeline.logging.logger import Log
from upload_pipeline.orchestrator.call_sites import CALL_SITES
from upload_pipeline.orchestrator.service import build_upload_service
from upload_pipeline.storage.exceptions import StorageConfigurationError
from upload_pipeline.storage.factory import StorageFactory


def main() -> None:
    """Entry point: load settings -> build storage client -> ping provider -> wire service."""
    settings = Settings()
    Log.configure(settings.log_level)

    try:
        storage = StorageFactory.create(settings)
    except StorageConfigurationError as exc:
        Log.error(f"Storage configuration failed: {exc}")
        raise SystemExit(1) from exc

    try:
        if storage.ping():
            Log.info(f"Storage provider '{settings.storage_provider}' connection successful")
        else:
            Log.warning(f"Storage provider '{settings.storage_provider}' is not reachable yet")
        build_upload_service(settings, storage)
        Log.info(f"Upload pipeline ready for call sites: {sorted(CALL_SITES)}")
    finally:
        storage.close()


if __name__ == "__main__":
    main()
