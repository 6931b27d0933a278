from upload_pipeline.config.settings import Settings
from upload_pipeline.storage.base import BaseObjectStorage
from upload_pipeline.storage.cloudinary_adapter import CloudinaryStorage
from upload_pipeline.storage.exceptions import StorageConfigurationError
from upload_pipeline.storage.memory_adapter import InMemoryStorage
from upload_pipeline.storage.persister import RemotePersister


class StorageFactory:
    """Creates the configured storage adapter."""

    PROVIDERS = ("cloudinary", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStorage:
        """Create the storage client once at startup.

        Raises:
            StorageConfigurationError: unknown provider or missing credentials.
        """
        provider = settings.storage_provider.lower()
        if provider == "memory":
            return InMemoryStorage()
        if provider == "cloudinary":
            cls._require_credentials(settings)
            return CloudinaryStorage(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                base_url=settings.cloudinary_api_base_url,
                timeout_seconds=settings.storage_timeout_seconds,
                max_connections=settings.storage_max_connections,
            )
        raise StorageConfigurationError(
            f"Unknown storage provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )

    @classmethod
    def create_persister(cls, settings: Settings, storage: BaseObjectStorage) -> RemotePersister:
        return RemotePersister(
            storage,
            max_retries=settings.storage_max_retries,
            timeout_seconds=settings.storage_timeout_seconds,
            backoff_base=settings.storage_backoff_base_seconds,
        )

    @staticmethod
    def _require_credentials(settings: Settings) -> None:
        missing = [
            name
            for name, value in (
                ("CLOUDINARY_CLOUD_NAME", settings.cloudinary_cloud_name),
                ("CLOUDINARY_API_KEY", settings.cloudinary_api_key),
                ("CLOUDINARY_API_SECRET", settings.cloudinary_api_secret),
            )
            if not value.strip()
        ]
        if missing:
            raise StorageConfigurationError(
                f"Missing storage credentials: {', '.join(missing)}"
            )
