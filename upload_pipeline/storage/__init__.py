from upload_pipeline.storage.base import BaseObjectStorage
from upload_pipeline.storage.factory import StorageFactory
from upload_pipeline.storage.persister import RemotePersister
from upload_pipeline.storage.retry import CancellationToken

__all__ = ["BaseObjectStorage", "CancellationToken", "RemotePersister", "StorageFactory"]
