from .blob_store import (
    BlobStore,
    BlobStoreError,
    SQLiteBlobStore,
    HttpBlobStore,
    create_blob_store,
)
from .config_repository import ConfigRepository, CONFIG_KEY

__all__ = [
    "BlobStore",
    "BlobStoreError",
    "SQLiteBlobStore",
    "HttpBlobStore",
    "create_blob_store",
    "ConfigRepository",
    "CONFIG_KEY",
]
