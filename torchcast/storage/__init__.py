"""Storage module for blobs, episodes and feed state."""

from ..config.settings import StorageSettings
from .base import BlobStore, public_url
from .database import SQLiteBlobStore, init_blob_database
from .repository import EpisodeRepository, FeedStateRepository
from .s3 import S3BlobStore


async def open_blob_store(settings: StorageSettings) -> BlobStore:
    """Open the configured backend, ready for use."""
    if settings.backend == "s3":
        return S3BlobStore(
            endpoint_url=settings.endpoint_url,
            region=settings.region,
            access_key_id=(
                settings.access_key_id.get_secret_value() if settings.access_key_id else None
            ),
            secret_access_key=(
                settings.secret_access_key.get_secret_value()
                if settings.secret_access_key
                else None
            ),
        )
    return await init_blob_database(settings.db_path)


__all__ = [
    "BlobStore",
    "EpisodeRepository",
    "FeedStateRepository",
    "S3BlobStore",
    "SQLiteBlobStore",
    "init_blob_database",
    "open_blob_store",
    "public_url",
]
