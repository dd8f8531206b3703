"""
Blob storage for uploaded videos.
"""
from functools import lru_cache

from app.core.config import settings

from .blob_storage import BlobStorage, InMemoryBlobStorage, LocalBlobStorage


@lru_cache
def get_blob_storage() -> BlobStorage:
    """Process-wide storage backend built from settings (FastAPI dependency)."""
    return LocalBlobStorage(
        root=settings.BLOB_STORAGE_ROOT,
        public_base_url=settings.BLOB_PUBLIC_BASE_URL,
        signing_key=settings.BLOB_URL_SIGNING_KEY or settings.JWT_SECRET_KEY,
    )


__all__ = [
    "BlobStorage",
    "InMemoryBlobStorage",
    "LocalBlobStorage",
    "get_blob_storage",
]
