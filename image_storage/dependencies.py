"""FastAPI dependency injection configuration."""

import logging

from image_storage.storage.base import StorageBase
from image_storage.storage.local import LocalFileStorage
from config import get_settings

logger = logging.getLogger(__name__)


# Global instance for the storage adapter
_storage: LocalFileStorage | None = None


def get_storage() -> StorageBase:
    """Get the storage adapter based on configuration.

    The adapter is created once, rooted at the ``images`` directory of the
    configured content path. Only the "local" STORAGE_TYPE exists today.

    Returns:
        StorageBase: The configured storage adapter instance
    """
    global _storage

    if _storage is None:
        settings = get_settings()
        _storage = LocalFileStorage(
            settings.get_content_path("images"),
            subdir=settings.subdir,
            static_image_url_prefix=settings.static_image_url_prefix,
            cache_max_age=settings.static_cache_max_age,
        )
        logger.info(f"Created local file storage with root: {_storage.storage_path}")

    return _storage
