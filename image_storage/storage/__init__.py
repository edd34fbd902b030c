"""Storage adapters for image persistence."""

from .base import ImageFile, StorageBase
from .local import LocalFileStorage

__all__ = ["ImageFile", "StorageBase", "LocalFileStorage"]
