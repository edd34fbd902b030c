"""Storage adapter interface for image persistence."""

import os
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import Response

RequestHandler = Callable[[Request], Awaitable[Response]]

# ASCII only: unicode names like "город.jpg" come out as "----.jpg"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w@.]", re.ASCII)


class ImageFile(BaseModel):
    """An uploaded image waiting to be copied into storage."""

    name: str = Field(..., min_length=1, description="Original filename, e.g. 'photo.jpg'")
    path: Path = Field(..., description="Where the uploaded bytes currently live on disk")
    type: Optional[str] = Field(None, description="Content type reported by the client")


class StorageBase(ABC):
    """Abstract base class for image storage adapters.

    Implementations (local filesystem, object stores, ...) provide the five
    adapter operations. The base class supplies the dated target directory
    and the unique filename helpers, which only depend on ``exists``.
    """

    @abstractmethod
    async def save(self, image: ImageFile, target_dir: Optional[str] = None) -> str:
        """Store an uploaded image under a collision-free name.

        Returns:
            str: Public URL of the stored image.
        """
        pass

    @abstractmethod
    async def save_raw(self, buffer: bytes, target_path: str) -> str:
        """Write ``buffer`` to ``target_path``, overwriting whatever is there.

        Returns:
            str: Public URL of the stored bytes.
        """
        pass

    @abstractmethod
    async def exists(self, file_name: str, target_dir: Optional[str] = None) -> bool:
        """Check whether ``file_name`` is already taken in ``target_dir``."""
        pass

    @abstractmethod
    def serve(self) -> RequestHandler:
        """Return a request handler that streams stored images."""
        pass

    @abstractmethod
    async def delete(self, *args: Any, **kwargs: Any) -> None:
        """Remove a stored image."""
        pass

    @abstractmethod
    async def read(self, path: str = "") -> bytes:
        """Read the raw bytes of a stored image."""
        pass

    def get_target_dir(self, base_dir: Optional[str | os.PathLike] = None) -> str:
        """Dated subdirectory (``YYYY/MM``) for new uploads, under ``base_dir`` if given."""
        now = datetime.now()
        year, month = now.strftime("%Y"), now.strftime("%m")
        if base_dir:
            return os.path.join(base_dir, year, month)
        return os.path.join(year, month)

    def get_sanitized_file_name(self, file_name: str) -> str:
        return _UNSAFE_FILENAME_CHARS.sub("-", file_name)

    async def generate_unique(self, directory: str, name: str, ext: str, i: int = 0) -> str:
        """Find the first free ``name[-i]ext`` in ``directory``.

        Args:
            directory: Directory the file will be written to.
            name: Sanitized filename without extension.
            ext: Extension including the dot, or an empty string.
            i: Suffix to start from; 0 means no suffix.

        Returns:
            str: Joined path of the first filename ``exists`` reports as free.
        """
        while True:
            append = f"-{i}" if i else ""
            filename = f"{name}{append}{ext}"
            if not await self.exists(filename, directory):
                return os.path.join(directory, filename)
            i += 1

    async def get_unique_file_name(self, image: ImageFile, target_dir: str) -> str:
        """Collision-free destination path for ``image`` inside ``target_dir``."""
        stem, ext = os.path.splitext(os.path.basename(image.name))
        name = self.get_sanitized_file_name(stem)
        return await self.generate_unique(target_dir, name, ext)
