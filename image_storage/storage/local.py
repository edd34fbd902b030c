"""Local filesystem implementation of StorageBase."""
import errno
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import Response

from config import ONE_YEAR_S, STATIC_IMAGE_URL_PREFIX
from image_storage.errors import (
    BadRequestError,
    GenericStorageError,
    NoPermissionError,
    NotFoundError,
    StorageError,
)
from image_storage.url_utils import to_filesystem_path, to_public_url, url_join

from .base import ImageFile, RequestHandler, StorageBase
from .static import ImageStaticFiles

logger = logging.getLogger(__name__)

MESSAGES = {
    "image_not_found": "Image not found",
    "image_not_found_with_ref": "Image not found: {img}",
    "cannot_read_image": "Could not read image: {img}",
}

COPY_CHUNK_SIZE = 64 * 1024

# Attempts at claiming a unique name before giving up in save()
MAX_SAVE_ATTEMPTS = 5

_TRAILING_SLASH = re.compile(r"(/|\\)\Z")


def classify_read_error(exc: Exception, path: str) -> StorageError:
    """Translate a filesystem failure on ``path`` into a storage error."""
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return NotFoundError(
            MESSAGES["image_not_found_with_ref"].format(img=path),
            err=exc,
        )
    if isinstance(exc, ValueError) or getattr(exc, "errno", None) == errno.ENAMETOOLONG:
        return BadRequestError(err=exc)
    if isinstance(exc, PermissionError):
        return NoPermissionError(err=exc)
    return GenericStorageError(
        MESSAGES["cannot_read_image"].format(img=path),
        err=exc,
    )


class LocalFileStorage(StorageBase):
    """Local filesystem storage implementation.

    Every read, write and existence check is resolved against a single
    storage root fixed at construction. Stored images are served back over
    HTTP by the handler returned from ``serve()``.
    """

    def __init__(
        self,
        storage_path: str | Path,
        *,
        subdir: str = "",
        static_image_url_prefix: str = STATIC_IMAGE_URL_PREFIX,
        cache_max_age: int = ONE_YEAR_S,
    ):
        """Initialize local file storage.

        Args:
            storage_path: Root directory all images are stored under.
            subdir: URL subdirectory the site is mounted under, e.g. ``/blog``.
            static_image_url_prefix: URL segment stored images are served from.
            cache_max_age: Cache lifetime in seconds for served images.
        """
        self._storage_path = Path(storage_path).resolve()
        self.subdir = subdir
        self.static_image_url_prefix = static_image_url_prefix
        self.cache_max_age = cache_max_age

        self._ensure_storage_dir()
        logger.info(f"Initialized LocalFileStorage with root: {self._storage_path}")

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def _ensure_storage_dir(self) -> None:
        """Ensure the storage directory exists."""
        try:
            self._storage_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create storage directory: {e}")
            raise GenericStorageError(f"Failed to create storage directory: {e}", err=e)

    def _public_url(self, relative: str) -> str:
        return to_public_url(self.subdir, relative, self.static_image_url_prefix)

    async def save_raw(self, buffer: bytes, target_path: str) -> str:
        """Save a buffer at ``target_path`` below the storage root.

        Any file already at that exact path is overwritten; callers that need
        uniqueness must pick the path themselves.

        Args:
            buffer: Bytes to write.
            target_path: Relative path to write to, e.g. ``2024/03/photo.jpg``.

        Returns:
            str: Public URL of the written file.

        Raises:
            ValueError: If ``target_path`` climbs out of the storage root.
        """
        storage_path = to_filesystem_path(self.storage_path, target_path)

        await aiofiles.os.makedirs(os.path.dirname(storage_path), exist_ok=True)
        async with aiofiles.open(storage_path, "wb") as f:
            await f.write(buffer)

        logger.debug(f"Saved {len(buffer)} bytes to: {storage_path}")
        return self._public_url(target_path)

    async def save(self, image: ImageFile, target_dir: Optional[str] = None) -> str:
        """Copy an uploaded image into storage under a collision-free name.

        Args:
            image: The uploaded image. Its source file is left untouched.
            target_dir: Destination directory. Relative paths are taken from
                the storage root; absolute ones must lie inside it. Defaults
                to the dated ``YYYY/MM`` directory.

        Returns:
            str: Public URL of the stored image.
        """
        if not target_dir:
            target_dir = self.get_target_dir(self.storage_path)
        elif os.path.isabs(target_dir):
            target_dir = to_filesystem_path(
                self.storage_path, os.path.relpath(target_dir, self.storage_path)
            )
        else:
            target_dir = to_filesystem_path(self.storage_path, target_dir)

        for attempt in range(1, MAX_SAVE_ATTEMPTS + 1):
            target_filename = await self.get_unique_file_name(image, target_dir)
            await aiofiles.os.makedirs(target_dir, exist_ok=True)
            try:
                await self._copy_exclusive(image.path, target_filename)
                break
            except FileExistsError:
                # another writer claimed the name after our exists() check
                if attempt == MAX_SAVE_ATTEMPTS:
                    raise
                logger.debug(f"Name already taken, retrying: {target_filename}")

        logger.debug(f"Saved image {image.name} to: {target_filename}")
        return self._public_url(os.path.relpath(target_filename, self.storage_path))

    async def _copy_exclusive(self, source: str | Path, destination: str) -> None:
        async with aiofiles.open(source, "rb") as src:
            async with aiofiles.open(destination, "xb") as dst:
                while True:
                    chunk = await src.read(COPY_CHUNK_SIZE)
                    if not chunk:
                        break
                    await dst.write(chunk)

    async def stat(self, file_name: str, target_dir: Optional[str] = None) -> os.stat_result:
        """Stat a stored file, raising a classified storage error on failure."""
        try:
            file_path = to_filesystem_path(target_dir or self.storage_path, file_name)
            return await aiofiles.os.stat(file_path)
        except (OSError, ValueError) as e:
            raise classify_read_error(e, file_name) from e

    async def exists(self, file_name: str, target_dir: Optional[str] = None) -> bool:
        """Check whether ``file_name`` exists in ``target_dir`` (default: storage root).

        Any failure, including permission errors, counts as "does not exist"
        so unique filename generation can carry on. Use ``stat`` to tell the
        cases apart.
        """
        try:
            await self.stat(file_name, target_dir)
        except StorageError:
            return False
        return True

    def serve(self) -> RequestHandler:
        """Build the request handler that streams stored images.

        Files are streamed by ``ImageStaticFiles`` with a one-year cache
        lifetime. Failures are raised as storage errors for the app's
        exception handlers.
        """
        storage_path = self.storage_path
        max_age = self.cache_max_age
        mount_prefix = url_join("/", self.subdir, self.static_image_url_prefix, "")

        async def serve_static_content(request: Request) -> Response:
            started_at = time.perf_counter()
            file_path = request.path_params.get("file_path")
            if file_path is None:
                # routed without a path parameter, so drop the mount prefix
                file_path = request.url.path
                if file_path.startswith(mount_prefix):
                    file_path = file_path[len(mount_prefix):]

            def on_end() -> None:
                elapsed_ms = (time.perf_counter() - started_at) * 1000
                logger.info(f"LocalFileStorage.serve {request.url.path} {elapsed_ms:.0f}ms")

            static_files = ImageStaticFiles(directory=storage_path, max_age=max_age, on_end=on_end)

            try:
                return await static_files.get_response(
                    static_files.normalize_path(file_path), request.scope
                )
            except HTTPException as e:
                if e.status_code == 404:
                    raise NotFoundError(
                        MESSAGES["image_not_found"],
                        code="STATIC_FILE_NOT_FOUND",
                        property=file_path,
                    ) from e
                if e.status_code == 400:
                    raise BadRequestError(err=e) from e
                if e.status_code == 403:
                    raise NoPermissionError(err=e) from e
                raise GenericStorageError(err=e) from e
            except OSError as e:
                raise GenericStorageError(err=e) from e

        return serve_static_content

    async def delete(self, *args: Any, **kwargs: Any) -> None:
        """Not implemented."""
        raise NotImplementedError("not implemented")

    async def read(self, path: str = "") -> bytes:
        """Read the bytes of a stored image.

        Args:
            path: Path relative to the storage root. One trailing slash or
                backslash is ignored.

        Returns:
            bytes: Raw file content.

        Raises:
            NotFoundError: The file or a parent directory does not exist.
            BadRequestError: The path is too long or malformed, or climbs out of
                the storage root.
            NoPermissionError: Access was denied.
            GenericStorageError: Any other failure.
        """
        path = _TRAILING_SLASH.sub("", path or "")
        try:
            target_path = to_filesystem_path(self.storage_path, path)
            async with aiofiles.open(target_path, "rb") as f:
                content = await f.read()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read image {path}: {e}")
            raise classify_read_error(e, path) from e

        logger.debug(f"Read {len(content)} bytes from: {target_path}")
        return content
