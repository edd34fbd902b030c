"""Filesystem path and public URL construction for stored images."""

import os
import re

from config import STATIC_IMAGE_URL_PREFIX

_REPEATED_SLASHES = re.compile(r"/{2,}")


def url_join(*parts: str) -> str:
    """Join URL parts with ``/`` and collapse repeated slashes."""
    return _REPEATED_SLASHES.sub("/", "/".join(parts))


def to_filesystem_path(root: str | os.PathLike, relative: str) -> str:
    """Join a relative asset path onto the storage root.

    Leading separators and any drive are dropped from ``relative``, so an
    absolute path is taken as relative to ``root``.

    Raises:
        ValueError: If ``..`` segments would climb out of ``root``.
    """
    root = os.path.abspath(root)
    _, relative = os.path.splitdrive(relative)
    relative = relative.lstrip(os.sep + (os.altsep or ""))

    target = os.path.normpath(os.path.join(root, relative))
    if os.path.commonpath([root, target]) != root:
        raise ValueError(f"Path escapes storage root: {relative}")
    return target



def to_public_url(
    subdir: str,
    relative: str,
    prefix: str = STATIC_IMAGE_URL_PREFIX,
    sep: str = os.sep,
) -> str:
    """Build the public URL of an asset.

    Only ``sep``, the host's native separator, is rewritten to ``/``, so on
    POSIX a backslash inside ``relative`` survives unchanged.
    """
    return url_join("/", subdir, prefix, relative).replace(sep, "/")
