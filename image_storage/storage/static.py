"""Static-file serving primitive used by the local storage adapter."""

import errno
import os
from typing import Callable, Optional

from starlette.background import BackgroundTask
from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from config import ONE_YEAR_S


class ImageStaticFiles(StaticFiles):
    """StaticFiles with a cache lifetime, a completion hook and no fallthrough.

    A miss is always raised as an ``HTTPException`` (404), so callers never
    see a request silently passed on. Lookups the OS refuses because the name
    is too long or malformed raise 400, and denied lookups raise 403.
    """

    def __init__(
        self,
        *,
        directory: str | os.PathLike,
        max_age: int = ONE_YEAR_S,
        on_end: Optional[Callable[[], None]] = None,
    ):
        super().__init__(directory=directory, html=False, check_dir=False)
        self.max_age = max_age
        self.on_end = on_end

    @staticmethod
    def normalize_path(route_path: str) -> str:
        """Turn a URL path below the mount point into an OS path."""
        return os.path.normpath(os.path.join(*route_path.split("/")))

    def lookup_path(self, path: str) -> tuple[str, Optional[os.stat_result]]:
        try:
            return super().lookup_path(path)
        except PermissionError as exc:
            raise HTTPException(status_code=403) from exc
        except ValueError as exc:
            # embedded NUL byte
            raise HTTPException(status_code=400) from exc
        except OSError as exc:
            if exc.errno == errno.ENAMETOOLONG:
                raise HTTPException(status_code=400) from exc
            raise

    def file_response(
        self,
        full_path: str | os.PathLike,
        stat_result: os.stat_result,
        scope: Scope,
        status_code: int = 200,
    ) -> Response:
        response = super().file_response(full_path, stat_result, scope, status_code)
        response.headers["Cache-Control"] = f"public, max-age={self.max_age}"
        if self.on_end is not None:
            # runs once the body has been sent
            response.background = BackgroundTask(self.on_end)
        return response
