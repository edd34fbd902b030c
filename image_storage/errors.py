"""Typed errors surfaced by storage adapters.

Read and serve failures are translated into one of the four kinds below so
the HTTP layer can answer with a stable status code and error type. Write
failures are not translated and reach the caller as plain ``OSError``.
"""

import errno
from typing import Any, Optional


class StorageError(Exception):
    """Base exception for storage-related errors."""

    status_code: int = 500
    error_type: str = "StorageError"
    default_message: str = "The server has encountered an error."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        err: Optional[BaseException] = None,
        code: Optional[str] = None,
        property: Optional[str] = None,
        context: Optional[str] = None,
        help: Optional[str] = None,
    ):
        """Create a storage error.

        Args:
            message: Human-readable message. Falls back to the class default.
            err: Original exception being wrapped, if any.
            code: Machine-readable code. Taken from ``err`` when not given.
            property: The offending value, e.g. the unresolved path.
            context: Extra detail for the client.
            help: Hint for resolving the error.
        """
        self.message = message or self.default_message
        self.err = err
        self.code = code or _code_from(err)
        self.property = property
        self.context = context
        self.help = help
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the error in the shape returned to HTTP clients."""
        return {
            "message": self.message,
            "context": self.context,
            "help": self.help,
            "type": self.error_type,
            "code": self.code,
            "property": self.property,
        }


class NotFoundError(StorageError):
    """Raised when the target asset is absent."""

    status_code = 404
    error_type = "NotFoundError"
    default_message = "Resource could not be found."


class BadRequestError(StorageError):
    """Raised for malformed or oversized paths."""

    status_code = 400
    error_type = "BadRequestError"
    default_message = "The request could not be understood."


class NoPermissionError(StorageError):
    """Raised when filesystem access is denied."""

    status_code = 403
    error_type = "NoPermissionError"
    default_message = "You do not have permission to perform this request."


class GenericStorageError(StorageError):
    """Catch-all wrapper for unexpected storage failures."""

    status_code = 500
    error_type = "InternalServerError"


def _code_from(err: Optional[BaseException]) -> Optional[str]:
    if isinstance(err, OSError) and err.errno is not None:
        return errno.errorcode.get(err.errno)
    return getattr(err, "code", None)
