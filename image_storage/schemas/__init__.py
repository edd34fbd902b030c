"""Pydantic schemas for request/response validation."""

from .error import ErrorDetail, ErrorResponse
from .image import ImageUploadResponse

__all__ = [
    "ImageUploadResponse",
    "ErrorDetail",
    "ErrorResponse",
]
