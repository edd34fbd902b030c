"""Error response schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """One error entry as rendered by the storage error handler."""

    message: str = Field(..., description="Human-readable error message")
    context: Optional[str] = Field(None, description="Extra detail about the failure")
    help: Optional[str] = Field(None, description="Hint for resolving the error")
    type: str = Field(..., description="Error kind, e.g. 'NotFoundError'")
    code: Optional[str] = Field(None, description="Machine-readable code, e.g. 'ENOENT'")
    property: Optional[str] = Field(None, description="Offending value, e.g. the requested path")


class ErrorResponse(BaseModel):
    """Body returned for any storage error."""

    errors: list[ErrorDetail]
