"""Image-related Pydantic schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageUploadResponse(BaseModel):
    """Response model for a successful image upload.

    The url is relative to the site root and always uses forward slashes,
    so it can be embedded in content as-is regardless of the server OS.
    """

    model_config = ConfigDict(
        # Enable JSON schema generation with examples
        json_schema_extra={
            "examples": [
                {"url": "/content/images/2024/03/photo.jpg"},
                {"url": "/blog/content/images/2024/03/photo-1.jpg"},
            ]
        }
    )

    url: str = Field(
        ...,
        description="Public URL of the stored image, e.g. '/content/images/2024/03/photo.jpg'",
        min_length=1,
    )

    @field_validator("url")
    @classmethod
    def validate_relative_url(cls, v: str) -> str:
        """Validate that the url is site-relative."""
        if not v.startswith("/"):
            raise ValueError("url must start with '/'")
        return v
