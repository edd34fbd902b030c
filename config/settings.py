"""Application settings and configuration."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ONE_YEAR_S = 365 * 24 * 60 * 60

STATIC_IMAGE_URL_PREFIX = "content/images"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(
        default="Local Image Storage Service",
        description="Application name"
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version"
    )
    environment: Literal["local", "dev", "stage", "prod"] = Field(
        default="local",
        description="Deployment environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # API Configuration
    url: str = Field(
        default="http://localhost:2368/",
        description="Public site URL; its path becomes the URL subdirectory"
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Storage Configuration
    storage_type: Literal["local"] = Field(
        default="local",
        description="Storage backend type for image files"
    )
    content_path: Path = Field(
        default=Path("content"),
        description="Root content directory; images live in its images/ subdirectory"
    )
    static_image_url_prefix: str = Field(
        default=STATIC_IMAGE_URL_PREFIX,
        description="URL path segment under which stored images are served"
    )
    static_cache_max_age: int = Field(
        default=ONE_YEAR_S,
        description="Cache lifetime (seconds) sent with served images"
    )

    @field_validator("content_path", mode="before")
    @classmethod
    def resolve_content_path(cls, v: str | Path) -> Path:
        """Ensure content path is a Path object."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("static_image_url_prefix")
    @classmethod
    def strip_prefix_slashes(cls, v: str) -> str:
        """Store the prefix without leading or trailing slashes."""
        return v.strip("/")

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Path to log file (if None, logs to stdout only)"
    )

    # Performance Configuration
    max_upload_size: int = Field(
        default=10 * 1024 * 1024,  # 10MB
        description="Maximum file upload size in bytes"
    )

    @property
    def log_level_numeric(self) -> int:
        """Get numeric log level."""
        return getattr(logging, self.log_level)

    @property
    def subdir(self) -> str:
        """URL subdirectory the site is mounted under, e.g. ``/blog`` or ``""``."""
        return urlparse(self.url).path.rstrip("/")

    def configure_logging(self) -> None:
        """Configure logging based on settings."""
        import sys

        # Base logging configuration
        handlers: list[logging.Handler] = []

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        handlers.append(console_handler)

        # File handler if specified
        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self.log_file)
            handlers.append(file_handler)

        # Configure formatter
        if self.log_json:
            # JSON formatter for structured logging
            import json

            class JSONFormatter(logging.Formatter):
                def format(self, record: logging.LogRecord) -> str:
                    log_obj = {
                        "timestamp": self.formatTime(record),
                        "level": record.levelname,
                        "logger": record.name,
                        "message": record.getMessage(),
                        "module": record.module,
                        "function": record.funcName,
                        "line": record.lineno,
                    }
                    if record.exc_info:
                        log_obj["exception"] = self.formatException(record.exc_info)
                    return json.dumps(log_obj)

            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(self.log_format)

        # Apply formatter to all handlers
        for handler in handlers:
            handler.setFormatter(formatter)

        # Configure root logger
        logging.basicConfig(
            level=self.log_level_numeric,
            handlers=handlers,
            force=True,
        )

        # Set specific logger levels
        if self.debug:
            logging.getLogger("image_storage").setLevel(logging.DEBUG)
        else:
            # Reduce noise from third-party libraries
            logging.getLogger("multipart").setLevel(logging.WARNING)
            logging.getLogger("httpx").setLevel(logging.WARNING)

    def get_content_path(self, kind: str) -> Path:
        """Get the absolute directory for one kind of content, e.g. ``images``."""
        return (self.content_path / kind).resolve()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
