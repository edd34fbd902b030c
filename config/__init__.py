"""Configuration package."""

from .settings import ONE_YEAR_S, STATIC_IMAGE_URL_PREFIX, Settings, get_settings

__all__ = ["Settings", "get_settings", "ONE_YEAR_S", "STATIC_IMAGE_URL_PREFIX"]
