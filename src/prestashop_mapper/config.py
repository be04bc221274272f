"""Application configuration management using Pydantic Settings.

This module defines the `Settings` class, which loads connection details for
the PrestaShop webservice and the few process-wide switches the mapper needs
(HTML policy flag, default language, image limits) from environment variables
and a `.env` file.

The `get_settings` function provides a cached, singleton instance of the
configuration. Nothing in the core reads it implicitly: callers pass the
relevant values (client, html flag, image options) into each operation.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict


class Settings(BaseSettings):
    """Defines all configuration parameters for the mapper."""

    model_config = _SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Webservice
    PRESTASHOP_API_URL: str = Field(
        default="", description="Shop base URL, e.g. https://shop.example.com"
    )
    PRESTASHOP_API_KEY: str = Field(default="", description="Webservice key (basic auth user)")
    REQUEST_TIMEOUT: int = Field(
        default=30, description="Timeout (seconds) for webservice HTTP requests"
    )

    # Content behaviour
    HTML_ENABLED: bool = Field(
        default=False,
        description=(
            "When true rich text fields keep embedded frames (iframed policy); "
            "otherwise the relaxed policy is used."
        ),
    )
    ID_LANGUAGE: int = Field(
        default=1, description="Language id used for multilingual attribute values"
    )

    # Images
    IMAGE_DEFAULT_FORMAT: str = Field(
        default="PNG",
        description="Encoding used when a fetched image is not JPEG, PNG or GIF",
    )
    IMAGE_MAX_BYTES: int = Field(
        default=10_000_000,
        description="Maximum size (bytes) of a fetched image source (default 10MB)",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("PRESTASHOP_API_URL", mode="before")
    @classmethod
    def normalize_api_url(cls, v: object) -> str:
        """Strip whitespace, trailing slashes and a trailing `/api` segment.

        The client appends `/api` itself, so both `https://shop` and
        `https://shop/api/` resolve to the same base.
        """
        if not isinstance(v, str):
            return ""
        url = v.strip().rstrip("/")
        if url.endswith("/api"):
            url = url[: -len("/api")]
        return url

    @field_validator("IMAGE_DEFAULT_FORMAT", mode="before")
    @classmethod
    def normalize_image_format(cls, v: object) -> str:
        if not isinstance(v, str) or not v.strip():
            return "PNG"
        fmt = v.strip().upper()
        return "JPEG" if fmt == "JPG" else fmt


@lru_cache(maxsize=1)
def get_settings() -> Settings:  # pragma: no cover - trivial
    """Return a cached, singleton instance of the application settings."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging at the level named by `settings.LOG_LEVEL`."""
    logging.basicConfig(level=settings.LOG_LEVEL)


__all__ = ["Settings", "get_settings", "configure_logging"]
