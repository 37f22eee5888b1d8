"""Application settings loaded from environment variables."""

import os
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_LOCAL_DATA_DIR = BASE_DIR / "data"
DEFAULT_VERCEL_DATA_DIR = Path("/tmp/evangelist")


TRUTHY_VALUES = {"1", "true", "yes", "on"}

# profile -> (dpi, variant the small image is derived from)
_PROFILES: dict[str, tuple[int, str]] = {
    "standard": (300, "normal"),
    "lite": (200, "large"),
}


def _is_truthy(value: str | None) -> bool:
    return bool(value and value.strip().lower() in TRUTHY_VALUES)


def _running_on_vercel() -> bool:
    return bool(os.getenv("VERCEL") or os.getenv("VERCEL_ENV") or _is_truthy(os.getenv("EVANGELIST_VERCEL_ENVIRONMENT")))


def _default_data_dir() -> str:
    if _running_on_vercel():
        return str(DEFAULT_VERCEL_DATA_DIR)
    return str(DEFAULT_LOCAL_DATA_DIR)


class Settings(BaseSettings):
    """Runtime configuration for the conversion service."""

    model_config = SettingsConfigDict(env_prefix="EVANGELIST_", extra="ignore")

    app_name: str = "Evangelist PDF Service"
    data_dir: str = Field(
        default_factory=_default_data_dir,
        validation_alias=AliasChoices("EVANGELIST_DATA_DIR", "DATA_DIR"),
    )
    max_form_bytes: int = Field(default=1024 * 1024, ge=1)
    keep_scratch: bool = False

    # Pipeline
    conversion_workers: int = Field(default=2, ge=1)
    upload_workers: int = Field(default=10, ge=1)
    profile: Literal["standard", "lite"] = "standard"
    raster_dpi: int | None = Field(default=None, ge=1)
    small_source: Literal["normal", "large"] | None = None
    jpeg_quality: int = Field(default=90, ge=1, le=100)
    rasterizer: str = "ghostscript"
    gs_binary: str = "gs"

    # Object storage
    storage_backend: str = Field(
        default="local",
        validation_alias=AliasChoices("EVANGELIST_STORAGE_BACKEND", "STORAGE_BACKEND"),
    )
    s3_bucket: str | None = Field(default=None, validation_alias=AliasChoices("EVANGELIST_S3_BUCKET", "S3_BUCKET"))
    s3_access_key_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("EVANGELIST_S3_ACCESS_KEY_ID", "AWS_ACCESS_KEY_ID"),
    )
    s3_secret_access_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("EVANGELIST_S3_SECRET_ACCESS_KEY", "AWS_SECRET_ACCESS_KEY"),
    )
    s3_endpoint_url: str | None = Field(default=None, validation_alias=AliasChoices("EVANGELIST_S3_ENDPOINT_URL", "S3_ENDPOINT_URL"))
    s3_region: str = Field(default="us-east-1", validation_alias=AliasChoices("EVANGELIST_S3_REGION", "AWS_DEFAULT_REGION"))

    # CORS configuration
    cors_allow_origins: str = Field(
        default="*",
        validation_alias=AliasChoices("EVANGELIST_CORS_ALLOW_ORIGINS", "CORS_ALLOW_ORIGINS"),
    )

    @model_validator(mode="after")
    def _apply_profile(self) -> "Settings":
        dpi, small_source = _PROFILES[self.profile]
        if self.raster_dpi is None:
            self.raster_dpi = dpi
        if self.small_source is None:
            self.small_source = small_source  # type: ignore[assignment]
        return self

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir)

    @property
    def cors_origin_list(self) -> list[str]:
        if self.cors_allow_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]


settings = Settings()
