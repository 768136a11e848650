from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    # flat = easy env overrides
    name: str = "Plan Catalog"
    version: str = "0.1.0"

    # PDFs land here; relative values resolve against the working directory.
    upload_dir: Path = Path("uploads")
    max_upload_mb: int = Field(default=50, ge=1)

    # Comma separated; falls back to CORS_ORIGIN when unset.
    cors_origins: Optional[str] = None

    download_receipt_ttl_seconds: int = 60 * 60 * 24

    model_config = SettingsConfigDict(
        env_prefix="APP_",            # APP_UPLOAD_DIR, APP_MAX_UPLOAD_MB, ...
        env_file=".env",
        extra="ignore",
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


@lru_cache
def get_app_settings(**kwargs) -> AppSettings:
    # Only include kwargs that are not None, so defaults in AppSettings are used
    filtered_kwargs = {k: v for k, v in kwargs.items() if v is not None}
    return AppSettings(**filtered_kwargs)
