from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoSettings(BaseSettings):
    """
    MongoDB settings.

    Env support:
      - Prefer MONGO_* variables:
          MONGO_URL, MONGO_DB, MONGO_SERVER_SELECTION_TIMEOUT_MS
      - Also accepts MONGODB_URI as a fallback for existing deployments.
      - When MONGO_DB is unset the database named in the URL path is used,
        then "plan_catalog".
    """

    url: Optional[str] = Field(default=None)
    db: Optional[str] = Field(default=None)
    server_selection_timeout_ms: int = Field(default=5000)
    app_name: str = Field(default="plan-catalog")

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        extra="ignore",
    )

    @property
    def resolved_url(self) -> str:
        url = self.url or os.getenv("MONGODB_URI")
        if not url:
            raise ValueError("MONGO_URL or MONGODB_URI must be set for database connectivity")
        return url


@lru_cache
def get_mongo_settings(**kwargs) -> MongoSettings:
    filtered = {k: v for k, v in kwargs.items() if v is not None}
    return MongoSettings(**filtered)
