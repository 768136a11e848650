from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..app.core.env import pick


class AuthSettings(BaseSettings):
    # AUTH_JWT_SECRET, or JWT_SECRET as set by existing deployments
    jwt_secret: SecretStr = Field(validation_alias=AliasChoices("AUTH_JWT_SECRET", "JWT_SECRET", "jwt_secret"))
    jwt_lifetime_seconds: int = 60 * 60
    jwt_algorithm: str = "HS256"

    cookie_name: str = "adminToken"
    cookie_secure: Optional[bool] = None  # None -> secure in prod only
    cookie_samesite: Literal["lax", "strict", "none"] = "strict"

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    model_config = SettingsConfigDict(env_prefix="AUTH_", env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def secure_cookie(self) -> bool:
        if self.cookie_secure is not None:
            return self.cookie_secure
        return pick(prod=True, nonprod=False)


@lru_cache
def get_auth_settings() -> AuthSettings:
    return AuthSettings()
