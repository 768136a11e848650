from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..exceptions import AuthenticationError
from .settings import AuthSettings

INVALID_TOKEN = "Invalid or expired token. Please log in again."


@dataclass(frozen=True)
class AdminPrincipal:
    admin_id: str
    email: str


def create_access_token(
        admin_id: str,
        email: str,
        settings: AuthSettings,
        *,
        now: Optional[datetime] = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "adminId": admin_id,
        "email": email,
        "iat": issued,
        "exp": issued + timedelta(seconds=settings.jwt_lifetime_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: AuthSettings) -> AdminPrincipal:
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "adminId", "email"]},
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError(INVALID_TOKEN, clear_cookie=settings.cookie_name) from exc
    return AdminPrincipal(admin_id=str(claims["adminId"]), email=str(claims["email"]))
