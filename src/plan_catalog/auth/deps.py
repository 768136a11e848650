from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends, Request

from ..db.integration import MongoDep
from ..exceptions import AuthenticationError
from .repository import AdminRepository
from .settings import AuthSettings, get_auth_settings
from .tokens import AdminPrincipal, decode_access_token

NO_TOKEN = "Authentication required. No token provided."

AuthSettingsDep = Annotated[AuthSettings, Depends(get_auth_settings)]


def _bearer(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def require_admin(request: Request, settings: AuthSettingsDep) -> AdminPrincipal:
    """Resolve the admin from the session cookie, or a bearer token for scripted clients."""
    token = request.cookies.get(settings.cookie_name) or _bearer(request)
    if not token:
        raise AuthenticationError(NO_TOKEN)
    principal = decode_access_token(token, settings)
    request.state.admin = principal.email
    return principal


AdminDep = Annotated[AdminPrincipal, Depends(require_admin)]


def get_admin_repository(mongo: MongoDep, settings: AuthSettingsDep) -> AdminRepository:
    return AdminRepository(mongo.admins, bcrypt_rounds=settings.bcrypt_rounds)


AdminRepositoryDep = Annotated[AdminRepository, Depends(get_admin_repository)]
