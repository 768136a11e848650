"""Admin session endpoints. The session is a JWT in an HTTP-only cookie."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from plan_catalog.auth.deps import AdminDep, AdminRepositoryDep, AuthSettingsDep
from plan_catalog.auth.tokens import create_access_token
from plan_catalog.exceptions import AuthenticationError
from plan_catalog.plans.models import MessageResponse

ROUTER_PREFIX = "/admin"
ROUTER_TAG = "Auth"

logger = logging.getLogger(__name__)

router = APIRouter()


class AdminLogin(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)


@router.post("/login", response_model=MessageResponse)
async def login(
        body: AdminLogin,
        response: Response,
        admins: AdminRepositoryDep,
        settings: AuthSettingsDep,
) -> MessageResponse:
    admin = await admins.authenticate(body.email, body.password)
    if admin is None:
        logger.warning("Failed admin login for %s", body.email)
        raise AuthenticationError("Invalid credentials")

    token = create_access_token(admin.id, admin.email, settings)
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.jwt_lifetime_seconds,
        httponly=True,
        secure=settings.secure_cookie,
        samesite=settings.cookie_samesite,
        path="/",
    )
    logger.info("Admin logged in: %s", admin.email)
    return MessageResponse(message="Login successful")


@router.post("/logout")
async def logout(response: Response, settings: AuthSettingsDep) -> dict:
    response.delete_cookie(
        settings.cookie_name,
        path="/",
        httponly=True,
        secure=settings.secure_cookie,
        samesite=settings.cookie_samesite,
    )
    return {"success": True, "message": "Logout successful"}


@router.get("/check-auth")
async def check_auth(admin: AdminDep) -> dict:
    return {"isAuthenticated": True, "email": admin.email}
