from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from plan_catalog.exceptions import AuthenticationError, PlanCatalogError, PlanValidationError

logger = logging.getLogger(__name__)

# Validation failures under these paths are reported as plan data errors.
PLAN_PATHS = ("/api/admin/plans", "/api/plans")


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PlanCatalogError)
    async def _catalog_error(request: Request, exc: PlanCatalogError):
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc,
                extra={"status_code": exc.status_code},
            )
        elif exc.status_code == 401:
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        response = JSONResponse(status_code=exc.status_code, content=exc.to_content())
        if isinstance(exc, AuthenticationError) and exc.clear_cookie:
            response.delete_cookie(exc.clear_cookie, path="/")
        return response

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        message = "Invalid plan data" if request.url.path.startswith(PLAN_PATHS) else "Invalid request data"
        err = PlanValidationError.from_pydantic(exc.errors(), message)
        return JSONResponse(status_code=err.status_code, content=err.to_content())

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )
