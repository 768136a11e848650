from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)


class CatchAllExceptionMiddleware(BaseHTTPMiddleware):
    """Last line of defence: log the full error, answer with a generic 500."""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                f"{type(exc).__name__} on {request.method} {request.url.path} (500): {exc}",
                exc_info=True,
                extra={"http_method": request.method, "path": request.url.path, "status_code": 500},
            )
            return JSONResponse(status_code=500, content={"message": "Internal server error"})
