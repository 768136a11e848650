from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests whose declared Content-Length exceeds ``max_bytes``.

    Chunked bodies carry no length; the upload writer enforces the file limit for those.
    """

    def __init__(self, app, max_bytes: int = 1_000_000):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request, call_next):
        length = request.headers.get("content-length")
        try:
            size = int(length) if length is not None else None
        except ValueError:
            size = None
        if size is not None and size > self.max_bytes:
            return JSONResponse(
                status_code=413,
                content={"message": "File exceeds the maximum upload size"},
            )
        return await call_next(request)
