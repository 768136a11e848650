from __future__ import annotations

from typing import Any, Iterable


class PlanCatalogError(Exception):
    """Base class for errors that map onto a client-facing HTTP response."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_content(self) -> dict[str, Any]:
        return {"message": self.message}


class PlanValidationError(PlanCatalogError):
    status_code = 400
    message = "Invalid plan data"

    def __init__(self, errors: Iterable[dict[str, str]], message: str | None = None):
        super().__init__(message)
        self.errors = list(errors)

    def to_content(self) -> dict[str, Any]:
        return {"message": self.message, "errors": self.errors}

    @classmethod
    def from_pydantic(cls, errors: Iterable[dict[str, Any]], message: str | None = None) -> "PlanValidationError":
        """Flatten pydantic error dicts into ``{"field", "message"}`` pairs."""
        flat = []
        for err in errors:
            loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
            flat.append({"field": ".".join(loc) or "__root__", "message": err.get("msg", "invalid")})
        return cls(flat, message)


class NoFileUploadedError(PlanCatalogError):
    status_code = 400
    message = "No file uploaded"


class UnsupportedFileTypeError(PlanCatalogError):
    status_code = 400
    message = "Only PDF files are allowed"


class UploadTooLargeError(PlanCatalogError):
    status_code = 413
    message = "File exceeds the maximum upload size"


class PlanNotFoundError(PlanCatalogError):
    status_code = 404
    message = "Plan not found"


class PlanFileMissingError(PlanCatalogError):
    status_code = 404
    message = "File not found"


class PlanFileCorruptError(PlanCatalogError):
    status_code = 500
    message = "File is empty or corrupted"


class AuthenticationError(PlanCatalogError):
    status_code = 401
    message = "Authentication required"

    def __init__(self, message: str | None = None, *, clear_cookie: str | None = None):
        super().__init__(message)
        # name of a session cookie the response should expire
        self.clear_cookie = clear_cookie


__all__ = [
    "PlanCatalogError",
    "PlanValidationError",
    "NoFileUploadedError",
    "UnsupportedFileTypeError",
    "UploadTooLargeError",
    "PlanNotFoundError",
    "PlanFileMissingError",
    "PlanFileCorruptError",
    "AuthenticationError",
]
