"""Uniform error envelope.

Every failure leaving the API has the same JSON shape:

    {
        "error": "Only PDF and CSV files are supported",
        "details": "optional longer explanation"
    }

The "no transactions found" case also carries ``rawTextPreview`` so the
user can see what the parser was looking at.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class AppError(Exception):
    """Base application error."""

    def __init__(
        self, error: str, status_code: int = 500, details: Optional[str] = None
    ):
        self.error = error
        self.status_code = status_code
        self.details = details
        super().__init__(error)

    def to_body(self) -> dict:
        return build_error_body(self.error, self.details)


class BadRequestError(AppError):
    """Malformed or unsupported input."""

    def __init__(self, error: str = "Bad request", details: Optional[str] = None):
        super().__init__(error=error, status_code=400, details=details)


class AuthenticationError(AppError):
    """Authentication failed."""

    def __init__(self, error: str = "Unauthorized", details: Optional[str] = None):
        super().__init__(error=error, status_code=401, details=details)


class PayloadTooLargeError(AppError):
    """Upload exceeds the configured size limit."""

    def __init__(self, error: str = "File too large", details: Optional[str] = None):
        super().__init__(error=error, status_code=413, details=details)


class NoTransactionsError(BadRequestError):
    """Parsing succeeded but produced zero transactions."""

    def __init__(self, raw_text_preview: str = ""):
        super().__init__(
            error="No transactions found in the file.",
            details=(
                "The parser couldn't identify any transaction rows. Make sure "
                "the file format matches your bank statement."
            ),
        )
        self.raw_text_preview = raw_text_preview

    def to_body(self) -> dict:
        body = super().to_body()
        body["rawTextPreview"] = self.raw_text_preview
        return body


def build_error_body(error: str, details: Optional[str] = None) -> dict:
    body = {"error": error}
    if details:
        body["details"] = details
    return body


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
    return "; ".join(parts)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("app_error", path=request.url.path, error=exc.error)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code, content=build_error_body(detail)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = build_error_body("Invalid request", _format_validation_errors(exc))
        return JSONResponse(status_code=400, content=body)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        body = build_error_body("An unexpected error occurred", str(exc))
        return JSONResponse(status_code=500, content=body)
