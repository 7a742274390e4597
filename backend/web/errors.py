"""
Error contract for the CodeClass API.

Every error response is JSON `{"error": <code>, "message": <text>}` with
`Cache-Control: private, no-store`. Guards and handlers raise `ApiError`;
`register_error_handlers` turns it (and framework errors) into responses.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("codeclass.web.errors")

_STATUS_CODES = {
    400: "bad_request",
    401: "unauthenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    429: "too_many_requests",
}


class ApiError(Exception):
    """Raised by adapters to short-circuit a request with a JSON error."""

    def __init__(self, status_code: int, error: str, message: str | None = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.message = message or error


def json_private(payload: Any, *, status_code: int = 200, headers: dict[str, str] | None = None) -> JSONResponse:
    """JSON response that must not be stored by shared caches."""
    base_headers = {"Cache-Control": "private, no-store"}
    if headers:
        base_headers.update(headers)
    return JSONResponse(content=jsonable_encoder(payload), status_code=status_code, headers=base_headers)


def private_error(status_code: int, error: str, message: str, **extra: Any) -> JSONResponse:
    body: dict[str, Any] = {"error": error, "message": message}
    body.update(extra)
    return json_private(body, status_code=status_code)


def internal_error(request: Request, exc: BaseException) -> JSONResponse:
    """Log an unhandled error and render the generic 500 body."""
    logger.error(
        "Unhandled error method=%s path=%s",
        request.method,
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return private_error(500, "internal_error", "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return private_error(exc.status_code, exc.error, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid input"),
            }
            for err in exc.errors()
        ]
        return private_error(400, "bad_request", "Validation error", errors=errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = _STATUS_CODES.get(exc.status_code, "error")
        message = exc.detail if isinstance(exc.detail, str) and exc.detail else code
        response = private_error(exc.status_code, code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        return internal_error(request, exc)
