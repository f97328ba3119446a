"""
HTTP middleware and exception handlers.

Every error leaves the API in the same envelope,
``{"error": {"code", "message", "request_id", "details?"}}``, tagged with
the ``X-Request-ID`` of the request that caused it.
"""

import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from streamchat.core.errors import AppError, ErrorCode, ErrorResponse
from streamchat.core.logging import get_logger, request_id_ctx, stream_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_HTTP_STATUS_CODES = {
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    413: ErrorCode.REQUEST_TOO_LARGE,
    429: ErrorCode.RATE_LIMITED,
}


def error_json(status_code: int, error: ErrorResponse) -> JSONResponse:
    """Render ``error`` with the current request id echoed in a header."""
    request_id = error.request_id
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error.to_dict(), custom_encoder={Exception: str}),
        headers={REQUEST_ID_HEADER: request_id} if request_id else None,
    )


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the logging context and logs each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        tokens = (request_id_ctx.set(request_id), stream_id_ctx.set(None))
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "Request completed",
                data={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            return response
        finally:
            request_id_ctx.reset(tokens[0])
            stream_id_ctx.reset(tokens[1])


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds ``max_bytes``."""

    def __init__(self, app: FastAPI, max_bytes: int = 1024 * 1024):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            logger.warning(
                "Request body too large",
                data={"content_length": int(declared), "max_bytes": self.max_bytes},
            )
            return error_json(
                413,
                ErrorResponse(
                    code=ErrorCode.REQUEST_TOO_LARGE,
                    message=f"Request body exceeds {self.max_bytes} bytes",
                    request_id=request_id_ctx.get(),
                ),
            )
        return await call_next(request)


def setup_exception_handlers(app: FastAPI) -> None:
    """Route every exception type through the error envelope."""

    async def on_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        details: dict[str, Any] = {"errors": exc.errors()}
        return error_json(
            422,
            ErrorResponse(
                code=ErrorCode.VALIDATION_ERROR,
                message="Validation error",
                request_id=request_id_ctx.get(),
                details=details,
            ),
        )

    async def on_http_exception(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_json(
            exc.status_code,
            ErrorResponse(
                code=_HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
                message=str(exc.detail or "HTTP error"),
                request_id=request_id_ctx.get(),
            ),
        )

    async def on_app_error(_request: Request, exc: AppError) -> JSONResponse:
        logger.warning(
            f"Application error: {exc.message}",
            data={"code": exc.code.value, "status": exc.status_code, "details": exc.details},
        )
        return error_json(exc.status_code, exc.to_response(request_id=request_id_ctx.get()))

    async def on_unhandled(request: Request, exc: Exception) -> JSONResponse:
        # Runs outside RequestContextMiddleware, whose context is already reset.
        # Details stay in the log; clients only see the stable code.
        request_id = request_id_ctx.get() or request.headers.get(REQUEST_ID_HEADER)
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            data={"method": request.method, "path": request.url.path, "request_id": request_id},
        )
        return error_json(
            500,
            ErrorResponse(
                code=ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
                request_id=request_id,
            ),
        )

    app.add_exception_handler(RequestValidationError, on_validation_error)
    app.add_exception_handler(StarletteHTTPException, on_http_exception)
    app.add_exception_handler(AppError, on_app_error)
    app.add_exception_handler(Exception, on_unhandled)
