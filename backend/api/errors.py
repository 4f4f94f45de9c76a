"""
Exception handlers producing the uniform ``{success, message, code}`` body.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas.creation import ErrorResponse
from core.exceptions import AppError, InternalError, RateLimited

logger = logging.getLogger(__name__)

_HTTP_CODES = {
    400: "INVALID_INPUT",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "INVALID_INPUT",
}


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    body = ErrorResponse(message=message, code=code)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid input")
    else:
        message = "Invalid input"
    return error_response(status.HTTP_400_BAD_REQUEST, message, "INVALID_INPUT")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_CODES.get(exc.status_code, "INTERNAL_ERROR" if exc.status_code >= 500 else "ERROR")
    return error_response(exc.status_code, str(exc.detail), code)


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Request-rate rejection, kept distinct from the free usage quota."""
    response = error_response(
        RateLimited.status_code, f"{RateLimited.default_message} ({exc.detail})", RateLimited.code
    )
    response.headers["Retry-After"] = str(exc.limit.limit.get_expiry())
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log with operation and user id, then hide the details from the client."""
    user_id = getattr(request.state, "user_id", None) or "unknown"
    operation = f"{request.method} {request.url.path}"
    logger.error(
        "Unhandled exception in %s for user %s at %s: %s",
        operation,
        user_id,
        datetime.now(UTC).isoformat(),
        exc,
        exc_info=exc,
        extra={"operation": operation, "user_id": user_id},
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        InternalError.default_message,
        InternalError.code,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
