"""
Plain HTTP middleware: request ids, access logging, response hardening,
and an upper bound on request bodies.
"""

import logging
import time
import uuid

from fastapi import Request

from api.errors import error_response
from infrastructure.config.settings import settings

logger = logging.getLogger("api.access")

# Largest allowed upload plus room for multipart framing
MAX_BODY_SIZE = settings.max_image_upload_bytes + 1024 * 1024

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _request_id(request: Request) -> str:
    incoming = request.headers.get("X-Request-ID")
    if incoming:
        try:
            return str(uuid.UUID(incoming))
        except ValueError:
            pass
    return str(uuid.uuid4())


async def limit_body_size(request: Request, call_next):
    length = request.headers.get("content-length", "")
    if request.method in ("POST", "PUT", "PATCH") and length.isdigit() and int(length) > MAX_BODY_SIZE:
        return error_response(413, "Request body too large", "INVALID_INPUT")
    return await call_next(request)


async def request_context(request: Request, call_next):
    """Tag the request with an id and log it once the response is ready."""
    request.state.request_id = _request_id(request)
    started = time.perf_counter()

    response = await call_next(request)

    duration_ms = round((time.perf_counter() - started) * 1000, 1)
    response.headers["X-Request-ID"] = request.state.request_id
    response.headers["X-Response-Time"] = f"{duration_ms}ms"

    path = request.url.path
    if not path.startswith("/api/health"):
        logger.info(
            "%s %s %s %.1fms",
            request.method,
            path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": request.state.request_id,
                "method": request.method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "user_id": getattr(request.state, "user_id", None),
            },
        )
    return response


async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers.update(_SECURITY_HEADERS)
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    # Stored images get unique names and never change
    if request.url.path.startswith("/uploads/"):
        response.headers["Cache-Control"] = "public, max-age=31536000, immutable"
    return response
