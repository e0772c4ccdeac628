"""
Global Error Handler Middleware
Catches unhandled exceptions and returns structured error responses

A missing tenant is a 404. Other bol.com errors that escape a route map to
gateway-style statuses so callers can tell an upstream problem from a bug
on our side.
"""
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from bolsync.services.bol.errors import AuthError, BolApiError, NotFoundError, RateLimitError

logger = logging.getLogger(__name__)


def error_status(exc: Exception) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, RateLimitError):
        return 429
    if isinstance(exc, AuthError):
        return 502
    if isinstance(exc, BolApiError):
        return 503
    return 500


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handler middleware.
    Catches all unhandled exceptions and returns JSON error responses.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            status_code = error_status(exc)
            logger.error(
                f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
                exc_info=status_code == 500,
            )

            headers = {}
            if isinstance(exc, RateLimitError):
                headers["Retry-After"] = str(exc.retry_after_seconds)

            return JSONResponse(
                status_code=status_code,
                content={
                    "error": "Internal server error" if status_code == 500 else str(exc),
                    "error_type": type(exc).__name__,
                    "path": request.url.path
                },
                headers=headers,
            )
