from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render errors with the API's ``{"message": ...}`` body."""
    if isinstance(exc, StarletteHTTPException):
        return JSONResponse(
            {"message": str(exc.detail)},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"message": "Internal server error"}, status_code=500)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_handler(request, exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_handler(request, exc)
