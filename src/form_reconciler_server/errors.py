"""Global exception handlers - map SDK exceptions to HTTP status codes.

The SDK raises ``KeyError`` for unknown form ids and ``ValueError`` for
inputs it refuses to work with.  Rather than catching these in every route,
we install global handlers.  Internal details stay in the server log; the
client receives only a generic description.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Map ``ValueError`` to 400 without echoing the message."""
    logger.warning("ValueError at %s: %s", request.url, exc)
    return JSONResponse(status_code=400, content={"detail": "Invalid request"})


async def key_error_handler(request: Request, exc: KeyError) -> JSONResponse:
    """Map ``KeyError`` (e.g. unknown form id) to 404."""
    logger.warning("KeyError at %s: %s", request.url, exc)
    return JSONResponse(status_code=404, content={"detail": "Resource not found"})


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions - log full traceback, return 500."""
    logger.exception("Unhandled exception at %s", request.url)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )
