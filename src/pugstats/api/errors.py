"""
Unified error handling for consistent API error responses.

Every error response has the shape:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "detail": "Optional additional context"
    }
}

Domain errors from pugstats.core.exceptions are mapped onto HTTP statuses
here so that services stay free of HTTP concerns.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from ..core.exceptions import (
    CacheUnavailableError,
    DataSourceUnavailableError,
    NotFoundError,
    PugStatsError,
)

logger = logging.getLogger(__name__)


def _status_for(exc: PugStatsError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (DataSourceUnavailableError, CacheUnavailableError)):
        return 503
    return 500


def error_content(code: str, message: str, detail: str | None = None) -> dict:
    content = {"error": {"code": code, "message": message}}
    if detail:
        content["error"]["detail"] = detail
    return content


async def pugstats_error_handler(request: Request, exc: PugStatsError) -> JSONResponse:
    """
    FastAPI exception handler for domain errors.

    Converts PugStatsError exceptions to consistent JSON responses.
    """
    status_code = _status_for(exc)
    if status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")

    detail = None
    if isinstance(exc, NotFoundError):
        detail = f"{exc.resource} with identifier {exc.identifier}"

    return JSONResponse(
        status_code=status_code,
        content=error_content(exc.code, exc.message, detail),
    )
