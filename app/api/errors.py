"""
Error Translation

Maps the service's error taxonomy onto HTTP responses. Every ErrorKind has
exactly one status code; server-side kinds are logged with their traceback.
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.api.schemas import ErrorResponse
from app.core.exceptions import ErrorKind, RateLimitedError, URLShortenerException

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.INVALID_URL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CODE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_EXPIRY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.ALLOCATION_EXHAUSTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.DATABASE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_unmapped = set(ErrorKind) - set(ERROR_STATUS)
if _unmapped:
    raise RuntimeError(f"ErrorKind values without an HTTP status: {sorted(_unmapped)}")


async def shortener_exception_handler(request: Request, exc: URLShortenerException) -> JSONResponse:
    """Render a URLShortenerException as a JSON error response."""
    status_code = ERROR_STATUS[exc.kind]

    if status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}",
            exc_info=exc
        )

    headers = {}
    if isinstance(exc, RateLimitedError) and exc.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(exc.retry_after)))

    body = ErrorResponse(error=exc.kind.value, detail=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def add_exception_handlers(app: FastAPI) -> None:
    """Register the taxonomy handler on the application."""
    app.add_exception_handler(URLShortenerException, shortener_exception_handler)
