"""Per-IP rate limiting for the public read API, using SlowAPI."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

# Dashboard polling stays far below this
READ_LIMIT = "120/minute"

limiter = Limiter(key_func=get_remote_address)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Answer with 429 and the limit that was hit."""
    logger.warning(
        f"Rate limit {exc.detail} hit by {get_remote_address(request)} on {request.url.path}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests to {request.url.path}, allowed {exc.detail}",
            "limit": READ_LIMIT,
        },
    )
