"""
Inbound Rate Limiting

slowapi limits on the HTTP API, keyed by client IP. These protect this
service; politeness towards PubMed, Cochrane and the other upstreams is
the job of each adapter's own RateLimiter.
"""
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from evidence_engine.core.config import settings
from evidence_engine.core.logging import get_logger

logger = get_logger(__name__)

LITERATURE_SEARCH_LIMIT = settings.search_rate_limit
DETAIL_LIMIT = settings.detail_rate_limit

_FALLBACK_RETRY_AFTER = 60


def _client_key(request: Request) -> str:
    """Client IP; behind a proxy the first X-Forwarded-For hop wins."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


def _retry_after(exc: RateLimitExceeded) -> int:
    """Length of the breached window in seconds."""
    limit = getattr(exc, "limit", None)
    item = getattr(limit, "limit", None)
    if item is None:
        return _FALLBACK_RETRY_AFTER
    return int(item.get_expiry())


limiter = Limiter(
    key_func=_client_key,
    storage_uri=settings.rate_limit_storage_uri,
    default_limits=[settings.default_rate_limit],
    strategy="fixed-window",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with a JSON body and Retry-After header."""
    retry_after = _retry_after(exc)
    logger.warning(f"Inbound limit hit by {_client_key(request)} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": f"Too many requests. {exc.detail}",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )
