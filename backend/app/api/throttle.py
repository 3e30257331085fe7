import logging

from fastapi import HTTPException, Request, status
from app.core.config import settings
from app.club.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

# One limiter per process; see app.club.rate_limit for the caveat
admin_limiter = SlidingWindowRateLimiter(
    window_ms=settings.RATE_LIMIT_WINDOW_MS,
    max_requests=settings.RATE_LIMIT_MAX,
)

def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"

def admin_rate_limit(request: Request) -> None:
    """Dependency throttling admin write endpoints per client address"""
    key = client_key(request)
    result = admin_limiter.check(key)
    if not result.success:
        logger.warning("[RateLimit] Throttled %s for %.0f ms", key, result.reset_ms)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests",
            headers={"Retry-After": str(max(1, int(result.reset_ms // 1000) + 1))},
        )
