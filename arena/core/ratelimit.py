from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from arena.core.config import RATELIMIT_ENABLED

limiter = Limiter(key_func=get_remote_address, enabled=RATELIMIT_ENABLED)

# applied to endpoints that write websites/metrics and call Google
WRITE_LIMIT = "20/minute"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
        headers={"Retry-After": "60"},
    )
