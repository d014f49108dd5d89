"""
Daily request budget for free-tier hosting.

Every counted request bumps a per-day counter in the KV store. Past the
degrade threshold requests still run but skip external AI providers; at the
limit clients are sent to the static fallback site.
"""
from datetime import datetime, timezone
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import Config
from .session import KVStore
from ..utils.logger import get_logger

logger = get_logger("rate")

COUNTER_TTL_SECONDS = 90000  # 25h, so a day's key outlives timezone skew
RETRY_AFTER_SECONDS = 86400
UNCOUNTED_PATHS = {"/health"}


class DailyRequestLimiter:
    def __init__(self, store: KVStore, max_requests: int = Config.MAX_REQUESTS_PER_DAY,
                 enabled: bool = Config.REQUEST_LIMIT_ENABLED, degrade_ratio: float = Config.DEGRADE_RATIO,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.max_requests = int(max_requests)
        self.enabled = enabled
        self.degrade_ratio = degrade_ratio
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def degrade_threshold(self) -> int:
        return int(self.max_requests * self.degrade_ratio)

    def key(self) -> str:
        return f"requests:{self._clock().strftime('%Y-%m-%d')}"

    def check(self) -> int:
        """Count this request; returns how many were served today before it."""
        if not self.enabled:
            return 0
        try:
            return self.store.incr(self.key(), ttl=COUNTER_TTL_SECONDS) - 1
        except Exception as e:
            # Fail open
            logger.error(f"[RATE] request tracking error: {e}")
            return 0

    def is_exhausted(self, count: int) -> bool:
        return count >= self.max_requests

    def is_degraded(self, count: int) -> bool:
        return count > self.degrade_threshold


def rate_limited_response(path: str, fallback_url: str = Config.FALLBACK_URL) -> JSONResponse:
    return JSONResponse(
        {
            "error": "Daily request limit reached",
            "message": "Redirecting to static site for continued browsing",
            "redirect": fallback_url + path,
        },
        status_code=429,
        headers={"Retry-After": str(RETRY_AFTER_SECONDS), "X-Fallback-URL": fallback_url},
    )


class DailyLimitMiddleware(BaseHTTPMiddleware):
    """Applies ``app.state.request_limiter`` to every request except health checks and preflight."""

    async def dispatch(self, request: Request, call_next):
        request.state.degrade_mode = False
        limiter: Optional[DailyRequestLimiter] = getattr(request.app.state, "request_limiter", None)
        if limiter is None or request.method == "OPTIONS" or request.url.path in UNCOUNTED_PATHS:
            return await call_next(request)

        count = limiter.check()
        if limiter.is_exhausted(count):
            logger.warning(f"[RATE] daily limit reached ({count}/{limiter.max_requests}) for {request.url.path}")
            return rate_limited_response(request.url.path)

        degraded = limiter.is_degraded(count)
        request.state.degrade_mode = degraded
        response = await call_next(request)
        if degraded:
            response.headers["X-Degrade-Mode"] = "true"
        return response
