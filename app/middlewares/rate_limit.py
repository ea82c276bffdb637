# app/middlewares/rate_limit.py
import time
from threading import Lock

from fastapi import Request
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware

from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)

WINDOW_SECONDS = 60


def _too_many_requests(retry_after: int):
    return api_response(
        message="Too Many Requests - Rate limit exceeded.",
        status_code=429,
        headers={"Retry-After": str(max(retry_after, 0))},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Fixed one-minute window per client IP and path, for the paths listed in
    settings.RATE_LIMITS. Counters live in Redis when REDIS_URL is set,
    otherwise (or when FORCE_IN_MEMORY_RATE_LIMITER is on) in this process.
    """

    def __init__(self, app):
        super().__init__(app)
        self.redis = None
        self.memory_store = {}
        self._lock = Lock()
        self._last_purge = time.time()

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "testclient"

        if client_ip in settings.WHITELIST_IPS:
            return await call_next(request)

        path = request.url.path
        limit = settings.RATE_LIMITS.get(path)

        if limit is None:
            return await call_next(request)

        if settings.FORCE_IN_MEMORY_RATE_LIMITER or not settings.REDIS_URL:
            retry_after = self._hit_memory(f"{client_ip}:{path}", limit)
        else:
            retry_after = await self._hit_redis(f"rl:{client_ip}:{path}", limit)

        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {client_ip} on {path}")
            return _too_many_requests(retry_after)

        return await call_next(request)

    def _hit_memory(self, key: str, limit: int):
        """Count one request; return seconds to wait if over the limit, else None."""
        now = time.time()
        with self._lock:
            if now - self._last_purge > WINDOW_SECONDS:
                self._purge_closed_windows(now)

            count, expiry = self.memory_store.get(key, (0, now + WINDOW_SECONDS))

            if now > expiry:
                count = 0
                expiry = now + WINDOW_SECONDS

            if count >= limit:
                return int(expiry - now)

            self.memory_store[key] = (count + 1, expiry)
        return None

    def _purge_closed_windows(self, now: float):
        # caller holds self._lock
        closed = [key for key, (_, expiry) in self.memory_store.items() if now > expiry]
        for key in closed:
            del self.memory_store[key]
        self._last_purge = now

    async def _hit_redis(self, key: str, limit: int):
        if self.redis is None:
            self.redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)

        current_count = await self.redis.get(key)

        if current_count is None:
            await self.redis.set(key, 1, ex=WINDOW_SECONDS)
            return None

        if int(current_count) >= limit:
            return await self.redis.ttl(key)

        await self.redis.incr(key)
        return None
