"""
Rate Limiting Service

Fixed-window request counters keyed by client address. Counters live in
Redis when it is configured and reachable, otherwise in process memory.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)

PREFIX_RATE_LIMIT = "ratelimit:"

# Expired in-memory windows are evicted on the first hit after this interval
SWEEP_INTERVAL_MS = 60 * 1000

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class WindowStore:
    """Window counters with Redis storage and an in-memory fallback."""

    def __init__(self, redis_url: Optional[str] = None, clock: Callable[[], int] = _now_ms):
        self.redis_url = redis_url
        self.clock = clock
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._windows: dict[str, tuple[int, int]] = {}  # key -> (reset_at_ms, count)
        self._next_sweep_ms = 0

    async def connect(self):
        """Initialize Redis connection if one is configured."""
        if self._connected or not self.redis_url:
            return

        try:
            self._client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await self._client.ping()
            self._connected = True
            logger.info("Redis rate limit store connected")
        except (RedisConnectionError, Exception) as e:
            logger.warning(f"Redis not available, rate limits kept in memory: {e}")
            self._client = None
            self._connected = False

    async def disconnect(self):
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
            self._connected = False

    async def increment(self, key: str, window_ms: int) -> tuple[int, int]:
        """Count one hit for key. Returns (hits in current window, ms until reset)."""
        if self._client:
            try:
                return await self._increment_redis(key, window_ms)
            except Exception as e:
                logger.error(f"Rate limit store error, using memory: {e}")
        return self._increment_memory(key, window_ms)

    async def _increment_redis(self, key: str, window_ms: int) -> tuple[int, int]:
        full_key = f"{PREFIX_RATE_LIMIT}{key}"
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(full_key)
            pipe.pttl(full_key)
            count, ttl = await pipe.execute()
        if ttl is None or ttl < 0:
            await self._client.pexpire(full_key, window_ms)
            ttl = window_ms
        return int(count), int(ttl)

    def _increment_memory(self, key: str, window_ms: int) -> tuple[int, int]:
        now = self.clock()
        self._sweep(now)
        reset_at, count = self._windows.get(key, (now + window_ms, 0))
        if now >= reset_at:
            reset_at, count = now + window_ms, 0
        count += 1
        self._windows[key] = (reset_at, count)
        return count, reset_at - now

    def _sweep(self, now: int):
        """Evict expired windows, at most once per SWEEP_INTERVAL_MS."""
        if now < self._next_sweep_ms:
            return
        expired = [key for key, (reset_at, _) in self._windows.items() if now >= reset_at]
        for key in expired:
            del self._windows[key]
        self._next_sweep_ms = now + SWEEP_INTERVAL_MS

    def reset(self):
        """Forget all in-memory windows."""
        self._windows.clear()

    @property
    def window_count(self) -> int:
        """In-memory windows currently tracked."""
        return len(self._windows)

    @property
    def is_connected(self) -> bool:
        return self._connected


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_ms: int

    @property
    def retry_after_seconds(self) -> int:
        return max(1, math.ceil(self.reset_ms / 1000))


class RateLimiter:
    """One fixed window: at most max_requests per window_ms for each client."""

    def __init__(self, name: str, window_ms: int, max_requests: int, store: WindowStore):
        self.name = name
        self.window_ms = window_ms
        self.max_requests = max_requests
        self.store = store

    async def hit(self, client_key: str) -> RateLimitResult:
        count, reset_ms = await self.store.increment(f"{self.name}:{client_key}", self.window_ms)
        allowed = count <= self.max_requests
        if not allowed:
            logger.warning(f"Rate limit '{self.name}' exceeded for {client_key}")
        return RateLimitResult(
            allowed=allowed,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_ms=reset_ms,
        )

    def headers(self, result: RateLimitResult) -> dict[str, str]:
        headers = {
            "RateLimit-Limit": str(result.limit),
            "RateLimit-Remaining": str(result.remaining),
            "RateLimit-Reset": str(result.retry_after_seconds),
        }
        if not result.allowed:
            headers["Retry-After"] = str(result.retry_after_seconds)
        return headers
