"""Admission control: ``limit(key)`` before doing anything expensive.

Two backends with the same decision shape: Upstash's HTTP sliding window when
its REST credentials are configured, a local Redis fixed window otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict
from upstash_ratelimit import SlidingWindow
from upstash_ratelimit.asyncio import Ratelimit
from upstash_redis.asyncio import Redis

from stowage.errors import RateLimitUnavailable
from stowage.ratelimit.kv import CounterStore, create_counter_store
from stowage.ratelimit.window import parse_window
from stowage.settings import Settings, settings

logger = logging.getLogger(__name__)

DEFAULT_REQUESTS = 10
DEFAULT_WINDOW = "10 s"
REMOTE_TIMEOUT = 1.0  # seconds


def now_ms() -> int:
    return int(time.time() * 1000)


class RateLimitDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    limit: int
    remaining: int
    reset: int  # epoch milliseconds


class RateLimiter(ABC):
    def __init__(self, requests: int, window_seconds: int, fail_open: bool = True) -> None:
        self.requests = requests
        self.window_seconds = window_seconds
        self.fail_open = fail_open

    async def limit(self, key: str) -> RateLimitDecision:
        try:
            return await self._limit(key)
        except RateLimitUnavailable:
            if not self.fail_open:
                raise
            logger.warning("Rate limiter unavailable, allowing %s", key)
            return RateLimitDecision(
                success=True,
                limit=self.requests,
                remaining=self.requests,
                reset=now_ms() + self.window_seconds * 1000,
            )

    @abstractmethod
    async def _limit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key``; raise RateLimitUnavailable on backend failure."""
        ...


class LocalRateLimiter(RateLimiter):
    """Fixed window: INCR, then EXPIRE only on the first hit of a window."""

    def __init__(
        self,
        store: CounterStore,
        requests: int = DEFAULT_REQUESTS,
        window_seconds: int = 10,
        prefix: str = "stowage",
        fail_open: bool = True,
    ) -> None:
        super().__init__(requests, window_seconds, fail_open)
        self.store = store
        self.prefix = prefix

    def bucket_key(self, key: str) -> str:
        return f"{self.prefix}:rl:{key}"

    async def _limit(self, key: str) -> RateLimitDecision:
        bucket_key = self.bucket_key(key)
        try:
            count = await self.store.incr(bucket_key)
            # A crash between these two calls leaves a window without expiry,
            # never one that expires early.
            if count == 1:
                await self.store.expire(bucket_key, self.window_seconds)
        except Exception as exc:
            raise RateLimitUnavailable(f"Local rate limit backend failed: {exc}") from exc

        return RateLimitDecision(
            success=count <= self.requests,
            limit=self.requests,
            remaining=max(0, self.requests - count),
            reset=now_ms() + self.window_seconds * 1000,
        )


class UpstashRateLimiter(RateLimiter):
    """Sliding window computed by Upstash over its REST API."""

    def __init__(
        self,
        url: str,
        token: str,
        requests: int = DEFAULT_REQUESTS,
        window_seconds: int = 10,
        prefix: str = "stowage",
        fail_open: bool = True,
        timeout: float = REMOTE_TIMEOUT,
    ) -> None:
        super().__init__(requests, window_seconds, fail_open)
        self.timeout = timeout
        self.ratelimit = Ratelimit(
            redis=Redis(url=url, token=token),
            limiter=SlidingWindow(max_requests=requests, window=window_seconds, unit="s"),
            prefix=prefix,
        )

    async def _limit(self, key: str) -> RateLimitDecision:
        try:
            response = await asyncio.wait_for(self.ratelimit.limit(key), timeout=self.timeout)
        except Exception as exc:
            raise RateLimitUnavailable(f"Upstash rate limit failed: {exc}") from exc

        return RateLimitDecision(
            success=response.allowed,
            limit=response.limit,
            remaining=max(0, response.remaining),
            reset=int(response.reset * 1000),
        )


def ratelimit(
    requests: int = DEFAULT_REQUESTS,
    window: str = DEFAULT_WINDOW,
    config: Settings | None = None,
) -> RateLimiter:
    """Build a limiter allowing ``requests`` per ``window`` (e.g. ``"10 s"``)."""
    config = config or settings
    window_seconds = parse_window(window)

    if config.using_upstash:
        logger.debug("Using Upstash rate limiter: %d per %ds", requests, window_seconds)
        return UpstashRateLimiter(
            url=config.upstash_redis_rest_url,
            token=config.upstash_redis_rest_token,
            requests=requests,
            window_seconds=window_seconds,
            prefix=config.ratelimit_prefix,
            fail_open=config.ratelimit_fail_open,
        )

    logger.debug("Using local rate limiter: %d per %ds", requests, window_seconds)
    return LocalRateLimiter(
        store=create_counter_store(config.redis_url),
        requests=requests,
        window_seconds=window_seconds,
        prefix=config.ratelimit_prefix,
        fail_open=config.ratelimit_fail_open,
    )
