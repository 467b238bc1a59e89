"""Minimal key/value capability set the local limiter needs from Redis."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import redis.asyncio as redis

from stowage.errors import ConfigurationError

logger = logging.getLogger(__name__)

_JSON_SCALAR = re.compile(r"^-?\d+(\.\d+)?$")


def safe_json_loads(value: str) -> Any:
    """Decode JSON objects, arrays, numbers and literals; leave other strings alone."""
    trimmed = value.strip()
    if not trimmed:
        return value
    if trimmed[0] in "{[" or trimmed in ("null", "true", "false") or _JSON_SCALAR.match(trimmed):
        try:
            return json.loads(trimmed)
        except json.JSONDecodeError:
            return value
    return value


def serialize(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


class CounterStore:
    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    async def get(self, key: str) -> Any:
        value = await self.client.get(key)
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode()
        return safe_json_loads(value)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        return bool(await self.client.set(key, serialize(value), ex=ex))

    async def delete(self, *keys: str) -> int:
        return await self.client.delete(*keys)

    async def incr(self, key: str) -> int:
        return await self.client.incr(key)

    async def expire(self, key: str, seconds: int) -> bool:
        return bool(await self.client.expire(key, seconds))

    async def execute(self, *args: Any) -> Any:
        """Run any other Redis command, e.g. ``execute("XADD", stream, "*", ...)``."""
        return await self.client.execute_command(*args)

    async def close(self) -> None:
        await self.client.aclose()


def create_counter_store(redis_url: str, with_timeout: bool = False) -> CounterStore:
    if not redis_url:
        raise ConfigurationError(
            "Redis is not configured. Set the Upstash REST URL/token or a Redis URL."
        )
    client = redis.Redis.from_url(
        redis_url,
        socket_connect_timeout=1.0 if with_timeout else 5.0,
        socket_timeout=1.0 if with_timeout else None,
        decode_responses=True,
    )
    logger.debug("Created Redis counter store (timeout=%s)", with_timeout)
    return CounterStore(client)
