"""Shared fixtures: URL config, a local object store on tmp_path, a fake Redis."""

from __future__ import annotations

import pytest

from stowage.storage.content import ContentResolver
from stowage.storage.local import LocalStorage
from stowage.storage.store import ObjectStore
from stowage.storage.urls import UrlConfig

APP_URL = "https://app.example.com"


class FakeRedis:
    """Just enough of redis.asyncio.Redis for CounterStore, backed by a dict."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.commands: list[tuple] = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def incr(self, key):
        value = int(self.data.get(key, 0)) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.ttls[key] = seconds
        return True

    async def execute_command(self, *args):
        self.commands.append(args)
        return "OK"

    async def aclose(self):
        pass

    def expire_window(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)


@pytest.fixture()
def url_config() -> UrlConfig:
    return UrlConfig(app_url=APP_URL)


@pytest.fixture()
def local_store(tmp_path, url_config) -> ObjectStore:
    backend = LocalStorage(str(tmp_path), url_config)
    return ObjectStore(backend, ContentResolver(), url_config)


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()
