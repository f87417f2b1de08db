"""
Key/value cache transports.

Every backend stores values as JSON text and validates them back into the
requested type on read. A missing key and an expired key are indistinguishable
to callers: both come back as None.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import TypeAdapter
from redis.asyncio import Redis

from promocode.core.config import settings

T = TypeVar("T")


def _dumps(value: Any) -> str:
    return TypeAdapter(type(value)).dump_json(value).decode("utf-8")


def _loads(raw: str | bytes, type_: type[T]) -> T:
    return TypeAdapter(type_).validate_json(raw)


class CacheRepository(ABC):
    @abstractmethod
    async def get(self, key: str, type_: type[T]) -> T | None:
        """Return the cached value for key, or None on miss/expiry."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """Store value under key, optionally expiring after ttl_seconds."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove key. True when something was removed."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """True when key is currently stored."""


class RedisCacheRepository(CacheRepository):
    def __init__(self, client: Redis) -> None:
        self.client = client

    async def get(self, key: str, type_: type[T]) -> T | None:
        raw = await self.client.get(key)
        if not raw:
            return None
        return _loads(raw, type_)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        await self.client.set(key, _dumps(value), ex=ttl_seconds or None)

    async def delete(self, key: str) -> bool:
        return bool(await self.client.delete(key))

    async def exists(self, key: str) -> bool:
        return bool(await self.client.exists(key))


class InMemoryCacheRepository(CacheRepository):
    """Process-local cache. Same wire format as Redis, expiry on a monotonic clock."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[str, float | None]] = {}

    def _live(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            self._store.pop(key, None)
            return None
        return raw

    async def get(self, key: str, type_: type[T]) -> T | None:
        raw = self._live(key)
        if raw is None:
            return None
        return _loads(raw, type_)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
        self._store[key] = (_dumps(value), expires_at)

    async def delete(self, key: str) -> bool:
        found = self._live(key) is not None
        self._store.pop(key, None)
        return found

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    def clear(self) -> None:
        self._store.clear()


class NullCacheRepository(CacheRepository):
    """Cache disabled: reads always miss, writes are dropped."""

    async def get(self, key: str, type_: type[T]) -> T | None:
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        return None

    async def delete(self, key: str) -> bool:
        return False

    async def exists(self, key: str) -> bool:
        return False


_repository: CacheRepository | None = None
_redis_client: Redis | None = None


def build_cache_repository() -> CacheRepository:
    global _redis_client
    if not settings.CACHE_ENABLED:
        return NullCacheRepository()

    backend = settings.CACHE_BACKEND.strip().lower()
    if backend == "memory":
        return InMemoryCacheRepository()
    if backend == "redis":
        _redis_client = Redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        return RedisCacheRepository(_redis_client)
    raise ValueError(f"Unknown CACHE_BACKEND: {settings.CACHE_BACKEND!r}")


def get_cache_repository() -> CacheRepository:
    global _repository
    if _repository is None:
        _repository = build_cache_repository()
    return _repository


async def close_cache() -> None:
    global _repository, _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
    _redis_client = None
    _repository = None
