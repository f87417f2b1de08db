import uuid
from types import SimpleNamespace

import pytest
from pydantic import BaseModel

from promocode.core import cache as cache_module
from promocode.core.cache import InMemoryCacheRepository, NullCacheRepository
from promocode.services.cache import CacheService


class Item(BaseModel):
    name: str
    qty: int


class CountingLoader:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


async def test_get_or_add_calls_loader_once_per_key():
    cache = CacheService(InMemoryCacheRepository())
    loader = CountingLoader(Item(name="a", qty=1))

    first = await cache.get_or_add("k1", loader, Item)
    second = await cache.get_or_add("k1", loader, Item)

    assert loader.calls == 1
    assert first == second == Item(name="a", qty=1)


async def test_remove_forces_reload():
    cache = CacheService(InMemoryCacheRepository())
    loader = CountingLoader(Item(name="a", qty=1))

    await cache.get_or_add("k1", loader, Item)
    assert await cache.exists("k1")

    assert await cache.remove("k1") is True
    assert await cache.exists("k1") is False

    await cache.get_or_add("k1", loader, Item)
    assert loader.calls == 2


async def test_remove_missing_key_is_harmless():
    cache = CacheService(InMemoryCacheRepository())
    assert await cache.remove("nope") is False


async def test_none_from_loader_is_not_cached():
    cache = CacheService(InMemoryCacheRepository())
    loader = CountingLoader(None)

    assert await cache.get_or_add("k1", loader, Item) is None
    assert await cache.get_or_add("k1", loader, Item) is None
    assert loader.calls == 2
    assert await cache.exists("k1") is False


@pytest.mark.parametrize(
    "zero, type_",
    [(0, int), (0.0, float), ("", str), (False, bool), (uuid.UUID(int=0), uuid.UUID)],
)
async def test_zero_value_is_not_cached(zero, type_):
    cache = CacheService(InMemoryCacheRepository())
    loader = CountingLoader(zero)

    assert await cache.get_or_add("zero", loader, type_) == zero
    assert await cache.get_or_add("zero", loader, type_) == zero
    assert loader.calls == 2
    assert await cache.exists("zero") is False


async def test_stored_zero_value_counts_as_miss():
    repo = InMemoryCacheRepository()
    await repo.set("count", 0)
    cache = CacheService(repo)
    loader = CountingLoader(3)

    assert await cache.get_or_add("count", loader, int) == 3
    assert loader.calls == 1
    assert await repo.get("count", int) == 3


async def test_expired_entry_is_reloaded(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=lambda: now[0]))

    cache = CacheService(InMemoryCacheRepository())
    loader = CountingLoader(Item(name="a", qty=1))

    await cache.get_or_add("k1", loader, Item, ttl_seconds=5)
    now[0] += 4
    await cache.get_or_add("k1", loader, Item, ttl_seconds=5)
    assert loader.calls == 1

    now[0] += 2
    assert await cache.exists("k1") is False
    await cache.get_or_add("k1", loader, Item, ttl_seconds=5)
    assert loader.calls == 2


async def test_null_cache_always_loads():
    cache = CacheService(NullCacheRepository())
    loader = CountingLoader(Item(name="a", qty=1))

    await cache.get_or_add("k1", loader, Item)
    await cache.get_or_add("k1", loader, Item)

    assert loader.calls == 2
    assert await cache.exists("k1") is False
    assert await cache.remove("k1") is False


@pytest.mark.parametrize("value", [["x", "y"], {"a": 1}, "plain"])
async def test_memory_repository_stores_json_values(value):
    repo = InMemoryCacheRepository()
    await repo.set("k", value)
    assert await repo.get("k", type(value)) == value
