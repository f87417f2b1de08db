from __future__ import annotations

import logging
import uuid
from typing import Any, Awaitable, Callable, TypeVar

from promocode.core.cache import CacheRepository

T = TypeVar("T")

logger = logging.getLogger(__name__)


def _is_zero(value: Any) -> bool:
    """None, or the zero value of a scalar type (0, 0.0, False, "", b"", the nil UUID)."""
    if value is None:
        return True
    if isinstance(value, uuid.UUID):
        return value.int == 0
    if isinstance(value, (bool, int, float, str, bytes)):
        return not value
    return False


class CacheService:
    """
    Cache-aside wrapper over a CacheRepository.

    A stored zero value counts as a miss and a zero value from the loader is
    returned without being stored.
    Population is not transactional with the loader: two concurrent misses
    may both call the loader and both write the key (last write wins).
    Transport errors propagate to the caller; nothing is retried here.
    """

    def __init__(self, repository: CacheRepository) -> None:
        self.repository = repository

    async def get_or_add(
        self,
        key: str,
        loader: Callable[[], Awaitable[T | None]],
        type_: type[T],
        ttl_seconds: int | None = None,
    ) -> T | None:
        value = await self.repository.get(key, type_)
        if not _is_zero(value):
            logger.debug("cache hit", extra={"cache_key": key})
            return value

        logger.debug("cache miss", extra={"cache_key": key})
        value = await loader()
        if not _is_zero(value):
            await self.repository.set(key, value, ttl_seconds)
        return value

    async def remove(self, key: str) -> bool:
        return await self.repository.delete(key)

    async def exists(self, key: str) -> bool:
        return await self.repository.exists(key)
