from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Protocol

from facility_api.errors import CacheUnavailableError


class CacheStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def invalidate_prefix(self, prefix: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> bool:
        raise NotImplementedError


class RedisLikeCacheClient(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def setex(self, key: str, seconds: int, value: str) -> bool: ...

    def scan_iter(self, match: str): ...

    async def delete(self, *keys: str) -> int: ...

    async def ping(self) -> bool: ...


class InMemoryCacheStore(CacheStore):
    def __init__(self, max_items: int = 1000, clock=time.monotonic) -> None:
        self._items: OrderedDict[str, tuple[float, dict[str, Any]]] = OrderedDict()
        self._max_items = max_items
        self._clock = clock

    async def get(self, key: str) -> dict[str, Any] | None:
        item = self._items.get(key)
        if not item:
            return None
        expires_at, value = item
        if expires_at <= self._clock():
            self._items.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        self._items.pop(key, None)
        self._items[key] = (self._clock() + ttl_seconds, value)
        while len(self._items) > self._max_items:
            self._items.popitem(last=False)

    async def invalidate_prefix(self, prefix: str) -> int:
        keys = [key for key in self._items if key.startswith(prefix)]
        for key in keys:
            self._items.pop(key, None)
        return len(keys)

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._items)


class RedisCacheStore(CacheStore):
    def __init__(self, client: RedisLikeCacheClient) -> None:
        self._client = client

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            raw = await self._client.get(key)
        except Exception as exc:
            raise CacheUnavailableError(f"cache get failed: {exc}") from exc
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CacheUnavailableError(f"cache entry {key} is not valid JSON") from exc

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        payload = json.dumps(value, ensure_ascii=True)
        try:
            await self._client.setex(key, ttl_seconds, payload)
        except Exception as exc:
            raise CacheUnavailableError(f"cache set failed: {exc}") from exc

    async def invalidate_prefix(self, prefix: str) -> int:
        keys = [key async for key in self._client.scan_iter(match=f"{prefix}*")]
        if not keys:
            return 0
        return await self._client.delete(*keys)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception:
            return False


def create_cache_store(redis_client: Any | None, max_items: int = 1000) -> CacheStore:
    if redis_client is None:
        return InMemoryCacheStore(max_items=max_items)
    return RedisCacheStore(redis_client)
