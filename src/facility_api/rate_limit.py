from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BucketState:
    tokens: float
    updated_at: float


class TokenBucketStore(ABC):
    @abstractmethod
    async def load(self, key: str) -> BucketState | None:
        raise NotImplementedError

    @abstractmethod
    async def save(self, key: str, state: BucketState, ttl_seconds: int) -> None:
        raise NotImplementedError


class RedisLikeClient(Protocol):
    async def hgetall(self, name: str) -> dict[str, str]: ...

    async def hset(self, name: str, mapping: dict[str, str]) -> int: ...

    async def expire(self, name: str, time: int) -> bool: ...


class InMemoryTokenBucketStore(TokenBucketStore):
    def __init__(self) -> None:
        self._buckets: dict[str, BucketState] = {}

    async def load(self, key: str) -> BucketState | None:
        return self._buckets.get(key)

    async def save(self, key: str, state: BucketState, ttl_seconds: int) -> None:
        self._buckets[key] = state


class RedisTokenBucketStore(TokenBucketStore):
    def __init__(self, client: RedisLikeClient) -> None:
        self._client = client

    async def load(self, key: str) -> BucketState | None:
        raw = await self._client.hgetall(self._redis_key(key))
        if not raw:
            return None
        return BucketState(tokens=float(raw["tokens"]), updated_at=float(raw["updated_at"]))

    async def save(self, key: str, state: BucketState, ttl_seconds: int) -> None:
        redis_key = self._redis_key(key)
        await self._client.hset(
            redis_key,
            mapping={"tokens": f"{state.tokens:.6f}", "updated_at": f"{state.updated_at:.6f}"},
        )
        await self._client.expire(redis_key, ttl_seconds)

    def _redis_key(self, key: str) -> str:
        return f"rate_limit:{key}"


class TokenBucketRateLimiter:
    """Allows ``capacity`` requests per client, refilled evenly over ``refill_period_seconds``.

    A failing bucket store admits the request; throttling is best effort.
    """

    def __init__(
        self,
        store: TokenBucketStore,
        capacity: int = 100,
        refill_period_seconds: int = 60,
    ) -> None:
        if capacity < 1 or refill_period_seconds < 1:
            raise ValueError("capacity and refill period must be positive")
        self._store = store
        self._capacity = capacity
        self._refill_period_seconds = refill_period_seconds
        self._refill_per_second = capacity / refill_period_seconds

    async def allow(self, key: str, now_seconds: float) -> bool:
        try:
            state = await self._store.load(key)
        except Exception as exc:
            logger.warning("rate_limit_store_failed", extra={"client_key": key, "error": str(exc)})
            return True
        if state is None:
            tokens = float(self._capacity)
        else:
            elapsed = max(0.0, now_seconds - state.updated_at)
            tokens = min(float(self._capacity), state.tokens + elapsed * self._refill_per_second)
        allowed = tokens >= 1.0
        if allowed:
            tokens -= 1.0
        try:
            await self._store.save(key, BucketState(tokens=tokens, updated_at=now_seconds), self._refill_period_seconds + 5)
        except Exception as exc:
            logger.warning("rate_limit_store_failed", extra={"client_key": key, "error": str(exc)})
        return allowed


def create_token_bucket_store(redis_client: Any | None) -> TokenBucketStore:
    if redis_client is None:
        return InMemoryTokenBucketStore()
    return RedisTokenBucketStore(redis_client)
