from __future__ import annotations

from typing import Any


def create_redis_client(url: str | None) -> Any | None:
    if not url:
        return None
    import redis.asyncio as redis

    return redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        health_check_interval=30,
    )
