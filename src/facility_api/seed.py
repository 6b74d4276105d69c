from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from facility_api.schemas.facility import Facility

logger = logging.getLogger(__name__)

DEFAULT_DATASET_PATH = Path(__file__).parent / "assets" / "facilities.json"
DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class SeedResult:
    inserted: int
    deleted: int
    batches: int


def load_facilities_from_file(path: str | Path = DEFAULT_DATASET_PATH) -> list[dict[str, Any]]:
    """Read the facility dataset, normalizing each record to the public shape."""
    with open(path, encoding="utf-8") as handle:
        raw = json.load(handle)
    if not isinstance(raw, list):
        raise ValueError(f"facility dataset must be a JSON array: {path}")
    return [Facility.from_document(item).model_dump() for item in raw]


class FacilitySeeder:
    def __init__(self, repository, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._repository = repository
        self._batch_size = batch_size

    async def seed(self, facilities: list[dict[str, Any]]) -> SeedResult:
        deleted = await self._repository.delete_all()
        inserted = 0
        batches = 0
        for start in range(0, len(facilities), self._batch_size):
            batch = facilities[start : start + self._batch_size]
            inserted += await self._repository.insert_many(batch)
            batches += 1
            logger.info("facility_seed_batch_inserted", extra={"batch": batches, "size": len(batch)})
        await self._repository.ensure_indexes()
        logger.info("facility_seed_completed", extra={"inserted": inserted, "deleted": deleted})
        return SeedResult(inserted=inserted, deleted=deleted, batches=batches)


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"missing required environment variable: {name}")
    return value


async def _run() -> SeedResult:
    from facility_api.cache import create_cache_store
    from facility_api.config import load_settings
    from facility_api.redis_client import create_redis_client
    from facility_api.repositories.facility_repository import create_mongo_repository

    settings = load_settings("facility-search-seed")
    repository = create_mongo_repository(
        _required_env("MONGODB_URI"),
        settings.MONGODB_DATABASE,
        settings.MONGODB_COLLECTION,
    )
    dataset = os.getenv("SEED_DATASET_PATH") or DEFAULT_DATASET_PATH
    batch_size = int(os.getenv("SEED_BATCH_SIZE", str(DEFAULT_BATCH_SIZE)))
    result = await FacilitySeeder(repository, batch_size=batch_size).seed(load_facilities_from_file(dataset))

    redis_client = create_redis_client(settings.REDIS_URL)
    if redis_client is not None:
        removed = await create_cache_store(redis_client).invalidate_prefix("facilities:")
        logger.info("facility_cache_invalidated", extra={"removed": removed})
    return result


def main() -> None:
    from facility_api.telemetry import configure_logging

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    result = asyncio.run(_run())
    logger.info(
        "facility_seed_finished",
        extra={"inserted": result.inserted, "deleted": result.deleted, "batches": result.batches},
    )


if __name__ == "__main__":
    main()
