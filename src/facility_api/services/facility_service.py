from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from facility_api.cache import CacheStore
from facility_api.config import QueryConfig
from facility_api.errors import FacilityNotFoundError, QueryValidationError
from facility_api.schemas.facility import Facility, FacilityListQuery, PaginatedFacilities
from facility_api.services.cache_keys import detail_cache_key, list_cache_key
from facility_api.services.cache_policy import CachePolicy
from facility_api.services.query_executor import FacilityQueryExecutor

logger = logging.getLogger(__name__)

CacheEventHook = Callable[[str, str], None]


class FacilityService:
    """Read-through access to the facility catalog.

    Cache failures degrade to a miss on read and are dropped on write;
    store failures and missing facilities propagate to the caller.
    """

    def __init__(
        self,
        executor: FacilityQueryExecutor,
        cache: CacheStore,
        policy: CachePolicy | None = None,
        config: QueryConfig | None = None,
        on_cache_event: CacheEventHook | None = None,
    ) -> None:
        self._executor = executor
        self._cache = cache
        self._policy = policy or CachePolicy()
        self._config = config or QueryConfig()
        self._on_cache_event = on_cache_event

    async def get_facilities(self, query: FacilityListQuery) -> PaginatedFacilities:
        if query.limit > self._config.max_page_size:
            raise QueryValidationError("limit", f"must be at most {self._config.max_page_size}")
        cacheable = self._policy.should_cache_list(query)
        cache_key = list_cache_key(query)
        if cacheable:
            cached = await self._read(cache_key, PaginatedFacilities, kind="list")
            if cached is not None:
                return cached

        result = await self._executor.execute(query)
        if cacheable:
            await self._write(cache_key, result, self._policy.list_ttl(query))
        return result

    async def get_facility_by_id(self, facility_id: str) -> Facility:
        cache_key = detail_cache_key(facility_id)
        cached = await self._read(cache_key, Facility, kind="detail")
        if cached is not None:
            return cached

        facility = await self._executor.find_by_id(facility_id)
        if facility is None:
            raise FacilityNotFoundError(facility_id)
        await self._write(cache_key, facility, self._policy.detail_ttl())
        return facility

    async def _read(self, key: str, model: type[BaseModel], *, kind: str) -> Any:
        try:
            raw = await self._cache.get(key)
        except Exception as exc:
            logger.warning("facility_cache_read_failed", extra={"cache_key": key, "error": str(exc)})
            self._emit(kind, "error")
            return None
        if raw is None:
            self._emit(kind, "miss")
            return None
        try:
            value = model.model_validate(raw)
        except ValidationError:
            logger.warning("facility_cache_entry_invalid", extra={"cache_key": key})
            self._emit(kind, "miss")
            return None
        self._emit(kind, "hit")
        return value

    async def _write(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        try:
            await self._cache.set(key, value.model_dump(mode="json"), ttl_seconds)
        except Exception as exc:
            logger.warning("facility_cache_write_failed", extra={"cache_key": key, "error": str(exc)})

    def _emit(self, kind: str, outcome: str) -> None:
        if self._on_cache_event is not None:
            self._on_cache_event(kind, outcome)
