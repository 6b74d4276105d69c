from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, Depends, Query, Request

from facility_api.config import QueryConfig, ServiceSettings
from facility_api.dependencies import get_facility_service, get_query_config, get_rate_limiter, get_settings
from facility_api.errors import ApiError
from facility_api.rate_limit import TokenBucketRateLimiter
from facility_api.response import success_response
from facility_api.security import require_authenticated
from facility_api.services.facility_service import FacilityService
from facility_api.services.query_parser import parse_facility_query

T = TypeVar("T")


def _resolve_client_key(request: Request) -> str:
    forwarded = request.headers.get("x-client-id")
    if forwarded:
        return forwarded
    if request.client:
        return request.client.host
    return "anonymous"


async def enforce_rate_limit(
    request: Request,
    rate_limiter: TokenBucketRateLimiter = Depends(get_rate_limiter),
) -> None:
    allowed = await rate_limiter.allow(_resolve_client_key(request), now_seconds=time.time())
    if not allowed:
        raise ApiError("RATE_LIMIT_EXCEEDED", "Too many requests", 429)


router = APIRouter(
    prefix="/v1/facilities",
    tags=["facilities"],
    dependencies=[Depends(enforce_rate_limit), Depends(require_authenticated)],
)


async def _bounded(operation: Awaitable[T], timeout_seconds: float) -> T:
    try:
        return await asyncio.wait_for(operation, timeout=timeout_seconds)
    except TimeoutError as exc:
        raise ApiError("UPSTREAM_TIMEOUT", "Upstream timeout", 504) from exc


@router.get("")
async def list_facilities(
    name: str | None = None,
    amenities: list[str] | None = Query(default=None),
    amenity_match_mode: str | None = Query(default=None, alias="amenityMatchMode"),
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    service: FacilityService = Depends(get_facility_service),
    query_config: QueryConfig = Depends(get_query_config),
    settings: ServiceSettings = Depends(get_settings),
) -> dict:
    query = parse_facility_query(
        query_config,
        name=name,
        amenities=amenities,
        amenity_match_mode=amenity_match_mode,
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = await _bounded(service.get_facilities(query), settings.REQUEST_TIMEOUT_SECONDS)
    return success_response(
        [item.model_dump(mode="json") for item in result.data],
        meta=result.meta.model_dump(),
    )


@router.get("/{facility_id}")
async def get_facility_detail(
    facility_id: str,
    service: FacilityService = Depends(get_facility_service),
    settings: ServiceSettings = Depends(get_settings),
) -> dict:
    facility = await _bounded(service.get_facility_by_id(facility_id), settings.REQUEST_TIMEOUT_SECONDS)
    return success_response(facility.model_dump(mode="json"), meta={})
