from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from facility_api.schemas.facility import AmenityMatchMode, FacilityListQuery, SortField, SortOrder

ALLOWED_SORT_FIELDS = frozenset(item.value for item in SortField)
DEFAULT_SORT_FIELD = SortField.NAME.value


@dataclass(frozen=True)
class StoreQuery:
    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] = field(default_factory=list)


def build_facility_query(query: FacilityListQuery) -> StoreQuery:
    return StoreQuery(
        filter=build_filter(query.name, query.amenities, query.amenity_match_mode),
        sort=build_sort(query.sort_by.value, query.sort_order),
    )


def build_filter(
    name: str | None,
    amenities: tuple[str, ...] | list[str],
    mode: AmenityMatchMode = AmenityMatchMode.ALL,
) -> dict[str, Any]:
    store_filter: dict[str, Any] = {}
    if name:
        store_filter["name"] = {"$regex": re.escape(name), "$options": "i"}
    if amenities:
        patterns = [_amenity_pattern(label) for label in amenities]
        if mode is AmenityMatchMode.ANY:
            store_filter["amenities"] = {"$in": patterns}
        elif mode is AmenityMatchMode.EXACT:
            store_filter["amenities"] = {"$all": patterns, "$size": len(patterns)}
        else:
            store_filter["amenities"] = {"$all": patterns}
    return store_filter


def build_sort(sort_by: str, sort_order: SortOrder = SortOrder.ASC) -> list[tuple[str, int]]:
    field_name = sort_by if sort_by in ALLOWED_SORT_FIELDS else DEFAULT_SORT_FIELD
    direction = -1 if sort_order is SortOrder.DESC else 1
    sort = [(field_name, direction)]
    # id is unique, so it makes page boundaries stable when names repeat
    if field_name != "id":
        sort.append(("id", direction))
    return sort


def _amenity_pattern(label: str) -> re.Pattern[str]:
    return re.compile(f"^{re.escape(label)}$", re.IGNORECASE)
