from __future__ import annotations

import hashlib
import json
from enum import Enum
from typing import Any

from facility_api.schemas.facility import FacilityListQuery

LIST_PREFIX = "facilities:list"
DETAIL_PREFIX = "facilities:detail"


def build_cache_key(prefix: str, params: dict[str, Any]) -> str:
    """Return ``prefix:<sha256>`` over a canonical JSON form of ``params``.

    Keys are sorted and sequence values are case-folded and sorted, so
    requests that differ only in parameter or amenity order share a key.
    """
    canonical = {key: _canonical_value(value) for key, value in params.items()}
    payload = json.dumps(canonical, sort_keys=True, separators=(",", ":"), ensure_ascii=True)
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{prefix}:{digest}"


def list_cache_key(query: FacilityListQuery) -> str:
    return build_cache_key(
        LIST_PREFIX,
        {
            "name": query.name,
            "amenities": list(query.amenities),
            "amenityMatchMode": query.amenity_match_mode,
            "page": query.page,
            "limit": query.limit,
            "sortBy": query.sort_by,
            "sortOrder": query.sort_order,
        },
    )


def detail_cache_key(facility_id: str) -> str:
    return build_cache_key(DETAIL_PREFIX, {"id": facility_id})


def _canonical_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple, set, frozenset)):
        return sorted(str(_canonical_value(item)).casefold() for item in value)
    return value
