from __future__ import annotations

import re
from collections.abc import Iterable

from facility_api.config import QueryConfig
from facility_api.errors import QueryValidationError
from facility_api.schemas.facility import AmenityMatchMode, FacilityListQuery, SortField, SortOrder

MAX_NAME_LENGTH = 100
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def parse_facility_query(
    config: QueryConfig,
    *,
    name: str | None = None,
    amenities: str | Iterable[str] | None = None,
    amenity_match_mode: str | None = None,
    page: int | str | None = None,
    limit: int | str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> FacilityListQuery:
    """Turn raw request parameters into a normalized query.

    Out-of-range ``page``/``limit`` values are clamped and an unknown
    ``sort_by`` falls back to ``name``; anything that cannot be interpreted
    at all raises ``QueryValidationError``.
    """
    return FacilityListQuery(
        name=_parse_name(name),
        amenities=_parse_amenities(amenities),
        amenity_match_mode=_parse_enum(AmenityMatchMode, amenity_match_mode, "amenityMatchMode", AmenityMatchMode.ALL),
        page=max(1, _parse_int(page, "page", default=1)),
        limit=min(max(1, _parse_int(limit, "limit", default=config.default_page_size)), config.max_page_size),
        sort_by=_parse_sort_field(sort_by),
        sort_order=_parse_enum(SortOrder, sort_order, "sortOrder", SortOrder.ASC),
    )


def _parse_name(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if len(value) > MAX_NAME_LENGTH:
        raise QueryValidationError("name", f"must be at most {MAX_NAME_LENGTH} characters")
    if _CONTROL_CHARS.search(value):
        raise QueryValidationError("name", "must not contain control characters")
    return value


def _parse_amenities(value: str | Iterable[str] | None) -> tuple[str, ...]:
    if value is None:
        return ()
    raw = [value] if isinstance(value, str) else list(value)
    seen: set[str] = set()
    result: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise QueryValidationError("amenities", "must be a list of strings")
        for part in item.split(","):
            label = part.strip()
            folded = label.casefold()
            if not label or folded in seen:
                continue
            seen.add(folded)
            result.append(label)
    return tuple(result)


def _parse_int(value: int | str | None, field: str, *, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise QueryValidationError(field, "must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise QueryValidationError(field, "must be an integer") from exc


def _parse_enum(enum_cls, value: str | None, field: str, default):
    if value is None or value == "":
        return default
    try:
        return enum_cls(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(item.value for item in enum_cls)
        raise QueryValidationError(field, f"must be one of: {allowed}") from exc


def _parse_sort_field(value: str | None) -> SortField:
    try:
        return SortField((value or "").strip().lower())
    except ValueError:
        return SortField.NAME
