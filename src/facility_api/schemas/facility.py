from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PUBLIC_FIELDS = ("id", "name", "address", "location", "amenities")


class AmenityMatchMode(str, Enum):
    ALL = "all"
    ANY = "any"
    EXACT = "exact"


class SortField(str, Enum):
    NAME = "name"
    ID = "id"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Facility(BaseModel):
    id: str
    name: str
    address: str
    location: Location
    amenities: list[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Facility":
        data = {key: document[key] for key in PUBLIC_FIELDS if key in document}
        if "amenities" not in data and "facilities" in document:
            data["amenities"] = document["facilities"]
        return cls.model_validate(data)


class FacilityListQuery(BaseModel):
    """Normalized facility search request, with every default resolved."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    amenities: tuple[str, ...] = ()
    amenity_match_mode: AmenityMatchMode = AmenityMatchMode.ALL
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    sort_by: SortField = SortField.NAME
    sort_order: SortOrder = SortOrder.ASC

    @property
    def is_filtered(self) -> bool:
        return bool(self.name) or bool(self.amenities)


class PaginationMeta(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int
    hasNextPage: bool
    hasPreviousPage: bool

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        total_pages = max(1, math.ceil(total / limit))
        return cls(
            total=total,
            page=page,
            limit=limit,
            totalPages=total_pages,
            hasNextPage=page < total_pages,
            hasPreviousPage=page > 1,
        )


class PaginatedFacilities(BaseModel):
    data: list[Facility]
    meta: PaginationMeta
