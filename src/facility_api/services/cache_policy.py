from __future__ import annotations

from dataclasses import dataclass

from facility_api.config import ServiceSettings
from facility_api.schemas.facility import FacilityListQuery


@dataclass(frozen=True)
class CachePolicy:
    """Which facility queries are cached, and for how long.

    Shallow pages carry most of the traffic, so unfiltered listings are
    cached through ``max_unfiltered_page`` and filtered ones through
    ``max_filtered_page``. Detail lookups are always cached.
    """

    max_unfiltered_page: int = 3
    max_filtered_page: int = 2
    unfiltered_ttl_seconds: int = 3600
    filtered_ttl_seconds: int = 300
    detail_ttl_seconds: int = 1800

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "CachePolicy":
        return cls(
            max_unfiltered_page=settings.CACHE_MAX_UNFILTERED_PAGE,
            max_filtered_page=settings.CACHE_MAX_FILTERED_PAGE,
            unfiltered_ttl_seconds=settings.CACHE_TTL_UNFILTERED_SECONDS,
            filtered_ttl_seconds=settings.CACHE_TTL_FILTERED_SECONDS,
            detail_ttl_seconds=settings.CACHE_TTL_DETAIL_SECONDS,
        )

    def should_cache_list(self, query: FacilityListQuery) -> bool:
        max_page = self.max_filtered_page if query.is_filtered else self.max_unfiltered_page
        return query.page <= max_page

    def list_ttl(self, query: FacilityListQuery) -> int:
        return self.filtered_ttl_seconds if query.is_filtered else self.unfiltered_ttl_seconds

    def detail_ttl(self) -> int:
        return self.detail_ttl_seconds
