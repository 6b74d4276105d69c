from __future__ import annotations

import asyncio

from facility_api.repositories.facility_repository import PUBLIC_PROJECTION, FacilityRepository
from facility_api.schemas.facility import Facility, FacilityListQuery, PaginatedFacilities, PaginationMeta
from facility_api.services.filter_translator import build_facility_query


class FacilityQueryExecutor:
    def __init__(self, repository: FacilityRepository) -> None:
        self._repository = repository

    async def execute(self, query: FacilityListQuery) -> PaginatedFacilities:
        store_query = build_facility_query(query)
        offset = (query.page - 1) * query.limit
        documents, total = await asyncio.gather(
            self._repository.find(
                store_query.filter,
                store_query.sort,
                offset,
                query.limit,
                PUBLIC_PROJECTION,
            ),
            self._repository.count(store_query.filter),
        )
        return PaginatedFacilities(
            data=[Facility.from_document(doc) for doc in documents[: query.limit]],
            meta=PaginationMeta.build(total=total, page=query.page, limit=query.limit),
        )

    async def find_by_id(self, facility_id: str) -> Facility | None:
        document = await self._repository.find_one({"id": facility_id}, PUBLIC_PROJECTION)
        if document is None:
            return None
        return Facility.from_document(document)
