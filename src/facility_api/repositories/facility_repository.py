from __future__ import annotations

import copy
import logging
import re
from collections.abc import Iterable
from typing import Any, Protocol

from facility_api.errors import StoreUnavailableError
from facility_api.schemas.facility import PUBLIC_FIELDS

logger = logging.getLogger(__name__)

# legacy datasets keep amenities under "facilities"
PUBLIC_PROJECTION: dict[str, int] = {"_id": 0, **{name: 1 for name in PUBLIC_FIELDS}, "facilities": 1}


class FacilityRepository(Protocol):
    async def count(self, filter: dict[str, Any]) -> int: ...

    async def find(
        self,
        filter: dict[str, Any],
        sort: list[tuple[str, int]],
        skip: int,
        limit: int,
        projection: dict[str, int],
    ) -> list[dict[str, Any]]: ...

    async def find_one(self, filter: dict[str, Any], projection: dict[str, int]) -> dict[str, Any] | None: ...

    async def delete_all(self) -> int: ...

    async def insert_many(self, documents: list[dict[str, Any]]) -> int: ...

    async def ensure_indexes(self) -> None: ...

    async def ping(self) -> bool: ...


class InMemoryFacilityRepository:
    """Evaluates the Mongo filter subset produced by the filter translator."""

    def __init__(self, documents: Iterable[dict[str, Any]] = ()) -> None:
        self._documents: list[dict[str, Any]] = [copy.deepcopy(doc) for doc in documents]

    async def count(self, filter: dict[str, Any]) -> int:
        return sum(1 for doc in self._documents if matches(doc, filter))

    async def find(
        self,
        filter: dict[str, Any],
        sort: list[tuple[str, int]],
        skip: int,
        limit: int,
        projection: dict[str, int],
    ) -> list[dict[str, Any]]:
        matched = [doc for doc in self._documents if matches(doc, filter)]
        for field_name, direction in reversed(sort):
            matched.sort(key=lambda doc: _sort_key(doc.get(field_name)), reverse=direction < 0)
        return [_project(doc, projection) for doc in matched[skip : skip + limit]]

    async def find_one(self, filter: dict[str, Any], projection: dict[str, int]) -> dict[str, Any] | None:
        for doc in self._documents:
            if matches(doc, filter):
                return _project(doc, projection)
        return None

    async def delete_all(self) -> int:
        deleted = len(self._documents)
        self._documents.clear()
        return deleted

    async def insert_many(self, documents: list[dict[str, Any]]) -> int:
        self._documents.extend(copy.deepcopy(doc) for doc in documents)
        return len(documents)

    async def ensure_indexes(self) -> None:
        return None

    async def ping(self) -> bool:
        return True


class MongoFacilityRepository:
    def __init__(self, collection: Any) -> None:
        self._collection = collection

    async def count(self, filter: dict[str, Any]) -> int:
        try:
            return await self._collection.count_documents(filter)
        except Exception as exc:
            raise _store_error("count", exc) from exc

    async def find(
        self,
        filter: dict[str, Any],
        sort: list[tuple[str, int]],
        skip: int,
        limit: int,
        projection: dict[str, int],
    ) -> list[dict[str, Any]]:
        try:
            cursor = self._collection.find(filter, projection)
            if sort:
                cursor = cursor.sort(sort)
            cursor = cursor.skip(skip).limit(limit)
            return await cursor.to_list(length=limit)
        except Exception as exc:
            raise _store_error("find", exc) from exc

    async def find_one(self, filter: dict[str, Any], projection: dict[str, int]) -> dict[str, Any] | None:
        try:
            return await self._collection.find_one(filter, projection)
        except Exception as exc:
            raise _store_error("find_one", exc) from exc

    async def delete_all(self) -> int:
        result = await self._collection.delete_many({})
        return result.deleted_count

    async def insert_many(self, documents: list[dict[str, Any]]) -> int:
        if not documents:
            return 0
        # insert_many writes _id into the documents it is given
        result = await self._collection.insert_many([dict(doc) for doc in documents], ordered=False)
        return len(result.inserted_ids)

    async def ensure_indexes(self) -> None:
        await self._collection.create_index("id", unique=True)
        await self._collection.create_index("name")
        await self._collection.create_index("amenities")
        await self._collection.create_index([("amenities", 1), ("name", 1)])

    async def ping(self) -> bool:
        try:
            await self._collection.database.command("ping")
        except Exception:
            logger.warning("facility_store_ping_failed", exc_info=True)
            return False
        return True


def create_mongo_repository(uri: str, database: str, collection: str) -> MongoFacilityRepository:
    from pymongo import AsyncMongoClient

    client = AsyncMongoClient(uri, serverSelectionTimeoutMS=5000, socketTimeoutMS=30000)
    return MongoFacilityRepository(client[database][collection])


def matches(document: dict[str, Any], filter: dict[str, Any]) -> bool:
    for field_name, condition in filter.items():
        value = document.get(field_name)
        if field_name == "amenities" and value is None:
            value = document.get("facilities")
        if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
            if not _matches_operators(value, condition):
                return False
        elif not _matches_value(value, condition):
            return False
    return True


def _matches_operators(value: Any, condition: dict[str, Any]) -> bool:
    for operator, operand in condition.items():
        if operator == "$regex":
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            if not isinstance(value, str) or re.search(operand, value, flags) is None:
                return False
        elif operator == "$options":
            continue
        elif operator == "$all":
            if not all(_matches_value(value, item) for item in operand):
                return False
        elif operator == "$in":
            if not any(_matches_value(value, item) for item in operand):
                return False
        elif operator == "$size":
            if not isinstance(value, list) or len(value) != operand:
                return False
        else:
            raise ValueError(f"unsupported filter operator: {operator}")
    return True


def _matches_value(value: Any, expected: Any) -> bool:
    if isinstance(value, list):
        return any(_matches_value(item, expected) for item in value)
    if isinstance(expected, re.Pattern):
        return isinstance(value, str) and expected.search(value) is not None
    return value == expected


def _project(document: dict[str, Any], projection: dict[str, int]) -> dict[str, Any]:
    included = [key for key, flag in projection.items() if flag and key != "_id"]
    if not included:
        excluded = {key for key, flag in projection.items() if not flag}
        return {key: copy.deepcopy(value) for key, value in document.items() if key not in excluded}
    return {key: copy.deepcopy(document[key]) for key in included if key in document}


def _sort_key(value: Any) -> tuple[int, Any]:
    # missing values sort first, as in Mongo
    if value is None:
        return (0, "")
    return (1, value)


def _store_error(operation: str, exc: Exception) -> StoreUnavailableError:
    logger.error("facility_store_failed", extra={"operation": operation, "error": str(exc)})
    return StoreUnavailableError(f"facility store {operation} failed")
