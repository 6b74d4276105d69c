from fastapi.testclient import TestClient

from facility_api.app import create_app
from facility_api.cache import InMemoryCacheStore
from facility_api.dependencies import (
    get_cache_store,
    get_facility_repository,
    get_facility_service,
    get_rate_limiter,
)
from facility_api.errors import StoreUnavailableError
from facility_api.rate_limit import InMemoryTokenBucketStore, RedisTokenBucketStore, TokenBucketRateLimiter
from facility_api.repositories.facility_repository import InMemoryFacilityRepository
from facility_api.seed import load_facilities_from_file
from facility_api.services.facility_service import FacilityService
from facility_api.services.query_executor import FacilityQueryExecutor


class DownRepository(InMemoryFacilityRepository):
    async def count(self, filter):
        raise StoreUnavailableError("facility store count failed")

    async def ping(self) -> bool:
        return False


class DownCache(InMemoryCacheStore):
    async def ping(self) -> bool:
        return False


class DownRedis:
    async def hgetall(self, name: str) -> dict[str, str]:
        raise ConnectionError("redis unavailable")

    async def hset(self, name: str, mapping: dict[str, str]) -> int:
        raise ConnectionError("redis unavailable")

    async def expire(self, name: str, time: int) -> bool:
        raise ConnectionError("redis unavailable")


def _client(repository=None, limiter=None) -> TestClient:
    app = create_app()
    repository = repository or InMemoryFacilityRepository(load_facilities_from_file())
    service = FacilityService(FacilityQueryExecutor(repository), InMemoryCacheStore())
    app.dependency_overrides[get_facility_service] = lambda: service
    app.dependency_overrides[get_facility_repository] = lambda: repository
    if limiter is not None:
        app.dependency_overrides[get_rate_limiter] = lambda: limiter
    else:
        app.dependency_overrides[get_rate_limiter] = lambda: TokenBucketRateLimiter(InMemoryTokenBucketStore())
    return TestClient(app)


def _auth_headers(client: TestClient) -> dict[str, str]:
    response = client.post("/v1/auth/login", json={"email": "test.user@example.com", "password": "password123"})
    return {"Authorization": f"Bearer {response.json()['data']['token']}"}


def test_health_endpoint_response_shape() -> None:
    response = _client().get("/healthz")
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert body["data"]["status"] == "ok"


def test_login_returns_token_and_user() -> None:
    response = _client().post("/v1/auth/login", json={"email": "test.user@example.com", "password": "password123"})
    body = response.json()

    assert response.status_code == 200
    assert body["data"]["user"]["name"] == "Test User"
    assert body["data"]["token"].count(".") == 2


def test_login_validation_error_format() -> None:
    response = _client().post("/v1/auth/login", json={"email": "test.user@example.com", "password": "123"})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_facilities_require_bearer_token() -> None:
    response = _client().get("/v1/facilities")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_facilities_pagination_response_shape() -> None:
    client = _client()

    response = client.get("/v1/facilities", params={"limit": 5, "page": 2}, headers=_auth_headers(client))
    body = response.json()

    assert response.status_code == 200
    assert body["success"] is True
    assert len(body["data"]) == 5
    assert set(body["data"][0]) == {"id", "name", "address", "location", "amenities"}
    assert body["meta"] == {
        "total": 15,
        "page": 2,
        "limit": 5,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPreviousPage": True,
    }


def test_facilities_name_search_is_case_insensitive() -> None:
    client = _client()

    response = client.get("/v1/facilities", params={"name": "city"}, headers=_auth_headers(client))
    names = [item["name"] for item in response.json()["data"]]

    assert names == ["City Boxing Academy", "City Fitness Central", "Cityline 24/7 Fitness"]


def test_facilities_amenity_filters() -> None:
    client = _client()
    headers = _auth_headers(client)

    all_mode = client.get("/v1/facilities", params={"amenities": ["Pool", "gym"]}, headers=headers).json()
    exact_mode = client.get(
        "/v1/facilities",
        params={"amenities": ["Gym", "Pool"], "amenityMatchMode": "exact"},
        headers=headers,
    ).json()

    assert all_mode["meta"]["total"] == 3
    assert [item["id"] for item in exact_mode["data"]] == ["fac-0002"]


def test_facilities_limit_is_clamped() -> None:
    client = _client()

    response = client.get("/v1/facilities", params={"limit": 1000}, headers=_auth_headers(client))

    assert response.status_code == 200
    assert response.json()["meta"]["limit"] == 100


def test_facilities_invalid_page_error_format() -> None:
    client = _client()

    response = client.get("/v1/facilities", params={"page": "abc"}, headers=_auth_headers(client))

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_facility_detail_and_not_found() -> None:
    client = _client()
    headers = _auth_headers(client)

    found = client.get("/v1/facilities/fac-0001", headers=headers)
    missing = client.get("/v1/facilities/nonexistent", headers=headers)

    assert found.status_code == 200
    assert found.json()["data"]["name"] == "City Fitness Central"
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"


def test_store_failure_maps_to_503() -> None:
    client = _client(repository=DownRepository())

    response = client.get("/v1/facilities", headers=_auth_headers(client))

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STORE_UNAVAILABLE"


def test_facilities_rate_limit_error_format() -> None:
    limiter = TokenBucketRateLimiter(InMemoryTokenBucketStore(), capacity=1, refill_period_seconds=60)
    client = _client(limiter=limiter)
    headers = {**_auth_headers(client), "x-client-id": "client-1"}

    first = client.get("/v1/facilities", headers=headers)
    second = client.get("/v1/facilities", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"


def test_facilities_served_when_rate_limit_store_down() -> None:
    client = _client(limiter=TokenBucketRateLimiter(RedisTokenBucketStore(DownRedis())))

    response = client.get("/v1/facilities", headers=_auth_headers(client))

    assert response.status_code == 200
    assert response.json()["success"] is True


def test_non_ascii_bearer_signature_is_unauthorized() -> None:
    client = _client()

    response = client.get("/v1/facilities", headers={"Authorization": b"Bearer a.b.\xe9"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_readyz_reports_dependencies() -> None:
    client = _client()
    client.app.dependency_overrides[get_cache_store] = lambda: InMemoryCacheStore()

    response = client.get("/readyz")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "ready"


def test_readyz_degraded_when_cache_down() -> None:
    client = _client()
    client.app.dependency_overrides[get_cache_store] = lambda: DownCache()

    response = client.get("/readyz")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "degraded"


def test_readyz_fails_when_store_down() -> None:
    client = _client(repository=DownRepository())

    response = client.get("/readyz")

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "NOT_READY"
