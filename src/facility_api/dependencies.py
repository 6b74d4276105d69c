from __future__ import annotations

from facility_api.cache import CacheStore, create_cache_store
from facility_api.config import QueryConfig, ServiceSettings, load_settings
from facility_api.jwt_utils import JWTManager
from facility_api.observability import PrometheusApiMetricsCollector
from facility_api.rate_limit import TokenBucketRateLimiter, create_token_bucket_store
from facility_api.redis_client import create_redis_client
from facility_api.repositories.facility_repository import (
    FacilityRepository,
    InMemoryFacilityRepository,
    create_mongo_repository,
)
from facility_api.seed import DEFAULT_DATASET_PATH, load_facilities_from_file
from facility_api.services.auth_service import AuthService
from facility_api.services.cache_policy import CachePolicy
from facility_api.services.facility_service import FacilityService
from facility_api.services.query_executor import FacilityQueryExecutor

_settings = load_settings()
_query_config = QueryConfig.from_settings(_settings)
_prom_metrics = PrometheusApiMetricsCollector()
_redis_client = create_redis_client(_settings.REDIS_URL)

if _settings.MONGODB_URI:
    _facility_repository: FacilityRepository = create_mongo_repository(
        _settings.MONGODB_URI,
        _settings.MONGODB_DATABASE,
        _settings.MONGODB_COLLECTION,
    )
else:
    _facility_repository = InMemoryFacilityRepository(load_facilities_from_file(DEFAULT_DATASET_PATH))

_cache_store = create_cache_store(_redis_client, max_items=_settings.CACHE_MAX_ITEMS)
_facility_service = FacilityService(
    FacilityQueryExecutor(_facility_repository),
    _cache_store,
    policy=CachePolicy.from_settings(_settings),
    config=_query_config,
    on_cache_event=_prom_metrics.observe_cache,
)
_jwt_manager = JWTManager(secret=_settings.JWT_SECRET_KEY, expires_in_seconds=_settings.JWT_EXPIRATION_SECONDS)
_auth_service = AuthService(_jwt_manager)
_rate_limiter = TokenBucketRateLimiter(
    create_token_bucket_store(_redis_client),
    capacity=_settings.THROTTLE_LIMIT,
    refill_period_seconds=_settings.THROTTLE_TTL,
)


def get_settings() -> ServiceSettings:
    return _settings


def get_query_config() -> QueryConfig:
    return _query_config


def get_prometheus_metrics() -> PrometheusApiMetricsCollector:
    return _prom_metrics


def get_facility_repository() -> FacilityRepository:
    return _facility_repository


def get_cache_store() -> CacheStore:
    return _cache_store


def get_facility_service() -> FacilityService:
    return _facility_service


def get_jwt_manager() -> JWTManager:
    return _jwt_manager


def get_auth_service() -> AuthService:
    return _auth_service


def get_rate_limiter() -> TokenBucketRateLimiter:
    return _rate_limiter
