from facility_api.config import ServiceSettings
from facility_api.schemas.facility import FacilityListQuery
from facility_api.services.cache_policy import CachePolicy


def test_unfiltered_pages_cached_through_page_three() -> None:
    policy = CachePolicy()

    assert policy.should_cache_list(FacilityListQuery(page=3)) is True
    assert policy.should_cache_list(FacilityListQuery(page=4)) is False


def test_filtered_pages_cached_through_page_two() -> None:
    policy = CachePolicy()

    assert policy.should_cache_list(FacilityListQuery(name="city", page=2)) is True
    assert policy.should_cache_list(FacilityListQuery(name="city", page=3)) is False
    assert policy.should_cache_list(FacilityListQuery(amenities=("Pool",), page=3)) is False


def test_ttl_tiers() -> None:
    policy = CachePolicy(unfiltered_ttl_seconds=100, filtered_ttl_seconds=10, detail_ttl_seconds=50)

    assert policy.list_ttl(FacilityListQuery()) == 100
    assert policy.list_ttl(FacilityListQuery(amenities=("Gym",))) == 10
    assert policy.detail_ttl() == 50


def test_policy_from_settings() -> None:
    settings = ServiceSettings(
        CACHE_TTL_UNFILTERED_SECONDS=7200,
        CACHE_TTL_FILTERED_SECONDS=60,
        CACHE_TTL_DETAIL_SECONDS=900,
        CACHE_MAX_UNFILTERED_PAGE=5,
        CACHE_MAX_FILTERED_PAGE=1,
    )
    policy = CachePolicy.from_settings(settings)

    assert policy.unfiltered_ttl_seconds == 7200
    assert policy.filtered_ttl_seconds == 60
    assert policy.detail_ttl_seconds == 900
    assert policy.should_cache_list(FacilityListQuery(page=5)) is True
    assert policy.should_cache_list(FacilityListQuery(name="city", page=2)) is False


def test_policy_from_default_settings_keeps_page_depths() -> None:
    policy = CachePolicy.from_settings(ServiceSettings())

    assert policy.max_unfiltered_page == 3
    assert policy.max_filtered_page == 2
