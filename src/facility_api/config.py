from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SERVICE_NAME: str = "facility-search-api"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = Field(default=3000, ge=1, le=65535)
    MONGODB_URI: str | None = None
    MONGODB_DATABASE: str = "facilities"
    MONGODB_COLLECTION: str = "facilities"
    REDIS_URL: str | None = None
    CACHE_MAX_ITEMS: int = Field(default=1000, ge=1)
    CACHE_TTL_UNFILTERED_SECONDS: int = Field(default=3600, ge=1)
    CACHE_TTL_FILTERED_SECONDS: int = Field(default=300, ge=1)
    CACHE_TTL_DETAIL_SECONDS: int = Field(default=1800, ge=1)
    CACHE_MAX_UNFILTERED_PAGE: int = Field(default=3, ge=1)
    CACHE_MAX_FILTERED_PAGE: int = Field(default=2, ge=1)
    JWT_SECRET_KEY: str = "dev-only-secret"
    JWT_EXPIRATION_SECONDS: int = Field(default=3600, ge=1)
    THROTTLE_TTL: int = Field(default=60, ge=1)
    THROTTLE_LIMIT: int = Field(default=100, ge=1)
    DEFAULT_PAGE_SIZE: int = Field(default=20, ge=1)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1, le=1000)
    REQUEST_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "ServiceSettings":
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError("DEFAULT_PAGE_SIZE must not exceed MAX_PAGE_SIZE")
        return self


@dataclass(frozen=True)
class QueryConfig:
    default_page_size: int = 20
    max_page_size: int = 100

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "QueryConfig":
        return cls(
            default_page_size=settings.DEFAULT_PAGE_SIZE,
            max_page_size=settings.MAX_PAGE_SIZE,
        )


def load_settings(service_name: str = "facility-search-api") -> ServiceSettings:
    return ServiceSettings(SERVICE_NAME=service_name)
