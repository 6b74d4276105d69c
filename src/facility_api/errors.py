from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    status_code: int


class FacilityNotFoundError(Exception):
    """Raised when a single-facility lookup has no matching record."""

    def __init__(self, facility_id: str) -> None:
        super().__init__(f'Facility with ID "{facility_id}" not found')
        self.facility_id = facility_id


class QueryValidationError(ValueError):
    """Raised for query parameters that cannot be normalized."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field


class StoreUnavailableError(Exception):
    """Raised when the facility store cannot serve a query."""


class CacheUnavailableError(Exception):
    """Raised by cache stores on backend failure; never leaves the service layer."""
