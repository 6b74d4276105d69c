from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from facility_api.cache import CacheStore
from facility_api.dependencies import get_cache_store, get_facility_repository, get_prometheus_metrics, get_settings
from facility_api.errors import ApiError, FacilityNotFoundError, QueryValidationError, StoreUnavailableError
from facility_api.middleware import ObservabilityMiddleware
from facility_api.repositories.facility_repository import FacilityRepository
from facility_api.response import error_response, success_response
from facility_api.routers.auth import router as auth_router
from facility_api.routers.facilities import router as facilities_router
from facility_api.telemetry import configure_otel, configure_probe_access_log_filter

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Facility Search API", version="0.1.0")
    configure_otel(service_name=settings.SERVICE_NAME)
    configure_probe_access_log_filter()
    app.state.prom_metrics = get_prometheus_metrics()
    app.add_middleware(
        ObservabilityMiddleware,
        collector=app.state.prom_metrics,
        service_name=settings.SERVICE_NAME,
    )
    app.include_router(auth_router)
    app.include_router(facilities_router)

    @app.get("/healthz")
    async def healthz() -> dict:
        return success_response({"status": "ok"}, meta={})

    @app.get("/readyz")
    async def readyz(
        repository: FacilityRepository = Depends(get_facility_repository),
        cache: CacheStore = Depends(get_cache_store),
    ) -> JSONResponse:
        store_ok = await repository.ping()
        cache_ok = await cache.ping()
        services = {
            "database": "connected" if store_ok else "disconnected",
            "cache": "connected" if cache_ok else "disconnected",
        }
        if not store_ok:
            return JSONResponse(status_code=503, content=error_response("NOT_READY", "Facility store unavailable"))
        status = "ready" if cache_ok else "degraded"
        return JSONResponse(status_code=200, content=success_response({"status": status, "services": services}))

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = app.state.prom_metrics.render()
        return Response(content=payload, media_type="text/plain; version=0.0.4")

    @app.exception_handler(ApiError)
    async def handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.code, exc.message))

    @app.exception_handler(QueryValidationError)
    async def handle_query_validation_error(_: Request, exc: QueryValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content=error_response("VALIDATION_ERROR", str(exc)))

    @app.exception_handler(FacilityNotFoundError)
    async def handle_not_found(_: Request, exc: FacilityNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=error_response("NOT_FOUND", str(exc)))

    @app.exception_handler(StoreUnavailableError)
    async def handle_store_unavailable(_: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error("facility_request_failed", extra={"error": str(exc)})
        return JSONResponse(
            status_code=503,
            content=error_response("STORE_UNAVAILABLE", "Facility store unavailable, please retry later"),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = "; ".join(err["msg"] for err in exc.errors())
        return JSONResponse(status_code=422, content=error_response("VALIDATION_ERROR", message))

    return app


app = create_app()
