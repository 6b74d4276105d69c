import logging

from fastapi.testclient import TestClient

from facility_api.app import create_app
from facility_api.observability import PrometheusApiMetricsCollector
from facility_api.telemetry import _ProbeAccessLogFilter


def _sample(body: str, series: str) -> float:
    for line in body.splitlines():
        if line.startswith(series + " "):
            return float(line.rsplit(" ", 1)[1])
    return 0.0


def test_trace_header_is_propagated() -> None:
    client = TestClient(create_app())

    response = client.get("/healthz", headers={"x-trace-id": "trace-abc"})

    assert response.status_code == 200
    assert response.headers["x-trace-id"] == "trace-abc"


def test_api_latency_metric_is_collected() -> None:
    client = TestClient(create_app())
    requests = 'facility_api_http_requests_total{method="GET",path="/healthz",status_code="200"}'
    latency = 'facility_api_http_request_duration_ms_count{method="GET",path="/healthz"}'
    before = client.get("/metrics").text

    response = client.get("/healthz")
    after = client.get("/metrics").text

    assert response.status_code == 200
    assert _sample(after, requests) == _sample(before, requests) + 1
    assert _sample(after, latency) == _sample(before, latency) + 1


def test_prometheus_metrics_endpoint_exposes_http_metrics() -> None:
    client = TestClient(create_app())

    client.get("/healthz")
    body = client.get("/metrics").text

    assert "facility_api_http_requests_total" in body
    assert "facility_api_http_request_duration_ms" in body


def test_cache_lookups_are_counted() -> None:
    collector = PrometheusApiMetricsCollector()

    collector.observe_cache("list", "hit")
    collector.observe_cache("list", "hit")

    assert 'facility_api_cache_lookups_total{kind="list",outcome="hit"} 2.0' in collector.render()


def test_probe_filter_drops_successful_health_checks() -> None:
    log_filter = _ProbeAccessLogFilter(ignored_paths=("/healthz",))

    def record(path: str, status: int) -> logging.LogRecord:
        return logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 0, '%s - "%s %s HTTP/%s" %d',
            ("127.0.0.1:5000", "GET", path, "1.1", status), None,
        )

    assert log_filter.filter(record("/healthz", 200)) is False
    assert log_filter.filter(record("/healthz", 500)) is True
    assert log_filter.filter(record("/v1/facilities", 200)) is True
