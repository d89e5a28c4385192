from __future__ import annotations

from fastapi.testclient import TestClient

from bookrec.app import create_app
from bookrec.metrics import RequestMetrics

metrics = RequestMetrics()
client = TestClient(create_app(metrics=metrics))


def _count(route: str, status_code: int, method: str = "GET") -> float:
    value = metrics.registry.get_sample_value(
        "app_http_requests_total",
        {"method": method, "route": route, "status_code": str(status_code)},
    )
    return value or 0.0


def test_metrics_endpoint_serves_prometheus_text():
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "text/plain" in resp.headers["content-type"]
    assert "app_http_request_duration_seconds" in resp.text


def test_requests_are_counted_by_route_template():
    before = _count("/books/{book_id}", 200)
    client.get("/books/1")
    client.get("/books/2")
    assert _count("/books/{book_id}", 200) == before + 2


def test_error_statuses_are_labelled():
    before_404 = _count("/books/{book_id}", 404)
    before_400 = _count("/recommendations", 400, method="POST")
    client.get("/books/999")
    client.post("/recommendations", json={"minRating": 9})
    assert _count("/books/{book_id}", 404) == before_404 + 1
    assert _count("/recommendations", 400, method="POST") == before_400 + 1


def test_unknown_routes_share_one_label():
    before = _count("<unmatched>", 404)
    client.get("/nope")
    client.get("/also/nope")
    assert _count("<unmatched>", 404) == before + 2


def test_duration_histogram_observed():
    client.get("/health")
    count = metrics.registry.get_sample_value(
        "app_http_request_duration_seconds_count",
        {"method": "GET", "route": "/health", "status_code": "200"},
    )
    assert count >= 1


def test_separate_sinks_do_not_share_counters():
    other = RequestMetrics(include_process_metrics=False)
    other.observe("GET", "/books", 200, 0.01)
    assert other.registry.get_sample_value(
        "app_http_requests_total", {"method": "GET", "route": "/books", "status_code": "200"},
    ) == 1.0
    payload, content_type = other.render()
    assert b"app_http_requests_total" in payload
    assert content_type.startswith("text/plain")
