"""Prometheus request metrics for the HTTP layer."""

from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    GCCollector,
    Histogram,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
)

REQUEST_DURATION_BUCKETS = (0.005, 0.01, 0.05, 0.1, 0.5, 1, 2, 5)
REQUEST_LABELS = ("method", "route", "status_code")


class RequestMetrics:
    """Request counter and latency histogram on a private registry.

    Each instance owns its own :class:`CollectorRegistry`, so separate apps
    (and tests) never share counters.
    """

    def __init__(
        self,
        registry: CollectorRegistry | None = None,
        include_process_metrics: bool = True,
    ) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        if include_process_metrics:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

        self.requests_total = Counter(
            "app_http_requests_total",
            "Total number of HTTP requests",
            REQUEST_LABELS,
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "app_http_request_duration_seconds",
            "HTTP request duration in seconds",
            REQUEST_LABELS,
            buckets=REQUEST_DURATION_BUCKETS,
            registry=self.registry,
        )

    def observe(self, method: str, route: str, status_code: int, seconds: float) -> None:
        labels = (method, route, str(status_code))
        self.requests_total.labels(*labels).inc()
        self.request_duration.labels(*labels).observe(seconds)

    def render(self) -> tuple[bytes, str]:
        """Return the exposition payload and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
