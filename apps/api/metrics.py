"""
Prometheus request metrics
Each app owns its registry, so test apps never share counters
"""

from typing import Optional
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)


class RequestMetrics:
    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self.duration = Histogram(
            "http_request_duration_seconds",
            "Latency of HTTP requests",
            ("method", "route", "status"),
            registry=self.registry,
        )
        self.in_flight = Gauge(
            "http_requests_in_flight",
            "HTTP requests currently being served",
            ("method",),
            registry=self.registry,
        )
        self.total = Counter(
            "http_requests_total",
            "Total HTTP requests processed",
            ("method", "route", "status"),
            registry=self.registry,
        )

    def started(self, method: str):
        # The route is only known once routing has run, so in-flight is per method
        self.in_flight.labels(method).inc()

    def finished(self, method: str, route: str, status: int, duration: float):
        self.in_flight.labels(method).dec()
        self.duration.labels(method, route, str(status)).observe(duration)
        self.total.labels(method, route, str(status)).inc()

    def render(self) -> bytes:
        return generate_latest(self.registry)
