from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.stockflow.core.config import settings


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = bool(settings.METRICS_ENABLED)
        self._registry = None
        self._http_requests_total = None
        self._http_request_duration_ms = None
        self._lock_wait_timeout_total = None
        self._transfer_operations_total = None
        self._transfer_conflict_retries_total = None
        self._stock_movements_posted_total = None
        if self.enabled:
            self._initialize_registry()

    def _initialize_registry(self) -> None:
        self._registry = CollectorRegistry()
        self._http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route/method/status.",
            ["route", "method", "status"],
            registry=self._registry,
        )
        self._http_request_duration_ms = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            ["route", "method", "status"],
            buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
            registry=self._registry,
        )
        self._lock_wait_timeout_total = Counter(
            "lock_wait_timeout_total",
            "Lock wait timeout occurrences.",
            registry=self._registry,
        )
        self._transfer_operations_total = Counter(
            "stock_transfer_operations_total",
            "Stock transfer operations by operation/result.",
            ["operation", "result"],
            registry=self._registry,
        )
        self._transfer_conflict_retries_total = Counter(
            "stock_transfer_conflict_retries_total",
            "Stock transfer units of work re-run after a concurrent update.",
            registry=self._registry,
        )
        self._stock_movements_posted_total = Counter(
            "stock_movements_posted_total",
            "Stock ledger movements posted by type.",
            ["movement_type"],
            registry=self._registry,
        )

    def reset(self) -> None:
        if not self.enabled:
            return
        self._initialize_registry()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = {"route": route, "method": method, "status": str(status_code)}
        self._http_requests_total.labels(**labels).inc()
        self._http_request_duration_ms.labels(**labels).observe(latency_ms)

    def increment_lock_wait_timeout(self) -> None:
        if not self.enabled:
            return
        self._lock_wait_timeout_total.inc()

    def record_transfer_operation(self, operation: str, result: str) -> None:
        if not self.enabled:
            return
        self._transfer_operations_total.labels(operation=operation, result=result).inc()

    def increment_transfer_conflict_retry(self) -> None:
        if not self.enabled:
            return
        self._transfer_conflict_retries_total.inc()

    def increment_stock_movement(self, movement_type: str, amount: int = 1) -> None:
        if not self.enabled or amount <= 0:
            return
        self._stock_movements_posted_total.labels(movement_type=movement_type).inc(amount)

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()
