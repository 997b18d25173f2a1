"""
Prometheus metrics for eventrelay.

Quick Start:
    >>> from eventrelay.monitoring.prometheus import PrometheusMetrics, start_metrics_server
    >>>
    >>> start_metrics_server(port=8000)
    >>> relay = Relay(triggers, options, store, transport, metrics=PrometheusMetrics())

Tests pass their own ``CollectorRegistry`` so metric names never collide
with the process-wide default registry.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, start_http_server

from eventrelay.core.logger import get_logger
from eventrelay.core.types import DeliveryStatus

logger = get_logger(__name__)


class PrometheusMetrics:
    """
    Prometheus metrics collector for event relaying.

    Exposes the following metrics:
        - eventrelay_events_queued_total: Events queued, by trigger
        - eventrelay_events_discarded_total: Templates discarded because
          their name resolved empty, by trigger
        - eventrelay_deliveries_total: Delivery outcomes, by status
        - eventrelay_delivery_duration_seconds: Histogram of send durations
    """

    def __init__(self, prefix: str = "eventrelay", registry: CollectorRegistry | None = None):
        """
        Initialize Prometheus metrics.

        Args:
            prefix: Metric name prefix (default: "eventrelay")
            registry: Collector registry (default: the global registry)
        """
        self._prefix = prefix
        self.registry = registry if registry is not None else REGISTRY

        self._queued_total = Counter(
            f"{prefix}_events_queued_total",
            "Total events queued for delivery",
            ["trigger"],
            registry=self.registry,
        )

        self._discarded_total = Counter(
            f"{prefix}_events_discarded_total",
            "Total templates discarded because their name resolved empty",
            ["trigger"],
            registry=self.registry,
        )

        self._deliveries_total = Counter(
            f"{prefix}_deliveries_total",
            "Total delivery attempts by outcome",
            ["status"],
            registry=self.registry,
        )

        self._delivery_duration = Histogram(
            f"{prefix}_delivery_duration_seconds",
            "Event delivery duration in seconds",
            buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0],
            registry=self.registry,
        )

    def event_queued(self, trigger_id: str) -> None:
        self._queued_total.labels(trigger=trigger_id).inc()

    def event_discarded(self, trigger_id: str) -> None:
        self._discarded_total.labels(trigger=trigger_id).inc()

    def delivery_recorded(self, status: DeliveryStatus, duration: float) -> None:
        """
        Record one delivery outcome.

        Skipped deliveries made no network call, so only their count is kept.
        """
        self._deliveries_total.labels(status=status.value).inc()
        if status is not DeliveryStatus.SKIPPED:
            self._delivery_duration.observe(duration)


def start_metrics_server(port: int = 8000, addr: str = "0.0.0.0") -> None:
    """
    Start a Prometheus HTTP metrics server.

    Args:
        port: Port to listen on (default: 8000)
        addr: Address to bind to (default: 0.0.0.0 for all interfaces)
    """
    start_http_server(port, addr=addr)
    logger.info(f"Prometheus metrics server started on {addr}:{port}")
