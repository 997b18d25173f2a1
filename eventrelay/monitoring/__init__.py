"""
Monitoring and observability utilities

Quick Start:
    >>> from eventrelay.monitoring import setup_relay_logging

    # Set up structured logging
    >>> logger = setup_relay_logging(json_format=True)

    # Enable Prometheus metrics
    >>> from eventrelay.monitoring import PrometheusMetrics, start_metrics_server
    >>> start_metrics_server(port=8000)
    >>> metrics = PrometheusMetrics()
"""

from .logging import (
    RelayContextFilter,
    RelayJsonFormatter,
    clear_relay_context,
    relay_context,
    set_relay_context,
    setup_relay_logging,
)
from .prometheus import PrometheusMetrics, start_metrics_server

__all__ = [
    "PrometheusMetrics",
    "RelayContextFilter",
    "RelayJsonFormatter",
    "clear_relay_context",
    "relay_context",
    "set_relay_context",
    "setup_relay_logging",
    "start_metrics_server",
]
