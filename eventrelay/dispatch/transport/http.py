"""
HTTP Transport - Delivers events to the analytics endpoint with httpx.

Each event is one POST of a JSON body. Status 202 is the only success. The
response is opened in streaming mode and closed without reading the body,
so a slow or large response never holds up the flush.

Usage:
    >>> config = RelayConfig(endpoint="https://analytics.example.com/events")
    >>> transport = HttpTransport(config)
    >>> results = await transport.flush(events)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx

from eventrelay.core.config import RelayConfig
from eventrelay.core.exceptions import InvalidEndpointError
from eventrelay.core.logger import get_logger
from eventrelay.core.types import DeliveryResult, DeliveryStatus, QueuedEvent
from eventrelay.dispatch.transport.base import BaseTransport

if TYPE_CHECKING:  # pragma: no cover
    from eventrelay.monitoring.prometheus import PrometheusMetrics

logger = get_logger(__name__)

SUCCESS_STATUS = 202


def is_valid_endpoint(endpoint: str | None) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not endpoint:
        return False
    try:
        url = httpx.URL(endpoint)
    except (httpx.InvalidURL, TypeError, ValueError):
        return False
    return url.scheme in ("http", "https") and bool(url.host)


class HttpTransport(BaseTransport):
    """
    Posts events as JSON to ``config.endpoint``.

    Args:
        config: Endpoint, timeouts and headers
        client: Optional shared ``httpx.AsyncClient``. When omitted a client
            is created for each flush, so flushes running on different event
            loops never share connections.
        metrics: Optional Prometheus metrics
    """

    def __init__(
        self,
        config: RelayConfig,
        client: httpx.AsyncClient | None = None,
        metrics: PrometheusMetrics | None = None,
    ):
        super().__init__(metrics)
        self.config = config
        self._client = client

    @property
    def is_ready(self) -> bool:
        return is_valid_endpoint(self.config.endpoint)

    def not_ready_error(self) -> InvalidEndpointError:
        return InvalidEndpointError(self.config.endpoint)

    def headers_for(self, event: QueuedEvent) -> dict[str, str]:
        return {
            **self.config.extra_headers,
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
            self.config.source_header: event.source_integration,
            self.config.trigger_header: event.trigger_id,
        }

    @asynccontextmanager
    async def session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return

        async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
            yield client

    async def deliver(
        self, event: QueuedEvent, session: httpx.AsyncClient, *, test: bool = False
    ) -> DeliveryResult:
        timeout = self.config.test_timeout_seconds if test else self.config.timeout_seconds

        try:
            async with session.stream(
                "POST",
                self.config.endpoint,
                json=event.to_payload(),
                headers=self.headers_for(event),
                timeout=timeout,
            ) as response:
                status_code = response.status_code
        except httpx.TimeoutException:
            return DeliveryResult(
                event.event_id,
                DeliveryStatus.FAILED,
                error=f"Timed out after {timeout}s",
            )
        except httpx.HTTPError as e:
            return DeliveryResult(event.event_id, DeliveryStatus.FAILED, error=str(e) or type(e).__name__)

        if status_code != SUCCESS_STATUS:
            return DeliveryResult(
                event.event_id,
                DeliveryStatus.FAILED,
                status_code=status_code,
                error=f"Unexpected response status {status_code}",
            )

        logger.debug(f"Delivered event '{event.name}' ({event.event_id})")
        return DeliveryResult(event.event_id, DeliveryStatus.SENT, status_code=status_code)
