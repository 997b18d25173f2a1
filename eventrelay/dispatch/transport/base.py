"""
Delivery Transport Protocol - Interface for event delivery backends.

Transports deliver drained queues best-effort. ``flush`` never raises:
every event gets a DeliveryResult (sent, failed or skipped). Only the
diagnostic ``send_test`` path raises, so callers can surface the failure.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from eventrelay.core.exceptions import DeliveryError, RelayError
from eventrelay.core.logger import get_logger
from eventrelay.core.types import DeliveryResult, DeliveryStatus, QueuedEvent

if TYPE_CHECKING:  # pragma: no cover
    from eventrelay.monitoring.prometheus import PrometheusMetrics

logger = get_logger(__name__)


@runtime_checkable
class EventTransport(Protocol):
    """
    Protocol for delivery transports.

    Any object with these members can be handed to a Relay.
    """

    @property
    def is_ready(self) -> bool:
        """False when delivery is impossible (e.g. no endpoint configured)."""
        ...

    async def flush(self, events: Sequence[QueuedEvent]) -> list[DeliveryResult]:
        """
        Deliver events in order.

        Returns one result per event; never raises.
        """
        ...

    async def send_test(self, event: QueuedEvent) -> DeliveryResult:
        """
        Deliver one event and wait for the outcome.

        Raises:
            InvalidEndpointError: If the transport is not ready
            DeliveryError: If delivery failed
        """
        ...


class BaseTransport(ABC):
    """
    Abstract base class for transports.

    Subclasses implement ``is_ready`` and ``deliver``; ``session`` may be
    overridden to share a connection across one flush.
    """

    def __init__(self, metrics: PrometheusMetrics | None = None):
        self.metrics = metrics

    @property
    @abstractmethod
    def is_ready(self) -> bool: ...

    @abstractmethod
    async def deliver(self, event: QueuedEvent, session: Any, *, test: bool = False) -> DeliveryResult:
        """
        Deliver a single event.

        May raise; ``flush`` turns exceptions into failed results.
        """
        ...

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Any]:
        """Resources shared by the deliveries of one flush."""
        yield None

    def not_ready_error(self) -> DeliveryError:
        return DeliveryError(f"{type(self).__name__} is not ready")

    async def flush(self, events: Sequence[QueuedEvent]) -> list[DeliveryResult]:
        if not events:
            return []

        if not self.is_ready:
            logger.debug(f"Transport not ready, skipping {len(events)} events")
            results = [DeliveryResult(e.event_id, DeliveryStatus.SKIPPED) for e in events]
            for result in results:
                self._record(result, 0.0)
            return results

        results: list[DeliveryResult] = []
        try:
            async with self.session() as session:
                for event in events:
                    results.append(await self._deliver_one(event, session))
        except Exception as e:
            logger.exception(f"Transport session failed: {e}")
            for event in events[len(results):]:
                result = DeliveryResult(event.event_id, DeliveryStatus.FAILED, error=str(e))
                self._record(result, 0.0)
                results.append(result)

        return results

    async def _deliver_one(self, event: QueuedEvent, session: Any) -> DeliveryResult:
        start = time.perf_counter()
        error_type = None
        try:
            result = await self.deliver(event, session)
        except Exception as e:
            error_type = type(e).__name__
            result = DeliveryResult(event.event_id, DeliveryStatus.FAILED, error=str(e))

        duration = time.perf_counter() - start
        if not result.ok:
            logger.warning(
                f"Delivery of event '{event.name}' ({event.event_id}) failed: {result.error}",
                extra={
                    "event_id": event.event_id,
                    "event_name": event.name,
                    "status": result.status.value,
                    "status_code": result.status_code,
                    "duration_ms": round(duration * 1000, 1),
                    "error_type": error_type,
                },
            )

        self._record(result, duration)
        return result

    async def send_test(self, event: QueuedEvent) -> DeliveryResult:
        if not self.is_ready:
            raise self.not_ready_error()

        start = time.perf_counter()
        try:
            async with self.session() as session:
                result = await self.deliver(event, session, test=True)
        except RelayError:
            raise
        except Exception as e:
            msg = f"Test event failed: {e}"
            raise DeliveryError(msg) from e

        self._record(result, time.perf_counter() - start)
        if not result.ok:
            raise DeliveryError(result.error or "Test event failed", status_code=result.status_code)
        return result

    def _record(self, result: DeliveryResult, duration: float) -> None:
        if self.metrics is not None:
            self.metrics.delivery_recorded(result.status, duration)
