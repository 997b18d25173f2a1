"""
In-Memory Transport - For testing and development.
"""

from __future__ import annotations

from typing import Any

from eventrelay.core.types import DeliveryResult, DeliveryStatus, QueuedEvent
from eventrelay.dispatch.transport.base import BaseTransport


class InMemoryTransport(BaseTransport):
    """
    Records delivered events instead of sending them.

    Usage:
        >>> transport = InMemoryTransport()
        >>> await transport.flush(events)
        >>> assert transport.events[0].name == "Order 42"

    Args:
        ready: Simulates a configured (True) or missing (False) endpoint
        status_code: Simulated response status; anything but 202 fails
    """

    def __init__(self, ready: bool = True, status_code: int = 202, metrics: Any = None):
        super().__init__(metrics)
        self.ready = ready
        self.status_code = status_code
        self.events: list[QueuedEvent] = []

    @property
    def is_ready(self) -> bool:
        return self.ready

    async def deliver(self, event: QueuedEvent, session: Any, *, test: bool = False) -> DeliveryResult:
        if self.status_code != 202:
            return DeliveryResult(
                event.event_id,
                DeliveryStatus.FAILED,
                status_code=self.status_code,
                error=f"Unexpected response status {self.status_code}",
            )
        self.events.append(event)
        return DeliveryResult(event.event_id, DeliveryStatus.SENT, status_code=self.status_code)

    def names(self) -> list[str]:
        """Names of delivered events (for testing)."""
        return [event.name for event in self.events]

    def clear(self) -> None:
        self.events.clear()
