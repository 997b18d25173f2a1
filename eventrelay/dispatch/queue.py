from __future__ import annotations

from eventrelay.core.types import QueuedEvent


class EventQueue:
    """
    Request-scoped FIFO of events waiting for delivery.

    No persistence and no cross-request visibility: each request scope owns
    one queue, drained once when the scope closes.
    """

    def __init__(self) -> None:
        self._events: list[QueuedEvent] = []

    def push(self, event: QueuedEvent) -> None:
        self._events.append(event)

    def drain_all(self) -> list[QueuedEvent]:
        """Return every queued event in push order and empty the queue."""
        events, self._events = self._events, []
        return events

    def peek(self) -> list[QueuedEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def __bool__(self) -> bool:
        return bool(self._events)
