"""
eventrelay.dispatch - Assembling, queueing and delivering events

Components:
    - EventAssembler / ProcessedSet: Trigger firing -> QueuedEvents
    - EventQueue: Request-scoped FIFO
    - Relay / RequestScope: Facade, fire-and-forget flush on scope exit
    - Transports (eventrelay.dispatch.transport): HTTP and in-memory
"""

from eventrelay.dispatch.assembler import EventAssembler, ProcessedSet
from eventrelay.dispatch.queue import EventQueue
from eventrelay.dispatch.relay import Relay, RequestScope, current_scope, fire_trigger
from eventrelay.dispatch.transport import (
    BaseTransport,
    EventTransport,
    HttpTransport,
    InMemoryTransport,
)

__all__ = [
    "BaseTransport",
    "EventAssembler",
    "EventQueue",
    "EventTransport",
    "HttpTransport",
    "InMemoryTransport",
    "ProcessedSet",
    "Relay",
    "RequestScope",
    "current_scope",
    "fire_trigger",
]
