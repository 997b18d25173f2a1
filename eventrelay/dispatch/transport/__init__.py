"""
Delivery transports.

Transports:
    - EventTransport: Transport protocol
    - BaseTransport: Shared flush / test-send behaviour
    - HttpTransport: POST to the analytics endpoint (httpx)
    - InMemoryTransport: For testing
"""

from eventrelay.dispatch.transport.base import BaseTransport, EventTransport
from eventrelay.dispatch.transport.http import HttpTransport, is_valid_endpoint
from eventrelay.dispatch.transport.memory import InMemoryTransport

__all__ = [
    "BaseTransport",
    "EventTransport",
    "HttpTransport",
    "InMemoryTransport",
    "is_valid_endpoint",
]
