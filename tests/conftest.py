"""
Pytest configuration and shared fixtures for eventrelay tests

The fixtures model a small shop: an ``order`` option type resolved by id,
a global ``user`` type resolved from the "current user" ambient context,
and an ``order_placed`` trigger configured through an in-memory store.
"""

import pytest

from eventrelay.core import config as config_module
from eventrelay.core.config import RelayConfig
from eventrelay.core.logger import set_logger
from eventrelay.core.types import KeyValue, PairValues, Template
from eventrelay.dispatch.relay import Relay
from eventrelay.dispatch.transport import InMemoryTransport
from eventrelay.options.registry import OptionTypeRegistry
from eventrelay.templates.store import InMemoryTemplateStore
from eventrelay.triggers.models import Trigger
from eventrelay.triggers.registry import TriggerRegistry

ORDERS = {
    42: {
        "id": 42,
        "total": "19.99",
        "status": "completed",
        "billing": {"email": "jane@example.com", "city": "Anytown"},
        "items": ["sku-1", "sku-2"],
        "note": None,
    },
}

CURRENT_USER = {"email": "a@b.com", "display_name": "Admin"}


# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture(autouse=True)
def reset_globals():
    """Reset the global configuration and custom logger after each test."""
    yield
    config_module._global_config = None
    set_logger(None)


# ============================================
# REGISTRIES
# ============================================


@pytest.fixture
def options():
    registry = OptionTypeRegistry()
    registry.register("order", lambda order_id: ORDERS.get(order_id))
    registry.register("user", lambda _identifier: dict(CURRENT_USER), is_global=True)
    return registry


@pytest.fixture
def order_trigger():
    return Trigger(
        id="order_placed",
        name="Order Placed",
        integration="Shop",
        option_types=("order",),
        supports_single=True,
    )


@pytest.fixture
def triggers(options, order_trigger):
    registry = TriggerRegistry()
    registry.register(order_trigger)
    registry.finalize(options)
    return registry


@pytest.fixture
def order_template():
    return Template(
        name="Order #{order:id}",
        values=PairValues((KeyValue("amount", "{order:total}"),)),
    )


@pytest.fixture
def store(order_template):
    templates = InMemoryTemplateStore()
    templates.add_global("order_placed", order_template)
    return templates


# ============================================
# DISPATCH
# ============================================


@pytest.fixture
def transport():
    return InMemoryTransport()


@pytest.fixture
def relay(triggers, options, store, transport):
    return Relay(triggers, options, store, transport, config=RelayConfig())
