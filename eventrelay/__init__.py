"""
eventrelay - Relay domain events to an analytics endpoint

Tracks events occurring inside a host application ("order placed",
"course completed"), resolves the configured event templates against live
data and delivers them, without blocking the host request, over HTTP.

Setup:
    >>> from eventrelay import (
    ...     InMemoryTemplateStore, Integration, OptionTypeRegistry,
    ...     Relay, RelayConfig, Template, Trigger, TriggerRegistry, option_provider,
    ... )
    >>>
    >>> class ShopIntegration(Integration):
    ...     slug = "shop"
    ...     name = "Shop"
    ...
    ...     def setup_triggers(self):
    ...         return [Trigger(id="order_placed", name="Order Placed", option_types=("order",))]
    ...
    ...     @option_provider("order", options=[("total", "Order total", "19.99")])
    ...     def order_vars(self, order_id):
    ...         return orders.get(order_id)
    >>>
    >>> options, triggers = OptionTypeRegistry(), TriggerRegistry()
    >>> ShopIntegration().register(options, triggers)
    >>> triggers.finalize(options)
    >>>
    >>> store = InMemoryTemplateStore()
    >>> store.add_global("order_placed", Template.from_dict({
    ...     "name": "Order {order:id}",
    ...     "value": {"total": "{order:total}"},
    ... }))
    >>>
    >>> relay = Relay(triggers, options, store, config=RelayConfig.from_env())

Per request:
    >>> with relay.request_scope() as scope:
    ...     scope.fire("order_placed", {"order": 42})
"""

from eventrelay.core import (
    DeliveryError,
    DeliveryResult,
    DeliveryStatus,
    DuplicateOptionTypeError,
    DuplicateTriggerError,
    EventValues,
    FactMap,
    InvalidEndpointError,
    KeyValue,
    OptionDescriptor,
    PairValues,
    QueuedEvent,
    RegistryError,
    RegistryFrozenError,
    RelayConfig,
    RelayError,
    ScalarValue,
    Template,
    TemplateError,
    TemplateScope,
    configure,
    configure_default_logging,
    disable_logging,
    get_config,
    get_logger,
    set_logger,
)
from eventrelay.dispatch import (
    BaseTransport,
    EventAssembler,
    EventQueue,
    EventTransport,
    HttpTransport,
    InMemoryTransport,
    ProcessedSet,
    Relay,
    RequestScope,
    current_scope,
    fire_trigger,
)
from eventrelay.options import OptionGroup, OptionType, OptionTypeRegistry
from eventrelay.templates import (
    InMemoryTemplateStore,
    PreviewRenderer,
    TemplateStore,
    YamlTemplateStore,
    resolve_global,
    substitute,
)
from eventrelay.triggers import Integration, Trigger, TriggerRegistry, option_provider

__version__ = "1.0.0"

__all__ = [
    # Types
    "DeliveryResult",
    "DeliveryStatus",
    "EventValues",
    "FactMap",
    "KeyValue",
    "OptionDescriptor",
    "PairValues",
    "QueuedEvent",
    "ScalarValue",
    "Template",
    "TemplateScope",
    # Registries
    "Integration",
    "OptionGroup",
    "OptionType",
    "OptionTypeRegistry",
    "Trigger",
    "TriggerRegistry",
    "option_provider",
    # Templates
    "InMemoryTemplateStore",
    "PreviewRenderer",
    "TemplateStore",
    "YamlTemplateStore",
    "resolve_global",
    "substitute",
    # Dispatch
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
    # Config & logging
    "RelayConfig",
    "configure",
    "configure_default_logging",
    "disable_logging",
    "get_config",
    "get_logger",
    "set_logger",
    # Exceptions
    "DeliveryError",
    "DuplicateOptionTypeError",
    "DuplicateTriggerError",
    "InvalidEndpointError",
    "RegistryError",
    "RegistryFrozenError",
    "RelayError",
    "TemplateError",
]
