"""
Core building blocks shared by every eventrelay component.
"""

from eventrelay.core.config import RelayConfig, configure, get_config
from eventrelay.core.exceptions import (
    DeliveryError,
    DuplicateOptionTypeError,
    DuplicateTriggerError,
    InvalidEndpointError,
    RegistryError,
    RegistryFrozenError,
    RelayError,
    TemplateError,
)
from eventrelay.core.logger import configure_default_logging, disable_logging, get_logger, set_logger
from eventrelay.core.types import (
    DeliveryResult,
    DeliveryStatus,
    EventValues,
    FactMap,
    KeyValue,
    OptionDescriptor,
    PairValues,
    QueuedEvent,
    ScalarValue,
    Template,
    TemplateScope,
    parse_values,
)

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
    "parse_values",
    # Config
    "RelayConfig",
    "configure",
    "get_config",
    # Logging
    "configure_default_logging",
    "disable_logging",
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
