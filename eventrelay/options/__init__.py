"""
eventrelay.options - Option Provider Registry

Option types turn an identifier into the facts that placeholders such as
``{order:total}`` resolve against.

Example:
    options = OptionTypeRegistry()
    options.register("order", lambda order_id: orders.vars_for(order_id))
    options.resolve("order", 42)
"""

from eventrelay.options.registry import (
    OptionGroup,
    OptionType,
    OptionTypeRegistry,
    flatten_facts,
)

__all__ = [
    "OptionGroup",
    "OptionType",
    "OptionTypeRegistry",
    "flatten_facts",
]
