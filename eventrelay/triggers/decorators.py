from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from eventrelay.core.types import OptionDescriptor

# Type for decorated function
F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class OptionProviderMetadata:
    """Metadata for an option provider method."""
    type_id: str
    name: str = ""
    options: list[OptionDescriptor] = field(default_factory=list)


def _descriptor(item: Any) -> OptionDescriptor:
    if isinstance(item, OptionDescriptor):
        return item
    if isinstance(item, str):
        return OptionDescriptor(key=item)
    if isinstance(item, Mapping):
        return OptionDescriptor(
            key=str(item["key"]),
            description=item.get("description", ""),
            example=item.get("example"),
        )
    key, *rest = item
    return OptionDescriptor(key, *rest)


def option_provider(
    type_id: str,
    *,
    name: str = "",
    options: Iterable[Any] | None = None,
):
    """
    Decorator to mark an Integration method as the resolver of an option type.

    The decorated method receives the type-specific identifier (or None for
    the ambient context of a global type) and returns a field map.

    Args:
        type_id: Placeholder type handled by this method (e.g. "order")
        name: Display label for authoring tools
        options: Declared fields, as OptionDescriptor, mapping, key string or
            (key, description, example) tuples

    Example:
        @option_provider("order", options=[("total", "Order total", "19.99")])
        def order_vars(self, order_id):
            order = Order.get(order_id)
            return {"id": order.id, "total": str(order.total)} if order else {}
    """
    def decorator(func: F) -> F:
        func._option_metadata = OptionProviderMetadata(
            type_id=type_id,
            name=name,
            options=[_descriptor(item) for item in options or ()],
        )
        return func
    return decorator
