"""
Option Provider Registry.

Maps a type id (``order``, ``user``, ``product``) to a resolver that turns a
type-specific identifier into a flat field map, plus the declared fields used
by authoring tools. Resolution never raises: unknown types, missing objects
and failing resolvers all yield an empty map.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from eventrelay.core.exceptions import DuplicateOptionTypeError, RegistryFrozenError
from eventrelay.core.logger import get_logger
from eventrelay.core.types import OptionDescriptor

logger = get_logger(__name__)

Resolver = Callable[[Any], Mapping[str, Any] | None]
DeclaredOptions = Callable[[], list[OptionDescriptor]]


def flatten_facts(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """
    Flatten nested mappings into dotted keys.

    ``{"billing": {"email": "a@b.com"}}`` becomes ``{"billing.email": "a@b.com"}``.
    Lists and other values are kept as-is under their own key.
    """
    flat: dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_facts(value, path))
        else:
            flat[path] = value
    return flat


@dataclass(frozen=True)
class OptionType:
    """
    A category of resolvable facts.

    Attributes:
        type_id: Identifier used in placeholders ({type_id:field})
        resolver: identifier (or None for ambient context) -> field map
        declared: Returns the authoring descriptors for this type
        is_global: Available to every trigger, resolved in the second pass
        name: Display label
    """

    type_id: str
    resolver: Resolver
    declared: DeclaredOptions = field(default=list)
    is_global: bool = False
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or self.type_id.replace("_", " ").title()


@dataclass(frozen=True)
class OptionGroup:
    """Declared options of one type, with previews filled where available."""

    type_id: str
    name: str
    options: list[OptionDescriptor]

    def tags(self) -> list[str]:
        return [option.tag(self.type_id) for option in self.options]


class OptionTypeRegistry:
    """
    Registry of option types.

    Write-once at startup, read-many afterwards. ``freeze()`` is called by
    ``TriggerRegistry.finalize`` so no registration can happen once events
    start firing.

    Example:
        >>> options = OptionTypeRegistry()
        >>> options.register("order", load_order_vars, order_descriptors)
        >>> options.register("user", load_user_vars, is_global=True)
        >>> options.resolve("order", 42)
        {'id': 42, 'total': '19.99'}
    """

    def __init__(self) -> None:
        self._types: dict[str, OptionType] = {}
        self._marked_global: set[str] = set()
        self._frozen = False

    def register(
        self,
        type_id: str | OptionType,
        resolver: Resolver | None = None,
        declared: DeclaredOptions | None = None,
        *,
        is_global: bool = False,
        name: str = "",
    ) -> OptionType:
        """
        Register an option type.

        Accepts either a ready ``OptionType`` or its parts.

        Raises:
            DuplicateOptionTypeError: If the type id is already registered
            RegistryFrozenError: If the registry was frozen
        """
        if self._frozen:
            msg = "Option types cannot be registered after finalize()"
            raise RegistryFrozenError(msg)

        if isinstance(type_id, OptionType):
            option_type = type_id
        else:
            if resolver is None:
                msg = f"Option type '{type_id}' needs a resolver"
                raise ValueError(msg)
            option_type = OptionType(
                type_id=type_id,
                resolver=resolver,
                declared=declared or list,
                is_global=is_global,
                name=name,
            )

        if option_type.type_id in self._types:
            raise DuplicateOptionTypeError(option_type.type_id)

        self._types[option_type.type_id] = option_type
        logger.debug(
            f"Registered option type '{option_type.type_id}'"
            + (" (global)" if self.is_global(option_type.type_id) else "")
        )
        return option_type

    def mark_global(self, type_id: str) -> None:
        """
        Make a type global whoever registers it, before or after this call.

        Raises:
            RegistryFrozenError: If the registry was frozen
        """
        if self._frozen:
            msg = "Option types cannot be marked global after finalize()"
            raise RegistryFrozenError(msg)
        self._marked_global.add(type_id)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def get(self, type_id: str) -> OptionType | None:
        return self._types.get(type_id)

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def type_ids(self) -> list[str]:
        return list(self._types)

    def global_types(self) -> list[str]:
        """Global type ids, in registration order."""
        return [type_id for type_id in self._types if self.is_global(type_id)]

    def is_global(self, type_id: str) -> bool:
        option_type = self._types.get(type_id)
        if option_type is None:
            return False
        return option_type.is_global or type_id in self._marked_global

    def resolve(self, type_id: str, identifier: Any = None) -> dict[str, Any]:
        """
        Resolve the fact map for one type.

        Returns an empty dict when the type is unknown, the resolver returns
        nothing usable, or the resolver raises.
        """
        option_type = self._types.get(type_id)
        if option_type is None:
            logger.debug(f"No option type registered for '{type_id}'")
            return {}

        try:
            data = option_type.resolver(identifier)
        except Exception as e:
            logger.warning(
                f"Resolver for option type '{type_id}' failed for {identifier!r}: {e}",
                exc_info=True,
            )
            return {}

        if not data:
            return {}
        if not isinstance(data, Mapping):
            logger.warning(
                f"Resolver for option type '{type_id}' returned {type(data).__name__}, expected a mapping"
            )
            return {}

        return flatten_facts(data)

    def declared(self, type_id: str) -> list[OptionDescriptor]:
        """Authoring descriptors for a type (empty if unknown or failing)."""
        option_type = self._types.get(type_id)
        if option_type is None:
            return []
        try:
            return list(option_type.declared())
        except Exception as e:
            logger.warning(f"Declared options for '{type_id}' failed: {e}")
            return []

    def describe(self, type_id: str, identifier: Any = None) -> OptionGroup:
        """
        Declared options with previews filled from live data.

        When an identifier is given, each descriptor's ``preview`` is set from
        the resolved value (if present and non-empty), otherwise from its
        example.
        """
        option_type = self._types.get(type_id)
        label = option_type.label if option_type else type_id
        descriptors = self.declared(type_id)

        values = self.resolve(type_id, identifier) if identifier is not None else {}

        filled = []
        for descriptor in descriptors:
            live = values.get(descriptor.key)
            preview = live if live not in (None, "") else descriptor.example
            filled.append(replace(descriptor, preview=preview))

        return OptionGroup(type_id=type_id, name=label, options=filled)

    def clear(self) -> None:
        """Clear the registry (useful for tests)."""
        self._types.clear()
        self._marked_global.clear()
        self._frozen = False
