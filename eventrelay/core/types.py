"""
Core data model for eventrelay.

Templates carry their property values as a tagged variant: a single
free-text ``ScalarValue`` or a list of ``KeyValue`` pairs (``PairValues``).
Every transformation of a template's text goes through
``EventValues.map_text`` so callers never branch on the runtime shape.

Quick Start:
    >>> from eventrelay.core.types import Template, PairValues, KeyValue
    >>>
    >>> template = Template(
    ...     name="Order #{order:id}",
    ...     values=PairValues((KeyValue("amount", "{order:total}"),)),
    ... )
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Union

from eventrelay.core.exceptions import TemplateError

# type_id -> field -> value
FactMap = dict[str, dict[str, Any]]


@dataclass(frozen=True)
class KeyValue:
    """A single event property mapping."""

    key: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class ScalarValue:
    """A single free-text event value."""

    text: str = ""

    def map_text(self, fn: Callable[[str], str]) -> ScalarValue:
        return ScalarValue(fn(self.text))

    def texts(self) -> list[str]:
        return [self.text]

    def prune_empty(self) -> ScalarValue:
        return self

    def to_payload(self) -> str:
        return self.text


@dataclass(frozen=True)
class PairValues:
    """Structured key/value event properties."""

    pairs: tuple[KeyValue, ...] = ()

    def map_text(self, fn: Callable[[str], str]) -> PairValues:
        return PairValues(tuple(KeyValue(p.key, fn(p.value)) for p in self.pairs))

    def texts(self) -> list[str]:
        return [p.value for p in self.pairs]

    def prune_empty(self) -> PairValues:
        """Drop pairs whose value is empty."""
        return PairValues(tuple(p for p in self.pairs if p.value != ""))

    def to_payload(self) -> list[dict[str, str]]:
        return [p.to_dict() for p in self.pairs]

    def as_dict(self) -> dict[str, str]:
        return {p.key: p.value for p in self.pairs}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> PairValues:
        return cls(tuple(KeyValue(str(k), _text(v)) for k, v in mapping.items()))


EventValues = Union[ScalarValue, PairValues]


def parse_values(raw: Any) -> EventValues:
    """
    Build an ``EventValues`` from any of the stored shapes.

    Accepted shapes:
        - ``None`` -> empty pairs
        - ``"text"`` -> ScalarValue
        - ``[{"key": k, "value": v}, ...]`` -> PairValues
        - ``{k: v, ...}`` -> PairValues

    Raises:
        TemplateError: If the shape is not recognised
    """
    if raw is None:
        return PairValues()
    if isinstance(raw, (ScalarValue, PairValues)):
        return raw
    if isinstance(raw, str):
        return ScalarValue(raw)
    if isinstance(raw, Mapping):
        return PairValues.from_mapping(raw)
    if isinstance(raw, Iterable):
        pairs = []
        for item in raw:
            if isinstance(item, KeyValue):
                pairs.append(item)
            elif isinstance(item, Mapping) and "key" in item:
                pairs.append(KeyValue(str(item["key"]), _text(item.get("value"))))
            else:
                msg = f"Invalid property mapping: {item!r}"
                raise TemplateError(msg)
        return PairValues(tuple(pairs))

    msg = f"Unsupported values shape: {type(raw).__name__}"
    raise TemplateError(msg)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class TemplateScope:
    """Identifies which configuration produced a template."""

    trigger_id: str
    object_id: str | None = None


@dataclass(frozen=True)
class Template:
    """
    A configured event, before or after substitution.

    Attributes:
        name: Event name, may contain placeholders
        values: Event properties (ScalarValue or PairValues)
        scope: Which configuration produced it (global when object_id is None)
    """

    name: str
    values: EventValues = field(default_factory=PairValues)
    scope: TemplateScope | None = None

    def map_text(self, fn: Callable[[str], str]) -> Template:
        """Apply ``fn`` to the name and every value string."""
        return Template(name=fn(self.name), values=self.values.map_text(fn), scope=self.scope)

    def texts(self) -> list[str]:
        return [self.name, *self.values.texts()]

    def with_scope(self, trigger_id: str, object_id: Any = None) -> Template:
        scope = TemplateScope(trigger_id, None if object_id is None else str(object_id))
        return Template(name=self.name, values=self.values, scope=scope)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "value": self.values.to_payload()}
        if self.scope is not None:
            data["trigger"] = self.scope.trigger_id
            data["object_id"] = self.scope.object_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Template:
        """
        Create a template from its stored form.

        ``value``, ``values`` and ``mappings`` are accepted as the properties
        key, in that order of preference.
        """
        if not isinstance(data, Mapping):
            msg = f"Template must be a mapping, got {type(data).__name__}"
            raise TemplateError(msg)

        raw_values = None
        for key in ("value", "values", "mappings"):
            if key in data:
                raw_values = data[key]
                break

        scope = None
        if data.get("trigger"):
            object_id = data.get("object_id")
            scope = TemplateScope(str(data["trigger"]), None if object_id is None else str(object_id))

        return cls(name=_text(data.get("name")), values=parse_values(raw_values), scope=scope)


@dataclass(frozen=True)
class OptionDescriptor:
    """Authoring metadata for one field of an option type."""

    key: str
    description: str = ""
    example: Any = None
    preview: Any = None

    def tag(self, type_id: str) -> str:
        return "{" + type_id + ":" + self.key + "}"


@dataclass
class QueuedEvent:
    """
    A fully substituted, delivery-ready event.

    Created by the EventAssembler, consumed exactly once by a transport.
    """

    name: str
    values: EventValues
    source_integration: str
    trigger_id: str
    trigger_name: str = ""
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_payload(self) -> dict[str, Any]:
        """JSON body sent to the analytics endpoint."""
        return {
            "event_id": self.event_id,
            "name": self.name,
            "values": self.values.to_payload(),
            "source": self.source_integration,
            "trigger": self.trigger_id,
            "timestamp": self.created_at.isoformat(),
        }


class DeliveryStatus(Enum):
    """Outcome of one delivery attempt."""

    SENT = "sent"
    """Endpoint answered 202"""

    FAILED = "failed"
    """Network error or any other status code"""

    SKIPPED = "skipped"
    """No network call was made (endpoint unset or invalid)"""


@dataclass(frozen=True)
class DeliveryResult:
    """Non-fatal record of what happened to one event."""

    event_id: str
    status: DeliveryStatus
    status_code: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is DeliveryStatus.SENT
