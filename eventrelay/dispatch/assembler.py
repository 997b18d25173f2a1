"""
Event Assembler.

Turns one trigger firing into delivery-ready events:

1. Resolve the fact maps of the trigger's option types that were given an
   identifier, then merge caller overrides on top
2. Fetch the configured templates (per-object first, then global)
3. Substitute type-local placeholders, then global ones
4. Discard templates whose name resolved empty
5. Emit one QueuedEvent per surviving template

``assemble`` never raises: the fire path runs inside host requests.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from eventrelay.core.logger import get_logger
from eventrelay.core.types import FactMap, QueuedEvent, Template
from eventrelay.options.registry import OptionTypeRegistry, flatten_facts
from eventrelay.templates.engine import compile_template
from eventrelay.templates.global_tags import GlobalTagResolver
from eventrelay.templates.store import TemplateStore
from eventrelay.triggers.models import Trigger
from eventrelay.triggers.registry import TriggerRegistry

if TYPE_CHECKING:  # pragma: no cover
    from eventrelay.monitoring.prometheus import PrometheusMetrics

logger = get_logger(__name__)


class ProcessedSet:
    """
    Request-scoped record of ``(trigger_id, object_id)`` pairs already fired.

    Host hooks that run several times for the same object in one request
    (e.g. a save hook firing twice) check here before firing again.
    """

    def __init__(self) -> None:
        self._keys: set[tuple[str, str]] = set()

    def check_and_add(self, trigger_id: str, object_id: Any) -> bool:
        """Add the pair. Returns False if it was already present."""
        key = (trigger_id, str(object_id))
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return (key[0], str(key[1])) in self._keys

    def __len__(self) -> int:
        return len(self._keys)

    def clear(self) -> None:
        self._keys.clear()


class EventAssembler:
    """
    Builds QueuedEvents for a trigger firing.

    Example:
        >>> assembler = EventAssembler(triggers, options, store)
        >>> events = assembler.assemble("order_placed", {"order": 42})
    """

    def __init__(
        self,
        triggers: TriggerRegistry,
        options: OptionTypeRegistry,
        store: TemplateStore,
        metrics: PrometheusMetrics | None = None,
    ):
        self.triggers = triggers
        self.options = options
        self.store = store
        self.metrics = metrics

    def assemble(
        self,
        trigger_id: str,
        identifiers: Mapping[str, Any] | None = None,
        overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> list[QueuedEvent]:
        trigger = self.triggers.get(trigger_id)
        if trigger is None:
            logger.warning(f"Unknown trigger '{trigger_id}', nothing to fire")
            return []

        if identifiers is not None and not isinstance(identifiers, Mapping):
            logger.warning(
                f"Identifiers for trigger '{trigger_id}' must be a mapping of type ids, "
                f"got {type(identifiers).__name__}"
            )
            return []

        try:
            identifiers = dict(identifiers or {})
            facts = self.build_facts(trigger, identifiers, overrides)
            object_id = self.single_object_id(trigger, identifiers)
            templates = self.store.get_configured_templates(trigger, object_id)
        except Exception as e:
            logger.exception(f"Failed to prepare trigger '{trigger_id}': {e}")
            return []

        if not templates:
            logger.debug(f"No templates configured for trigger '{trigger_id}'")
            return []

        resolver = GlobalTagResolver(self.options)
        events = []

        for template in templates:
            try:
                event = self._assemble_one(trigger, template, facts, resolver)
            except Exception as e:
                logger.exception(f"Failed to assemble template '{template.name}' of '{trigger_id}': {e}")
                continue

            if event is not None:
                events.append(event)

        return events

    def build_facts(
        self,
        trigger: Trigger,
        identifiers: Mapping[str, Any],
        overrides: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> FactMap:
        """
        Resolve the trigger's option types that were given an identifier.

        Overrides are merged field by field over the resolved data; an
        override for a type with no resolved data creates that type's map.
        """
        facts: FactMap = {}

        for type_id in trigger.option_types:
            if type_id not in identifiers:
                continue
            data = self.options.resolve(type_id, identifiers[type_id])
            if data:
                facts[type_id] = data

        for type_id, fields in (overrides or {}).items():
            if not isinstance(fields, Mapping):
                logger.warning(f"Ignoring override for '{type_id}': expected a mapping")
                continue
            facts.setdefault(type_id, {}).update(flatten_facts(fields))

        return facts

    def single_object_id(self, trigger: Trigger, identifiers: Mapping[str, Any]) -> Any:
        """
        The object whose per-object template applies, if any.

        This is the first identifier whose type belongs to the trigger, and
        only when the trigger supports single configuration.
        """
        if not trigger.supports_single:
            return None
        for type_id, identifier in identifiers.items():
            if trigger.uses(type_id) and identifier is not None:
                return identifier
        return None

    def _assemble_one(
        self,
        trigger: Trigger,
        template: Template,
        facts: FactMap,
        resolver: GlobalTagResolver,
    ) -> QueuedEvent | None:
        compiled = compile_template(template).substitute(facts)
        compiled = resolver.resolve(compiled)

        if compiled.name_is_blank():
            logger.debug(f"Discarding template of '{trigger.id}': name resolved empty")
            if self.metrics is not None:
                self.metrics.event_discarded(trigger.id)
            return None

        resolved = compiled.render()
        return QueuedEvent(
            name=resolved.name,
            values=resolved.values.prune_empty(),
            source_integration=trigger.integration,
            trigger_id=trigger.id,
            trigger_name=trigger.label,
        )
