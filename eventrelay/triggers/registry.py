from dataclasses import replace

from eventrelay.core.exceptions import DuplicateTriggerError, RegistryFrozenError
from eventrelay.core.logger import get_logger
from eventrelay.core.types import Template
from eventrelay.options.registry import OptionTypeRegistry
from eventrelay.triggers.models import Trigger

logger = get_logger(__name__)


class TriggerRegistry:
    """
    Registry of triggers, built in two phases.

    Phase 1 collects triggers from every integration via ``register``.
    Phase 2, ``finalize``, bakes the global option types into every
    trigger's ``option_types`` and freezes both registries; records are
    immutable from then on.
    """

    def __init__(self) -> None:
        self._triggers: dict[str, Trigger] = {}
        self._finalized = False

    def register(self, trigger: Trigger) -> Trigger:
        """Register a trigger (phase 1)."""
        if self._finalized:
            msg = f"Cannot register trigger '{trigger.id}' after finalize()"
            raise RegistryFrozenError(msg)
        if trigger.id in self._triggers:
            raise DuplicateTriggerError(trigger.id)

        self._triggers[trigger.id] = trigger
        logger.debug(f"Registered trigger '{trigger.id}' ({trigger.integration or 'no integration'})")
        return trigger

    def finalize(self, options: OptionTypeRegistry) -> None:
        """
        Bake global option types into every trigger and freeze (phase 2).

        Calling finalize twice is a no-op.
        """
        if self._finalized:
            return

        global_types = options.global_types()

        for trigger_id, trigger in self._triggers.items():
            merged = list(trigger.option_types)
            merged.extend(t for t in global_types if t not in merged)
            self._triggers[trigger_id] = replace(trigger, option_types=tuple(merged))

            missing = [t for t in trigger.option_types if t not in options]
            if missing:
                logger.warning(
                    f"Trigger '{trigger_id}' is degraded: option types not registered: "
                    f"{', '.join(missing)}"
                )

        options.freeze()
        self._finalized = True
        logger.info(
            f"Trigger registry finalized: {len(self._triggers)} triggers, "
            f"global types: {', '.join(global_types) or 'none'}"
        )

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    def get(self, trigger_id: str) -> Trigger | None:
        return self._triggers.get(trigger_id)

    def __contains__(self, trigger_id: object) -> bool:
        return trigger_id in self._triggers

    def __len__(self) -> int:
        return len(self._triggers)

    def all(self) -> list[Trigger]:
        return list(self._triggers.values())

    def list_by_option_type(self, type_id: str) -> list[Trigger]:
        """Triggers whose option types include ``type_id``."""
        return [t for t in self._triggers.values() if t.uses(type_id)]

    def default_template(self, trigger_id: str) -> Template | None:
        trigger = self._triggers.get(trigger_id)
        if trigger is None or trigger.default_template is None:
            return None
        return trigger.default_template.with_scope(trigger_id)

    def clear(self) -> None:
        """Clear the registry (useful for tests)."""
        self._triggers.clear()
        self._finalized = False
