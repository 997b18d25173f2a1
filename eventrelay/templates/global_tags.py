"""
Global Tag Resolver.

Second substitution pass: placeholders of global option types (e.g.
``{user:email}`` inside an order trigger) that survived the type-local pass
are resolved against each global type's ambient context, i.e. its resolver
called without an identifier.
"""

from __future__ import annotations

from typing import Any, overload

from eventrelay.core.logger import get_logger
from eventrelay.core.types import Template
from eventrelay.options.registry import OptionTypeRegistry
from eventrelay.templates.engine import CompiledTemplate, compile_template

logger = get_logger(__name__)


class GlobalTagResolver:
    """
    Resolves remaining global placeholders.

    Ambient facts are resolved at most once per global type per resolver
    instance; the EventAssembler creates one resolver per firing so ambient
    data is never reused across firings.
    """

    def __init__(self, options: OptionTypeRegistry):
        self.options = options
        self._ambient: dict[str, dict[str, Any]] = {}

    def ambient_facts(self, type_id: str) -> dict[str, Any]:
        if type_id not in self._ambient:
            self._ambient[type_id] = self.options.resolve(type_id, None)
        return self._ambient[type_id]

    def resolve(self, compiled: CompiledTemplate) -> CompiledTemplate:
        for type_id in self.options.global_types():
            if not compiled.has_type(type_id):
                continue

            facts = self.ambient_facts(type_id)
            if not facts:
                logger.debug(f"Global type '{type_id}' has no ambient data")
                continue

            compiled = compiled.substitute({type_id: facts})

        return compiled


@overload
def resolve_global(template: Template, options: OptionTypeRegistry) -> Template: ...


@overload
def resolve_global(template: CompiledTemplate, options: OptionTypeRegistry) -> CompiledTemplate: ...


def resolve_global(template, options):
    """
    Run the global pass on a template (plain or compiled).

    Plain templates are compiled first, so values inserted by an earlier
    ``substitute`` call are treated as text again. The EventAssembler keeps
    the compiled form between passes to avoid that.
    """
    if isinstance(template, CompiledTemplate):
        return GlobalTagResolver(options).resolve(template)
    return GlobalTagResolver(options).resolve(compile_template(template)).render()
