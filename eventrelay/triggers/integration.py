"""
Base class for event sources.

An integration groups the triggers of one host feature (a shop, a course
platform, user accounts) with the option providers that resolve their data.
The listeners that decide *when* to fire live in the host application; they
call ``RequestScope.fire`` or ``eventrelay.fire_trigger``.

Example:
    class ShopIntegration(Integration):
        slug = "shop"
        name = "Shop"

        def setup_triggers(self):
            return [
                Trigger(
                    id="order_placed",
                    name="Order Placed",
                    option_types=("order",),
                    default_template=Template(
                        name="Order Placed",
                        values=PairValues.from_mapping({"total": "{order:total}"}),
                    ),
                ),
            ]

        @option_provider("order", options=[("total", "Order total", "19.99")])
        def order_vars(self, order_id):
            ...

    ShopIntegration().register(options, triggers)
"""

from dataclasses import replace
from typing import Any

from eventrelay.core.logger import get_logger
from eventrelay.options.registry import OptionTypeRegistry
from eventrelay.triggers.decorators import OptionProviderMetadata
from eventrelay.triggers.models import Trigger
from eventrelay.triggers.registry import TriggerRegistry

logger = get_logger(__name__)


class Integration:
    """
    Declares triggers and option providers for one event source.

    Attributes:
        slug: Machine name of the integration
        name: Display name, sent as the event source
        global_option_types: Option types this integration provides to every
            trigger of every integration (e.g. "user")
    """

    slug: str = ""
    name: str = ""
    global_option_types: tuple[str, ...] = ()

    def setup_triggers(self) -> list[Trigger]:
        """Return the triggers this integration can fire."""
        return []

    def option_providers(self) -> list[tuple[OptionProviderMetadata, Any]]:
        """Collect methods decorated with @option_provider, in definition order."""
        providers = []
        seen = set()
        for klass in type(self).__mro__:
            for attr_name, attr in vars(klass).items():
                if attr_name in seen:
                    continue
                seen.add(attr_name)
                metadata = getattr(attr, "_option_metadata", None)
                if metadata is None:
                    continue
                providers.append((metadata, getattr(self, attr_name)))
        return providers

    @property
    def source_name(self) -> str:
        return self.name or self.slug or type(self).__name__

    def register(self, options: OptionTypeRegistry, triggers: TriggerRegistry) -> None:
        """
        Register this integration's option types and triggers.

        An option type already provided by another integration is kept as
        registered first. Types listed in ``global_option_types`` become
        global either way.
        """
        for type_id in self.global_option_types:
            options.mark_global(type_id)

        for metadata, method in self.option_providers():
            if metadata.type_id in options:
                logger.debug(
                    f"Option type '{metadata.type_id}' already registered, "
                    f"skipping provider from '{self.source_name}'"
                )
                continue

            declared = list(metadata.options)
            options.register(
                metadata.type_id,
                method,
                lambda declared=declared: declared,
                is_global=metadata.type_id in self.global_option_types,
                name=metadata.name,
            )

        for trigger in self.setup_triggers():
            triggers.register(replace(trigger, integration=trigger.integration or self.source_name))
