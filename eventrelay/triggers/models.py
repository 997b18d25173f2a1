from __future__ import annotations

from dataclasses import dataclass

from eventrelay.core.types import Template


@dataclass(frozen=True)
class Trigger:
    """
    A named kind of event the host can fire.

    Attributes:
        id: Unique trigger id (e.g. "order_placed")
        name: Display name, also sent as the trigger label
        description: Human readable description for authoring tools
        integration: Display name of the owning integration (event source)
        option_types: Option types resolved when this trigger fires
        supports_single: Can be configured per concrete object
        supports_global: Can be configured once, site-wide
        default_template: Suggested template for new configurations
    """

    id: str
    name: str = ""
    description: str = ""
    integration: str = ""
    option_types: tuple[str, ...] = ()
    supports_single: bool = False
    supports_global: bool = True
    default_template: Template | None = None

    def __post_init__(self) -> None:
        if not self.id:
            msg = "Trigger id must not be empty"
            raise ValueError(msg)
        # Accept any iterable of type ids
        object.__setattr__(self, "option_types", tuple(self.option_types))

    @property
    def label(self) -> str:
        return self.name or self.id

    def uses(self, type_id: str) -> bool:
        return type_id in self.option_types
