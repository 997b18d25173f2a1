"""
eventrelay.triggers - Trigger Registry and integrations

Example:
    triggers = TriggerRegistry()
    options = OptionTypeRegistry()

    ShopIntegration().register(options, triggers)
    UserIntegration().register(options, triggers)

    # Bake global types (e.g. "user") into every trigger and freeze
    triggers.finalize(options)
"""

from eventrelay.triggers.decorators import OptionProviderMetadata, option_provider
from eventrelay.triggers.integration import Integration
from eventrelay.triggers.models import Trigger
from eventrelay.triggers.registry import TriggerRegistry

__all__ = [
    "Integration",
    "OptionProviderMetadata",
    "Trigger",
    "TriggerRegistry",
    "option_provider",
]
