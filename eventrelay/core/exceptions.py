"""
All eventrelay exceptions.

Nothing on the fire/flush path raises these into the host application;
they surface only from startup registration, the test-send path and
explicit configuration loading.
"""


class RelayError(Exception):
    """Base eventrelay error"""


class RegistryError(RelayError):
    """Invalid trigger or option type registration"""


class DuplicateTriggerError(RegistryError):
    """A trigger with the same id is already registered"""

    def __init__(self, trigger_id: str):
        self.trigger_id = trigger_id
        super().__init__(f"Trigger already registered: {trigger_id}")


class DuplicateOptionTypeError(RegistryError):
    """An option type with the same id is already registered"""

    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(f"Option type already registered: {type_id}")


class RegistryFrozenError(RegistryError):
    """Registration attempted after the registries were finalized"""


class TemplateError(RelayError):
    """Stored template has an unusable shape"""


class DeliveryError(RelayError):
    """Event could not be delivered to the endpoint"""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidEndpointError(DeliveryError):
    """Delivery endpoint is unset or not an absolute http(s) URL"""

    def __init__(self, endpoint: str | None):
        self.endpoint = endpoint
        if endpoint:
            message = f"Invalid delivery endpoint: {endpoint!r}"
        else:
            message = "No delivery endpoint configured"
        super().__init__(message)

