"""
RelayConfig - Unified configuration for eventrelay delivery.

The transport always receives its configuration explicitly; the global
``configure()`` / ``get_config()`` pair only exists for hosts that want an
ambient default when building a Relay.

Example (explicit):
    >>> from eventrelay import RelayConfig
    >>> from eventrelay.dispatch.transport import HttpTransport
    >>>
    >>> config = RelayConfig(endpoint="https://analytics.example.com/events")
    >>> transport = HttpTransport(config)

Example (environment):
    >>> # EVENTRELAY_ENDPOINT=https://analytics.example.com/events
    >>> config = RelayConfig.from_env()

Example (file):
    >>> config = RelayConfig.from_file("eventrelay.yaml")

    # In eventrelay.yaml:
    # delivery:
    #   endpoint: ${EVENTRELAY_ENDPOINT:?Endpoint required}
    #   timeout_seconds: 5
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from eventrelay.core.env import get_env
from eventrelay.core.logger import get_logger

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "eventrelay/1.0"


@dataclass
class RelayConfig:
    """
    Configuration for event delivery.

    Attributes:
        endpoint: Analytics endpoint URL; None disables delivery
        timeout_seconds: Per-request timeout for fire-and-forget sends
        test_timeout_seconds: Timeout for the blocking test-send path
        user_agent: User-Agent header value
        source_header: Header naming the source integration
        trigger_header: Header naming the trigger id
        extra_headers: Additional static headers sent with every event
        metrics: Whether Relay should create Prometheus metrics by default
    """

    endpoint: str | None = None
    timeout_seconds: float = 5.0
    test_timeout_seconds: float = 15.0
    user_agent: str = DEFAULT_USER_AGENT
    source_header: str = "X-Event-Source"
    trigger_header: str = "X-Event-Trigger"
    extra_headers: dict[str, str] = field(default_factory=dict)
    metrics: bool = False

    def __post_init__(self) -> None:
        if self.endpoint is not None:
            self.endpoint = self.endpoint.strip() or None
        if self.timeout_seconds <= 0:
            msg = f"timeout_seconds must be positive, got {self.timeout_seconds}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> RelayConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            EVENTRELAY_ENDPOINT: Analytics endpoint URL
            EVENTRELAY_TIMEOUT: Fire-and-forget timeout in seconds
            EVENTRELAY_TEST_TIMEOUT: Test-send timeout in seconds
            EVENTRELAY_USER_AGENT: User-Agent header
            EVENTRELAY_METRICS: Enable Prometheus metrics (true/false)

        Args:
            load_dotenv: If True, loads .env file before reading variables
        """
        env = get_env()
        if load_dotenv:
            env.load()

        return cls(
            endpoint=env.get("EVENTRELAY_ENDPOINT"),
            timeout_seconds=env.get_float("EVENTRELAY_TIMEOUT", 5.0),
            test_timeout_seconds=env.get_float("EVENTRELAY_TEST_TIMEOUT", 15.0),
            user_agent=env.get("EVENTRELAY_USER_AGENT", DEFAULT_USER_AGENT),
            metrics=env.get_bool("EVENTRELAY_METRICS", False),
        )

    @classmethod
    def from_file(cls, file_path: str | Path, substitute_env: bool = True) -> RelayConfig:
        """
        Load configuration from the ``delivery`` section of a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = Path(file_path)
        if not path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        with path.open() as f:
            data = yaml.safe_load(f) or {}

        if substitute_env:
            env = get_env()
            env.load()
            data = env.substitute_data(data)

        return cls.from_dict(data.get("delivery", {}))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RelayConfig:
        known = {
            "endpoint",
            "timeout_seconds",
            "test_timeout_seconds",
            "user_agent",
            "source_header",
            "trigger_header",
            "extra_headers",
            "metrics",
        }
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown delivery settings: {', '.join(sorted(unknown))}")
        values = {key: value for key, value in data.items() if key in known}

        # Values substituted from the environment arrive as strings
        for key in ("timeout_seconds", "test_timeout_seconds"):
            if isinstance(values.get(key), str):
                values[key] = float(values[key])
        if isinstance(values.get("metrics"), str):
            values["metrics"] = values["metrics"].strip().lower() in ("true", "1", "yes", "on")

        return cls(**values)


# Global configuration singleton
_global_config: RelayConfig | None = None


def get_config() -> RelayConfig:
    """Get the global relay configuration."""
    global _global_config
    if _global_config is None:
        _global_config = RelayConfig()
    return _global_config


def configure(config: RelayConfig) -> None:
    """Set the global relay configuration."""
    global _global_config
    _global_config = config
    logger.info(f"eventrelay configured: endpoint={'set' if config.endpoint else 'unset'}")
