"""
Pluggable logging for eventrelay.

Every module holds a ``RelayLogger`` created at import time. It looks up its
target on each call, so a host logger installed later with ``set_logger``
(structlog, loguru, a framework logger) still receives every message,
including those of modules imported before it was set.

Usage:
    from eventrelay.core.logger import get_logger
    logger = get_logger(__name__)
    logger.warning("Resolver failed")

    # Route everything through the host's logger
    import structlog
    from eventrelay.core.logger import set_logger
    set_logger(structlog.get_logger())

    # Silence eventrelay entirely
    from eventrelay.core.logger import disable_logging
    disable_logging()
"""

import logging
from typing import Any

ROOT_LOGGER = "eventrelay"

_custom_logger: Any = None


class NullLogger:
    """Swallows every call."""

    def debug(self, *args, **kwargs): pass
    def info(self, *args, **kwargs): pass
    def warning(self, *args, **kwargs): pass
    def error(self, *args, **kwargs): pass
    def exception(self, *args, **kwargs): pass
    def critical(self, *args, **kwargs): pass


def _standard_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


class RelayLogger:
    """
    Named logger that dispatches to the host logger when one is set.

    Falls back to the standard ``logging`` logger of the same name; records
    then report the caller's module and line, not this class.
    """

    def __init__(self, name: str = ROOT_LOGGER):
        self.name = name

    @property
    def target(self) -> Any:
        if _custom_logger is not None:
            return _custom_logger
        return _standard_logger(self.name)

    def _log(self, method: str, msg: Any, *args: Any, **kwargs: Any) -> None:
        target = self.target
        if isinstance(target, logging.Logger):
            kwargs.setdefault("stacklevel", 3)
        getattr(target, method)(msg, *args, **kwargs)

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self._log("debug", msg, *args, **kwargs)

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self._log("info", msg, *args, **kwargs)

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self._log("warning", msg, *args, **kwargs)

    def error(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self._log("error", msg, *args, **kwargs)

    def exception(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self._log("exception", msg, *args, **kwargs)

    def critical(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        self._log("critical", msg, *args, **kwargs)

    def __repr__(self) -> str:
        return f"<RelayLogger {self.name}>"


def set_logger(logger: Any) -> None:
    """
    Route all eventrelay logging through ``logger``.

    It must provide debug/info/warning/error/exception/critical. Pass None
    to return to standard logging.
    """
    global _custom_logger
    _custom_logger = logger


def disable_logging() -> None:
    set_logger(NullLogger())


def get_logger(name: str = ROOT_LOGGER) -> RelayLogger:
    """Logger for ``name`` (typically the calling module's ``__name__``)."""
    return RelayLogger(name)


def configure_default_logging(
    level: int = logging.INFO,
    format_string: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
) -> None:
    """
    Plain console logging for scripts and the CLI.

    Services that want JSON lines with request ids use
    ``eventrelay.monitoring.setup_relay_logging`` instead.
    """
    logging.basicConfig(level=level, format=format_string)
    logging.getLogger(ROOT_LOGGER).setLevel(level)
