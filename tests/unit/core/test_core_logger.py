"""
Tests for the pluggable logger and the exception hierarchy.
"""

import logging
from unittest.mock import MagicMock

from eventrelay.core.exceptions import (
    DeliveryError,
    DuplicateOptionTypeError,
    DuplicateTriggerError,
    InvalidEndpointError,
    RegistryError,
    RegistryFrozenError,
    RelayError,
    TemplateError,
)
from eventrelay.core.logger import NullLogger, disable_logging, get_logger, set_logger


class TestLogger:
    """Tests for get_logger / set_logger."""

    def test_default_target_is_standard_logging(self):
        logger = get_logger("eventrelay.test")

        assert logger.name == "eventrelay.test"
        assert isinstance(logger.target, logging.Logger)
        assert logger.target.name == "eventrelay.test"
        assert logger.target.handlers

    def test_standard_records_report_the_caller(self, caplog):
        logger = get_logger("eventrelay.test")

        with caplog.at_level(logging.INFO, logger="eventrelay.test"):
            logger.info("Flushed %d events", 3)

        record = caplog.records[0]
        assert record.getMessage() == "Flushed 3 events"
        assert record.funcName == "test_standard_records_report_the_caller"

    def test_custom_logger_set_after_creation(self):
        logger = get_logger("eventrelay.test")
        custom = MagicMock()

        set_logger(custom)
        logger.warning("Resolver failed", exc_info=True)

        assert logger.target is custom
        custom.warning.assert_called_once_with("Resolver failed", exc_info=True)

    def test_reset_to_standard_logging(self):
        set_logger(MagicMock())
        set_logger(None)

        assert isinstance(get_logger().target, logging.Logger)

    def test_disable_logging(self, caplog):
        logger = get_logger("eventrelay.test")
        disable_logging()

        with caplog.at_level(logging.DEBUG, logger="eventrelay.test"):
            logger.error("hidden")

        assert isinstance(logger.target, NullLogger)
        assert caplog.records == []

    def test_null_logger_accepts_calls(self):
        logger = NullLogger()

        logger.debug("x")
        logger.warning("x", exc_info=True)
        logger.exception("x")


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        assert issubclass(DuplicateTriggerError, RegistryError)
        assert issubclass(DuplicateOptionTypeError, RegistryError)
        assert issubclass(RegistryFrozenError, RegistryError)
        assert issubclass(RegistryError, RelayError)
        assert issubclass(TemplateError, RelayError)
        assert issubclass(InvalidEndpointError, DeliveryError)
        assert issubclass(DeliveryError, RelayError)

    def test_duplicate_trigger_message(self):
        error = DuplicateTriggerError("order_placed")

        assert error.trigger_id == "order_placed"
        assert "order_placed" in str(error)

    def test_invalid_endpoint_messages(self):
        assert str(InvalidEndpointError(None)) == "No delivery endpoint configured"
        assert "ftp://x" in str(InvalidEndpointError("ftp://x"))

    def test_delivery_error_status_code(self):
        error = DeliveryError("boom", status_code=500)

        assert error.status_code == 500
        assert str(error) == "boom"
