"""
Tests for structured relay logging.
"""

import json
import logging
import sys

import pytest

from eventrelay.monitoring.logging import (
    RelayContextFilter,
    RelayJsonFormatter,
    clear_relay_context,
    relay_context,
    set_relay_context,
    setup_relay_logging,
)


@pytest.fixture(autouse=True)
def clean_context():
    token = relay_context.set({})
    yield
    relay_context.reset(token)


def _record(msg="Delivered", **extra):
    record = logging.LogRecord("eventrelay.test", logging.INFO, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRelayContext:
    def test_set_merges(self):
        set_relay_context(request_id="abc")
        set_relay_context(trigger_id="order_placed")

        assert relay_context.get() == {"request_id": "abc", "trigger_id": "order_placed"}

    def test_clear(self):
        set_relay_context(request_id="abc")
        clear_relay_context()

        assert relay_context.get() == {}


class TestRelayJsonFormatter:
    def test_base_fields(self):
        entry = json.loads(RelayJsonFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "eventrelay.test"
        assert entry["message"] == "Delivered"
        assert "timestamp" in entry
        assert "request_id" not in entry

    def test_context_and_extras(self):
        set_relay_context(request_id="abc", trigger_id="order_placed", object_id="42")

        entry = json.loads(
            RelayJsonFormatter().format(_record(event_id="e-1", status="sent", status_code=202))
        )

        assert entry["request_id"] == "abc"
        assert entry["trigger_id"] == "order_placed"
        assert entry["object_id"] == "42"
        assert entry["event_id"] == "e-1"
        assert entry["status_code"] == 202

    def test_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord(
                "eventrelay.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        entry = json.loads(RelayJsonFormatter().format(record))

        assert "ValueError: bad" in entry["exception"]


class TestRelayContextFilter:
    def test_defaults(self):
        record = _record()

        assert RelayContextFilter().filter(record) is True
        assert record.request_id == "-"
        assert record.trigger_id == ""

    def test_from_context(self):
        set_relay_context(request_id="abc", trigger_id="order_placed")
        record = _record()

        RelayContextFilter().filter(record)

        assert record.request_id == "abc"
        assert record.trigger_id == "order_placed"


def test_setup_relay_logging():
    logger = setup_relay_logging("debug", json_format=True)
    try:
        assert logger.name == "eventrelay"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, RelayJsonFormatter)

        setup_relay_logging("info", json_format=False)
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, RelayJsonFormatter)
    finally:
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
