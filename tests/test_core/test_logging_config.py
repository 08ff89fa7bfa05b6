"""
Tests for logging configuration.
"""
import json
import logging

import pytest

from apnspush.core.logging_config import (
    CustomJsonFormatter,
    SanitizingFilter,
    get_logger,
    mask_device_token,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg, *args, **extra):
    record = logging.LogRecord(
        name="apnspush.push.apns_provider",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args,
        exc_info=None,
        func="send",
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestSetupLogging:

    def test_json_handler(self, restore_root_logger):
        root = setup_logging(log_level="DEBUG", json_format=True)

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_plain_handler(self, restore_root_logger):
        root = setup_logging(log_level="warning", json_format=False)

        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, CustomJsonFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        root = setup_logging(log_level="nonsense", json_format=False)
        assert root.level == logging.INFO

    def test_overrides_skip_settings(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "trace")

        root = setup_logging(log_level="ERROR", json_format=True)

        assert root.level == logging.ERROR

    def test_defaults_from_settings(self, restore_root_logger, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_JSON", "false")

        root = setup_logging()

        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, CustomJsonFormatter)

    def test_get_logger(self):
        assert get_logger("apnspush.test").name == "apnspush.test"


class TestCustomJsonFormatter:

    def test_standard_fields(self):
        formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')

        output = json.loads(formatter.format(_record("APNS notification rejected", reason="BadDeviceToken")))

        assert output["message"] == "APNS notification rejected"
        assert output["level"] == "WARNING"
        assert output["logger"] == "apnspush.push.apns_provider"
        assert output["function"] == "send"
        assert output["reason"] == "BadDeviceToken"
        assert "timestamp" in output


class TestSanitizingFilter:

    def test_strips_line_breaks(self):
        record = _record("topic %s\r\nforged", "com.example\nINFO fake")

        assert SanitizingFilter().filter(record) is True
        assert record.getMessage() == "topic com.example INFO fake forged"


class TestMaskDeviceToken:

    def test_long_token(self):
        assert mask_device_token("a1b2c3d4e5f60718293a4b5c") == "a1b2c3d4...4b5c"

    def test_short_token_unchanged(self):
        assert mask_device_token("abc") == "abc"
