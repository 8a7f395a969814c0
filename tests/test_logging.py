"""Tests for logging context, formatters and configuration."""

import json
import logging
from datetime import date

import pytest

from control_tower.logging import ComponentLoggerAdapter, get_logger
from control_tower.logging.config import (
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from control_tower.logging.context import (
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


def make_record(msg="Test message", extra=None, name="test"):
    logger = logging.getLogger(name)
    return logger.makeRecord(name, logging.INFO, "test.py", 1, msg, (), None, extra=extra)


class TestLogContext:
    def test_empty_by_default(self):
        assert get_log_context() == {}

    def test_push_and_pop(self):
        token = push_log_context(run_id="abc123", deployment_id="dep-1")
        assert get_log_context() == {"run_id": "abc123", "deployment_id": "dep-1"}

        pop_log_context(token)
        assert get_log_context() == {}

    def test_nested_context_manager(self):
        with log_context(run_id="abc123"):
            with log_context(deployment_id="dep-1"):
                assert get_log_context() == {"run_id": "abc123", "deployment_id": "dep-1"}
            assert get_log_context() == {"run_id": "abc123"}
        assert get_log_context() == {}

    def test_inner_value_overrides_outer(self):
        with log_context(reminder_class="7_days"):
            with log_context(reminder_class="overdue"):
                assert get_log_context()["reminder_class"] == "overdue"
            assert get_log_context()["reminder_class"] == "7_days"

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with log_context(deployment_id="dep-1"):
                raise RuntimeError("boom")

        assert get_log_context() == {}

    def test_returned_copy_is_isolated(self):
        with log_context(run_id="abc123"):
            context = get_log_context()
            context["run_id"] = "changed"
            assert get_log_context()["run_id"] == "abc123"


class TestFormatters:
    def test_json_formatter_fields(self):
        record = make_record(extra={"event": "reminder.sent", "count": 2, "flag": True})

        log_obj = json.loads(JSONFormatter().format(record))

        assert log_obj["level"] == "INFO"
        assert log_obj["message"] == "Test message"
        assert log_obj["logger"] == "test"
        assert log_obj["event"] == "reminder.sent"
        assert log_obj["count"] == 2
        assert log_obj["flag"] is True
        assert log_obj["timestamp"].endswith("Z")

    def test_json_formatter_serializes_dates(self):
        record = make_record(extra={"today": date(2025, 11, 10)})

        log_obj = json.loads(JSONFormatter().format(record))

        assert log_obj["today"] == "2025-11-10"

    def test_contextual_filter_adds_service_and_context(self):
        record = make_record()

        with log_context(run_id="abc123", deployment_id="dep-1"):
            ContextualFilter(service="svc", environment="test").filter(record)

        assert record.service == "svc"
        assert record.environment == "test"
        assert record.run_id == "abc123"
        assert record.deployment_id == "dep-1"

    def test_contextual_filter_keeps_explicit_extra(self):
        record = make_record(extra={"deployment_id": "explicit"})

        with log_context(deployment_id="from-context"):
            ContextualFilter().filter(record)

        assert record.deployment_id == "explicit"

    def test_key_value_formatter(self):
        formatter = KeyValueFormatter("%(levelname)s %(message)s")
        record = make_record(
            extra={"event": "alert.sent", "reason": "two words", "sent": False, "error": None}
        )

        output = formatter.format(record)

        assert output.startswith("INFO Test message")
        assert "event=alert.sent" in output
        assert 'reason="two words"' in output
        assert "sent=false" in output
        assert "error=null" in output

    def test_key_value_formatter_skips_service_fields(self):
        formatter = KeyValueFormatter("%(message)s")
        record = make_record()
        ContextualFilter(service="svc", environment="prod").filter(record)

        assert formatter.format(record) == "Test message"


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="LOUD")

    def test_invalid_format(self):
        with pytest.raises(ValueError, match="Invalid log format"):
            configure_logging(format_type="xml")

    def test_json_format_installs_single_handler(self):
        configure_logging(level="DEBUG", format_type="json", environment="test")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_quiets_third_party_loggers(self):
        configure_logging(level="INFO")

        assert logging.getLogger("apscheduler").level == logging.WARNING


class TestComponentLogger:
    def test_component_added_to_extra(self, caplog):
        logger = get_logger("control_tower.test", component="reminders")
        assert isinstance(logger, ComponentLoggerAdapter)

        with caplog.at_level(logging.INFO, logger="control_tower.test"):
            logger.info("hello", extra={"event": "test.event"})

        record = caplog.records[-1]
        assert record.component == "reminders"
        assert record.event == "test.event"

    def test_plain_logger_without_component(self):
        assert isinstance(get_logger("control_tower.test"), logging.Logger)
