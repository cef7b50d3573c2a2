"""Tests for the structured logging system (payroll_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "payroll_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("built", extra={"violation_count": 2, "net_pay": "5713.30"})

        record = _parse_log(stream)
        assert record["violation_count"] == 2
        assert record["net_pay"] == "5713.30"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(batch_id="batch-1", period="2024-07")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["batch_id"] == "batch-1"
        assert record["period"] == "2024-07"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_payroll_exception_code_extracted(self):
        """Payroll kernel exceptions carry a .code attribute."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from payroll_kernel.exceptions import PayrollEntryImmutableError

        try:
            raise PayrollEntryImmutableError("entry-1", "delete")
        except PayrollEntryImmutableError:
            logger.error("entry_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "PAYROLL_ENTRY_IMMUTABLE"
        assert record["exc_type"] == "PayrollEntryImmutableError"
        assert record["exc_entry_id"] == "entry-1"
        assert record["exc_operation"] == "delete"

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "batch_id" not in record
        assert "employee_id" not in record

    def test_uuid_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info("with_values", extra={"entry_id": uid, "amount": Decimal("12.50")})

        record = _parse_log(stream)
        assert record["entry_id"] == str(uid)
        assert record["amount"] == "12.50"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # INFO is the default level, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(batch_id="x", employee_id="y")
        ctx = LogContext.get_all()
        assert ctx == {"batch_id": "x", "employee_id": "y"}

    def test_clear(self):
        LogContext.set(batch_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(employee_id="outer")
        with LogContext.bind(employee_id="inner"):
            assert LogContext.get_all()["employee_id"] == "inner"
        assert LogContext.get_all()["employee_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "batch_id" not in LogContext.get_all()
        with LogContext.bind(batch_id="temp"):
            assert LogContext.get_all()["batch_id"] == "temp"
        assert "batch_id" not in LogContext.get_all()

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(batch_id="b", not_a_field="z"):
            assert LogContext.get_all() == {"batch_id": "b"}

    def test_additive_set(self):
        LogContext.set(batch_id="a")
        LogContext.set(period="2024-07")
        ctx = LogContext.get_all()
        assert ctx["batch_id"] == "a"
        assert ctx["period"] == "2024-07"

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            batch_id="b",
            employee_id="e",
            period="p",
            actor_id="a",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 5
        assert ctx["correlation_id"] == "c"
        assert ctx["actor_id"] == "a"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("payroll_kernel")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("batch.processor")
        assert logger.name == "payroll_kernel.batch.processor"

    def test_logger_hierarchy(self):
        """Child loggers inherit the payroll_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "payroll_kernel.deep.nested.module"
