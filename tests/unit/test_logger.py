"""
Unit tests for structured logging.
"""
import json
import logging

import pytest

from pkg.logger.logger import (
    ConsoleFormatter,
    StructuredFormatter,
    get_logger,
    get_request_id,
    set_request_id,
)


class CapturingHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    logger = get_logger("tests.structured")
    logger.setLevel(logging.DEBUG)
    handler = CapturingHandler()
    logger.addHandler(handler)
    yield logger, handler
    logger.removeHandler(handler)
    set_request_id(None)


class TestStructuredLogger:
    """Tests for StructuredLogger and formatters."""

    def test_keyword_fields_become_record_attributes(self, captured):
        logger, handler = captured

        logger.info("Product synced", sku="SKU-1", shopify_id="42")

        record = handler.records[0]
        assert record.getMessage() == "Product synced"
        assert record.sku == "SKU-1"
        assert record.shopify_id == "42"

    def test_reserved_names_are_prefixed(self, captured):
        logger, handler = captured

        logger.warning("Clash", name="custom", module="m")

        record = handler.records[0]
        assert record.name == "tests.structured"
        assert record.field_name == "custom"
        assert record.field_module == "m"

    def test_records_report_the_call_site(self, captured):
        logger, handler = captured

        logger.error("Where am I")

        assert handler.records[0].funcName == "test_records_report_the_call_site"

    def test_json_format(self, captured):
        logger, handler = captured
        set_request_id("req-123")

        logger.info("Inventory updated", sku="SKU-1", quantity=5, tags=("a", "b"))

        data = json.loads(StructuredFormatter().format(handler.records[0]))
        assert data["message"] == "Inventory updated"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req-123"
        assert data["sku"] == "SKU-1"
        assert data["quantity"] == 5
        assert data["tags"] == ["a", "b"]
        assert data["timestamp"].endswith("Z")

    def test_exception_is_formatted(self, captured):
        logger, handler = captured

        try:
            raise ValueError("bad value")
        except ValueError:
            logger.exception("Failed")

        data = json.loads(StructuredFormatter().format(handler.records[0]))
        assert "ValueError: bad value" in data["exception"]

    def test_console_format_appends_fields(self, captured):
        logger, handler = captured

        logger.info("Sync request processed", shopify_id="42")

        line = ConsoleFormatter().format(handler.records[0])
        assert "Sync request processed" in line
        assert "shopify_id='42'" in line

    def test_disabled_level_is_skipped(self, captured):
        logger, handler = captured
        logger.setLevel(logging.WARNING)

        logger.info("hidden", sku="X")

        assert handler.records == []

    def test_request_id_context(self):
        set_request_id("abc")
        assert get_request_id() == "abc"
        set_request_id(None)
        assert get_request_id() is None
