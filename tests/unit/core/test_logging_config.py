"""
Tests for logging infrastructure.
"""

import logging
import json
import sys

import pytest

from cosmostart.core.logging_config import (
    setup_logging,
    set_run_id,
    clear_run_id,
    log_with_context,
    JSONFormatter,
    SensitiveDataFilter,
    _parse_size
)


def _record(msg: str, level: int = logging.INFO, exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info
    )


class TestLoggingSetup:
    """Test suite for logging setup."""

    def test_setup_logging_defaults(self):
        """Test setting up logging with defaults."""
        setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1

    def test_setup_logging_with_level(self):
        """Test setting up logging with custom level."""
        setup_logging(level="debug")

        assert logging.getLogger().level == logging.DEBUG

    def test_handlers_write_to_stderr(self):
        """Log lines stay off stdout, which carries the walkthrough output."""
        setup_logging()

        handler = logging.getLogger().handlers[0]
        assert handler.stream is sys.stderr

    def test_setup_logging_with_file(self, tmp_path):
        """Test setting up logging with file output."""
        log_file = tmp_path / "logs" / "cosmostart.log"
        setup_logging(log_file=str(log_file))

        logger = logging.getLogger(__name__)
        logger.info("Test message")

        assert log_file.exists()
        assert "Test message" in log_file.read_text()

    def test_file_output_is_redacted(self, tmp_path):
        """Test that the file handler also redacts keys."""
        log_file = tmp_path / "cosmostart.log"
        setup_logging(log_file=str(log_file))

        logging.getLogger(__name__).info("Connecting with PrimaryKey=supersecretkey==")

        content = log_file.read_text()
        assert "supersecretkey" not in content
        assert "***REDACTED***" in content

    def test_azure_sdk_logging_quieted(self):
        """Test that the Azure SDK loggers default to WARNING."""
        setup_logging(level="DEBUG")

        assert logging.getLogger("azure").level == logging.WARNING

    def test_setup_logging_with_module_levels(self):
        """Test setting up logging with per-module log levels."""
        setup_logging(
            level="INFO",
            module_levels={
                "cosmostart.store": "DEBUG",
                "cosmostart.workflow": "ERROR"
            }
        )

        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("cosmostart.store").level == logging.DEBUG
        assert logging.getLogger("cosmostart.workflow").level == logging.ERROR


class TestJSONFormatter:
    """Test suite for JSON formatter."""

    def test_format_basic_message(self):
        """Test formatting a basic log message."""
        data = json.loads(JSONFormatter().format(_record("Test message")))

        assert data["level"] == "INFO"
        assert data["module"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert "run_id" not in data

    def test_format_with_run_id(self):
        """Test formatting with a workflow run ID."""
        set_run_id("run-1234")

        try:
            data = json.loads(JSONFormatter().format(_record("Test message")))
            assert data["run_id"] == "run-1234"
        finally:
            clear_run_id()

    def test_format_with_exception(self):
        """Test formatting with exception info."""
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", logging.ERROR, sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError" in data["exception"]
        assert "Test error" in data["exception"]

    def test_format_with_context(self):
        """Test that structured context is included."""
        record = _record("Query returned 1 records")
        record.context = {"pages": 1, "request_charge": 2.6}

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"pages": 1, "request_charge": 2.6}


class TestSensitiveDataFilter:
    """Test suite for sensitive data filter."""

    @pytest.mark.parametrize("message,secret", [
        ("Authorization: Bearer secret_token_here", "secret_token_here"),
        ("AccountEndpoint=https://acct.documents.azure.com:443/;AccountKey=secretkey123;", "secretkey123"),
        ("PrimaryKey=C2y6yDjf5R+ob0N8A7Cgv30VRDJIWEHLM", "C2y6yDjf5R"),
        ('{"primary_key": "topsecret"}', "topsecret"),
    ])
    def test_redacts_secret(self, message, secret):
        """Test redacting account keys and tokens."""
        record = _record(message)

        assert SensitiveDataFilter().filter(record) is True
        assert secret not in record.msg
        assert "***REDACTED***" in record.msg

    def test_leaves_ordinary_messages(self):
        """Test that messages without secrets are untouched."""
        record = _record("Created Database: db")

        SensitiveDataFilter().filter(record)

        assert record.msg == "Created Database: db"


class TestLogWithContext:
    """Test suite for log_with_context."""

    def test_attaches_context(self, caplog):
        """Test that context is attached to the record."""
        logger = logging.getLogger("test.context")

        with caplog.at_level(logging.INFO, logger="test.context"):
            log_with_context(logger, logging.INFO, "Scaled container", previous=400, current=500)

        assert caplog.records[-1].context == {"previous": 400, "current": 500}

    def test_without_context(self, caplog):
        """Test that no context attribute is added when none is given."""
        logger = logging.getLogger("test.context")

        with caplog.at_level(logging.INFO, logger="test.context"):
            log_with_context(logger, logging.INFO, "Plain message")

        assert not hasattr(caplog.records[-1], "context")


class TestParseSize:
    """Test suite for size parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("10MB", 10 * 1024 ** 2),
        ("1GB", 1024 ** 3),
        ("512KB", 512 * 1024),
        ("100B", 100),
        ("2048", 2048),
        (" 1.5 mb ", int(1.5 * 1024 ** 2)),
    ])
    def test_parse_size(self, text, expected):
        """Test parsing size strings."""
        assert _parse_size(text) == expected
