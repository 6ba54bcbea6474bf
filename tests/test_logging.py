"""Tests for logging setup module."""

import json
import logging

from marketpulse.logging_setup import (
    JSONFormatter,
    SimpleFormatter,
    get_logger,
    log_event,
    reset_logging,
    setup_logging,
)


def _record(msg: str, args: tuple = (), level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestJSONFormatter:
    """Tests for JSON formatter."""

    def test_format_basic_message(self) -> None:
        """Test formatting a basic log message."""
        data = json.loads(JSONFormatter().format(_record("Test message")))

        assert "timestamp" in data
        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"

    def test_format_with_args(self) -> None:
        """Test formatting with message arguments."""
        record = _record("Scored %d items", (42,), logging.WARNING)
        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Scored 42 items"
        assert data["level"] == "WARNING"

    def test_format_extra_fields(self) -> None:
        """Structured extra fields are merged into the line."""
        record = _record("Snapshot composed")
        record.extra_fields = {"alerts": 2, "kind": "news"}

        data = json.loads(JSONFormatter().format(record))

        assert data["alerts"] == 2
        assert data["kind"] == "news"


class TestSimpleFormatter:
    """Tests for simple formatter."""

    def test_format_includes_level(self) -> None:
        """Test simple formatter includes level."""
        output = SimpleFormatter().format(_record("Test message"))

        assert "INFO" in output
        assert "test" in output
        assert "Test message" in output


class TestLoggingSetup:
    """Tests for logging setup functions."""

    def test_setup_logging_creates_handler(self) -> None:
        """Test setup_logging adds handler to logger."""
        reset_logging()
        setup_logging(level="DEBUG")

        logger = logging.getLogger("marketpulse")
        assert len(logger.handlers) > 0
        assert logger.level == logging.DEBUG

    def test_setup_logging_only_once(self) -> None:
        """Test setup_logging only runs once."""
        reset_logging()
        setup_logging()
        handler_count = len(logging.getLogger("marketpulse").handlers)

        setup_logging()
        assert len(logging.getLogger("marketpulse").handlers) == handler_count

    def test_simple_format_from_env(self, monkeypatch) -> None:
        """LOG_FORMAT=simple selects the human-readable formatter."""
        monkeypatch.setenv("LOG_FORMAT", "simple")
        from marketpulse.config import reset_config

        reset_config()
        reset_logging()
        setup_logging()

        handler = logging.getLogger("marketpulse").handlers[0]
        assert isinstance(handler.formatter, SimpleFormatter)

    def test_get_logger_returns_child(self) -> None:
        """Test get_logger returns child logger."""
        reset_logging()
        logger = get_logger("content.score")

        assert logger.name == "marketpulse.content.score"

    def test_get_logger_handles_prefixed_name(self) -> None:
        """Test get_logger handles already-prefixed names."""
        reset_logging()
        logger = get_logger("marketpulse.content.score")

        assert logger.name == "marketpulse.content.score"

    def test_reset_logging(self) -> None:
        """Test reset_logging clears handlers."""
        setup_logging()
        reset_logging()

        logger = logging.getLogger("marketpulse")
        assert len(logger.handlers) == 0


class TestStructuredEvents:
    """Tests for structured fields and file output."""

    def test_log_event_attaches_fields(self, caplog) -> None:
        """log_event passes fields through to the record."""
        logger = get_logger("content.snapshot")
        with caplog.at_level(logging.INFO, logger="marketpulse"):
            log_event(logger, logging.INFO, "Snapshot composed", items=3, alerts=1)

        record = caplog.records[-1]
        assert record.getMessage() == "Snapshot composed"
        assert record.extra_fields == {"items": 3, "alerts": 1}

    def test_simple_formatter_appends_fields(self) -> None:
        """Simple lines end with key=value pairs."""
        record = _record("Fetched items")
        record.extra_fields = {"kind": "news", "count": 4}

        assert SimpleFormatter().format(record).endswith("| kind=news count=4")

    def test_log_file(self, tmp_path) -> None:
        """A log file receives JSON lines."""
        log_path = tmp_path / "logs" / "marketpulse.log"
        reset_logging()
        setup_logging(level="INFO", format_type="json", log_file=str(log_path))

        log_event(get_logger("content.collect"), logging.INFO, "Fetched items", count=2)
        for handler in logging.getLogger("marketpulse").handlers:
            handler.flush()

        lines = log_path.read_text(encoding="utf-8").strip().splitlines()
        data = json.loads(lines[-1])
        assert data["logger"] == "marketpulse.content.collect"
        assert data["count"] == 2

    def test_unknown_level_defaults_to_info(self) -> None:
        """An unknown level name falls back to INFO."""
        reset_logging()
        setup_logging(level="LOUD")
        assert logging.getLogger("marketpulse").level == logging.INFO
