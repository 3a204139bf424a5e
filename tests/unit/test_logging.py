# ABOUTME: Unit tests for logging utilities
# ABOUTME: Tests correlation IDs, configure_logging, and AuditLogger class

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from app_console.utils.logging import (
    AuditLogger,
    add_correlation_id,
    configure_logging,
    correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.mark.unit
class TestCorrelationId:
    """Tests for correlation ID generation and context management."""

    def test_get_correlation_id_generates_new_when_empty(self):
        """Test that get_correlation_id generates a new ID when none exists."""
        correlation_id.set("")

        cid = get_correlation_id()

        assert len(cid) == 8
        int(cid, 16)  # UUID4 prefix, valid hex

    def test_get_correlation_id_returns_existing(self):
        """Test that get_correlation_id returns existing ID when set."""
        set_correlation_id("test1234")

        assert get_correlation_id() == "test1234"

    def test_get_correlation_id_preserves_value(self):
        """Test that subsequent calls return the same ID."""
        correlation_id.set("")

        assert get_correlation_id() == get_correlation_id()

    def test_set_empty_regenerates(self):
        """Test that an empty ID is replaced on next access."""
        set_correlation_id("old12345")
        set_correlation_id("")

        assert get_correlation_id() != "old12345"


@pytest.mark.unit
class TestAddCorrelationId:
    """Tests for the add_correlation_id processor function."""

    def test_adds_correlation_id_to_event_dict(self):
        """Test that correlation ID is added to event dictionary."""
        set_correlation_id("proc1234")

        result = add_correlation_id(MagicMock(), "info", {"event": "test_event"})

        assert result["correlation_id"] == "proc1234"
        assert result["event"] == "test_event"


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_console_output(self):
        """Test configure_logging renders to the console by default."""
        with patch("app_console.utils.logging.structlog") as mock_structlog:
            configure_logging()

            mock_structlog.dev.ConsoleRenderer.assert_called_once()
            mock_structlog.processors.JSONRenderer.assert_not_called()
            mock_structlog.configure.assert_called_once()

    def test_configure_logging_json_output(self):
        """Test configure_logging with JSON output."""
        with patch("app_console.utils.logging.structlog") as mock_structlog:
            configure_logging(json_output=True)

            mock_structlog.processors.JSONRenderer.assert_called_once()
            mock_structlog.configure.assert_called_once()

    def test_configure_logging_writes_to_stderr(self):
        """Test log lines go to stderr, not stdout."""
        with patch("app_console.utils.logging.structlog") as mock_structlog:
            configure_logging(level="DEBUG")

            mock_structlog.PrintLoggerFactory.assert_called_once_with(file=sys.stderr)

    def test_configure_logging_level(self):
        """Test the level is passed to the filtering logger."""
        with patch("app_console.utils.logging.structlog") as mock_structlog:
            configure_logging(level="ERROR")

            mock_structlog.make_filtering_bound_logger.assert_called_once_with(40)

    def test_configure_logging_processors(self):
        """Test the processor chain ends with a renderer."""
        with patch("app_console.utils.logging.structlog") as mock_structlog:
            configure_logging()

            processors = mock_structlog.configure.call_args[1]["processors"]
            assert add_correlation_id in processors
            assert len(processors) == 5


@pytest.mark.unit
class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_to_file(self, tmp_path: Path):
        """Test logging to a JSON lines file."""
        log_file = tmp_path / "audit.log"
        logger = AuditLogger(log_path=log_file)
        set_correlation_id("file1234")

        logger.log("create_workspace", "org-1/proj-1/ws-1", "success", {"name": "Dev"})

        entry = json.loads(log_file.read_text().strip())
        assert entry["action"] == "create_workspace"
        assert entry["target"] == "org-1/proj-1/ws-1"
        assert entry["result"] == "success"
        assert entry["correlation_id"] == "file1234"
        assert entry["details"] == {"name": "Dev"}
        assert "timestamp" in entry

    def test_log_without_details(self, tmp_path: Path):
        """Test logging without details does not add details key."""
        log_file = tmp_path / "audit.log"
        AuditLogger(log_path=log_file).log("import_config", "t", "success")

        assert "details" not in json.loads(log_file.read_text())

    def test_log_appends_to_file(self, tmp_path: Path):
        """Test that multiple log calls append to the file."""
        log_file = tmp_path / "audit.log"
        logger = AuditLogger(log_path=log_file)

        logger.log("action1", "target1", "success")
        logger.log("action2", "target2", "success")

        lines = log_file.read_text().strip().split("\n")
        assert [json.loads(line)["action"] for line in lines] == ["action1", "action2"]

    def test_log_to_structlog_without_path(self):
        """Test entries go through structlog when no file is configured."""
        logger = AuditLogger(log_path=None)

        with patch.object(logger, "_logger") as mock_logger:
            logger.log("subscribe_services", "org/proj/ws", "success", {"services": ["A"]})

            mock_logger.info.assert_called_once_with(
                "audit",
                action="subscribe_services",
                target="org/proj/ws",
                result="success",
                details={"services": ["A"]},
            )

    def test_log_write(self):
        """Test log_write records a success."""
        logger = AuditLogger()

        with patch.object(logger, "log") as mock_log:
            logger.log_write("subscribe_services", "org/proj/ws", {"services": []})

            mock_log.assert_called_once_with("subscribe_services", "org/proj/ws", "success", {"services": []})

    def test_log_skipped(self):
        """Test log_skipped records the reason."""
        logger = AuditLogger()

        with patch.object(logger, "log") as mock_log:
            logger.log_skipped("subscribe_services", "org/proj/ws", "declined by user")

            mock_log.assert_called_once_with(
                "subscribe_services", "org/proj/ws", "skipped", {"reason": "declined by user"}
            )

    def test_log_error(self):
        """Test log_error records the error message."""
        logger = AuditLogger()

        with patch.object(logger, "log") as mock_log:
            logger.log_error("create_workspace", "org/proj", "boom")

            mock_log.assert_called_once_with("create_workspace", "org/proj", "error", {"error": "boom"})
