"""Tests for logging setup and the operation decorator."""

import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from sqlscope.errors import TableNotFoundError
from sqlscope.logging import configure_logging, logged_operation


class TestLoggedOperation:
    """Test the logged_operation decorator."""

    def test_success_logs_duration(self, caplog):
        @logged_operation()
        def tables():
            return ["a"]

        with caplog.at_level(logging.DEBUG, logger="sqlscope"):
            assert tables() == ["a"]

        messages = [r.getMessage() for r in caplog.records]
        assert "tables started" in messages
        assert any(m.startswith("tables completed in") for m in messages)

    def test_custom_name(self, caplog):
        @logged_operation("table_data")
        def page():
            return None

        with caplog.at_level(logging.INFO, logger="sqlscope"):
            page()
        assert "table_data completed in" in caplog.text

    def test_explorer_error_logged_as_warning(self, caplog):
        @logged_operation()
        def table():
            raise TableNotFoundError("ghosts")

        with caplog.at_level(logging.INFO, logger="sqlscope"):
            with pytest.raises(TableNotFoundError):
                table()

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert "[NOT_FOUND] Table not found: ghosts" in record.getMessage()

    def test_unexpected_error_logged_as_error(self, caplog):
        @logged_operation()
        def overview():
            raise RuntimeError("disk on fire")

        with caplog.at_level(logging.INFO, logger="sqlscope"):
            with pytest.raises(RuntimeError):
                overview()

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert "RuntimeError: disk on fire" in record.getMessage()

    def test_preserves_function_metadata(self):
        @logged_operation()
        def schema():
            """Schema docs."""

        assert schema.__name__ == "schema"
        assert schema.__doc__ == "Schema docs."


class TestConfigureLogging:
    """Test the rich handler setup."""

    def test_single_rich_handler(self):
        configure_logging("INFO", console=Console(quiet=True))
        logger = configure_logging("DEBUG", console=Console(quiet=True))

        rich_handlers = [h for h in logger.handlers if isinstance(h, RichHandler)]
        assert len(rich_handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.name == "sqlscope"

    def test_level_name_is_case_insensitive(self):
        logger = configure_logging("warning", console=Console(quiet=True))
        assert logger.level == logging.WARNING
