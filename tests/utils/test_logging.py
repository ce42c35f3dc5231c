"""
Unit tests for logging setup module.

This module contains tests for logging configuration, formatting,
and performance decorators.
"""

import json
import logging
import logging.handlers
import sys
import tempfile
from pathlib import Path

import pytest

from opsconsole.utils.logging_setup import (
    setup_logging,
    get_logger,
    log_performance,
    JSONFormatter
)


def _make_record(**extra):
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=42,
        msg="Test message",
        args=(),
        exc_info=None
    )
    record.funcName = "test_function"
    record.module = "test_module"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test suite for JSONFormatter class."""
    
    def test_json_formatter_basic(self):
        """Test basic JSON formatting."""
        formatter = JSONFormatter(datefmt='%Y-%m-%d %H:%M:%S')
        
        parsed = json.loads(formatter.format(_make_record()))
        
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["message"] == "Test message"
        assert parsed["module"] == "test_module"
        assert parsed["function"] == "test_function"
        assert parsed["line"] == 42
        assert "timestamp" in parsed
    
    def test_json_formatter_with_exception(self):
        """Test JSON formatting with exception information."""
        formatter = JSONFormatter()
        
        try:
            raise ValueError("Test exception")
        except ValueError:
            record = _make_record()
            record.exc_info = sys.exc_info()
        
        parsed = json.loads(formatter.format(record))
        
        assert "exception" in parsed
        assert "ValueError" in parsed["exception"]
    
    def test_json_formatter_with_extra_fields(self):
        """Test JSON formatting keeps extra fields such as the collection name."""
        formatter = JSONFormatter()
        
        parsed = json.loads(formatter.format(_make_record(collection="projects", chunk_index=3)))
        
        assert parsed["collection"] == "projects"
        assert parsed["chunk_index"] == 3
    
    def test_json_formatter_serializes_unknown_extra_types(self):
        """Test that non-JSON extra values are stringified."""
        formatter = JSONFormatter()
        
        parsed = json.loads(formatter.format(_make_record(path=Path("exports/a.csv"))))
        
        assert parsed["path"] == str(Path("exports/a.csv"))


class TestSetupLogging:
    """Test suite for setup_logging function."""
    
    def setup_method(self):
        """Reset logging configuration before each test."""
        logger = logging.getLogger()
        logger.handlers.clear()
        logger.setLevel(logging.WARNING)
    
    def test_setup_logging_development(self):
        """Test logging setup for development environment."""
        setup_logging(environment="development", log_level="DEBUG")
        
        logger = logging.getLogger()
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        
        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stdout
        assert not isinstance(handler.formatter, JSONFormatter)
    
    def test_setup_logging_production(self):
        """Test logging setup for production environment."""
        setup_logging(environment="production", log_level="INFO")
        
        logger = logging.getLogger()
        assert logger.level == logging.INFO
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
    
    def test_setup_logging_with_log_dir(self):
        """Test logging setup with log directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            setup_logging(environment="development", log_level="INFO", log_dir=temp_dir)
            
            logger = logging.getLogger()
            assert len(logger.handlers) == 2
            
            file_handlers = [h for h in logger.handlers
                             if isinstance(h, logging.handlers.RotatingFileHandler)]
            assert len(file_handlers) == 1
            assert (Path(temp_dir) / "opsconsole_development.log").exists()
            
            for handler in file_handlers:
                handler.close()
            logger.handlers.clear()
    
    def test_setup_logging_removes_existing_handlers(self):
        """Test that setup_logging removes existing handlers."""
        logger = logging.getLogger()
        dummy_handler = logging.StreamHandler()
        logger.addHandler(dummy_handler)
        
        setup_logging(environment="development")
        
        assert len(logger.handlers) == 1
        assert logger.handlers[0] is not dummy_handler
    
    def test_setup_logging_sets_third_party_levels(self):
        """Test that setup_logging quiets third-party loggers."""
        setup_logging(environment="development", log_level="DEBUG")
        
        assert logging.getLogger("arcgis").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING
    
    def test_setup_logging_invalid_level(self):
        """Test that setup_logging rejects invalid log levels."""
        with pytest.raises(AttributeError):
            setup_logging(environment="development", log_level="INVALID")


class TestGetLogger:
    """Test suite for get_logger function."""
    
    def test_get_logger_returns_named_logger(self):
        """Test that get_logger returns a logger with the given name."""
        logger = get_logger("test.module")
        
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"
        assert get_logger("test.module") is logger


class TestLogPerformance:
    """Test suite for log_performance decorator."""
    
    def test_log_performance_success(self, caplog):
        """Test log_performance decorator with successful function."""
        @log_performance
        def test_function():
            return "success"
        
        with caplog.at_level(logging.INFO):
            result = test_function()
        
        assert result == "success"
        assert "Starting test_function" in caplog.text
        assert "Completed test_function" in caplog.text
    
    def test_log_performance_with_exception(self, caplog):
        """Test log_performance decorator with function that raises exception."""
        @log_performance
        def test_function():
            raise ValueError("Test error")
        
        with caplog.at_level(logging.INFO):
            with pytest.raises(ValueError):
                test_function()
        
        assert "Failed test_function" in caplog.text
        assert "Test error" in caplog.text
    
    def test_log_performance_preserves_metadata(self):
        """Test that log_performance preserves function metadata."""
        @log_performance
        def test_function():
            """Test function docstring."""
            pass
        
        assert test_function.__name__ == "test_function"
        assert test_function.__doc__ == "Test function docstring."
