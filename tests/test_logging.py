"""Unit tests for the logging configuration module.

This test module validates the structured logging configuration and context
binding, and that graph operations emit their events through it.
"""

import logging

import pytest
import structlog

from depgraph.config import GraphConfig
from depgraph.graph.dependency_graph import AddNodeResult, DependencyGraph
from depgraph.log_config import (
    bind_context,
    clear_context,
    configure_from_config,
    configure_logging,
    get_logger,
)


class TestLoggingConfiguration:
    """Test cases for logging configuration."""

    def test_configure_logging_info_level(self):
        """Test logging configuration with INFO level."""
        configure_logging(level="INFO", json_logs=True)
        logger = get_logger("test")
        assert logger is not None

    def test_configure_logging_invalid_level(self):
        """Test logging configuration with invalid level."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="INVALID", json_logs=True)

    def test_configure_logging_console_renderer(self):
        """Test logging configuration with console renderer."""
        configure_logging(level="INFO", json_logs=False)
        assert structlog.is_configured()

    def test_configure_from_config(self):
        """Test configuring logging from a GraphConfig."""
        configure_from_config(GraphConfig(logging_level="DEBUG", json_logs=True))
        assert structlog.is_configured()

    def test_get_logger_without_name(self):
        """Test getting a logger without a name."""
        configure_logging(level="INFO", json_logs=True)
        assert get_logger() is not None


class TestContextBinding:
    """Test cases for context binding functionality."""

    def setup_method(self):
        """Set up test environment before each test."""
        configure_logging(level="INFO", json_logs=True)
        clear_context()

    def teardown_method(self):
        """Clean up after each test."""
        clear_context()

    def test_bind_context_multiple_variables(self, caplog):
        """Test binding multiple context variables."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        bind_context(graph="modules", run_id="build-42")
        logger.info("build_started")

        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert "modules" in message
        assert "build-42" in message

    def test_rebinding_replaces_value(self, caplog):
        """Test that binding a key again replaces its value."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        bind_context(run_id="build-41")
        logger.info("first_run")

        bind_context(run_id="build-42")
        logger.info("second_run")

        assert len(caplog.records) == 2
        assert "build-41" not in caplog.records[1].getMessage()
        assert "build-42" in caplog.records[1].getMessage()

    def test_clear_context(self, caplog):
        """Test clearing all context variables."""
        caplog.set_level(logging.INFO)
        logger = get_logger("test")

        bind_context(graph="modules")
        logger.info("with_context")

        clear_context()
        logger.info("without_context")

        assert len(caplog.records) == 2
        assert "modules" not in caplog.records[1].getMessage()


@pytest.mark.integration
class TestGraphLogging:
    """Test that graph operations log through the configured pipeline."""

    def setup_method(self):
        """Set up test environment before each test."""
        configure_logging(level="DEBUG", json_logs=True)
        clear_context()

    def teardown_method(self):
        """Clean up after each test."""
        clear_context()

    def test_mutations_log_events(self, caplog):
        """Test that adding and removing nodes emits debug events."""
        caplog.set_level(logging.DEBUG)
        graph = DependencyGraph()

        graph.add_node("n1")
        graph.remove_node("n1")

        text = caplog.text
        assert "node_added" in text
        assert "node_removed" in text

    def test_failed_add_logs_exception(self, caplog):
        """Test that a FAILED add is logged as an error with the node ID."""
        caplog.set_level(logging.DEBUG)
        graph = DependencyGraph()

        assert graph.add_node("n1", 7) is AddNodeResult.FAILED

        errors = [record for record in caplog.records if record.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "add_node_failed" in errors[0].getMessage()
