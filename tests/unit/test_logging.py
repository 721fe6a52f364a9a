"""Tests for logging helpers used by connector components."""

import structlog
from structlog.testing import capture_logs

from tradebridge.logging.config import configure_logging, get_connector_logger, log_state_transition


class TestLoggingHelpers:

    def test_configure_logging_json(self):
        """Test JSON configuration installs the JSON renderer."""
        configure_logging(level="DEBUG", format_json=True, include_caller=True)

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_connector_logger_binds_subsystem(self):
        with capture_logs() as logs:
            get_connector_logger("tests.connector", worker="w1").info("hello")

        assert logs[0]["subsystem"] == "connector"
        assert logs[0]["worker"] == "w1"
        assert logs[0]["event"] == "hello"

    def test_state_transition_logged_at_info(self):
        with capture_logs() as logs:
            log_state_transition(
                structlog.get_logger("tests.transition"),
                component="connector",
                from_state="connecting",
                to_state="running",
                trigger="connected"
            )

        assert logs == [{
            "event": "State transition",
            "log_level": "info",
            "component": "connector",
            "from_state": "connecting",
            "to_state": "running",
            "trigger": "connected",
        }]

    def test_failed_transition_logged_at_error(self):
        with capture_logs() as logs:
            log_state_transition(
                structlog.get_logger("tests.transition"),
                component="connector",
                from_state="initializing",
                to_state="failed",
                trigger="initialization_error",
                context={"error": "connect failed"}
            )

        assert logs[0]["log_level"] == "error"
        assert logs[0]["context"] == {"error": "connect failed"}
