"""
Error classification for the messaging connector.

This module provides a structured exception hierarchy separating
recoverable data quality problems (a malformed message is dropped and the
loop keeps running) from system failures (bad configuration or a socket
that cannot be created stops the connector).
"""

from .data_quality import (
    DataQualityError,
    MalformedMessageError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
    ConnectorInitializationError,
    TransportError,
)
from .transport import (
    EXPECTED_SHUTDOWN_ERRNOS,
    is_expected_shutdown,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "MalformedMessageError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "ConnectorInitializationError",
    "TransportError",
    # Transport classification
    "EXPECTED_SHUTDOWN_ERRNOS",
    "is_expected_shutdown",
]
