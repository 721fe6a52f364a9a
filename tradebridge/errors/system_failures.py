"""
System failure error classifications for the connector lifecycle.

These exceptions represent failures that stop the connector: it either
never starts (configuration) or ends in the failed state (initialization).
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(SystemFailureError):
    """Endpoint or connector configuration is missing or invalid."""

    def __init__(self, message: str, missing_fields: Optional[list] = None,
                 invalid_fields: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.missing_fields = missing_fields or []
        self.invalid_fields = invalid_fields or []


class ConnectorInitializationError(SystemFailureError):
    """Socket, context or poller could not be created or connected."""

    def __init__(self, message: str, channel: Optional[str] = None,
                 address: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.channel = channel
        self.address = address


class TransportError(SystemFailureError):
    """Unexpected transport-layer failure reported by the messaging library."""

    def __init__(self, message: str, errno: Optional[int] = None,
                 channel: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errno = errno
        self.channel = channel
