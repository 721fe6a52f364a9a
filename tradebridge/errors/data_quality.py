"""
Data quality error classifications for inbound bus messages.

These exceptions describe messages that arrived intact at the transport
layer but cannot be turned into a schema record. They are always handled
by dropping the message.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class MalformedMessageError(DataQualityError):
    """Payload exists but is not valid JSON or does not match the schema."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format
