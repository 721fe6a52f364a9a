"""
Configuration for the messaging connector.

Endpoint addresses and connector parameters are loaded from YAML settings
files and environment variables on top of frozen dataclass defaults.
"""
from .defaults import AppConfig, ConnectorParams, EndpointConfig, LoggingParams, get_default_config
from .loader import ConfigLoader, load_app_config
from .validation import ConfigValidator, ValidationError

__all__ = [
    "AppConfig",
    "ConnectorParams",
    "EndpointConfig",
    "LoggingParams",
    "get_default_config",
    "ConfigLoader",
    "load_app_config",
    "ConfigValidator",
    "ValidationError",
]
