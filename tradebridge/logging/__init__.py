"""
Logging configuration and utilities for the TradeBridge connector.
"""
from .config import configure_logging, get_connector_logger, get_logger

__all__ = ["configure_logging", "get_connector_logger", "get_logger"]
