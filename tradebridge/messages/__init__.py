"""
Message schemas and JSON wire codec for the trading bus.
"""
from .codec import (
    decode_command,
    decode_market_data,
    decode_status_report,
    encode_command,
    encode_market_data,
    encode_status_report,
)
from .models import Command, CommandOutcome, CommandResult, MarketData, StatusReport

__all__ = [
    "Command",
    "CommandOutcome",
    "CommandResult",
    "MarketData",
    "StatusReport",
    "decode_command",
    "decode_market_data",
    "decode_status_report",
    "encode_command",
    "encode_market_data",
    "encode_status_report",
]
