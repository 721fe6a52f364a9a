"""
Collaborator contracts and domain service stubs.
"""
from .contracts import (
    CHANNEL_COMMAND,
    CHANNEL_MARKET_DATA,
    CHANNEL_STATUS_REPORT,
    CHANNELS,
    PerformanceSink,
    StatusSink,
    StrategySink,
)
from .managers import (
    EvaluationSystem,
    FundingManager,
    PerformanceManager,
    RiskManager,
    StrategyManager,
)

__all__ = [
    "CHANNEL_COMMAND",
    "CHANNEL_MARKET_DATA",
    "CHANNEL_STATUS_REPORT",
    "CHANNELS",
    "PerformanceSink",
    "StatusSink",
    "StrategySink",
    "EvaluationSystem",
    "FundingManager",
    "PerformanceManager",
    "RiskManager",
    "StrategyManager",
]
