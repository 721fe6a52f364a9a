"""
Canonical message records exchanged over the trading bus.

Inbound records are immutable once decoded and are shared read-only with
the domain collaborators and the status sink.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class MarketData:
    """Top-of-book quote broadcast on the market-data channel."""
    symbol: str
    bid: float
    ask: float
    timestamp: datetime     # Quote time as sent by the publisher

    @property
    def mid_price(self) -> float:
        """Mid price between bid and ask."""
        return (self.bid + self.ask) / 2.0

    @property
    def spread(self) -> float:
        """Bid-ask spread."""
        return self.ask - self.bid


@dataclass(frozen=True)
class Command:
    """Outbound command; parameters are opaque to the connector."""
    name: str
    parameters: Any = None  # any JSON-serializable value


@dataclass(frozen=True)
class StatusReport:
    """Strategy status pushed on the status-report channel."""
    strategy_id: str
    status: str
    message: str
    timestamp: datetime


class CommandOutcome(Enum):
    """How a command round ended."""
    REPLIED = "replied"
    TIMED_OUT = "timed_out"
    RELEASED = "released"
    FAILED = "failed"


@dataclass(frozen=True)
class CommandResult:
    """Result of one request/reply round on the command channel."""
    outcome: CommandOutcome
    reply: Optional[str] = None
    elapsed_ms: Optional[int] = None
    error_msg: Optional[str] = None

    @property
    def replied(self) -> bool:
        return self.outcome is CommandOutcome.REPLIED

    @classmethod
    def success(cls, reply: str, elapsed_ms: int) -> "CommandResult":
        """Create result for a received reply."""
        return cls(outcome=CommandOutcome.REPLIED, reply=reply, elapsed_ms=elapsed_ms)

    @classmethod
    def timed_out(cls, elapsed_ms: int) -> "CommandResult":
        """Create result for a reply that never arrived."""
        return cls(outcome=CommandOutcome.TIMED_OUT, elapsed_ms=elapsed_ms)

    @classmethod
    def released(cls, error_msg: Optional[str] = None) -> "CommandResult":
        """Create result for a socket released before or during the round."""
        return cls(outcome=CommandOutcome.RELEASED, error_msg=error_msg)

    @classmethod
    def failed(cls, error_msg: str) -> "CommandResult":
        """Create result for any other failure."""
        return cls(outcome=CommandOutcome.FAILED, error_msg=error_msg)
