"""
System status service.

Receives connector health and data snapshots from the connector thread and
forwards them, one way, to whatever consumer owns presentation state. The
connector never reads anything back.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

import structlog

from ..messages.models import MarketData, StatusReport
from ..services.contracts import CHANNELS

logger = structlog.get_logger(__name__)

INITIAL_CHANNEL_STATUS = "Initializing"
DEFAULT_CAPACITY = 10


class StatusEventKind(Enum):
    """Kinds of notifications emitted by the status service."""
    CHANNEL_STATUS = "channel_status"
    MARKET_DATA = "market_data"
    STATUS_REPORT = "status_report"


@dataclass(frozen=True)
class StatusEvent:
    """One notification delivered to listeners."""
    kind: StatusEventKind
    payload: Any
    channel: Optional[str] = None


@dataclass(frozen=True)
class StatusSnapshot:
    """Point-in-time copy of everything the service holds."""
    channel_statuses: dict[str, str]
    last_market_data: Optional[MarketData] = None
    last_status_report: Optional[StatusReport] = None
    recent_market_data: tuple[MarketData, ...] = field(default_factory=tuple)
    recent_status_reports: tuple[StatusReport, ...] = field(default_factory=tuple)


StatusListener = Callable[[StatusEvent], None]


class SystemStatusService:
    """Thread-safe status sink with bounded recent-item logs."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")

        self.logger = logger
        self.capacity = capacity
        self._lock = threading.Lock()
        self._channel_statuses: dict[str, str] = {
            channel: INITIAL_CHANNEL_STATUS for channel in CHANNELS
        }
        self._last_market_data: Optional[MarketData] = None
        self._last_status_report: Optional[StatusReport] = None
        # Oldest entries are evicted first
        self._recent_market_data: deque[MarketData] = deque(maxlen=capacity)
        self._recent_status_reports: deque[StatusReport] = deque(maxlen=capacity)
        self._listeners: list[StatusListener] = []

    def set_channel_status(self, channel: str, status: str) -> None:
        """Record the connectivity status string of one channel."""
        if channel not in self._channel_statuses:
            raise ValueError(f"Unknown channel: {channel}")

        with self._lock:
            self._channel_statuses[channel] = status

        self.logger.debug("Channel status updated", channel=channel, status=status)
        self._notify(StatusEvent(StatusEventKind.CHANNEL_STATUS, status, channel=channel))

    def update_last_market_data(self, data: MarketData) -> None:
        """Record the latest market data and append it to the ring log."""
        with self._lock:
            self._last_market_data = data
            self._recent_market_data.append(data)

        self._notify(StatusEvent(StatusEventKind.MARKET_DATA, data))

    def update_last_status_report(self, report: StatusReport) -> None:
        """Record the latest status report and append it to the ring log."""
        with self._lock:
            self._last_status_report = report
            self._recent_status_reports.append(report)

        self._notify(StatusEvent(StatusEventKind.STATUS_REPORT, report))

    def get_channel_status(self, channel: str) -> str:
        with self._lock:
            return self._channel_statuses[channel]

    @property
    def last_market_data(self) -> Optional[MarketData]:
        with self._lock:
            return self._last_market_data

    @property
    def last_status_report(self) -> Optional[StatusReport]:
        with self._lock:
            return self._last_status_report

    @property
    def recent_market_data(self) -> list[MarketData]:
        with self._lock:
            return list(self._recent_market_data)

    @property
    def recent_status_reports(self) -> list[StatusReport]:
        with self._lock:
            return list(self._recent_status_reports)

    def snapshot(self) -> StatusSnapshot:
        """Return a consistent copy of the current status."""
        with self._lock:
            return StatusSnapshot(
                channel_statuses=dict(self._channel_statuses),
                last_market_data=self._last_market_data,
                last_status_report=self._last_status_report,
                recent_market_data=tuple(self._recent_market_data),
                recent_status_reports=tuple(self._recent_status_reports),
            )

    def add_listener(self, listener: StatusListener) -> None:
        """Register a callback invoked after every update, on the updating thread."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, event: StatusEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                self.logger.error(
                    "Status listener failed",
                    event_kind=event.kind.value,
                    error=str(e),
                    exc_info=True
                )
