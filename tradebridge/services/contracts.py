"""Capability contracts the connector depends on."""

from typing import Protocol, runtime_checkable

from ..messages.models import MarketData, StatusReport

CHANNEL_MARKET_DATA = "market_data"
CHANNEL_COMMAND = "command"
CHANNEL_STATUS_REPORT = "status_report"
CHANNELS = (CHANNEL_MARKET_DATA, CHANNEL_COMMAND, CHANNEL_STATUS_REPORT)


@runtime_checkable
class StrategySink(Protocol):
    """Receives market updates and strategy status reports."""

    def on_market_update(self, data: MarketData) -> None: ...

    def on_status_update(self, report: StatusReport) -> None: ...


@runtime_checkable
class PerformanceSink(Protocol):
    """Receives market updates for performance tracking."""

    def on_market_update(self, data: MarketData) -> None: ...


@runtime_checkable
class StatusSink(Protocol):
    """One-way connectivity and data snapshot notifications."""

    def set_channel_status(self, channel: str, status: str) -> None: ...

    def update_last_market_data(self, data: MarketData) -> None: ...

    def update_last_status_report(self, report: StatusReport) -> None: ...
