"""
Inbound message handlers for the market-data and status-report channels.

Both handlers run on the reactor thread. They read at most one message,
decode it and forward it to the domain collaborators and the status sink.
Nothing raised while reading, decoding or forwarding escapes a handler:
malformed payloads are dropped, expected-teardown transport errors are
suppressed and every other failure is logged.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog
import zmq
from structlog.types import FilteringBoundLogger

from ..errors import MalformedMessageError, is_expected_shutdown
from ..messages.codec import decode_market_data, decode_status_report
from ..messages.models import MarketData, StatusReport
from ..services.contracts import (
    CHANNEL_MARKET_DATA,
    CHANNEL_STATUS_REPORT,
    PerformanceSink,
    StatusSink,
    StrategySink,
)
from ..utils.time import calculate_latency

logger = structlog.get_logger(__name__)


@dataclass
class ChannelStats:
    """Simple counters for one inbound channel."""
    received: int = 0
    dispatched: int = 0
    dropped: int = 0
    forward_errors: int = 0
    transport_errors: int = 0
    last_received_time: Optional[float] = None

    def record_received(self) -> None:
        self.received += 1
        self.last_received_time = time.time()

    def as_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "dispatched": self.dispatched,
            "dropped": self.dropped,
            "forward_errors": self.forward_errors,
            "transport_errors": self.transport_errors,
            "drop_rate": self.dropped / max(self.received, 1),
            "last_received_time": self.last_received_time,
        }


class InboundHandlers:
    """Reads, decodes and routes inbound bus messages."""

    def __init__(
        self,
        strategy: StrategySink,
        performance: PerformanceSink,
        status_sink: StatusSink,
        bound_logger: Optional[FilteringBoundLogger] = None
    ):
        self.strategy = strategy
        self.performance = performance
        self.status_sink = status_sink
        self.logger = bound_logger or logger
        self._stats = {
            CHANNEL_MARKET_DATA: ChannelStats(),
            CHANNEL_STATUS_REPORT: ChannelStats(),
        }

    def handle_market_data(self, sock: zmq.Socket) -> None:
        """Handle one two-frame (topic, JSON) market-data message."""
        stats = self._stats[CHANNEL_MARKET_DATA]
        frames = self._receive(CHANNEL_MARKET_DATA, sock)
        if frames is None:
            return

        if len(frames) < 2:
            stats.dropped += 1
            self.logger.warning(
                "Market data message has too few frames, dropping",
                channel=CHANNEL_MARKET_DATA,
                frame_count=len(frames)
            )
            return

        topic = frames[0].decode("utf-8", errors="replace")
        payload = frames[1]

        try:
            data = decode_market_data(payload)
        except MalformedMessageError as e:
            stats.dropped += 1
            self.logger.warning(
                "Market data could not be deserialized, dropping",
                channel=CHANNEL_MARKET_DATA,
                topic=topic,
                error=str(e),
                raw_data=e.raw_data,
                expected_format=e.expected_format
            )
            return

        self.logger.debug(
            "Market data received",
            topic=topic,
            symbol=data.symbol,
            bid=data.bid,
            ask=data.ask,
            timestamp=data.timestamp.isoformat(),
            latency_s=calculate_latency(data.timestamp)
        )

        self._forward(CHANNEL_MARKET_DATA, data, (
            ("strategy", self.strategy.on_market_update),
            ("performance", self.performance.on_market_update),
            ("status_sink", self.status_sink.update_last_market_data),
        ))

    def handle_status_report(self, sock: zmq.Socket) -> None:
        """Handle one single-frame JSON status report."""
        stats = self._stats[CHANNEL_STATUS_REPORT]
        frames = self._receive(CHANNEL_STATUS_REPORT, sock)
        if frames is None:
            return

        if len(frames) > 1:
            self.logger.debug(
                "Status report has extra frames, using the first",
                frame_count=len(frames)
            )

        try:
            report = decode_status_report(frames[0])
        except MalformedMessageError as e:
            stats.dropped += 1
            self.logger.warning(
                "Status report could not be deserialized, dropping",
                channel=CHANNEL_STATUS_REPORT,
                error=str(e),
                raw_data=e.raw_data,
                expected_format=e.expected_format
            )
            return

        self.logger.info(
            "Status report received",
            strategy_id=report.strategy_id,
            status=report.status,
            report_message=report.message,
            timestamp=report.timestamp.isoformat()
        )

        self._forward(CHANNEL_STATUS_REPORT, report, (
            ("strategy", self.strategy.on_status_update),
            ("status_sink", self.status_sink.update_last_status_report),
        ))

    def get_stats(self) -> dict[str, dict[str, Any]]:
        """Get per-channel counters."""
        return {channel: stats.as_dict() for channel, stats in self._stats.items()}

    def _receive(self, channel: str, sock: zmq.Socket) -> Optional[list[bytes]]:
        """Read one message without blocking; None if nothing usable was read."""
        try:
            frames = sock.recv_multipart(zmq.NOBLOCK)
        except zmq.Again:
            return None
        except zmq.ZMQError as e:
            self._on_transport_error(channel, e)
            return None

        self._stats[channel].record_received()
        return frames

    def _on_transport_error(self, channel: str, error: zmq.ZMQError) -> None:
        if is_expected_shutdown(error):
            self.logger.debug(
                "Transport closed during shutdown",
                channel=channel,
                errno=error.errno
            )
            return

        self._stats[channel].transport_errors += 1
        self.logger.error(
            "Transport error while receiving",
            channel=channel,
            errno=error.errno,
            error=str(error)
        )

    def _forward(
        self,
        channel: str,
        item: MarketData | StatusReport,
        targets: tuple[tuple[str, Callable[[Any], None]], ...]
    ) -> None:
        stats = self._stats[channel]
        for target_name, target in targets:
            try:
                target(item)
            except Exception as e:
                stats.forward_errors += 1
                self.logger.error(
                    "Collaborator failed to process message",
                    channel=channel,
                    target=target_name,
                    error=str(e),
                    exc_info=True
                )
        stats.dispatched += 1
