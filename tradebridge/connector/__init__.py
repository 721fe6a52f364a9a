"""
Messaging connector: lifecycle worker, inbound handlers and command channel.
"""
from .cancellation import CancellationSignal
from .command_channel import CommandChannel
from .handlers import ChannelStats, InboundHandlers
from .worker import ConnectorState, ConnectorWorker

__all__ = [
    "CancellationSignal",
    "ChannelStats",
    "CommandChannel",
    "ConnectorState",
    "ConnectorWorker",
    "InboundHandlers",
]
