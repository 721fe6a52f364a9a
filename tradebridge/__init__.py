"""
TradeBridge - ZeroMQ Trading Bus Connector

Bridges an external trading message bus (market-data broadcast, command
request/reply and status-report delivery) into an in-process application.
Owns socket lifecycle, multiplexes inbound channels on a single reactor
thread and serializes outbound commands one at a time.
"""

__version__ = "0.1.0"
__author__ = "TradeBridge Team"
