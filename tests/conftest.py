"""Pytest configuration and shared fixtures."""

import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict
from unittest.mock import Mock

import pytest
import zmq

from tradebridge.config.defaults import ConnectorParams, EndpointConfig
from tradebridge.status.service import SystemStatusService


@pytest.fixture
def sample_market_data() -> Dict[str, Any]:
    """Sample market data payload as published on the bus."""
    return {
        "Symbol": "EURUSD",
        "Bid": 1.08412,
        "Ask": 1.08427,
        "Timestamp": "2024-03-01T12:00:00.1234567Z",
    }


@pytest.fixture
def sample_status_report() -> Dict[str, Any]:
    """Sample status report payload as pushed on the bus."""
    return {
        "StrategyId": "mean-revert-01",
        "Status": "Running",
        "Message": "Position opened",
        "Timestamp": "2024-03-01T12:00:05Z",
    }


@pytest.fixture
def endpoints() -> EndpointConfig:
    """Endpoint configuration pointing at unused local ports."""
    return EndpointConfig(
        market_data_address="tcp://127.0.0.1:5556",
        command_address="tcp://127.0.0.1:5557",
        status_report_address="tcp://127.0.0.1:5558",
    )


@pytest.fixture
def fast_params() -> ConnectorParams:
    """Connector parameters with short timeouts for tests."""
    return ConnectorParams(
        command_timeout_seconds=0.3,
        shutdown_timeout_seconds=2.0,
        send_startup_command=False,
        startup_command_delay_seconds=0.0,
    )


@pytest.fixture
def status_service() -> SystemStatusService:
    return SystemStatusService()


@pytest.fixture
def strategy() -> Mock:
    return Mock(spec=["on_market_update", "on_status_update"])


@pytest.fixture
def performance() -> Mock:
    return Mock(spec=["on_market_update"])


@dataclass
class BusPeers:
    """The remote side of the bus: publisher, replier and pusher."""
    context: zmq.Context
    publisher: zmq.Socket
    replier: zmq.Socket
    pusher: zmq.Socket
    endpoints: EndpointConfig

    def publish_market_data(self, payload: Dict[str, Any], topic: str = "MD") -> None:
        self.publisher.send_multipart([topic.encode(), json.dumps(payload).encode()])

    def push_status_report(self, payload: Dict[str, Any]) -> None:
        self.pusher.send_string(json.dumps(payload))


@pytest.fixture
def bus_peers():
    """Bind PUB, REP and PUSH peers on random local ports."""
    context = zmq.Context()
    publisher = context.socket(zmq.PUB)
    replier = context.socket(zmq.REP)
    pusher = context.socket(zmq.PUSH)

    host = "tcp://127.0.0.1"
    pub_port = publisher.bind_to_random_port(host)
    rep_port = replier.bind_to_random_port(host)
    push_port = pusher.bind_to_random_port(host)

    peers = BusPeers(
        context=context,
        publisher=publisher,
        replier=replier,
        pusher=pusher,
        endpoints=EndpointConfig(
            market_data_address=f"{host}:{pub_port}",
            command_address=f"{host}:{rep_port}",
            status_report_address=f"{host}:{push_port}",
        ),
    )
    yield peers

    for sock in (publisher, replier, pusher):
        sock.close(linger=0)
    context.term()


def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll predicate until it is true or the timeout elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def _publish_until(
    peers: BusPeers,
    payload: Dict[str, Any],
    predicate: Callable[[], bool],
    timeout: float = 5.0
) -> bool:
    """Publish repeatedly until the subscriber has joined and predicate holds."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        peers.publish_market_data(payload)
        if _wait_until(predicate, timeout=0.05):
            return True
    return predicate()


def _reply_once(sock: zmq.Socket, reply: str = "OK", timeout_ms: int = 5000) -> threading.Thread:
    """Answer a single request on a REP socket from a background thread."""
    received: list[str] = []

    def serve():
        if sock.poll(timeout_ms, zmq.POLLIN):
            received.append(sock.recv_string())
            sock.send_string(reply)

    thread = threading.Thread(target=serve, daemon=True)
    thread.received = received  # type: ignore[attr-defined]
    thread.start()
    return thread


@pytest.fixture
def wait_until():
    """Helper polling a predicate with a timeout."""
    return _wait_until


@pytest.fixture
def publish_until():
    """Helper publishing market data until the subscriber sees it."""
    return _publish_until


@pytest.fixture
def reply_once():
    """Helper answering one request on a REP socket."""
    return _reply_once
