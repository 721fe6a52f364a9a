"""
Socket set owning the three bus channels.

- SUB connects to the market-data publisher and subscribes to every topic
- REQ connects to the command handler; strict request then reply
- PULL connects to the status-report pusher
"""

import threading
from typing import Optional

import structlog
import zmq

from ..config.defaults import EndpointConfig
from ..errors import ConnectorInitializationError
from ..services.contracts import CHANNEL_COMMAND, CHANNEL_MARKET_DATA, CHANNEL_STATUS_REPORT

logger = structlog.get_logger(__name__)

# Max wait for an interrupted sender to drop the request lock
INTERRUPT_WAIT_SECONDS = 1.0


class SocketSet:
    """Creates, connects and releases the SUB, REQ and PULL sockets."""

    def __init__(
        self,
        endpoints: EndpointConfig,
        context: Optional[zmq.Context] = None,
        linger_ms: int = 0,
        request_lock: Optional[threading.Lock] = None
    ):
        self.endpoints = endpoints
        self.linger_ms = linger_ms
        self.logger = logger
        # Shared with the command channel; guards every use of the REQ socket
        self.request_lock = request_lock or threading.Lock()

        self._context = context
        self._owns_context = context is None
        self._teardown_lock = threading.Lock()
        self._socket_lock = threading.Lock()
        self._torn_down = False
        self._connected: set[str] = set()

        self.subscriber: Optional[zmq.Socket] = None
        self.requester: Optional[zmq.Socket] = None
        self.puller: Optional[zmq.Socket] = None

    @property
    def created(self) -> bool:
        return self.subscriber is not None and self.requester is not None and self.puller is not None

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    @property
    def request_released(self) -> bool:
        """True once the REQ socket is gone or closed."""
        return self.requester is None or self.requester.closed

    def _channels(self) -> list[tuple[str, Optional[zmq.Socket], str]]:
        return [
            (CHANNEL_MARKET_DATA, self.subscriber, self.endpoints.market_data_address),
            (CHANNEL_COMMAND, self.requester, self.endpoints.command_address),
            (CHANNEL_STATUS_REPORT, self.puller, self.endpoints.status_report_address),
        ]

    def create(self) -> None:
        """
        Create the context (unless one was supplied) and the three sockets.

        Raises:
            ConnectorInitializationError: If any socket cannot be created
        """
        if self._torn_down:
            raise ConnectorInitializationError("Socket set was already released")

        channel = "context"
        try:
            if self._context is None:
                self._context = zmq.Context()

            channel = CHANNEL_MARKET_DATA
            self.subscriber = self._context.socket(zmq.SUB)
            self.subscriber.setsockopt(zmq.LINGER, self.linger_ms)

            channel = CHANNEL_COMMAND
            self.requester = self._context.socket(zmq.REQ)
            self.requester.setsockopt(zmq.LINGER, self.linger_ms)
            # A timed-out request must not wedge the socket; stale replies are discarded
            self.requester.setsockopt(zmq.REQ_RELAXED, 1)
            self.requester.setsockopt(zmq.REQ_CORRELATE, 1)

            channel = CHANNEL_STATUS_REPORT
            self.puller = self._context.socket(zmq.PULL)
            self.puller.setsockopt(zmq.LINGER, self.linger_ms)
        except zmq.ZMQError as e:
            raise ConnectorInitializationError(
                f"Failed to create {channel} socket: {e}",
                channel=channel
            ) from e

        self.logger.debug("Sockets created", owns_context=self._owns_context)

    def connect(self) -> None:
        """
        Connect every socket to its endpoint and subscribe to all topics.

        Raises:
            ConnectorInitializationError: If sockets are missing or a connect fails
        """
        if not self.created:
            raise ConnectorInitializationError("Sockets must be created before connecting")

        for channel, sock, address in self._channels():
            try:
                sock.connect(address)
            except zmq.ZMQError as e:
                raise ConnectorInitializationError(
                    f"Failed to connect {channel} socket to {address}: {e}",
                    channel=channel,
                    address=address
                ) from e
            self._connected.add(channel)

            if sock is self.subscriber:
                # Empty filter receives every topic
                sock.setsockopt_string(zmq.SUBSCRIBE, "")

            self.logger.info("Socket connected", channel=channel, address=address)

    def teardown(self, lock_timeout: float = 5.0) -> bool:
        """
        Disconnect, close and release every socket, then the owned context.

        Safe to call any number of times from any thread; only the first call
        does any work and it never raises.

        Args:
            lock_timeout: Max seconds to wait for an in-flight command round

        Returns:
            True if this call released the sockets, False if already released
        """
        with self._teardown_lock:
            if self._torn_down:
                return False
            self._torn_down = True

        self._release_all(lock_timeout)
        return True

    def force_release(self) -> bool:
        """
        Release sockets without waiting out an in-flight command round.

        If another thread's teardown is blocked on the request lock, the
        sender holding it is interrupted so that teardown can finish.

        Returns:
            True if this call released or interrupted anything
        """
        with self._teardown_lock:
            in_progress = self._torn_down
            self._torn_down = True

        if not in_progress:
            self._release_all(lock_timeout=0.0)
            return True

        if self.requester is None:
            return False

        self.logger.warning("Teardown blocked by a command round, interrupting it")
        self._interrupt_requester()
        return True

    def _release_all(self, lock_timeout: float) -> None:
        self._release(CHANNEL_MARKET_DATA, "subscriber", self.endpoints.market_data_address)
        self._release(CHANNEL_STATUS_REPORT, "puller", self.endpoints.status_report_address)

        acquired = self.request_lock.acquire(timeout=lock_timeout)
        if not acquired:
            self.logger.warning(
                "Command round still in flight, forcing request socket release",
                lock_timeout=lock_timeout
            )
            if self._interrupt_requester():
                acquired = self.request_lock.acquire(timeout=INTERRUPT_WAIT_SECONDS)
        try:
            self._release(CHANNEL_COMMAND, "requester", self.endpoints.command_address)
        finally:
            if acquired:
                self.request_lock.release()

        context = self._context
        if self._owns_context and context is not None:
            try:
                context.term()
            except zmq.ZMQError as e:
                self.logger.warning("Context termination failed", error=str(e))
            self._context = None

        self.logger.info("Sockets released")

    def _interrupt_requester(self) -> bool:
        """
        Make a sender blocked on the REQ socket return.

        An owned context is shut down, which fails blocking calls with ETERM
        on the sender's own thread. A supplied context is shared, so the REQ
        socket is closed directly instead. Returns True if the sender will
        drop the request lock on its own.
        """
        context = self._context
        if self._owns_context and context is not None:
            try:
                context.shutdown()
                return True
            except zmq.ZMQError as e:
                self.logger.warning("Context shutdown failed", error=str(e))

        self._release(CHANNEL_COMMAND, "requester", self.endpoints.command_address)
        return False

    def _release(self, channel: str, attr: str, address: str) -> None:
        with self._socket_lock:
            sock: Optional[zmq.Socket] = getattr(self, attr)
            if sock is None:
                return
            setattr(self, attr, None)

        try:
            if channel in self._connected and not sock.closed:
                sock.disconnect(address)
        except zmq.ZMQError as e:
            # Endpoint may already be gone
            self.logger.debug("Disconnect skipped", channel=channel, error=str(e))

        try:
            if not sock.closed:
                sock.close(linger=self.linger_ms)
        except zmq.ZMQError as e:
            self.logger.debug("Close skipped", channel=channel, error=str(e))

        self._connected.discard(channel)
