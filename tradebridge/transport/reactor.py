"""
Single-threaded reactor for the passive bus channels.

A registration list of (socket, handler) pairs is served by one blocking
``zmq.Poller.poll`` call. A local socket pair is registered alongside the
bus sockets so that ``stop()`` can wake the blocked poll from any thread.
Handlers run synchronously on the reactor thread in registration order and
must only parse and route.
"""

import socket
import threading
from typing import Callable, Optional

import structlog
import zmq

from ..errors import TransportError, is_expected_shutdown

logger = structlog.get_logger(__name__)

Handler = Callable[[zmq.Socket], None]


class Reactor:
    """Blocking readiness multiplexer with a thread-safe stop request."""

    def __init__(self, name: str = "reactor"):
        self.name = name
        self.logger = logger.bind(reactor=name)
        self._poller = zmq.Poller()
        self._registrations: list[tuple[zmq.Socket, Handler]] = []
        self._lock = threading.Lock()
        self._stop_requested = threading.Event()
        self._running = threading.Event()
        self._stopped = threading.Event()
        self._closed = False

        self._wake_reader, self._wake_writer = socket.socketpair()
        self._wake_reader.setblocking(False)
        self._wake_writer.setblocking(False)
        self._poller.register(self._wake_reader, zmq.POLLIN)

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def register(self, sock: zmq.Socket, handler: Handler) -> None:
        """Register a socket for read readiness with its handler."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Reactor is closed")
            if self._running.is_set():
                raise RuntimeError("Cannot register sockets while the reactor is running")
            self._registrations.append((sock, handler))
            self._poller.register(sock, zmq.POLLIN)

    def run(self) -> None:
        """
        Dispatch readiness events until stop() is called.

        Returns when a stop is requested or the zmq context is terminated.

        Raises:
            TransportError: If polling fails for any other reason
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Reactor is closed")
            registrations = list(self._registrations)
            self._stopped.clear()
            self._running.set()

        self.logger.info("Reactor started", sockets=len(registrations))
        try:
            while not self._stop_requested.is_set():
                try:
                    events = dict(self._poller.poll())
                except zmq.ZMQError as e:
                    if is_expected_shutdown(e):
                        self.logger.info("Context terminated, reactor exiting")
                        break
                    raise TransportError(
                        f"Reactor poll failed: {e}", errno=e.errno
                    ) from e

                if self._wake_reader in events:
                    self._drain_wakeups()

                for sock, handler in registrations:
                    if self._stop_requested.is_set():
                        break
                    if events.get(sock, 0) & zmq.POLLIN:
                        self._dispatch(sock, handler)
        finally:
            self._running.clear()
            self._stopped.set()
            self.logger.info("Reactor stopped")

    def stop(self) -> None:
        """Ask the reactor to return. Safe from any thread, idempotent."""
        self._stop_requested.set()
        with self._lock:
            if self._closed:
                return
            try:
                self._wake_writer.send(b"\x00")
            except BlockingIOError:
                pass  # wake-up already pending

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Wait for a running loop to return; True if it has."""
        if not self._running.is_set() and not self._stopped.is_set():
            return True
        return self._stopped.wait(timeout)

    def close(self) -> None:
        """Unregister everything and release the wake-up pair."""
        with self._lock:
            if self._closed:
                return
            self._closed = True

            for sock, _handler in self._registrations:
                try:
                    self._poller.unregister(sock)
                except KeyError:
                    self.logger.debug("Socket was not registered")
            self._registrations.clear()
            self._poller.unregister(self._wake_reader)
            self._wake_reader.close()
            self._wake_writer.close()

    def _drain_wakeups(self) -> None:
        try:
            while self._wake_reader.recv(64):
                pass
        except BlockingIOError:
            return

    def _dispatch(self, sock: zmq.Socket, handler: Handler) -> None:
        try:
            handler(sock)
        except Exception as e:
            # Handlers normally contain their own failures
            self.logger.error(
                "Handler raised, continuing",
                handler=getattr(handler, "__name__", repr(handler)),
                error=str(e),
                exc_info=True
            )
