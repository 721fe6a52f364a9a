"""
Connector worker: lifecycle owner of the bus connection.

Drives the connector state machine

    CREATED -> INITIALIZING -> CONNECTING -> RUNNING -> STOPPING -> STOPPED

with FAILED reachable from INITIALIZING, CONNECTING and RUNNING. Owns the
socket set, the reactor and the command channel, and reports per-channel
connectivity to the status sink.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Any, Optional

import zmq
from structlog.types import FilteringBoundLogger

from ..config.defaults import ConnectorParams, EndpointConfig
from ..errors import ConfigurationError
from ..logging.config import get_connector_logger, log_state_transition
from ..messages.models import Command, CommandResult
from ..services.contracts import PerformanceSink, StatusSink, StrategySink
from ..transport.reactor import Reactor
from ..transport.sockets import INTERRUPT_WAIT_SECONDS, SocketSet
from .cancellation import CancellationSignal
from .command_channel import CommandChannel
from .handlers import InboundHandlers


class ConnectorState(Enum):
    """Lifecycle states of the connector worker."""
    CREATED = "created"
    INITIALIZING = "initializing"
    CONNECTING = "connecting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


TERMINAL_STATES = frozenset({ConnectorState.STOPPED, ConnectorState.FAILED})


class ConnectorWorker:
    """
    Bridges the three bus channels into the in-process collaborators.

    Construction validates the endpoints and touches no sockets. ``start``
    blocks until cancellation or failure; ``start_background`` runs it on a
    dedicated reactor thread and ``stop`` tears it down within a bounded
    interval.
    """

    def __init__(
        self,
        endpoints: EndpointConfig,
        strategy: StrategySink,
        performance: PerformanceSink,
        status_sink: StatusSink,
        params: Optional[ConnectorParams] = None,
        bound_logger: Optional[FilteringBoundLogger] = None,
        context: Optional[zmq.Context] = None,
        name: str = "connector"
    ):
        missing = endpoints.missing_fields() if endpoints is not None else [
            "market_data_address", "command_address", "status_report_address"
        ]
        if missing:
            raise ConfigurationError(
                f"Missing endpoint configuration: {', '.join(missing)}",
                missing_fields=missing
            )

        self.endpoints = endpoints
        self.params = params or ConnectorParams()
        self.status_sink = status_sink
        self.name = name
        self.logger = bound_logger or get_connector_logger(__name__, worker=name)
        self.handlers = InboundHandlers(strategy, performance, status_sink, bound_logger=self.logger)

        self._context = context
        self._state = ConnectorState.CREATED
        self._state_changed = threading.Condition()
        self._cancel: Optional[CancellationSignal] = None
        self._thread: Optional[threading.Thread] = None
        self._finished = threading.Event()

        self._socket_set: Optional[SocketSet] = None
        self._reactor: Optional[Reactor] = None
        self._command_channel: Optional[CommandChannel] = None

        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()
        self._release_lock = threading.Lock()
        self._released = False
        self.last_error: Optional[BaseException] = None

        self.logger.info("Connector worker created", endpoints=self.endpoints.as_channels())

    @property
    def state(self) -> ConnectorState:
        with self._state_changed:
            return self._state

    @property
    def command_channel(self) -> Optional[CommandChannel]:
        return self._command_channel

    def start(self, cancel_signal: Optional[CancellationSignal] = None) -> ConnectorState:
        """
        Run the connector until cancellation or a fatal failure.

        Args:
            cancel_signal: Signal whose cancellation stops the reactor

        Returns:
            The terminal state, STOPPED or FAILED
        """
        with self._state_changed:
            if self._state is not ConnectorState.CREATED:
                raise RuntimeError(f"Worker cannot start from state {self._state.value}")
        self._cancel = cancel_signal or CancellationSignal()

        try:
            return self._run(self._cancel)
        finally:
            self._finished.set()

    def start_background(self, cancel_signal: Optional[CancellationSignal] = None) -> threading.Thread:
        """Run ``start`` on a dedicated reactor thread."""
        if self._thread is not None:
            raise RuntimeError("Worker was already started")

        self._cancel = cancel_signal or CancellationSignal()
        self._thread = threading.Thread(
            target=self.start,
            args=(self._cancel,),
            name=f"{self.name}-reactor",
            daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Cancel the connector and wait for it to stop.

        Resources are released forcibly when the reactor has not returned
        within the timeout. Safe to call repeatedly.

        Args:
            timeout: Seconds to wait, defaults to shutdown_timeout_seconds

        Returns:
            True if the reactor stopped gracefully within the timeout
        """
        if timeout is None:
            timeout = self.params.shutdown_timeout_seconds

        with self._state_changed:
            never_started = self._state is ConnectorState.CREATED and self._cancel is None
        if never_started:
            self._transition(ConnectorState.STOPPED, "stop_before_start")
            self._finished.set()
            return True

        if self._cancel is not None:
            self._cancel.cancel()

        if threading.current_thread() is self._thread:
            return True

        graceful = self._finished.wait(timeout)
        if not graceful:
            self.logger.warning(
                "Connector did not stop within timeout, forcing release",
                timeout_seconds=timeout
            )
            self._force_release()
            # Interrupted teardown still has to finish on the reactor thread
            self._finished.wait(INTERRUPT_WAIT_SECONDS)
        elif self._thread is not None:
            self._thread.join(timeout)

        return graceful

    def wait_for_state(self, *states: ConnectorState, timeout: Optional[float] = None) -> bool:
        """Block until the worker is in one of the given states."""
        with self._state_changed:
            return self._state_changed.wait_for(lambda: self._state in states, timeout)

    def send_command(self, command: Command) -> CommandResult:
        """Send a command on the calling thread and wait for its reply."""
        channel = self._command_channel
        if channel is None:
            self.logger.warning("Connector not running, command not sent", command=command.name)
            return CommandResult.released("Connector not running")
        return channel.send(command)

    def submit_command(self, command: Command) -> "Future[CommandResult]":
        """Send a command on a separate thread; the future holds the result."""
        executor = self._get_executor()
        if executor is None:
            future: Future[CommandResult] = Future()
            future.set_result(CommandResult.released("Connector released"))
            return future
        return executor.submit(self.send_command, command)

    def get_stats(self) -> dict[str, Any]:
        """Get connector counters."""
        return {
            "state": self.state.value,
            "channels": self.handlers.get_stats(),
            "command": self._command_channel.get_stats() if self._command_channel else {},
        }

    def _run(self, cancel: CancellationSignal) -> ConnectorState:
        self._transition(ConnectorState.INITIALIZING, "start")
        try:
            socket_set = SocketSet(
                self.endpoints,
                context=self._context,
                linger_ms=self.params.linger_ms
            )
            self._socket_set = socket_set
            socket_set.create()

            reactor = Reactor(name=f"{self.name}-reactor")
            self._reactor = reactor
            reactor.register(socket_set.subscriber, self.handlers.handle_market_data)
            reactor.register(socket_set.puller, self.handlers.handle_status_report)

            self._command_channel = CommandChannel(
                socket_set,
                timeout_seconds=self.params.command_timeout_seconds,
                bound_logger=self.logger
            )

            self._transition(ConnectorState.CONNECTING, "sockets_created")
            for channel, address in self.endpoints.as_channels().items():
                self.status_sink.set_channel_status(channel, f"Connecting to {address}")
            socket_set.connect()
        except Exception as e:
            self._fail(e, "initialization_error")
            return ConnectorState.FAILED

        for channel, address in self.endpoints.as_channels().items():
            self.status_sink.set_channel_status(channel, f"Connected to {address}")

        cancel.register(self._on_cancel)
        self._transition(ConnectorState.RUNNING, "connected")

        if self.params.send_startup_command:
            self._schedule_startup_command()

        try:
            reactor.run()
        except Exception as e:
            self._fail(e, "runtime_error")
            return ConnectorState.FAILED

        self._transition(ConnectorState.STOPPING, "reactor_returned")
        self._release(lock_timeout=self.params.shutdown_timeout_seconds)
        self._transition(ConnectorState.STOPPED, "released")
        return ConnectorState.STOPPED

    def _on_cancel(self) -> None:
        self.logger.info("Stop signal received, stopping reactor")
        if self._reactor is not None:
            self._reactor.stop()

    def _fail(self, error: BaseException, trigger: str) -> None:
        self.last_error = error
        self.logger.error(
            "Connector failed",
            error=str(error),
            error_type=type(error).__name__,
            exc_info=error
        )
        self._release(lock_timeout=self.params.shutdown_timeout_seconds, disconnected=False)
        for channel in self.endpoints.as_channels():
            self.status_sink.set_channel_status(channel, f"Error: {error}")
        self._transition(ConnectorState.FAILED, trigger, context={"error": str(error)})

    def _release(self, lock_timeout: float, disconnected: bool = True) -> bool:
        """Release reactor, sockets and executor exactly once; True if this call did."""
        with self._release_lock:
            if self._released:
                return False
            self._released = True

        self.logger.info("Releasing connector resources")

        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

        if self._reactor is not None:
            self._reactor.stop()
            self._reactor.close()

        if self._socket_set is not None:
            self._socket_set.teardown(lock_timeout=lock_timeout)

        if disconnected:
            for channel in self.endpoints.as_channels():
                self.status_sink.set_channel_status(channel, "Disconnected")

        self.logger.info("Connector resources released")
        return True

    def _force_release(self) -> None:
        """Release now, interrupting a teardown stuck behind a command round."""
        if not self._release(lock_timeout=0.0) and self._socket_set is not None:
            self._socket_set.force_release()

    def _get_executor(self) -> Optional[ThreadPoolExecutor]:
        with self._executor_lock:
            if self._released:
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=2,
                    thread_name_prefix=f"{self.name}-command"
                )
            return self._executor

    def _schedule_startup_command(self) -> None:
        executor = self._get_executor()
        if executor is not None:
            executor.submit(self._send_startup_command)

    def _send_startup_command(self) -> Optional[CommandResult]:
        cancel = self._cancel
        if cancel is not None and cancel.wait(self.params.startup_command_delay_seconds):
            return None

        command = Command(name=self.params.startup_command, parameters=None)
        return self.send_command(command)

    def _transition(
        self,
        new_state: ConnectorState,
        trigger: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        with self._state_changed:
            old_state = self._state
            self._state = new_state
            self._state_changed.notify_all()

        log_state_transition(
            self.logger,
            component=self.name,
            from_state=old_state.value,
            to_state=new_state.value,
            trigger=trigger,
            context=context
        )
