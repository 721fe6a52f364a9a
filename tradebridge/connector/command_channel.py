"""
Command channel over the REQ socket.

One request/reply round is in flight at a time. Callers queue on the
request lock shared with the socket set, so overlapping senders are
serialized instead of interleaving frames. Every round ends in a
CommandResult; no exception escapes ``send``.
"""

import threading
import time
from typing import Optional

import structlog
import zmq
from structlog.types import FilteringBoundLogger

from ..errors import is_expected_shutdown
from ..messages.codec import encode_command
from ..messages.models import Command, CommandResult
from ..transport.sockets import SocketSet

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


class CommandChannel:
    """Serializes outbound commands with a bounded wait for each reply."""

    def __init__(
        self,
        socket_set: SocketSet,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        bound_logger: Optional[FilteringBoundLogger] = None
    ):
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self.socket_set = socket_set
        self.timeout_seconds = timeout_seconds
        self.logger = bound_logger or logger
        self._rounds = 0
        self._timeouts = 0

    @property
    def lock(self) -> threading.Lock:
        return self.socket_set.request_lock

    def send(self, command: Command) -> CommandResult:
        """
        Send one command and wait up to the timeout for its reply.

        Args:
            command: Command to send

        Returns:
            CommandResult with outcome REPLIED, TIMED_OUT, RELEASED or FAILED
        """
        try:
            frame = encode_command(command)
        except (TypeError, ValueError) as e:
            self.logger.error(
                "Command parameters are not serializable",
                command=command.name,
                error=str(e)
            )
            return CommandResult.failed(f"Encoding error: {e}")

        with self.lock:
            sock = self.socket_set.requester
            if sock is None or sock.closed:
                self.logger.warning(
                    "Request socket already released, command not sent",
                    command=command.name
                )
                return CommandResult.released("Request socket already released")

            start_time = time.monotonic()
            try:
                self.logger.info("Sending command", command=command.name, frame=frame)
                sock.send_string(frame)
                reply = self._wait_for_reply(sock, start_time + self.timeout_seconds)
            except zmq.ZMQError as e:
                if is_expected_shutdown(e) or sock.closed:
                    self.logger.warning(
                        "Request socket released during command round",
                        command=command.name,
                        errno=e.errno
                    )
                    return CommandResult.released(str(e))

                self.logger.error(
                    "Command round failed",
                    command=command.name,
                    errno=e.errno,
                    error=str(e)
                )
                return CommandResult.failed(str(e))
            except UnicodeDecodeError as e:
                self.logger.error("Command reply is not UTF-8", command=command.name)
                return CommandResult.failed(f"Reply decoding error: {e}")
            finally:
                self._rounds += 1

        elapsed_ms = int((time.monotonic() - start_time) * 1000)

        if reply is None:
            self._timeouts += 1
            self.logger.warning(
                "Command reply timed out",
                command=command.name,
                timeout_seconds=self.timeout_seconds
            )
            return CommandResult.timed_out(elapsed_ms)

        self.logger.info(
            "Command reply received",
            command=command.name,
            reply=reply,
            elapsed_ms=elapsed_ms
        )
        return CommandResult.success(reply, elapsed_ms)

    def _wait_for_reply(self, sock: zmq.Socket, deadline: float) -> Optional[str]:
        """Receive the reply to the current request, or None once the deadline passes."""
        while True:
            remaining_ms = int((deadline - time.monotonic()) * 1000)
            if remaining_ms <= 0:
                return None
            if not sock.poll(remaining_ms, zmq.POLLIN):
                return None
            try:
                return sock.recv_string(zmq.NOBLOCK)
            except zmq.Again:
                # Readiness was for a stale reply discarded by REQ_CORRELATE
                self.logger.debug("Discarded stale command reply")

    def get_stats(self) -> dict[str, int]:
        """Get round counters."""
        return {"rounds": self._rounds, "timeouts": self._timeouts}
