"""
Classification of ZeroMQ errors raised while the connector shuts down.

Closing the context or a socket underneath a blocked reader surfaces as a
ZMQError. Those two cases are expected during teardown and are not faults.
"""

import zmq

EXPECTED_SHUTDOWN_ERRNOS = frozenset({zmq.ETERM, zmq.ENOTSOCK})


def is_expected_shutdown(error: BaseException) -> bool:
    """Return True if a transport error only signals deliberate teardown."""
    if isinstance(error, zmq.ContextTerminated):
        return True
    return isinstance(error, zmq.ZMQError) and error.errno in EXPECTED_SHUTDOWN_ERRNOS
