"""
ZeroMQ transport: socket ownership and the readiness reactor.
"""
from .reactor import Reactor
from .sockets import SocketSet

__all__ = ["Reactor", "SocketSet"]
