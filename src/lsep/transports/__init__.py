"""Transport modules for LSEP sockets."""

from .serial import AsyncSerialSocket
from .tcp import AsyncTcpListener, AsyncTcpSocket, dial, listen, parse_address

__all__ = [
    "AsyncSerialSocket",
    "AsyncTcpListener",
    "AsyncTcpSocket",
    "dial",
    "listen",
    "parse_address",
]
