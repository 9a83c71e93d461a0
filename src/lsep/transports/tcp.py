"""LSEP over TCP using asyncio streams."""

import asyncio
import logging
from typing import Optional, Tuple

from ..base import AsyncFramedSocket
from ..errors import ConnectionClosedError


def parse_address(address: str) -> Tuple[str, int]:
    """Split ``"<host>:<port>"`` or ``":<port>"`` into host and port.

    IPv6 hosts may be given in brackets, e.g. ``"[::1]:9000"``.
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port:
        raise ValueError(f"Address must look like host:port, got {address!r}")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in address {address!r}") from None
    if not 0 <= port_num <= 65535:
        raise ValueError(f"Port out of range in address {address!r}")
    return host.strip("[]"), port_num


class AsyncTcpSocket(AsyncFramedSocket):
    """LSEP socket over a TCP connection.

    Either dial out with ``connect()`` (or ``dial()``) or wrap a connection
    accepted by ``AsyncTcpListener``.
    """

    def __init__(
        self,
        address: Optional[str] = None,
        *,
        read_buffer_size: Optional[int] = None,
        read_timeout: Optional[float] = None,
        connect_timeout: float = 10.0,
    ):
        super().__init__(read_buffer_size=read_buffer_size, read_timeout=read_timeout)
        self.address = address
        self.connect_timeout = connect_timeout
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @classmethod
    def from_streams(
        cls,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        **kwargs,
    ) -> "AsyncTcpSocket":
        peer = writer.get_extra_info("peername")
        sock = cls(_format_peer(peer), **kwargs)
        sock._reader = reader
        sock._writer = writer
        return sock

    @property
    def peername(self):
        if self._writer is None:
            return None
        return self._writer.get_extra_info("peername")

    async def connect(self) -> None:
        """Dial ``address`` unless the socket is already connected."""
        if self._writer is not None:
            return
        if self.address is None:
            raise ConnectionError("No address to dial")

        host, port = parse_address(self.address)
        self.logger.debug(f"Dialing {host}:{port} (timeout={self.connect_timeout}s)")
        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(host or None, port),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"Timed out dialing {self.address}")

        self.logger.info(f"AsyncTcpSocket connected to {self.address}")

    async def _recv(self, size: int) -> bytes:
        if self._reader is None:
            raise ConnectionClosedError("Not connected")
        return await self._reader.read(size)

    async def _send(self, data: bytes) -> int:
        if self._writer is None:
            raise ConnectionClosedError("Not connected")
        self._writer.write(data)
        await self._writer.drain()
        return len(data)

    async def _close(self) -> None:
        writer = self._writer
        if writer is None:
            return
        writer.close()
        await writer.wait_closed()

    def _abort(self) -> None:
        if self._writer is not None:
            self._writer.transport.abort()


class AsyncTcpListener:
    """Accepts incoming LSEP connections on a TCP address."""

    def __init__(
        self,
        address: str,
        *,
        read_buffer_size: Optional[int] = None,
        read_timeout: Optional[float] = None,
    ):
        self.listen_on = address
        self.read_buffer_size = read_buffer_size
        self.read_timeout = read_timeout
        self.logger = logging.getLogger(f"lsep.{self.__class__.__name__}")
        self._server: Optional[asyncio.AbstractServer] = None
        self._pending: "asyncio.Queue[Optional[AsyncTcpSocket]]" = asyncio.Queue()

    @property
    def address(self) -> Tuple[str, int]:
        """The bound ``(host, port)``; useful after listening on port 0."""
        if self._server is None or not self._server.sockets:
            raise ConnectionError("Not listening")
        return self._server.sockets[0].getsockname()[:2]

    async def listen(self) -> None:
        host, port = parse_address(self.listen_on)
        self._pending = asyncio.Queue()
        self._server = await asyncio.start_server(self._on_client, host or None, port)
        self.logger.info(f"Listening on {self.address[0]}:{self.address[1]}")

    async def accept(self) -> AsyncTcpSocket:
        """Block until a client connects and return its socket.

        Raises:
            ConnectionError: If the listener is not listening, or is closed
                while waiting
        """
        if self._server is None:
            raise ConnectionError("Not listening")
        sock = await self._pending.get()
        if sock is None:
            # Closed while waiting; pass the wake-up on to other waiters
            self._pending.put_nowait(None)
            raise ConnectionError("Not listening")
        self.logger.debug(f"Accepted connection from {sock.peername}")
        return sock

    async def close(self) -> None:
        """Stop listening and drop connections that were never accepted."""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        while not self._pending.empty():
            self._pending.get_nowait()._abort()
        self._pending.put_nowait(None)
        await server.wait_closed()
        self.logger.info("AsyncTcpListener closed")

    async def _on_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        sock = AsyncTcpSocket.from_streams(
            reader,
            writer,
            read_buffer_size=self.read_buffer_size,
            read_timeout=self.read_timeout,
        )
        await self._pending.put(sock)

    async def __aenter__(self):
        await self.listen()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False


def _format_peer(peer) -> Optional[str]:
    if not peer:
        return None
    host, port = peer[0], peer[1]
    return f"[{host}]:{port}" if ":" in host else f"{host}:{port}"


async def dial(address: str, **kwargs) -> AsyncTcpSocket:
    """Connect to a remote LSEP peer."""
    sock = AsyncTcpSocket(address, **kwargs)
    await sock.connect()
    return sock


async def listen(address: str, **kwargs) -> AsyncTcpListener:
    """Start listening for LSEP peers on ``address``."""
    listener = AsyncTcpListener(address, **kwargs)
    await listener.listen()
    return listener
