"""Abstract base class for async LSEP sockets."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import cbor2

from .config import default_read_buffer_size
from .errors import BufferExceeded, ConnectionClosedError, NeedMoreBytes, ShortWriteError
from .framing import (
    MIN_HEADER_SIZE,
    HeaderOptions,
    HeaderVersion,
    build_frame,
    parse_frame_header,
)


class AsyncFramedSocket(ABC):
    """Message socket speaking LSEP over a reliable ordered byte stream.

    This class implements framing and read assembly; subclasses only move raw
    bytes over their transport (TCP, serial, ...).

    ``read()`` returns exactly one message and ``write()`` sends exactly one.
    Reads and writes are serialized independently, so one read and one
    write may be in flight at the same time. Any error during either
    operation tears the socket down: a peer has no way to recover from a
    partially read or written frame.
    """

    def __init__(
        self,
        read_buffer_size: Optional[int] = None,
        read_timeout: Optional[float] = None,
    ):
        if read_buffer_size is None:
            read_buffer_size = default_read_buffer_size()
        if read_buffer_size < 1:
            raise ValueError(f"read_buffer_size must be positive, got {read_buffer_size}")
        self.read_buffer_size = read_buffer_size
        self.read_timeout = read_timeout
        self.logger = logging.getLogger(f"lsep.{self.__class__.__name__}")

        # Bytes pulled from the transport but not consumed yet. They may
        # belong to the next frame, so they survive between reads.
        self._leftover = bytearray()
        self._closed = False
        self._read_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    @abstractmethod
    async def connect(self) -> None:
        """Establish the underlying connection.

        Raises:
            ConnectionError: If connection fails
        """

    @abstractmethod
    async def _recv(self, size: int) -> bytes:
        """Read up to ``size`` bytes; ``b""`` means the peer closed the stream."""

    @abstractmethod
    async def _send(self, data: bytes) -> int:
        """Hand ``data`` to the transport and return how many bytes it took."""

    @abstractmethod
    async def _close(self) -> None:
        """Close the transport gracefully."""

    @abstractmethod
    def _abort(self) -> None:
        """Tear the transport down immediately, without waiting."""

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Close the socket. Calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._leftover.clear()
        self.logger.debug("Closing connection")
        await self._close()
        self.logger.info(f"{self.__class__.__name__} closed")

    async def write(self, payload: bytes) -> None:
        """Send ``payload`` as a single frame.

        Raises:
            ConnectionClosedError: If the socket is already closed
            ShortWriteError: If the transport accepted only part of the frame
        """
        async with self._write_lock:
            self._ensure_open()
            header = build_frame(HeaderVersion.V1, HeaderOptions.RAW, len(payload))
            self.logger.debug(f"→ FRAME header={header.hex()} ({len(payload)} bytes)")
            try:
                await self._send_all(header)
                if payload:
                    await self._send_all(payload)
            except BaseException as e:
                self._fail(e)
                raise

    async def read(self) -> bytes:
        """Block until one complete message has arrived and return its payload.

        Raises:
            ConnectionClosedError: If the socket is closed or the peer hangs up
            FramingError: If the peer sent an invalid header
            BufferExceeded: If the configured read buffer is misused
            TimeoutError: If ``read_timeout`` expired while waiting for data
        """
        async with self._read_lock:
            self._ensure_open()
            try:
                return await self._read_frame()
            except BaseException as e:
                self._fail(e)
                raise

    async def write_message(self, message: Any) -> None:
        """Encode ``message`` as CBOR and send it as one raw frame."""
        await self.write(cbor2.dumps(message))

    async def read_message(self) -> Any:
        """Read one frame and decode its payload as CBOR.

        A payload that is not valid CBOR raises ``ValueError`` but leaves the
        socket usable, since the frame itself was read completely.
        """
        payload = await self.read()
        try:
            return cbor2.loads(payload)
        except Exception as e:
            self.logger.error(f"CBOR decode failed: {e}")
            self.logger.error(f"Payload ({len(payload)} bytes): {payload[:64].hex()}...")
            raise ValueError(f"Failed to decode CBOR message: {e}") from e

    async def _read_frame(self) -> bytes:
        head = await self._read_exact(MIN_HEADER_SIZE)
        try:
            frame, prefix = parse_frame_header(head)
        except NeedMoreBytes as e:
            # The header describes its own size, so one more read is enough
            head += await self._read_exact(e.needed)
            frame, prefix = parse_frame_header(head)

        self.logger.debug(f"← FRAME header={head.hex()} ({frame.length} bytes)")

        payload = bytearray(prefix)
        while len(payload) < frame.length:
            chunk = min(self.read_buffer_size, frame.length - len(payload))
            payload += await self._read_exact(chunk)

        return bytes(payload)

    async def _read_exact(self, size: int) -> bytes:
        """Return exactly ``size`` bytes, serving buffered leftovers first."""
        if size > self.read_buffer_size:
            raise BufferExceeded(size, self.read_buffer_size)

        data = bytearray()
        if self._leftover:
            take = min(size, len(self._leftover))
            data += self._leftover[:take]
            del self._leftover[:take]

        while len(data) < size:
            chunk = await self._pull(self.read_buffer_size)
            if not chunk:
                raise ConnectionClosedError(
                    f"Connection closed by peer ({len(data)} of {size} bytes read)"
                )
            needed = size - len(data)
            view = memoryview(chunk)
            data += view[:needed]
            if len(chunk) > needed:
                self._leftover += view[needed:]

        return bytes(data)

    async def _pull(self, size: int) -> bytes:
        if self.read_timeout is None:
            return await self._recv(size)
        try:
            return await asyncio.wait_for(self._recv(size), timeout=self.read_timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(f"Read timeout after {self.read_timeout}s")

    async def _send_all(self, data: bytes) -> None:
        written = await self._send(data)
        if written != len(data):
            raise ShortWriteError(len(data), written)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ConnectionClosedError("Not connected")

    def _fail(self, exc: BaseException) -> None:
        """Tear the socket down after a fatal error in read or write."""
        if self._closed:
            return
        self._closed = True
        self._leftover.clear()
        self.logger.error(f"Fatal error, closing connection: {exc!r}")
        try:
            self._abort()
        except OSError as e:
            self.logger.warning(f"Error while aborting connection: {e}")

    async def __aenter__(self):
        """Async context manager entry - connects the socket."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - closes the socket."""
        await self.close()
        return False
