"""Async serial LSEP transport using asyncio.to_thread()."""

import asyncio
from typing import Optional

import serial

from ..base import AsyncFramedSocket
from ..errors import ConnectionClosedError


class AsyncSerialSocket(AsyncFramedSocket):
    """LSEP socket over a serial line, using asyncio.to_thread() for blocking I/O.

    ``port`` is anything pyserial's ``serial_for_url`` accepts: a device path
    such as ``/dev/ttyUSB0``, ``loop://`` or ``socket://host:port``.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 1.0,
        *,
        poll_interval: float = 0.01,
        read_buffer_size: Optional[int] = None,
        read_timeout: Optional[float] = None,
    ):
        super().__init__(read_buffer_size=read_buffer_size, read_timeout=read_timeout)
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._serial: Optional[serial.SerialBase] = None

    async def connect(self) -> None:
        """Open the serial port and drop any stale input."""
        if self._serial is not None:
            return

        def _open_serial():
            self.logger.debug(
                f"Opening serial port {self.port} at {self.baudrate} baud (timeout={self.timeout}s)"
            )
            return serial.serial_for_url(self.port, baudrate=self.baudrate, timeout=self.timeout)

        self._serial = await asyncio.to_thread(_open_serial)

        ser = self._serial
        flushed = await asyncio.to_thread(lambda: ser.in_waiting)
        await asyncio.to_thread(ser.reset_input_buffer)
        if flushed > 0:
            self.logger.debug(f"Flushed {flushed} bytes from input buffer")

        self.logger.info(f"AsyncSerialSocket connected to {self.port}")

    async def _recv(self, size: int) -> bytes:
        # A serial line has no EOF; wait until something is pending.
        while True:
            ser = self._require_serial()
            available = await asyncio.to_thread(lambda: ser.in_waiting)
            if available > 0:
                return await asyncio.to_thread(ser.read, min(available, size))
            await asyncio.sleep(self.poll_interval)

    async def _send(self, data: bytes) -> int:
        ser = self._require_serial()
        written = await asyncio.to_thread(ser.write, data)
        await asyncio.to_thread(ser.flush)
        return len(data) if written is None else written

    async def _close(self) -> None:
        if self._serial is not None:
            self.logger.debug(f"Closing serial port {self.port}")
            await asyncio.to_thread(self._serial.close)
            self._serial = None

    def _abort(self) -> None:
        if self._serial is not None:
            self._serial.close()
            self._serial = None

    def _require_serial(self) -> serial.SerialBase:
        if self._serial is None:
            raise ConnectionClosedError("Not connected")
        return self._serial
