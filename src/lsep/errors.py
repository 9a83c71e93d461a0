"""Exceptions raised by the LSEP codec and sockets."""


class LsepError(Exception):
    """Base class for all LSEP errors."""


class FramingError(LsepError):
    """Bytes on the wire are not a valid LSEP frame."""


class InsufficientData(FramingError):
    """Too few bytes to parse a frame header."""


class NeedMoreBytes(InsufficientData):
    """The header is valid so far but its length field is incomplete.

    Recoverable: read ``needed`` more bytes and parse again.
    """

    def __init__(self, needed: int):
        self.needed = needed
        super().__init__(f"missing frame data: {needed} more byte(s) needed")


class InvalidVersion(FramingError):
    def __init__(self, version: int):
        self.version = version
        super().__init__(f"invalid header version: {version}")


class InvalidOptions(FramingError):
    def __init__(self, options: int):
        self.options = options
        super().__init__(f"invalid header options value: {options}")


class BufferExceeded(LsepError):
    """A single read asked for more than the internal read buffer holds."""

    def __init__(self, requested: int, capacity: int):
        self.requested = requested
        self.capacity = capacity
        super().__init__(
            f"attempted to exceed read buffer by {requested - capacity} bytes"
        )


class ShortWriteError(LsepError, OSError):
    def __init__(self, expected: int, written: int):
        self.expected = expected
        self.written = written
        super().__init__(f"wanted to write {expected} bytes but wrote {written}")


class ConnectionClosedError(LsepError, ConnectionError):
    """The socket is closed, or the peer closed it mid-stream."""
