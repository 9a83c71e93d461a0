"""LSEP: length-segmented message framing over byte streams.

Every message travels as one frame: a header byte packing version, payload
options and the width of the length field, a 1-8 byte big-endian length, then
the payload. Sockets built on ``AsyncFramedSocket`` turn a TCP connection or a
serial line into a message pipe where each ``read()`` returns exactly one
``write()`` from the peer.
"""

from .base import AsyncFramedSocket
from .config import configure_logging
from .errors import (
    BufferExceeded,
    ConnectionClosedError,
    FramingError,
    InsufficientData,
    InvalidOptions,
    InvalidVersion,
    LsepError,
    NeedMoreBytes,
    ShortWriteError,
)
from .framing import (
    Frame,
    Header,
    HeaderOptions,
    HeaderVersion,
    build_frame,
    byte_width,
    create_frame,
    decode_header,
    encode_header,
    parse_frame_header,
)
from .transports import AsyncSerialSocket, AsyncTcpListener, AsyncTcpSocket, dial, listen

configure_logging()

__all__ = [
    # Sockets
    "AsyncFramedSocket",
    "AsyncTcpSocket",
    "AsyncTcpListener",
    "AsyncSerialSocket",
    "dial",
    "listen",
    # Frame codec
    "Frame",
    "Header",
    "HeaderVersion",
    "HeaderOptions",
    "encode_header",
    "decode_header",
    "byte_width",
    "create_frame",
    "build_frame",
    "parse_frame_header",
    # Errors
    "LsepError",
    "NeedMoreBytes",
    "FramingError",
    "InsufficientData",
    "InvalidVersion",
    "InvalidOptions",
    "BufferExceeded",
    "ShortWriteError",
    "ConnectionClosedError",
]

__version__ = "0.1.0"
