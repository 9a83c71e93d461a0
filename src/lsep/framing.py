"""LSEP frame header codec.

Wire format (all integers big-endian)::

    byte 0:        [version:3][options:2][width-1:3]
    bytes 1..w:    payload length, exactly ``width`` bytes
    bytes 1+w..:   payload, exactly ``length`` bytes

Versions are mutually exclusive: a V1 peer does not talk to any other version.
"""

import enum
from dataclasses import dataclass
from typing import Tuple

from .errors import InsufficientData, InvalidOptions, InvalidVersion, NeedMoreBytes


class HeaderVersion(enum.IntEnum):
    V1 = 0


class HeaderOptions(enum.IntEnum):
    """How the payload is encoded on the wire. Only RAW is implemented."""

    RAW = 0


SUPPORTED_VERSIONS = frozenset({HeaderVersion.V1})
SUPPORTED_OPTIONS = frozenset({HeaderOptions.RAW})

MAX_LENGTH = (1 << 64) - 1
MIN_HEADER_SIZE = 2  # header byte + at least one length byte


def encode_header(version: int, options: int, width: int) -> int:
    """Pack the three header fields into a single byte.

    A width of 0 is treated as the minimum width of 1.
    """
    if width == 0:
        width = 1
    return (version & 0x7) << 5 | (options & 0x3) << 3 | ((width - 1) & 0x7)


def decode_header(raw: int) -> "Header":
    return Header(
        version=(raw >> 5) & 0x7,
        options=(raw >> 3) & 0x3,
        width=(raw & 0x7) + 1,
    )


def byte_width(n: int) -> int:
    """Minimum number of big-endian bytes needed to hold ``n`` (at least 1)."""
    if n < 0 or n > MAX_LENGTH:
        raise ValueError(f"length out of range for an LSEP frame: {n}")
    return max(1, (n.bit_length() + 7) // 8)


@dataclass(frozen=True, slots=True)
class Header:
    version: int
    options: int
    width: int

    def encode(self) -> int:
        return encode_header(self.version, self.options, self.width)

    @staticmethod
    def decode(raw: int) -> "Header":
        return decode_header(raw)


@dataclass(frozen=True, slots=True)
class Frame:
    header: Header
    length: int

    @property
    def header_size(self) -> int:
        """Bytes taken by the header byte and the length field."""
        return 1 + self.header.width

    @property
    def length_bytes(self) -> bytes:
        return self.length.to_bytes(8, "big")[8 - self.header.width :]

    def to_bytes(self) -> bytes:
        length_bytes = self.length_bytes
        if int.from_bytes(length_bytes, "big") != self.length:
            raise RuntimeError(
                f"frame copy fail: {self.length} does not fit in "
                f"{self.header.width} length byte(s)"
            )
        return bytes([self.header.encode()]) + length_bytes


def create_frame(version: int, options: int, length: int) -> Frame:
    header = Header(version=version, options=options, width=byte_width(length))
    return Frame(header=header, length=length)


def build_frame(version: int, options: int, length: int) -> bytes:
    """Return the header byte and canonical length field for ``length``."""
    return create_frame(version, options, length).to_bytes()


def parse_frame_header(data: bytes) -> Tuple[Frame, bytes]:
    """Interpret the start of ``data`` as a frame header.

    Returns the frame and every byte of ``data`` past the header, which is
    the already available prefix of the payload.

    Raises:
        InsufficientData: fewer than two bytes were given and they do not
            start a valid header
        InvalidVersion: the header carries an unsupported version
        InvalidOptions: the header carries an unsupported payload encoding
        NeedMoreBytes: the length field is incomplete; read ``needed`` more
            bytes and parse again. Subclass of InsufficientData.
    """
    if len(data) < MIN_HEADER_SIZE:
        # A lone valid header byte already tells how much is missing
        if data:
            header = decode_header(data[0])
            if header.version in SUPPORTED_VERSIONS and header.options in SUPPORTED_OPTIONS:
                raise NeedMoreBytes(1 + header.width - len(data))
        raise InsufficientData(f"insufficient data for frame: {len(data)} byte(s)")

    header = decode_header(data[0])

    if header.version not in SUPPORTED_VERSIONS:
        raise InvalidVersion(header.version)
    if header.options not in SUPPORTED_OPTIONS:
        raise InvalidOptions(header.options)

    header_size = 1 + header.width
    if len(data) < header_size:
        raise NeedMoreBytes(header_size - len(data))

    length = int.from_bytes(data[1:header_size], "big")
    frame = Frame(header=header, length=length)
    return frame, bytes(data[header_size:])
