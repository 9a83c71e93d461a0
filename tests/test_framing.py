import pytest

from lsep import (
    Frame,
    Header,
    HeaderOptions,
    HeaderVersion,
    InsufficientData,
    InvalidOptions,
    InvalidVersion,
    NeedMoreBytes,
    build_frame,
    byte_width,
    create_frame,
    decode_header,
    encode_header,
    parse_frame_header,
)

V1 = HeaderVersion.V1
RAW = HeaderOptions.RAW


def test_byte_width_small_values():
    assert byte_width(0) == 1
    assert byte_width(1) == 1
    assert byte_width(255) == 1
    assert byte_width(256) == 2


@pytest.mark.parametrize("n", range(64))
def test_byte_width_powers_of_two(n):
    assert byte_width(1 << n) == n // 8 + 1


@pytest.mark.parametrize("k", range(1, 9))
def test_byte_width_boundaries(k):
    assert byte_width((1 << (8 * k)) - 1) == k
    if k < 8:
        assert byte_width(1 << (8 * k)) == k + 1


def test_byte_width_rejects_out_of_range():
    with pytest.raises(ValueError):
        byte_width(-1)
    with pytest.raises(ValueError):
        byte_width(1 << 64)


def test_encode_width_eight():
    raw = encode_header(0, 0, 8)
    assert raw == 0x07
    assert decode_header(raw).width == 8


def test_encode_version_is_masked():
    raw = encode_header(0xF, 0, 0)
    assert raw == 0xE0
    assert decode_header(raw).version == 7
    assert encode_header(7, 0, 1) == 0xE0


def test_encode_options_is_masked():
    raw = encode_header(0, 0xF, 0)
    assert raw == 0x3 << 3
    assert decode_header(raw).options == 3
    assert encode_header(0, 3, 1) == 0x18


def test_zero_width_means_one():
    assert encode_header(0, 0, 0) == encode_header(0, 0, 1) == 0x00


def test_decode_is_total():
    for raw in range(256):
        header = Header.decode(raw)
        assert 1 <= header.width <= 8
        assert header.encode() == raw


@pytest.mark.parametrize("width", range(1, 9))
def test_header_roundtrip(width):
    header = Header(version=V1, options=RAW, width=width)
    assert Header.decode(header.encode()) == header


@pytest.mark.parametrize("k", range(1, 9))
def test_frame_size_at_width_boundary(k):
    assert len(build_frame(V1, RAW, (1 << (8 * k)) - 1)) == k + 1
    if k < 8:
        assert len(build_frame(V1, RAW, 1 << (8 * k))) == k + 2


def test_empty_payload_frame():
    assert build_frame(V1, RAW, 0) == b"\x00\x00"


def test_17000_frame():
    raw = build_frame(V1, RAW, 17000)
    assert raw == bytes([0x01, 0x42, 0x68])

    frame, rest = parse_frame_header(raw)
    assert frame.length == 17000
    assert frame.header.width == 2
    assert frame.header_size == 3
    assert rest == b""


@pytest.mark.parametrize("length", [0, 1, 255, 256, 65535, 65536, 17000, (1 << 64) - 1])
def test_parse_recovers_length(length):
    frame, rest = parse_frame_header(build_frame(V1, RAW, length))
    assert frame.length == length
    assert frame == create_frame(V1, RAW, length)
    assert rest == b""


def test_parse_returns_payload_prefix():
    frame, rest = parse_frame_header(build_frame(V1, RAW, 5) + b"hel")
    assert frame.length == 5
    assert rest == b"hel"


def test_parse_first_byte_only_needs_more():
    raw = build_frame(V1, RAW, 17000)
    with pytest.raises(NeedMoreBytes) as exc_info:
        parse_frame_header(raw[:1])
    assert exc_info.value.needed == 2


@pytest.mark.parametrize("width", range(2, 9))
def test_parse_partial_length_field(width):
    raw = build_frame(V1, RAW, 1 << (8 * (width - 1)))
    with pytest.raises(NeedMoreBytes) as exc_info:
        parse_frame_header(raw[:2])
    assert exc_info.value.needed == width - 1

    frame, _ = parse_frame_header(raw[:2] + raw[2:])
    assert frame.length == 1 << (8 * (width - 1))


def test_parse_empty_buffer():
    with pytest.raises(InsufficientData) as exc_info:
        parse_frame_header(b"")
    assert not isinstance(exc_info.value, NeedMoreBytes)


def test_parse_rejects_version():
    raw = bytes([encode_header(1, 0, 1), 0x05])
    with pytest.raises(InvalidVersion) as exc_info:
        parse_frame_header(raw)
    assert exc_info.value.version == 1


def test_parse_rejects_options():
    raw = bytes([encode_header(0, 2, 1), 0x05])
    with pytest.raises(InvalidOptions) as exc_info:
        parse_frame_header(raw)
    assert exc_info.value.options == 2


@pytest.mark.parametrize("raw", [encode_header(3, 0, 8), encode_header(0, 1, 2)])
def test_parse_short_buffer_with_invalid_header(raw):
    with pytest.raises(InsufficientData) as exc_info:
        parse_frame_header(bytes([raw]))
    assert not isinstance(exc_info.value, NeedMoreBytes)


def test_frame_width_too_small_for_length():
    with pytest.raises(RuntimeError):
        Frame(Header(0, 0, 1), 256).to_bytes()


def test_parse_accepts_non_minimal_width():
    raw = bytes([encode_header(0, 0, 4)]) + (17).to_bytes(4, "big")
    frame, rest = parse_frame_header(raw)
    assert frame.length == 17
    assert frame.header.width == 4
    assert rest == b""
