"""Tests for message frame building and parsing."""

import io
import struct

import pytest

from acedb_mcp.protocol.errors import ProtocolError
from acedb_mcp.protocol.framing import (
    Frame,
    HEADER_SIZE,
    MAGIC,
    ServerConfig,
    TYPE_SIZE,
    build_frame,
    parse_frame,
    parse_header,
    read_frame,
)


class BytesSource:
    def __init__(self, data: bytes) -> None:
        self._io = io.BytesIO(data)

    def read_exact(self, size: int) -> bytes:
        return self._io.read(size)


def test_header_size():
    """Five 32-bit integers plus the 30-byte type tag."""
    assert HEADER_SIZE == 50


def test_build_frame_size():
    """Frame = header + payload + one trailing zero byte."""
    frame = build_frame("ACESERV_MSGREQ", "find Locus")
    assert len(frame) == HEADER_SIZE + len("find Locus") + 1
    assert frame[-1] == 0


def test_build_frame_header_fields():
    """Header integers are big-endian: magic, length, then the echoed config."""
    config = ServerConfig(server_version=4, client_id=17, max_bytes=8192)
    frame = build_frame("ACESERV_MSGREQ", "bonjour", config)
    magic, length, version, client_id, max_bytes = struct.unpack(">5i", frame[:20])
    assert magic == MAGIC
    assert frame[:4] == b"\x12\x34\x56\x78"
    assert length == len("bonjour") + 1
    assert (version, client_id, max_bytes) == (4, 17, 8192)


def test_build_frame_default_config_is_zero():
    """Before any config is latched the capability fields are zero."""
    frame = build_frame("ACESERV_MSGREQ", "bonjour")
    assert frame[8:20] == b"\x00" * 12


def test_build_frame_type_padding():
    """The type tag is zero-padded on the right to exactly 30 bytes."""
    frame = build_frame("ACESERV_MSGREQ", "x")
    tag = frame[20 : 20 + TYPE_SIZE]
    assert tag == b"ACESERV_MSGREQ" + b"\x00" * (TYPE_SIZE - len("ACESERV_MSGREQ"))
    assert frame[20 + TYPE_SIZE :] == b"x\x00"


def test_build_frame_type_too_long():
    """Type tags longer than 30 bytes are rejected."""
    with pytest.raises(ValueError):
        build_frame("X" * (TYPE_SIZE + 1), "payload")


def test_build_frame_type_exactly_30_bytes():
    """A 30-byte tag fills the field with no padding."""
    tag = "T" * TYPE_SIZE
    parsed = parse_frame(build_frame(tag, "p"))
    assert parsed.msg_type == tag


def test_roundtrip_parse():
    """Build a frame and parse it back."""
    config = ServerConfig(1, 2, 3)
    parsed = parse_frame(build_frame("ACESERV_MSGDATA", "some text", config))
    assert parsed.msg_type == "ACESERV_MSGDATA"
    assert parsed.payload == b"some text"
    assert parsed.config == config


def test_roundtrip_empty_payload():
    """An empty payload still carries the trailing zero byte."""
    frame = build_frame("ACESERV_MSGOK", "")
    parsed = parse_frame(frame)
    assert parsed.payload == b""
    assert struct.unpack(">i", frame[4:8])[0] == 1


def test_roundtrip_binary_payload():
    """Every byte value survives, including embedded zeros."""
    payload = bytes(range(256))
    parsed = parse_frame(build_frame("ACESERV_MSGDATA", payload))
    assert parsed.payload == payload


def test_text_payload_is_latin1():
    """Text payloads are encoded one byte per character."""
    parsed = parse_frame(build_frame("ACESERV_MSGDATA", "caf\xe9"))
    assert parsed.payload == b"caf\xe9"
    assert parsed.text == "caf\xe9"


def test_parse_invalid_magic():
    """A wrong magic number is a protocol error."""
    bad = bytearray(build_frame("ACESERV_MSGOK", "x"))
    bad[0] = 0x87
    with pytest.raises(ProtocolError, match="magic"):
        parse_frame(bytes(bad))


def test_parse_short_header():
    """Fewer than 50 header bytes is a protocol error."""
    with pytest.raises(ProtocolError, match="header"):
        parse_header(build_frame("ACESERV_MSGOK", "x")[:20])


def test_parse_zero_length_is_malformed():
    """The length field must at least cover the trailing zero byte."""
    bad = bytearray(build_frame("ACESERV_MSGOK", ""))
    bad[4:8] = struct.pack(">i", 0)
    with pytest.raises(ProtocolError, match="length"):
        parse_frame(bytes(bad))


def test_parse_truncated_frame():
    """A buffer shorter than the announced payload is rejected."""
    with pytest.raises(ProtocolError):
        parse_frame(build_frame("ACESERV_MSGOK", "hello")[:-3])


def test_read_frame_consumes_exactly_one_frame():
    """read_frame leaves the next frame untouched in the source."""
    data = build_frame("ACESERV_MSGENCORE", "one") + build_frame("ACESERV_MSGOK", "two")
    source = BytesSource(data)
    first = read_frame(source)
    second = read_frame(source)
    assert (first.msg_type, first.payload) == ("ACESERV_MSGENCORE", b"one")
    assert (second.msg_type, second.payload) == ("ACESERV_MSGOK", b"two")


def test_read_frame_short_payload():
    """End of stream in the middle of a payload is a protocol error."""
    source = BytesSource(build_frame("ACESERV_MSGOK", "hello")[:-4])
    with pytest.raises(ProtocolError, match="payload"):
        read_frame(source)


def test_read_frame_missing_terminator():
    """The trailing zero byte must be present."""
    source = BytesSource(build_frame("ACESERV_MSGOK", "hello")[:-1])
    with pytest.raises(ProtocolError, match="terminator"):
        read_frame(source)


def test_frame_repr():
    """Frame repr should be readable."""
    r = repr(Frame(msg_type="ACESERV_MSGOK", payload=b"abc"))
    assert "ACESERV_MSGOK" in r
    assert "payload_len=3" in r


def test_build_frame_rejects_non_latin1_text():
    """Characters outside latin-1 are reported with their position."""
    with pytest.raises(ValueError, match="position 2"):
        build_frame("ACESERV_MSGREQ", "ab中")
