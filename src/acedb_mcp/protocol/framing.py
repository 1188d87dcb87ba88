"""Message frame builder and parser for the ACeDB socket server.

Frame layout (integers are big-endian, signed 32-bit)::

    +-------+--------+---------+-----------+-----------+---------+--------------+------+
    | Magic | Length | Version | Client ID | Max bytes |  Type   |   Payload    | 0x00 |
    | 4 B   | 4 B    | 4 B     | 4 B       | 4 B       |  30 B   | Length - 1 B | 1 B  |
    +-------+--------+---------+-----------+-----------+---------+--------------+------+

- Magic: always 0x12345678
- Length: number of payload bytes plus the trailing zero byte
- Version / Client ID / Max bytes: capability fields reported by the server.
  A client echoes whatever it has latched from the first frame it received.
- Type: ASCII message tag, zero-padded on the right to 30 bytes
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Protocol

from .errors import ProtocolError

MAGIC = 0x12345678
TYPE_SIZE = 30
HEADER_FORMAT = f">5i{TYPE_SIZE}s"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 5 * 4 + 30 = 50
TERMINATOR = b"\x00"

# The server speaks single-byte text; latin-1 maps every byte value 1:1.
ENCODING = "latin-1"


class ByteSource(Protocol):
    """Anything frames can be read from."""

    def read_exact(self, size: int) -> bytes:
        ...


@dataclass(frozen=True)
class ServerConfig:
    """Capability fields carried in every frame header."""

    server_version: int = 0
    client_id: int = 0
    max_bytes: int = 0

    def to_dict(self) -> dict:
        return {
            "server_version": self.server_version,
            "client_id": self.client_id,
            "max_bytes": self.max_bytes,
        }


@dataclass(frozen=True)
class FrameHeader:
    """The fixed-size part of a frame."""

    length: int
    config: ServerConfig
    msg_type: str

    @property
    def payload_size(self) -> int:
        return self.length - 1


@dataclass
class Frame:
    """A parsed protocol frame."""

    msg_type: str
    payload: bytes
    config: ServerConfig = field(default_factory=ServerConfig)

    @property
    def text(self) -> str:
        return self.payload.decode(ENCODING)

    def __repr__(self) -> str:
        return (
            f"Frame(msg_type={self.msg_type!r}, "
            f"payload_len={len(self.payload)}, "
            f"server_version={self.config.server_version}, "
            f"client_id={self.config.client_id}, "
            f"max_bytes={self.config.max_bytes})"
        )


def encode_payload(payload: str | bytes) -> bytes:
    if isinstance(payload, str):
        try:
            return payload.encode(ENCODING)
        except UnicodeEncodeError as e:
            bad = payload[e.start]
            raise ValueError(
                f"Payload character {bad!r} at position {e.start} cannot be sent as {ENCODING}"
            ) from e
    return bytes(payload)


def build_frame(
    msg_type: str,
    payload: str | bytes = b"",
    config: ServerConfig | None = None,
) -> bytes:
    """Build a complete wire frame.

    Args:
        msg_type: ASCII type tag, at most 30 bytes.
        payload: Message body. Text is encoded as latin-1.
        config: Capability fields to echo in the header. Defaults to zeros.

    Returns:
        The encoded frame, including the trailing zero byte.

    Raises:
        ValueError: If the type tag does not fit in 30 bytes.
    """
    tag = msg_type.encode("ascii")
    if len(tag) > TYPE_SIZE:
        raise ValueError(
            f"Message type must be at most {TYPE_SIZE} bytes, got {len(tag)}"
        )
    body = encode_payload(payload)
    config = config or ServerConfig()
    # struct pads the "30s" field on the right with zero bytes
    header = struct.pack(
        HEADER_FORMAT,
        MAGIC,
        len(body) + 1,
        config.server_version,
        config.client_id,
        config.max_bytes,
        tag,
    )
    return header + body + TERMINATOR


def parse_header(data: bytes) -> FrameHeader:
    """Parse the 50-byte frame header.

    Raises:
        ProtocolError: If the header is short, the magic is wrong, or the
            length field cannot cover the trailing zero byte.
    """
    if len(data) < HEADER_SIZE:
        raise ProtocolError(
            f"Short read on frame header: got {len(data)} of {HEADER_SIZE} bytes"
        )

    magic, length, version, client_id, max_bytes, raw_type = struct.unpack(
        HEADER_FORMAT, data[:HEADER_SIZE]
    )
    if magic != MAGIC:
        raise ProtocolError(
            f"Bad frame magic 0x{magic & 0xFFFFFFFF:08X}, expected 0x{MAGIC:08X}"
        )
    if length < 1:
        raise ProtocolError(f"Malformed frame length {length}")

    msg_type = raw_type.split(b"\x00")[0].decode("ascii", errors="replace")
    return FrameHeader(
        length=length,
        config=ServerConfig(version, client_id, max_bytes),
        msg_type=msg_type,
    )


def _read(source: ByteSource, size: int, what: str) -> bytes:
    data = source.read_exact(size)
    if len(data) != size:
        raise ProtocolError(f"Short read on frame {what}: got {len(data)} of {size} bytes")
    return data


def read_frame(source: ByteSource) -> Frame:
    """Read exactly one frame from a byte source.

    The trailing zero byte is consumed and discarded.

    Raises:
        ProtocolError: On a short read or a malformed header.
    """
    header = parse_header(_read(source, HEADER_SIZE, "header"))
    payload = _read(source, header.payload_size, "payload")
    _read(source, len(TERMINATOR), "terminator")
    return Frame(msg_type=header.msg_type, payload=payload, config=header.config)


def parse_frame(data: bytes) -> Frame:
    """Parse a single frame held entirely in ``data``.

    Raises:
        ProtocolError: If ``data`` is truncated or the header is malformed.
    """
    header = parse_header(data)
    end = HEADER_SIZE + header.payload_size
    if len(data) < end + len(TERMINATOR):
        raise ProtocolError(
            f"Truncated frame: got {len(data)} of {end + len(TERMINATOR)} bytes"
        )
    return Frame(
        msg_type=header.msg_type,
        payload=bytes(data[HEADER_SIZE:end]),
        config=header.config,
    )
