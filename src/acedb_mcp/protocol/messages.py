"""Message type tags and builders for the frames a client sends.

Every frame carries an ASCII type tag. Only the continuation tag changes how
a reply is read; the others are passed through as opaque reply types.
"""

from __future__ import annotations

from enum import Enum

from .framing import Frame, ServerConfig, build_frame


class MessageType(str, Enum):
    """Frame type tags."""

    REQUEST = "ACESERV_MSGREQ"
    DATA = "ACESERV_MSGDATA"
    OK = "ACESERV_MSGOK"
    ENCORE = "ACESERV_MSGENCORE"
    FAIL = "ACESERV_MSGFAIL"
    KILL = "ACESERV_MSGKILL"


# Acknowledgement body sent back for each continuation part
ENCORE_PAYLOAD = "encore"

# Handshake literals
HELLO = "bonjour"
WELCOME_PREFIX = "et bonjour a vous"


def is_continuation(frame: Frame) -> bool:
    """Return True if more parts of the same reply follow this frame."""
    return frame.msg_type.startswith(MessageType.ENCORE.value)


def build_message(
    msg_type: MessageType,
    payload: str | bytes = b"",
    config: ServerConfig | None = None,
) -> bytes:
    """Build a frame for one of the known message types."""
    return build_frame(msg_type.value, payload, config)


def build_request(text: str, config: ServerConfig | None = None) -> bytes:
    """Build a request frame carrying a server command."""
    return build_message(MessageType.REQUEST, text, config)


def build_encore(config: ServerConfig | None = None) -> bytes:
    """Build the acknowledgement that asks for the next reply part."""
    return build_message(MessageType.ENCORE, ENCORE_PAYLOAD, config)
