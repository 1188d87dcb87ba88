"""Protocol layer: message framing, type tags, errors, and the login handshake."""

from .framing import Frame, ServerConfig, build_frame, parse_frame, read_frame
from .messages import MessageType, build_encore, build_request, is_continuation
from .errors import (
    AceError,
    AceConnectionError,
    AuthenticationError,
    DefunctSessionError,
    ProtocolError,
    StaleStreamError,
    UnsolicitedDataError,
)
