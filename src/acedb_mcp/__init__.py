"""Client for the ACeDB socket server, with an MCP server front end."""

from .protocol.errors import (
    AceError,
    AceConnectionError,
    AuthenticationError,
    DefunctSessionError,
    ProtocolError,
    StaleStreamError,
    UnsolicitedDataError,
)
from .session import Session, SessionState, connect
from .stream import ReplyStream

__version__ = "0.1.0"
