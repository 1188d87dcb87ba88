"""Session state and the request/reply loop.

A session owns one connection. Each transaction writes a single request
frame and reads the reply, which the server may split over several frames.
Every part but the last is tagged ``ACESERV_MSGENCORE`` and the server waits
for an acknowledgement before sending the next one.

The session keeps its protocol state in an explicit :class:`SessionState`:

- the capability fields latched from the first frame ever received
- whether the most recent frame announced another part
- a transaction epoch, bumped once per request, that reply streams compare
  against to detect that a newer transaction has started
- the defunct flag, set by any terminal failure
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field

from .protocol.errors import (
    AceConnectionError,
    DefunctSessionError,
    ProtocolError,
    UnsolicitedDataError,
)
from .protocol.framing import ENCODING, Frame, ServerConfig, read_frame
from .protocol.handshake import DigestFactory, authenticate
from .protocol.messages import build_encore, build_request, is_continuation
from .stream import ReplyStream
from .transport.tcp_connection import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    ConnectionInfo,
    TCPConnection,
    Transport,
)

logger = logging.getLogger(__name__)

DEFAULT_USER = "anonymous"
DEFAULT_PASSWORD = "guest"


@dataclass
class SessionState:
    """Mutable protocol state of one connection."""

    config: ServerConfig = field(default_factory=ServerConfig)
    pending_config: bool = True
    continuation_pending: bool = False
    epoch: int = 0
    defunct: bool = False

    def observe(self, frame: Frame) -> None:
        """Update the state from a freshly decoded frame."""
        if self.pending_config:
            self.config = frame.config
            self.pending_config = False
        self.continuation_pending = is_continuation(frame)


class Session:
    """An authenticated conversation with the server.

    Usage::

        with connect("localhost", 23100) as session:
            print(session.transact("find Locus *"))
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self.state = SessionState()

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def defunct(self) -> bool:
        return self.state.defunct

    @property
    def epoch(self) -> int:
        return self.state.epoch

    @property
    def server_config(self) -> ServerConfig:
        return self.state.config

    @property
    def continuation_pending(self) -> bool:
        return self.state.continuation_pending

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()

    def _ensure_usable(self) -> None:
        if self.state.defunct:
            raise DefunctSessionError("Session is defunct and can no longer be used")

    def _mark_defunct(self, reason) -> None:
        if not self.state.defunct:
            logger.warning("Session is now defunct: %s", reason)
        self.state.defunct = True

    def _write(self, data: bytes) -> None:
        try:
            self._transport.write(data)
        except AceConnectionError as e:
            self._mark_defunct(e)
            raise

    def read_frame(self) -> Frame:
        """Read the next frame and record what it says about the session.

        Raises:
            ProtocolError: If the frame is malformed. The session is defunct
                afterwards since the stream position is lost.
            AceConnectionError: On I/O failure.
        """
        self._ensure_usable()
        try:
            frame = read_frame(self._transport)
        except (AceConnectionError, ProtocolError) as e:
            self._mark_defunct(e)
            raise
        self.state.observe(frame)
        logger.debug("Received %r", frame)
        return frame

    def send_encore(self) -> None:
        """Ask the server for the next part of the current reply.

        Raises:
            ProtocolError: If the last frame did not announce another part.
        """
        self._ensure_usable()
        if not self.state.continuation_pending:
            raise ProtocolError("No continuation pending, refusing to acknowledge")
        self._write(build_encore(self.state.config))

    def _begin(self, request: str) -> int:
        self._ensure_usable()
        data = build_request(request, self.state.config)
        self.state.epoch += 1

        try:
            unsolicited = self._transport.pending()
        except AceConnectionError as e:
            self._mark_defunct(e)
            raise
        if unsolicited:
            self._mark_defunct("unsolicited data from server")
            raise UnsolicitedDataError("Unsolicited data from server")

        logger.debug("Transaction %d: %r", self.state.epoch, request)
        self._write(data)
        return self.state.epoch

    def transact(self, request: str) -> str:
        """Send a request and return the complete reply text."""
        self._begin(request)

        parts: list[bytes] = []
        while True:
            frame = self.read_frame()
            parts.append(frame.payload)
            if not self.state.continuation_pending:
                break
            self.send_encore()

        logger.debug("Transaction %d complete: %d part(s)", self.state.epoch, len(parts))
        return b"".join(parts).decode(ENCODING)

    def transact_stream(self, request: str) -> ReplyStream:
        """Send a request and return a stream over the reply parts.

        The first part is read before this method returns. The stream becomes
        unusable as soon as another transaction starts on this session.
        """
        self._begin(request)
        return ReplyStream(self)

    def dispose(self) -> None:
        """Close the connection. The session is defunct afterwards."""
        self.state.defunct = True
        self._transport.close()


def connect(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    user: str = DEFAULT_USER,
    password: str = DEFAULT_PASSWORD,
    digest: DigestFactory = hashlib.md5,
) -> Session:
    """Open a connection and log in.

    Raises:
        AceConnectionError: If the server cannot be reached.
        AuthenticationError: If the login is refused. No session is returned
            and the connection is closed.
    """
    connection = TCPConnection(host, port)
    connection.open()
    session = Session(connection)
    try:
        authenticate(session, user, password, digest)
    except Exception:
        session.dispose()
        raise
    return session


def connection_info(session: Session) -> ConnectionInfo | None:
    """Return endpoint details if the session runs over TCP."""
    transport = session.transport
    if isinstance(transport, TCPConnection):
        return transport.info
    return None
