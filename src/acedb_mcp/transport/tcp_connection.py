"""TCP connection to an ACeDB socket server.

The connection is a plain blocking socket without a timeout. Besides reading
and writing it offers a non-blocking check for unread inbound bytes, which a
session uses to detect data the server sent without being asked.
"""

from __future__ import annotations

import logging
import select
import socket
from dataclasses import dataclass
from typing import Protocol

from ..protocol.errors import AceConnectionError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 23100
READ_CHUNK_SIZE = 64 * 1024


class Transport(Protocol):
    """Duplex byte stream a session runs on."""

    def write(self, data: bytes) -> None:
        ...

    def read_exact(self, size: int) -> bytes:
        ...

    def pending(self) -> bool:
        ...

    def close(self) -> None:
        ...


@dataclass
class ConnectionInfo:
    """Endpoint details of an open connection."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    local_address: str = ""


class TCPConnection:
    """Manages the socket to the server.

    Usage::

        conn = TCPConnection("localhost", 23100)
        conn.open()
        conn.write(frame_bytes)
        header = conn.read_exact(50)
        conn.close()

    An already connected socket can be passed in instead of calling
    :meth:`open`.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        sock: socket.socket | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._sock = sock
        self._connected = sock is not None
        self._info = ConnectionInfo(host=host, port=port)

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def info(self) -> ConnectionInfo:
        return self._info

    def open(self) -> ConnectionInfo:
        """Connect to the server.

        Returns:
            ConnectionInfo describing both ends of the socket.

        Raises:
            AceConnectionError: If the server cannot be reached.
        """
        if self._connected:
            return self._info

        try:
            sock = socket.create_connection((self._host, self._port))
        except OSError as e:
            raise AceConnectionError(
                f"Could not connect to ACeDB server at {self._host}:{self._port}: {e}"
            ) from e

        self._sock = sock
        self._connected = True
        local_host, local_port = sock.getsockname()[:2]
        self._info = ConnectionInfo(
            host=self._host,
            port=self._port,
            local_address=f"{local_host}:{local_port}",
        )

        logger.info("Connected to %s:%d", self._host, self._port)
        return self._info

    def close(self) -> None:
        """Close the socket."""
        if not self._connected:
            return

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.warning("Error shutting down socket: %s", e)
        finally:
            self._sock.close()
            self._sock = None
            self._connected = False
            logger.info("Disconnected from %s:%d", self._host, self._port)

    def _require_socket(self) -> socket.socket:
        if not self._connected:
            raise AceConnectionError("Not connected to server")
        return self._sock

    def write(self, data: bytes) -> None:
        """Write all of ``data`` to the socket.

        Raises:
            AceConnectionError: If not connected or the write fails.
        """
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as e:
            raise AceConnectionError(f"Write to server failed: {e}") from e

    def read_exact(self, size: int) -> bytes:
        """Block until ``size`` bytes have been read.

        Returns fewer bytes only if the server closes the connection first.

        Raises:
            AceConnectionError: If not connected or the read fails.
        """
        sock = self._require_socket()
        data = bytearray()
        while len(data) < size:
            try:
                chunk = sock.recv(min(size - len(data), READ_CHUNK_SIZE))
            except OSError as e:
                raise AceConnectionError(f"Read from server failed: {e}") from e
            if not chunk:
                logger.debug("Server closed connection after %d of %d bytes", len(data), size)
                break
            data.extend(chunk)
        return bytes(data)

    def pending(self) -> bool:
        """Return True if inbound bytes are waiting, without blocking.

        A connection the server has closed also reports True.
        """
        sock = self._require_socket()
        try:
            readable, _, _ = select.select([sock], [], [], 0)
        except (OSError, ValueError) as e:
            raise AceConnectionError(f"Could not poll socket: {e}") from e
        return bool(readable)
