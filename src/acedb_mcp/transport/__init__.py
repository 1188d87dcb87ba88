"""Transport layer: the raw byte stream to the server."""

from .tcp_connection import ConnectionInfo, TCPConnection, Transport
