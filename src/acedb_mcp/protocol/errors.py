"""Exception hierarchy for the ACeDB socket client."""

from __future__ import annotations


class AceError(Exception):
    """Base class for every error raised by this package."""


class AceConnectionError(AceError, ConnectionError):
    """I/O failure on the underlying transport."""


class DefunctSessionError(AceConnectionError):
    """Operation attempted on a session that has already failed terminally."""


class ProtocolError(AceError):
    """Malformed frame, bad magic, or a message sent out of state."""


class AuthenticationError(AceError):
    """The server did not accept the handshake credentials."""


class UnsolicitedDataError(AceError):
    """The server sent data before a request was written."""


class StaleStreamError(AceError):
    """A reply stream was read after a newer transaction started."""


__all__ = [
    "AceError",
    "AceConnectionError",
    "DefunctSessionError",
    "ProtocolError",
    "AuthenticationError",
    "UnsolicitedDataError",
    "StaleStreamError",
]
