"""Pull-based reader over a multi-part reply.

A :class:`ReplyStream` hands out a reply one part at a time instead of
joining every part in memory. It is bound to the transaction that created
it: once the session starts another transaction the stream is stale and
every read raises :class:`StaleStreamError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator

from .protocol.errors import StaleStreamError
from .protocol.framing import Frame

if TYPE_CHECKING:
    from .session import Session


class ReplyStream:
    """Byte source over the parts of one reply.

    Usage::

        stream = session.transact_stream("show -a")
        for chunk in stream:
            out.write(chunk)
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._epoch = session.epoch
        self._buffer = b""
        self._offset = 0
        self._parts = 0
        self._load(session.read_frame())

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def valid(self) -> bool:
        return self._epoch == self._session.epoch

    @property
    def parts_read(self) -> int:
        return self._parts

    def _validate(self) -> None:
        if not self.valid:
            raise StaleStreamError(
                f"Reply stream of transaction {self._epoch} read after "
                f"transaction {self._session.epoch} started"
            )

    def _load(self, frame: Frame) -> None:
        self._buffer = frame.payload
        self._offset = 0
        self._parts += 1

    def _advance(self) -> bool:
        if not self._session.continuation_pending:
            return False
        self._session.send_encore()
        self._load(self._session.read_frame())
        return True

    def _fill(self) -> bool:
        # Empty parts are skipped; False means the reply is exhausted.
        while self._offset >= len(self._buffer):
            if not self._advance():
                return False
        return True

    def read_byte(self) -> int | None:
        """Return the next byte, or None at the end of the reply."""
        self._validate()
        if not self._fill():
            return None
        value = self._buffer[self._offset]
        self._offset += 1
        return value

    def readinto(self, buffer, offset: int = 0, size: int | None = None) -> int:
        """Copy up to ``size`` bytes into ``buffer`` starting at ``offset``.

        At most the rest of the current part is copied, so a single call never
        spans two frames.

        Returns:
            The number of bytes copied, 0 at the end of the reply.
        """
        self._validate()
        with memoryview(buffer) as view:
            if size is None:
                size = len(view) - offset
            if offset < 0 or size < 0 or offset + size > len(view):
                raise ValueError(
                    f"Range offset={offset} size={size} outside buffer of {len(view)} bytes"
                )
            if size == 0 or not self._fill():
                return 0
            count = min(size, len(self._buffer) - self._offset)
            view[offset : offset + count] = self._buffer[self._offset : self._offset + count]
        self._offset += count
        return count

    def read(self, size: int = -1) -> bytes:
        """Read bytes from the reply.

        With a negative ``size`` the rest of the reply is read. Otherwise at
        most ``size`` bytes of the current part are returned. An empty result
        means the reply is exhausted.
        """
        if size is None or size < 0:
            return b"".join(self)

        self._validate()
        if size == 0 or not self._fill():
            return b""
        chunk = self._buffer[self._offset : self._offset + size]
        self._offset += len(chunk)
        return chunk

    def __iter__(self) -> Iterator[bytes]:
        """Yield the unread remainder of each part in turn."""
        while True:
            self._validate()
            if not self._fill():
                return
            chunk = self._buffer[self._offset :]
            self._offset = len(self._buffer)
            yield chunk
