from __future__ import annotations

import logging
from typing import IO

from linetail.core.errors import TailIOError


logger = logging.getLogger(__name__)


class ByteBuffer:
    """
    Read buffer over a binary handle with a moving read cursor.

    `fill()` compacts away consumed bytes and appends new ones after whatever is
    still unread, so a line that straddles two reads is never split or lost.
    """

    def __init__(self, size: int = 4096) -> None:
        if size < 1:
            raise ValueError("buffer size must be >= 1")
        self._size = int(size)
        self._data = bytearray()
        self._pos = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def data(self) -> bytearray:
        return self._data

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def pending(self) -> int:
        return len(self._data) - self._pos

    def fill(self, handle: IO[bytes]) -> int:
        """
        Read up to `size` bytes at the handle's current position.

        Returns the number of bytes read; 0 means EOF for now, not forever.
        """
        if self._pos:
            del self._data[: self._pos]
            self._pos = 0
        try:
            chunk = handle.read(self._size)
        except OSError as e:
            raise TailIOError(getattr(handle, "name", "<handle>"), "read", str(e)) from e
        if not chunk:
            return 0
        self._data += chunk
        logger.debug("buffered %d bytes (%d pending)", len(chunk), self.pending)
        return len(chunk)

    def take(self, n: int) -> bytes:
        out = bytes(self._data[self._pos : self._pos + n])
        self._pos += len(out)
        return out

    def drain(self) -> bytes:
        return self.take(self.pending)

    def reset(self) -> None:
        self._data = bytearray()
        self._pos = 0
