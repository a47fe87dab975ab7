from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from linetail.core.buffer import ByteBuffer


CR = 0x0D
LF = 0x0A


class LineEnd(str, Enum):
    CR = "cr"
    LF = "lf"
    CRLF = "crlf"
    AUTO = "auto"


@dataclass(frozen=True)
class ScannedLine:
    data: bytes
    consumed: int  # bytes taken from the file, terminator included


class LineScanner:
    """
    Finds line boundaries in a ByteBuffer under a line-end policy.

    AUTO locks to the convention of the first terminator it meets (CR LF, lone
    CR or lone LF) and keeps that lock for the rest of the scanner's life.
    """

    def __init__(self, line_end: LineEnd = LineEnd.AUTO, strip_line_ends: bool = False) -> None:
        self._policy = LineEnd(line_end)
        self._locked: LineEnd | None = None if self._policy is LineEnd.AUTO else self._policy
        self._strip = bool(strip_line_ends)
        # Bytes past the buffer cursor already known to hold no terminator.
        self._scanned = 0

    @property
    def policy(self) -> LineEnd:
        return self._policy

    @property
    def effective_line_end(self) -> LineEnd:
        return self._locked or LineEnd.AUTO

    def reset(self) -> None:
        self._scanned = 0

    def next_line(self, buffer: ByteBuffer, at_eof: bool = False) -> ScannedLine | None:
        """
        Return the next complete line, or None if the buffered bytes hold none.

        `at_eof` means no more bytes will arrive for this scan, which settles a
        trailing CR that could otherwise still be the first half of CR LF.
        """
        data = buffer.data
        start = buffer.pos
        end = len(data)
        i = start + self._scanned

        while True:
            mode = self._locked
            if mode is LineEnd.LF:
                j = data.find(b"\n", i)
            elif mode is LineEnd.CR or mode is LineEnd.CRLF:
                j = data.find(b"\r", i)
            else:
                j = _find_first_eol(data, i)
            if j < 0:
                self._scanned = end - start
                return None

            if mode is LineEnd.LF or mode is LineEnd.CR:
                return self._emit(buffer, j - start, 1)
            if data[j] == LF:
                self._locked = LineEnd.LF
                return self._emit(buffer, j - start, 1)

            if j + 1 < end:
                if data[j + 1] == LF:
                    self._locked = LineEnd.CRLF
                    return self._emit(buffer, j - start, 2)
                if mode is None:
                    self._locked = LineEnd.CR
                    return self._emit(buffer, j - start, 1)
                # lone CR under CRLF is line data
                i = j + 1
                continue

            if not at_eof:
                self._scanned = j - start
                return None
            if mode is None:
                self._locked = LineEnd.CR
                return self._emit(buffer, j - start, 1)
            self._scanned = end - start
            return None

    def flush(self, buffer: ByteBuffer) -> ScannedLine | None:
        """Take whatever unterminated bytes remain as a final line."""
        self._scanned = 0
        if buffer.pending == 0:
            return None
        raw = buffer.drain()
        return ScannedLine(data=raw, consumed=len(raw))

    def _emit(self, buffer: ByteBuffer, body_len: int, term_len: int) -> ScannedLine:
        self._scanned = 0
        raw = buffer.take(body_len + term_len)
        return ScannedLine(data=raw[:body_len] if self._strip else raw, consumed=len(raw))


def _find_first_eol(data: bytearray, start: int) -> int:
    r = data.find(b"\r", start)
    n = data.find(b"\n", start)
    if r < 0:
        return n
    if n < 0:
        return r
    return min(r, n)
