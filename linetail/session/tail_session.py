from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from threading import Event, Lock
from typing import IO, Any, Iterator

from linetail.config.tailer_config import TailerConfig
from linetail.core.buffer import ByteBuffer
from linetail.core.decode import decode
from linetail.core.errors import TailIOError, TailOpenError
from linetail.core.line_scanner import LineEnd, LineScanner, ScannedLine
from linetail.runtime.tail_controller import PollOutcome, TailController, TailState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Line:
    data: bytes
    text: str | None  # None: no configured encoding accepts `data`
    encoding: str | None
    number: int
    offset: int

    @property
    def decoded(self) -> bool:
        return self.text is not None


class TailSession:
    """
    Line reader over one local file, optionally following it like `tail -F`.

    Reads return None at end-of-stream: EOF when not tailing, or once the
    session is cancelled. A decode miss is a Line whose `text` is None; its raw
    bytes are always present. I/O failures raise TailIOError.

    Reads may block (tail mode); `cancel()` and `close()` are the only calls
    meant to come from another thread.
    """

    def __init__(
        self,
        path: Path,
        handle: IO[bytes],
        config: TailerConfig,
        *,
        original_file_length: int,
        cancel_event: Event | None = None,
    ) -> None:
        self._path = Path(path)
        self._handle = handle
        self._config = config
        self._original_file_length = int(original_file_length)

        self._buffer = ByteBuffer(config.buffer_size)
        self._scanner = LineScanner(config.line_end, strip_line_ends=config.strip_line_ends)
        self._controller = TailController(
            self._path,
            poll_interval_seconds=config.poll_interval_seconds,
            follow_rename=config.tail and config.follow_rename,
            cancel_event=cancel_event,
        )
        self._controller.attach(handle)

        self._read_mu = Lock()
        self._closed = False
        self._line_number = 0
        self._line_offset = 0
        self._next_offset = 0
        self._rotations = 0
        self._rotation_pending = False
        self._truncation_seen = False

    @classmethod
    def open(
        cls,
        path: Path | str,
        config: TailerConfig | None = None,
        *,
        cancel_event: Event | None = None,
        **overrides: Any,
    ) -> "TailSession":
        cfg = config or TailerConfig.default()
        if overrides:
            cfg = cfg.replace(**overrides)
        path = Path(path)
        try:
            handle = open(path, "rb", buffering=0)
        except OSError as e:
            raise TailOpenError(path, e.strerror or str(e)) from e
        try:
            length = os.fstat(handle.fileno()).st_size
            session = cls(path, handle, cfg, original_file_length=length, cancel_event=cancel_event)
        except (OSError, TailIOError) as e:
            handle.close()
            raise TailOpenError(path, str(e)) from e
        logger.debug("opened %s (%d bytes, tail=%s, follow_rename=%s)", path, length, cfg.tail, cfg.follow_rename)
        return session

    # telemetry

    @property
    def path(self) -> Path:
        return self._path

    @property
    def config(self) -> TailerConfig:
        return self._config

    @property
    def original_file_length(self) -> int:
        return self._original_file_length

    @property
    def last_line_number(self) -> int:
        return self._line_number

    @property
    def last_line_file_offset(self) -> int:
        return self._line_offset

    @property
    def position(self) -> int:
        """Offset in the current file just past the last returned line."""
        return self._next_offset

    @property
    def rotations(self) -> int:
        return self._rotations

    @property
    def effective_line_end(self) -> LineEnd:
        return self._scanner.effective_line_end

    @property
    def state(self) -> TailState:
        return self._controller.state

    @property
    def cancelled(self) -> bool:
        return self._controller.cancelled

    @property
    def closed(self) -> bool:
        return self._closed

    # reading

    def read_line_bytes(self, block: bool = True) -> bytes | None:
        with self._read_mu:
            scanned = self._next_scanned(block)
        return None if scanned is None else scanned.data

    def read_line(self, block: bool = True) -> Line | None:
        """
        Return the next line, or None at end-of-stream.

        With `block=False` a tailing session also returns None where it would
        otherwise wait for more data; the session stays usable.
        """
        with self._read_mu:
            scanned = self._next_scanned(block)
            if scanned is None:
                return None
            number, offset = self._line_number, self._line_offset
        res = decode(scanned.data, self._config.encodings)
        return Line(data=scanned.data, text=res.text, encoding=res.encoding, number=number, offset=offset)

    def __iter__(self) -> Iterator[Line]:
        while True:
            line = self.read_line()
            if line is None:
                return
            yield line

    def cancel(self) -> None:
        """Make any blocked or future read return end-of-stream. Safe from any thread."""
        self._controller.cancel()

    def close(self) -> None:
        if self._closed:
            return
        self._controller.cancel()
        # A blocked read holds the lock until it has seen the cancellation.
        with self._read_mu:
            if self._closed:
                return
            self._closed = True
            self._handle.close()
            self._buffer.reset()

    def __enter__(self) -> "TailSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _next_scanned(self, block: bool = True) -> ScannedLine | None:
        if self._closed:
            raise ValueError("I/O operation on closed tail session")
        at_eof = False
        while True:
            if self._controller.cancelled:
                return None
            if self._rotation_pending:
                self._adopt_rotated()

            scanned = self._scanner.next_line(self._buffer, at_eof=at_eof)
            if scanned is not None:
                return self._deliver(scanned)
            if at_eof:
                scanned = self._scanner.flush(self._buffer)
                if scanned is None:
                    logger.debug("end of %s at line %d", self._path, self._line_number)
                    return None
                return self._deliver(scanned)

            if self._buffer.fill(self._handle):
                self._controller.mark_reading()
                continue
            if not self._config.tail:
                at_eof = True
                continue
            if not block:
                return None

            if not self._controller.wait():
                return None
            outcome = self._controller.poll(self._handle)
            if outcome is PollOutcome.ROTATED:
                self._rotation_pending = True
                # Deliver a line cut short by the rotation before switching files.
                scanned = self._scanner.flush(self._buffer)
                if scanned is not None:
                    return self._deliver(scanned)
            elif outcome is PollOutcome.TRUNCATED and not self._truncation_seen:
                # Same file identity: keep position and counters, wait for it to grow past us.
                self._truncation_seen = True
                logger.warning("%s shrank below the read position %d; waiting for it to grow", self._path, self._next_offset)
            elif outcome is PollOutcome.GREW:
                self._truncation_seen = False

    def _deliver(self, scanned: ScannedLine) -> ScannedLine:
        self._line_number += 1
        self._line_offset = self._next_offset
        self._next_offset += scanned.consumed
        return scanned

    def _restart_counters(self) -> None:
        self._buffer.reset()
        self._scanner.reset()
        self._line_offset = 0
        self._next_offset = 0
        if self._config.reset_line_numbers_on_rotation:
            self._line_number = 0

    def _adopt_rotated(self) -> None:
        handle = self._controller.reopen()
        stale, self._handle = self._handle, handle
        stale.close()
        self._rotation_pending = False
        self._truncation_seen = False
        self._rotations += 1
        self._restart_counters()
        logger.info("%s was rotated; following new file (rotation #%d)", self._path, self._rotations)

