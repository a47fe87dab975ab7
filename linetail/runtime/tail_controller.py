from __future__ import annotations

import logging
import os
from enum import Enum
from pathlib import Path
from threading import Event
from typing import IO

from linetail.core.errors import TailIOError
from linetail.core.file_identity import FileIdentity, stat_path_or_none


logger = logging.getLogger(__name__)


class TailState(str, Enum):
    READING = "reading"
    WAITING_FOR_DATA = "waiting_for_data"
    CANCELLED = "cancelled"


class PollOutcome(str, Enum):
    GREW = "grew"
    ROTATED = "rotated"
    TRUNCATED = "truncated"
    UNCHANGED = "unchanged"


class TailController:
    """
    Wait/poll side of tail mode.

    The reader thread calls `wait()` then `poll()` each time it runs out of
    bytes. Waiting happens on the cancellation event itself, so `cancel()` from
    any thread wakes a blocked reader at once instead of after a full interval.
    """

    def __init__(
        self,
        path: Path,
        *,
        poll_interval_seconds: float,
        follow_rename: bool,
        cancel_event: Event | None = None,
    ) -> None:
        self._path = Path(path)
        self._interval = float(poll_interval_seconds)
        self._follow_rename = bool(follow_rename)
        self._cancel = cancel_event if cancel_event is not None else Event()
        self._state = TailState.READING
        self._identity: FileIdentity | None = None

    @property
    def state(self) -> TailState:
        if self._cancel.is_set():
            return TailState.CANCELLED
        return self._state

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def identity(self) -> FileIdentity | None:
        return self._identity

    def cancel(self) -> None:
        if not self._cancel.is_set():
            logger.debug("cancel requested for %s", self._path)
        self._cancel.set()

    def attach(self, handle: IO[bytes]) -> None:
        try:
            self._identity = FileIdentity.of_handle(handle)
        except OSError as e:
            raise TailIOError(self._path, "fstat", str(e)) from e

    def mark_reading(self) -> None:
        if self._state is TailState.WAITING_FOR_DATA and not self._cancel.is_set():
            self._state = TailState.READING

    def wait(self) -> bool:
        """Sleep one poll interval. Returns False once cancellation is seen."""
        if self._cancel.is_set():
            self._state = TailState.CANCELLED
            return False
        self._state = TailState.WAITING_FOR_DATA
        self._cancel.wait(self._interval)
        if self._cancel.is_set():
            self._state = TailState.CANCELLED
            return False
        return True

    def poll(self, handle: IO[bytes]) -> PollOutcome:
        try:
            held = os.fstat(handle.fileno())
            pos = handle.tell()
        except OSError as e:
            raise TailIOError(self._path, "stat", str(e)) from e

        # Drain the held file before looking at the path: a writer may still be
        # finishing the old file after it was renamed.
        if held.st_size > pos:
            return PollOutcome.GREW

        if self._follow_rename:
            try:
                st = stat_path_or_none(self._path)
            except OSError as e:
                raise TailIOError(self._path, "stat", str(e)) from e
            if st is not None and FileIdentity.from_stat(st) != self._identity:
                return PollOutcome.ROTATED

        if held.st_size < pos:
            return PollOutcome.TRUNCATED
        return PollOutcome.UNCHANGED

    def reopen(self) -> IO[bytes]:
        try:
            handle = open(self._path, "rb", buffering=0)
        except OSError as e:
            logger.error("reopen of rotated file %s failed: %s", self._path, e)
            raise TailIOError(self._path, "reopen", str(e)) from e
        try:
            self.attach(handle)
        except TailIOError:
            handle.close()
            raise
        self._state = TailState.READING
        return handle
