from __future__ import annotations

from pathlib import Path


class TailOpenError(RuntimeError):
    """The initial path could not be opened for reading; no session exists."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"cannot open {path} for reading: {reason}")
        self.path = Path(path)


class TailIOError(RuntimeError):
    """A read, stat or reopen failed on an already-open session."""

    def __init__(self, path: Path | str, op: str, reason: str) -> None:
        super().__init__(f"{op} failed for {path}: {reason}")
        self.path = Path(path)
        self.op = op
