from __future__ import annotations

import os
from dataclasses import dataclass
from typing import IO


@dataclass(frozen=True)
class FileIdentity:
    """
    Durable identity of an underlying file: (device, inode).

    Rotation replaces the file behind a path while the path string stays the
    same, so identity must come from stat metadata, never from the path.
    """

    device: int
    inode: int

    @staticmethod
    def from_stat(st: os.stat_result) -> "FileIdentity":
        return FileIdentity(device=int(st.st_dev), inode=int(st.st_ino))

    @staticmethod
    def of_handle(handle: IO[bytes]) -> "FileIdentity":
        return FileIdentity.from_stat(os.fstat(handle.fileno()))


def stat_path_or_none(path: os.PathLike[str] | str) -> os.stat_result | None:
    # A missing path is normal mid-rotation (old file renamed, new one not yet created).
    try:
        return os.stat(path)
    except FileNotFoundError:
        return None
