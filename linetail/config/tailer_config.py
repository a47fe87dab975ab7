from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

from linetail.core.decode import normalize_encodings
from linetail.core.line_scanner import LineEnd


_KNOWN_KEYS = {
    "buffer_size",
    "line_end",
    "strip_line_ends",
    "encodings",
    "tail",
    "poll_interval_seconds",
    "follow_rename",
    "reset_line_numbers_on_rotation",
}


@dataclass(frozen=True)
class TailerConfig:
    buffer_size: int = 4096
    line_end: LineEnd = LineEnd.AUTO
    strip_line_ends: bool = False
    encodings: tuple[str, ...] = ("utf-8",)
    tail: bool = False
    poll_interval_seconds: float = 1.0
    # Only honoured when tail is on.
    follow_rename: bool = False
    # When a rotated file is adopted, number its lines from 1 again (False keeps counting).
    reset_line_numbers_on_rotation: bool = True

    def __post_init__(self) -> None:
        try:
            line_end = LineEnd(self.line_end)
        except ValueError as e:
            raise ValueError(f"line_end must be one of {[m.value for m in LineEnd]}, got {self.line_end!r}") from e
        object.__setattr__(self, "line_end", line_end)
        object.__setattr__(self, "encodings", normalize_encodings(self.encodings))

        try:
            buffer_size = int(self.buffer_size)
            poll_interval = float(self.poll_interval_seconds)
        except (TypeError, ValueError) as e:
            raise ValueError(f"buffer_size and poll_interval_seconds must be numbers: {e}") from e
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        if poll_interval <= 0:
            raise ValueError("poll_interval_seconds must be > 0")
        object.__setattr__(self, "buffer_size", buffer_size)
        object.__setattr__(self, "poll_interval_seconds", poll_interval)

        for name in ("strip_line_ends", "tail", "follow_rename", "reset_line_numbers_on_rotation"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean")

    @staticmethod
    def default() -> "TailerConfig":
        return TailerConfig()

    def replace(self, **changes: Any) -> "TailerConfig":
        unknown = set(changes) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"unknown tailer config keys: {sorted(unknown)}")
        return replace(self, **changes)

    def to_json_obj(self) -> dict[str, Any]:
        obj = asdict(self)
        obj["line_end"] = self.line_end.value
        obj["encodings"] = list(self.encodings)
        return obj

    @staticmethod
    def from_json_obj(obj: dict[str, Any]) -> "TailerConfig":
        if not isinstance(obj, dict):
            raise ValueError("tailer config must be a JSON object")
        return TailerConfig.default().replace(**obj)


def load_tailer_config(path: Path) -> TailerConfig:
    obj = json.loads(Path(path).read_text(encoding="utf-8"))
    return TailerConfig.from_json_obj(obj)
