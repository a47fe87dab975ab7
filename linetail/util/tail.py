from __future__ import annotations

from collections import deque
from pathlib import Path
from threading import Event
from typing import Any, Callable, Iterator, TextIO

from linetail.config.tailer_config import TailerConfig
from linetail.session.tail_session import Line, TailSession


def render_text(line: Line) -> str:
    if line.text is not None:
        return line.text
    return line.data.decode("utf-8", errors="replace")


def iter_lines(path: Path, config: TailerConfig | None = None, **overrides: Any) -> Iterator[Line]:
    with TailSession.open(path, config, **overrides) as session:
        yield from session


def tail_last_lines(path: Path, n: int, config: TailerConfig | None = None) -> list[Line]:
    if n <= 0:
        return []
    cfg = (config or TailerConfig.default()).replace(tail=False)
    dq: deque[Line] = deque(maxlen=n)
    for line in iter_lines(path, cfg):
        dq.append(line)
    return list(dq)


def follow_lines(
    path: Path,
    last_lines: int = 50,
    *,
    config: TailerConfig | None = None,
    cancel_event: Event | None = None,
) -> Iterator[Line]:
    """
    Yield the last `last_lines` complete lines present at open, then block for
    new ones until `cancel_event` is set. An unterminated last line is held
    back until its terminator arrives.
    """
    cfg = (config or TailerConfig.default()).replace(tail=True)
    with TailSession.open(path, cfg, cancel_event=cancel_event) as session:
        backlog: deque[Line] = deque(maxlen=max(0, last_lines))
        while session.rotations == 0 and session.position < session.original_file_length:
            line = session.read_line(block=False)
            if line is None:
                break
            backlog.append(line)
        yield from backlog
        yield from session


def tail_follow(
    path: Path,
    out: TextIO,
    last_lines: int = 50,
    poll_seconds: float = 0.2,
    *,
    follow_rename: bool = True,
    cancel_event: Event | None = None,
    render: Callable[[Line], str] = render_text,
) -> int:
    """
    Minimal tail -F writing text to `out`. Returns the number of lines written.
    """
    cfg = TailerConfig(tail=True, poll_interval_seconds=poll_seconds, follow_rename=follow_rename)
    written = 0
    for line in follow_lines(path, last_lines, config=cfg, cancel_event=cancel_event):
        out.write(render(line))
        out.flush()
        written += 1
    return written
