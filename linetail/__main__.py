from __future__ import annotations

import argparse
import base64
import json
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import Any, Callable

from linetail.config.tailer_config import TailerConfig, load_tailer_config
from linetail.core.errors import TailIOError, TailOpenError
from linetail.core.line_scanner import LineEnd
from linetail.session.tail_session import Line, TailSession


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("path", help="File to read")
    p.add_argument("--config", default=None, help="JSON tailer config file (flags below override it)")
    p.add_argument("--line-end", choices=[m.value for m in LineEnd], default=None, help="Line-end policy (default: auto)")
    p.add_argument("--strip", action="store_true", help="Strip line-end bytes (output re-terminates with \\n)")
    p.add_argument(
        "--encoding",
        action="append",
        default=None,
        help="Candidate encoding, tried in order; repeat for more (default: utf-8)",
    )
    p.add_argument("--buffer-size", type=int, default=None, help="Read buffer size in bytes (default: 4096)")
    p.add_argument("--json", action="store_true", help="Emit one JSON object per line with telemetry")
    p.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="linetail")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_cat = sub.add_parser("cat", help="Read every line to end of file")
    _add_common(p_cat)

    p_last = sub.add_parser("last", help="Print the last N lines")
    _add_common(p_last)
    p_last.add_argument("-n", "--lines", type=int, default=10, help="Number of last lines to print")

    p_follow = sub.add_parser("follow", help="Follow the file for new lines (like tail -f)")
    _add_common(p_follow)
    p_follow.add_argument("-n", "--lines", type=int, default=10, help="Backlog lines to print first")
    p_follow.add_argument("--interval", type=float, default=None, help="Poll interval in seconds (default: 1.0)")
    p_follow.add_argument(
        "--follow-rename",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Reopen the path when the file is rotated (like tail -F)",
    )
    return parser.parse_args(argv)


def _config_from_args(args: argparse.Namespace) -> TailerConfig:
    cfg = load_tailer_config(Path(args.config)) if args.config else TailerConfig.default()
    changes: dict[str, Any] = {}
    if args.line_end is not None:
        changes["line_end"] = args.line_end
    if args.strip:
        changes["strip_line_ends"] = True
    if args.encoding:
        changes["encodings"] = tuple(args.encoding)
    if args.buffer_size is not None:
        changes["buffer_size"] = args.buffer_size
    if getattr(args, "interval", None) is not None:
        changes["poll_interval_seconds"] = args.interval
    if getattr(args, "follow_rename", None) is not None:
        changes["follow_rename"] = args.follow_rename
    return cfg.replace(**changes) if changes else cfg


def _line_to_json(line: Line) -> dict[str, Any]:
    obj: dict[str, Any] = {"line": line.number, "offset": line.offset, "encoding": line.encoding, "text": line.text}
    if line.text is None:
        obj["data_b64"] = base64.b64encode(line.data).decode("ascii")
    return obj


def _writer(args: argparse.Namespace, cfg: TailerConfig) -> Callable[[Line], None]:
    out = sys.stdout
    if args.json:

        def write_json(line: Line) -> None:
            out.write(json.dumps(_line_to_json(line), ensure_ascii=False) + "\n")
            out.flush()

        return write_json

    def write_raw(line: Line) -> None:
        # Decoded lines are re-encoded as UTF-8; undecodable ones pass through as raw bytes.
        data = line.text.encode("utf-8") if line.text is not None else line.data
        if cfg.strip_line_ends:
            data += b"\n"
        buf = getattr(out, "buffer", None)
        if buf is None:
            out.write(data.decode("utf-8", errors="replace"))
            out.flush()
            return
        out.flush()
        buf.write(data)
        buf.flush()

    return write_raw


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    args = _parse_args(argv)
    logging.basicConfig(level=str(args.log_level).upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        cfg = _config_from_args(args)
    except ValueError as e:
        raise SystemExit(f"invalid configuration: {e}")
    path = Path(args.path)
    write = _writer(args, cfg)

    try:
        if args.cmd == "cat":
            with TailSession.open(path, cfg.replace(tail=False)) as session:
                for line in session:
                    write(line)
            return 0

        if args.cmd == "last":
            from linetail.util.tail import tail_last_lines

            for line in tail_last_lines(path, n=int(args.lines), config=cfg):
                write(line)
            return 0

        if args.cmd == "follow":
            from linetail.util.tail import follow_lines

            stop = Event()
            signal.signal(signal.SIGINT, lambda *_: stop.set())
            signal.signal(signal.SIGTERM, lambda *_: stop.set())
            for line in follow_lines(path, int(args.lines), config=cfg, cancel_event=stop):
                write(line)
            return 0
    except TailOpenError as e:
        raise SystemExit(str(e))
    except TailIOError as e:
        print(f"linetail: {e}", file=sys.stderr)
        return 1

    raise SystemExit(f"unknown command: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
