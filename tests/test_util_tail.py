from __future__ import annotations

import io
import tempfile
import threading
import time
import unittest
from pathlib import Path

from linetail.config.tailer_config import TailerConfig
from linetail.util.tail import follow_lines, iter_lines, tail_follow, tail_last_lines


class TailLastLinesTests(unittest.TestCase):
    def test_returns_last_n_lines_with_numbers(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"a\nb\nc\n")
            out = tail_last_lines(p, n=2)
            self.assertEqual([line.data for line in out], [b"b\n", b"c\n"])
            self.assertEqual([line.number for line in out], [2, 3])
            self.assertEqual(tail_last_lines(p, n=0), [])

    def test_ignores_tail_mode_in_config(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"a\nb")
            out = tail_last_lines(p, n=5, config=TailerConfig(tail=True, strip_line_ends=True))
            self.assertEqual([line.text for line in out], ["a", "b"])


class IterLinesTests(unittest.TestCase):
    def test_overrides_apply(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"a\r\nb\r\n")
            self.assertEqual([line.data for line in iter_lines(p, strip_line_ends=True)], [b"a", b"b"])


class FollowTests(unittest.TestCase):
    def test_follow_lines_prints_backlog_then_new_lines(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"1\n2\n3\n")
            stop = threading.Event()
            got: list[bytes] = []

            def consume() -> None:
                cfg = TailerConfig(poll_interval_seconds=0.05)
                for line in follow_lines(p, last_lines=2, config=cfg, cancel_event=stop):
                    got.append(line.data)

            t = threading.Thread(target=consume, daemon=True)
            t.start()
            deadline = time.time() + 2.0
            while len(got) < 2 and time.time() < deadline:
                time.sleep(0.01)
            with open(p, "ab") as f:
                f.write(b"4\n")
            deadline = time.time() + 2.0
            while len(got) < 3 and time.time() < deadline:
                time.sleep(0.01)
            stop.set()
            t.join(timeout=2.0)
            self.assertFalse(t.is_alive())
            self.assertEqual(got, [b"2\n", b"3\n", b"4\n"])

    def test_follow_lines_holds_back_unterminated_last_line(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"a\nb\npartial")
            stop = threading.Event()
            got: list[bytes] = []

            def consume() -> None:
                cfg = TailerConfig(poll_interval_seconds=0.05)
                for line in follow_lines(p, last_lines=5, config=cfg, cancel_event=stop):
                    got.append(line.data)

            t = threading.Thread(target=consume, daemon=True)
            t.start()
            deadline = time.time() + 2.0
            while len(got) < 2 and time.time() < deadline:
                time.sleep(0.01)
            self.assertEqual(got, [b"a\n", b"b\n"])

            with open(p, "ab") as f:
                f.write(b" line\n")
            deadline = time.time() + 2.0
            while len(got) < 3 and time.time() < deadline:
                time.sleep(0.01)
            stop.set()
            t.join(timeout=2.0)
            self.assertFalse(t.is_alive())
            self.assertEqual(got, [b"a\n", b"b\n", b"partial line\n"])

    def test_tail_follow_writes_text_until_cancelled(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"a\nb\n\xff\n")
            out = io.StringIO()
            stop = threading.Event()
            timer = threading.Timer(0.2, stop.set)
            timer.start()
            try:
                n = tail_follow(p, out, last_lines=5, poll_seconds=0.05, cancel_event=stop)
            finally:
                timer.cancel()
            self.assertEqual(n, 3)
            self.assertEqual(out.getvalue(), "a\nb\n\ufffd\n")


if __name__ == "__main__":
    unittest.main()
