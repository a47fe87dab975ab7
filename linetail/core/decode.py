from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(frozen=True)
class DecodeResult:
    text: str | None
    encoding: str | None = None

    @property
    def ok(self) -> bool:
        return self.text is not None


DECODE_MISS = DecodeResult(text=None)


def decode(data: bytes, encodings: Sequence[str]) -> DecodeResult:
    """
    Try each codec in order (strict errors) and return the first success.

    Bytes that no candidate accepts give DECODE_MISS rather than an exception.
    """
    for enc in encodings:
        try:
            return DecodeResult(text=data.decode(enc, errors="strict"), encoding=enc)
        except UnicodeError:
            continue
    return DECODE_MISS


def normalize_encodings(encodings: Iterable[str] | str) -> tuple[str, ...]:
    if isinstance(encodings, str):
        encodings = [encodings]
    if isinstance(encodings, (bytes, dict)) or not hasattr(encodings, "__iter__"):
        raise ValueError("encodings must be a codec name or a list of codec names")
    out: list[str] = []
    for enc in encodings:
        name = str(enc).strip()
        try:
            info = codecs.lookup(name)
        except LookupError as e:
            raise ValueError(f"unknown encoding: {enc!r}") from e
        # bytes.decode refuses bytes-to-bytes codecs such as hex or rot13.
        if not getattr(info, "_is_text_encoding", True):
            raise ValueError(f"not a text encoding: {enc!r}")
        out.append(name)
    if not out:
        raise ValueError("encodings must contain at least one codec")
    return tuple(out)
