"""Command-line parsing helpers for the nats-dissect shell."""

from __future__ import annotations

import shlex
from typing import List, Tuple

_SIMPLE_ESCAPES = {
    "r": b"\r",
    "n": b"\n",
    "t": b"\t",
    "0": b"\x00",
    "\\": b"\\",
}


def split_command(line: str) -> List[str]:
    """Split a command line into argv tokens using shlex rules."""
    if not line:
        return []
    try:
        return shlex.split(line, comments=False, posix=True)
    except ValueError as exc:
        # Return the raw line as a single token so callers can raise a friendlier error.
        return [line.strip(), f"#parse-error:{exc}"]


def split_verb(line: str) -> Tuple[str, str]:
    """Split ``line`` into the command name and the untouched rest of the line."""
    stripped = line.lstrip()
    name, _, rest = stripped.partition(" ")
    return name, rest


def decode_escapes(text: str) -> bytes:
    r"""Encode ``text`` as UTF-8, expanding ``\r``, ``\n``, ``\t``, ``\0``, ``\\`` and ``\xHH``.

    :raises ValueError: on an unknown or incomplete escape sequence
    """
    out = bytearray()
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if char != "\\":
            out += char.encode("utf-8")
            index += 1
            continue
        if index + 1 >= length:
            raise ValueError("dangling backslash at end of input")
        code = text[index + 1]
        if code in _SIMPLE_ESCAPES:
            out += _SIMPLE_ESCAPES[code]
            index += 2
            continue
        if code == "x":
            digits = text[index + 2:index + 4]
            if len(digits) != 2:
                raise ValueError(f"incomplete \\x escape at position {index}")
            try:
                out.append(int(digits, 16))
            except ValueError:
                raise ValueError(f"invalid \\x escape {digits!r} at position {index}") from None
            index += 4
            continue
        raise ValueError(f"unknown escape \\{code} at position {index}")
    return bytes(out)


__all__ = ["decode_escapes", "split_command", "split_verb"]
