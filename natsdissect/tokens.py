"""Command-line tokenizer for the NATS client protocol."""

from __future__ import annotations

import re
from typing import AnyStr, List

# Only space and tab separate arguments on the wire.
_SEPARATOR = re.compile(r"[ \t]+")
_BLANKS = " \t"


def split_tokens(line: str) -> List[str]:
    """Split a command line into positional tokens.

    Runs of spaces and tabs separate tokens and empty tokens are dropped.  The
    protocol has no quoting or escaping, so a token can never contain a space
    or tab; other whitespace characters stay part of their token.
    """
    stripped = line.strip(_BLANKS)
    if not stripped:
        return []
    return _SEPARATOR.split(stripped)


def remainder_after_verb(line: AnyStr, verb: AnyStr) -> AnyStr:
    """Return the text following ``verb`` and exactly one separator character.

    INFO, CONNECT, -ERR and unknown commands carry free-form text after the
    verb; only the first separator is dropped so the rest is kept verbatim.
    Works on ``str`` and on raw ``bytes`` lines alike.
    """
    index = line.find(verb)
    if index < 0:
        return line[:0]
    rest = line[index + len(verb):]
    head = rest[:1]
    blanks = _BLANKS if isinstance(rest, str) else _BLANKS.encode("ascii")
    if head and head in blanks:
        rest = rest[1:]
    return rest


__all__ = ["split_tokens", "remainder_after_verb"]
