"""Header block parsing for HPUB/HMSG payloads.

A header block looks like::

    NATS/1.0[ <status-code>[ <status-text>]]\r\n
    Name: Value\r\n
    ...
    \r\n

The first line is the version/status line.  Every following line is split at
its first colon; lines without a colon are skipped rather than treated as
fatal, since the decoder is used on captured traffic it cannot ask to resend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

HEADER_VERSION_PREFIX = "NATS/"


@dataclass(frozen=True)
class HeaderBlock:
    """Parsed header block.

    ``headers`` holds ``(name, values)`` pairs in first-seen order of the
    names, with every value of a name kept in arrival order.  Tuples keep the
    block, and the frames carrying it, hashable.
    """

    version: str = ""
    status_code: Optional[str] = None
    status_text: Optional[str] = None
    headers: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    def _values(self, name: str) -> Tuple[str, ...]:
        for key, values in self.headers:
            if key == name:
                return values
        return ()

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return the first value recorded for ``name``."""
        values = self._values(name)
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        return list(self._values(name))

    def items(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(name, value)`` pairs, one per value, in arrival order per name."""
        for name, values in self.headers:
            for value in values:
                yield name, value

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self.headers}

    def __len__(self) -> int:
        return len(self.headers)


def parse_status_line(line: str) -> Tuple[str, Optional[str], Optional[str]]:
    """Split ``NATS/1.0 503 No Responders`` into version, code and text."""
    parts = line.strip().split(None, 2)
    if not parts:
        return "", None, None
    version = parts[0]
    code = parts[1] if len(parts) > 1 else None
    text = parts[2] if len(parts) > 2 else None
    return version, code, text


def parse_header_block(data: bytes) -> HeaderBlock:
    """Parse the ``header_bytes`` prefix of an H-verb payload."""
    text = data.decode("utf-8", errors="replace")
    lines = text.split("\r\n")
    version, code, status_text = parse_status_line(lines[0])
    if version and not version.startswith(HEADER_VERSION_PREFIX):
        logger.debug("header block has unexpected version line %r", lines[0])

    headers: Dict[str, List[str]] = {}
    for line in lines[1:]:
        if not line:
            # blank line terminates the block
            break
        name, sep, value = line.partition(":")
        if not sep:
            logger.debug("skipping header line without ':' %r", line)
            continue
        if value.startswith(" "):
            value = value[1:]
        headers.setdefault(name, []).append(value)
    frozen = tuple((name, tuple(values)) for name, values in headers.items())
    return HeaderBlock(version=version, status_code=code, status_text=status_text, headers=frozen)


__all__ = ["HeaderBlock", "HEADER_VERSION_PREFIX", "parse_header_block", "parse_status_line"]
