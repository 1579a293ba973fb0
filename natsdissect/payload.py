"""Payload classification: JSON-shaped spans are decoded, everything else stays raw."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from .jsonvalue import JsonDecodeError, JsonValue, decode_json, skip_whitespace

_JSON_OPENERS = (ord("{"), ord("["))
_WHITESPACE_BYTES = b" \t\r\n"


class PayloadKind(enum.Enum):
    RAW = "raw"
    JSON = "json"
    INVALID_JSON = "invalid_json"


@dataclass(frozen=True)
class Payload:
    """Payload bytes plus whatever the classifier could make of them.

    ``data`` always holds the original bytes.  For ``INVALID_JSON`` payloads
    ``error`` carries the decoder message and ``error_offset`` the byte offset
    into ``data`` where decoding failed.
    """

    data: bytes = b""
    kind: PayloadKind = PayloadKind.RAW
    value: Optional[JsonValue] = None
    error: Optional[str] = None
    error_offset: Optional[int] = None

    @property
    def text(self) -> str:
        return self.data.decode("utf-8", errors="replace")

    @property
    def is_json(self) -> bool:
        return self.kind is PayloadKind.JSON

    def __len__(self) -> int:
        return len(self.data)


def looks_like_json(data: bytes) -> bool:
    stripped = data.lstrip(_WHITESPACE_BYTES)
    return bool(stripped) and stripped[0] in _JSON_OPENERS


def classify_payload(data: bytes) -> Payload:
    """Classify ``data`` and decode it when it is JSON-shaped."""
    data = bytes(data)
    if not looks_like_json(data):
        return Payload(data=data)
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        return Payload(
            data=data,
            kind=PayloadKind.INVALID_JSON,
            error=f"Invalid UTF-8: {exc.reason}",
            error_offset=exc.start,
        )
    try:
        value, end = decode_json(text)
    except JsonDecodeError as exc:
        return _invalid(data, text, exc.msg, exc.index)
    trailing = skip_whitespace(text, end)
    if trailing < len(text):
        return _invalid(data, text, "Extra data", trailing)
    return Payload(data=data, kind=PayloadKind.JSON, value=value)


def _invalid(data: bytes, text: str, message: str, char_index: int) -> Payload:
    # report positions in bytes, not characters
    offset = len(text[:char_index].encode("utf-8"))
    return Payload(data=data, kind=PayloadKind.INVALID_JSON, error=message, error_offset=offset)


__all__ = ["Payload", "PayloadKind", "classify_payload", "looks_like_json"]
