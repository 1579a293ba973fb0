"""Typed JSON values and the decoder used for INFO/CONNECT and message payloads.

Parsing is delegated to :class:`json.JSONDecoder`; the result is converted
into a small closed set of frozen dataclasses so callers can match on the
variant instead of probing arbitrary Python objects.  Object members keep
their wire order (duplicates included) for display purposes.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple, Union

_WHITESPACE = re.compile(r"[ \t\n\r]*")


class JsonDecodeError(ValueError):
    """Raised when text is not valid JSON.

    ``msg`` is the decoder's message and ``index`` the character position in
    the decoded text where the problem was detected.
    """

    def __init__(self, msg: str, index: int) -> None:
        super().__init__(f"{msg} (char {index})")
        self.msg = msg
        self.index = index


@dataclass(frozen=True)
class JsonNull:
    def to_python(self) -> None:
        return None


@dataclass(frozen=True)
class JsonBool:
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class JsonNumber:
    value: Union[int, float]

    def to_python(self) -> Union[int, float]:
        return self.value


@dataclass(frozen=True)
class JsonString:
    value: str

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class JsonArray:
    items: Tuple["JsonValue", ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["JsonValue"]:
        return iter(self.items)

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class JsonObject:
    """JSON object as an ordered sequence of ``(name, value)`` members."""

    members: Tuple[Tuple[str, "JsonValue"], ...] = ()

    def __len__(self) -> int:
        return len(self.members)

    def keys(self) -> List[str]:
        return [name for name, _ in self.members]

    def items(self) -> List[Tuple[str, "JsonValue"]]:
        return list(self.members)

    def get(self, name: str, default: Optional["JsonValue"] = None) -> Optional["JsonValue"]:
        # Last occurrence wins, matching json.loads semantics.
        found = default
        for key, value in self.members:
            if key == name:
                found = value
        return found

    def to_python(self) -> dict:
        return {name: value.to_python() for name, value in self.members}


JsonValue = Union[JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject]

_JSON_TYPES = (JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject)


def from_python(value: Any) -> JsonValue:
    """Convert a plain Python structure (as produced by :mod:`json`) to a JsonValue."""
    if isinstance(value, _JSON_TYPES):
        return value
    if value is None:
        return JsonNull()
    if isinstance(value, bool):
        return JsonBool(value)
    if isinstance(value, (int, float)):
        return JsonNumber(value)
    if isinstance(value, str):
        return JsonString(value)
    if isinstance(value, (list, tuple)):
        return JsonArray(tuple(from_python(item) for item in value))
    if isinstance(value, dict):
        return JsonObject(tuple((str(key), from_python(item)) for key, item in value.items()))
    raise TypeError(f"cannot represent {type(value).__name__} as JSON")


def _object_pairs(pairs: List[Tuple[str, Any]]) -> JsonObject:
    return JsonObject(tuple((name, from_python(value)) for name, value in pairs))


_DECODER = json.JSONDecoder(object_pairs_hook=_object_pairs)


def decode_json(text: str, start: int = 0) -> Tuple[JsonValue, int]:
    """Decode one JSON value from ``text`` beginning at ``start``.

    Leading whitespace is skipped.  Returns the value and the index just past
    it; trailing text is left for the caller to judge.

    :raises JsonDecodeError: with the failing position on malformed input
    """
    start = _WHITESPACE.match(text, start).end()
    try:
        obj, end = _DECODER.raw_decode(text, start)
    except json.JSONDecodeError as exc:
        raise JsonDecodeError(exc.msg, exc.pos) from exc
    except RecursionError as exc:
        raise JsonDecodeError("Maximum nesting depth exceeded", start) from exc
    except ValueError as exc:
        # e.g. integer literals beyond the interpreter's int conversion limit
        raise JsonDecodeError(str(exc), start) from exc
    return from_python(obj), end


def skip_whitespace(text: str, index: int) -> int:
    return _WHITESPACE.match(text, index).end()


__all__ = [
    "JsonDecodeError",
    "JsonNull",
    "JsonBool",
    "JsonNumber",
    "JsonString",
    "JsonArray",
    "JsonObject",
    "JsonValue",
    "decode_json",
    "from_python",
    "skip_whitespace",
]
