"""Human- and machine-readable views of decoded frames."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .frames import (
    ErrFrame,
    Frame,
    HEADER_FRAMES,
    StatusLineFrame,
    UnknownFrame,
)
from .headers import HeaderBlock
from .jsonvalue import JsonArray, JsonObject, JsonValue
from .payload import Payload, PayloadKind

INDENT = "  "

# (attribute, label) in display order
_FIELD_LABELS = (
    ("subject", "Subject"),
    ("sid", "Subscription ID"),
    ("reply_to", "Reply Subject"),
    ("queue_group", "Queue Group"),
    ("header_bytes", "Header Bytes"),
    ("total_bytes", "Total Bytes"),
    ("max_msgs", "Max Messages"),
    ("error_text", "Error Message"),
)


def summarize(frames: Iterable[Frame]) -> str:
    """One-line digest of ``frames``, e.g. ``"CONNECT PING SUB foo MSG foo"``."""
    return " ".join(frame.summary() for frame in frames)


def payload_to_dict(payload: Payload) -> Dict[str, Any]:
    result: Dict[str, Any] = {"kind": payload.kind.value, "size": len(payload.data)}
    if payload.kind is PayloadKind.JSON and payload.value is not None:
        result["value"] = payload.value.to_python()
        return result
    try:
        result["text"] = payload.data.decode("utf-8")
    except UnicodeDecodeError:
        result["text"] = payload.text
        result["hex"] = payload.data.hex()
    if payload.kind is PayloadKind.INVALID_JSON:
        result["error"] = payload.error
        result["error_offset"] = payload.error_offset
    return result


def headers_to_dict(block: HeaderBlock) -> Dict[str, Any]:
    return {
        "version": block.version,
        "status_code": block.status_code,
        "status_text": block.status_text,
        "headers": block.as_dict(),
    }


def frame_to_dict(frame: Frame) -> Dict[str, Any]:
    """JSON-friendly representation of a frame."""
    result: Dict[str, Any] = {
        "verb": frame.verb,
        "type": type(frame).__name__,
        "span": [frame.span.start, frame.span.end],
        "truncated": frame.truncated,
    }
    for attr, _ in _FIELD_LABELS:
        if hasattr(frame, attr):
            result[attr] = getattr(frame, attr)
    if hasattr(frame, "size"):
        result["size"] = getattr(frame, "size")
    if isinstance(frame, HEADER_FRAMES):
        result["headers"] = headers_to_dict(frame.headers)
    payload = getattr(frame, "payload", None)
    if isinstance(payload, Payload):
        result["payload"] = payload_to_dict(payload)
    if isinstance(frame, StatusLineFrame):
        result.update(version=frame.version, status_code=frame.status_code, status_text=frame.status_text)
    if isinstance(frame, UnknownFrame):
        result.update(text=frame.text, reason=frame.reason)
    issues = frame.issues()
    if issues:
        result["issues"] = [issue.value for issue in issues]
    return result


def render_frame(frame: Frame) -> str:
    """Indented text tree for ``frame``."""
    head = f"{frame.verb or '?'} [{frame.span.start}:{frame.span.end}]"
    if frame.truncated:
        head += " (truncated)"
    lines: List[str] = [head]
    for attr, label in _FIELD_LABELS:
        value = getattr(frame, attr, None)
        if value is None or value == "":
            continue
        lines.append(f"{INDENT}{label}: {value}")
    if isinstance(frame, ErrFrame) and not frame.error_text:
        lines.append(f"{INDENT}Error Message: (empty)")
    if isinstance(frame, StatusLineFrame):
        lines.append(f"{INDENT}Status: {frame.raw_line.strip()}")
        if frame.status_code:
            lines.append(f"{INDENT * 2}Code: {frame.status_code}")
    if isinstance(frame, UnknownFrame):
        if frame.reason:
            lines.append(f"{INDENT}Malformed: {frame.reason}")
        if frame.text:
            lines.append(f"{INDENT}Payload: {frame.text}")
    if isinstance(frame, HEADER_FRAMES):
        lines.extend(_header_lines(frame.headers))
    payload = getattr(frame, "payload", None)
    if isinstance(payload, Payload):
        lines.extend(_payload_lines(payload))
    return "\n".join(lines)


def _header_lines(block: HeaderBlock) -> List[str]:
    lines = [f"{INDENT}Headers: {block.version}".rstrip()]
    if block.status_code:
        status = block.status_code + (f" {block.status_text}" if block.status_text else "")
        lines.append(f"{INDENT * 2}Status: {status}")
    for name, value in block.items():
        lines.append(f"{INDENT * 2}{name}: {value}")
    return lines


def _payload_lines(payload: Payload) -> List[str]:
    if payload.kind is PayloadKind.JSON and payload.value is not None:
        return [f"{INDENT}JSON Payload"] + _json_lines(payload.value, 2)
    if payload.kind is PayloadKind.INVALID_JSON:
        return [
            f"{INDENT}Invalid JSON: {payload.error} (byte {payload.error_offset})",
            f"{INDENT}Payload: {payload.text}",
        ]
    if not payload.data:
        return []
    return [f"{INDENT}Payload: {payload.text}"]


def _json_lines(value: JsonValue, depth: int) -> List[str]:
    pad = INDENT * depth
    if isinstance(value, JsonObject):
        members = value.items()
    elif isinstance(value, JsonArray):
        members = [(str(index), item) for index, item in enumerate(value)]
    else:
        return [f"{pad}{_scalar_text(value)}"]
    lines: List[str] = []
    for name, item in members:
        if isinstance(item, (JsonObject, JsonArray)):
            lines.append(f"{pad}{name}")
            lines.extend(_json_lines(item, depth + 1))
        else:
            lines.append(f"{pad}{name}: {_scalar_text(item)}")
    return lines


def _scalar_text(value: JsonValue) -> str:
    raw = value.to_python()
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


__all__ = ["frame_to_dict", "headers_to_dict", "payload_to_dict", "render_frame", "summarize"]
