"""Output helpers for nats-dissect."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Sequence

from natsdissect.frames import Frame
from natsdissect.render import frame_to_dict, render_frame, summarize

from .context import InspectorContext


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def emit_result(ctx: InspectorContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = data
        else:
            payload["message"] = message
        print(_json_dump(payload))
    else:
        print(message)


def emit_error(ctx: InspectorContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        print(_json_dump(payload))
    else:
        print(f"error: {message}")


def emit_frames(ctx: InspectorContext, frames: Sequence[Frame], *, connection: Optional[str] = None) -> None:
    """Print decoded frames.

    JSON mode writes one compact object per frame so the output can be piped
    through line-oriented tools.
    """
    if not frames:
        return
    if ctx.json_output:
        for frame in frames:
            record = frame_to_dict(frame)
            if connection is not None:
                record["connection"] = connection
            print(json.dumps(record, sort_keys=True))
        return
    if ctx.summary_only:
        prefix = f"[{connection}] " if connection is not None else ""
        print(prefix + summarize(frames))
        return
    for frame in frames:
        print(render_frame(frame))


__all__ = ["emit_result", "emit_error", "emit_frames"]
