"""Connection management commands."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import InspectorContext
from ..output import emit_error, emit_frames, emit_result


class CloseCommand(Command):
    def __init__(self) -> None:
        super().__init__("close", "End the current connection and flush partial frames")

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        name = ctx.current
        frames = ctx.close_current()
        emit_frames(ctx, frames, connection=name)
        emit_result(
            ctx,
            message=f"closed {name} ({len(frames)} frames flushed)",
            data={"connection": name, "flushed": len(frames)},
        )
        return 0


class ResetCommand(Command):
    def __init__(self) -> None:
        super().__init__("reset", "Discard every connection and its buffered bytes")

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        ctx.reset()
        emit_result(ctx, message="all connections discarded", data={"connection": ctx.current})
        return 0


class StateCommand(Command):
    def __init__(self) -> None:
        super().__init__("state", "Show decoder state for the current connection", aliases=("status",))

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        decoder = ctx.decoder
        data = {
            "connection": ctx.current,
            "state": decoder.state.value,
            "buffered": decoder.buffered,
            "offset": decoder.offset,
            "frames": decoder.frames_emitted,
            "connections": ctx.connections(),
        }
        emit_result(
            ctx,
            message=(
                f"{ctx.current}: {decoder.state.value}, {decoder.buffered} bytes buffered, "
                f"{decoder.frames_emitted} frames at offset {decoder.offset}"
            ),
            data=data,
        )
        return 0


class ConnCommand(Command):
    def __init__(self) -> None:
        super().__init__("conn", "Switch connection or list connections", usage="[name]")

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        if not argv:
            names = ctx.connections()
            lines = [("* " if name == ctx.current else "  ") + name for name in names]
            if ctx.current not in names:
                lines.insert(0, f"* {ctx.current} (idle)")
            emit_result(ctx, message="\n".join(lines), data={"current": ctx.current, "connections": names})
            return 0
        try:
            ctx.switch(argv[0])
        except ValueError as exc:
            emit_error(ctx, message=str(exc))
            return 1
        emit_result(ctx, message=f"current connection: {ctx.current}", data={"current": ctx.current})
        return 0
