"""Commands that push bytes into the current connection's decoder."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .base import Command
from ..context import InspectorContext
from ..output import emit_error, emit_frames, emit_result
from ..parser import decode_escapes

LOGGER = logging.getLogger("nats_dissect.commands.feed")


class FeedCommand(Command):
    def __init__(self) -> None:
        super().__init__(
            "feed",
            r"Feed text to the decoder (escapes: \r \n \t \0 \\ \xHH)",
            aliases=("f",),
            usage="<text>",
            raw=True,
        )

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        if not argv or not argv[0]:
            emit_error(ctx, message="usage: feed <text>")
            return 1
        try:
            data = decode_escapes(argv[0])
        except ValueError as exc:
            emit_error(ctx, message=str(exc))
            return 1
        frames = ctx.feed(data)
        emit_frames(ctx, frames, connection=ctx.current)
        if not frames and not ctx.json_output:
            decoder = ctx.decoder
            print(f"(no complete frame; {decoder.buffered} bytes buffered, {decoder.state.value})")
        return 0


class LoadCommand(Command):
    def __init__(self) -> None:
        super().__init__("load", "Feed a capture file to the current connection", usage="<file>")

    def run(self, ctx: InspectorContext, argv: List[str]) -> int:
        if len(argv) != 1:
            emit_error(ctx, message="usage: load <file>")
            return 1
        path = Path(argv[0]).expanduser()
        try:
            handle = path.open("rb")
        except OSError as exc:
            emit_error(ctx, message=f"cannot open {path}: {exc.strerror or exc}")
            return 1
        total = 0
        count = 0
        with handle:
            while True:
                chunk = handle.read(ctx.chunk_size)
                if not chunk:
                    break
                total += len(chunk)
                frames = ctx.feed(chunk)
                count += len(frames)
                emit_frames(ctx, frames, connection=ctx.current)
        LOGGER.debug("loaded %d bytes from %s", total, path)
        emit_result(
            ctx,
            message=f"loaded {total} bytes from {path} ({count} frames)",
            data={"path": str(path), "bytes": total, "frames": count, "connection": ctx.current},
        )
        return 0
