"""nats-dissect CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence

from natsdissect.config import ConfigError, DecoderConfig

from .commands import CommandRegistry, build_registry
from .context import InspectorContext
from .history import HistoryStore
from .output import emit_frames
from .repl import InspectorREPL, dispatch_line

LOG = logging.getLogger("nats_dissect.cli")

STDIN_NAME = "-"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Decode captured NATS client protocol streams")
    parser.add_argument(
        "files",
        nargs="*",
        help="Captured byte streams to decode ('-' reads stdin); starts the shell when omitted",
    )
    parser.add_argument("--json", action="store_true", help="Emit one JSON object per frame")
    parser.add_argument("--summary", action="store_true", help="Print a one-line summary per chunk instead of frame trees")
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=4096,
        help="Bytes fed to the decoder per read (default 4096)",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("NATS_DISSECT_LOG", "WARNING"),
        help="Logging level (default WARNING)",
    )
    parser.add_argument("--max-payload", type=int, help="Largest declared payload size accepted")
    parser.add_argument("--max-control-line", type=int, help="Longest command line buffered before giving up")
    parser.add_argument(
        "-c",
        "--command",
        help="Execute a single shell command non-interactively (quote the command string)",
    )
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".nats-dissect-history",
        help="Path to the shell history file",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        config = DecoderConfig.from_env(
            max_payload=args.max_payload,
            max_control_line=args.max_control_line,
        )
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    ctx = InspectorContext(
        config=config,
        json_output=args.json,
        summary_only=args.summary,
        chunk_size=args.chunk_size,
    )
    if args.files:
        return decode_files(ctx, args.files)
    registry = build_registry()
    if args.command:
        return _run_single_command(ctx, registry, args.command)
    repl = InspectorREPL(ctx, registry, history_store=HistoryStore(str(args.history)))
    try:
        return repl.run()
    except KeyboardInterrupt:
        print()
        return 0


def decode_files(ctx: InspectorContext, paths: Sequence[str]) -> int:
    """Decode each capture on its own connection; returns 1 if any file was unreadable."""
    status = 0
    for path in paths:
        if path == STDIN_NAME:
            _decode_stream(ctx, "<stdin>", sys.stdin.buffer)
            continue
        try:
            handle = open(path, "rb")
        except OSError as exc:
            LOG.error("cannot read %s: %s", path, exc.strerror or exc)
            print(f"error: cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
            status = 1
            continue
        with handle:
            _decode_stream(ctx, path, handle)
    return status


def _decode_stream(ctx: InspectorContext, name: str, stream: BinaryIO) -> None:
    ctx.switch(name)
    total = 0
    while True:
        chunk = stream.read(ctx.chunk_size)
        if not chunk:
            break
        total += len(chunk)
        emit_frames(ctx, ctx.feed(chunk), connection=name)
    emit_frames(ctx, ctx.close_current(), connection=name)
    LOG.info("decoded %d bytes from %s", total, name)


def _run_single_command(ctx: InspectorContext, registry: CommandRegistry, command_line: str) -> int:
    try:
        return dispatch_line(ctx, registry, command_line)
    except SystemExit as exc:
        return int(exc.code or 0)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
