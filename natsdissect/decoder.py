"""Incremental stream decoder for one NATS client connection.

The decoder keeps a :class:`DecodeCursor` between calls: bytes that did not
yet form a complete frame stay buffered and decoding resumes where it stopped
when the next chunk arrives.  Command lines are found by scanning for CRLF;
payloads are consumed by the byte count the command declared and are never
scanned, because payload bytes may contain CRLF themselves.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .builder import CommandBuilder, PendingCommand
from .config import DecoderConfig
from .frames import Frame, Issue, Span, UnknownFrame
from .headers import parse_header_block
from .payload import classify_payload
from .tokens import split_tokens

logger = logging.getLogger(__name__)

CRLF = b"\r\n"
CRLF_SIZE = len(CRLF)


class DecoderState(enum.Enum):
    AWAITING_COMMAND_LINE = "awaiting_command_line"
    AWAITING_PAYLOAD = "awaiting_payload"


@dataclass
class DecodeCursor:
    """Per-connection decoding state carried across :meth:`StreamDecoder.feed` calls."""

    buffer: bytearray = field(default_factory=bytearray)
    offset: int = 0
    state: DecoderState = DecoderState.AWAITING_COMMAND_LINE
    pending: Optional[PendingCommand] = None
    frame_start: int = 0
    # Leading bytes of a command line that exceeded the limit; the rest is skipped up to CRLF.
    overflow: Optional[bytes] = None

    @property
    def remaining(self) -> int:
        """Bytes still missing before the pending payload and its terminator are buffered."""
        if self.state is not DecoderState.AWAITING_PAYLOAD or self.pending is None:
            return 0
        needed = (self.pending.payload_size or 0) + CRLF_SIZE
        return max(0, needed - len(self.buffer))

    def consume(self, count: int) -> bytes:
        chunk = bytes(self.buffer[:count])
        del self.buffer[:count]
        self.offset += len(chunk)
        return chunk

    def await_command_line(self) -> None:
        self.state = DecoderState.AWAITING_COMMAND_LINE
        self.pending = None
        self.frame_start = self.offset
        self.overflow = None


def _unterminated_length(buffer: bytearray) -> int:
    # a trailing CR may be the first half of the terminator
    return len(buffer) - (1 if buffer.endswith(b"\r") else 0)


class StreamDecoder:
    """Decode a NATS client byte stream delivered in arbitrary chunks."""

    def __init__(self, config: Optional[DecoderConfig] = None, *, builder: Optional[CommandBuilder] = None) -> None:
        self.config = config or DecoderConfig()
        self.builder = builder or CommandBuilder(self.config)
        self.cursor = DecodeCursor()
        self.frames_emitted = 0

    @property
    def state(self) -> DecoderState:
        return self.cursor.state

    @property
    def buffered(self) -> int:
        return len(self.cursor.buffer)

    @property
    def offset(self) -> int:
        """Absolute stream offset of the first byte not yet consumed."""
        return self.cursor.offset

    def feed(self, data: bytes) -> List[Frame]:
        """Append ``data`` and return every frame it completed, in stream order."""
        if data:
            self.cursor.buffer += data
        frames: List[Frame] = []
        while True:
            if self.cursor.state is DecoderState.AWAITING_COMMAND_LINE:
                progressed = self._read_command_line(frames)
            else:
                progressed = self._read_payload(frames)
            if not progressed:
                break
        self.frames_emitted += len(frames)
        return frames

    def close(self) -> List[Frame]:
        """Flush whatever is buffered as truncated frames and reset for a new stream."""
        cursor = self.cursor
        frames: List[Frame] = []
        if cursor.state is DecoderState.AWAITING_PAYLOAD and cursor.pending is not None:
            pending = cursor.pending
            size = pending.payload_size or 0
            body = bytes(cursor.buffer[:size])
            cursor.consume(len(cursor.buffer))
            truncated = len(body) < size
            if truncated:
                logger.debug("stream closed %d bytes short of %s payload", size - len(body), pending.frame.verb)
            frames.append(self._complete(pending, body, cursor.frame_start, cursor.offset, truncated=truncated))
        elif cursor.overflow is not None:
            cursor.consume(len(cursor.buffer))
            frames.append(self._overflow_frame(truncated=True))
        elif cursor.buffer:
            start = cursor.offset
            raw = cursor.consume(len(cursor.buffer))
            if raw.decode("utf-8", errors="replace").strip():
                logger.debug("stream closed inside command line %r", raw)
                pending = self.builder.build(raw)
                if pending.expects_payload:
                    frames.append(self._complete(pending, b"", start, cursor.offset, truncated=True))
                else:
                    frames.append(replace(pending.frame, span=Span(start, cursor.offset), truncated=True))
        cursor.await_command_line()
        self.frames_emitted += len(frames)
        return frames

    def reset(self) -> None:
        """Drop buffered bytes and pending state; the stream offset restarts at zero."""
        self.cursor = DecodeCursor()

    #
    # State handlers.  Each returns True when it made progress.
    #
    def _read_command_line(self, frames: List[Frame]) -> bool:
        cursor = self.cursor
        end = cursor.buffer.find(CRLF)
        if cursor.overflow is None:
            length = end if end >= 0 else _unterminated_length(cursor.buffer)
            if length > self.config.max_control_line:
                self._begin_overflow()
            elif end < 0:
                return False
            else:
                return self._take_command_line(frames, end)
        return self._skip_overflow(frames, end)

    def _take_command_line(self, frames: List[Frame], end: int) -> bool:
        cursor = self.cursor
        start = cursor.offset
        raw = cursor.consume(end + CRLF_SIZE)[:end]
        if not raw.decode("utf-8", errors="replace").strip():
            return True
        pending = self.builder.build(raw)
        if not pending.expects_payload:
            frames.append(replace(pending.frame, span=Span(start, cursor.offset)))
            return True
        cursor.state = DecoderState.AWAITING_PAYLOAD
        cursor.pending = pending
        cursor.frame_start = start
        return True

    def _read_payload(self, frames: List[Frame]) -> bool:
        cursor = self.cursor
        pending = cursor.pending
        assert pending is not None  # set together with AWAITING_PAYLOAD
        size = pending.payload_size or 0
        if len(cursor.buffer) < size + CRLF_SIZE:
            return False
        body = cursor.consume(size)
        if cursor.buffer[:CRLF_SIZE] == CRLF:
            cursor.consume(CRLF_SIZE)
        else:
            logger.warning(
                "%s payload at offset %d not followed by CRLF (got %r)",
                pending.frame.verb,
                cursor.offset,
                bytes(cursor.buffer[:CRLF_SIZE]),
            )
        frames.append(self._complete(pending, body, cursor.frame_start, cursor.offset, truncated=False))
        cursor.await_command_line()
        return True

    def _complete(self, pending: PendingCommand, body: bytes, start: int, end: int, *, truncated: bool) -> Frame:
        span = Span(start, end)
        if pending.header_size is not None:
            split = min(pending.header_size, len(body))
            return replace(
                pending.frame,
                headers=parse_header_block(body[:split]),
                payload=classify_payload(body[split:]),
                span=span,
                truncated=truncated,
            )
        return replace(pending.frame, payload=classify_payload(body), span=span, truncated=truncated)

    def _begin_overflow(self) -> None:
        cursor = self.cursor
        limit = self.config.max_control_line
        cursor.frame_start = cursor.offset
        cursor.overflow = bytes(cursor.buffer[:limit])
        logger.warning("command line at offset %d exceeds %d bytes; skipping to the next CRLF", cursor.offset, limit)

    def _skip_overflow(self, frames: List[Frame], end: int) -> bool:
        cursor = self.cursor
        if end < 0:
            cursor.consume(_unterminated_length(cursor.buffer))
            return False
        cursor.consume(end + CRLF_SIZE)
        frames.append(self._overflow_frame(truncated=False))
        return True

    def _overflow_frame(self, *, truncated: bool) -> Frame:
        cursor = self.cursor
        text = (cursor.overflow or b"").decode("utf-8", errors="replace")
        tokens = split_tokens(text)
        frame = UnknownFrame(
            verb=tokens[0] if tokens else "",
            raw_line=text,
            span=Span(cursor.frame_start, cursor.offset),
            truncated=truncated,
            text=text,
            reason=f"command line exceeds {self.config.max_control_line} bytes",
            issue=Issue.MALFORMED_COMMAND,
        )
        cursor.await_command_line()
        return frame


__all__ = ["CRLF", "DecodeCursor", "DecoderState", "StreamDecoder"]
