"""Turn one command line into a frame plus the number of payload bytes that follow.

Each verb has a fixed set of valid token counts.  The count is checked before
any field is read, and a line that breaks its verb's rules becomes an
:class:`~natsdissect.frames.UnknownFrame` flagged as malformed instead of an
error that would stop the stream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type, Union

from .config import DecoderConfig
from .frames import (
    CONNECT,
    ERR,
    HMSG,
    HPUB,
    INFO,
    MSG,
    OK,
    PING,
    PONG,
    PUB,
    SUB,
    UNSUB,
    ConnectFrame,
    ErrFrame,
    Frame,
    HmsgFrame,
    HpubFrame,
    InfoFrame,
    Issue,
    MsgFrame,
    OkFrame,
    PingFrame,
    PongFrame,
    PubFrame,
    StatusLineFrame,
    SubFrame,
    UnknownFrame,
    UnsubFrame,
)
from .headers import HEADER_VERSION_PREFIX, parse_status_line
from .payload import classify_payload
from .tokens import remainder_after_verb, split_tokens

logger = logging.getLogger(__name__)


class MalformedCommand(ValueError):
    """A recognised verb whose arguments do not fit the verb's rules."""


@dataclass(frozen=True)
class PendingCommand:
    """A frame built from its command line, and what the stream still owes it.

    ``payload_size`` is the number of bytes to consume after the command line
    (excluding the trailing terminator), or ``None`` when nothing follows.
    ``header_size`` is set for HPUB/HMSG and gives the length of the header
    block at the start of the payload.
    """

    frame: Frame
    payload_size: Optional[int] = None
    header_size: Optional[int] = None

    @property
    def expects_payload(self) -> bool:
        return self.payload_size is not None


def _format_arity(allowed: Sequence[int]) -> str:
    if len(allowed) == 1:
        return f"exactly {allowed[0]} token" + ("" if allowed[0] == 1 else "s")
    head = ", ".join(str(n) for n in allowed[:-1])
    return f"{head} or {allowed[-1]} tokens"


def _expect_arity(verb: str, tokens: List[str], allowed: Sequence[int]) -> int:
    count = len(tokens)
    if count not in allowed:
        raise MalformedCommand(f"{verb} expects {_format_arity(allowed)}, got {count}")
    return count


# Verbs whose JSON document sits on the command line itself.
_JSON_LINE_FRAMES: Dict[str, Type[Frame]] = {INFO: InfoFrame, CONNECT: ConnectFrame}


class CommandBuilder:
    """Builds frames from command lines according to the per-verb arity table."""

    def __init__(self, config: Optional[DecoderConfig] = None) -> None:
        self.config = config or DecoderConfig()
        self._handlers: Dict[str, Callable[[str, List[str]], PendingCommand]] = {
            PUB: self._build_pub,
            HPUB: self._build_hpub,
            SUB: self._build_sub,
            UNSUB: self._build_unsub,
            MSG: self._build_msg,
            HMSG: self._build_hmsg,
            PING: self._build_bare,
            PONG: self._build_bare,
            OK: self._build_bare,
            ERR: self._build_err,
        }

    def build(self, line: Union[str, bytes]) -> PendingCommand:
        """Build the frame for one command line, without its CRLF.

        Pass the raw bytes from the wire where available so INFO and CONNECT
        payloads keep them exactly, including bytes that are not valid UTF-8.
        """
        if isinstance(line, (bytes, bytearray)):
            raw = bytes(line)
            line = raw.decode("utf-8", errors="replace")
        else:
            raw = line.encode("utf-8")
        tokens = split_tokens(line)
        if not tokens:
            return PendingCommand(
                UnknownFrame(verb="", raw_line=line, reason="empty command line", issue=Issue.MALFORMED_COMMAND)
            )
        verb = tokens[0]
        json_frame = _JSON_LINE_FRAMES.get(verb)
        if json_frame is not None:
            return self._build_json_line(json_frame, verb, line, raw)
        handler = self._handlers.get(verb)
        if handler is None:
            if verb.startswith(HEADER_VERSION_PREFIX):
                return self._build_status_line(line, tokens)
            logger.debug("unrecognised verb %r", verb)
            return PendingCommand(UnknownFrame(verb=verb, raw_line=line, text=remainder_after_verb(line, verb)))
        try:
            return handler(line, tokens)
        except MalformedCommand as exc:
            logger.debug("malformed %s command %r: %s", verb, line, exc)
            return PendingCommand(
                UnknownFrame(
                    verb=verb,
                    raw_line=line,
                    text=remainder_after_verb(line, verb),
                    reason=str(exc),
                    issue=Issue.MALFORMED_COMMAND,
                )
            )

    #
    # Field helpers
    #
    def _size(self, verb: str, label: str, token: str) -> int:
        if not (token.isascii() and token.isdigit()):
            raise MalformedCommand(f"{verb} {label} is not a non-negative integer: {token!r}")
        value = int(token)
        if value > self.config.max_payload:
            raise MalformedCommand(f"{verb} {label} {value} exceeds max payload {self.config.max_payload}")
        return value

    def _header_sizes(self, verb: str, header_token: str, total_token: str) -> Tuple[int, int]:
        header_bytes = self._size(verb, "header size", header_token)
        total_bytes = self._size(verb, "total size", total_token)
        if header_bytes > total_bytes:
            raise MalformedCommand(f"{verb} header size {header_bytes} exceeds total size {total_bytes}")
        return header_bytes, total_bytes

    #
    # Verb handlers
    #
    def _build_json_line(self, frame_type: Type[Frame], verb: str, line: str, raw: bytes) -> PendingCommand:
        payload = classify_payload(remainder_after_verb(raw, verb.encode("ascii")))
        return PendingCommand(frame_type(raw_line=line, payload=payload))

    def _build_pub(self, line: str, tokens: List[str]) -> PendingCommand:
        n = _expect_arity(PUB, tokens, (3, 4))
        size = self._size(PUB, "size", tokens[n - 1])
        frame = PubFrame(
            raw_line=line,
            subject=tokens[1],
            reply_to=tokens[2] if n == 4 else None,
            size=size,
        )
        return PendingCommand(frame, payload_size=size)

    def _build_hpub(self, line: str, tokens: List[str]) -> PendingCommand:
        n = _expect_arity(HPUB, tokens, (4, 5))
        header_bytes, total_bytes = self._header_sizes(HPUB, tokens[n - 2], tokens[n - 1])
        frame = HpubFrame(
            raw_line=line,
            subject=tokens[1],
            reply_to=tokens[2] if n == 5 else None,
            header_bytes=header_bytes,
            total_bytes=total_bytes,
        )
        return PendingCommand(frame, payload_size=total_bytes, header_size=header_bytes)

    def _build_sub(self, line: str, tokens: List[str]) -> PendingCommand:
        n = _expect_arity(SUB, tokens, (3, 4))
        if n == 4:
            frame = SubFrame(raw_line=line, subject=tokens[1], queue_group=tokens[2], sid=tokens[3])
        else:
            frame = SubFrame(raw_line=line, subject=tokens[1], sid=tokens[2])
        return PendingCommand(frame)

    def _build_unsub(self, line: str, tokens: List[str]) -> PendingCommand:
        n = _expect_arity(UNSUB, tokens, (2, 3))
        max_msgs = None
        if n == 3:
            token = tokens[2]
            if not (token.isascii() and token.isdigit()):
                raise MalformedCommand(f"UNSUB max_msgs is not a non-negative integer: {token!r}")
            max_msgs = int(token)
        return PendingCommand(UnsubFrame(raw_line=line, sid=tokens[1], max_msgs=max_msgs))

    def _build_msg(self, line: str, tokens: List[str]) -> PendingCommand:
        n = _expect_arity(MSG, tokens, (4, 5, 6))
        size = self._size(MSG, "size", tokens[n - 1])
        if n == 6:
            logger.debug("MSG carries an extra argument %r", tokens[4])
        frame = MsgFrame(
            raw_line=line,
            subject=tokens[1],
            sid=tokens[2],
            reply_to=tokens[3] if n in (5, 6) else None,
            size=size,
        )
        return PendingCommand(frame, payload_size=size)

    def _build_hmsg(self, line: str, tokens: List[str]) -> PendingCommand:
        n = _expect_arity(HMSG, tokens, (5, 6, 7))
        header_bytes, total_bytes = self._header_sizes(HMSG, tokens[n - 2], tokens[n - 1])
        if n == 7:
            logger.debug("HMSG carries an extra argument %r", tokens[4])
        frame = HmsgFrame(
            raw_line=line,
            subject=tokens[1],
            sid=tokens[2],
            reply_to=tokens[3] if n in (6, 7) else None,
            header_bytes=header_bytes,
            total_bytes=total_bytes,
        )
        return PendingCommand(frame, payload_size=total_bytes, header_size=header_bytes)

    def _build_bare(self, line: str, tokens: List[str]) -> PendingCommand:
        verb = tokens[0]
        _expect_arity(verb, tokens, (1,))
        frame_type = {PING: PingFrame, PONG: PongFrame, OK: OkFrame}[verb]
        return PendingCommand(frame_type(raw_line=line))

    def _build_err(self, line: str, tokens: List[str]) -> PendingCommand:
        return PendingCommand(ErrFrame(raw_line=line, error_text=remainder_after_verb(line, ERR)))

    def _build_status_line(self, line: str, tokens: List[str]) -> PendingCommand:
        version, code, text = parse_status_line(line)
        return PendingCommand(
            StatusLineFrame(verb=version, raw_line=line, version=version, status_code=code, status_text=text)
        )


__all__ = ["CommandBuilder", "MalformedCommand", "PendingCommand"]
