"""Typed frames produced by the stream decoder.

One frozen dataclass per protocol verb.  Every frame carries the command line
it came from, the absolute byte span it occupied in the connection's stream
and a ``truncated`` flag set when the stream ended before the frame was
complete.  Variant-specific fields default so the decoder can build a frame
from the command line first and attach the payload once it has arrived.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from .headers import HeaderBlock
from .payload import Payload, PayloadKind

INFO = "INFO"
CONNECT = "CONNECT"
PUB = "PUB"
HPUB = "HPUB"
SUB = "SUB"
UNSUB = "UNSUB"
MSG = "MSG"
HMSG = "HMSG"
PING = "PING"
PONG = "PONG"
OK = "+OK"
ERR = "-ERR"

VERBS = frozenset({INFO, CONNECT, PUB, HPUB, SUB, UNSUB, MSG, HMSG, PING, PONG, OK, ERR})


class Issue(enum.Enum):
    """Problems a frame can be annotated with.  None of them stop decoding."""

    MALFORMED_COMMAND = "malformed_command"
    TRUNCATED = "truncated"
    INVALID_JSON = "invalid_json"
    UNRECOGNIZED_VERB = "unrecognized_verb"


@dataclass(frozen=True)
class Span:
    """Half-open ``[start, end)`` byte range in the connection stream."""

    start: int = 0
    end: int = 0

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class Frame:
    verb: str
    raw_line: str = ""
    span: Span = field(default_factory=Span)
    truncated: bool = False

    def issues(self) -> List[Issue]:
        found: List[Issue] = []
        if self.truncated:
            found.append(Issue.TRUNCATED)
        payload = getattr(self, "payload", None)
        if isinstance(payload, Payload) and payload.kind is PayloadKind.INVALID_JSON:
            found.append(Issue.INVALID_JSON)
        return found

    def summary(self) -> str:
        return self.verb


@dataclass(frozen=True)
class InfoFrame(Frame):
    verb: str = INFO
    payload: Payload = field(default_factory=Payload)


@dataclass(frozen=True)
class ConnectFrame(Frame):
    verb: str = CONNECT
    payload: Payload = field(default_factory=Payload)


@dataclass(frozen=True)
class PubFrame(Frame):
    verb: str = PUB
    subject: str = ""
    reply_to: Optional[str] = None
    size: int = 0
    payload: Payload = field(default_factory=Payload)

    def summary(self) -> str:
        return f"{self.verb} {self.subject}"


@dataclass(frozen=True)
class HpubFrame(Frame):
    verb: str = HPUB
    subject: str = ""
    reply_to: Optional[str] = None
    header_bytes: int = 0
    total_bytes: int = 0
    headers: HeaderBlock = field(default_factory=HeaderBlock)
    payload: Payload = field(default_factory=Payload)

    @property
    def payload_bytes(self) -> int:
        return self.total_bytes - self.header_bytes

    def summary(self) -> str:
        return f"{self.verb} {self.subject}"


@dataclass(frozen=True)
class SubFrame(Frame):
    verb: str = SUB
    subject: str = ""
    queue_group: Optional[str] = None
    sid: str = ""

    def summary(self) -> str:
        return f"{self.verb} {self.subject}"


@dataclass(frozen=True)
class UnsubFrame(Frame):
    verb: str = UNSUB
    sid: str = ""
    max_msgs: Optional[int] = None


@dataclass(frozen=True)
class MsgFrame(Frame):
    verb: str = MSG
    subject: str = ""
    sid: str = ""
    reply_to: Optional[str] = None
    size: int = 0
    payload: Payload = field(default_factory=Payload)

    def summary(self) -> str:
        return f"{self.verb} {self.subject}"


@dataclass(frozen=True)
class HmsgFrame(Frame):
    verb: str = HMSG
    subject: str = ""
    sid: str = ""
    reply_to: Optional[str] = None
    header_bytes: int = 0
    total_bytes: int = 0
    headers: HeaderBlock = field(default_factory=HeaderBlock)
    payload: Payload = field(default_factory=Payload)

    @property
    def payload_bytes(self) -> int:
        return self.total_bytes - self.header_bytes

    def summary(self) -> str:
        return f"{self.verb} {self.subject}"


@dataclass(frozen=True)
class PingFrame(Frame):
    verb: str = PING


@dataclass(frozen=True)
class PongFrame(Frame):
    verb: str = PONG


@dataclass(frozen=True)
class OkFrame(Frame):
    verb: str = OK


@dataclass(frozen=True)
class ErrFrame(Frame):
    verb: str = ERR
    error_text: str = ""

    def summary(self) -> str:
        return "ERROR"


@dataclass(frozen=True)
class StatusLineFrame(Frame):
    """A bare ``NATS/1.0 <code> <text>`` line seen where a command was expected."""

    version: str = ""
    status_code: Optional[str] = None
    status_text: Optional[str] = None

    def summary(self) -> str:
        if self.status_code:
            return f"{self.version} {self.status_code}"
        return self.version


@dataclass(frozen=True)
class UnknownFrame(Frame):
    """Unrecognised verb, or a known verb whose arguments did not fit its rules."""

    text: str = ""
    reason: Optional[str] = None
    issue: Issue = Issue.UNRECOGNIZED_VERB

    @property
    def malformed(self) -> bool:
        return self.issue is Issue.MALFORMED_COMMAND

    def issues(self) -> List[Issue]:
        return [self.issue] + super().issues()


PAYLOAD_FRAMES = (InfoFrame, ConnectFrame, PubFrame, HpubFrame, MsgFrame, HmsgFrame)
HEADER_FRAMES = (HpubFrame, HmsgFrame)


__all__ = [
    "Issue",
    "Span",
    "Frame",
    "InfoFrame",
    "ConnectFrame",
    "PubFrame",
    "HpubFrame",
    "SubFrame",
    "UnsubFrame",
    "MsgFrame",
    "HmsgFrame",
    "PingFrame",
    "PongFrame",
    "OkFrame",
    "ErrFrame",
    "StatusLineFrame",
    "UnknownFrame",
    "PAYLOAD_FRAMES",
    "HEADER_FRAMES",
    "VERBS",
]
