"""
natsdissect - passive decoder for the NATS client wire protocol.

This package turns captured client/server byte streams into typed frames.  It
never talks to a server; it only reads what was already on the wire.  Each
concern lives in its own module:

    tokens.py     → command-line tokenizer
    jsonvalue.py  → typed JSON values over the stdlib decoder
    headers.py    → HPUB/HMSG header block parsing
    payload.py    → JSON-or-raw payload classification
    frames.py     → frame dataclasses, one per verb
    builder.py    → per-verb arity rules, command line → frame
    decoder.py    → incremental stream decoder (CRLF lines, counted payloads)
    tracker.py    → one decoder per connection, frames tagged by connection
    config.py     → decoder limits and environment overrides
    render.py     → text tree, dict and one-line summaries of frames
"""

from .builder import CommandBuilder, MalformedCommand, PendingCommand  # noqa: F401
from .config import ConfigError, DecoderConfig  # noqa: F401
from .decoder import DecodeCursor, DecoderState, StreamDecoder  # noqa: F401
from .frames import (  # noqa: F401
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
    Span,
    StatusLineFrame,
    SubFrame,
    UnknownFrame,
    UnsubFrame,
)
from .headers import HeaderBlock, parse_header_block  # noqa: F401
from .jsonvalue import JsonDecodeError, decode_json  # noqa: F401
from .payload import Payload, PayloadKind, classify_payload  # noqa: F401
from .render import frame_to_dict, render_frame, summarize  # noqa: F401
from .tokens import split_tokens  # noqa: F401
from .tracker import ConnectionKey, ConnectionTable, FrameRecord  # noqa: F401

__all__ = [
    "CommandBuilder",
    "MalformedCommand",
    "PendingCommand",
    "ConfigError",
    "DecoderConfig",
    "DecodeCursor",
    "DecoderState",
    "StreamDecoder",
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
    "Issue",
    "Span",
    "HeaderBlock",
    "parse_header_block",
    "JsonDecodeError",
    "decode_json",
    "Payload",
    "PayloadKind",
    "classify_payload",
    "frame_to_dict",
    "render_frame",
    "summarize",
    "split_tokens",
    "ConnectionKey",
    "ConnectionTable",
    "FrameRecord",
]

__version__ = "0.1.0"
