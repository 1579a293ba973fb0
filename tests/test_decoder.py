import logging

import pytest

from conftest import decode
from natsdissect.config import DecoderConfig
from natsdissect.decoder import DecoderState, StreamDecoder
from natsdissect.frames import (
    ConnectFrame,
    ErrFrame,
    HmsgFrame,
    HpubFrame,
    Issue,
    MsgFrame,
    PingFrame,
    PongFrame,
    PubFrame,
    Span,
    StatusLineFrame,
    SubFrame,
    UnknownFrame,
)
from natsdissect.payload import PayloadKind

SESSION = (
    b'CONNECT {"verbose":false,"pedantic":false,"headers":true}\r\n'
    b"PING\r\n"
    b"SUB foo.* q1 1\r\n"
    b"PUB foo.bar reply 12\r\nPING\r\nPONG\r\n\r\n"
    b"HPUB foo.hdr 24 29\r\nNATS/1.0\r\nA: 1\r\nA: 2\r\n\r\nhello\r\n"
    b'MSG foo.bar 1 9\r\n{"n": 1}\n\r\n'
    b"HMSG foo.hdr 1 _INBOX.x 30 30\r\nNATS/1.0 503 No Responders\r\n\r\n\r\n"
    b"UNSUB 1 5\r\n"
    b"-ERR 'Stale Connection'\r\n"
    b"PONG\r\n"
)


def test_sub_scenarios():
    frames = decode(b"SUB foo.bar 5\r\nSUB foo.bar g1 5\r\n")
    assert [(f.subject, f.queue_group, f.sid) for f in frames] == [
        ("foo.bar", None, "5"),
        ("foo.bar", "g1", "5"),
    ]


def test_pub_scenario():
    (frame,) = decode(b"PUB foo 5\r\nhello\r\n")
    assert isinstance(frame, PubFrame)
    assert frame.subject == "foo"
    assert frame.payload.data == b"hello"
    assert frame.span == Span(0, 18)
    assert not frame.truncated


def test_payload_may_contain_crlf_and_command_text():
    (frame,) = decode(b"PUB foo 12\r\nPING\r\nPONG\r\n\r\n")
    assert isinstance(frame, PubFrame)
    assert frame.payload.data == b"PING\r\nPONG\r\n"


def test_zero_length_payload():
    frames = decode(b"PUB foo 0\r\n\r\nPING\r\n")
    assert isinstance(frames[0], PubFrame)
    assert frames[0].payload.data == b""
    assert isinstance(frames[1], PingFrame)


def test_hpub_consumes_total_bytes_plus_terminator():
    line = b"HPUB foo 24 29\r\n"
    body = b"NATS/1.0\r\nA: 1\r\nA: 2\r\n\r\nhello"
    (frame,) = decode(line + body + b"\r\n")
    assert isinstance(frame, HpubFrame)
    assert frame.span.length - len(line) == frame.total_bytes + 2
    assert frame.header_bytes + frame.payload_bytes == frame.total_bytes
    assert frame.headers.get_all("A") == ["1", "2"]
    assert frame.payload.data == b"hello"


def test_hmsg_well_formed():
    (frame,) = decode(b"HMSG foo 9 17 19\r\nNATS/1.0\r\nX:Y\r\n\r\nhi\r\n")
    assert isinstance(frame, HmsgFrame)
    assert frame.subject == "foo"
    assert frame.sid == "9"
    assert frame.headers.as_dict() == {"X": ["Y"]}
    assert frame.payload.data == b"hi"


def test_hmsg_with_too_few_tokens_recovers_line_by_line():
    frames = decode(b"HMSG foo 9 16\r\nNATS/1.0\r\nX:Y\r\n\r\nhi\r\n")
    assert isinstance(frames[0], UnknownFrame)
    assert frames[0].malformed
    assert frames[0].verb == "HMSG"
    assert isinstance(frames[1], StatusLineFrame)
    assert frames[1].version == "NATS/1.0"
    assert [(type(f), f.verb) for f in frames[2:]] == [(UnknownFrame, "X:Y"), (UnknownFrame, "hi")]


def test_err_scenario():
    (frame,) = decode(b"-ERR 'Unknown Protocol Operation'\r\n")
    assert isinstance(frame, ErrFrame)
    assert frame.error_text == "'Unknown Protocol Operation'"


def test_empty_err():
    (frame,) = decode(b"-ERR\r\n")
    assert isinstance(frame, ErrFrame)
    assert frame.error_text == ""


def test_invalid_json_payload_is_annotated_and_kept():
    (frame,) = decode(b"MSG foo 1 5\r\n{oops\r\n")
    assert isinstance(frame, MsgFrame)
    assert frame.payload.kind is PayloadKind.INVALID_JSON
    assert frame.payload.data == b"{oops"
    assert frame.issues() == [Issue.INVALID_JSON]


def test_full_session_frame_sequence():
    frames = decode(SESSION)
    assert [f.summary() for f in frames] == [
        "CONNECT",
        "PING",
        "SUB foo.*",
        "PUB foo.bar",
        "HPUB foo.hdr",
        "MSG foo.bar",
        "HMSG foo.hdr",
        "UNSUB",
        "ERROR",
        "PONG",
    ]
    assert frames[0].payload.value.get("headers").to_python() is True
    assert frames[5].payload.value.to_python() == {"n": 1}
    assert frames[6].headers.status_code == "503"
    assert frames[6].payload.data == b""
    spans = [f.span for f in frames]
    assert spans[0].start == 0
    assert spans[-1].end == len(SESSION)
    assert all(a.end == b.start for a, b in zip(spans, spans[1:]))


def test_split_at_every_offset_yields_identical_frames():
    expected = decode(SESSION)
    for cut in range(len(SESSION) + 1):
        assert decode(SESSION, chunks=[cut]) == expected, cut


def test_byte_at_a_time():
    expected = decode(SESSION)
    assert decode(SESSION, chunks=range(1, len(SESSION))) == expected


def test_partial_payload_waits_for_more_bytes(decoder):
    assert decoder.feed(b"PUB foo 5\r\nhel") == []
    assert decoder.state is DecoderState.AWAITING_PAYLOAD
    assert decoder.cursor.remaining == 4
    assert decoder.buffered == 3
    (frame,) = decoder.feed(b"lo\r\n")
    assert frame.payload.data == b"hello"
    assert decoder.state is DecoderState.AWAITING_COMMAND_LINE
    assert decoder.offset == 18


def test_close_flushes_truncated_payload(decoder):
    decoder.feed(b"PUB foo 5\r\nhel")
    (frame,) = decoder.close()
    assert isinstance(frame, PubFrame)
    assert frame.truncated
    assert frame.payload.data == b"hel"
    assert Issue.TRUNCATED in frame.issues()
    assert decoder.state is DecoderState.AWAITING_COMMAND_LINE
    assert decoder.buffered == 0


def test_close_with_payload_but_no_terminator_is_not_truncated(decoder):
    decoder.feed(b"PUB foo 2\r\nhi")
    (frame,) = decoder.close()
    assert frame.payload.data == b"hi"
    assert not frame.truncated


def test_close_flushes_partial_command_line(decoder):
    decoder.feed(b"PING\r\nSUB foo 1")
    (frame,) = decoder.close()
    assert isinstance(frame, SubFrame)
    assert frame.truncated
    assert frame.span == Span(6, 15)


def test_close_on_partial_payload_command_line(decoder):
    decoder.feed(b"PUB foo 5")
    (frame,) = decoder.close()
    assert isinstance(frame, PubFrame)
    assert frame.truncated
    assert frame.payload.data == b""


def test_close_on_empty_decoder(decoder):
    assert decoder.close() == []


def test_decoding_resumes_after_close(decoder):
    decoder.feed(b"PUB foo 5\r\nhe")
    decoder.close()
    (frame,) = decoder.feed(b"PONG\r\n")
    assert isinstance(frame, PongFrame)


def test_blank_lines_are_skipped():
    (frame,) = decode(b"\r\n  \r\nPING\r\n")
    assert isinstance(frame, PingFrame)
    assert frame.span == Span(6, 12)


def test_missing_terminator_after_payload_is_reported(caplog):
    with caplog.at_level(logging.WARNING, logger="natsdissect.decoder"):
        frames = decode(b"PUB foo 2\r\nhiXXPING\r\n")
    assert frames[0].payload.data == b"hi"
    assert isinstance(frames[1], UnknownFrame)
    assert frames[1].verb == "XXPING"
    assert "not followed by CRLF" in caplog.text


def test_oversized_command_line_is_skipped_up_to_terminator():
    config = DecoderConfig(max_control_line=8)
    decoder = StreamDecoder(config)
    assert decoder.feed(b"PUB foo.bar.baz") == []
    assert decoder.buffered == 0
    frame, ping = decoder.feed(b" 3\r\nPING\r\n")
    assert isinstance(frame, UnknownFrame)
    assert frame.malformed
    assert not frame.truncated
    assert frame.verb == "PUB"
    assert frame.raw_line == "PUB foo."
    assert frame.span == Span(0, 19)
    assert isinstance(ping, PingFrame)
    assert ping.span == Span(19, 25)


def test_oversized_command_line_does_not_depend_on_chunking():
    config = DecoderConfig(max_control_line=8)
    data = b"SUB foo.bar.baz 1\r\nPING\r\n"
    expected = decode(data, config=config)
    assert [type(f) for f in expected] == [UnknownFrame, PingFrame]
    for cut in range(len(data) + 1):
        assert decode(data, chunks=[cut], config=config) == expected, cut
    assert decode(data, chunks=range(1, len(data)), config=config) == expected


def test_line_at_the_limit_is_accepted():
    config = DecoderConfig(max_control_line=len(b"SUB a 1"))
    (frame,) = decode(b"SUB a 1\r\n", chunks=[7, 8], config=config)
    assert isinstance(frame, SubFrame)


def test_close_inside_oversized_line_is_truncated():
    decoder = StreamDecoder(DecoderConfig(max_control_line=4))
    assert decoder.feed(b"CONNECT {}") == []
    (frame,) = decoder.close()
    assert isinstance(frame, UnknownFrame)
    assert frame.truncated
    assert frame.malformed
    assert frame.span == Span(0, 10)
    (ping,) = decoder.feed(b"PING\r\n")
    assert isinstance(ping, PingFrame)


def test_huge_integer_payload_does_not_abort_decoding():
    body = b"[" + b"1" * 5000 + b"]"
    frames = decode(b"PUB foo %d\r\n" % len(body) + body + b"\r\nPING\r\n")
    assert len(frames) == 2
    assert isinstance(frames[0], PubFrame)
    assert frames[0].payload.data == body
    assert isinstance(frames[1], PingFrame)


def test_subject_with_non_breaking_space_is_one_token():
    (frame,) = decode("SUB foo\xa0bar 1\r\n".encode("utf-8"))
    assert isinstance(frame, SubFrame)
    assert frame.subject == "foo\xa0bar"
    assert frame.sid == "1"


def test_connect_payload_keeps_invalid_utf8_bytes():
    (frame,) = decode(b'CONNECT {"name":"\xff"}\r\n')
    assert isinstance(frame, ConnectFrame)
    assert frame.payload.data == b'{"name":"\xff"}'
    assert frame.payload.kind is PayloadKind.INVALID_JSON
    assert frame.payload.error_offset == 9


def test_malformed_line_does_not_stop_decoding():
    frames = decode(b"PUB foo\r\nPING\r\nSUB a 1\r\n")
    assert [type(f) for f in frames] == [UnknownFrame, PingFrame, SubFrame]


def test_connect_frame_from_whole_line():
    (frame,) = decode(b'CONNECT {"name":"svc"}\r\n')
    assert isinstance(frame, ConnectFrame)
    assert frame.payload.value.to_python() == {"name": "svc"}


def test_reset_discards_state(decoder):
    decoder.feed(b"PUB foo 5\r\nhe")
    decoder.reset()
    assert decoder.state is DecoderState.AWAITING_COMMAND_LINE
    assert decoder.offset == 0
    (frame,) = decoder.feed(b"PING\r\n")
    assert frame.span == Span(0, 6)


def test_frames_emitted_counter(decoder):
    decoder.feed(b"PING\r\nPONG\r\nPUB a 1\r\n")
    assert decoder.frames_emitted == 2
    decoder.close()
    assert decoder.frames_emitted == 3


@pytest.mark.parametrize("size", [0, 1, 2, 64])
def test_payload_sizes(size):
    body = bytes(range(65, 65 + size)) if size <= 26 else b"x" * size
    (frame,) = decode(b"PUB s %d\r\n" % size + body + b"\r\n")
    assert frame.payload.data == body
    assert frame.size == size


def test_header_frames_are_hashable():
    frames = decode(
        b"HPUB foo.hdr 24 29\r\nNATS/1.0\r\nA: 1\r\nA: 2\r\n\r\nhello\r\n"
        b"HMSG foo 9 17 19\r\nNATS/1.0\r\nX:Y\r\n\r\nhi\r\n"
    )
    assert [type(f) for f in frames] == [HpubFrame, HmsgFrame]
    assert len({hash(f) for f in frames}) == 2
    assert frames[0] in set(frames)
