import sys

import pytest

from natsdissect.jsonvalue import JsonObject
from natsdissect.payload import PayloadKind, classify_payload, looks_like_json


def test_plain_text_is_raw():
    payload = classify_payload(b"hello")
    assert payload.kind is PayloadKind.RAW
    assert payload.data == b"hello"
    assert payload.value is None


def test_scalar_json_text_stays_raw():
    assert classify_payload(b"42").kind is PayloadKind.RAW
    assert classify_payload(b'"quoted"').kind is PayloadKind.RAW


def test_object_payload_is_decoded():
    payload = classify_payload(b'{"verbose": false, "name": "svc"}')
    assert payload.is_json
    assert isinstance(payload.value, JsonObject)
    assert payload.value.to_python() == {"verbose": False, "name": "svc"}


def test_surrounding_whitespace_is_allowed():
    payload = classify_payload(b"  [1, 2]\r\n")
    assert payload.kind is PayloadKind.JSON
    assert payload.value.to_python() == [1, 2]


def test_invalid_json_keeps_bytes_and_reports_offset():
    payload = classify_payload(b'{"a":')
    assert payload.kind is PayloadKind.INVALID_JSON
    assert payload.data == b'{"a":'
    assert payload.error_offset == 5
    assert payload.error


def test_trailing_data_after_json_is_an_error():
    payload = classify_payload(b"{} x")
    assert payload.kind is PayloadKind.INVALID_JSON
    assert payload.error == "Extra data"
    assert payload.error_offset == 3


def test_error_offset_counts_bytes_not_characters():
    payload = classify_payload('{"é": }'.encode("utf-8"))
    assert payload.kind is PayloadKind.INVALID_JSON
    assert payload.error_offset == 7


def test_invalid_utf8_in_json_shaped_payload():
    payload = classify_payload(b"{\xff}")
    assert payload.kind is PayloadKind.INVALID_JSON
    assert payload.error_offset == 1
    assert payload.data == b"{\xff}"


def test_looks_like_json():
    assert looks_like_json(b" {")
    assert looks_like_json(b"[")
    assert not looks_like_json(b"")
    assert not looks_like_json(b"   ")
    assert not looks_like_json(b"x{")


@pytest.mark.skipif(not hasattr(sys, "get_int_max_str_digits"), reason="interpreter has no integer digit limit")
def test_integer_beyond_conversion_limit_is_invalid_json():
    data = b"[" + b"1" * 5000 + b"]"
    payload = classify_payload(data)
    assert payload.kind is PayloadKind.INVALID_JSON
    assert payload.data == data
    assert payload.error_offset == 0
