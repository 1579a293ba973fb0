from natsdissect.tokens import remainder_after_verb, split_tokens


def test_split_tokens_collapses_whitespace_runs():
    assert split_tokens("PUB  foo\t\tbar   5") == ["PUB", "foo", "bar", "5"]


def test_split_tokens_ignores_leading_and_trailing_whitespace():
    assert split_tokens("  SUB foo 1  ") == ["SUB", "foo", "1"]
    assert split_tokens("   ") == []


def test_remainder_keeps_text_verbatim():
    line = "-ERR 'Unknown Protocol Operation'"
    assert remainder_after_verb(line, "-ERR") == "'Unknown Protocol Operation'"


def test_remainder_drops_only_one_separator():
    assert remainder_after_verb("INFO  {}", "INFO") == " {}"
    assert remainder_after_verb("INFO\t{}", "INFO") == "{}"


def test_remainder_of_bare_verb_is_empty():
    assert remainder_after_verb("PING", "PING") == ""
    assert remainder_after_verb("-ERR", "-ERR") == ""


def test_split_tokens_only_separates_on_space_and_tab():
    assert split_tokens("PUB foo\xa0bar 5") == ["PUB", "foo\xa0bar", "5"]
    assert split_tokens("SUB a\x0bb\x1cc 1") == ["SUB", "a\x0bb\x1cc", "1"]
    assert split_tokens("\xa0") == ["\xa0"]


def test_remainder_of_bytes_line():
    assert remainder_after_verb(b'INFO {"a":1}', b"INFO") == b'{"a":1}'
    assert remainder_after_verb(b"INFO", b"INFO") == b""
    assert remainder_after_verb(b"PING", b"INFO") == b""
