import pytest

from een9.cookies import (
    find_all_client_cookies,
    is_alphanum,
    is_cookie_name,
    is_cookie_value,
    is_space,
    parse_cookie_header,
    set_cookie,
)
from een9.errors import ServerError


@pytest.mark.parametrize("ch, expected", [(" ", True), ("\t", True), ("\n", True), ("a", False)])
def test_is_space(ch, expected):
    assert is_space(ch) is expected


@pytest.mark.parametrize("ch, expected", [("a", True), ("Z", True), ("7", True), ("-", False)])
def test_is_alphanum(ch, expected):
    assert is_alphanum(ch) is expected


def test_cookie_name_rules():
    assert is_cookie_name("session_id")
    assert is_cookie_name("a!#$%&'*+-.^_`|~")
    assert not is_cookie_name("")
    assert not is_cookie_name("bad name")
    assert not is_cookie_name("a=b")


def test_cookie_value_rules():
    assert is_cookie_value("")
    assert is_cookie_value("abc123")
    assert not is_cookie_value("a b")
    assert not is_cookie_value('a"b')
    assert not is_cookie_value("a;b")
    assert not is_cookie_value("a\\b")
    assert not is_cookie_value("\u00e9")


def test_parse_simple():
    assert parse_cookie_header("a=b; c=d") == [("a", "b"), ("c", "d")]


def test_parse_with_whitespace():
    assert parse_cookie_header("  a = b ;c=d  ") == [("a", "b"), ("c", "d")]


def test_parse_empty():
    assert parse_cookie_header("") == []
    assert parse_cookie_header("   ") == []


def test_parse_empty_value():
    assert parse_cookie_header("a=") == [("a", "")]


@pytest.mark.parametrize("header", ["a", "a=b c=d", "a=b;c", 'a="b"'])
def test_parse_errors(header):
    with pytest.raises(ServerError):
        parse_cookie_header(header)


def test_find_all_skips_broken_lines():
    headers = [
        ("Cookie", "a=b"),
        ("Host", "example.com"),
        ("Cookie", "broken"),
        ("Cookie", "c=d; e=f"),
    ]
    assert find_all_client_cookies(headers) == [("a", "b"), ("c", "d"), ("e", "f")]


def test_find_all_is_case_sensitive_on_header_name():
    assert find_all_client_cookies([("cookie", "a=b")]) == []


def test_set_cookie_lines():
    lines = set_cookie([("sid", "token")])
    assert lines == [("Set-Cookie", "sid=token;SameSite=Strict;Path=/")]


def test_set_cookie_round_trip():
    pairs = [("sid", "token"), ("lang", "en")]
    lines = set_cookie(pairs)
    parsed = [parse_cookie_header(value.split(";", 1)[0])[0] for _, value in lines]
    assert parsed == pairs


@pytest.mark.parametrize("cookie", [("bad name", "v"), ("n", "a;b"), ("", "v")])
def test_set_cookie_rejects_invalid(cookie):
    with pytest.raises(ServerError):
        set_cookie([cookie])