from urllib.parse import quote_plus

import pytest

from een9.urlencoded_query import split_html_query


def test_empty_query():
    assert split_html_query("") == []


def test_simple_pairs():
    assert split_html_query("login=alice&room=7") == [("login", "alice"), ("room", "7")]


def test_plus_and_percent():
    assert split_html_query("a+b=%41") == [("a b", "A")]


def test_missing_equals_gives_empty_value():
    assert split_html_query("flag") == [("flag", "")]


def test_separators_only():
    assert split_html_query("&") == [("", ""), ("", "")]


@pytest.mark.parametrize("query", ["%4", "a=%", "x=1&y=%2"])
def test_truncated_escape_yields_nothing(query):
    assert split_html_query(query) == []


@pytest.mark.parametrize(
    "name,value",
    [("message", "hello, world & more"), ("name", "Ёлка = tree"), ("k", "100% sure?")],
)
def test_round_trip_with_standard_encoding(name, value):
    query = quote_plus(name) + "=" + quote_plus(value)
    assert split_html_query(query) == [(name, value)]


def test_bytes_input():
    assert split_html_query(b"x=%41%42") == [("x", "AB")]


def test_repeated_equals_keeps_filling_value():
    result = split_html_query("a=b=c")
    assert len(result) == 1
    assert result[0][0] == "a"
    assert result[0][1] == "bc"