import pytest

from een9.text_utils import (
    is_alpha,
    is_num,
    is_space,
    is_uname,
    is_uname_dotted_sequence,
    is_unchar,
    is_unchar_non_num,
    make_uppercase,
    rstrip_space,
    throwout_postfix,
)


@pytest.mark.parametrize(
    "ch, alpha, num, unchar, start",
    [
        ("a", True, False, True, True),
        ("Q", True, False, True, True),
        ("5", False, True, True, False),
        ("-", False, False, True, True),
        ("_", False, False, True, True),
        (".", False, False, False, False),
        (" ", False, False, False, False),
    ],
)
def test_character_classes(ch, alpha, num, unchar, start):
    assert is_alpha(ch) is alpha
    assert is_num(ch) is num
    assert is_unchar(ch) is unchar
    assert is_unchar_non_num(ch) is start


@pytest.mark.parametrize("ch, expected", [(" ", True), ("\r", True), ("\t", True), ("\n", True), ("x", False)])
def test_is_space(ch, expected):
    assert is_space(ch) is expected


@pytest.mark.parametrize(
    "text, expected",
    [("abc", True), ("a-b_9", True), ("_x", True), ("_", False), ("", False), ("1a", False), ("a.b", False)],
)
def test_is_uname(text, expected):
    assert is_uname(text) is expected


@pytest.mark.parametrize(
    "text, expected",
    [("a", True), ("a.b.c", True), ("", False), ("a..b", False), (".a", False), ("a.1", False), ("a._", False)],
)
def test_is_uname_dotted_sequence(text, expected):
    assert is_uname_dotted_sequence(text) is expected


def test_throwout_postfix():
    postfix = ".nytl.html"
    assert throwout_postfix("page" + postfix, len(postfix)) == "page"
    assert throwout_postfix("ab", 5) == ""
    assert throwout_postfix("ab", 0) == "ab"


def test_make_uppercase_ascii_only():
    assert make_uppercase("eldef main") == "ELDEF MAIN"
    assert make_uppercase("\u00e9") == "\u00e9"


def test_rstrip_space():
    assert rstrip_space("x \t\r\n") == "x"
    assert rstrip_space("  ") == ""
    assert rstrip_space(" x") == " x"