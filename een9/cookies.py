"""Parsing of the Cookie request header and forming of Set-Cookie lines."""

from een9.errors import ServerError

_TOKEN_EXTRA = frozenset("!#$%&'*+-.^_`|~")
_COOKIE_VALUE_FORBIDDEN = frozenset('",;\\')


def is_space(ch):
    """Tell whether ``ch`` is optional whitespace in a header."""
    return ch in (" ", "\t", "\r", "\n")


def is_alphanum(ch):
    """Tell whether ``ch`` is an ASCII letter or digit."""
    return "a" <= ch <= "z" or "A" <= ch <= "Z" or "0" <= ch <= "9"


def _is_token(text):
    return bool(text) and all(is_alphanum(ch) or ch in _TOKEN_EXTRA for ch in text)


def is_cookie_name(text):
    """Tell whether ``text`` is a valid cookie name (an HTTP token)."""
    return _is_token(text)


def is_cookie_value(text):
    """Tell whether ``text`` may be used as a cookie value without quoting."""
    return all(32 < ord(ch) < 0x7F and ch not in _COOKIE_VALUE_FORBIDDEN for ch in text)


def parse_cookie_header(value):
    """Split one Cookie header value into (name, value) pairs.

    Raises ServerError when a separator is missing.
    """
    result = []
    pos = 0
    size = len(value)

    def skip_ows():
        nonlocal pos
        while pos < size and is_space(value[pos]):
            pos += 1

    def read_until(stops):
        nonlocal pos
        start = pos
        while pos < size and not is_space(value[pos]) and value[pos] not in stops:
            pos += 1
        return value[start:pos]

    def at(ch):
        return pos < size and value[pos] == ch

    skip_ows()
    while pos < size:
        if result:
            if not at(";"):
                raise ServerError("Incorrect Cookie header line, missing ;")
            pos += 1
            skip_ows()
        name = read_until("=")
        skip_ows()
        if not at("="):
            raise ServerError("Incorrect Cookie header line, missing =")
        pos += 1
        skip_ows()
        cookie_value = read_until('";')
        result.append((name, cookie_value))
        skip_ows()
    return result


def find_all_client_cookies(headers):
    """Collect cookies from every well-formed Cookie header among ``headers``."""
    result = []
    for name, header_value in headers:
        if name != "Cookie":
            continue
        try:
            result.extend(parse_cookie_header(header_value))
        except ServerError:
            continue
    return result


def set_cookie(new_cookies):
    """Return Set-Cookie header lines for the given (name, value) pairs."""
    lines = []
    for name, cookie_value in new_cookies:
        if not (is_cookie_name(name) and is_cookie_value(cookie_value)):
            raise ServerError(f"Invalid cookie {name!r}")
        lines.append(("Set-Cookie", f"{name}={cookie_value};SameSite=Strict;Path=/"))
    return lines