"""Parsing of the Accept-Language request header."""

import re
import struct

from een9.cookies import is_space
from een9.errors import ServerError

_SPECIALS = ",;="
_FLOAT_PREFIX = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _parse_weight(text):
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ServerError(f"Bad Accept-Language weight {text!r}")
    try:
        return struct.unpack("f", struct.pack("f", float(match.group())))[0]
    except OverflowError as exc:
        raise ServerError(f"Accept-Language weight out of range {text!r}") from exc


def parse_accept_language(header):
    """Return the language ranges of ``header`` ordered by descending weight.

    The ``*`` range is returned as an empty string. Raises ServerError on a
    malformed weight.
    """
    size = len(header)
    pos = 0

    def skip_ows():
        nonlocal pos
        while pos < size and is_space(header[pos]):
            pos += 1

    def at(ch):
        skip_ows()
        return pos < size and header[pos] == ch

    def read_token():
        nonlocal pos
        skip_ows()
        start = pos
        while pos < size and header[pos] not in _SPECIALS and not is_space(header[pos]):
            pos += 1
        return header[start:pos]

    ranges = []
    while pos < size:
        skip_ows()
        if pos >= size:
            break
        if ranges:
            if not at(","):
                break
            pos += 1
        language_range = read_token()
        weight = 1.0
        read_token()  # a stray token after the range is consumed and ignored
        if at(";"):
            pos += 1
            if read_token() != "q":
                raise ServerError("Bad Accept-Language")
            if not at("="):
                raise ServerError("Bad Accept-Language")
            pos += 1
            weight = _parse_weight(read_token())
        ranges.append((language_range, weight))

    ordered = sorted(ranges, key=lambda item: -item[1])
    return ["" if language_range == "*" else language_range for language_range, _ in ordered]