"""Incremental parsing of HTTP requests sent by clients.

Origin-form request targets only; authority and asterisk forms are not supported.
"""

import re
from dataclasses import dataclass, field
from enum import IntEnum

import regex

from een9.errors import ServerError

MAX_BODY_SIZE = 100_000_000

_PCHAR = rb"(?:[a-zA-Z0-9\-._~!$&'()*+@:,;=]|%[0-9a-hA-H]{2})"
_QUERY = rb"(?:" + _PCHAR + rb"|[?/])*"
_LWS = rb"(?:[ \t]|\r\n[ \t])*"
_REQUEST_LINE = (
    rb"(?P<method>[a-zA-Z]+) (?P<uri_path>/(?:" + _PCHAR + rb"|/)*)"
    rb"(?:\?(?P<uri_query>" + _QUERY + rb"))?"
    rb" HTTP/(?P<http_version>[0-9]+\.[0-9]+)\r\n"
)
_FIELD_VALUE = rb"(?:" + _LWS + rb"(?P<value_part>[\x21-\x7e]++))*" + _LWS
_MESSAGE = regex.compile(
    _REQUEST_LINE + rb"(?:(?P<field_name>[\x21-\x39\x3b-\x7e]+):" + _FIELD_VALUE + rb"\r\n)*\r\n"
)
_CONTENT_LENGTH = re.compile(rb"[ \t\n\r\f\v]*([+-]?)([0-9]+)")
_ULL_LIMIT = 1 << 64


@dataclass
class ClientRequest:
    """A parsed HTTP request."""

    method: str = ""
    uri_path: str = ""
    has_query: bool = False
    uri_query: str = ""
    http_version: str = ""
    headers: list = field(default_factory=list)
    has_body: bool = False
    body: bytes = b""


class ParseStatus(IntEnum):
    """State of the request parser."""

    ERROR = -1
    IN_PROGRESS = 0
    COMPLETE = 1


def _parse_content_length(value):
    match = _CONTENT_LENGTH.match(value.encode("ascii"))
    if match is None:
        raise ServerError(f"Bad Content-Length: {value!r}")
    size = int(match.group(2))
    if size >= _ULL_LIMIT:
        raise ServerError(f"Content-Length out of range: {value!r}")
    if match.group(1) == b"-":
        size = -size % _ULL_LIMIT
    return size


class ClientRequestParser:
    """Consumes a request byte by byte and fills ``request``."""

    def __init__(self):
        self.request = ClientRequest()
        self.status = ParseStatus.IN_PROGRESS
        self._header = bytearray()
        self._collecting_body = False
        self._body_size = 0
        self._body = bytearray()

    def feed_byte(self, byte):
        """Consume one byte (an int 0..255) and return the resulting status."""
        if self.status is not ParseStatus.IN_PROGRESS:
            raise ServerError("Parser no longer accepts input")
        if self._collecting_body:
            self._body.append(byte)
            if len(self._body) >= self._body_size:
                self.request.body = bytes(self._body)
                self.status = ParseStatus.COMPLETE
            return self.status
        self._header.append(byte)
        header = bytes(self._header)
        match = _MESSAGE.fullmatch(header, partial=True)
        if match is None:
            self.status = ParseStatus.ERROR
        elif not match.partial:
            self._finish_header(header, match)
        return self.status

    def feed(self, data):
        """Consume bytes until the request is complete or broken; return the status."""
        for byte in data:
            if self.feed_byte(byte) is not ParseStatus.IN_PROGRESS:
                break
        return self.status

    def _finish_header(self, header, match):
        req = self.request
        req.method = match.group("method").decode("ascii")
        req.uri_path = match.group("uri_path").decode("ascii")
        query = match.group("uri_query")
        if query is not None:
            req.has_query = True
            req.uri_query = query.decode("ascii")
        req.http_version = match.group("http_version").decode("ascii")

        names = match.spans("field_name")
        parts = match.spans("value_part")
        for index, (name_start, name_end) in enumerate(names):
            limit = names[index + 1][0] if index + 1 < len(names) else len(header)
            value = b" ".join(header[s:e] for s, e in parts if name_end <= s < limit)
            req.headers.append((header[name_start:name_end].decode("ascii"), value.decode("ascii")))

        for name, value in req.headers:
            if name != "Content-Length":
                continue
            req.has_body = True
            size = _parse_content_length(value)
            if size > MAX_BODY_SIZE:
                self.status = ParseStatus.ERROR
                return
            if size == 0:
                self.status = ParseStatus.COMPLETE
            else:
                self._collecting_body = True
                self._body_size = size
            break
        if not req.has_body:
            self.status = ParseStatus.COMPLETE