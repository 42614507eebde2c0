import pytest

from een9.client_request import ClientRequest, ClientRequestParser, ParseStatus
from een9.errors import ServerError


def parse(data):
    parser = ClientRequestParser()
    parser.feed(data)
    return parser


def test_simple_get():
    parser = parse(b"GET / HTTP/1.1\r\n\r\n")
    assert parser.status is ParseStatus.COMPLETE
    req = parser.request
    assert req.method == "GET"
    assert req.uri_path == "/"
    assert req.has_query is False
    assert req.http_version == "1.1"
    assert req.headers == []
    assert req.has_body is False


def test_query_and_headers():
    parser = parse(b"GET /a/b?x=1&y=2 HTTP/1.0\r\nHost: example.com\r\nAccept: */*\r\n\r\n")
    assert parser.status is ParseStatus.COMPLETE
    req = parser.request
    assert req.uri_path == "/a/b"
    assert req.has_query is True
    assert req.uri_query == "x=1&y=2"
    assert req.http_version == "1.0"
    assert req.headers == [("Host", "example.com"), ("Accept", "*/*")]


def test_empty_query():
    req = parse(b"GET /?  HTTP/1.1\r\n\r\n".replace(b"  ", b" ")).request
    assert req.has_query is True
    assert req.uri_query == ""


def test_value_parts_joined_with_single_space():
    req = parse(b"GET / HTTP/1.1\r\nX-Long:  one \t two  \r\n\r\n").request
    assert req.headers == [("X-Long", "one two")]


def test_folded_header_value():
    req = parse(b"GET / HTTP/1.1\r\nX: a\r\n\tb\r\nY: c\r\n\r\n").request
    assert req.headers == [("X", "a b"), ("Y", "c")]


def test_empty_header_value():
    req = parse(b"GET / HTTP/1.1\r\nX:\r\n\r\n").request
    assert req.headers == [("X", "")]


def test_body_by_content_length():
    parser = parse(b"POST /send HTTP/1.1\r\nContent-Length: 5\r\n\r\nhelloEXTRA")
    assert parser.status is ParseStatus.COMPLETE
    assert parser.request.has_body is True
    assert parser.request.body == b"hello"


def test_zero_content_length_completes_at_header():
    parser = parse(b"POST / HTTP/1.1\r\nContent-Length: 0\r\n\r\n")
    assert parser.status is ParseStatus.COMPLETE
    assert parser.request.has_body is True
    assert parser.request.body == b""


def test_body_in_progress_until_complete():
    parser = ClientRequestParser()
    assert parser.feed(b"POST / HTTP/1.1\r\nContent-Length: 3\r\n\r\nab") is ParseStatus.IN_PROGRESS
    assert parser.feed(b"c") is ParseStatus.COMPLETE
    assert parser.request.body == b"abc"


def test_too_large_body_is_error():
    parser = parse(b"POST / HTTP/1.1\r\nContent-Length: 999999999\r\n\r\n")
    assert parser.status is ParseStatus.ERROR


def test_negative_content_length_is_error():
    parser = parse(b"POST / HTTP/1.1\r\nContent-Length: -5\r\n\r\n")
    assert parser.status is ParseStatus.ERROR


def test_non_numeric_content_length_raises():
    with pytest.raises(ServerError):
        parse(b"POST / HTTP/1.1\r\nContent-Length: abc\r\n\r\n")


@pytest.mark.parametrize(
    "data",
    [
        b"GET  / HTTP/1.1\r\n",
        b"G3T / HTTP/1.1\r\n",
        b"GET noslash HTTP/1.1\r\n",
        b"GET /%zz HTTP/1.1\r\n",
        b"GET /\x80 HTTP/1.1\r\n",
        b"GET / HTTP/x\r\n",
    ],
)
def test_malformed_requests(data):
    assert parse(data).status is ParseStatus.ERROR


def test_error_stops_consumption():
    parser = ClientRequestParser()
    assert parser.feed(b"G3T / HTTP/1.1\r\n\r\n") is ParseStatus.ERROR
    with pytest.raises(ServerError):
        parser.feed_byte(ord("x"))


def test_feeding_after_completion_raises():
    parser = parse(b"GET / HTTP/1.1\r\n\r\n")
    with pytest.raises(ServerError):
        parser.feed_byte(ord("G"))


def test_bytewise_equals_bulk_feed():
    data = b"POST /p?q HTTP/1.1\r\nHost: example.com\r\nContent-Length: 2\r\n\r\nok"
    bulk = parse(data)
    bytewise = ClientRequestParser()
    for byte in data:
        status = bytewise.feed_byte(byte)
    assert status is ParseStatus.COMPLETE
    assert bytewise.request == bulk.request


def test_percent_escape_in_path_kept_raw():
    req = parse(b"GET /%2Fa HTTP/1.1\r\n\r\n").request
    assert req.uri_path == "/%2Fa"


def test_default_request_is_empty():
    assert ClientRequest() == ClientRequest(method="", uri_path="", headers=[], body=b"")