"""Forming of raw HTTP/1.0 server responses."""


def _encode(value):
    return value.encode("utf-8") if isinstance(value, str) else bytes(value)


def response_header(code, headers):
    """Status line and header lines, without the terminating empty line."""
    code = str(code)
    if len(code) != 3:
        raise ValueError(f"HTTP status code must have three characters: {code!r}")
    reason = "OK" if code[0] < "4" else "ERROR"
    lines = [f"HTTP/1.0 {code} {reason}\r\n"]
    lines.extend(f"{name}: {value}\r\n" for name, value in headers)
    return "".join(lines).encode("utf-8")


def response_header_only(code, headers):
    """A complete response that carries no body."""
    return response_header(code, headers) + b"\r\n"


def response_with_body(code, headers, body):
    """A complete response with Content-Length set from ``body``."""
    payload = _encode(body)
    length_line = f"Content-Length: {len(payload)}\r\n\r\n".encode("ascii")
    return response_header(code, headers) + length_line + payload


def response_200(content_type, body):
    """A 200 response carrying ``body`` of the given type."""
    return response_with_body("200", [("Content-Type", content_type)], body)


def response_404(content_type, body):
    """A 404 response carrying ``body`` of the given type."""
    return response_with_body("404", [("Content-Type", content_type)], body)


def response_303(location):
    """A 303 redirect to ``location``."""
    return response_header_only("303", [("Location", location)])


def response_303_with_headers(location, headers):
    """A 303 redirect to ``location`` carrying extra headers before Location."""
    return response_header_only("303", [*headers, ("Location", location)])