"""Parsing, formatting and use of IPv4, IPv6 and unix-domain socket addresses.

Text forms are ``a.b.c.d:port``, ``[ipv6]:port`` and ``unix:path``.
"""

import ipaddress
import os
import re
import socket
from dataclasses import dataclass

from een9.errors import ServerError, format_errno

_SUN_PATH_SIZE = 108
_UNIX_PREFIX = "unix:"
_UNKNOWN_DOMAIN = "Socket address of unknown domain"

_OCTET = r"(0|[1-9][0-9]{0,2})"
_PORT = r"(0|[1-9][0-9]{0,4})"
_IPV4 = re.compile(rf"{_OCTET}\.{_OCTET}\.{_OCTET}\.{_OCTET}:{_PORT}")

_HEXTET = r"(?:0|[1-9a-fA-F][0-9a-fA-F]{0,3})"


def _ipv6_core_pattern():
    alternatives = [
        rf"(?:{_HEXTET}:){{7}}{_HEXTET}",
        rf"::(?:{_HEXTET}(?::{_HEXTET}){{0,5}})?",
    ]
    alternatives.extend(
        rf"(?:{_HEXTET}:){{{left}}}:(?:{_HEXTET}(?::{_HEXTET}){{0,{5 - left}}})?"
        for left in range(1, 6)
    )
    alternatives.append(rf"(?:{_HEXTET}:){{6}}:")
    return "|".join(f"(?:{alt})" for alt in alternatives)


_IPV6 = re.compile(rf"\[(?P<core>{_ipv6_core_pattern()})\]:(?P<port>0|[1-9][0-9]{{0,4}})")


@dataclass(frozen=True)
class SocketAddress:
    """An address of one of the supported socket domains."""

    family: int
    host: ipaddress.IPv4Address | ipaddress.IPv6Address | None = None
    port: int = 0
    path: str = ""

    def sockaddr(self):
        """The address in the form the socket module expects."""
        if self.family == socket.AF_INET:
            return (str(self.host), self.port)
        if self.family == socket.AF_INET6:
            return (str(self.host), self.port, 0, 0)
        if self.family == socket.AF_UNIX:
            return self.path
        raise ServerError("socket address of unsupported domain")

    def __str__(self):
        return stringify_socket_address(self)


def _check_port(text):
    port = int(text)
    if port > 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def _parse_ipv6_core(core):
    if "::" in core:
        left, right = core.split("::")
        left_parts = left.split(":") if left else []
        right_parts = right.split(":") if right else []
        skipped = 8 - len(left_parts) - len(right_parts)
        parts = left_parts + ["0"] * skipped + right_parts
    else:
        parts = core.split(":")
    value = 0
    for part in parts:
        value = (value << 16) | int(part, 16)
    return ipaddress.IPv6Address(value)


def parse_socket_address(text):
    """Parse the text form of an address; raise ValueError if it is malformed."""
    match = _IPV4.fullmatch(text)
    if match:
        octets = [int(group) for group in match.groups()[:4]]
        if any(octet > 255 for octet in octets):
            raise ValueError(f"IPv4 octet out of range in {text!r}")
        port = _check_port(match.group(5))
        return SocketAddress(socket.AF_INET, ipaddress.IPv4Address(bytes(octets)), port)
    match = _IPV6.fullmatch(text)
    if match:
        host = _parse_ipv6_core(match.group("core"))
        port = _check_port(match.group("port"))
        return SocketAddress(socket.AF_INET6, host, port)
    if text.startswith(_UNIX_PREFIX):
        path = text[len(_UNIX_PREFIX):]
        if not path or path.endswith("/") or "\0" in path:
            raise ValueError(f"bad unix socket path in {text!r}")
        if len(os.fsencode(path)) > _SUN_PATH_SIZE:
            raise ServerError("path is too big")
        return SocketAddress(socket.AF_UNIX, path=path)
    raise ValueError(f"unrecognised socket address {text!r}")


def _format_ipv6(host):
    packed = host.packed
    hextets = [int.from_bytes(packed[i:i + 2], "big") for i in range(0, 16, 2)]
    largest_size = largest_start = current = 0
    for index, hextet in enumerate(hextets):
        if hextet == 0:
            current += 1
            if current > largest_size:
                largest_size = current
                largest_start = index + 1 - current
        else:
            current = 0
    core = []
    index = 0
    while index < 8:
        if largest_size >= 2 and index == largest_start:
            index += largest_size
            core.append("::" if index == 8 else ":")
        else:
            if index > 0:
                core.append(":")
            core.append(format(hextets[index], "x"))
            index += 1
    return "".join(core)


def stringify_socket_address(addr):
    """Render an address in the text form accepted by parse_socket_address."""
    if addr.family == socket.AF_INET:
        return f"{addr.host}:{addr.port}"
    if addr.family == socket.AF_INET6:
        return f"[{_format_ipv6(addr.host)}]:{addr.port}"
    if addr.family == socket.AF_UNIX:
        return _UNIX_PREFIX + addr.path
    return _UNKNOWN_DOMAIN


def bind_to_socket_address(sock, addr):
    """Bind ``sock`` to ``addr``; raise ServerError on failure."""
    if addr.family not in (socket.AF_INET, socket.AF_INET6, socket.AF_UNIX):
        raise ServerError("binding socket to address of unsupported domain")
    try:
        sock.bind(addr.sockaddr())
    except OSError as exc:
        raise ServerError(format_errno("binding socket", exc.errno)) from exc


def get_peer_socket_address(sock):
    """Return the address of the peer connected to ``sock``."""
    try:
        peer = sock.getpeername()
    except OSError as exc:
        raise ServerError(format_errno("getpeername", exc.errno)) from exc
    family = sock.family
    if family == socket.AF_INET:
        return SocketAddress(socket.AF_INET, ipaddress.IPv4Address(peer[0]), peer[1])
    if family == socket.AF_INET6:
        host = peer[0].split("%", 1)[0]
        return SocketAddress(socket.AF_INET6, ipaddress.IPv6Address(host), peer[1])
    if family == socket.AF_UNIX:
        path = os.fsdecode(peer) if isinstance(peer, bytes) else peer
        return SocketAddress(socket.AF_UNIX, path=path)
    raise ServerError("peer address of unsupported domain")


def connect_to_socket_address(sock, addr):
    """Connect ``sock`` to ``addr``; raise ServerError on failure."""
    try:
        sock.connect(addr.sockaddr())
    except OSError as exc:
        raise ServerError(format_errno("connect socket to addr", exc.errno)) from exc