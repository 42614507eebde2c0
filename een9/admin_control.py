"""Framing of the administrative control protocol.

A message is a fixed magic string, an 8-byte big-endian body length and the body.
"""

from enum import IntEnum

from een9.errors import ServerError

ADMIN_TO_SERVER_MAGIC = b"a6m1n 2 server request ~~~"
SERVER_TO_ADMIN_MAGIC = b"server to 4dm1n r3sponse ~~~"
MAX_BODY_SIZE = 100_000_000
_SIZE_FIELD_LENGTH = 8


class ReceiveStatus(IntEnum):
    """State of an incremental message receiver."""

    ERROR = -1
    IN_PROGRESS = 0
    COMPLETE = 1


def _as_bytes(content):
    return content.encode("utf-8") if isinstance(content, str) else bytes(content)


class AdminControlReceiver:
    """Consumes a framed message byte by byte."""

    def __init__(self, magic_string):
        self.magic_string = _as_bytes(magic_string)
        self.status = ReceiveStatus.IN_PROGRESS
        self.body_size = 0
        self._magic_progress = 0
        self._size_progress = 0
        self._body = bytearray()

    @property
    def body(self):
        """The body received so far."""
        return bytes(self._body)

    def feed_byte(self, byte):
        """Consume one byte (an int 0..255) and return the resulting status."""
        if self.status is not ReceiveStatus.IN_PROGRESS:
            raise ServerError("Receiver no longer accepts input")
        if self._magic_progress < len(self.magic_string):
            if self.magic_string[self._magic_progress] != byte:
                self.status = ReceiveStatus.ERROR
                return self.status
            self._magic_progress += 1
        elif self._size_progress < _SIZE_FIELD_LENGTH:
            self.body_size = (self.body_size << 8) | (byte & 0xFF)
            self._size_progress += 1
            if self._size_progress == _SIZE_FIELD_LENGTH and self.body_size > MAX_BODY_SIZE:
                self.status = ReceiveStatus.ERROR
        else:
            self._body.append(byte & 0xFF)
            if len(self._body) >= self.body_size:
                self.status = ReceiveStatus.COMPLETE
        return self.status

    def feed(self, data):
        """Consume bytes until the message is complete or broken; return the status."""
        for byte in data:
            if self.feed_byte(byte) is not ReceiveStatus.IN_PROGRESS:
                break
        return self.status


class AdminControlRequestReceiver(AdminControlReceiver):
    """Receiver for messages sent from the admin to the server."""

    def __init__(self):
        super().__init__(ADMIN_TO_SERVER_MAGIC)


class AdminControlResponseReceiver(AdminControlReceiver):
    """Receiver for messages sent from the server to the admin."""

    def __init__(self):
        super().__init__(SERVER_TO_ADMIN_MAGIC)


def _generate(content, magic):
    body = _as_bytes(content)
    return magic + len(body).to_bytes(_SIZE_FIELD_LENGTH, "big") + body


def generate_admin_control_request(content):
    """Frame a message going from the admin to the server."""
    return _generate(content, ADMIN_TO_SERVER_MAGIC)


def generate_admin_control_response(content):
    """Frame a message going from the server to the admin."""
    return _generate(content, SERVER_TO_ADMIN_MAGIC)