"""Server error type and small string helpers shared across the engine."""

import errno as _errno
import string

_UPPER_STR = str.maketrans(string.ascii_lowercase, string.ascii_uppercase)
_UPPER_BYTES = bytes.maketrans(
    string.ascii_lowercase.encode("ascii"), string.ascii_uppercase.encode("ascii")
)


class ServerError(Exception):
    """Raised when the server engine hits a condition it cannot handle."""


def format_errno(prefix, errnum):
    """Render an errno value by its symbolic name, optionally after a prefix."""
    name = _errno.errorcode.get(errnum, str(errnum))
    return name if not prefix else f"{prefix}: {name}"


def str_in(value, options):
    """Tell whether ``value`` equals one of ``options``."""
    return any(value == option for option in options)


def ends_with(a, b):
    """Tell whether ``b`` is a suffix of ``a``."""
    return a.endswith(b)


def begins_with(a, b):
    """Tell whether ``b`` is a prefix of ``a``."""
    return a.startswith(b)


def get_substring(text, start, end):
    """Return ``text[start:end]``, raising ServerError on a bad segment."""
    if not (0 <= start <= end <= len(text)):
        raise ServerError("Incorrect substring segment")
    return text[start:end]


def make_uppercase(source):
    """Uppercase ASCII letters only, leaving every other character alone."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source).translate(_UPPER_BYTES)
    return source.translate(_UPPER_STR)