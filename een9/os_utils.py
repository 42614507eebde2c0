"""Filesystem and socket helpers raising ServerError on failure."""

import os
import stat

from een9.errors import ServerError, format_errno

_CHUNK = 2048


def _is_entity(path, predicate):
    try:
        info = os.stat(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise ServerError(format_errno(f'stat"{path}"', exc.errno)) from exc
    return predicate(info.st_mode)


def is_regular_file(path):
    """Tell whether ``path`` names an existing regular file."""
    return _is_entity(path, stat.S_ISREG)


def is_directory(path):
    """Tell whether ``path`` names an existing directory."""
    return _is_entity(path, stat.S_ISDIR)


def read_from_fd(fd, description=""):
    """Read everything from ``fd`` until end of file."""
    chunks = []
    try:
        while chunk := os.read(fd, _CHUNK):
            chunks.append(chunk)
    except OSError as exc:
        raise ServerError(format_errno("Reading from " + description, exc.errno)) from exc
    return b"".join(chunks)


def read_file(path):
    """Return the whole content of the file at ``path``."""
    try:
        fd = os.open(path, os.O_RDONLY)
    except OSError as exc:
        raise ServerError(format_errno(f'Opening "{path}"', exc.errno)) from exc
    try:
        return read_from_fd(fd, f'file "{path}"')
    finally:
        os.close(fd)


def write_file(path, data):
    """Replace the content of the file at ``path`` with ``data``."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o755)
    except OSError as exc:
        raise ServerError(format_errno(f'Opening "{path}"', exc.errno)) from exc
    try:
        view = memoryview(data)
        while view:
            written = os.write(fd, view[:_CHUNK])
            view = view[written:]
    except OSError as exc:
        raise ServerError(format_errno(f'Writing to file "{path}"', exc.errno)) from exc
    finally:
        os.close(fd)


def configure_socket_timeout(sock, timeout):
    """Apply ``timeout`` seconds to both receiving and sending on ``sock``."""
    try:
        sock.settimeout(timeout)
    except (OSError, ValueError) as exc:
        raise ServerError(f"Cannot set socket timeout: {exc}") from exc