"""The accepting loop and the worker threads that answer connections."""

import contextlib
import logging
import selectors
import socket
import threading
from collections import deque
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Optional

from een9.admin_control import AdminControlRequestReceiver, ReceiveStatus, generate_admin_control_response
from een9.client_request import ClientRequestParser, ParseStatus
from een9.errors import ServerError, format_errno
from een9.os_utils import configure_socket_timeout
from een9.socket_address import SocketAddress, bind_to_socket_address, get_peer_socket_address
from een9.sync import CondVarBed, MutexLockGuard

_log = logging.getLogger(__name__)

_CHUNK = 2048
_LISTEN_BACKLOG = 128


class ConnectionType(IntEnum):
    """Protocol spoken on a listening address."""

    HTTP = 0
    ADMIN_CONTROL = 1


@dataclass
class ConnectionInfo:
    """Who is talking to whom, and in which protocol."""

    server_name: SocketAddress
    client_name: SocketAddress
    type: ConnectionType


@dataclass
class ServerTips:
    """Server state passed on to the request handlers."""

    server_load: int
    critical_load_1: int
    recommended_timeout: float


@dataclass
class SlaveTask:
    """An accepted connection waiting for a worker."""

    conn_info: ConnectionInfo
    sock: socket.socket
    s_tips: ServerTips


@dataclass
class ServersConfiguration:
    """Load limits and the per-connection timeout in seconds."""

    critical_load_1: int = 90
    critical_load_2: int = 100
    request_timeout: float = 20.0


@dataclass
class MainloopParameters:
    """Everything run_mainloop needs.

    ``guest_core(task, request, worker_id)`` returns a complete HTTP response;
    ``guest_core_admin_control(task, body, worker_id)`` returns only the
    content of the admin-control answer.
    """

    client_regular_listened: list = field(default_factory=list)
    admin_control_listened: list = field(default_factory=list)
    do_logging: bool = True
    slave_number: int = 2
    mainloop_recheck_interval_ms: int = 100
    guest_core: Optional[Callable[[SlaveTask, Any, int], Any]] = None
    guest_core_admin_control: Optional[Callable[[SlaveTask, bytes, int], Any]] = None
    s_conf: ServersConfiguration = field(default_factory=ServersConfiguration)


def _as_bytes(data):
    return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def _os_error_text(prefix, exc):
    if exc.errno is None:
        return f"{prefix}: {exc}"
    return format_errno(prefix, exc.errno)


def _receive(sock, parser):
    try:
        while parser.status == 0:
            chunk = sock.recv(_CHUNK)
            if not chunk:
                break
            parser.feed(chunk)
    except OSError as exc:
        raise ServerError(_os_error_text("recv", exc)) from exc


def read_http_request(sock):
    """Read one HTTP request from ``sock``; raise ServerError if it is incorrect."""
    parser = ClientRequestParser()
    _receive(sock, parser)
    if parser.status != ParseStatus.COMPLETE:
        raise ServerError("Incorrect request")
    return parser.request


def read_admin_control_request(sock):
    """Read one admin-control request from ``sock`` and return its body."""
    receiver = AdminControlRequestReceiver()
    _receive(sock, receiver)
    if receiver.status != ReceiveStatus.COMPLETE:
        raise ServerError("Incorrect request")
    return receiver.body


def send_all(sock, data):
    """Send the whole of ``data`` over ``sock``."""
    try:
        sock.sendall(_as_bytes(data))
    except OSError as exc:
        raise ServerError(_os_error_text("sending", exc)) from exc
    _log.debug("worker: successfully answered with response")


class _Workers:
    def __init__(self, params, stop_event):
        self.params = params
        self.stop = stop_event
        self.bed = CondVarBed()
        self.queue = deque()

    def work(self, worker_id):
        _log.debug("Worker %d started", worker_id)
        while True:
            try:
                with MutexLockGuard(self.bed, "worker"):
                    while not self.stop.is_set() and not self.queue:
                        self.bed.sleep("worker")
                    if self.stop.is_set():
                        break
                    task = self.queue.popleft()
                self._process(task, worker_id)
            except Exception:
                _log.exception("Client request procession failure in worker")
        _log.debug("Worker %d finished", worker_id)

    def _process(self, task, worker_id):
        with task.sock:
            if task.conn_info.type == ConnectionType.HTTP:
                _log.debug("%d::Got http request", worker_id)
                request = read_http_request(task.sock)
                response = self.params.guest_core(task, request, worker_id)
                send_all(task.sock, response)
                _log.debug("%d::Http response has been sent", worker_id)
            else:
                _log.debug("%d::Got admin-cmd request", worker_id)
                body = read_admin_control_request(task.sock)
                content = self.params.guest_core_admin_control(task, body, worker_id)
                send_all(task.sock, generate_admin_control_response(_as_bytes(content)))
                _log.debug("%d::Admin-cmd response has been sent", worker_id)

    def accept(self, listener, server_addr, kind):
        conf = self.params.s_conf
        try:
            conn, _ = listener.accept()
        except OSError as exc:
            raise ServerError(_os_error_text("Failed to accept incoming connection", exc)) from exc
        try:
            configure_socket_timeout(conn, conf.request_timeout)
            peer = get_peer_socket_address(conn)
        except BaseException:
            conn.close()
            raise
        with MutexLockGuard(self.bed, "poller adds connection"):
            if len(self.queue) < conf.critical_load_2:
                tips = ServerTips(len(self.queue), conf.critical_load_1, conf.request_timeout)
                self.queue.append(SlaveTask(ConnectionInfo(server_addr, peer, kind), conn, tips))
                conn = None
        if conn is not None:
            conn.close()
        self.bed.din_don()

    def drop_pending(self):
        while self.queue:
            self.queue.popleft().sock.close()


def _listen(addr):
    try:
        sock = socket.socket(addr.family, socket.SOCK_STREAM)
    except OSError as exc:
        raise ServerError(_os_error_text("'Listening socket' creation", exc)) from exc
    try:
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            raise ServerError(_os_error_text("Can't set SO_REUSEADDR", exc)) from exc
        bind_to_socket_address(sock, addr)
        try:
            sock.listen(_LISTEN_BACKLOG)
        except OSError as exc:
            raise ServerError(_os_error_text("listen() listening for connections", exc)) from exc
    except BaseException:
        sock.close()
        raise
    return sock


def _serve(params, workers):
    ears = [(addr, ConnectionType.HTTP) for addr in params.client_regular_listened]
    ears += [(addr, ConnectionType.ADMIN_CONTROL) for addr in params.admin_control_listened]
    with contextlib.ExitStack() as stack:
        selector = stack.enter_context(selectors.DefaultSelector())
        for addr, kind in ears:
            listener = stack.enter_context(_listen(addr))
            selector.register(listener, selectors.EVENT_READ, (addr, kind))
        if params.mainloop_recheck_interval_ms <= 0:
            raise ServerError("Incorrect poll timeout")
        timeout = params.mainloop_recheck_interval_ms / 1000
        while not workers.stop.is_set():
            try:
                ready = selector.select(timeout)
            except OSError as exc:
                _log.error("poll() error :> %s", _os_error_text("", exc))
                continue
            for key, _ in ready:
                addr, kind = key.data
                try:
                    workers.accept(key.fileobj, addr, kind)
                except Exception:
                    _log.exception("Error accepting connection")


def run_mainloop(params, stop_event):
    """Serve connections until ``stop_event`` is set.

    Raises ServerError when there are no workers or no HTTP addresses; a
    failure while setting up the listeners is logged and ends the loop.
    The event is set on return and all workers are joined.
    """
    if params.slave_number <= 0:
        raise ServerError("No workers spawned")
    if not params.client_regular_listened:
        raise ServerError("No open listening addresses (http)")
    workers = _Workers(params, stop_event)
    threads = [
        threading.Thread(target=workers.work, args=(worker_id,), name=f"een9-worker-{worker_id}", daemon=True)
        for worker_id in range(params.slave_number)
    ]
    for thread in threads:
        thread.start()
    try:
        _serve(params, workers)
    except Exception:
        _log.exception("System failure")
    finally:
        stop_event.set()
        workers.bed.wake_them_all()
        for thread in threads:
            thread.join()
        workers.drop_pending()