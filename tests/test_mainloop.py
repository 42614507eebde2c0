import socket
import threading
import time

import pytest

from een9.admin_control import AdminControlResponseReceiver, ReceiveStatus, generate_admin_control_request
from een9.errors import ServerError
from een9.mainloop import (
    ConnectionType,
    MainloopParameters,
    ServersConfiguration,
    read_admin_control_request,
    read_http_request,
    run_mainloop,
    send_all,
)
from een9.response_gen import response_200
from een9.socket_address import parse_socket_address


def _pair_with(data):
    server, client = socket.socketpair()
    client.sendall(data)
    client.shutdown(socket.SHUT_WR)
    return server, client


def test_read_http_request_with_body():
    server, client = _pair_with(b"POST /send?x=1 HTTP/1.1\r\nHost: h\r\nContent-Length: 5\r\n\r\nhello")
    with server, client:
        request = read_http_request(server)
    assert request.method == "POST"
    assert request.uri_path == "/send"
    assert request.uri_query == "x=1"
    assert request.body == b"hello"
    assert ("Host", "h") in request.headers


def test_read_http_request_rejects_garbage():
    server, client = _pair_with(b"this is not http\r\n\r\n")
    with server, client, pytest.raises(ServerError):
        read_http_request(server)


def test_read_http_request_rejects_truncated_input():
    server, client = _pair_with(b"GET / HTTP/1.1\r\n")
    with server, client, pytest.raises(ServerError):
        read_http_request(server)


def test_read_admin_control_request():
    server, client = _pair_with(generate_admin_control_request(b"status"))
    with server, client:
        assert read_admin_control_request(server) == b"status"


def test_read_admin_control_request_bad_magic():
    server, client = _pair_with(b"wrong magic string entirely....")
    with server, client, pytest.raises(ServerError):
        read_admin_control_request(server)


def test_send_all_delivers_everything():
    server, client = socket.socketpair()
    payload = bytes(range(256)) * 40
    with server, client:
        send_all(server, payload)
        server.shutdown(socket.SHUT_WR)
        received = b""
        while chunk := client.recv(4096):
            received += chunk
    assert received == payload


def test_run_mainloop_requires_workers():
    params = MainloopParameters(client_regular_listened=[parse_socket_address("127.0.0.1:1")], slave_number=0)
    with pytest.raises(ServerError):
        run_mainloop(params, threading.Event())


def test_run_mainloop_requires_http_address():
    with pytest.raises(ServerError):
        run_mainloop(MainloopParameters(), threading.Event())


def _free_port():
    with socket.socket() as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


def _connect(port):
    deadline = time.monotonic() + 5
    while True:
        try:
            return socket.create_connection(("127.0.0.1", port), timeout=5)
        except ConnectionRefusedError:
            if time.monotonic() > deadline:
                raise
            time.sleep(0.02)


def _exchange(port, data):
    with _connect(port) as conn:
        conn.sendall(data)
        received = b""
        while chunk := conn.recv(4096):
            received += chunk
    return received


def test_serves_http_and_admin_connections():
    http_port, admin_port = _free_port(), _free_port()
    seen = []

    def guest(task, request, worker_id):
        seen.append((task.conn_info.type, worker_id, request.uri_path))
        return response_200("text/plain", "hi")

    def admin(task, body, worker_id):
        return b"pong:" + body

    params = MainloopParameters(
        client_regular_listened=[parse_socket_address(f"127.0.0.1:{http_port}")],
        admin_control_listened=[parse_socket_address(f"127.0.0.1:{admin_port}")],
        slave_number=2,
        guest_core=guest,
        guest_core_admin_control=admin,
        s_conf=ServersConfiguration(request_timeout=5.0),
    )
    stop = threading.Event()
    server = threading.Thread(target=run_mainloop, args=(params, stop))
    server.start()
    try:
        http_answer = _exchange(http_port, b"GET /index HTTP/1.1\r\n\r\n")
        admin_answer = _exchange(admin_port, generate_admin_control_request(b"ping"))
    finally:
        stop.set()
        server.join(timeout=10)
    assert not server.is_alive()
    assert http_answer == response_200("text/plain", "hi")
    receiver = AdminControlResponseReceiver()
    assert receiver.feed(admin_answer) is ReceiveStatus.COMPLETE
    assert receiver.body == b"pong:ping"
    assert len(seen) == 1
    kind, worker_id, path = seen[0]
    assert kind is ConnectionType.HTTP
    assert worker_id in (0, 1)
    assert path == "/index"