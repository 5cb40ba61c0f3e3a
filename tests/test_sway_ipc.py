import os
import shutil
import socket
import subprocess
import tempfile
import threading
from unittest import mock

import pytest

from barmods.sway_ipc import (
    IPC_HEADER_SIZE,
    IPC_MAGIC,
    SUBSCRIBE_SUCCESS,
    IpcClient,
    IpcError,
    IpcResponse,
    IpcType,
    decode_header,
    encode_message,
    get_socket_path,
)

EVENT_PAYLOAD = '{"change": "resize"}'


def _read_exact(conn, count):
    data = bytearray()
    while len(data) < count:
        chunk = conn.recv(count - len(data))
        if not chunk:
            return None
        data.extend(chunk)
    return bytes(data)


@pytest.fixture
def sway_server():
    directory = tempfile.mkdtemp(prefix="sw")
    path = os.path.join(directory, "s.sock")
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(path)
    server.listen()
    received = []

    def respond(conn):
        with conn:
            while True:
                header = _read_exact(conn, IPC_HEADER_SIZE)
                if header is None:
                    return
                try:
                    size, msg_type = decode_header(header)
                except IpcError:
                    return
                body = _read_exact(conn, size) if size else b""
                text = body.decode()
                received.append((msg_type, text))
                if msg_type == IpcType.SUBSCRIBE:
                    if text == '["bad"]':
                        conn.sendall(encode_message(msg_type, '{"success": false}'))
                    else:
                        conn.sendall(encode_message(msg_type, SUBSCRIBE_SUCCESS))
                        conn.sendall(encode_message(0x80000001, EVENT_PAYLOAD))
                else:
                    conn.sendall(encode_message(msg_type, "echo:" + text))

    def accept_loop():
        while True:
            try:
                conn, _ = server.accept()
            except OSError:
                return
            threading.Thread(target=respond, args=(conn,), daemon=True).start()

    threading.Thread(target=accept_loop, daemon=True).start()
    yield path, received
    server.close()
    shutil.rmtree(directory, ignore_errors=True)


def test_encode_message_layout():
    message = encode_message(IpcType.GET_TREE, "")
    assert message[: len(IPC_MAGIC)] == b"i3-ipc"
    assert len(message) == IPC_HEADER_SIZE
    assert decode_header(message) == (0, IpcType.GET_TREE)


def test_encode_decode_round_trip_with_payload():
    payload = 'workspace "2"'
    message = encode_message(IpcType.COMMAND, payload)
    size, msg_type = decode_header(message[:IPC_HEADER_SIZE])
    assert (size, msg_type) == (len(payload.encode()), IpcType.COMMAND)
    assert message[IPC_HEADER_SIZE:] == payload.encode()


def test_decode_header_rejects_bad_magic():
    bad = b"xx-ipc" + encode_message(IpcType.COMMAND)[len(IPC_MAGIC):]
    with pytest.raises(IpcError):
        decode_header(bad)


def test_decode_header_rejects_short_header():
    with pytest.raises(IpcError):
        decode_header(IPC_MAGIC)


def test_socket_path_from_environment(monkeypatch):
    monkeypatch.setenv("SWAYSOCK", "/tmp/sway-ipc.sock")
    assert get_socket_path() == "/tmp/sway-ipc.sock"


def test_socket_path_from_command(monkeypatch):
    monkeypatch.delenv("SWAYSOCK", raising=False)
    done = subprocess.CompletedProcess(["sway"], 0, stdout=b"/run/sway.sock\n")
    with mock.patch("barmods.sway_ipc.subprocess.run", return_value=done):
        assert get_socket_path() == "/run/sway.sock"


def test_socket_path_empty_output_raises(monkeypatch):
    monkeypatch.delenv("SWAYSOCK", raising=False)
    done = subprocess.CompletedProcess(["sway"], 1, stdout=b"")
    with mock.patch("barmods.sway_ipc.subprocess.run", return_value=done):
        with pytest.raises(IpcError):
            get_socket_path()


def test_connect_to_missing_socket_raises(tmp_path):
    with pytest.raises(IpcError):
        IpcClient(str(tmp_path / "missing.sock"))


def test_send_cmd_returns_reply_and_notifies(sway_server):
    path, received = sway_server
    seen = []
    with IpcClient(path) as client:
        client.connect_cmd(seen.append)
        response = client.send_cmd(IpcType.COMMAND, "workspace 1")
    assert response.payload == "echo:workspace 1"
    assert response.type == IpcType.COMMAND
    assert response.size == len("echo:workspace 1")
    assert seen == [response]
    assert (IpcType.COMMAND, "workspace 1") in received


def test_subscribe_then_handle_event(sway_server):
    path, _ = sway_server
    events = []
    with IpcClient(path) as client:
        client.subscribe('["mode"]')
        client.connect_event(events.append)
        event = client.handle_event()
    assert event.payload == EVENT_PAYLOAD
    assert events == [event]


def test_subscribe_failure_raises(sway_server):
    path, _ = sway_server
    with IpcClient(path) as client:
        with pytest.raises(IpcError):
            client.subscribe('["bad"]')


def test_handle_event_after_close_is_empty(sway_server):
    path, _ = sway_server
    client = IpcClient(path)
    client.close()
    assert client.handle_event() == IpcResponse(0, 0, "")