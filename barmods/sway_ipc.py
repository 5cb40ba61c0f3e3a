"""Client for the sway IPC protocol over a Unix domain socket."""

from __future__ import annotations

import enum
import os
import socket
import struct
import subprocess
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

IPC_MAGIC = b"i3-ipc"
_HEADER_FIELDS = struct.Struct("=II")
IPC_HEADER_SIZE = len(IPC_MAGIC) + _HEADER_FIELDS.size
SUBSCRIBE_SUCCESS = '{"success": true}'
_CLOSE_MESSAGE = b"close-sway-ipc"


class IpcType(enum.IntEnum):
    """Message types understood by the compositor."""

    COMMAND = 0
    GET_WORKSPACES = 1
    SUBSCRIBE = 2
    GET_OUTPUTS = 3
    GET_TREE = 4
    GET_MARKS = 5
    GET_BAR_CONFIG = 6
    GET_VERSION = 7


class IpcError(RuntimeError):
    """Raised when talking to the compositor fails."""


@dataclass(frozen=True)
class IpcResponse:
    """One message received from the compositor."""

    size: int
    type: int
    payload: str


def get_socket_path() -> str:
    """Return the IPC socket path from SWAYSOCK or from ``sway --get-socketpath``."""
    env = os.environ.get("SWAYSOCK")
    if env is not None:
        return env
    try:
        proc = subprocess.run(
            ["sway", "--get-socketpath"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            check=False,
        )
    except OSError as exc:
        raise IpcError("Failed to get socket path") from exc
    path = proc.stdout.decode("utf-8", errors="replace") if proc.stdout else ""
    if not path:
        raise IpcError("Socket path is empty")
    if path.endswith("\n"):
        path = path[:-1]
    return path


def encode_message(type: int, payload: Union[str, bytes] = "") -> bytes:
    """Build a complete IPC message: magic, length, type and payload."""
    body = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
    return IPC_MAGIC + _HEADER_FIELDS.pack(len(body), int(type)) + body


def decode_header(header: bytes) -> Tuple[int, int]:
    """Return ``(payload_size, type)`` from a raw message header."""
    if len(header) != IPC_HEADER_SIZE:
        raise IpcError("Unable to receive IPC header")
    if header[: len(IPC_MAGIC)] != IPC_MAGIC:
        raise IpcError("Invalid IPC magic")
    size, msg_type = _HEADER_FIELDS.unpack(header[len(IPC_MAGIC):])
    return size, msg_type


Callback = Callable[[IpcResponse], None]


class IpcClient:
    """Two connections to the compositor: one for commands, one for events."""

    def __init__(self, socket_path: Optional[str] = None) -> None:
        path = socket_path if socket_path is not None else get_socket_path()
        self._lock = threading.Lock()
        self._event_callbacks: List[Callback] = []
        self._cmd_callbacks: List[Callback] = []
        self._closed = False
        self._cmd_sock = self._open(path)
        try:
            self._event_sock = self._open(path)
        except IpcError:
            self._cmd_sock.close()
            raise

    @staticmethod
    def _open(path: str) -> socket.socket:
        try:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        except OSError as exc:
            raise IpcError("Unable to open Unix socket") from exc
        try:
            sock.connect(path)
        except OSError as exc:
            sock.close()
            raise IpcError("Unable to connect to Sway") from exc
        return sock

    def connect_event(self, callback: Callback) -> None:
        """Call ``callback`` with every event received."""
        self._event_callbacks.append(callback)

    def connect_cmd(self, callback: Callback) -> None:
        """Call ``callback`` with every command reply received."""
        self._cmd_callbacks.append(callback)

    def _read(self, sock: socket.socket, count: int, what: str) -> Optional[bytes]:
        chunks = bytearray()
        while len(chunks) < count:
            if self._closed:
                return None
            try:
                chunk = sock.recv(count - len(chunks))
            except OSError as exc:
                if self._closed:
                    return None
                raise IpcError(f"Unable to receive IPC {what}") from exc
            if self._closed:
                return None
            if not chunk:
                raise IpcError(f"Unable to receive IPC {what}")
            chunks.extend(chunk)
        return bytes(chunks)

    def _recv(self, sock: socket.socket) -> IpcResponse:
        empty = IpcResponse(0, 0, "")
        header = self._read(sock, IPC_HEADER_SIZE, "header")
        if header is None:
            return empty
        size, msg_type = decode_header(header)
        body = self._read(sock, size, "payload") if size else b""
        if body is None:
            return empty
        text = body.split(b"\0", 1)[0].decode("utf-8", errors="replace")
        return IpcResponse(size, msg_type, text)

    def _send(self, sock: socket.socket, type: int, payload: str) -> IpcResponse:
        message = encode_message(type, payload)
        try:
            sock.sendall(message)
        except OSError as exc:
            raise IpcError("Unable to send IPC payload") from exc
        return self._recv(sock)

    def send_cmd(self, type: int, payload: str = "") -> IpcResponse:
        """Send a command, notify command callbacks and return the reply."""
        with self._lock:
            response = self._send(self._cmd_sock, type, payload)
        for callback in list(self._cmd_callbacks):
            callback(response)
        return response

    def subscribe(self, payload: str) -> None:
        """Subscribe the event connection to the events listed in ``payload``."""
        response = self._send(self._event_sock, IpcType.SUBSCRIBE, payload)
        if response.payload != SUBSCRIBE_SUCCESS:
            raise IpcError("Unable to subscribe ipc event")

    def handle_event(self) -> IpcResponse:
        """Wait for one event, notify event callbacks and return it."""
        response = self._recv(self._event_sock)
        for callback in list(self._event_callbacks):
            callback(response)
        return response

    def close(self) -> None:
        """Close both connections; pending reads return an empty response."""
        if self._closed:
            return
        self._closed = True
        for sock in (self._cmd_sock, self._event_sock):
            try:
                sock.sendall(_CLOSE_MESSAGE)
            except OSError:
                pass
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()

    def __enter__(self) -> "IpcClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()