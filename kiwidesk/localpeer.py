"""Detection of, and messaging between, running instances of one application."""

from __future__ import annotations

import contextlib
import errno
import logging
import os
import re
import socket
import struct
import sys
import tempfile
import threading
import time
from collections.abc import Callable

from .lockedfile import LockedFile, LockedFileError, LockMode

_log = logging.getLogger(__name__)

_ACK = b"ack"
_HEADER = struct.Struct(">I")
_HAS_UNIX_SOCKETS = hasattr(socket, "AF_UNIX")
_POLL_INTERVAL = 0.2
_HEADER_WAIT = 30.0
_BODY_WAIT = 2.0
_DISCONNECT_WAIT = 1.0
_RETRY_PAUSE = 0.25


def qchecksum(data: bytes) -> int:
    """CRC-16 of ``data`` as used to tell application ids apart (ISO 3309)."""
    crc = 0xFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0x8408 if crc & 1 else crc >> 1
    return ~crc & 0xFFFF


def _resolve_id(app_id: str) -> tuple[str, str]:
    """Return the effective application id and the text its prefix comes from."""
    if app_id:
        return app_id, app_id
    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    ident = os.path.abspath(program).replace(os.sep, "/")
    if os.name == "nt":
        ident = ident.lower()
    return ident, ident.rsplit("/", 1)[-1]


def _current_user_id() -> int | None:
    getuid = getattr(os, "getuid", None)
    return getuid() if getuid is not None else None


def socket_name_for(app_id: str, user_id: int | None = None) -> str:
    """Name of the local socket shared by instances of ``app_id``.

    An empty ``app_id`` stands for the path of the running program.
    """
    ident, prefix = _resolve_id(app_id)
    prefix = re.sub(r"[^a-zA-Z]", "", prefix)[:6]
    name = f"qtsingleapp-{prefix}-{qchecksum(ident.encode('utf-8')):x}"
    if user_id is not None:
        name += f"-{user_id:x}"
    return name


def _recv_exact(sock: socket.socket, size: int) -> bytes:
    """Read up to ``size`` bytes, stopping early when the peer hangs up."""
    chunks = bytearray()
    while len(chunks) < size:
        chunk = sock.recv(size - len(chunks))
        if not chunk:
            break
        chunks += chunk
    return bytes(chunks)


class LocalPeer:
    """One end of the channel between instances of the same application.

    The first instance to call :meth:`is_client` takes a write lock on a
    file in the temporary directory and listens on a local socket; later
    instances find the lock taken and may send it text messages, which are
    handed to ``on_message`` in the listening instance.
    """

    def __init__(
        self,
        app_id: str = "",
        on_message: Callable[[str], None] | None = None,
    ) -> None:
        self._id, _ = _resolve_id(app_id)
        self._on_message = on_message
        self._socket_name = socket_name_for(app_id, _current_user_id())
        base = os.path.join(tempfile.gettempdir(), self._socket_name)
        self._socket_path = base
        self._port_path = base + "-port"
        self._lock_file = LockedFile(base + "-lockfile")
        try:
            self._lock_file.open("r+")
        except LockedFileError as exc:
            _log.warning("cannot open lock file: %s", exc)
        self._server: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    @property
    def socket_name(self) -> str:
        """Name of the socket this peer listens on or connects to."""
        return self._socket_name

    def application_id(self) -> str:
        """The identifier shared by instances of this application."""
        return self._id

    def is_client(self) -> bool:
        """Whether another instance already runs.

        When none does, this peer becomes the running instance and starts
        listening for messages.
        """
        if self._lock_file.is_locked():
            return False
        try:
            locked = self._lock_file.lock(LockMode.WRITE_LOCK, block=False)
        except LockedFileError as exc:
            _log.warning("%s", exc)
            return True
        if not locked:
            return True
        try:
            self._listen()
        except OSError as exc:
            _log.warning("listen on local socket failed, %s", exc)
        return False

    def send_message(self, message: str, timeout: int = 5000) -> bool:
        """Send ``message`` to the running instance.

        ``timeout`` is in milliseconds.  Returns True once the running
        instance has acknowledged the message.
        """
        if not self.is_client():
            return False
        sock = None
        for attempt in range(2):
            try:
                sock = self._connect(timeout / 2000)
                break
            except OSError:
                if attempt == 0:
                    time.sleep(_RETRY_PAUSE)
        if sock is None:
            return False
        payload = message.encode("utf-8")
        with sock:
            try:
                sock.settimeout(timeout / 1000)
                sock.sendall(_HEADER.pack(len(payload)) + payload)
                reply = _recv_exact(sock, len(_ACK))
            except OSError:
                return False
        return reply == _ACK

    def close(self) -> None:
        """Stop listening and release the instance lock."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None
        if self._server is not None:
            self._server.close()
            self._server = None
            for path in (self._socket_path, self._port_path):
                with contextlib.suppress(OSError):
                    os.remove(path)
        self._lock_file.close()

    def __enter__(self) -> LocalPeer:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _listen(self) -> None:
        if _HAS_UNIX_SOCKETS:
            server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                try:
                    server.bind(self._socket_path)
                except OSError as exc:
                    if exc.errno != errno.EADDRINUSE:
                        raise
                    with contextlib.suppress(FileNotFoundError):
                        os.remove(self._socket_path)
                    server.bind(self._socket_path)
                server.listen()
            except OSError:
                server.close()
                raise
        else:
            server = socket.create_server(("127.0.0.1", 0))
            try:
                with open(self._port_path, "w", encoding="ascii") as handle:
                    handle.write(str(server.getsockname()[1]))
            except OSError:
                server.close()
                raise
        server.settimeout(_POLL_INTERVAL)
        self._server = server
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._serve, args=(server,), name=f"peer-{self._socket_name}", daemon=True
        )
        self._thread.start()

    def _connect(self, timeout: float) -> socket.socket:
        if _HAS_UNIX_SOCKETS:
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            try:
                sock.connect(self._socket_path)
            except OSError:
                sock.close()
                raise
            return sock
        with open(self._port_path, encoding="ascii") as handle:
            port = int(handle.read().strip())
        return socket.create_connection(("127.0.0.1", port), timeout=timeout)

    def _serve(self, server: socket.socket) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = server.accept()
            except TimeoutError:
                continue
            except OSError:
                break
            self._receive(conn)

    def _receive(self, conn: socket.socket) -> None:
        with conn:
            try:
                conn.settimeout(_HEADER_WAIT)
                header = _recv_exact(conn, _HEADER.size)
                if len(header) < _HEADER.size:
                    _log.warning("Peer disconnected")
                    return
                (length,) = _HEADER.unpack(header)
                conn.settimeout(_BODY_WAIT)
                body = _recv_exact(conn, length)
                if len(body) < length:
                    _log.warning("Message reception failed: incomplete message")
                    return
                message = body.decode("utf-8", errors="replace")
                conn.sendall(_ACK)
                conn.settimeout(_DISCONNECT_WAIT)
                with contextlib.suppress(OSError):
                    conn.recv(1)
            except OSError as exc:
                _log.warning("Message reception failed %s", exc)
                return
        if self._on_message is not None:
            try:
                self._on_message(message)
            except Exception:
                _log.exception("message handler failed")