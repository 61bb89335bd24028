"""A TCP client connection with a background reader, and its response channel."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from .packet import Packet, encode
from .parser import ResponseChannel

log = logging.getLogger(__name__)

RECV_SIZE = 1024

BytesCallback = Callable[[bytearray], None]
DisconnectCallback = Callable[[], None]


class TcpConnection:
    """Wraps a connected socket and reads from it on its own thread.

    Each chunk read is appended to a receive buffer that is handed to
    ``on_bytes_received`` and cleared afterwards. When the peer goes away
    or the connection is stopped, ``on_disconnect`` is called once.
    """

    def __init__(
        self,
        sock: socket.socket,
        *,
        on_bytes_received: BytesCallback | None = None,
        on_disconnect: DisconnectCallback | None = None,
    ) -> None:
        self._sock = sock
        self._fd = sock.fileno()
        self._running = False
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None
        self._buffer = bytearray()
        self.on_bytes_received = on_bytes_received
        self.on_disconnect = on_disconnect

    @property
    def is_running(self) -> bool:
        return self._running

    def fileno(self) -> int:
        """Return the descriptor of the connection's socket."""
        return self._fd

    def start(self) -> None:
        """Start reading from the socket on a background thread."""
        with self._lock:
            if self._running:
                return
            self._running = True
        self._thread = threading.Thread(
            target=self._read_loop, daemon=True, name=f"tcp-conn-{self._fd}"
        )
        self._thread.start()

    def stop(self) -> None:
        """Shut the socket down, wait for the reader and close the socket."""
        with self._lock:
            if not self._running:
                return
            self._running = False
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._sock.close()

    def send_bytes(self, data: bytes) -> None:
        """Send ``data`` to the peer; raises ``OSError`` if sending fails."""
        try:
            self._sock.sendall(data)
        except OSError:
            log.error("failed to send data to client fd=%d", self._fd)
            raise

    def _read_loop(self) -> None:
        while self._running:
            try:
                data = self._sock.recv(RECV_SIZE)
            except OSError:
                break
            if not data:
                break
            log.debug("recv() bytes=%d", len(data))
            self._on_socket_read(data)

        self._running = False
        callback = self.on_disconnect
        if callback is not None:
            try:
                callback()
            except Exception:
                log.exception("disconnect callback failed")
        self._sock.close()

    def _on_socket_read(self, data: bytes) -> None:
        self._buffer.extend(data)
        callback = self.on_bytes_received
        if callback is None:
            log.debug("on_bytes_received not set")
            return
        try:
            callback(self._buffer)
        except Exception:
            log.exception("bytes callback failed")
        finally:
            self._buffer.clear()


class TcpResponseChannel(ResponseChannel):
    """Sends encoded response packets back over a TCP connection."""

    def __init__(self, connection: TcpConnection) -> None:
        self._connection = connection

    @property
    def connection(self) -> TcpConnection:
        return self._connection

    def send_response(self, packet: Packet) -> None:
        data = encode(packet)
        log.debug("sending %d bytes: %s", len(data), data.hex(" "))
        self._connection.send_bytes(data)

    def channel_id(self) -> int:
        """A 16-bit identifier derived from the underlying connection."""
        return id(self._connection) & 0xFFFF