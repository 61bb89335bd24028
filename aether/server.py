"""A TCP server that feeds each client's bytes into the protocol parser."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable

from .connection import TcpConnection, TcpResponseChannel
from .parser import Parser, ProtocolHandler

log = logging.getLogger(__name__)

BACKLOG = 10
_ACCEPT_POLL = 0.2


class TcpServer:
    """Accepts TCP clients and dispatches their packets to a protocol handler."""

    def __init__(self, port: int, host: str = "0.0.0.0") -> None:
        self._host = host
        self._port = port
        self._sock: socket.socket | None = None
        self._running = False
        self._lock = threading.Lock()
        self._accept_thread: threading.Thread | None = None
        self._connections: set[TcpConnection] = set()
        self._parser = Parser()
        self.on_client_connected: Callable[[int], None] | None = None
        self.on_data_received: Callable[[int, bytes], None] | None = None
        self.on_client_disconnected: Callable[[int], None] | None = None

    @property
    def port(self) -> int:
        """The bound port once started, otherwise the configured one."""
        if self._sock is not None:
            try:
                return self._sock.getsockname()[1]
            except OSError:
                pass
        return self._port

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def connections(self) -> frozenset[TcpConnection]:
        """The currently active client connections."""
        with self._lock:
            return frozenset(self._connections)

    def set_protocol_handler(self, handler: ProtocolHandler | None) -> None:
        """Set the handler that receives every parsed packet."""
        self._parser.handler = handler

    def start(self) -> None:
        """Bind, listen and start accepting clients; raises ``OSError`` on failure."""
        if self._running:
            return
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self._host, self._port))
            sock.listen(BACKLOG)
        except OSError as exc:
            sock.close()
            raise OSError(
                exc.errno, f"could not bind server socket to port {self._port}"
            ) from exc
        sock.settimeout(_ACCEPT_POLL)
        self._sock = sock
        self._running = True
        self._accept_thread = threading.Thread(
            target=self._accept_loop, daemon=True, name="tcp-accept"
        )
        self._accept_thread.start()

    def stop(self) -> None:
        """Stop accepting, close every client connection and the server socket."""
        if not self._running:
            return
        self._running = False
        thread = self._accept_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._accept_thread = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None
        with self._lock:
            active = list(self._connections)
        for connection in active:
            connection.stop()
        with self._lock:
            self._connections.clear()

    def _accept_loop(self) -> None:
        sock = self._sock
        while self._running and sock is not None:
            try:
                client, _ = sock.accept()
            except TimeoutError:
                continue
            except OSError:
                if not self._running:
                    break
                continue
            client.settimeout(None)
            self._add_client(client)

    def _add_client(self, client: socket.socket) -> None:
        connection = TcpConnection(client)
        with self._lock:
            self._connections.add(connection)

        fd = connection.fileno()
        if self.on_client_connected is not None:
            self.on_client_connected(fd)

        def on_bytes(buffer: bytearray) -> None:
            log.debug("on_bytes_received bytes=%d", len(buffer))
            channel = TcpResponseChannel(connection)
            self._parser.feed(buffer, channel)

        def on_disconnect() -> None:
            if self.on_client_disconnected is not None:
                self.on_client_disconnected(fd)
            with self._lock:
                self._connections.discard(connection)

        connection.on_bytes_received = on_bytes
        connection.on_disconnect = on_disconnect
        connection.start()

    def __enter__(self) -> TcpServer:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()