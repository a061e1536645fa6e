# mypy: ignore-errors
"""Loopback stream server used by the demo, the CLI and the tests."""
import logging
import socket
import threading
from collections.abc import Callable
from contextlib import contextmanager

from .constants import DEFAULT_SERVER_PORT, TCP_READ_SIZE


class _ClientHandler(threading.Thread):
    """Handle a single client connection."""

    def __init__(self, sock: socket.socket, addr, on_data: Callable[[bytes], bytes | None], on_exit: Callable):
        """Initialize client handler.

        Args:
            sock: Client socket
            addr: Client address
            on_data: Handler for every received chunk, its return value is sent back
            on_exit: Called with this handler once the connection is gone
        """
        super().__init__(daemon=True)
        self.sock = sock
        self.addr = addr
        self.on_data = on_data
        self.on_exit = on_exit

    def run(self):
        """Handle client connection."""
        try:
            self._serve()
        except OSError as exc:
            logging.debug("Client %s closed: %s", self.addr, exc)
        finally:
            self.sock.close()
            self.on_exit(self)

    def _serve(self):
        """Answer chunks until the client goes away."""
        while True:
            chunk = self.sock.recv(TCP_READ_SIZE)
            if not chunk:
                logging.debug("Client %s disconnected", self.addr)
                return
            reply = self.on_data(chunk)
            if reply:
                self.sock.sendall(reply)

    def disconnect(self):
        """Close the connection from the server side."""
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass


class StreamServer:
    """TCP server that echoes every chunk back unless given another handler."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = DEFAULT_SERVER_PORT,
        on_data: Callable[[bytes], bytes | None] = None,
    ):
        """Initialize server.

        Args:
            host: Host to bind to
            port: Port to bind to, 0 picks a free one
            on_data: Optional chunk handler, the reply (if any) is sent back
        """
        self.host = host
        self.port = port
        self.on_data = on_data or self._echo
        self.received = bytearray()
        self._sock: socket.socket | None = None
        self._running = threading.Event()
        self._clients: set[_ClientHandler] = set()
        self._clients_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def _echo(self, data: bytes) -> bytes:
        """Default handler that echoes the chunk."""
        return data

    def _handle(self, data: bytes) -> bytes | None:
        with self._clients_lock:
            self.received.extend(data)
        return self.on_data(data)

    def bind(self):
        """Create the listening socket; ``port`` is updated when it was 0."""
        srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        srv.bind((self.host, self.port))
        srv.listen()
        self._sock = srv
        self.port = srv.getsockname()[1]

    def serve_forever(self):
        """Accept connections until :meth:`stop`."""
        if self._sock is None:
            self.bind()
        srv = self._sock
        self._running.set()

        logging.info("Stream server listening on %s:%d", self.host, self.port)

        with srv:
            while self._running.is_set():
                try:
                    cli_sock, addr = srv.accept()
                except OSError:
                    break  # socket closed
                handler = _ClientHandler(cli_sock, addr, self._handle, self._forget)
                with self._clients_lock:
                    self._clients.add(handler)
                handler.start()

    def start(self, timeout: float = 5.0) -> "StreamServer":
        """Serve on a background thread and return once listening."""
        self.bind()
        self._thread = threading.Thread(target=self.serve_forever, name="rsc-server", daemon=True)
        self._thread.start()
        self._running.wait(timeout)
        return self

    def _forget(self, handler: _ClientHandler):
        with self._clients_lock:
            self._clients.discard(handler)

    @property
    def client_count(self) -> int:
        with self._clients_lock:
            return len(self._clients)

    def close_clients(self):
        """Drop every connected client; they see a clean end of stream."""
        with self._clients_lock:
            clients = list(self._clients)
        for handler in clients:
            handler.disconnect()

    def stop(self):
        """Stop accepting and drop all clients."""
        self._running.clear()
        if self._sock:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._sock.close()
        self.close_clients()
        if self._thread is not None:
            self._thread.join(timeout=5.0)


@contextmanager
def run_echo_server(host: str = "127.0.0.1", port: int = 0):
    """Context manager running an echo server in a background thread.

    Yields:
        The running server
    """
    srv = StreamServer(host, port).start()
    try:
        yield srv
    finally:
        srv.stop()
