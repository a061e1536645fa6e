"""TCP Connection Resource."""

import asyncio
import logging
import socket
from urllib.parse import SplitResult

from ..constants import RESOURCE_CLOSE_TIMEOUT, TCP_READ_SIZE
from ..errors import ConnectError, PeerClosed, ReadError, ResolveError, WriteError
from .base import ConnectionResource


class TcpResource(ConnectionResource):
    """A TCP client stream to ``host:port``."""

    default_read_size = TCP_READ_SIZE

    def __init__(self, host: str, port: int):
        """Initialize resource.

        Args:
            host: Server hostname or address
            port: Server port
        """
        self.host = host
        self.port = int(port)
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @classmethod
    def from_locator(cls, parts: SplitResult) -> "TcpResource":
        port = parts.port  # raises ValueError when out of range
        if not parts.hostname or port is None:
            raise ValueError(f"tcp locator needs host and port: {parts.geturl()}")
        return cls(parts.hostname, port)

    @property
    def target(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"tcp://{host}:{self.port}"

    async def open(self) -> None:
        """Resolve the host and connect to the first endpoint that accepts."""
        loop = asyncio.get_running_loop()
        try:
            endpoints = await loop.getaddrinfo(self.host, self.port, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as exc:
            raise ResolveError(exc) from exc
        if not endpoints:
            raise ResolveError(f"no addresses for {self.host}")

        last_error: OSError | None = None
        for family, type_, proto, _, address in endpoints:
            sock = None
            try:
                sock = socket.socket(family, type_, proto)
                sock.setblocking(False)
                await loop.sock_connect(sock, address)
                self._reader, self._writer = await asyncio.open_connection(sock=sock)
            except OSError as exc:
                if sock is not None:
                    sock.close()
                last_error = exc
                continue
            except asyncio.CancelledError:
                if sock is not None:
                    sock.close()
                raise

            logging.debug("Connected to %s via %s", self.target, address)
            return

        raise ConnectError(last_error)

    async def read(self, max_bytes: int) -> bytes:
        if self._reader is None:
            raise ReadError("not connected")
        try:
            chunk = await self._reader.read(max_bytes)
        except ConnectionResetError as exc:
            raise PeerClosed(exc) from exc
        except OSError as exc:
            raise ReadError(exc) from exc
        if not chunk:
            raise PeerClosed()
        return chunk

    async def write(self, data: bytes) -> None:
        if self._writer is None:
            raise WriteError("not connected")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except OSError as exc:
            raise WriteError(exc) from exc

    async def close(self) -> None:
        """Shut down both directions and close the socket.

        Data the peer has not taken yet is discarded: a peer that stopped
        reading cannot hold the close open.
        """
        writer, self._writer = self._writer, None
        self._reader = None
        if writer is None:
            return
        transport = writer.transport
        if transport.get_write_buffer_size():
            transport.abort()
        else:
            try:
                if writer.can_write_eof():
                    writer.write_eof()
            except OSError:
                pass
            writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), RESOURCE_CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            logging.debug("Aborting %s: close did not complete", self.target)
            transport.abort()
        except OSError:
            pass
