"""Serial port Connection Resource."""

import asyncio
import logging
import os
import sys
from urllib.parse import SplitResult, parse_qsl

import serial
import serial_asyncio
from serial.tools import list_ports

from ..config import SerialSettings
from ..constants import RESOURCE_CLOSE_TIMEOUT, SERIAL_PORT_PREFIXES, SERIAL_READ_SIZE
from ..errors import ConnectError, PeerClosed, ReadError, WriteError
from .base import ConnectionResource


def list_serial_ports() -> list[str]:
    """List serial devices present on this host.

    On POSIX only device names with a known serial prefix are reported
    (``ttyS*``, ``ttyUSB*``, ``ttyACM*``, ``ttyAMA*``, ``rfcomm*``, and the
    macOS ``tty.*``/``cu.*`` nodes); on Windows every COM port is.
    """
    ports = []
    for info in list_ports.comports():
        name = os.path.basename(info.device)
        if sys.platform == "win32" or name.startswith(SERIAL_PORT_PREFIXES):
            ports.append(info.device)
    return sorted(ports)


class SerialResource(ConnectionResource):
    """A serial device opened with explicit line settings.

    Unlike TCP there is nothing to resolve: ``open`` opens the device and
    ``close`` returns only once the device has actually been released.
    """

    default_read_size = SERIAL_READ_SIZE

    def __init__(self, port: str, settings: SerialSettings | None = None):
        """Initialize resource.

        Args:
            port: Device path (``/dev/ttyUSB0``) or name (``COM3``)
            settings: Line settings, 8N1 at 9600 baud when omitted
        """
        self.port = port
        self.settings = settings or SerialSettings()
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None

    @classmethod
    def from_locator(cls, parts: SplitResult) -> "SerialResource":
        port = parts.netloc + parts.path
        if not port:
            raise ValueError(f"serial locator needs a device: {parts.geturl()}")
        options = dict(parse_qsl(parts.query))
        return cls(port, SerialSettings(**options))

    @property
    def target(self) -> str:
        return f"serial://{self.port}@{self.settings.baudrate}"

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def open(self) -> None:
        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self.port, **self.settings.as_kwargs()
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise ConnectError(exc) from exc
        logging.info("Serial port opened: %s", self.port)

    async def read(self, max_bytes: int) -> bytes:
        if self._reader is None:
            raise ReadError("serial port is not open")
        try:
            chunk = await self._reader.read(max_bytes)
        except (serial.SerialException, OSError) as exc:
            raise ReadError(exc) from exc
        if not chunk:
            raise PeerClosed("device closed")
        return chunk

    async def write(self, data: bytes) -> None:
        if self._writer is None:
            raise WriteError("serial port is not open")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (serial.SerialException, OSError) as exc:
            raise WriteError(exc) from exc

    async def close(self) -> None:
        """Close the device and wait until the transport has released it.

        Pending output is dropped rather than waited for.
        """
        writer, self._writer = self._writer, None
        self._reader = None
        if writer is None:
            return
        transport = writer.transport
        if transport.get_write_buffer_size():
            transport.abort()
        else:
            writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), RESOURCE_CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            transport.abort()
        except (serial.SerialException, OSError):
            pass
        logging.info("Serial port closed: %s", self.port)
