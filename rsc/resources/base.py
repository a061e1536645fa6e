"""Base Connection Resource interface."""

from abc import ABC, abstractmethod
from urllib.parse import SplitResult


class ConnectionResource(ABC):
    """One point-to-point byte stream.

    A resource is used for a single connection attempt: the session asks its
    factory for a fresh instance every time it (re)connects. All methods run
    on the session's event loop.
    """

    #: Read chunk size used when the session does not override it
    default_read_size: int = 1024

    @classmethod
    @abstractmethod
    def from_locator(cls, parts: SplitResult) -> "ConnectionResource":
        """Build a resource from a parsed locator URL.

        Raises:
            ValueError: If the locator does not name a usable endpoint
        """

    @property
    @abstractmethod
    def target(self) -> str:
        """Human-readable endpoint description."""

    @abstractmethod
    async def open(self) -> None:
        """Resolve/open and connect.

        Raises:
            ResolveError: If the address cannot be resolved
            ConnectError: If the endpoint cannot be reached or opened
        """

    @abstractmethod
    async def read(self, max_bytes: int) -> bytes:
        """Read one non-empty chunk of at most ``max_bytes``.

        Raises:
            PeerClosed: On end-of-stream
            ReadError: On any other read failure
        """

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write the whole buffer.

        Raises:
            WriteError: If the stream fails before the buffer is flushed
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the stream. Idempotent, never raises."""

    def __str__(self) -> str:
        return self.target
