"""Connection failure taxonomy.

Every failure a Connection Resource can hit is raised as one of these. The
session recovers from all of them through its retry path; none of them ever
reaches a caller of ``start``/``stop``/``send``.
"""

from .constants import FailureKind


class ResourceError(ConnectionError):
    """Base class for failures of a Connection Resource."""

    kind: FailureKind = FailureKind.CONNECT
    prefix = "Connection error"

    def __init__(self, detail: object = ""):
        self.detail = str(detail)
        super().__init__(f"{self.prefix}: {self.detail}" if self.detail else self.prefix)


class ResolveError(ResourceError):
    """Address resolution failed."""

    kind = FailureKind.RESOLVE
    prefix = "Resolve failed"


class ConnectError(ResourceError):
    """Connecting to (or opening) the endpoint failed."""

    kind = FailureKind.CONNECT
    prefix = "Connect failed"


class ReadError(ResourceError):
    """Reading from an established stream failed."""

    kind = FailureKind.READ
    prefix = "Read error"


class PeerClosed(ReadError):
    """The peer ended the stream."""

    kind = FailureKind.PEER_CLOSED
    prefix = "Server closed"


class WriteError(ResourceError):
    """Writing to an established stream failed."""

    kind = FailureKind.WRITE
    prefix = "Write error"
