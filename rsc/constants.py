"""RSC session constants and enums."""

from enum import Enum, IntEnum

# ----------------------------------------------------------------------------
# Session status
# ----------------------------------------------------------------------------


class Status(IntEnum):
    """Connection status reported through the status channel."""

    DISCONNECTED = 0  # Initial state, terminal after stop()
    CONNECTING = 1  # Resolve/open + connect in progress
    CONNECTED = 2  # Read and write loops running
    RECONNECTING = 3  # Retry timer pending
    ERROR = 4  # Transient, always followed by RECONNECTING or DISCONNECTED


# ----------------------------------------------------------------------------
# Failure taxonomy
# ----------------------------------------------------------------------------


class FailureKind(Enum):
    """Where a connection failure happened."""

    RESOLVE = "resolve"
    CONNECT = "connect"
    READ = "read"
    PEER_CLOSED = "peer_closed"  # graceful end-of-stream, not an anomaly
    WRITE = "write"


# ----------------------------------------------------------------------------
# Backoff defaults (seconds)
# ----------------------------------------------------------------------------

DEFAULT_BACKOFF_INITIAL = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0
DEFAULT_BACKOFF_MAXIMUM = 30.0

# ----------------------------------------------------------------------------
# Read sizes
# ----------------------------------------------------------------------------

TCP_READ_SIZE = 1024
SERIAL_READ_SIZE = 512

# ----------------------------------------------------------------------------
# Serial line defaults (8N1, no flow control)
# ----------------------------------------------------------------------------

DEFAULT_BAUDRATE = 9600
DEFAULT_BYTESIZE = 8
DEFAULT_PARITY = "N"
DEFAULT_STOPBITS = 1

# Device name prefixes under /dev that are serial ports (Linux, Raspberry Pi, macOS)
SERIAL_PORT_PREFIXES = ("ttyS", "ttyUSB", "ttyACM", "ttyAMA", "rfcomm", "tty.", "cu.")

# ----------------------------------------------------------------------------
# Misc
# ----------------------------------------------------------------------------

DEFAULT_SESSION_NAME = "rsc-session"
DEFAULT_CHANNEL_SIZE = 256
DEFAULT_SERVER_PORT = 9944

# ----------------------------------------------------------------------------
# Teardown timeouts (seconds)
# ----------------------------------------------------------------------------

RESOURCE_CLOSE_TIMEOUT = 2.0  # graceful close before the transport is aborted
DEFAULT_CLOSE_TIMEOUT = 5.0  # Session.close() wait for the stop barrier
