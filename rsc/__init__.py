# Copyright 2025 Maida.AI
# SPDX-License-Identifier: Apache-2.0
r"""RSC (Resilient Stream Client) - A self-healing client for duplex byte streams.

This package keeps a single TCP or serial connection alive for its users:

- Automatic reconnection with capped exponential backoff (1s, 2s, 4s ... 30s)
- Ordered, queued writes that survive disconnected periods
- Received data and status changes delivered to callbacks or bounded channels
- A thread-safe start/stop/send/get_status surface over one asyncio event loop
- Interchangeable TCP and serial port Connection Resources
"""

# Import public API from modules
from .backoff import BackoffPolicy
from .config import SerialSettings, SessionConfig
from .constants import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_BACKOFF_INITIAL,
    DEFAULT_BACKOFF_MAXIMUM,
    DEFAULT_CLOSE_TIMEOUT,
    SERIAL_READ_SIZE,
    TCP_READ_SIZE,
    FailureKind,
    Status,
)
from .errors import (
    ConnectError,
    PeerClosed,
    ReadError,
    ResolveError,
    ResourceError,
    WriteError,
)
from .resources import (
    ConnectionResource,
    SerialResource,
    TcpResource,
    get_resource,
    list_resources,
    list_serial_ports,
    register_resource,
    resource_factory,
)
from .server import StreamServer, run_echo_server
from .session import Session
from .sinks import (
    CallbackSink,
    ChannelSink,
    MessageSink,
    StatusSink,
)

__version__ = "0.1.0"

# Public API exports
__all__ = [
    # Core classes
    "Session",
    "SessionConfig",
    "BackoffPolicy",
    "SerialSettings",
    # Observers
    "MessageSink",
    "StatusSink",
    "CallbackSink",
    "ChannelSink",
    # Resources
    "ConnectionResource",
    "TcpResource",
    "SerialResource",
    "register_resource",
    "get_resource",
    "list_resources",
    "resource_factory",
    "list_serial_ports",
    # Constants and enums
    "Status",
    "FailureKind",
    "DEFAULT_BACKOFF_INITIAL",
    "DEFAULT_BACKOFF_FACTOR",
    "DEFAULT_BACKOFF_MAXIMUM",
    "DEFAULT_CLOSE_TIMEOUT",
    "TCP_READ_SIZE",
    "SERIAL_READ_SIZE",
    # Errors
    "ResourceError",
    "ResolveError",
    "ConnectError",
    "ReadError",
    "PeerClosed",
    "WriteError",
    # Test peer
    "StreamServer",
    "run_echo_server",
]
