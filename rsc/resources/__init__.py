"""Connection Resource implementations and locator registry."""

from collections.abc import Callable
from functools import partial
from urllib.parse import urlsplit

from .base import ConnectionResource
from .serial import SerialResource, list_serial_ports
from .tcp import TcpResource

__all__ = [
    "ConnectionResource",
    "TcpResource",
    "SerialResource",
    "list_serial_ports",
    "register_resource",
    "get_resource",
    "list_resources",
    "resource_factory",
]

ResourceFactory = Callable[[], ConnectionResource]

# Resource registry, keyed by locator scheme
_RESOURCES: dict[str, type[ConnectionResource]] = {}


def register_resource(scheme: str, resource_class: type[ConnectionResource]) -> None:
    """Register a resource implementation for a locator scheme."""
    _RESOURCES[scheme.lower()] = resource_class


def get_resource(scheme: str) -> type[ConnectionResource]:
    """Get the resource class registered for ``scheme``."""
    if scheme.lower() not in _RESOURCES:
        raise ValueError(f"Unsupported locator scheme: {scheme!r}")
    return _RESOURCES[scheme.lower()]


def list_resources() -> list[str]:
    """List all registered locator schemes."""
    return list(_RESOURCES.keys())


def resource_factory(locator: "str | tuple[str, int] | ResourceFactory") -> ResourceFactory:
    """Turn an address locator into a factory of fresh resources.

    Args:
        locator: ``tcp://host:port``, ``serial:///dev/ttyUSB0?baudrate=115200``,
            a ``(host, port)`` tuple, or an existing zero-argument factory

    Returns:
        Callable producing a new, unopened resource on every call

    Raises:
        ValueError: If the locator is malformed or its scheme is unknown
    """
    if isinstance(locator, tuple):
        host, port = locator
        return partial(TcpResource, host, port)
    if callable(locator):
        return locator

    parts = urlsplit(locator)
    if not parts.scheme:
        raise ValueError(f"Locator has no scheme: {locator!r}")
    resource_class = get_resource(parts.scheme)

    # Build one instance up front so a bad locator fails at construction time
    resource_class.from_locator(parts)
    return partial(resource_class.from_locator, parts)


# Register default resources
register_resource("tcp", TcpResource)
register_resource("serial", SerialResource)
