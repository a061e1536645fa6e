"""Command-line front end.

Usage:
  $ rsc connect tcp://127.0.0.1:9944
  $ rsc connect "serial:///dev/ttyUSB0?baudrate=115200" --hex
  $ rsc serve --port 9944
  $ rsc ports
"""
from __future__ import annotations

import argparse
import logging
import sys
import time

from rich import box
from rich.console import Console
from rich.table import Table

from .backoff import BackoffPolicy
from .config import SessionConfig
from .constants import DEFAULT_BACKOFF_INITIAL, DEFAULT_BACKOFF_MAXIMUM, DEFAULT_SERVER_PORT, Status
from .resources import list_serial_ports
from .server import StreamServer
from .session import Session

STATUS_STYLES = {
    Status.CONNECTED: "green",
    Status.CONNECTING: "cyan",
    Status.RECONNECTING: "yellow",
    Status.ERROR: "red",
    Status.DISCONNECTED: "magenta",
}

console = Console()


def cmd_connect(args: argparse.Namespace) -> int:
    config = SessionConfig(
        read_size=args.read_size,
        backoff=BackoffPolicy(initial=args.initial, maximum=args.maximum),
    )
    try:
        session = Session(args.locator, config)
    except ValueError as exc:
        console.print(f"[red]Invalid locator:[/red] {exc}")
        return 2

    def on_status(status: Status, reason: str) -> None:
        style = STATUS_STYLES[status]
        console.print(f"[{style}]{status.name}[/{style}] {reason}", highlight=False)

    def on_message(data: bytes) -> None:
        if args.hex:
            console.print(data.hex(" "), highlight=False)
        else:
            console.print(data.decode("utf-8", errors="replace"), end="", markup=False, highlight=False)

    session.set_status_callback(on_status)
    session.set_message_callback(on_message)
    session.start()
    try:
        for line in sys.stdin:
            session.send(line.encode())
    except KeyboardInterrupt:
        pass
    finally:
        session.close(timeout=5.0)
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    server = StreamServer(args.host, args.port).start()
    console.print(f"Echo server listening on {args.host}:{server.port} (Ctrl-C to quit)")
    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        server.stop()
    return 0


def cmd_ports(args: argparse.Namespace) -> int:
    ports = list_serial_ports()
    table = Table(title="Serial Ports", box=box.SIMPLE_HEAVY)
    table.add_column("#")
    table.add_column("Device")
    for index, port in enumerate(ports, 1):
        table.add_row(str(index), port)
    if not ports:
        table.add_row("-", "[red]no serial ports found[/red]")
    console.print(table)
    return 0


def cmd_demo(args: argparse.Namespace) -> int:
    from .demo import run_demo

    run_demo()
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="rsc", description="Resilient stream client (TCP + serial).")
    p.add_argument("-v", "--verbose", action="store_true", help="Log session internals")
    sub = p.add_subparsers(dest="cmd", required=True)

    connect = sub.add_parser("connect", help="Open a session and pipe stdin to it")
    connect.add_argument("locator", help="tcp://host:port or serial:///dev/ttyX?baudrate=N")
    connect.add_argument("--initial", type=float, default=DEFAULT_BACKOFF_INITIAL, help="First retry delay (s)")
    connect.add_argument("--maximum", type=float, default=DEFAULT_BACKOFF_MAXIMUM, help="Retry delay cap (s)")
    connect.add_argument("--read-size", type=int, default=None, help="Max bytes per read")
    connect.add_argument("--hex", action="store_true", help="Print received bytes as hex")
    connect.set_defaults(func=cmd_connect)

    serve = sub.add_parser("serve", help="Run a loopback echo server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=DEFAULT_SERVER_PORT)
    serve.set_defaults(func=cmd_serve)

    ports = sub.add_parser("ports", help="List serial ports")
    ports.set_defaults(func=cmd_ports)

    demo = sub.add_parser("demo", help="Run the built-in demo")
    demo.set_defaults(func=cmd_demo)

    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
