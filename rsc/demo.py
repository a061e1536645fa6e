#!/usr/bin/env python3
"""Demo module for RSC functionality."""

import threading
import time

from . import BackoffPolicy, Session, SessionConfig, Status, StreamServer


def run_demo():
    """Run a complete RSC demo: echo, peer close, reconnect, stop."""
    print("RSC Demo - Resilient Stream Client")
    print("=" * 40)

    # Start server in background thread
    server = StreamServer("127.0.0.1", 0).start()
    config = SessionConfig(backoff=BackoffPolicy(initial=0.2, maximum=2.0))
    session = Session.tcp("127.0.0.1", server.port, config)

    connected = threading.Event()

    def on_status(status: Status, reason: str):
        print(f"[status] {status.name:<12} {reason}")
        if status == Status.CONNECTED:
            connected.set()

    session.set_status_callback(on_status)
    session.set_message_callback(lambda data: print(f"[recv]   {data!r}"))

    try:
        # Queued before the connection exists, written once it is up
        session.start()
        session.send(b"queued before connect")
        connected.wait(5.0)

        print("Sending text message...")
        session.send("Hello from RSC client!")

        print("Sending binary data...")
        session.send(b"Binary payload with \x00\x01\x02\x03 bytes")
        time.sleep(0.5)

        print("Server drops the connection...")
        connected.clear()
        server.close_clients()
        connected.wait(5.0)

        session.send(b"back again")
        time.sleep(0.5)
    finally:
        session.close()
        server.stop()

    print("\nDemo completed!")


def main():
    """Main entry point for the demo."""
    run_demo()


if __name__ == "__main__":
    main()
