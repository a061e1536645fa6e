"""Shared fixtures for the RSC tests."""

import socket
import threading
import time
from contextlib import closing

import pytest

from rsc import BackoffPolicy, SessionConfig, Status, run_echo_server


def find_free_port() -> int:
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class Recorder:
    """Collects everything a session reports."""

    def __init__(self):
        self.statuses: list[tuple[float, Status, str]] = []
        self.messages: list[bytes] = []
        self._cond = threading.Condition()

    def attach(self, session):
        session.set_status_callback(self.on_status)
        session.set_message_callback(self.on_message)
        return session

    def on_status(self, status: Status, reason: str) -> None:
        with self._cond:
            self.statuses.append((time.monotonic(), status, reason))
            self._cond.notify_all()

    def on_message(self, data: bytes) -> None:
        with self._cond:
            self.messages.append(data)
            self._cond.notify_all()

    def wait_for(self, predicate, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(predicate, timeout)

    def wait_status(self, status: Status, count: int = 1, timeout: float = 5.0) -> bool:
        return self.wait_for(lambda: self.count(status) >= count, timeout)

    def count(self, status: Status) -> int:
        return sum(1 for _, s, _ in self.statuses if s == status)

    @property
    def sequence(self) -> list[Status]:
        with self._cond:
            return [s for _, s, _ in self.statuses]

    def reasons(self, status: Status) -> list[str]:
        with self._cond:
            return [r for _, s, r in self.statuses if s == status]

    @property
    def received(self) -> bytes:
        with self._cond:
            return b"".join(self.messages)


@pytest.fixture
def echo_server():
    with run_echo_server() as srv:
        yield srv


@pytest.fixture
def free_port() -> int:
    return find_free_port()


@pytest.fixture
def fast_config() -> SessionConfig:
    return SessionConfig(backoff=BackoffPolicy(initial=0.05, factor=2.0, maximum=0.2))


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def stalled_port():
    """Port of a listener that accepts connections and never reads from them."""
    listener = socket.create_server(("127.0.0.1", 0))
    accepted: list[socket.socket] = []

    def accept() -> None:
        while True:
            try:
                conn, _ = listener.accept()
            except OSError:
                return
            accepted.append(conn)

    thread = threading.Thread(target=accept, name="stalled-server", daemon=True)
    thread.start()
    try:
        yield listener.getsockname()[1]
    finally:
        try:
            listener.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        listener.close()
        thread.join(5.0)
        for conn in accepted:
            conn.close()
