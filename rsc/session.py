# mypy: ignore-errors
"""Resilient stream session.

A :class:`Session` owns one duplex byte stream and keeps it up: it connects,
reads continuously, writes queued messages in order, and on any failure
reports it, waits according to its :class:`~rsc.backoff.BackoffPolicy`, and
reconnects with a fresh resource, until :meth:`Session.stop` is called.

All connection work happens on a single asyncio event loop (by default one
the session runs on its own daemon thread). Callers on any thread interact
through ``start``, ``stop``, ``send`` and ``get_status``; the first three are
marshalled into the loop through a :class:`~rsc.submission.SubmissionQueue`
and never raise.
"""

import asyncio
import concurrent.futures
import logging
import threading
from collections import deque
from functools import partial
from typing import Any

from .config import SerialSettings, SessionConfig
from .constants import DEFAULT_CLOSE_TIMEOUT, Status
from .errors import PeerClosed, ReadError, ResourceError
from .loop import EventLoopThread
from .resources import ConnectionResource, SerialResource, resource_factory
from .sinks import CallbackSink, ChannelSink, MessageCallback, MessageSink, StatusCallback, StatusSink
from .submission import Command, Send, Start, Stop, SubmissionQueue


class Session:
    """Auto-reconnecting client for one stream endpoint.

    Status flow::

        DISCONNECTED -> CONNECTING -> CONNECTED
                            |             |
                          ERROR    ERROR / DISCONNECTED (peer closed)
                            |             |
                            +--> RECONNECTING --(backoff)--> CONNECTING

    ``stop()`` ends any of these in DISCONNECTED and nothing happens afterwards
    until the next ``start()``.
    """

    def __init__(
        self,
        locator: Any,
        config: SessionConfig | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        """Initialize an inert session.

        Args:
            locator: ``tcp://host:port``, ``serial:///dev/ttyUSB0?baudrate=115200``,
                a ``(host, port)`` tuple, or a zero-argument resource factory
            config: Session tunables
            loop: Run on this (already running) event loop instead of a
                private thread

        Raises:
            ValueError: If the locator cannot be parsed
        """
        self.config = config or SessionConfig()
        self._factory = resource_factory(locator)
        self.target = self._factory().target

        # Shared with caller threads: plain attribute reads/writes only
        self._status = Status.DISCONNECTED
        self._stopped = True

        # Owned by the event loop
        self._running = False
        self._attempt = 0
        self._pending: deque[bytes] = deque()
        self._writable: asyncio.Event | None = None
        self._resource: ConnectionResource | None = None
        self._connection: asyncio.Task | None = None
        self._retry: asyncio.TimerHandle | None = None
        self._generation = 0

        self._message_sink: MessageSink = CallbackSink()
        self._status_sink: StatusSink = CallbackSink()

        self._lock = threading.Lock()
        self._thread: EventLoopThread | None = None
        self._loop = loop
        self._queue = SubmissionQueue(loop, self._handle) if loop is not None else None

    @classmethod
    def tcp(cls, host: str, port: int, config: SessionConfig | None = None, **kwargs: Any) -> "Session":
        """Session over TCP to ``host:port``."""
        return cls((host, port), config, **kwargs)

    @classmethod
    def serial(
        cls,
        port: str,
        baudrate: int | None = None,
        config: SessionConfig | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        **line_settings: Any,
    ) -> "Session":
        """Session over a serial device.

        Args:
            port: Device path or name
            baudrate: Line speed, 9600 when omitted
            config: Session tunables
            loop: Optional event loop to run on
            **line_settings: Further :class:`~rsc.config.SerialSettings` fields
        """
        if baudrate is not None:
            line_settings["baudrate"] = baudrate
        settings = SerialSettings(**line_settings)
        return cls(partial(SerialResource, port, settings), config, loop=loop)

    # ------------------------------------------------------------------
    # Public API, safe from any thread
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin connecting. No-op while already running."""
        self._ensure_loop().submit(Start())

    def stop(self) -> concurrent.futures.Future:
        """Stop retrying and release the connection. Idempotent.

        Returns:
            Future resolved once no stream is open, no retry is pending and
            the final DISCONNECTED status has been emitted. Do not block on it
            from inside a callback.
        """
        self._stopped = True
        command = Stop()
        queue = self._queue
        if queue is None or not queue.submit(command):
            command.done.set_result(None)
        return command.done

    def send(self, data: bytes | str) -> None:
        """Queue ``data`` for writing. Dropped silently if the session is stopped."""
        if isinstance(data, str):
            data = data.encode()
        queue = self._queue
        if queue is not None:
            queue.submit(Send(bytes(data)))

    def get_status(self) -> Status:
        """Most recently emitted status, without blocking."""
        return self._status

    def set_message_callback(self, callback: MessageCallback | None) -> None:
        """Call ``callback(data)`` for every received chunk."""
        self.set_message_sink(CallbackSink(callback))

    def set_status_callback(self, callback: StatusCallback | None) -> None:
        """Call ``callback(status, reason)`` for every transition."""
        self.set_status_sink(CallbackSink(callback))

    def set_message_sink(self, sink: MessageSink) -> None:
        self._bind(sink)
        self._message_sink = sink

    def set_status_sink(self, sink: StatusSink) -> None:
        self._bind(sink)
        self._status_sink = sink

    def close(self, timeout: float | None = DEFAULT_CLOSE_TIMEOUT) -> None:
        """Stop, wait for the stream to be released, then end the loop thread.

        Sessions running on a caller-supplied loop are only stopped.

        Args:
            timeout: Seconds to wait for the stop barrier and again for the
                thread; past it the loop is torn down regardless
        """
        done = self.stop()
        with self._lock:
            thread = self._thread
            if thread is None or threading.current_thread() is thread:
                return
            self._thread = None
            self._loop = None
            self._queue = None
        try:
            done.result(timeout)
        except concurrent.futures.TimeoutError:
            logging.warning("Session %s did not release its stream within %ss", self.target, timeout)
        thread.stop()
        thread.join(timeout)

    @property
    def status(self) -> Status:
        return self._status

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def attempt(self) -> int:
        """Failed attempts since the last successful connect."""
        return self._attempt

    @property
    def pending(self) -> int:
        """Messages waiting to be written."""
        return len(self._pending)

    def __enter__(self) -> "Session":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<Session {self.target} {self._status.name}>"

    def _ensure_loop(self) -> SubmissionQueue:
        with self._lock:
            if self._queue is None:
                self._thread = EventLoopThread(name=self.config.name)
                self._thread.start()
                self._loop = self._thread.loop
                self._queue = SubmissionQueue(self._loop, self._handle)
                self._bind(self._message_sink)
                self._bind(self._status_sink)
            return self._queue

    def _bind(self, sink: Any) -> None:
        if isinstance(sink, ChannelSink) and self._loop is not None:
            sink.bind(self._loop)

    # ------------------------------------------------------------------
    # Event loop side
    # ------------------------------------------------------------------

    async def _handle(self, command: Command) -> None:
        if isinstance(command, Send):
            self._enqueue(command.data)
        elif isinstance(command, Start):
            self._begin()
        elif isinstance(command, Stop):
            await self._shutdown(command.done)

    def _begin(self) -> None:
        if self._running:
            return
        self._running = True
        self._stopped = False
        self._attempt = 0
        self._writable = asyncio.Event()
        self._connect()

    def _enqueue(self, data: bytes) -> None:
        if self._stopped:
            logging.debug("Dropping %d bytes for %s: session is stopped", len(data), self.target)
            return
        self._pending.append(data)
        self._writable.set()

    def _current(self, generation: int) -> bool:
        return not self._stopped and generation == self._generation

    def _connect(self) -> None:
        if self._stopped:
            return
        self._generation += 1
        try:
            resource = self._factory()
        except Exception as exc:
            self._set_status(Status.ERROR, f"Connect failed: {exc}")
            self._schedule_retry()
            return
        self._resource = resource
        self._set_status(Status.CONNECTING, f"Connecting to {resource.target}")
        self._connection = asyncio.get_running_loop().create_task(self._run(resource, self._generation))

    async def _run(self, resource: ConnectionResource, generation: int) -> None:
        """One connection lifetime: open, pump until failure, close."""
        failure: ResourceError | None = None
        try:
            await resource.open()
            if not self._current(generation):
                return
            self._attempt = 0
            logging.info("Session connected to %s", resource.target)
            self._set_status(Status.CONNECTED, f"Connected to {resource.target}")
            await self._pump(resource, generation)
        except ResourceError as exc:
            failure = exc
        except Exception as exc:
            logging.error("Unexpected failure on %s: %s", resource.target, exc)
            failure = ReadError(exc)
        finally:
            await resource.close()
            if self._resource is resource:
                self._resource = None

        if failure is not None and self._current(generation):
            self._recover(failure)

    async def _pump(self, resource: ConnectionResource, generation: int) -> None:
        reader = asyncio.ensure_future(self._read_loop(resource, generation))
        writer = asyncio.ensure_future(self._write_loop(resource, generation))
        try:
            done, _ = await asyncio.wait({reader, writer}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            reader.cancel()
            writer.cancel()
            await asyncio.gather(reader, writer, return_exceptions=True)

        for task in done:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

    async def _read_loop(self, resource: ConnectionResource, generation: int) -> None:
        read_size = self.config.read_size or resource.default_read_size
        while self._current(generation):
            chunk = await resource.read(read_size)
            if not self._current(generation):
                return
            await self._deliver(chunk)

    async def _write_loop(self, resource: ConnectionResource, generation: int) -> None:
        # Messages leave the queue before the write: one lost with the
        # connection is not written again.
        while self._current(generation):
            if not self._pending:
                self._writable.clear()
                await self._writable.wait()
                continue
            await resource.write(self._pending.popleft())

    def _recover(self, failure: ResourceError) -> None:
        if isinstance(failure, PeerClosed):
            self._set_status(Status.DISCONNECTED, str(failure))
        else:
            self._set_status(Status.ERROR, str(failure))
        self._schedule_retry()

    def _schedule_retry(self) -> None:
        if self._stopped:
            return
        delay = self.config.backoff.delay(self._attempt)
        self._attempt += 1
        self._set_status(Status.RECONNECTING, f"Retry in {delay:g}s")
        self._retry = asyncio.get_running_loop().call_later(delay, self._on_retry)

    def _on_retry(self) -> None:
        self._retry = None
        if self._stopped or not self._running:
            return
        self._connect()

    async def _shutdown(self, done: concurrent.futures.Future) -> None:
        self._stopped = True
        self._generation += 1
        self._pending.clear()
        if self._retry is not None:
            self._retry.cancel()
            self._retry = None

        was_running, self._running = self._running, False
        connection, self._connection = self._connection, None
        try:
            if connection is not None and not connection.done():
                connection.cancel()
                await asyncio.wait({connection})
            if self._resource is not None:
                resource, self._resource = self._resource, None
                await resource.close()
        finally:
            if was_running:
                self._set_status(Status.DISCONNECTED, "Client closed")
            if not done.done():
                done.set_result(None)

    def _set_status(self, status: Status, reason: str) -> None:
        self._status = status
        logging.debug("%s %s: %s", self.target, status.name, reason)
        try:
            self._status_sink.notify(status, reason)
        except Exception as exc:
            logging.error("Status callback raised: %s", exc)

    async def _deliver(self, chunk: bytes) -> None:
        try:
            await self._message_sink.deliver(chunk)
        except Exception as exc:
            logging.error("Message callback raised: %s", exc)
