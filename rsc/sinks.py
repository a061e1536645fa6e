"""Observer channels: where a session reports received data and status changes.

Two interchangeable implementations are provided:

- :class:`CallbackSink` calls a plain function for every event.
- :class:`ChannelSink` buffers events in a bounded queue for consumers that
  pull at their own pace. A full channel holds back the read loop (and so the
  peer) instead of growing without limit.

Sinks are only ever invoked from the session's event loop.
"""

import asyncio
import concurrent.futures
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .constants import DEFAULT_CHANNEL_SIZE, Status

MessageCallback = Callable[[bytes], Any]
StatusCallback = Callable[[Status, str], Any]


class MessageSink(ABC):
    """Receives every chunk read from the stream."""

    @abstractmethod
    async def deliver(self, data: bytes) -> None:
        """Take one received chunk. May wait to apply back-pressure."""


class StatusSink(ABC):
    """Receives every status transition."""

    @abstractmethod
    def notify(self, status: Status, reason: str) -> None:
        """Take one transition. Must not block."""


class CallbackSink(MessageSink, StatusSink):
    """Forwards events straight to a function; ``None`` discards them."""

    def __init__(self, callback: Callable[..., Any] | None = None):
        self.callback = callback

    async def deliver(self, data: bytes) -> None:
        if self.callback is not None:
            self.callback(data)

    def notify(self, status: Status, reason: str) -> None:
        if self.callback is not None:
            self.callback(status, reason)


class ChannelSink(MessageSink, StatusSink):
    """Bounded queue of events.

    Received chunks wait for room in the queue. Status transitions never
    wait: when the queue is full the oldest entry is dropped.

    Consumers on the session's loop use :meth:`get`; other threads use
    :meth:`get_blocking`. Call :meth:`bind` (done by the session) before the
    first blocking read.
    """

    def __init__(self, maxsize: int = DEFAULT_CHANNEL_SIZE):
        if maxsize <= 0:
            raise ValueError("maxsize must be > 0")
        self.maxsize = maxsize
        self._queue: asyncio.Queue | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self.dropped = 0

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach the channel to the loop that will feed it."""
        if self._loop is not loop:
            self._loop = loop
            self._queue = None

    def _ensure_queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue(self.maxsize)
        return self._queue

    async def deliver(self, data: bytes) -> None:
        await self._ensure_queue().put(data)

    def notify(self, status: Status, reason: str) -> None:
        queue = self._ensure_queue()
        if queue.full():
            queue.get_nowait()
            self.dropped += 1
        queue.put_nowait((status, reason))

    async def get(self) -> Any:
        """Next event: ``bytes`` for a message sink, ``(Status, str)`` for a status sink."""
        return await self._ensure_queue().get()

    def get_blocking(self, timeout: float | None = None) -> Any:
        """Wait for the next event from a thread other than the session's loop.

        Raises:
            RuntimeError: If the channel is not bound to a loop
            TimeoutError: If nothing arrives within ``timeout`` seconds
        """
        if self._loop is None:
            raise RuntimeError("ChannelSink is not bound to an event loop")
        future = asyncio.run_coroutine_threadsafe(self.get(), self._loop)
        try:
            return future.result(timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            raise

    def qsize(self) -> int:
        return 0 if self._queue is None else self._queue.qsize()
