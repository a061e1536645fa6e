"""Thread-safe command ingress for a session's event loop."""

import asyncio
import concurrent.futures
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

# ----------------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------------


@dataclass
class Start:
    """Begin connecting."""


@dataclass
class Stop:
    """Tear down and stay down; ``done`` resolves once resources are released."""

    done: concurrent.futures.Future = field(default_factory=concurrent.futures.Future)


@dataclass
class Send:
    """Queue ``data`` for writing."""

    data: bytes


Command = Start | Stop | Send


# ----------------------------------------------------------------------------
# Queue
# ----------------------------------------------------------------------------


class SubmissionQueue:
    """Marshals commands from any thread into one event loop.

    Commands are admitted with ``call_soon_threadsafe`` and handled one at a
    time, in arrival order, by a single dispatcher task. A handler that awaits
    (e.g. a stop waiting for the stream to close) holds back the commands
    behind it.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, handler: Callable[[Command], Awaitable[None]]):
        """Initialize queue.

        Args:
            loop: Event loop that owns the session
            handler: Coroutine function run on the loop for every command
        """
        self._loop = loop
        self._handler = handler
        self._queue: asyncio.Queue | None = None
        self._dispatcher: asyncio.Task | None = None

    def submit(self, command: Command) -> bool:
        """Hand ``command`` to the loop. Safe from any thread.

        Returns:
            False if the loop is already closed and the command was dropped
        """
        try:
            self._loop.call_soon_threadsafe(self._admit, command)
        except RuntimeError:
            logging.debug("Dropping %s: event loop is closed", type(command).__name__)
            return False
        return True

    def _admit(self, command: Command) -> None:
        if self._queue is None:
            self._queue = asyncio.Queue()
            self._dispatcher = self._loop.create_task(self._dispatch())
        self._queue.put_nowait(command)

    async def _dispatch(self) -> None:
        while True:
            command = await self._queue.get()
            try:
                await self._handler(command)
            except Exception as exc:
                logging.error("Error handling %s: %s", type(command).__name__, exc)
            finally:
                self._queue.task_done()

    def pending(self) -> int:
        """Commands admitted but not yet handled."""
        return 0 if self._queue is None else self._queue.qsize()
