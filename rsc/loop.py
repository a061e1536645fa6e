"""Background thread running one asyncio event loop."""

import asyncio
import logging
import threading


class EventLoopThread(threading.Thread):
    """Daemon thread that owns and runs an event loop until :meth:`stop`."""

    def __init__(self, name: str = "rsc-loop"):
        super().__init__(name=name, daemon=True)
        self.loop = asyncio.new_event_loop()
        self._running = threading.Event()

    def run(self):
        """Run the loop, then cancel leftover tasks and close it."""
        asyncio.set_event_loop(self.loop)
        self.loop.call_soon(self._running.set)
        try:
            self.loop.run_forever()
        finally:
            self._drain()
            self.loop.close()
            logging.debug("Event loop thread %s finished", self.name)

    def _drain(self):
        tasks = asyncio.all_tasks(self.loop)
        for task in tasks:
            task.cancel()
        if tasks:
            self.loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
        self.loop.run_until_complete(self.loop.shutdown_asyncgens())

    def wait_running(self, timeout: float | None = None) -> bool:
        """Block until the loop has started processing callbacks."""
        return self._running.wait(timeout)

    def stop(self):
        """Ask the loop to stop. Safe from any thread, idempotent."""
        try:
            self.loop.call_soon_threadsafe(self.loop.stop)
        except RuntimeError:
            pass  # already closed
