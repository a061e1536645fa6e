"""Tests for the cross-thread command queue and the loop thread."""

import asyncio
import threading

from rsc.loop import EventLoopThread
from rsc.submission import Send, Start, Stop, SubmissionQueue


def _loop_thread() -> EventLoopThread:
    thread = EventLoopThread(name="submission-test")
    thread.start()
    assert thread.wait_running(5.0)
    return thread


def test_commands_run_in_order() -> None:
    """Commands from several threads are handled one at a time, per-thread order kept."""
    handled: list = []
    finished = threading.Event()
    active = 0

    async def handler(command) -> None:
        nonlocal active
        active += 1
        assert active == 1
        if isinstance(command, Send):
            await asyncio.sleep(0)
            handled.append(command.data)
        elif isinstance(command, Stop):
            command.done.set_result(None)
            finished.set()
        active -= 1

    thread = _loop_thread()
    try:
        queue = SubmissionQueue(thread.loop, handler)

        def producer(tag: bytes) -> None:
            for i in range(50):
                assert queue.submit(Send(tag + str(i).encode()))

        workers = [threading.Thread(target=producer, args=(tag,)) for tag in (b"a", b"b")]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        stop = Stop()
        queue.submit(stop)
        stop.done.result(5.0)
        assert finished.is_set()

        assert len(handled) == 100
        for tag in (b"a", b"b"):
            mine = [d for d in handled if d.startswith(tag)]
            assert mine == [tag + str(i).encode() for i in range(50)]
    finally:
        thread.stop()
        thread.join(5.0)
    print("✓ Submission order test passed")


def test_slow_handler_holds_back_later_commands() -> None:
    """A command that awaits finishes before the next one starts."""
    events: list[str] = []

    async def handler(command) -> None:
        if isinstance(command, Start):
            events.append("start-begin")
            await asyncio.sleep(0.05)
            events.append("start-end")
        elif isinstance(command, Stop):
            events.append("stop")
            command.done.set_result(None)

    thread = _loop_thread()
    try:
        queue = SubmissionQueue(thread.loop, handler)
        queue.submit(Start())
        stop = Stop()
        queue.submit(stop)
        stop.done.result(5.0)
        assert events == ["start-begin", "start-end", "stop"]
    finally:
        thread.stop()
        thread.join(5.0)


def test_handler_errors_are_contained() -> None:
    """A failing command does not stop the dispatcher."""

    async def handler(command) -> None:
        if isinstance(command, Send):
            raise RuntimeError("boom")
        if isinstance(command, Stop):
            command.done.set_result("ok")

    thread = _loop_thread()
    try:
        queue = SubmissionQueue(thread.loop, handler)
        queue.submit(Send(b"x"))
        stop = Stop()
        queue.submit(stop)
        assert stop.done.result(5.0) == "ok"
        assert queue.pending() == 0
    finally:
        thread.stop()
        thread.join(5.0)


def test_submit_after_loop_closed() -> None:
    """Submitting to a finished loop reports the drop instead of raising."""

    async def handler(command) -> None:
        pass

    thread = _loop_thread()
    queue = SubmissionQueue(thread.loop, handler)
    thread.stop()
    thread.join(5.0)
    assert not thread.is_alive()
    assert thread.loop.is_closed()

    assert queue.submit(Start()) is False
    thread.stop()  # idempotent on a closed loop


if __name__ == "__main__":
    test_commands_run_in_order()
    test_slow_handler_holds_back_later_commands()
    test_handler_errors_are_contained()
    test_submit_after_loop_closed()
    print("All submission tests passed!")
