"""Tests for callback and channel observers."""

import asyncio
import concurrent.futures

import pytest

from rsc import CallbackSink, ChannelSink, Status
from rsc.loop import EventLoopThread


def test_callback_sink() -> None:
    """CallbackSink forwards to its function; without one it discards."""
    seen = []
    sink = CallbackSink(seen.append)
    asyncio.run(sink.deliver(b"abc"))
    assert seen == [b"abc"]

    statuses = []
    CallbackSink(lambda s, r: statuses.append((s, r))).notify(Status.CONNECTED, "up")
    assert statuses == [(Status.CONNECTED, "up")]

    silent = CallbackSink()
    asyncio.run(silent.deliver(b"ignored"))
    silent.notify(Status.ERROR, "ignored")
    print("✓ Callback sink test passed")


def test_channel_rejects_empty_bound() -> None:
    with pytest.raises(ValueError):
        ChannelSink(maxsize=0)


def test_channel_status_drops_oldest() -> None:
    """A full channel keeps the newest transitions."""

    async def scenario() -> list:
        sink = ChannelSink(maxsize=2)
        sink.notify(Status.CONNECTING, "a")
        sink.notify(Status.CONNECTED, "b")
        sink.notify(Status.DISCONNECTED, "c")
        assert sink.dropped == 1
        assert sink.qsize() == 2
        return [await sink.get(), await sink.get()]

    assert asyncio.run(scenario()) == [(Status.CONNECTED, "b"), (Status.DISCONNECTED, "c")]


def test_channel_message_backpressure() -> None:
    """Delivery waits for room instead of dropping data."""

    async def scenario() -> None:
        sink = ChannelSink(maxsize=1)
        await sink.deliver(b"first")
        blocked = asyncio.ensure_future(sink.deliver(b"second"))
        await asyncio.sleep(0.05)
        assert not blocked.done()

        assert await sink.get() == b"first"
        await asyncio.wait_for(blocked, 1.0)
        assert await sink.get() == b"second"

    asyncio.run(scenario())
    print("✓ Channel back-pressure test passed")


def test_channel_blocking_get() -> None:
    """Threads outside the loop read with get_blocking."""
    sink = ChannelSink()
    with pytest.raises(RuntimeError):
        sink.get_blocking(0.01)

    thread = EventLoopThread(name="sink-test")
    thread.start()
    assert thread.wait_running(5.0)
    try:
        sink.bind(thread.loop)
        thread.loop.call_soon_threadsafe(sink.notify, Status.CONNECTED, "up")
        assert sink.get_blocking(5.0) == (Status.CONNECTED, "up")

        with pytest.raises(concurrent.futures.TimeoutError):
            sink.get_blocking(0.05)
    finally:
        thread.stop()
        thread.join(5.0)


if __name__ == "__main__":
    test_callback_sink()
    test_channel_rejects_empty_bound()
    test_channel_status_drops_oldest()
    test_channel_message_backpressure()
    test_channel_blocking_get()
    print("All sink tests passed!")
