"""
Feed thread lifecycle tests (no Qt needed)
"""
import asyncio
import threading
import time

from floor_display.datafeed.floor_client import FloorClient
from floor_display.gui import run_async_feed, shutdown_feed


def start_feed(client):
    loop = asyncio.new_event_loop()
    thread = threading.Thread(target=run_async_feed, args=(client, loop), daemon=True)
    thread.start()
    return loop, thread


def test_shutdown_interrupts_reconnect_backoff():
    client = FloorClient(
        "ws://127.0.0.1:9/ws",
        reconnect_delay_sec=30.0,
        max_reconnect_delay_sec=30.0,
    )
    loop, thread = start_feed(client)
    time.sleep(0.3)  # first connect fails, client now sleeps in backoff
    assert thread.is_alive()

    started = time.monotonic()
    assert shutdown_feed(client, loop, thread, timeout=5.0) is True
    assert time.monotonic() - started < 5.0
    assert not thread.is_alive()
    assert loop.is_closed()
    assert client.running is False


def test_shutdown_right_after_start_and_twice():
    client = FloorClient("ws://127.0.0.1:9/ws", reconnect_delay_sec=30.0)
    loop, thread = start_feed(client)
    assert shutdown_feed(client, loop, thread, timeout=5.0) is True
    assert loop.is_closed()

    # Second call finds the loop closed and returns at once
    assert shutdown_feed(client, loop, thread, timeout=0.1) is True
