#!/usr/bin/env python3
"""
Floor Display GUI - standalone window version for the TV.

Usage:
    python -m floor_display.gui ws://backend:3000/ws --locale ru --fullscreen
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading

from .main import add_common_arguments, configure_logging, settings_from_args

logger = logging.getLogger(__name__)


def run_async_feed(client, loop: asyncio.AbstractEventLoop) -> None:
    """Run the async data feed in a separate thread."""
    asyncio.set_event_loop(loop)
    logger.info("Starting async feed thread")
    try:
        loop.run_until_complete(client.run())
    except asyncio.CancelledError:
        logger.info("Feed cancelled")
    except Exception:
        logger.exception("Feed thread crashed")
    finally:
        loop.close()


def cancel_feed(loop: asyncio.AbstractEventLoop) -> None:
    """Cancel every task on the feed loop. Must run on that loop."""
    for task in asyncio.all_tasks(loop):
        task.cancel()


def shutdown_feed(client, loop: asyncio.AbstractEventLoop, thread: threading.Thread,
                  timeout: float = 5.0) -> bool:
    """
    Stop the feed from the GUI thread and wait for its thread to exit.

    The run task is cancelled on its own loop, so a client sleeping in
    reconnect backoff exits straight away. Returns True if the thread ended.
    """
    client.stop()
    try:
        loop.call_soon_threadsafe(cancel_feed, loop)
    except RuntimeError:
        pass  # loop already closed, the thread is on its way out
    thread.join(timeout)
    if thread.is_alive():
        logger.warning("Feed thread still running after %.1fs", timeout)
        return False
    return True


def main(settings, fullscreen: bool = False) -> None:
    """Main entry point - runs data feed in background, GUI in main thread."""

    from .datafeed.floor_client import FloorClient
    from .engine.locale import get_locale
    from .ui.floor_window import run_gui

    print(f"Starting Floor Display GUI for {settings.ws_url}...")
    print(f"  Locale: {settings.locale}")
    print(f"  Backfill: {settings.backfill_url or 'off'}")
    print()

    client = FloorClient.from_settings(settings)

    loop = asyncio.new_event_loop()

    feed_thread = threading.Thread(
        target=run_async_feed,
        args=(client, loop),
        daemon=True
    )
    feed_thread.start()

    # Run GUI in main thread (required by Qt)
    try:
        run_gui(client.snapshot_queue, get_locale(settings.locale), fullscreen=fullscreen)
    finally:
        shutdown_feed(client, loop, feed_thread)


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Floor Display GUI - standalone window for the restaurant floor",
    )
    add_common_arguments(parser)
    parser.add_argument(
        "--fullscreen",
        action="store_true",
        help="Open full-screen (TV mode)"
    )

    args = parser.parse_args()
    settings = settings_from_args(args)
    configure_logging(settings)

    try:
        main(settings, fullscreen=args.fullscreen)
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
