#!/usr/bin/env python3
"""
Floor Display - live order board for the kitchen / dining floor.

Usage:
    python -m floor_display.main ws://backend:3000/ws --locale ru

    Or via the console script:
    floor-display ws://backend:3000/ws

Controls:
    q - Quit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import Settings, get_settings

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        filename=settings.log_file,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Flags shared by the TUI and GUI entry points. Defaults come from Settings."""
    parser.add_argument(
        "ws_url",
        nargs="?",
        default=None,
        help="Order event websocket URL (default: $FLOOR_WS_URL or ws://localhost:3000/ws)"
    )

    parser.add_argument(
        "--locale",
        choices=["en", "ru"],
        default=None,
        help="Display language (default: en)"
    )

    parser.add_argument(
        "--backfill-url",
        default=None,
        help="REST URL listing active orders, fetched on every (re)connect"
    )

    parser.add_argument(
        "--snapshot-interval-ms",
        type=int,
        default=None,
        help="Minimum gap between UI refreshes (default: 100)"
    )

    parser.add_argument(
        "--purge-ready",
        action="store_true",
        default=None,
        help="Drop ready orders from memory instead of only hiding them"
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: INFO)"
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Write logs to this file instead of stderr"
    )


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment/.env settings with CLI flags layered on top."""
    overrides = {
        key: value
        for key, value in {
            "ws_url": args.ws_url,
            "locale": args.locale,
            "backfill_url": args.backfill_url,
            "snapshot_interval_ms": args.snapshot_interval_ms,
            "purge_ready": args.purge_ready,
            "log_level": args.log_level,
            "log_file": args.log_file,
        }.items()
        if value is not None
    }
    base = get_settings()
    return Settings(**{**base.model_dump(), **overrides})


async def main(settings: Settings) -> None:
    """Main entry point - runs data feed and UI concurrently."""

    # Import here to avoid slow startup for --help
    from .datafeed.floor_client import FloorClient
    from .engine.locale import get_locale
    from .ui.floor_view import run_ui

    print(f"Starting Floor Display for {settings.ws_url}...")
    print(f"  Locale: {settings.locale}")
    print(f"  Backfill: {settings.backfill_url or 'off'}")
    print()

    client = FloorClient.from_settings(settings)

    async def run_feed() -> None:
        try:
            await client.run()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Feed stopped unexpectedly")

    feed_task = asyncio.create_task(run_feed())

    try:
        # Run UI (blocks until quit)
        await run_ui(client.snapshot_queue, get_locale(settings.locale))
    finally:
        await client.close()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Floor Display - live order board for the restaurant floor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m floor_display.main
    python -m floor_display.main ws://10.0.0.5:3000/ws --locale ru
    python -m floor_display.main --backfill-url http://10.0.0.5:3000/api/orders/active
        """
    )
    add_common_arguments(parser)
    args = parser.parse_args()
    settings = settings_from_args(args)
    configure_logging(settings)

    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
