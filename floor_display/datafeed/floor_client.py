"""
Order event stream client with async orchestration.

Handles:
1. Websocket connection to the backend push channel, with reconnect/backoff
2. Envelope decoding and dispatch of order events to the local store
3. Optional REST backfill on every (re)connect to resync missed events
4. Periodic snapshot generation for UI

Notes:
- Uses orjson for JSON parsing
- All I/O is non-blocking (pure asyncio); store updates never await
- Bad frames and bad payloads are logged and dropped, never raised
"""

from __future__ import annotations

import asyncio
import logging
import queue
import time
from datetime import tzinfo
from typing import TYPE_CHECKING, Any, Callable

import aiohttp
import orjson

from .connection import ConnectionTracker
from .order_store import OrderStore
from .payloads import (
    PayloadError,
    parse_backfill,
    parse_order,
    parse_order_id,
    parse_status_change,
)
from ..engine.locale import EN, Locale, get_locale
from ..engine.projector import build_floor_snapshot
from ..types import FloorSnapshot

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

# Event names on the push channel
EVENT_ORDER_NEW = "order:new"
EVENT_ORDER_UPDATED = "order:updated"
EVENT_ORDER_CANCELLED = "order:cancelled"
EVENT_ORDER_REMOVED = "order:removed"

HEARTBEAT_SEC = 30.0


def json_loads(data: bytes | str) -> Any:
    return orjson.loads(data)


def decode_message(raw: bytes | str) -> tuple[str, Any] | None:
    """
    Decode one websocket frame into (event, payload).

    Accepted formats:
        {"event": "order:new", "data": {...}}
        ["order:new", {...}]

    Returns None (and logs) for anything else.
    """
    try:
        data = json_loads(raw)
    except orjson.JSONDecodeError as e:
        logger.warning("Dropping non-JSON frame: %s", e)
        return None

    event: Any = None
    payload: Any = None
    if isinstance(data, dict):
        event = data.get("event")
        payload = data.get("data")
    elif isinstance(data, list) and data:
        event = data[0]
        payload = data[1] if len(data) > 1 else None

    if not isinstance(event, str) or not event:
        logger.warning("Dropping frame without event name: %r", raw[:200])
        return None
    return event, payload


class FloorClient:
    """
    Async client for the order event stream.

    Owns the OrderStore and ConnectionTracker; nothing else writes to them.

    Usage:
        client = FloorClient("ws://localhost:3000/ws", locale=RU)
        asyncio.create_task(client.run())
        snapshot = client.snapshot_queue.get()
    """

    def __init__(
        self,
        ws_url: str,
        locale: Locale = EN,
        snapshot_interval_ms: int = 100,  # Push to UI at most every 100ms
        backfill_url: str | None = None,
        auth_token: str | None = None,
        reconnect_delay_sec: float = 1.0,
        max_reconnect_delay_sec: float = 30.0,
        purge_ready: bool = False,
        tz: tzinfo | None = None,
    ) -> None:
        self.ws_url = ws_url
        self.locale = locale
        self.snapshot_interval_ms = snapshot_interval_ms
        self.backfill_url = backfill_url
        self.auth_token = auth_token
        self.reconnect_delay_sec = reconnect_delay_sec
        self.max_reconnect_delay_sec = max_reconnect_delay_sec
        self.tz = tz

        # Core components
        self.store = OrderStore(purge_ready=purge_ready)
        self.connection = ConnectionTracker()

        # State
        self._running = False
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._last_snapshot_time: float = 0.0
        # Pending trailing push for updates that arrived inside the interval
        self._flush_handle: asyncio.TimerHandle | None = None

        # Rolling event rate tracking
        self._mutation_count_last: int = 0
        self._rate_calc_time: float = time.perf_counter()
        self._events_per_sec: float = 0.0

        self._handlers: dict[str, Callable[[Any], bool]] = {
            EVENT_ORDER_NEW: self._on_order_new,
            EVENT_ORDER_UPDATED: self._on_order_updated,
            EVENT_ORDER_CANCELLED: self._on_order_removed,
            EVENT_ORDER_REMOVED: self._on_order_removed,
        }

        # Output queue for UI - thread-safe so the Qt window can poll it
        self.snapshot_queue: queue.Queue[FloorSnapshot] = queue.Queue(maxsize=5)

    @classmethod
    def from_settings(cls, settings: Settings) -> FloorClient:
        return cls(
            ws_url=settings.ws_url,
            locale=get_locale(settings.locale),
            snapshot_interval_ms=settings.snapshot_interval_ms,
            backfill_url=settings.backfill_url,
            auth_token=settings.auth_token,
            reconnect_delay_sec=settings.reconnect_delay_sec,
            max_reconnect_delay_sec=settings.max_reconnect_delay_sec,
            purge_ready=settings.purge_ready,
        )

    @property
    def running(self) -> bool:
        return self._running

    # -------------------- event dispatch --------------------

    def _on_order_new(self, payload: Any) -> bool:
        return self.store.admit(parse_order(payload))

    def _on_order_updated(self, payload: Any) -> bool:
        change = parse_status_change(payload)
        return self.store.apply_status_transition(change.order_id, change.status)

    def _on_order_removed(self, payload: Any) -> bool:
        return self.store.apply_removal(parse_order_id(payload))

    def handle_event(self, event: str, payload: Any) -> bool:
        """
        Apply one named event to the store.

        Returns True if the store changed. Unknown events, malformed
        payloads and handler failures are logged and dropped; the next
        event is processed as usual.
        """
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("Ignoring event %s", event)
            return False
        try:
            return handler(payload)
        except PayloadError as e:
            logger.warning("Dropping %s event: %s", event, e)
            return False
        except Exception:
            logger.exception("Failed to apply %s event, dropped: %r", event, payload)
            return False

    def _handle_ws_message(self, raw: bytes | str) -> None:
        """Handle one websocket frame, then maybe push a snapshot."""
        decoded = decode_message(raw)
        if decoded is not None:
            self.handle_event(*decoded)
        self._maybe_push_snapshot()

    # -------------------- connection lifecycle --------------------

    def on_connected(self) -> None:
        if self.connection.mark_connected():
            self._maybe_push_snapshot(force=True)

    def on_disconnected(self) -> None:
        if self.connection.mark_disconnected():
            self._maybe_push_snapshot(force=True)

    # -------------------- snapshots --------------------

    def build_snapshot(self) -> FloorSnapshot:
        """Project the current store state for the UI."""
        now = time.perf_counter()
        rate_elapsed = now - self._rate_calc_time
        if rate_elapsed >= 1.0:
            count = self.store.mutation_count
            self._events_per_sec = (count - self._mutation_count_last) / rate_elapsed
            self._mutation_count_last = count
            self._rate_calc_time = now

        return build_floor_snapshot(
            self.store.snapshot(),
            connected=self.connection.connected,
            locale=self.locale,
            tz=self.tz,
            events_per_sec=self._events_per_sec,
        )

    def _maybe_push_snapshot(self, force: bool = False) -> None:
        """
        Push a snapshot to the queue if the interval elapsed (or forced).

        A skipped push schedules a trailing one for the end of the interval,
        so the last event of a burst always reaches the UI.
        """
        now = time.perf_counter()
        elapsed_ms = (now - self._last_snapshot_time) * 1000
        if not force and elapsed_ms < self.snapshot_interval_ms:
            self._schedule_flush((self.snapshot_interval_ms - elapsed_ms) / 1000)
            return
        self._cancel_flush()
        self._last_snapshot_time = now

        snapshot = self.build_snapshot()

        # Non-blocking put: drop oldest, put newest
        try:
            self.snapshot_queue.put_nowait(snapshot)
        except queue.Full:
            try:
                self.snapshot_queue.get_nowait()
            except queue.Empty:
                pass
            self.snapshot_queue.put_nowait(snapshot)

    def flush(self) -> None:
        """Push the current state now, regardless of the interval."""
        self._maybe_push_snapshot(force=True)

    def _schedule_flush(self, delay: float) -> None:
        if self._flush_handle is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop (synchronous caller): flush() is up to the caller
            return
        self._flush_handle = loop.call_later(delay, self._on_flush_timer)

    def _on_flush_timer(self) -> None:
        self._flush_handle = None
        self._maybe_push_snapshot(force=True)

    def _cancel_flush(self) -> None:
        if self._flush_handle is not None:
            self._flush_handle.cancel()
            self._flush_handle = None

    # -------------------- I/O --------------------

    async def backfill(self, session: aiohttp.ClientSession) -> bool:
        """
        Fetch the active order list and reconcile the store with it.

        Returns True if the store changed. Failures are logged, not raised.
        """
        if not self.backfill_url:
            return False

        headers = {"Authorization": f"Bearer {self.auth_token}"} if self.auth_token else {}
        try:
            async with session.get(self.backfill_url, headers=headers) as resp:
                resp.raise_for_status()
                body = json_loads(await resp.read())
            orders = parse_backfill(body)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Backfill from %s failed: %s", self.backfill_url, e)
            return False

        changed = self.store.reconcile(orders)
        logger.info("Backfilled %d active orders (changed=%s)", len(orders), changed)
        self._maybe_push_snapshot(force=True)
        return changed

    async def _listen(self, session: aiohttp.ClientSession) -> None:
        """One connection: connect, resync, then consume frames until closed."""
        async with session.ws_connect(self.ws_url, heartbeat=HEARTBEAT_SEC) as ws:
            self._ws = ws
            self.on_connected()
            await self.backfill(session)

            async for msg in ws:
                if not self._running:
                    break

                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._handle_ws_message(msg.data)
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    logger.warning("Websocket error: %s", ws.exception())
                    break

    async def run(self) -> None:
        """
        Main run loop. Connects, processes messages, reconnects on loss.

        Pushes FloorSnapshot to self.snapshot_queue for UI consumption.
        Returns after stop(); cancel the task to tear down immediately.
        """
        self._running = True
        delay = self.reconnect_delay_sec

        # Initial (empty, disconnected) frame so the UI has something to draw
        self._maybe_push_snapshot(force=True)

        try:
            async with aiohttp.ClientSession() as session:
                while self._running:
                    connected_before = self.connection.connect_count
                    try:
                        await self._listen(session)
                    except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                        logger.warning("Connection to %s failed: %s", self.ws_url, e)
                    finally:
                        self._ws = None
                        self.on_disconnected()

                    if not self._running:
                        break

                    if self.connection.connect_count > connected_before:
                        delay = self.reconnect_delay_sec
                    logger.info("Reconnecting in %.1fs", delay)
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, self.max_reconnect_delay_sec)
        finally:
            self._cancel_flush()

    async def close(self) -> None:
        """Stop and close the live websocket, if any."""
        self.stop()
        self._cancel_flush()
        ws = self._ws
        if ws is not None and not ws.closed:
            await ws.close()

    def stop(self) -> None:
        """Signal the client to stop."""
        self._running = False
