#!/usr/bin/env python3
"""
Micro-benchmark for Floor Display.

Tests:
1. Event dispatch throughput (decode + normalise + store update)
2. Projection speed for a busy floor
3. Full snapshot generation speed

Usage:
    python -m floor_display.benchmark
"""

from __future__ import annotations

import random
import time
from datetime import timezone
from statistics import mean, stdev

import orjson

from .datafeed.floor_client import FloorClient
from .datafeed.order_store import OrderStore
from .datafeed.payloads import parse_order
from .engine.projector import build_floor_snapshot, project
from .types import OrderStatus

DISHES = ["Borscht", "Pelmeni", "Soup", "Salad", "Tea", "Blini", "Shashlik"]
STATUSES = [s.value for s in OrderStatus if s is not OrderStatus.UNKNOWN]


def generate_mock_order(order_id: int, tables: int = 30) -> dict:
    """Generate an order:new payload."""
    return {
        "orderId": order_id,
        "tableNumber": random.randint(1, tables),
        "items": [
            {"name": random.choice(DISHES), "quantity": random.randint(1, 4)}
            for _ in range(random.randint(1, 6))
        ],
        "status": "new",
        "createdAt": "2024-05-01T12:00:00Z",
    }


def generate_mock_frames(count: int, orders: int = 500) -> list[bytes]:
    """Mix of creations, status changes and cancellations, as raw frames."""
    frames = []
    for i in range(count):
        roll = random.random()
        oid = random.randint(1, orders)
        if roll < 0.3:
            msg = {"event": "order:new", "data": generate_mock_order(oid)}
        elif roll < 0.9:
            msg = {"event": "order:updated", "data": {"orderId": oid, "status": random.choice(STATUSES)}}
        else:
            msg = {"event": "order:cancelled", "data": {"orderId": oid}}
        frames.append(orjson.dumps(msg))
    return frames


def busy_store(orders: int = 300) -> OrderStore:
    store = OrderStore()
    for i in range(orders):
        store.admit(parse_order(generate_mock_order(i)))
        store.apply_status_transition(str(i), random.choice(STATUSES))
    return store


def benchmark_event_dispatch(iterations: int = 50000) -> None:
    """Benchmark frame handling throughput."""
    print("\n=== Event Dispatch Benchmark ===")

    client = FloorClient("ws://localhost/ws", snapshot_interval_ms=10**9)
    frames = generate_mock_frames(iterations)

    start = time.perf_counter()
    for f in frames:
        client._handle_ws_message(f)
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Frames handled: {iterations:,}")
    print(f"  Orders held: {len(client.store):,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} frames/sec")
    print(f"  Per frame: {elapsed/iterations*1_000_000:.1f}µs")


def benchmark_projection(iterations: int = 1000) -> None:
    """Benchmark projection of a busy floor."""
    print("\n=== Projection Benchmark ===")

    snapshot = busy_store().snapshot()

    for _ in range(10):
        project(snapshot, tz=timezone.utc)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        project(snapshot, tz=timezone.utc)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Rate: {1000/avg_time:,.0f} calls/sec")


def benchmark_full_snapshot(iterations: int = 500) -> None:
    """Benchmark store snapshot + projection (what the UI needs)."""
    print("\n=== Full Snapshot Generation Benchmark ===")

    store = busy_store()

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        build_floor_snapshot(store.snapshot(), connected=True, tz=timezone.utc)
        times.append(time.perf_counter() - start)

    avg_time = mean(times) * 1000
    std_time = stdev(times) * 1000

    print(f"  Iterations: {iterations}")
    print(f"  Avg time: {avg_time:.3f}ms")
    print(f"  Std dev: {std_time:.3f}ms")
    print(f"  Max FPS possible: {1000/avg_time:,.0f}")


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Floor Display Performance Benchmark")
    print("=" * 60)

    benchmark_event_dispatch()
    benchmark_projection()
    benchmark_full_snapshot()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
