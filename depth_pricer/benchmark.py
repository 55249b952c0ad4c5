#!/usr/bin/env python3
"""
Micro-benchmark for Depth Pricer performance.

Tests:
1. Order book update throughput (decoded messages applied to one book)
2. Weighted average price throughput at several depths
3. Full message path (decode + apply + quote)

Usage:
    python -m depth_pricer.benchmark
"""

from __future__ import annotations

import random
import time
from decimal import Decimal
from statistics import mean, stdev

import orjson

from .datafeed.binance_client import BinanceClient
from .datafeed.orderbook import OrderBook
from .engine.pricer import weighted_average_price
from .types import DepthUpdate, Side

TICK = Decimal("0.01")


def generate_mock_update(
    base_price: Decimal = Decimal("600"),
    update_id: int = 1,
    changes: int = 50,
    symbol: str = "BNBUSDT",
) -> DepthUpdate:
    """Generate a mock depth update with string prices, like the feed."""
    bids = []
    asks = []

    for _ in range(changes // 2):
        offset = random.randint(1, 500)
        bid_price = base_price - offset * TICK
        ask_price = base_price + offset * TICK

        # Random qty (0 = remove level)
        bid_qty = f"{random.uniform(0, 100):.4f}" if random.random() > 0.2 else "0"
        ask_qty = f"{random.uniform(0, 100):.4f}" if random.random() > 0.2 else "0"

        bids.append([str(bid_price), bid_qty])
        asks.append([str(ask_price), ask_qty])

    return DepthUpdate(symbol, bids, asks, int(time.time() * 1000), update_id, update_id)


def generate_mock_book(base_price: Decimal = Decimal("600"), levels: int = 1000) -> OrderBook:
    """Order book with `levels` one-tick levels on each side."""
    book = OrderBook("BNBUSDT")
    for i in range(levels):
        book.apply_update(Side.BID, base_price - (i + 1) * TICK, f"{random.uniform(1, 100):.4f}")
        book.apply_update(Side.ASK, base_price + (i + 1) * TICK, f"{random.uniform(1, 100):.4f}")
    return book


def benchmark_orderbook_updates(iterations: int = 10000) -> None:
    """Benchmark order book update throughput."""
    print("\n=== Order Book Update Benchmark ===")

    book = generate_mock_book()
    updates = [generate_mock_update(update_id=i + 1) for i in range(iterations)]

    # Warm up
    for u in updates[:100]:
        book.apply_message(u)

    start = time.perf_counter()
    for u in updates:
        book.apply_message(u)
    elapsed = time.perf_counter() - start

    rate = iterations / elapsed
    print(f"  Messages applied: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {rate:,.0f} messages/sec")
    print(f"  Per message: {elapsed/iterations*1_000_000:.1f}µs")


def benchmark_weighted_price(iterations: int = 2000) -> None:
    """Benchmark weighted average price at increasing depth."""
    print("\n=== Weighted Average Price Benchmark ===")

    book = generate_mock_book()

    for depth in (Decimal("1"), Decimal("100"), Decimal("5000")):
        times = []
        for _ in range(iterations):
            start = time.perf_counter()
            weighted_average_price(book, Side.BID, depth)
            weighted_average_price(book, Side.ASK, depth)
            times.append(time.perf_counter() - start)

        avg_time = mean(times) * 1_000_000
        std_time = stdev(times) * 1_000_000
        print(f"  depth={depth}: avg {avg_time:.1f}µs, std {std_time:.1f}µs")


def benchmark_full_message(iterations: int = 5000) -> None:
    """Benchmark the full per-message path (what the feed loop does)."""
    print("\n=== Full Message Path Benchmark ===")

    client = BinanceClient(["BNBUSDT"], quote_queue_size=10)
    raw_messages = []
    for i in range(iterations):
        u = generate_mock_update(update_id=i + 1)
        raw_messages.append(orjson.dumps({
            'e': 'depthUpdate', 'E': u.event_time_ms, 's': u.symbol,
            'U': u.first_update_id, 'u': u.final_update_id,
            'b': u.bid_updates, 'a': u.ask_updates,
        }))

    start = time.perf_counter()
    for raw in raw_messages:
        client.handle_ws_message(raw)
    elapsed = time.perf_counter() - start

    print(f"  Messages: {iterations:,}")
    print(f"  Time: {elapsed*1000:.1f}ms")
    print(f"  Rate: {iterations/elapsed:,.0f} messages/sec")


def main() -> None:
    """Run all benchmarks."""
    print("=" * 60)
    print("Depth Pricer Performance Benchmark")
    print("=" * 60)

    benchmark_orderbook_updates()
    benchmark_weighted_price()
    benchmark_full_message()

    print("\n" + "=" * 60)
    print("Benchmark complete.")
    print("=" * 60)


if __name__ == "__main__":
    main()
