#!/usr/bin/env python3
"""
Depth Pricer - depth-weighted bid/ask prices and spread from Binance depth streams.

Usage:
    python -m depth_pricer.main BTCUSDT --depth 1
    python -m depth_pricer.main BTCUSDT ETHUSDT --depth 0.5 --plain

Controls (TUI):
    q - Quit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation

logger = logging.getLogger(__name__)

DEFAULT_SYMBOL = "BTCUSDT"
DEFAULT_DEPTH = "1"
DEFAULT_PRECISION = 2


def non_negative_int(value: str) -> int:
    """argparse type for --precision."""
    try:
        result = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if result < 0:
        raise argparse.ArgumentTypeError(f"precision must not be negative: {value!r}")
    return result


def positive_decimal(value: str) -> Decimal:
    """argparse type for --depth."""
    try:
        result = Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a decimal number: {value!r}") from None
    if not result.is_finite() or result <= 0:
        raise argparse.ArgumentTypeError(f"depth must be a positive number: {value!r}")
    return result


async def main(
    symbols: list[str],
    depth: Decimal,
    allow_partial: bool = False,
    precision: int = DEFAULT_PRECISION,
    stream_url: str | None = None,
    plain: bool = False,
) -> None:
    """Main entry point - runs data feed and display concurrently."""

    # Import here to avoid slow startup for --help
    from rich.console import Console

    from .datafeed.binance_client import WS_BASE, BinanceClient
    from .engine.pricer import DepthPricer
    from .ui.quote_view import print_pending, run_console, run_ui

    logger.info("Starting Depth Pricer for %s (depth=%s, partial=%s)",
                ", ".join(symbols), depth, allow_partial)

    client = BinanceClient(
        symbols=symbols,
        pricer=DepthPricer(depth=depth, allow_partial=allow_partial),
        stream_url=stream_url or WS_BASE,
    )

    async def run_feed() -> None:
        try:
            await client.run()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Feed error")

    feed_task = asyncio.create_task(run_feed())

    try:
        if plain:
            console = Console(highlight=False)
            display = asyncio.create_task(run_console(client.quote_queue, precision, console))
            # The console printer runs forever; the session ends with the feed
            await feed_task
            display.cancel()
            try:
                await display
            except asyncio.CancelledError:
                pass
            print_pending(client.quote_queue, console, precision)
        else:
            # Run UI (blocks until quit)
            await run_ui(client.quote_queue, precision)
    finally:
        client.stop()
        feed_task.cancel()
        try:
            await feed_task
        except asyncio.CancelledError:
            pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Depth Pricer - depth-weighted prices and spread for Binance symbols",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m depth_pricer.main BTCUSDT
    python -m depth_pricer.main BTCUSDT ETHUSDT --depth 0.5
    python -m depth_pricer.main ETHUSDT --depth 10 --allow-partial --plain
        """
    )

    parser.add_argument(
        "symbols",
        nargs="*",
        default=[DEFAULT_SYMBOL],
        help=f"Trading symbols (default: {DEFAULT_SYMBOL})"
    )

    parser.add_argument(
        "--depth",
        type=positive_decimal,
        default=Decimal(DEFAULT_DEPTH),
        help=f"Quantity to price on each side (default: {DEFAULT_DEPTH})"
    )

    parser.add_argument(
        "--allow-partial",
        action="store_true",
        help="Price thin sides over whatever quantity rests instead of showing n/a"
    )

    parser.add_argument(
        "--precision",
        type=non_negative_int,
        default=DEFAULT_PRECISION,
        help=f"Decimals shown for prices (default: {DEFAULT_PRECISION})"
    )

    parser.add_argument(
        "--stream-url",
        default=None,
        help="WebSocket base URL (default: Binance spot)"
    )

    parser.add_argument(
        "--plain",
        action="store_true",
        help="Print one line per update instead of the TUI"
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)"
    )

    return parser


def cli(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        asyncio.run(main(
            [s.upper() for s in args.symbols],
            args.depth,
            allow_partial=args.allow_partial,
            precision=args.precision,
            stream_url=args.stream_url,
            plain=args.plain,
        ))
    except KeyboardInterrupt:
        print("\nShutdown requested.")
        sys.exit(0)


if __name__ == "__main__":
    cli()
