"""
Binance spot depth stream client with async orchestration.

Handles:
1. Combined WebSocket stream for one or more `<symbol>@depth` streams
2. Decoding raw messages into DepthUpdate records
3. Routing each update to that symbol's long-lived OrderBook
4. Pricing the book after every message and queueing the quote for the UI

Notes:
- orjson for JSON parsing
- A malformed message is logged and skipped, never fatal
- No REST snapshot and no sequence-gap handling; updates are applied as diffs
"""

from __future__ import annotations

import logging
import queue
from typing import Iterable, Optional

import aiohttp
import orjson

from .orderbook import OrderBook
from ..engine.pricer import DepthPricer
from ..errors import MalformedMessage
from ..types import DepthQuote, DepthUpdate

logger = logging.getLogger(__name__)

# Binance spot endpoint
WS_BASE = "wss://stream.binance.com:9443"

DEPTH_EVENT = "depthUpdate"


def _levels(payload: dict, key: str) -> list:
    levels = payload.get(key, [])
    if not isinstance(levels, list):
        raise MalformedMessage(f"field {key!r} must be a list, got {type(levels).__name__}")
    return levels


def decode_depth_message(raw: bytes | str) -> DepthUpdate:
    """
    Decode one raw depth message.

    Accepts the plain stream format
        {e: "depthUpdate", E, s, U, u, b: [[price, qty], ...], a: [[price, qty], ...]}
    or the same payload wrapped in a combined-stream envelope {stream, data}.

    Price/qty strings are left as-is; the order book parses and validates them.
    """
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedMessage(f"invalid JSON: {e}") from None

    if not isinstance(data, dict):
        raise MalformedMessage("message is not a JSON object")

    payload = data.get('data', data)
    if not isinstance(payload, dict):
        raise MalformedMessage("stream payload is not a JSON object")

    event = payload.get('e', DEPTH_EVENT)
    if event != DEPTH_EVENT:
        raise MalformedMessage(f"unexpected event type {event!r}")

    symbol = payload.get('s')
    if not isinstance(symbol, str) or not symbol:
        raise MalformedMessage("missing symbol")

    bids = _levels(payload, 'b')
    asks = _levels(payload, 'a')

    try:
        event_time = int(payload.get('E', 0))
        first_id = int(payload.get('U', 0))
        final_id = int(payload.get('u', 0))
    except (TypeError, ValueError) as e:
        raise MalformedMessage(f"bad header field: {e}") from None

    return DepthUpdate(
        symbol=symbol.upper(),
        bid_updates=bids,
        ask_updates=asks,
        event_time_ms=event_time,
        first_update_id=first_id,
        final_update_id=final_id,
    )


class BookRouter:
    """
    One OrderBook per symbol, created on first use and kept for the session.

    Books never share state, so each instrument has exactly one writer.
    """

    __slots__ = ('books',)

    def __init__(self, symbols: Iterable[str] = ()) -> None:
        self.books: dict[str, OrderBook] = {}
        for symbol in symbols:
            self.book(symbol)

    def book(self, symbol: str) -> OrderBook:
        key = symbol.upper()
        book = self.books.get(key)
        if book is None:
            book = self.books[key] = OrderBook(key)
        return book

    def apply(self, update: DepthUpdate) -> tuple[OrderBook, int]:
        """Apply a message to its symbol's book. Returns (book, rejected count)."""
        book = self.book(update.symbol)
        rejected = book.apply_message(update)
        return book, len(rejected)

    def __len__(self) -> int:
        return len(self.books)


class BinanceClient:
    """
    Async Binance depth client.

    Usage:
        client = BinanceClient(["BTCUSDT"], DepthPricer(Decimal("1")))
        await client.run()
        # quotes arrive on client.quote_queue
    """

    def __init__(
        self,
        symbols: Iterable[str],
        pricer: Optional[DepthPricer] = None,
        stream_url: str = WS_BASE,
        quote_queue_size: int = 100,
    ) -> None:
        self.symbols = [s.upper() for s in symbols]
        if not self.symbols:
            raise ValueError("at least one symbol is required")
        self.stream_url = stream_url.rstrip('/')
        self.pricer = pricer if pricer is not None else DepthPricer()
        self.router = BookRouter(self.symbols)

        self._running = False
        self.message_count: int = 0
        self.malformed_count: int = 0

        # Output queue for UI - thread-safe queue for cross-thread access
        self.quote_queue: queue.Queue[DepthQuote] = queue.Queue(maxsize=quote_queue_size)

    def build_ws_url(self) -> str:
        """Combined stream URL for every tracked symbol."""
        streams = "/".join(f"{s.lower()}@depth" for s in self.symbols)
        return f"{self.stream_url}/stream?streams={streams}"

    def handle_ws_message(self, raw: bytes | str) -> Optional[DepthQuote]:
        """
        Decode, apply and price one WebSocket message.

        HOT PATH - called for every message.

        Returns the quote pushed to the queue, or None if the message was skipped.
        """
        try:
            update = decode_depth_message(raw)
        except MalformedMessage as e:
            self.malformed_count += 1
            logger.warning("Skipping malformed message: %s", e)
            return None

        book, rejected = self.router.apply(update)
        self.message_count += 1

        quote = self.pricer.quote(book, update, rejected)
        logger.debug("%s U=%d u=%d bids=%d asks=%d rejected=%d",
                     update.symbol, update.first_update_id, update.final_update_id,
                     len(book.bids), len(book.asks), rejected)
        self._push_quote(quote)
        return quote

    def _push_quote(self, quote: DepthQuote) -> None:
        """Non-blocking put; drops the oldest quote when the queue is full."""
        try:
            self.quote_queue.put_nowait(quote)
        except queue.Full:
            try:
                self.quote_queue.get_nowait()
            except queue.Empty:
                pass
            self.quote_queue.put_nowait(quote)

    async def run(self) -> None:
        """
        Main run loop. Connects and processes messages until stopped or the
        connection closes.
        """
        self._running = True
        ws_url = self.build_ws_url()

        async with aiohttp.ClientSession() as session:
            logger.info("Connecting to %s", ws_url)
            async with session.ws_connect(ws_url) as ws:
                logger.info("Connected, tracking %s", ", ".join(self.symbols))

                async for msg in ws:
                    if not self._running:
                        break

                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self.handle_ws_message(msg.data)
                    elif msg.type == aiohttp.WSMsgType.BINARY:
                        logger.debug("Ignoring %d bytes of binary data", len(msg.data))
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        logger.error("WebSocket error: %s", ws.exception())
                        break

        logger.info("Feed closed after %d messages (%d malformed)",
                    self.message_count, self.malformed_count)

    def stop(self) -> None:
        """Signal the client to stop."""
        self._running = False
