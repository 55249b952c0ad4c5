"""
Quote display: Textual TUI or plain console lines.

Displays per symbol:
- Bid / ask depth-weighted price (n/a when the side cannot fill the depth)
- Spread at that depth
- Entries rejected in the last message

Notes:
- Values are only rounded here; the book and pricer stay exact
- The UI polls the thread-safe quote queue and keeps the latest quote per symbol
"""

from __future__ import annotations

import asyncio
import queue
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Iterable, Optional

from rich.console import Console, RenderableType
from rich.table import Table
from rich.text import Text

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Static

if TYPE_CHECKING:
    from ..types import DepthQuote

# Color scheme (dark theme)
BID_COLOR = "#22c55e"      # Green
ASK_COLOR = "#ef4444"      # Red
SPREAD_COLOR = "yellow"
HEADER_COLOR = "#94a3b8"
MISSING = "n/a"


def format_price(value: Optional[Decimal], precision: int = 2) -> str:
    """Round a price for display. None renders as 'n/a'."""
    if value is None:
        return MISSING
    exponent = Decimal(1).scaleb(-precision)
    try:
        return f"{value.quantize(exponent, rounding=ROUND_HALF_EVEN):f}"
    except InvalidOperation:
        # Too many digits to round at this precision; show it unrounded
        return f"{value:f}"


def format_quote(quote: DepthQuote, precision: int = 2) -> str:
    """One-line summary of a quote."""
    return (
        f"{quote.symbol} Best Bid: {format_price(quote.bid_price, precision)}, "
        f"Best Ask: {format_price(quote.ask_price, precision)}, "
        f"Spread: {format_price(quote.spread, precision)}"
    )


def build_quote_table(quotes: Iterable[DepthQuote], precision: int = 2) -> Table:
    """Rich table with one row per symbol, sorted by symbol."""
    table = Table(
        show_header=True,
        header_style=HEADER_COLOR,
        box=None,
        padding=(0, 2),
    )

    table.add_column("Symbol", justify="left")
    table.add_column("Depth", justify="right")
    table.add_column("Bid WAP", justify="right")
    table.add_column("Ask WAP", justify="right")
    table.add_column("Spread", justify="right")
    table.add_column("Rejected", justify="right")

    for quote in sorted(quotes, key=lambda q: q.symbol):
        table.add_row(
            Text(quote.symbol, style="bold"),
            Text(f"{quote.depth:f}"),
            Text(format_price(quote.bid_price, precision), style=BID_COLOR),
            Text(format_price(quote.ask_price, precision), style=ASK_COLOR),
            Text(format_price(quote.spread, precision), style=SPREAD_COLOR),
            Text(str(quote.rejected) if quote.rejected else "", style="dim"),
        )

    return table


def drain_latest(quote_queue: queue.Queue, latest: dict[str, DepthQuote]) -> int:
    """
    Move everything queued into `latest`, keyed by symbol.

    Returns the number of quotes drained.
    """
    drained = 0
    while True:
        try:
            quote = quote_queue.get_nowait()
        except queue.Empty:
            break
        latest[quote.symbol] = quote
        drained += 1
    return drained


class QuoteTable(Static):
    """Per-symbol quote table widget."""

    def __init__(self, precision: int = 2) -> None:
        super().__init__()
        self.precision = precision
        self._quotes: dict[str, DepthQuote] = {}

    def update_quotes(self, quotes: dict[str, DepthQuote]) -> None:
        self._quotes = dict(quotes)
        self.refresh()

    def render(self) -> RenderableType:
        if not self._quotes:
            return Text("Waiting for data...", style="dim")
        return build_quote_table(self._quotes.values(), self.precision)


class QuoteApp(App):
    """Live depth-weighted quotes."""

    CSS = """
    Screen {
        background: #0f172a;
    }

    #main-container {
        width: 100%;
        height: 100%;
        padding: 1 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, quote_queue: queue.Queue, precision: int = 2) -> None:
        super().__init__()
        self.quote_queue = quote_queue
        self.precision = precision
        self._latest: dict[str, DepthQuote] = {}
        self._table: QuoteTable | None = None

    def compose(self) -> ComposeResult:
        self._table = QuoteTable(self.precision)
        yield Container(self._table, id="main-container")
        yield Footer()

    def on_mount(self) -> None:
        """Poll the quote queue at ~10 FPS."""
        self.set_interval(0.1, self._poll_quotes)

    def _poll_quotes(self) -> None:
        if drain_latest(self.quote_queue, self._latest) and self._table:
            self._table.update_quotes(self._latest)


async def run_ui(quote_queue: queue.Queue, precision: int = 2) -> None:
    """Run the TUI application."""
    app = QuoteApp(quote_queue, precision)
    await app.run_async()


def print_pending(quote_queue: queue.Queue, console: Console, precision: int = 2) -> int:
    """Print every queued quote as one line. Returns how many were printed."""
    printed = 0
    while True:
        try:
            quote = quote_queue.get_nowait()
        except queue.Empty:
            return printed
        console.print(format_quote(quote, precision))
        printed += 1


async def run_console(
    quote_queue: queue.Queue,
    precision: int = 2,
    console: Console | None = None,
    poll_interval: float = 0.05,
) -> None:
    """Print quotes as they arrive until cancelled."""
    console = console or Console(highlight=False)
    while True:
        if not print_pending(quote_queue, console, precision):
            await asyncio.sleep(poll_interval)
