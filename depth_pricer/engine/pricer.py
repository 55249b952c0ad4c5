"""
Depth-weighted pricing over a local order book.

weighted_average_price() sweeps one side from the best level outward until
`depth` units are filled. It is the price an aggressor would get for an order
of that size, so it degrades to the best price for tiny depths and reflects
market impact as depth spans more levels.

Both sides share one routine; the book already iterates each side best first.
All arithmetic is Decimal. Rounding is left to the display layer.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..datafeed.orderbook import OrderBook
from ..types import DepthQuote, DepthUpdate, Side

ZERO = Decimal(0)
DEFAULT_DEPTH = Decimal(1)


def weighted_average_price(
    book: OrderBook,
    side: Side,
    depth: Decimal,
    allow_partial: bool = False,
) -> Optional[Decimal]:
    """
    Volume-weighted average price for filling `depth` units from `side`.

    Returns None when depth <= 0, when the side is empty, or when the side
    holds less than `depth` in total. With allow_partial=True the last case
    returns the average over all resting liquidity instead.
    """
    if depth <= 0:
        return None

    consumed = ZERO
    weighted_sum = ZERO

    for level in book.iter_levels(side):
        if consumed + level.quantity < depth:
            weighted_sum += level.price * level.quantity
            consumed += level.quantity
        else:
            remaining = depth - consumed
            weighted_sum += level.price * remaining
            consumed += remaining
            break

    if consumed == 0:
        return None
    if consumed < depth and not allow_partial:
        return None
    return weighted_sum / consumed


def _difference(ask: Optional[Decimal], bid: Optional[Decimal], absent: Decimal) -> Decimal:
    return (absent if ask is None else ask) - (absent if bid is None else bid)


def spread(
    book: OrderBook,
    depth: Decimal,
    absent: Decimal = ZERO,
    allow_partial: bool = False,
) -> Decimal:
    """
    Ask weighted price minus bid weighted price.

    A side with no price at this depth counts as `absent` (zero by default), so
    an empty side shows up as a spread equal to the other side's price. Use
    DepthPricer.quote() to see which side was missing.
    """
    ask = weighted_average_price(book, Side.ASK, depth, allow_partial)
    bid = weighted_average_price(book, Side.BID, depth, allow_partial)
    return _difference(ask, bid, absent)


class DepthPricer:
    """
    Prices order books at a fixed, caller-chosen depth.

    Usage:
        pricer = DepthPricer(depth=Decimal("0.5"))
        quote = pricer.quote(book)
    """

    __slots__ = ('depth', 'allow_partial', 'absent')

    def __init__(
        self,
        depth: Decimal = DEFAULT_DEPTH,
        allow_partial: bool = False,
        absent: Decimal = ZERO,
    ) -> None:
        self.depth = Decimal(depth)
        self.allow_partial = allow_partial
        self.absent = Decimal(absent)

    def weighted_average_price(
        self, book: OrderBook, side: Side, depth: Optional[Decimal] = None
    ) -> Optional[Decimal]:
        return weighted_average_price(
            book, side, self.depth if depth is None else depth, self.allow_partial
        )

    def spread(self, book: OrderBook, depth: Optional[Decimal] = None) -> Decimal:
        return spread(
            book, self.depth if depth is None else depth, self.absent, self.allow_partial
        )

    def quote(
        self,
        book: OrderBook,
        update: Optional[DepthUpdate] = None,
        rejected: int = 0,
    ) -> DepthQuote:
        """
        Price both sides and the spread for the current state of `book`.

        `update` is the message that was just applied, used for its event time.
        """
        bid = self.weighted_average_price(book, Side.BID)
        ask = self.weighted_average_price(book, Side.ASK)
        return DepthQuote(
            symbol=book.symbol,
            depth=self.depth,
            bid_price=bid,
            ask_price=ask,
            spread=_difference(ask, bid, self.absent),
            event_time_ms=update.event_time_ms if update is not None else 0,
            rejected=rejected,
        )
