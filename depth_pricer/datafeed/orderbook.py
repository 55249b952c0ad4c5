"""
Local order book maintained from incremental depth updates.

HOT PATH: apply_update() is called for every price entry of every depth message.

Design:
1. One SortedDict per side, keyed by price: O(log n) upsert/delete
2. Bids are keyed through negation so both sides iterate best price first
3. The book lives for the whole session; each message is a diff, never a snapshot
4. Decimal only - feed strings are parsed exactly, no binary floats
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterator, Optional

from sortedcontainers import SortedDict

from ..errors import InvalidUpdate
from ..types import DepthUpdate, PriceLevel, Side

logger = logging.getLogger(__name__)

ZERO = Decimal(0)

# Feed values must fit the default Decimal context exactly, with headroom so
# price * quantity sums in the pricer cannot overflow.
MAX_DIGITS = 28
MAX_EXPONENT = 40


def _neg(price: Decimal) -> Decimal:
    return price.copy_negate()


def to_decimal(value: object) -> Decimal:
    """
    Parse a feed value into a finite Decimal.

    Raises ValueError for anything that is not a finite decimal number, or
    that needs more precision or range than the book supports.
    """
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, float):
        value = str(value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a decimal number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    if result:
        significant = "".join(map(str, result.as_tuple().digits)).rstrip("0")
        if len(significant) > MAX_DIGITS:
            raise ValueError(f"more than {MAX_DIGITS} significant digits: {value!r}")
        if abs(result.adjusted()) > MAX_EXPONENT:
            raise ValueError(f"magnitude out of range: {value!r}")
    return result


class OrderBook:
    """
    Local order book for one instrument.

    Thread-safety: NOT thread-safe. One writer (the feed loop); reads happen
    on the same thread right after each message is applied.
    """

    __slots__ = ('symbol', 'bids', 'asks')

    def __init__(self, symbol: str = "") -> None:
        self.symbol = symbol

        # price -> quantity, best price first on both sides
        self.bids: SortedDict = SortedDict(_neg)
        self.asks: SortedDict = SortedDict()

    def _side(self, side: Side) -> SortedDict:
        if side is Side.BID:
            return self.bids
        if side is Side.ASK:
            return self.asks
        raise KeyError(side)

    def apply_update(self, side: Side, price: object, quantity: object) -> None:
        """
        Upsert or delete one price level.

        HOT PATH.

        quantity == 0 removes the level (a missing level is fine), quantity > 0
        inserts it or replaces the existing quantity.

        Raises InvalidUpdate without touching the book if the entry is bad.
        """
        if not isinstance(side, Side):
            raise InvalidUpdate(side, price, quantity, "unknown side")
        try:
            px = to_decimal(price)
            qty = to_decimal(quantity)
        except ValueError as e:
            raise InvalidUpdate(side, price, quantity, str(e)) from None

        if px <= 0:
            raise InvalidUpdate(side, price, quantity, "price must be positive")
        if qty < 0:
            raise InvalidUpdate(side, price, quantity, "quantity must not be negative")

        levels = self._side(side)
        if qty == 0:
            levels.pop(px, None)
        else:
            levels[px] = qty

    def apply_message(self, update: DepthUpdate) -> list[InvalidUpdate]:
        """
        Apply every bid and ask entry of a decoded depth message.

        Bad entries are logged and skipped; the rest of the batch still applies.
        Returns the rejected entries.
        """
        rejected: list[InvalidUpdate] = []

        for side, entries in ((Side.BID, update.bid_updates), (Side.ASK, update.ask_updates)):
            for entry in entries:
                try:
                    price, qty = entry
                except (TypeError, ValueError):
                    err = InvalidUpdate(side, entry, None, "expected a (price, quantity) pair")
                    logger.warning("%s: %s", self.symbol, err)
                    rejected.append(err)
                    continue
                try:
                    self.apply_update(side, price, qty)
                except InvalidUpdate as err:
                    logger.warning("%s: %s", self.symbol, err)
                    rejected.append(err)

        return rejected

    def iter_levels(self, side: Side) -> Iterator[PriceLevel]:
        """Yield levels from best price outward."""
        for price, qty in self._side(side).items():
            yield PriceLevel(price, qty)

    def levels(self, side: Side, limit: Optional[int] = None) -> list[PriceLevel]:
        """Levels from best price outward, at most `limit` of them."""
        items = self._side(side).items()
        if limit is not None:
            items = items[:limit]
        return [PriceLevel(price, qty) for price, qty in items]

    def best(self, side: Side) -> Optional[PriceLevel]:
        """Best level on a side, or None if the side is empty."""
        levels = self._side(side)
        if not levels:
            return None
        price, qty = levels.peekitem(0)
        return PriceLevel(price, qty)

    @property
    def best_bid(self) -> Optional[Decimal]:
        """Highest bid price. None if no bids."""
        return self.bids.peekitem(0)[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[Decimal]:
        """Lowest ask price. None if no asks."""
        return self.asks.peekitem(0)[0] if self.asks else None

    def total_quantity(self, side: Side) -> Decimal:
        return sum(self._side(side).values(), ZERO)

    def clear(self) -> None:
        self.bids.clear()
        self.asks.clear()

    def __len__(self) -> int:
        return len(self.bids) + len(self.asks)

    def __repr__(self) -> str:
        return (f"OrderBook({self.symbol!r}, bids={len(self.bids)}, asks={len(self.asks)}, "
                f"best_bid={self.best_bid}, best_ask={self.best_ask})")
