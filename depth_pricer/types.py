"""
Data types for Depth Pricer.

Notes:
- NamedTuple for immutable, memory-efficient records
- Prices and quantities are Decimal everywhere; floats never enter the book
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Tuple


class Side(str, Enum):
    """Book side. Bids iterate descending, asks ascending."""
    BID = "bid"
    ASK = "ask"


class PriceLevel(NamedTuple):
    """Single resting price level on one side of the book."""
    price: Decimal
    quantity: Decimal


# Raw (price, quantity) pair as it arrives from the feed, usually strings
RawLevel = Tuple[object, object]


class DepthUpdate(NamedTuple):
    """
    One decoded depth message.

    Update IDs are kept for logging only; sequence validation is not done.
    """
    symbol: str
    bid_updates: Sequence[RawLevel]
    ask_updates: Sequence[RawLevel]
    event_time_ms: int = 0
    first_update_id: int = 0
    final_update_id: int = 0


class DepthQuote(NamedTuple):
    """
    Pricing result for one processed message.

    bid_price / ask_price are None when the side cannot fill `depth`.
    """
    symbol: str
    depth: Decimal
    bid_price: Optional[Decimal]
    ask_price: Optional[Decimal]
    spread: Decimal
    event_time_ms: int = 0
    rejected: int = 0
