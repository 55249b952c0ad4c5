"""Exceptions raised by the order book and the feed decoder."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Side


class InvalidUpdate(ValueError):
    """A single book update entry was rejected. The book is left unchanged."""

    def __init__(self, side: Side | str, price: object, quantity: object, reason: str) -> None:
        self.side = side
        self.price = price
        self.quantity = quantity
        self.reason = reason
        label = getattr(side, "value", side)
        super().__init__(f"rejected {label} update price={price!r} qty={quantity!r}: {reason}")


class MalformedMessage(ValueError):
    """Raw feed message could not be decoded into a DepthUpdate."""
