import pytest

from depth_pricer.datafeed.orderbook import OrderBook
from depth_pricer.types import DepthUpdate


@pytest.fixture
def book():
    return OrderBook("BTCUSDT")


@pytest.fixture
def ladder_book():
    """Bids 100x2, 99x5; asks 101x3, 102x4."""
    b = OrderBook("BTCUSDT")
    b.apply_message(DepthUpdate(
        "BTCUSDT",
        bid_updates=[("100", "2"), ("99", "5")],
        ask_updates=[("101", "3"), ("102", "4")],
    ))
    return b
