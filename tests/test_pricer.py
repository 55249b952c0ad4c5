"""Tests for depth-weighted pricing and spread."""

from decimal import Decimal

import pytest

from depth_pricer.datafeed.orderbook import OrderBook
from depth_pricer.engine.pricer import DepthPricer, spread, weighted_average_price
from depth_pricer.types import DepthUpdate, Side


def _bid_book():
    book = OrderBook("BTCUSDT")
    book.apply_update(Side.BID, "100", "2")
    book.apply_update(Side.BID, "99", "5")
    return book


class TestWeightedAveragePrice:
    def test_depth_spans_two_levels(self):
        # (100*2 + 99*2) / 4
        assert weighted_average_price(_bid_book(), Side.BID, Decimal("4")) == Decimal("99.5")

    def test_depth_within_best_level_is_best_price(self):
        assert weighted_average_price(_bid_book(), Side.BID, Decimal("1.5")) == Decimal("100")

    def test_depth_equal_to_first_level(self):
        assert weighted_average_price(_bid_book(), Side.BID, Decimal("2")) == Decimal("100")

    def test_depth_equal_to_total_quantity(self):
        # (200 + 495) / 7
        expected = Decimal("695") / Decimal("7")
        assert weighted_average_price(_bid_book(), Side.BID, Decimal("7")) == expected

    def test_insufficient_depth_is_absent(self):
        assert weighted_average_price(_bid_book(), Side.BID, Decimal("10")) is None

    def test_insufficient_depth_with_partial_allowed(self):
        result = weighted_average_price(_bid_book(), Side.BID, Decimal("10"), allow_partial=True)
        assert result == Decimal("695") / Decimal("7")

    @pytest.mark.parametrize("depth", [Decimal("0"), Decimal("-1")])
    def test_non_positive_depth_is_absent(self, depth):
        assert weighted_average_price(_bid_book(), Side.BID, depth) is None
        assert weighted_average_price(_bid_book(), Side.BID, depth, allow_partial=True) is None

    def test_empty_side_is_absent(self):
        assert weighted_average_price(_bid_book(), Side.ASK, Decimal("1")) is None
        assert weighted_average_price(OrderBook(), Side.BID, Decimal("1"), allow_partial=True) is None

    def test_asks_sweep_upward(self, ladder_book):
        # 3 @ 101 + 1 @ 102
        assert weighted_average_price(ladder_book, Side.ASK, Decimal("4")) == Decimal("101.25")

    def test_exact_decimal_arithmetic(self):
        book = OrderBook()
        for _ in range(3):
            book.apply_update(Side.ASK, "0.1", "0.1")
        book.apply_update(Side.ASK, "0.2", "0.2")
        # 0.1*0.1 + 0.2*0.2 = 0.05 over 0.3
        result = weighted_average_price(book, Side.ASK, Decimal("0.3"))
        assert result == Decimal("0.05") / Decimal("0.3")

    def test_does_not_mutate_book(self, ladder_book):
        before = ladder_book.levels(Side.BID)
        weighted_average_price(ladder_book, Side.BID, Decimal("5"))
        assert ladder_book.levels(Side.BID) == before


class TestSpread:
    def test_end_to_end_scenario(self):
        book = OrderBook("BTCUSDT")
        book.apply_message(DepthUpdate(
            "BTCUSDT",
            bid_updates=[(100, "2"), (99, "5")],
            ask_updates=[(101, "3"), (102, "4")],
        ))
        depth = Decimal("2")
        assert weighted_average_price(book, Side.BID, depth) == Decimal("100")
        assert weighted_average_price(book, Side.ASK, depth) == Decimal("101")
        assert spread(book, depth) == Decimal("1")

    def test_missing_bid_side_counts_as_zero(self):
        book = OrderBook()
        book.apply_update(Side.ASK, "101", "3")
        assert spread(book, Decimal("1")) == Decimal("101")

    def test_missing_ask_side_counts_as_zero(self):
        assert spread(_bid_book(), Decimal("1")) == Decimal("-100")

    def test_empty_book_spread_is_zero(self):
        assert spread(OrderBook(), Decimal("1")) == Decimal("0")

    def test_custom_absent_value(self):
        book = OrderBook()
        book.apply_update(Side.ASK, "101", "3")
        assert spread(book, Decimal("1"), absent=Decimal("101")) == Decimal("0")


class TestDepthPricer:
    def test_default_depth_is_one_unit(self):
        assert DepthPricer().depth == Decimal("1")

    def test_quote(self, ladder_book):
        update = DepthUpdate("BTCUSDT", [], [], event_time_ms=1700000000000)
        quote = DepthPricer(depth=Decimal("4")).quote(ladder_book, update, rejected=2)
        assert quote.symbol == "BTCUSDT"
        assert quote.depth == Decimal("4")
        assert quote.bid_price == Decimal("99.5")
        assert quote.ask_price == Decimal("101.25")
        assert quote.spread == Decimal("1.75")
        assert quote.event_time_ms == 1700000000000
        assert quote.rejected == 2

    def test_quote_keeps_absence(self, ladder_book):
        quote = DepthPricer(depth=Decimal("10")).quote(ladder_book)
        assert quote.bid_price is None
        assert quote.ask_price is None
        assert quote.spread == Decimal("0")
        assert quote.event_time_ms == 0

    def test_partial_pricer(self, ladder_book):
        pricer = DepthPricer(depth=Decimal("10"), allow_partial=True)
        # asks: (303 + 408) / 7
        assert pricer.weighted_average_price(ladder_book, Side.ASK) == Decimal("711") / Decimal("7")

    def test_depth_override(self, ladder_book):
        pricer = DepthPricer(depth=Decimal("1"))
        assert pricer.weighted_average_price(ladder_book, Side.BID, Decimal("4")) == Decimal("99.5")
        assert pricer.spread(ladder_book) == Decimal("1")
        assert pricer.spread(ladder_book, Decimal("4")) == Decimal("1.75")

    def test_string_depth_is_accepted(self):
        assert DepthPricer(depth="0.5").depth == Decimal("0.5")
