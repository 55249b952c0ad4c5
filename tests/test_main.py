"""Tests for CLI argument parsing."""

from decimal import Decimal

import pytest

from depth_pricer.main import build_parser


def test_defaults():
    args = build_parser().parse_args([])
    assert args.symbols == ["BTCUSDT"]
    assert args.depth == Decimal("1")
    assert args.allow_partial is False
    assert args.precision == 2
    assert args.plain is False
    assert args.log_level == "INFO"


def test_depth_and_symbols():
    args = build_parser().parse_args(["btcusdt", "ETHUSDT", "--depth", "0.25", "--allow-partial", "--plain"])
    assert args.symbols == ["btcusdt", "ETHUSDT"]
    assert args.depth == Decimal("0.25")
    assert args.allow_partial is True
    assert args.plain is True


@pytest.mark.parametrize("depth", ["0", "-1", "abc", "NaN"])
def test_bad_depth_rejected(depth):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--depth", depth])


def test_precision_accepts_zero():
    assert build_parser().parse_args(["--precision", "0"]).precision == 0


@pytest.mark.parametrize("precision", ["-1", "two", "1.5"])
def test_bad_precision_rejected(precision):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--precision", precision])
