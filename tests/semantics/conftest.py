"""Shared fixtures for the semantic test suite."""

# pylint: disable=missing-function-docstring
from __future__ import annotations

import pytest

from slab_book.core.market.market_config import MarketConfig


@pytest.fixture
def unit_market() -> MarketConfig:
    """Market where one lot is one unit of price and one unit of size."""
    return MarketConfig(base_lot_size=1, quote_lot_size=1, base_decimals=0, quote_decimals=0)


@pytest.fixture
def usdc_market() -> MarketConfig:
    return MarketConfig(
        name="SOL/USDC",
        base_lot_size=100_000_000,
        quote_lot_size=100,
        base_decimals=9,
        quote_decimals=6,
    )
