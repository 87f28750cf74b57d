"""Lot conversion engine.

Markets quantize price and size into integer lots. Human values are

    price = price_lots * quote_lot_size * 10**base_decimals
            / (base_lot_size * 10**quote_decimals)
    size  = size_lots * base_lot_size / 10**base_decimals

Numerators and denominators routinely exceed 53 bits, so every lots -> number
conversion goes through ``divide_to_number`` instead of converting each
operand to float first. number -> lots conversions use the exact rational
value of the float and round to the nearest lot.
"""

from __future__ import annotations

import math
from decimal import Decimal, localcontext
from fractions import Fraction

from slab_book.core.market.market_config import MarketConfig

MANTISSA_BITS: int = 53

_DECIMAL_PRECISION: int = 60


def _fits(value: int) -> bool:
    return value.bit_length() <= MANTISSA_BITS


def divide_to_number(numerator: int, denominator: int) -> float:
    """Return numerator / denominator as a float.

    1. both operands fit in 53 bits: divide directly
    2. otherwise reduce by the gcd and retry
    3. otherwise shift both down to 53 bits and scale the quotient back by
       the power of two that was shifted out
    4. if the scaled quotient leaves float range, divide decimal strings
    """
    if denominator == 0:
        raise ZeroDivisionError("divide_to_number: zero denominator")
    if numerator < 0 or denominator < 0:
        raise ValueError(
            f"divide_to_number: negative operand ({numerator}/{denominator})"
        )

    if _fits(numerator) and _fits(denominator):
        return numerator / denominator

    gcd = math.gcd(numerator, denominator)
    n = numerator // gcd
    d = denominator // gcd
    if _fits(n) and _fits(d):
        return n / d

    n_shift = max(n.bit_length() - MANTISSA_BITS, 0)
    d_shift = max(d.bit_length() - MANTISSA_BITS, 0)
    n >>= n_shift
    d >>= d_shift
    try:
        return math.ldexp(n / d, n_shift - d_shift)
    except OverflowError:
        return _divide_decimal(numerator, denominator)


def _divide_decimal(numerator: int, denominator: int) -> float:
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return float(Decimal(str(numerator)) / Decimal(str(denominator)))


def _exact(value: float, what: str) -> Fraction:
    if not math.isfinite(value):
        raise ValueError(f"{what} must be finite, got {value!r}")
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value!r}")
    return Fraction(value)


def _check_lots(value: int, what: str) -> None:
    if value < 0:
        raise ValueError(f"{what} must be non-negative, got {value}")


class LotConverter:
    """Lot <-> number conversions for one market."""

    __slots__ = ("market", "_base_multiplier", "_quote_multiplier")

    def __init__(self, market: MarketConfig) -> None:
        self.market = market
        self._base_multiplier = market.base_multiplier
        self._quote_multiplier = market.quote_multiplier

    @property
    def base_multiplier(self) -> int:
        return self._base_multiplier

    @property
    def quote_multiplier(self) -> int:
        return self._quote_multiplier

    # ------------------------------------------------------------------
    # Price
    # ------------------------------------------------------------------

    def price_lots_to_number(self, price_lots: int) -> float:
        _check_lots(price_lots, "price_lots")
        return divide_to_number(
            price_lots * self.market.quote_lot_size * self._base_multiplier,
            self.market.base_lot_size * self._quote_multiplier,
        )

    def price_number_to_lots(self, price: float) -> int:
        exact = _exact(price, "price")
        return round(
            exact
            * self._quote_multiplier
            * self.market.base_lot_size
            / (self._base_multiplier * self.market.quote_lot_size)
        )

    # ------------------------------------------------------------------
    # Base size
    # ------------------------------------------------------------------

    def base_size_lots_to_number(self, size_lots: int) -> float:
        _check_lots(size_lots, "size_lots")
        return divide_to_number(
            size_lots * self.market.base_lot_size, self._base_multiplier
        )

    def base_size_number_to_lots(self, size: float) -> int:
        exact = _exact(size, "size")
        return round(exact * self._base_multiplier / self.market.base_lot_size)

    # ------------------------------------------------------------------
    # Quote size
    # ------------------------------------------------------------------

    def quote_size_lots_to_number(self, size_lots: int) -> float:
        _check_lots(size_lots, "size_lots")
        return divide_to_number(
            size_lots * self.market.quote_lot_size, self._quote_multiplier
        )

    def quote_size_number_to_lots(self, size: float) -> int:
        exact = _exact(size, "size")
        return round(exact * self._quote_multiplier / self.market.quote_lot_size)

    # ------------------------------------------------------------------
    # Native token amounts
    # ------------------------------------------------------------------

    def base_spl_size_to_number(self, native: int) -> float:
        _check_lots(native, "native base amount")
        return divide_to_number(native, self._base_multiplier)

    def quote_spl_size_to_number(self, native: int) -> float:
        _check_lots(native, "native quote amount")
        return divide_to_number(native, self._quote_multiplier)

    def base_size_number_to_spl_size(self, size: float) -> int:
        return round(_exact(size, "size") * self._base_multiplier)

    def quote_size_number_to_spl_size(self, size: float) -> int:
        return round(_exact(size, "size") * self._quote_multiplier)

    # ------------------------------------------------------------------
    # Market increments
    # ------------------------------------------------------------------

    @property
    def min_order_size(self) -> float:
        return self.base_size_lots_to_number(1)

    @property
    def tick_size(self) -> float:
        return self.price_lots_to_number(1)
