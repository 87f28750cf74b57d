"""128-bit order keys.

Every leaf is keyed by ``price << 64 | sequence_bits``. The limit price in
price lots always occupies the upper 64 bits, so the price can be read back
without knowing the side.

- sell (asks): sequence_bits = sequence. Ascending key order is ascending
  price, then earliest submission first.
- buy (bids): sequence_bits = ~sequence (64-bit complement). Descending key
  order is descending price, then earliest submission first.

Best-first traversal is therefore ascending for asks and descending for bids
(see ``priority_descending``).
"""

from __future__ import annotations

from slab_book.core.codec.layout import U64_MASK, U128_MASK
from slab_book.core.domain.types import Side


def _check_u64(name: str, value: int) -> None:
    if value < 0 or value > U64_MASK:
        raise ValueError(f"{name} out of u64 range: {value}")


def priority_descending(side: Side) -> bool:
    """Return True if best-first order for ``side`` is descending key order."""
    if side == "buy":
        return True
    if side == "sell":
        return False
    raise ValueError(f"Unknown side: {side!r}")


def encode_order_key(side: Side, price: int, sequence: int) -> int:
    """Build the order key for a resting order."""
    _check_u64("price", price)
    _check_u64("sequence", sequence)
    low = (~sequence & U64_MASK) if priority_descending(side) else sequence
    return (price << 64) | low


def decode_order_key(side: Side, key: int) -> tuple[int, int]:
    """Recover (price, sequence) from an order key."""
    if key < 0 or key > U128_MASK:
        raise ValueError(f"key out of u128 range: {key}")
    low = key & U64_MASK
    sequence = (~low & U64_MASK) if priority_descending(side) else low
    return key >> 64, sequence


def price_from_key(key: int) -> int:
    """Price in price lots carried by an order key."""
    return key >> 64
