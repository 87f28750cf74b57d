"""Byte-exact account builders for the test suite.

The builders produce byte-exact slab, order-book and queue accounts so tests
can exercise the decoders on the same layout the on-chain program writes.
"""

# pylint: disable=missing-function-docstring
from __future__ import annotations

import struct
from dataclasses import dataclass

from slab_book.core.codec.layout import pack_u128
from slab_book.core.codec.price_key import encode_order_key

NODE_LEN = 72
EVENT_LEN = 88
REQUEST_LEN = 80

OWNER_A = bytes(range(32))
OWNER_B = bytes(range(100, 132))


# ---------------------------------------------------------------------------
# Slab builder
# ---------------------------------------------------------------------------


@dataclass
class LeafSpec:
    key: int
    quantity: int
    client_order_id: int = 0
    owner: bytes = OWNER_A
    owner_slot: int = 0
    fee_tier: int = 0


def _pad(record: bytes) -> bytes:
    assert len(record) <= NODE_LEN
    return record + b"\x00" * (NODE_LEN - len(record))


def inner_record(prefix_len: int, key: int, children: tuple[int, int]) -> bytes:
    return _pad(struct.pack("<II", 1, prefix_len) + pack_u128(key) + struct.pack("<II", *children))


def leaf_record(leaf: LeafSpec) -> bytes:
    return (
        struct.pack("<IBB2x", 2, leaf.owner_slot, leaf.fee_tier)
        + pack_u128(leaf.key)
        + leaf.owner
        + struct.pack("<QQ", leaf.quantity, leaf.client_order_id)
    )


def free_record(next_index: int) -> bytes:
    return _pad(struct.pack("<II", 3, next_index))


def last_free_record() -> bytes:
    return _pad(struct.pack("<I", 4))


def slab_header(
    *,
    bump_index: int,
    free_list_len: int = 0,
    free_list_head: int = 0,
    root_index: int = 0,
    leaf_count: int = 0,
) -> bytes:
    return struct.pack(
        "<I4xI4xIII4x", bump_index, free_list_len, free_list_head, root_index, leaf_count
    )


def _build_tree(leaves: list[LeafSpec], records: list[bytes]) -> int:
    """Append critbit nodes for ``leaves`` (sorted by key) and return the subtree root."""
    if len(leaves) == 1:
        records.append(leaf_record(leaves[0]))
        return len(records) - 1

    lo, hi = leaves[0].key, leaves[-1].key
    crit_bit = (lo ^ hi).bit_length() - 1
    prefix_len = 127 - crit_bit
    zeros = [leaf for leaf in leaves if not (leaf.key >> crit_bit) & 1]
    ones = [leaf for leaf in leaves if (leaf.key >> crit_bit) & 1]

    index = len(records)
    records.append(b"")  # reserved, filled once children are known
    left = _build_tree(zeros, records)
    right = _build_tree(ones, records)
    records[index] = inner_record(prefix_len, lo, (left, right))
    return index


def build_slab(
    leaves: list[LeafSpec],
    *,
    free_slots: int = 0,
    extra_slots: int = 0,
) -> bytes:
    """Build a slab holding ``leaves``.

    ``free_slots`` recycled slots are chained into the free list after the
    tree; ``extra_slots`` uninitialized records follow the bump index.
    """
    records: list[bytes] = []
    keys = [leaf.key for leaf in leaves]
    assert len(set(keys)) == len(keys), "duplicate keys"

    root = _build_tree(sorted(leaves, key=lambda leaf: leaf.key), records) if leaves else 0

    free_head = len(records)
    for i in range(free_slots):
        if i == free_slots - 1:
            records.append(last_free_record())
        else:
            records.append(free_record(len(records) + 1))

    bump = len(records)
    records.extend(b"\x00" * NODE_LEN for _ in range(extra_slots))

    header = slab_header(
        bump_index=bump,
        free_list_len=free_slots,
        free_list_head=free_head if free_slots else 0,
        root_index=root,
        leaf_count=len(leaves),
    )
    return header + b"".join(records)


def orderbook_account(slab: bytes, *, bids: bool, slop: int = 0, flags: int | None = None) -> bytes:
    if flags is None:
        flags = 0x01 | (0x20 if bids else 0x40)
    return b"serum" + struct.pack("<Q", flags) + slab + b"\x00" * slop + b"padding"


def ask(price: int, seq: int, qty: int, **kwargs) -> LeafSpec:
    return LeafSpec(key=encode_order_key("sell", price, seq), quantity=qty, client_order_id=seq, **kwargs)


def bid(price: int, seq: int, qty: int, **kwargs) -> LeafSpec:
    return LeafSpec(key=encode_order_key("buy", price, seq), quantity=qty, client_order_id=seq, **kwargs)


# ---------------------------------------------------------------------------
# Queue builders
# ---------------------------------------------------------------------------


def event_record(
    *,
    flags: int,
    released: int,
    paid: int,
    fee: int,
    order_id: int = 1,
    owner: bytes = OWNER_A,
    client_order_id: int = 0,
    slot: int = 0,
    fee_tier: int = 0,
) -> bytes:
    return (
        struct.pack("<BBB5xQQQ", flags, slot, fee_tier, released, paid, fee)
        + pack_u128(order_id)
        + owner
        + struct.pack("<Q", client_order_id)
    )


def request_record(
    *,
    flags: int,
    max_base: int,
    quote_locked: int,
    order_id: int = 1,
    owner: bytes = OWNER_A,
    client_order_id: int = 0,
) -> bytes:
    return (
        struct.pack("<BBB5xQQ", flags, 0, 0, max_base, quote_locked)
        + pack_u128(order_id)
        + owner
        + struct.pack("<Q", client_order_id)
    )


def queue_account(
    ring: list[bytes],
    *,
    head: int,
    count: int,
    seq_num: int,
    flags: int,
    stride: int,
) -> bytes:
    for record in ring:
        assert len(record) == stride
    header = b"serum" + struct.pack("<Q", flags) + struct.pack("<I4xI4xI4x", head, count, seq_num)
    return header + b"".join(ring) + b"padding"


EVENT_QUEUE_FLAGS = 0x01 | 0x10
REQUEST_QUEUE_FLAGS = 0x01 | 0x08




# ---------------------------------------------------------------------------
# Open-orders builder
# ---------------------------------------------------------------------------

OPEN_ORDERS_FLAGS = 0x01 | 0x04


def open_orders_account(
    *,
    live: dict[int, tuple[int, int, bool]],
    market: bytes = OWNER_B,
    owner: bytes = OWNER_A,
    balances: tuple[int, int, int, int] = (0, 0, 0, 0),
    referrer_rebates: int | None = None,
    flags: int = OPEN_ORDERS_FLAGS,
) -> bytes:
    """Build an open-orders account; ``live`` maps slot -> (order_id, client_id, is_bid)."""
    free_bits = (1 << 128) - 1
    bid_bits = 0
    orders = [0] * 128
    client_ids = [0] * 128
    for slot, (order_id, client_id, is_bid) in live.items():
        free_bits &= ~(1 << slot)
        if is_bid:
            bid_bits |= 1 << slot
        orders[slot] = order_id
        client_ids[slot] = client_id

    body = (
        market
        + owner
        + struct.pack("<QQQQ", *balances)
        + pack_u128(free_bits)
        + pack_u128(bid_bits)
        + b"".join(pack_u128(order_id) for order_id in orders)
        + struct.pack("<128Q", *client_ids)
    )
    if referrer_rebates is not None:
        body += struct.pack("<Q", referrer_rebates)
    return b"serum" + struct.pack("<Q", flags) + body + b"padding"
