"""Open-orders account decoder.

Layout after the account envelope (little endian):

  [0000-0031] market                     [u8; 32]
  [0032-0063] owner                      [u8; 32]
  [0064-0071] base_token_free            u64
  [0072-0079] base_token_total           u64
  [0080-0087] quote_token_free           u64
  [0088-0095] quote_token_total          u64
  [0096-0111] free_slot_bits             u128
  [0112-0127] is_bid_bits                u128
  [0128-2175] orders                     [u128; 128]
  [2176-3199] client_ids                 [u64; 128]
  [3200-3207] referrer_rebates_accrued   u64 (v2 only)

A slot is live when its bit in ``free_slot_bits`` is clear. Leaves in the
order book slab reference their open-orders account by address and slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from slab_book.core.codec.layout import (
    AccountFlags,
    read_public_key,
    read_u64,
    read_u128,
    split_account,
)
from slab_book.core.domain.errors import FormatError

LOGGER = logging.getLogger(__name__)

OPEN_ORDERS_SLOTS: int = 128
OPEN_ORDERS_V1_LEN: int = 3200
OPEN_ORDERS_V2_LEN: int = 3208

_ORDERS_OFFSET = 128
_CLIENT_IDS_OFFSET = _ORDERS_OFFSET + 16 * OPEN_ORDERS_SLOTS


@dataclass(frozen=True, slots=True)
class OpenOrderSlot:
    slot: int
    order_id: int
    client_order_id: int
    is_bid: bool


@dataclass(frozen=True, slots=True)
class OpenOrders:
    """One owner's open-orders account on one market.

    ``address`` is the account's own public key. It is not stored in the
    account data, so it is only known when the caller supplies it.
    """

    market: bytes
    owner: bytes
    base_token_free: int
    base_token_total: int
    quote_token_free: int
    quote_token_total: int
    free_slot_bits: int
    is_bid_bits: int
    orders: tuple[int, ...]
    client_ids: tuple[int, ...]
    referrer_rebates_accrued: int | None = None
    address: bytes | None = None

    @property
    def version(self) -> int:
        return 1 if self.referrer_rebates_accrued is None else 2

    def is_slot_free(self, slot: int) -> bool:
        return bool((self.free_slot_bits >> slot) & 1)

    def live_slots(self) -> Iterator[OpenOrderSlot]:
        """Yield the occupied slots in slot order."""
        for slot in range(OPEN_ORDERS_SLOTS):
            if self.is_slot_free(slot):
                continue
            yield OpenOrderSlot(
                slot=slot,
                order_id=self.orders[slot],
                client_order_id=self.client_ids[slot],
                is_bid=bool((self.is_bid_bits >> slot) & 1),
            )

    @property
    def order_ids(self) -> frozenset[int]:
        return frozenset(entry.order_id for entry in self.live_slots())


def decode_open_orders(data: bytes | memoryview, address: bytes | None = None) -> OpenOrders:
    """Decode a v1 or v2 open-orders account.

    The version follows from the body length. The account must be flagged
    INITIALIZED and OPEN_ORDERS.
    """
    flags, body = split_account(data, "open orders")
    required = AccountFlags.INITIALIZED | AccountFlags.OPEN_ORDERS
    if flags & required != required:
        raise FormatError(f"open orders: account flags {flags!r} do not mark an initialized open-orders account")
    if len(body) not in (OPEN_ORDERS_V1_LEN, OPEN_ORDERS_V2_LEN):
        raise FormatError(
            f"open orders: body is {len(body)} bytes, expected "
            f"{OPEN_ORDERS_V1_LEN} (v1) or {OPEN_ORDERS_V2_LEN} (v2)"
        )
    if address is not None and len(address) != 32:
        raise ValueError(f"open orders address must be 32 bytes, got {len(address)}")

    open_orders = OpenOrders(
        market=read_public_key(body, 0, "open orders market"),
        owner=read_public_key(body, 32, "open orders owner"),
        base_token_free=read_u64(body, 64, "base_token_free"),
        base_token_total=read_u64(body, 72, "base_token_total"),
        quote_token_free=read_u64(body, 80, "quote_token_free"),
        quote_token_total=read_u64(body, 88, "quote_token_total"),
        free_slot_bits=read_u128(body, 96, "free_slot_bits"),
        is_bid_bits=read_u128(body, 112, "is_bid_bits"),
        orders=tuple(
            read_u128(body, _ORDERS_OFFSET + 16 * i, "open orders order id")
            for i in range(OPEN_ORDERS_SLOTS)
        ),
        client_ids=tuple(
            read_u64(body, _CLIENT_IDS_OFFSET + 8 * i, "open orders client id")
            for i in range(OPEN_ORDERS_SLOTS)
        ),
        referrer_rebates_accrued=(
            read_u64(body, OPEN_ORDERS_V1_LEN, "referrer_rebates_accrued")
            if len(body) == OPEN_ORDERS_V2_LEN
            else None
        ),
        address=address,
    )
    LOGGER.debug(
        "decoded open orders v%d: live_slots=%d",
        open_orders.version,
        sum(1 for _ in open_orders.live_slots()),
    )
    return open_orders
