"""Order book view over one side of a market.

An Orderbook pairs a decoded slab with the side it holds and the market's
lot configuration. It enumerates resting orders and builds the aggregated
L2 view. Best-first order is descending keys for bids and ascending keys for
asks (see ``price_key``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Iterator

from slab_book.core.codec.layout import AccountFlags, split_account
from slab_book.core.codec.open_orders import OpenOrders
from slab_book.core.codec.price_key import priority_descending
from slab_book.core.codec.slab_decoder import SLAB_HEADER_LEN, SLAB_NODE_LEN, decode_slab
from slab_book.core.domain.errors import FormatError
from slab_book.core.domain.types import BookLevel, Order
from slab_book.core.market.lots import LotConverter

if TYPE_CHECKING:
    from slab_book.core.book.slab import Slab
    from slab_book.core.domain.nodes import LeafNode
    from slab_book.core.domain.types import Side
    from slab_book.core.market.market_config import MarketConfig

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Orderbook:
    """One side of a market: the slab, its side, and the lot converter."""

    slab: Slab
    side: Side
    converter: LotConverter

    @classmethod
    def from_slab(cls, slab: Slab, side: Side, market: MarketConfig) -> Orderbook:
        priority_descending(side)  # validates the side
        return cls(slab=slab, side=side, converter=LotConverter(market))

    @property
    def is_bids(self) -> bool:
        return self.side == "buy"

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def to_order(self, leaf: LeafNode) -> Order:
        price_lots = leaf.price_lots
        return Order(
            order_id=leaf.key,
            client_order_id=leaf.client_order_id,
            owner_id=leaf.owner_hex,
            owner_slot=leaf.owner_slot,
            fee_tier=leaf.fee_tier,
            price=self.converter.price_lots_to_number(price_lots),
            price_lots=price_lots,
            size=self.converter.base_size_lots_to_number(leaf.quantity),
            size_lots=leaf.quantity,
            side=self.side,
        )

    def orders(self, descending: bool = False) -> Iterator[Order]:
        """Yield every resting order in key order."""
        for leaf in self.slab.iterate(descending=descending):
            yield self.to_order(leaf)

    def __iter__(self) -> Iterator[Order]:
        return self.orders(descending=False)

    def by_priority(self) -> Iterator[Order]:
        """Yield resting orders best first (price, then submission time)."""
        return self.orders(descending=priority_descending(self.side))

    def best(self) -> Order | None:
        return next(self.by_priority(), None)

    def find(self, order_id: int) -> Order | None:
        leaf = self.slab.find(order_id)
        return None if leaf is None else self.to_order(leaf)

    def filter_for_owners(self, owners: Iterable[bytes | str | OpenOrders]) -> list[Order]:
        """Return the orders owned by any of ``owners``, in ascending key order.

        Owners may be given as raw 32-byte keys, hex strings, or decoded
        open-orders accounts. An account with a known address matches leaves
        whose owner is that address; an account without one matches leaves
        whose key is among its live order ids.
        """
        wanted: set[str] = set()
        order_ids: set[int] = set()
        for owner in owners:
            if isinstance(owner, OpenOrders):
                if owner.address is not None:
                    wanted.add(owner.address.hex())
                else:
                    order_ids.update(owner.order_ids)
            elif isinstance(owner, bytes):
                wanted.add(owner.hex())
            else:
                wanted.add(owner.lower())
        return [
            self.to_order(leaf)
            for leaf in self.slab.iterate(descending=False)
            if leaf.owner_hex in wanted or leaf.key in order_ids
        ]

    # ------------------------------------------------------------------
    # L2
    # ------------------------------------------------------------------

    def level2(self, depth: int) -> list[BookLevel]:
        """Aggregate resting size per price, best first, up to ``depth`` levels.

        Levels merge on the converted price. Near the top of the u64 range
        neighbouring lot prices can convert to the same float; such a level
        reports the best lot price it holds as ``price_lots`` and the summed
        size of all of them.
        """
        if depth < 0:
            raise ValueError(f"depth must be >= 0, got {depth}")

        # [price, price_lots, size_lots] per level
        levels: list[list] = []
        for leaf in self.slab.iterate(descending=priority_descending(self.side)):
            price = self.converter.price_lots_to_number(leaf.price_lots)
            if levels and levels[-1][0] == price:
                levels[-1][2] += leaf.quantity
                continue
            if len(levels) == depth:
                break
            levels.append([price, leaf.price_lots, leaf.quantity])

        return [
            BookLevel(
                price=price,
                size=self.converter.base_size_lots_to_number(size_lots),
                price_lots=price_lots,
                size_lots=size_lots,
            )
            for price, price_lots, size_lots in levels
        ]


def level2(orderbook: Orderbook, depth: int) -> list[BookLevel]:
    return orderbook.level2(depth)


def decode_orderbook(data: bytes | memoryview, market: MarketConfig) -> Orderbook:
    """Decode a bids or asks account.

    The account must be initialized and flagged as exactly one of bids/asks.
    The slab region is cut to whole node records: the account allocation
    leaves a remainder shorter than one record after the last node.
    """
    flags, body = split_account(data, "orderbook")
    if AccountFlags.INITIALIZED not in flags:
        raise FormatError(f"orderbook account is not initialized (flags={flags!r})")
    is_bids = AccountFlags.BIDS in flags
    is_asks = AccountFlags.ASKS in flags
    if is_bids == is_asks:
        raise FormatError(
            f"orderbook account must be flagged as exactly one of bids/asks (flags={flags!r})"
        )

    if len(body) < SLAB_HEADER_LEN:
        raise FormatError(
            f"orderbook slab region is {len(body)} bytes, header needs {SLAB_HEADER_LEN}"
        )
    slop = (len(body) - SLAB_HEADER_LEN) % SLAB_NODE_LEN
    if slop:
        LOGGER.debug("orderbook: ignoring %d allocation bytes after the last node", slop)

    slab = decode_slab(body[: len(body) - slop])
    return Orderbook.from_slab(slab, "buy" if is_bids else "sell", market)


def filter_for_open_orders(
    bids: Orderbook, asks: Orderbook, open_orders: Iterable[OpenOrders]
) -> list[Order]:
    """Return the bids, then the asks, that belong to ``open_orders``."""
    accounts = list(open_orders)
    return bids.filter_for_owners(accounts) + asks.filter_for_owners(accounts)
