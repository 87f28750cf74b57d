"""
Semantic test: selecting book orders that belong to open-orders accounts.

Invariant:
An open-orders account with a known address selects the leaves whose owner
is that address. Without an address it selects the leaves whose key is one
of its live order ids. filter_for_open_orders returns the bids, then the
asks.
"""

from __future__ import annotations

from builders import OWNER_A, OWNER_B, ask, bid, build_slab, open_orders_account, orderbook_account

from slab_book.core.book.orderbook import decode_orderbook, filter_for_open_orders
from slab_book.core.codec.open_orders import decode_open_orders
from slab_book.core.market.market_config import MarketConfig


def _books(market: MarketConfig):
    bids = decode_orderbook(
        orderbook_account(build_slab([bid(99, 1, 1, owner=OWNER_A), bid(98, 2, 1, owner=OWNER_B)]), bids=True),
        market,
    )
    asks = decode_orderbook(
        orderbook_account(build_slab([ask(101, 3, 1, owner=OWNER_B), ask(102, 4, 1, owner=OWNER_A)]), bids=False),
        market,
    )
    return bids, asks


def test_account_address_matches_leaf_owner(unit_market: MarketConfig) -> None:
    bids, asks = _books(unit_market)
    account = decode_open_orders(open_orders_account(live={}), address=OWNER_A)

    orders = filter_for_open_orders(bids, asks, [account])

    assert [(o.side, o.client_order_id) for o in orders] == [("buy", 1), ("sell", 4)]


def test_account_without_address_matches_live_order_ids(unit_market: MarketConfig) -> None:
    bids, asks = _books(unit_market)
    live = {
        0: (bid(98, 2, 1).key, 2, True),
        3: (ask(101, 3, 1).key, 3, False),
    }
    account = decode_open_orders(open_orders_account(live=live))

    orders = filter_for_open_orders(bids, asks, [account])

    assert [o.client_order_id for o in orders] == [2, 3]


def test_accounts_mix_with_owner_ids(unit_market: MarketConfig) -> None:
    _, asks = _books(unit_market)
    account = decode_open_orders(open_orders_account(live={}), address=OWNER_B)

    assert [o.client_order_id for o in asks.filter_for_owners([account, OWNER_A])] == [3, 4]


def test_no_accounts_selects_nothing(unit_market: MarketConfig) -> None:
    bids, asks = _books(unit_market)
    assert filter_for_open_orders(bids, asks, []) == []
    assert filter_for_open_orders(bids, asks, iter([decode_open_orders(open_orders_account(live={}))])) == []
