"""Public API for the slab_book package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Order book API
# ----------------------------------------------------------------------
from slab_book.core.book.orderbook import (
    Orderbook,
    decode_orderbook,
    filter_for_open_orders,
    level2,
)
from slab_book.core.book.slab import Slab

# ----------------------------------------------------------------------
# Decoding / codec API
# ----------------------------------------------------------------------
from slab_book.core.codec.layout import AccountFlags
from slab_book.core.codec.open_orders import OpenOrders, OpenOrderSlot, decode_open_orders
from slab_book.core.codec.price_key import (
    decode_order_key,
    encode_order_key,
    price_from_key,
)
from slab_book.core.codec.slab_decoder import decode_slab

# ----------------------------------------------------------------------
# Domain types
# ----------------------------------------------------------------------
from slab_book.core.domain.errors import CorruptionError, FormatError, SlabBookError
from slab_book.core.domain.nodes import (
    FreeNode,
    InnerNode,
    LastFreeNode,
    LeafNode,
    NodeTag,
    SlabHeader,
    UninitializedNode,
)
from slab_book.core.domain.types import BookLevel, Fill, Order, Side

# ----------------------------------------------------------------------
# Market config / conversion API
# ----------------------------------------------------------------------
from slab_book.core.market.fees import FeeRates, fee_rates, fee_tier_for_balances
from slab_book.core.market.lots import LotConverter, divide_to_number
from slab_book.core.market.market_config import MarketConfig

# ----------------------------------------------------------------------
# Queue API
# ----------------------------------------------------------------------
from slab_book.core.queue.fills import parse_fills
from slab_book.core.queue.queues import (
    Event,
    EventFlags,
    EventQueue,
    Request,
    RequestFlags,
    RequestQueue,
    decode_event_queue,
    decode_request_queue,
)

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Slab
    "decode_slab",
    "Slab",
    "SlabHeader",
    "NodeTag",
    "UninitializedNode",
    "InnerNode",
    "LeafNode",
    "FreeNode",
    "LastFreeNode",

    # Keys
    "encode_order_key",
    "decode_order_key",
    "price_from_key",

    # Order book
    "Orderbook",
    "decode_orderbook",
    "level2",
    "filter_for_open_orders",
    "AccountFlags",

    # Open orders
    "decode_open_orders",
    "OpenOrders",
    "OpenOrderSlot",

    # Queues
    "decode_event_queue",
    "decode_request_queue",
    "EventQueue",
    "RequestQueue",
    "Event",
    "EventFlags",
    "Request",
    "RequestFlags",
    "parse_fills",

    # Models
    "Order",
    "BookLevel",
    "Fill",
    "Side",

    # Market
    "MarketConfig",
    "LotConverter",
    "divide_to_number",
    "FeeRates",
    "fee_rates",
    "fee_tier_for_balances",

    # Errors
    "SlabBookError",
    "FormatError",
    "CorruptionError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("slab-book")
except PackageNotFoundError:
    __version__ = "0.0.0"
