"""Fill extraction from decoded event queues."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from slab_book.core.domain.errors import FormatError
from slab_book.core.domain.types import Fill
from slab_book.core.market.lots import LotConverter, divide_to_number

if TYPE_CHECKING:
    from slab_book.core.market.market_config import MarketConfig
    from slab_book.core.queue.queues import Event


def parse_fill_event(event: Event, converter: LotConverter) -> Fill:
    """Convert one fill event into a human-readable Fill.

    Bids pay quote and receive base; asks pay base and receive quote. The
    price is computed on the quote amount before fees: a maker's rebate is
    added back to what it paid (bid) or removed from what it received (ask),
    a taker's fee is removed from what it paid (bid) or added back to what it
    received (ask).
    """
    fee = event.native_fee_or_rebate
    maker = event.is_maker

    if event.is_bid:
        side = "buy"
        quote_native = event.native_quantity_paid
        base_native = event.native_quantity_released
        before_fees = quote_native + fee if maker else quote_native - fee
    else:
        side = "sell"
        quote_native = event.native_quantity_released
        base_native = event.native_quantity_paid
        before_fees = quote_native - fee if maker else quote_native + fee

    if base_native == 0:
        raise FormatError(f"fill event for order {event.order_id} moved no base quantity")
    if before_fees < 0:
        raise FormatError(
            f"fill event for order {event.order_id}: fee {fee} exceeds quote amount {quote_native}"
        )

    price = divide_to_number(
        before_fees * converter.base_multiplier,
        converter.quote_multiplier * base_native,
    )
    fee_cost = converter.quote_spl_size_to_number(fee)

    return Fill(
        side=side,
        price=price,
        size=converter.base_spl_size_to_number(base_native),
        fee_cost=-fee_cost if maker else fee_cost,
        maker=maker,
        order_id=event.order_id,
        client_order_id=event.client_order_id,
        owner_id=event.owner_id.hex(),
        open_orders_slot=event.open_orders_slot,
        fee_tier=event.fee_tier,
        sequence_number=event.sequence_number,
    )


def parse_fills(events: Iterable[Event], market: MarketConfig) -> list[Fill]:
    """Return the fills among ``events`` (an EventQueue or any event iterable).

    Only events flagged FILL with a nonzero paid quantity are kept.
    """
    converter = LotConverter(market)
    return [
        parse_fill_event(event, converter)
        for event in events
        if event.is_fill and event.native_quantity_paid > 0
    ]
