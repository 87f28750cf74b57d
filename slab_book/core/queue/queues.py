"""Request and event queue decoders.

Both queues are fixed-capacity rings inside an account envelope:

  [0-4]    b"serum"
  [5-12]   account flags       u64
  [13-16]  head                u32
  [17-20]  padding
  [21-24]  count               u32
  [25-28]  padding
  [29-32]  seq_num             u32
  [33-36]  padding
  [37..]   ring of fixed-stride records
  [-7..]   b"padding"

Capacity is the number of whole records between the header and the tail
padding. ``count`` live records start at ``head`` and wrap around.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, TypeVar

from slab_book.core.codec.layout import (
    ACCOUNT_HEAD_PADDING,
    ACCOUNT_TAIL_PADDING,
    AccountFlags,
    read_public_key,
    read_u8,
    read_u32,
    read_u64,
    read_u128,
)
from slab_book.core.domain.errors import FormatError

LOGGER = logging.getLogger(__name__)

QUEUE_HEADER_LEN: int = 37
EVENT_LEN: int = 88
REQUEST_LEN: int = 80

_SEQ_MODULUS = 1 << 32

R = TypeVar("R")


class EventFlags(enum.IntFlag):
    FILL = 0x1
    OUT = 0x2
    BID = 0x4
    MAKER = 0x8


class RequestFlags(enum.IntFlag):
    NEW_ORDER = 0x01
    CANCEL_ORDER = 0x02
    BID = 0x04
    POST_ONLY = 0x08
    IOC = 0x10


@dataclass(frozen=True, slots=True)
class QueueHeader:
    account_flags: AccountFlags
    head: int
    count: int
    seq_num: int


@dataclass(frozen=True, slots=True)
class Event:
    flags: EventFlags
    open_orders_slot: int
    fee_tier: int
    native_quantity_released: int
    native_quantity_paid: int
    native_fee_or_rebate: int
    order_id: int
    owner_id: bytes
    client_order_id: int
    sequence_number: int | None = None

    @property
    def is_fill(self) -> bool:
        return EventFlags.FILL in self.flags

    @property
    def is_out(self) -> bool:
        return EventFlags.OUT in self.flags

    @property
    def is_bid(self) -> bool:
        return EventFlags.BID in self.flags

    @property
    def is_maker(self) -> bool:
        return EventFlags.MAKER in self.flags


@dataclass(frozen=True, slots=True)
class Request:
    flags: RequestFlags
    open_orders_slot: int
    fee_tier: int
    max_base_size_or_cancel_id: int
    native_quote_quantity_locked: int
    order_id: int
    owner_id: bytes
    client_order_id: int


@dataclass(frozen=True, slots=True)
class Queue(Generic[R]):
    header: QueueHeader
    capacity: int
    records: tuple[R, ...]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[R]:
        return iter(self.records)


EventQueue = Queue[Event]
RequestQueue = Queue[Request]


# ---------------------------------------------------------------------------
# Record decoders
# ---------------------------------------------------------------------------


def decode_event(data: memoryview, offset: int, sequence_number: int | None = None) -> Event:
    return Event(
        flags=EventFlags(read_u8(data, offset, "event flags") & 0x0F),
        open_orders_slot=read_u8(data, offset + 1, "event open_orders_slot"),
        fee_tier=read_u8(data, offset + 2, "event fee_tier"),
        native_quantity_released=read_u64(data, offset + 8, "event native_quantity_released"),
        native_quantity_paid=read_u64(data, offset + 16, "event native_quantity_paid"),
        native_fee_or_rebate=read_u64(data, offset + 24, "event native_fee_or_rebate"),
        order_id=read_u128(data, offset + 32, "event order_id"),
        owner_id=read_public_key(data, offset + 48, "event owner_id"),
        client_order_id=read_u64(data, offset + 80, "event client_order_id"),
        sequence_number=sequence_number,
    )


def decode_request(data: memoryview, offset: int) -> Request:
    """Decode one request record. Requests carry no sequence number."""
    return Request(
        flags=RequestFlags(read_u8(data, offset, "request flags") & 0x1F),
        open_orders_slot=read_u8(data, offset + 1, "request open_orders_slot"),
        fee_tier=read_u8(data, offset + 2, "request fee_tier"),
        max_base_size_or_cancel_id=read_u64(data, offset + 8, "request max_base_size_or_cancel_id"),
        native_quote_quantity_locked=read_u64(data, offset + 16, "request native_quote_quantity_locked"),
        order_id=read_u128(data, offset + 24, "request order_id"),
        owner_id=read_public_key(data, offset + 40, "request owner_id"),
        client_order_id=read_u64(data, offset + 72, "request client_order_id"),
    )


# ---------------------------------------------------------------------------
# Ring decoding
# ---------------------------------------------------------------------------


def _decode_header(view: memoryview, kind: AccountFlags, what: str) -> QueueHeader:
    if len(view) < QUEUE_HEADER_LEN:
        raise FormatError(
            f"{what}: header needs {QUEUE_HEADER_LEN} bytes, buffer has {len(view)}"
        )
    flags = AccountFlags(read_u64(view, ACCOUNT_HEAD_PADDING, f"{what} flags") & 0xFF)
    if AccountFlags.INITIALIZED not in flags or kind not in flags:
        raise FormatError(f"{what}: account flags {flags!r} do not mark an initialized {kind.name}")
    return QueueHeader(
        account_flags=flags,
        head=read_u32(view, 13, f"{what} head"),
        count=read_u32(view, 21, f"{what} count"),
        seq_num=read_u32(view, 29, f"{what} seq_num"),
    )


def _decode_ring(
    data: bytes | memoryview,
    *,
    kind: AccountFlags,
    stride: int,
    decode_record: Callable[..., R],
    sequenced: bool,
    history: int | None,
    what: str,
) -> Queue[R]:
    view = memoryview(data)
    header = _decode_header(view, kind, what)

    ring_len = max(len(view) - QUEUE_HEADER_LEN - ACCOUNT_TAIL_PADDING, 0)
    capacity = ring_len // stride
    if header.count > capacity:
        raise FormatError(f"{what}: count {header.count} exceeds capacity {capacity}")
    if capacity and header.head >= capacity:
        raise FormatError(f"{what}: head {header.head} out of range for capacity {capacity}")

    def at(slot: int, seq: int) -> R:
        offset = QUEUE_HEADER_LEN + slot * stride
        if sequenced:
            return decode_record(view, offset, seq % _SEQ_MODULUS)
        return decode_record(view, offset)

    if history is None:
        # live records, oldest first
        first_seq = header.seq_num - header.count
        records = tuple(
            at((header.head + i) % capacity, first_seq + i) for i in range(header.count)
        )
    else:
        if history < 0:
            raise ValueError(f"history must be >= 0, got {history}")
        # most recent slots, newest first, including already consumed ones
        records = tuple(
            at((header.head + header.count + capacity - 1 - i) % capacity, header.seq_num - 1 - i)
            for i in range(min(history, capacity))
        )

    LOGGER.debug(
        "decoded %s: capacity=%d head=%d count=%d returned=%d",
        what,
        capacity,
        header.head,
        header.count,
        len(records),
    )
    return Queue(header=header, capacity=capacity, records=records)


def decode_event_queue(data: bytes | memoryview, history: int | None = None) -> EventQueue:
    """Decode an event queue account.

    Without ``history`` the live (unconsumed) events are returned oldest first.
    With ``history=n`` the ``n`` most recently written slots are returned
    newest first.
    """
    return _decode_ring(
        data,
        kind=AccountFlags.EVENT_QUEUE,
        stride=EVENT_LEN,
        decode_record=decode_event,
        sequenced=True,
        history=history,
        what="event queue",
    )


def decode_request_queue(data: bytes | memoryview, history: int | None = None) -> RequestQueue:
    """Decode a request queue account (same ring semantics as the event queue)."""
    return _decode_ring(
        data,
        kind=AccountFlags.REQUEST_QUEUE,
        stride=REQUEST_LEN,
        decode_record=decode_request,
        sequenced=False,
        history=history,
        what="request queue",
    )
