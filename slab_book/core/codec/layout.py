"""Little-endian layout primitives shared by the slab and queue decoders.

Account envelope (every order-book and queue account):

  [0-4]    b"serum" head padding
  [5-12]   account flags (u64 bitset)
  [13..]   body
  [-7..]   b"padding" tail

Every reader is bounds-checked and raises FormatError instead of letting
struct.error escape.
"""

from __future__ import annotations

import enum
import struct

from slab_book.core.domain.errors import FormatError

U64_MASK: int = (1 << 64) - 1
U128_MASK: int = (1 << 128) - 1

PUBLIC_KEY_LEN: int = 32

ACCOUNT_HEAD_PADDING: int = 5
ACCOUNT_FLAGS_LEN: int = 8
ACCOUNT_TAIL_PADDING: int = 7

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_U128_HALVES = struct.Struct("<QQ")


class AccountFlags(enum.IntFlag):
    """Account kind bitset stored in the 8-byte flag word."""

    INITIALIZED = 0x01
    MARKET = 0x02
    OPEN_ORDERS = 0x04
    REQUEST_QUEUE = 0x08
    EVENT_QUEUE = 0x10
    BIDS = 0x20
    ASKS = 0x40
    DISABLED = 0x80


def _require(data: bytes | memoryview, offset: int, size: int, what: str) -> None:
    if offset < 0 or offset + size > len(data):
        raise FormatError(
            f"{what}: need {size} bytes at offset {offset}, buffer has {len(data)}"
        )


def read_u8(data: bytes | memoryview, offset: int, what: str = "u8") -> int:
    _require(data, offset, _U8.size, what)
    return _U8.unpack_from(data, offset)[0]


def read_u32(data: bytes | memoryview, offset: int, what: str = "u32") -> int:
    _require(data, offset, _U32.size, what)
    return _U32.unpack_from(data, offset)[0]


def read_u64(data: bytes | memoryview, offset: int, what: str = "u64") -> int:
    _require(data, offset, _U64.size, what)
    return _U64.unpack_from(data, offset)[0]


def read_u128(data: bytes | memoryview, offset: int, what: str = "u128") -> int:
    _require(data, offset, _U128_HALVES.size, what)
    lo, hi = _U128_HALVES.unpack_from(data, offset)
    return (hi << 64) | lo


def read_public_key(data: bytes | memoryview, offset: int, what: str = "public key") -> bytes:
    _require(data, offset, PUBLIC_KEY_LEN, what)
    return bytes(data[offset : offset + PUBLIC_KEY_LEN])


def pack_u128(value: int) -> bytes:
    """Encode a u128 the way read_u128 expects it (low half first)."""
    if value < 0 or value > U128_MASK:
        raise ValueError(f"value out of u128 range: {value}")
    return _U128_HALVES.pack(value & U64_MASK, value >> 64)


def split_account(data: bytes | memoryview, what: str) -> tuple[AccountFlags, memoryview]:
    """Strip the account envelope.

    Returns the decoded flags and a view over the body (between the flag word
    and the tail padding).
    """
    view = memoryview(data)
    overhead = ACCOUNT_HEAD_PADDING + ACCOUNT_FLAGS_LEN + ACCOUNT_TAIL_PADDING
    if len(view) < overhead:
        raise FormatError(
            f"{what}: account is {len(view)} bytes, envelope alone needs {overhead}"
        )
    flags = AccountFlags(read_u64(view, ACCOUNT_HEAD_PADDING, f"{what} flags") & 0xFF)
    body = view[ACCOUNT_HEAD_PADDING + ACCOUNT_FLAGS_LEN : len(view) - ACCOUNT_TAIL_PADDING]
    return flags, body
