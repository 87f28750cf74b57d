"""
Slab node variants.

A slab is an arena of fixed-stride node records. Child links and free-list
links are plain integer indices into that arena. The variant set is closed:
``NodeTag`` lists every tag the on-chain program writes.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass


class NodeTag(enum.IntEnum):
    UNINITIALIZED = 0
    INNER = 1
    LEAF = 2
    FREE = 3
    LAST_FREE = 4


@dataclass(frozen=True, slots=True)
class SlabHeader:
    bump_index: int
    free_list_len: int
    free_list_head: int
    root_index: int
    leaf_count: int


@dataclass(frozen=True, slots=True)
class UninitializedNode:
    index: int


@dataclass(frozen=True, slots=True)
class InnerNode:
    """Branch node; every leaf below it shares the first ``prefix_len`` key bits."""

    index: int
    prefix_len: int
    key: int
    children: tuple[int, int]


@dataclass(frozen=True, slots=True)
class LeafNode:
    """One resting order."""

    index: int
    owner_slot: int
    fee_tier: int
    key: int
    owner_id: bytes
    quantity: int
    client_order_id: int

    @property
    def price_lots(self) -> int:
        return self.key >> 64

    @property
    def owner_hex(self) -> str:
        return self.owner_id.hex()


@dataclass(frozen=True, slots=True)
class FreeNode:
    index: int
    next: int


@dataclass(frozen=True, slots=True)
class LastFreeNode:
    index: int


SlabNode = UninitializedNode | InnerNode | LeafNode | FreeNode | LastFreeNode
