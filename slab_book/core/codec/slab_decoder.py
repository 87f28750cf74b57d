"""Slab decoder.

Layout (little endian):

  header, 32 bytes
    [00-03] bump_index      u32
    [04-07] padding
    [08-11] free_list_len   u32
    [12-15] padding
    [16-19] free_list_head  u32
    [20-23] root_index      u32
    [24-27] leaf_count      u32
    [28-31] padding

  node records, 72 bytes each
    [00-03] tag             u32
    [04-71] payload, zero padded to the record stride

  inner payload  prefix_len:u32  key:u128  children:[u32; 2]
  leaf payload   owner_slot:u8  fee_tier:u8  pad:2  key:u128
                 owner_id:[u8; 32]  quantity:u64  client_order_id:u64
  free payload   next:u32

The buffer comes from an untrusted source. Any inconsistency raises
FormatError; nothing is truncated or defaulted.
"""

from __future__ import annotations

import logging

from slab_book.core.book.slab import Slab
from slab_book.core.codec.layout import (
    read_public_key,
    read_u8,
    read_u32,
    read_u64,
    read_u128,
)
from slab_book.core.domain.errors import FormatError
from slab_book.core.domain.nodes import (
    FreeNode,
    InnerNode,
    LastFreeNode,
    LeafNode,
    NodeTag,
    SlabHeader,
    SlabNode,
    UninitializedNode,
)

LOGGER = logging.getLogger(__name__)

SLAB_HEADER_LEN: int = 32
SLAB_NODE_LEN: int = 72

_PAYLOAD = 4  # payload starts right after the tag


def decode_slab_header(data: bytes | memoryview) -> SlabHeader:
    if len(data) < SLAB_HEADER_LEN:
        raise FormatError(
            f"slab header needs {SLAB_HEADER_LEN} bytes, buffer has {len(data)}"
        )
    return SlabHeader(
        bump_index=read_u32(data, 0, "bump_index"),
        free_list_len=read_u32(data, 8, "free_list_len"),
        free_list_head=read_u32(data, 16, "free_list_head"),
        root_index=read_u32(data, 20, "root_index"),
        leaf_count=read_u32(data, 24, "leaf_count"),
    )


def decode_node(data: bytes | memoryview, offset: int, index: int) -> SlabNode:
    """Decode the node record starting at ``offset``."""
    raw_tag = read_u32(data, offset, "node tag")
    try:
        tag = NodeTag(raw_tag)
    except ValueError:
        raise FormatError(f"node {index}: unknown tag {raw_tag}") from None

    p = offset + _PAYLOAD
    if tag is NodeTag.UNINITIALIZED:
        return UninitializedNode(index=index)
    if tag is NodeTag.INNER:
        prefix_len = read_u32(data, p, "inner prefix_len")
        if prefix_len > 127:
            raise FormatError(f"node {index}: inner prefix_len {prefix_len} > 127")
        return InnerNode(
            index=index,
            prefix_len=prefix_len,
            key=read_u128(data, p + 4, "inner key"),
            children=(
                read_u32(data, p + 20, "inner child 0"),
                read_u32(data, p + 24, "inner child 1"),
            ),
        )
    if tag is NodeTag.LEAF:
        return LeafNode(
            index=index,
            owner_slot=read_u8(data, p, "leaf owner_slot"),
            fee_tier=read_u8(data, p + 1, "leaf fee_tier"),
            key=read_u128(data, p + 4, "leaf key"),
            owner_id=read_public_key(data, p + 20, "leaf owner_id"),
            quantity=read_u64(data, p + 52, "leaf quantity"),
            client_order_id=read_u64(data, p + 60, "leaf client_order_id"),
        )
    if tag is NodeTag.FREE:
        return FreeNode(index=index, next=read_u32(data, p, "free next"))
    return LastFreeNode(index=index)


def decode_slab(data: bytes | memoryview) -> Slab:
    """Decode a raw slab buffer into a read-only Slab."""
    view = memoryview(data)
    header = decode_slab_header(view)

    body_len = len(view) - SLAB_HEADER_LEN
    if body_len % SLAB_NODE_LEN != 0:
        raise FormatError(
            f"slab body is {body_len} bytes, not a multiple of the {SLAB_NODE_LEN}-byte node stride"
        )
    node_count = body_len // SLAB_NODE_LEN

    if header.bump_index > node_count:
        raise FormatError(
            f"header declares {header.bump_index} nodes, buffer holds {node_count}"
        )
    if header.leaf_count > 0 and header.root_index >= node_count:
        raise FormatError(
            f"root_index {header.root_index} out of range for {node_count} nodes"
        )

    nodes = tuple(
        decode_node(view, SLAB_HEADER_LEN + i * SLAB_NODE_LEN, i)
        for i in range(node_count)
    )

    LOGGER.debug(
        "decoded slab: nodes=%d bump_index=%d leaf_count=%d free_list_len=%d",
        node_count,
        header.bump_index,
        header.leaf_count,
        header.free_list_len,
    )
    return Slab(header=header, nodes=nodes)
