"""
Semantic test: walks over corrupted arenas terminate with CorruptionError.

Invariant:
Cyclic child links, out-of-range child indices, or links into free slots
never loop forever or raise IndexError. Search and traversal both stop
within the arena size and raise CorruptionError.
"""

from __future__ import annotations

import pytest
from builders import ask, free_record, inner_record, leaf_record, slab_header

from slab_book.core.codec.price_key import encode_order_key
from slab_book.core.codec.slab_decoder import decode_slab
from slab_book.core.domain.errors import CorruptionError


def _slab(records: list[bytes], *, root: int = 0, leaf_count: int = 1):
    header = slab_header(bump_index=len(records), root_index=root, leaf_count=leaf_count)
    return decode_slab(header + b"".join(records))


def test_self_referencing_inner_node() -> None:
    slab = _slab([inner_record(0, 0, (0, 0))])

    with pytest.raises(CorruptionError):
        slab.find(0)
    with pytest.raises(CorruptionError):
        list(slab.iterate())
    with pytest.raises(CorruptionError):
        list(slab.iterate(descending=True))


def test_two_node_cycle() -> None:
    slab = _slab([inner_record(0, 0, (1, 1)), inner_record(1, 0, (0, 0))])

    with pytest.raises(CorruptionError):
        slab.find(0)
    with pytest.raises(CorruptionError):
        list(slab.iterate())


def test_child_index_out_of_range() -> None:
    leaf = ask(1, 1, 1)
    slab = _slab([inner_record(0, 0, (1, 40)), leaf_record(leaf)], leaf_count=2)

    with pytest.raises(CorruptionError):
        list(slab.iterate())
    # a key whose first bit is set descends into the missing child
    with pytest.raises(CorruptionError):
        slab.find(1 << 127)


def test_child_pointing_at_free_slot() -> None:
    slab = _slab([inner_record(0, 0, (1, 2)), free_record(0), free_record(0)], leaf_count=2)

    with pytest.raises(CorruptionError):
        list(slab.iterate())
    with pytest.raises(CorruptionError):
        slab.find(encode_order_key("sell", 1, 1))


def test_shared_subtree_exceeds_visit_bound() -> None:
    # both children point at the same leaf, so the walk needs more visits
    # than the arena has nodes
    spec = ask(3, 1, 1)
    slab = _slab([inner_record(0, 0, (1, 1)), leaf_record(spec)], leaf_count=2)

    walk = slab.iterate()
    assert next(walk).key == spec.key
    with pytest.raises(CorruptionError):
        next(walk)
