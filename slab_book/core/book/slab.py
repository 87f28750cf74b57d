"""Read-only critbit tree over a decoded slab arena.

The slab is a point-in-time snapshot of externally owned state. Nothing here
allocates, frees, or rewrites nodes. Every walk is iterative and bounded by
the arena size so that cyclic or out-of-range child indices surface as
CorruptionError instead of an endless loop.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from slab_book.core.domain.errors import CorruptionError
from slab_book.core.domain.nodes import InnerNode, LeafNode, SlabHeader, SlabNode

KEY_BITS: int = 128


@dataclass(frozen=True, slots=True)
class Slab:
    header: SlabHeader
    nodes: tuple[SlabNode, ...]

    # ------------------------------------------------------------------
    # Arena access
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return len(self.nodes)

    def __len__(self) -> int:
        return self.header.leaf_count

    def _node(self, index: int) -> SlabNode:
        if index < 0 or index >= len(self.nodes):
            raise CorruptionError(
                f"node index {index} out of range for {len(self.nodes)} nodes"
            )
        return self.nodes[index]

    # ------------------------------------------------------------------
    # Point lookup
    # ------------------------------------------------------------------

    def find(self, key: int) -> LeafNode | None:
        """Return the leaf holding ``key``, or None if there is none."""
        if self.header.leaf_count == 0:
            return None

        index = self.header.root_index
        for _ in range(len(self.nodes)):
            node = self._node(index)
            if isinstance(node, LeafNode):
                return node if node.key == key else None
            if not isinstance(node, InnerNode):
                raise CorruptionError(
                    f"search reached non-tree node {index} ({type(node).__name__})"
                )
            shift = KEY_BITS - node.prefix_len
            if (node.key ^ key) >> shift:
                return None
            index = node.children[(key >> (shift - 1)) & 1]

        raise CorruptionError(
            f"search did not terminate within {len(self.nodes)} steps"
        )

    # ------------------------------------------------------------------
    # Ordered traversal
    # ------------------------------------------------------------------

    def iterate(self, descending: bool = False) -> Iterator[LeafNode]:
        """Yield leaves in key order.

        Each call starts a fresh walk with its own stack. A single iterator
        must not be shared between consumers.
        """
        if self.header.leaf_count == 0:
            return

        limit = len(self.nodes)
        visited = 0
        stack = [self.header.root_index]
        while stack:
            index = stack.pop()
            visited += 1
            if visited > limit:
                raise CorruptionError(
                    f"traversal visited more than {limit} nodes; child links are cyclic"
                )
            node = self._node(index)
            if isinstance(node, LeafNode):
                yield node
            elif isinstance(node, InnerNode):
                lo, hi = node.children
                if descending:
                    stack.append(lo)
                    stack.append(hi)
                else:
                    stack.append(hi)
                    stack.append(lo)
            else:
                raise CorruptionError(
                    f"traversal reached non-tree node {index} ({type(node).__name__})"
                )

    def leaves(self) -> Iterator[LeafNode]:
        return self.iterate(descending=False)

    def __iter__(self) -> Iterator[LeafNode]:
        return self.iterate(descending=False)

    def min_leaf(self) -> LeafNode | None:
        return next(self.iterate(descending=False), None)

    def max_leaf(self) -> LeafNode | None:
        return next(self.iterate(descending=True), None)
