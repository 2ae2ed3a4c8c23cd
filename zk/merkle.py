"""
Merkle membership over the Poseidon pair hash.

MerkleVerifier walks a fixed number of levels from leaf to root; the loop
bound is the configured depth and never depends on the data, so the same
walk can be lowered into an arithmetic circuit unchanged.
SparseMerkleTree is the witness side: it holds the eligible-voter leaves in
memory and hands out authentication paths.
"""

import logging
from typing import Dict, List, Sequence, Tuple

from config.config import DEFAULT_TREE_DEPTH

from .errors import InvalidInputError
from .poseidon import hash_pair, is_field_element

logger = logging.getLogger(__name__)

EMPTY_LEAF = 0


def check_authentication_path(path: Sequence[int], indices: Sequence[int], depth: int):
    """Reject malformed paths before they reach the walk"""
    if len(path) != depth:
        raise InvalidInputError(f"Merkle path has {len(path)} elements, expected {depth}")
    if len(indices) != depth:
        raise InvalidInputError(f"Merkle indices have {len(indices)} elements, expected {depth}")

    for level, sibling in enumerate(path):
        if not is_field_element(sibling):
            raise InvalidInputError(f"Path element at level {level} is not a field element")
    for level, index in enumerate(indices):
        if isinstance(index, bool) or index not in (0, 1):
            raise InvalidInputError(f"Index at level {level} must be 0 or 1, got {index!r}")


class MerkleVerifier:
    """Recomputes a root from a leaf and its authentication path"""

    def __init__(self, depth: int = DEFAULT_TREE_DEPTH):
        if depth < 1:
            raise ValueError(f"Tree depth must be positive, got {depth}")
        self.depth = depth

    def compute_root(self, leaf: int, path: Sequence[int], indices: Sequence[int]) -> int:
        check_authentication_path(path, indices, self.depth)
        if not is_field_element(leaf):
            raise InvalidInputError(f"Leaf {leaf!r} outside field bounds")

        current = leaf
        for level in range(self.depth):
            if indices[level] == 0:
                # current node is the left child
                current = hash_pair(current, path[level])
            else:
                current = hash_pair(path[level], current)
        return current

    def verify_membership(self, leaf: int, root: int, path: Sequence[int],
                          indices: Sequence[int]) -> bool:
        return self.compute_root(leaf, path, indices) == root


class SparseMerkleTree:
    """Sparse Merkle tree of the eligible voters, empty leaves are zero"""

    def __init__(self, depth: int = DEFAULT_TREE_DEPTH):
        if depth < 1:
            raise ValueError(f"Tree depth must be positive, got {depth}")
        self.depth = depth
        self.capacity = 1 << depth
        self.next_index = 0
        # (level, index) -> hash, level 0 holds the leaves
        self.nodes: Dict[Tuple[int, int], int] = {}
        self.empty_nodes = self._compute_empty_nodes()

    def _compute_empty_nodes(self) -> List[int]:
        """Hash of an empty subtree at each level, level 0 = empty leaf"""
        empty = [EMPTY_LEAF]
        for _ in range(self.depth):
            empty.append(hash_pair(empty[-1], empty[-1]))
        return empty

    def _node(self, level: int, index: int) -> int:
        return self.nodes.get((level, index), self.empty_nodes[level])

    def _check_index(self, index: int):
        if index < 0 or index >= self.capacity:
            raise IndexError(f"Index {index} out of bounds for depth {self.depth}")

    def insert(self, index: int, leaf: int):
        """Set a leaf and rehash its path to the root"""
        self._check_index(index)
        if not is_field_element(leaf):
            raise InvalidInputError(f"Leaf {leaf!r} outside field bounds")

        self.nodes[(0, index)] = leaf
        self.next_index = max(self.next_index, index + 1)

        current = leaf
        for level in range(self.depth):
            if index % 2 == 0:
                current = hash_pair(current, self._node(level, index + 1))
            else:
                current = hash_pair(self._node(level, index - 1), current)
            index //= 2
            self.nodes[(level + 1, index)] = current

    def append(self, leaf: int) -> int:
        """Insert just past the highest occupied index and return that index.

        Gaps left by explicit inserts below the high-water mark are not reused.
        """
        index = self.next_index
        if index >= self.capacity:
            raise IndexError(
                f"No index left after {index - 1} in tree of depth {self.depth}")
        self.insert(index, leaf)
        return index

    @property
    def root(self) -> int:
        return self._node(self.depth, 0)

    def get_leaf(self, index: int) -> int:
        self._check_index(index)
        return self._node(0, index)

    def get_path(self, index: int) -> Tuple[List[int], List[int]]:
        """Authentication path as (siblings, indices), ordered leaf to root"""
        self._check_index(index)

        path = []
        indices = []
        for level in range(self.depth):
            indices.append(index % 2)
            path.append(self._node(level, index ^ 1))
            index //= 2
        return path, indices
