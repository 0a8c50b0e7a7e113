"""Incremental Merkle tree used as the membership accumulator of a group."""

from dataclasses import dataclass
from typing import List, Dict, Tuple, Sequence

from zkcred.utils.hash import hash_pair, is_field_element
from zkcred.exceptions import (
    InvalidTreeDepthError,
    TreeFullError,
    InvalidLeafError,
    InvalidLeafIndexError,
    InvalidSiblingPathError,
    InvalidMerkleProofError,
)

MAX_DEPTH = 32


@dataclass
class MerkleProof:
    """Membership proof for one leaf: the sibling path from leaf to root."""

    root: int
    leaf: int
    leaf_index: int
    siblings: List[int]
    path_indices: List[int]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "root": str(self.root),
            "leaf": str(self.leaf),
            "leaf_index": self.leaf_index,
            "siblings": [str(s) for s in self.siblings],
            "path_indices": list(self.path_indices),
        }


def compute_root(leaf: int, siblings: Sequence[int], path_indices: Sequence[int]) -> int:
    """
    Hash a leaf up its sibling path.

    path_indices[level] == 0 means the node is the left child at that level.
    """
    node = leaf
    for sibling, index in zip(siblings, path_indices):
        if index == 0:
            node = hash_pair(node, sibling)
        else:
            node = hash_pair(sibling, node)
    return node


def verify_merkle_proof(
    leaf: int, siblings: Sequence[int], path_indices: Sequence[int], root: int
) -> bool:
    """Standalone verification function."""
    if len(siblings) != len(path_indices):
        return False
    try:
        return compute_root(leaf, siblings, path_indices) == root
    except ValueError:
        return False


def path_indices_to_member_index(path_indices: Sequence[int]) -> int:
    """
    Rebuild the 0-based leaf index from a leaf-to-root path.

    Walks from the root end of the path down to the leaf. Zeros seen before
    the first 1 do not contribute; after that every entry is one binary digit.
    """
    member_index = 0
    for index in reversed(path_indices):
        if member_index > 0 or index != 0:
            member_index *= 2
            if index == 1:
                member_index += 1
    return member_index


class IncrementalMerkleTree:
    """
    Fixed-depth binary Merkle tree with append, update and remove.

    Empty slots hold ``zero_value``; an empty subtree of height ``h`` hashes
    to ``zeroes[h]``. Nodes are kept in a dictionary keyed by
    ``(level, position)``, so only touched paths are stored.

    Removing a leaf writes ``zero_value`` into its slot. The slot is never
    reused: ``number_of_leaves`` only grows and insertion always appends.
    """

    def __init__(self, depth: int, zero_value: int = 0):
        """
        Initialize empty Merkle tree.

        Args:
            depth: Number of levels between the leaves and the root
            zero_value: Value used for empty leaves

        Raises:
            InvalidTreeDepthError: If depth is zero or above MAX_DEPTH
            InvalidLeafError: If zero_value is outside the field
        """
        if not isinstance(depth, int) or depth < 1 or depth > MAX_DEPTH:
            raise InvalidTreeDepthError(f"Tree depth must be between 1 and {MAX_DEPTH}")
        if not is_field_element(zero_value):
            raise InvalidLeafError("Zero value must be a field element")

        self.depth = depth
        self.zero_value = zero_value
        self.max_leaves = 2**depth
        self.number_of_leaves = 0

        self.zeroes: List[int] = [zero_value]
        for level in range(depth):
            self.zeroes.append(hash_pair(self.zeroes[level], self.zeroes[level]))

        self.nodes: Dict[Tuple[int, int], int] = {}
        self._root = self.zeroes[depth]

    @property
    def root(self) -> int:
        """Get the current Merkle root."""
        return self._root

    @property
    def leaves(self) -> List[int]:
        """Leaf values in index order, removed slots included as zero_value."""
        return [self._node(0, index) for index in range(self.number_of_leaves)]

    def _node(self, level: int, position: int) -> int:
        return self.nodes.get((level, position), self.zeroes[level])

    def _check_leaf(self, leaf: int) -> None:
        if not is_field_element(leaf):
            raise InvalidLeafError(f"Leaf is not a field element: {leaf!r}")

    def insert(self, leaf: int) -> int:
        """
        Append a leaf and return its index.

        Raises:
            TreeFullError: If the tree is full
            InvalidLeafError: If leaf is outside the field
        """
        self._check_leaf(leaf)
        if self.number_of_leaves >= self.max_leaves:
            raise TreeFullError(f"Tree is full (max {self.max_leaves} leaves)")

        leaf_index = self.number_of_leaves
        self._write_path(leaf_index, leaf)
        self.number_of_leaves += 1
        return leaf_index

    def _write_path(self, leaf_index: int, leaf: int) -> None:
        """Store leaf and recompute every ancestor up to the root."""
        position = leaf_index
        node = leaf
        self.nodes[(0, position)] = node

        for level in range(self.depth):
            sibling = self._node(level, position ^ 1)
            if position % 2 == 0:
                node = hash_pair(node, sibling)
            else:
                node = hash_pair(sibling, node)
            position >>= 1
            self.nodes[(level + 1, position)] = node

        self._root = node

    def _check_path(self, leaf: int, siblings: Sequence[int], path_indices: Sequence[int]) -> None:
        self._check_leaf(leaf)
        if len(siblings) != self.depth or len(path_indices) != self.depth:
            raise InvalidSiblingPathError(
                f"Siblings and path indices must have exactly {self.depth} entries"
            )
        for index in path_indices:
            if index not in (0, 1) or isinstance(index, bool):
                raise InvalidSiblingPathError("Path indices must be 0 or 1")
        for sibling in siblings:
            if not is_field_element(sibling):
                raise InvalidSiblingPathError("Siblings must be field elements")

    def verify(self, leaf: int, siblings: Sequence[int], path_indices: Sequence[int]) -> bool:
        """
        Check that leaf sits at the position given by path_indices.

        Raises:
            InvalidLeafError, InvalidSiblingPathError: If inputs are malformed
        """
        self._check_path(leaf, siblings, path_indices)
        return compute_root(leaf, siblings, path_indices) == self._root

    def update(
        self,
        old_leaf: int,
        new_leaf: int,
        siblings: Sequence[int],
        path_indices: Sequence[int],
    ) -> int:
        """
        Replace old_leaf by new_leaf, proven by its sibling path.

        Returns:
            int: Index of the updated leaf

        Raises:
            InvalidLeafError: If new_leaf is outside the field or equals old_leaf
            InvalidSiblingPathError: If the path is malformed
            InvalidMerkleProofError: If the path does not lead to the current root
            InvalidLeafIndexError: If the path points past the last inserted leaf
        """
        self._check_leaf(new_leaf)
        if new_leaf == old_leaf:
            raise InvalidLeafError("New leaf cannot be the same as the old one")
        if not self.verify(old_leaf, siblings, path_indices):
            raise InvalidMerkleProofError("Leaf is not part of the tree")

        leaf_index = path_indices_to_member_index(path_indices)
        if leaf_index >= self.number_of_leaves:
            raise InvalidLeafIndexError(f"Invalid leaf index: {leaf_index}")

        self._write_path(leaf_index, new_leaf)
        return leaf_index

    def remove(self, leaf: int, siblings: Sequence[int], path_indices: Sequence[int]) -> int:
        """Reset a leaf to zero_value. Same checks as update."""
        return self.update(leaf, self.zero_value, siblings, path_indices)

    def create_proof(self, leaf_index: int) -> MerkleProof:
        """
        Build the membership proof of a leaf from stored nodes.

        Raises:
            InvalidLeafIndexError: If leaf index is invalid
        """
        if leaf_index < 0 or leaf_index >= self.number_of_leaves:
            raise InvalidLeafIndexError(f"Invalid leaf index: {leaf_index}")

        siblings = []
        path_indices = []
        position = leaf_index

        for level in range(self.depth):
            siblings.append(self._node(level, position ^ 1))
            path_indices.append(position % 2)
            position >>= 1

        return MerkleProof(
            root=self._root,
            leaf=self._node(0, leaf_index),
            leaf_index=leaf_index,
            siblings=siblings,
            path_indices=path_indices,
        )

    def verify_proof(self, proof: MerkleProof) -> bool:
        """Verify a proof against its own root and the tree's depth."""
        if len(proof.siblings) != self.depth:
            return False
        return verify_merkle_proof(proof.leaf, proof.siblings, proof.path_indices, proof.root)

    def index_of(self, leaf: int) -> int:
        """Return the first index holding leaf, or -1."""
        for index in range(self.number_of_leaves):
            if self._node(0, index) == leaf:
                return index
        return -1

    def get_state(self) -> dict:
        """
        Get the current state of the tree for serialization.

        Returns:
            dict: Tree state including leaves, depth, and root
        """
        return {
            "depth": self.depth,
            "zero_value": str(self.zero_value),
            "max_leaves": self.max_leaves,
            "num_leaves": self.number_of_leaves,
            "leaves": [str(leaf) for leaf in self.leaves],
            "root": str(self.root),
        }

    def __len__(self) -> int:
        """Return the number of inserted leaves, removed ones included."""
        return self.number_of_leaves

    def __repr__(self) -> str:
        return (
            f"IncrementalMerkleTree(depth={self.depth}, "
            f"leaves={self.number_of_leaves}/{self.max_leaves}, "
            f"root={hex(self.root)[:18]}...)"
        )
