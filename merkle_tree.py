# merkle_tree.py
# Fixed-height incremental Merkle tree over deposit commitments.

import logging
from dataclasses import dataclass
from typing import List, Optional

from tools import (
    TREE_HEIGHT,
    ZERO_LEAF_HEX,
    field_bytes_to_hex,
    hex_to_field_bytes,
    short_hex,
)
from vault_errors import LeafNotFound, TreeCapacityExceeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MerkleProof:
    """
    Inclusion proof for one leaf, valid for the tree state it was taken from.

    path_indices[level] is the parity of the node on the path at that level:
    0 = node is the even (left) child, sibling on the right
    1 = node is the odd (right) child, sibling on the left
    """

    root: bytes
    path_elements: List[bytes]
    path_indices: List[int]
    leaf: bytes
    leaf_index: int

    def is_even(self) -> List[bool]:
        return [i % 2 == 0 for i in self.path_indices]


def compute_zero_values(oracle, zero_leaf=ZERO_LEAF_HEX, height=TREE_HEIGHT) -> List[bytes]:
    """
    zero_values[0] = zero_leaf
    zero_values[L] = H(zero_values[L-1], zero_values[L-1])   for L in 1..height
    """
    zeros = [hex_to_field_bytes(zero_leaf)]
    level = 1
    while level <= height:
        zeros.append(oracle.hash(zeros[level - 1], zeros[level - 1]))
        level += 1
    return zeros


class IncrementalMerkleTree:
    """
    Append-only Merkle tree of fixed height.

    Storage is one array per level. Leaves are appended left to right, so
    the populated nodes of every level form a prefix of that level; any
    coordinate past the end of its array is the zero value of its level.
    levels[height][0], once written, is the root.

    Not synchronised: at most one insert / initialize may run at a time.
    Both are all-or-nothing, a hash failure leaves the tree as it was.
    """

    def __init__(self, oracle, height=TREE_HEIGHT, zero_leaf=ZERO_LEAF_HEX, zero_values=None):
        if not isinstance(height, int) or height < 1:
            raise ValueError(f"tree height must be a positive integer, got: {height!r}")

        self.oracle = oracle
        self.height = height
        self.capacity = 1 << height
        self.leaf_count = 0

        zero_leaf_bytes = hex_to_field_bytes(zero_leaf)
        if zero_values is None:
            self.zero_values = compute_zero_values(oracle, zero_leaf_bytes, height)
        else:
            if len(zero_values) < height + 1:
                raise ValueError(
                    f"zero_values needs {height + 1} entries for height {height}, got {len(zero_values)}"
                )
            table = [hex_to_field_bytes(z) for z in zero_values[: height + 1]]
            if table[0] != zero_leaf_bytes:
                raise ValueError("zero_values[0] must equal the zero leaf")
            self.zero_values = table

        self.levels: List[List[bytes]] = [[] for _ in range(height + 1)]

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def size(self) -> int:
        return self.leaf_count

    def zero_value(self, level: int) -> bytes:
        return self.zero_values[level]

    def get_node(self, level: int, index: int) -> bytes:
        """Node at (level, index); zero value of the level if never written."""
        if level < 0 or level > self.height:
            raise IndexError(f"level {level} outside 0..{self.height}")
        layer = self.levels[level]
        if 0 <= index < len(layer):
            return layer[index]
        return self.zero_values[level]

    def root(self) -> bytes:
        top = self.levels[self.height]
        if len(top) == 0:
            return self.zero_values[self.height]
        return top[0]

    def root_hex(self) -> str:
        return field_bytes_to_hex(self.root())

    def get_index(self, leaf) -> Optional[int]:
        """
        Lowest index holding this leaf value, or None.
        Linear scan; meant for the occasional lookup of one's own commitment.
        """
        target = hex_to_field_bytes(leaf)
        leaves = self.levels[0]
        i = 0
        while i < len(leaves):
            if leaves[i] == target:
                return i
            i += 1
        return None

    def gen_proof(self, index: int) -> MerkleProof:
        """
        Sibling hashes and parity bits from the leaf at `index` up to the
        root. Raise LeafNotFound if no leaf was inserted at `index`.
        """
        if not isinstance(index, int) or index < 0 or index >= self.leaf_count:
            raise LeafNotFound(f"Leaf not found at index {index!r} ({self.leaf_count} leaves)")

        leaf = self.levels[0][index]
        path_elements = []
        path_indices = []

        cur = index
        level = 0
        while level < self.height:
            path_elements.append(self.get_node(level, cur ^ 1))
            path_indices.append(cur & 1)
            cur >>= 1
            level += 1

        return MerkleProof(
            root=self.root(),
            path_elements=path_elements,
            path_indices=path_indices,
            leaf=leaf,
            leaf_index=index,
        )

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def insert(self, leaf) -> int:
        """
        Append a leaf and recompute its path to the root.
        Returns the index the leaf was stored at.
        """
        if self.leaf_count >= self.capacity:
            raise TreeCapacityExceeded(
                f"tree of height {self.height} is full ({self.capacity} leaves)"
            )

        index = self.leaf_count
        current = hex_to_field_bytes(leaf)

        # Buffer every write; commit only once the whole path is hashed.
        writes = []
        cur = index
        level = 0
        while level < self.height:
            sibling = self.get_node(level, cur ^ 1)
            if cur & 1 == 0:
                left, right = current, sibling
            else:
                left, right = sibling, current
            writes.append((level, cur, current))
            current = self.oracle.hash(left, right)
            cur >>= 1
            level += 1
        writes.append((self.height, 0, current))

        for lvl, idx, value in writes:
            layer = self.levels[lvl]
            if idx < len(layer):
                layer[idx] = value
            else:
                layer.append(value)
        self.leaf_count += 1

        logger.debug(
            "[TREE] inserted leaf #%d %s, root=%s", index, short_hex(writes[0][2]), short_hex(current)
        )
        return index

    def initialize(self, leaves) -> None:
        """
        Replace the tree content with `leaves` (replay of on-chain history).

        Level 0 is written directly; every level above holds
        ceil(count / 2^level) nodes H(left or zero, right or zero).
        The new levels are swapped in only after all hashes succeed.
        """
        base = [hex_to_field_bytes(x) for x in leaves]
        if len(base) > self.capacity:
            raise TreeCapacityExceeded(
                f"{len(base)} leaves do not fit a tree of height {self.height} ({self.capacity} leaves)"
            )

        new_levels: List[List[bytes]] = [base]
        level = 1
        while level <= self.height:
            below = new_levels[level - 1]
            zero = self.zero_values[level - 1]
            count = (len(base) + (1 << level) - 1) >> level
            layer = []
            i = 0
            while i < count:
                left = below[2 * i] if 2 * i < len(below) else zero
                right = below[2 * i + 1] if 2 * i + 1 < len(below) else zero
                layer.append(self.oracle.hash(left, right))
                i += 1
            new_levels.append(layer)
            level += 1

        self.levels = new_levels
        self.leaf_count = len(base)
        logger.debug("[TREE] initialized with %d leaves, root=%s", self.leaf_count, short_hex(self.root()))


def verify_merkle_proof(oracle, proof: MerkleProof) -> bool:
    """
    Fold the leaf up through the path and compare with the proof root.
    path_indices[level] == 0 -> parent = H(current, sibling)
    path_indices[level] == 1 -> parent = H(sibling, current)
    """
    if len(proof.path_elements) != len(proof.path_indices):
        return False

    cur = proof.leaf
    i = 0
    while i < len(proof.path_elements):
        sib = proof.path_elements[i]
        if proof.path_indices[i] == 0:
            cur = oracle.hash(cur, sib)
        else:
            cur = oracle.hash(sib, cur)
        i += 1

    return cur == proof.root


def build_merkle_tree(oracle, leaves, height=TREE_HEIGHT, zero_leaf=ZERO_LEAF_HEX,
                      zero_values=None) -> IncrementalMerkleTree:
    """
    Empty tree plus one insert per leaf, in the given (emission) order.
    """
    tree = IncrementalMerkleTree(oracle, height=height, zero_leaf=zero_leaf, zero_values=zero_values)
    for leaf in leaves:
        tree.insert(leaf)
    return tree
