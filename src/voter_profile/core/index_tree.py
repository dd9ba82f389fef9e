"""
Binary search tree index over records, keyed by locality code.

Each node owns one Bucket holding every record inserted under its key, in
insertion order. The tree is never rebalanced: its shape is a direct function
of key insertion order, so a sorted load degenerates into a linked list of
height n. Every traversal below is iterative for that reason.

Nodes store references to records owned by the flat store; the index is a
secondary access path, not a copy of the data.
"""

from __future__ import annotations

from typing import Any, Iterator, List, Optional, Tuple

from voter_profile.core.bucket import Bucket
from voter_profile.core.records import VoterProfileRecord


class _Node:
    __slots__ = ("key", "bucket", "left", "right")

    def __init__(self, key: Any) -> None:
        self.key = key
        self.bucket = Bucket()
        self.left: Optional[_Node] = None
        self.right: Optional[_Node] = None


class IndexTree:
    """
    Unbalanced BST with one growable bucket per distinct key.

    Lifecycle: created empty, bulk-loaded once, read-only afterwards.
    Mutations must not overlap with reads.
    """

    def __init__(self) -> None:
        self._root: Optional[_Node] = None
        self._size = 0            # number of nodes (distinct keys)
        self._total_records = 0   # records across all buckets

    @property
    def size(self) -> int:
        return self._size

    @property
    def total_records(self) -> int:
        return self._total_records

    def is_empty(self) -> bool:
        return self._root is None

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: Any) -> bool:
        return self.contains(key)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, key: Any, record: VoterProfileRecord) -> None:
        self._total_records += 1

        if self._root is None:
            self._root = self._new_node(key, record)
            return

        node = self._root
        while True:
            if key == node.key:
                node.bucket.append(record)
                return
            if key < node.key:
                if node.left is None:
                    node.left = self._new_node(key, record)
                    return
                node = node.left
            else:
                if node.right is None:
                    node.right = self._new_node(key, record)
                    return
                node = node.right

    def clear(self) -> None:
        self._root = None
        self._size = 0
        self._total_records = 0

    def _new_node(self, key: Any, record: VoterProfileRecord) -> _Node:
        node = _Node(key)
        node.bucket.append(record)
        self._size += 1
        return node

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _find(self, key: Any) -> Optional[_Node]:
        node = self._root
        while node is not None:
            if key == node.key:
                return node
            node = node.left if key < node.key else node.right
        return None

    def lookup(self, key: Any) -> Optional[Tuple[VoterProfileRecord, ...]]:
        """Records stored under key in insertion order, or None if key is absent."""
        node = self._find(key)
        if node is None:
            return None
        return node.bucket.as_slice()

    def contains(self, key: Any) -> bool:
        return self._find(key) is not None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _walk_in_order(self) -> Iterator[_Node]:
        stack: List[_Node] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node
            node = node.right

    def in_order_keys(self) -> List[Any]:
        return [node.key for node in self._walk_in_order()]

    def in_order_first_records(self) -> List[Tuple[Any, VoterProfileRecord]]:
        """(key, first record inserted under key) pairs, ascending by key, without copying buckets."""
        return [(node.key, node.bucket.first()) for node in self._walk_in_order()]

    def height(self) -> int:
        """0 for an empty tree, else 1 + max(height(left), height(right))."""
        if self._root is None:
            return 0
        best = 0
        stack: List[Tuple[_Node, int]] = [(self._root, 1)]
        while stack:
            node, depth = stack.pop()
            if depth > best:
                best = depth
            if node.left is not None:
                stack.append((node.left, depth + 1))
            if node.right is not None:
                stack.append((node.right, depth + 1))
        return best
