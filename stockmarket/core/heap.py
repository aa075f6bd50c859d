"""
Binary min-heap priority queue on a linked complete binary tree.

Elements must expose a comparable ``key``. Shape bookkeeping lives in
``CompleteBinaryTree``; this module only moves payloads between nodes to
restore heap order.
"""

import logging
from typing import Any, Iterator, List, Optional

from .binary_tree import CompleteBinaryTree, Node
from .exceptions import EmptyHeapError

logger = logging.getLogger(__name__)


class Heap:
    """
    Min-heap keyed by ``element.key``.

    Invariants after every public call:
    - the underlying tree is complete
    - every node's key is <= the keys of its children
    """

    def __init__(self, name: str = "heap"):
        """
        Initialize an empty heap.

        Args:
            name: Label used in log messages
        """
        self.name = name
        self._tree = CompleteBinaryTree()

    def __len__(self) -> int:
        return len(self._tree)

    def is_empty(self) -> bool:
        return self._tree.is_empty()

    @property
    def root(self) -> Optional[Node]:
        """Root node, for read-only traversal."""
        return self._tree.root

    @property
    def last_node(self) -> Optional[Node]:
        return self._tree.last_node

    def insert(self, element: Any) -> None:
        """
        Insert an element and restore heap order.

        Args:
            element: Element with a comparable ``key``
        """
        node = self._tree.add(element)
        self._up_heap_bubbling(node)

    def min(self) -> Any:
        """
        Get the minimum element without removing it.

        Raises:
            EmptyHeapError: If the heap is empty
        """
        if self._tree.root is None:
            raise EmptyHeapError(f"{self.name} is empty")
        return self._tree.root.element

    def remove_min(self) -> Optional[Any]:
        """
        Remove the minimum element.

        Returns:
            The removed element, or None if the heap was already empty
        """
        if self._tree.is_empty():
            logger.debug(f"remove_min on empty {self.name} ignored")
            return None

        if len(self._tree) == 1:
            return self._tree.remove()

        self._tree.swap_elements(self._tree.root, self._tree.last_node)
        element = self._tree.remove()
        self._down_heap_bubbling(self._tree.root)
        return element

    @staticmethod
    def min_child(w: Node) -> Optional[Node]:
        """Child of ``w`` with the smaller key, or None for a leaf."""
        left, right = w.left, w.right
        if right is None:
            return left
        if left is None:
            return right
        return left if left.element.key < right.element.key else right

    def _up_heap_bubbling(self, w: Node) -> None:
        z = w.parent
        while z is not None and w.element.key < z.element.key:
            self._tree.swap_elements(w, z)
            w, z = z, z.parent

    def _down_heap_bubbling(self, w: Optional[Node]) -> None:
        while w is not None:
            child = self.min_child(w)
            if child is None or not child.element.key < w.element.key:
                break
            self._tree.swap_elements(w, child)
            w = child

    def __iter__(self) -> Iterator[Any]:
        """Iterate elements in level order (not sorted)."""
        for node in self._tree.iter_level_order():
            yield node.element

    def levels(self) -> List[List[Any]]:
        """Elements grouped by tree depth."""
        return self._tree.levels()

    def iter_reverse_in_order(self):
        """Yield ``(element, depth)`` pairs in reverse in-order."""
        for node, depth in self._tree.iter_reverse_in_order():
            yield node.element, depth

    def sorted_elements(self) -> List[Any]:
        """All elements in ascending key order; the heap is left untouched."""
        return sorted(self, key=lambda element: element.key)

    def __repr__(self) -> str:
        return f"Heap(name={self.name!r}, size={len(self)})"
