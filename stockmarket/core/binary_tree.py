"""
Complete binary tree with incremental last-node tracking.

The tree is linked (nodes hold left, right and parent references) and
keeps a reference to the last node in level order. Both the slot where
the next node is attached and the node that becomes last after a removal
are found by walking ancestor/descendant links from the current last
node, so ``add`` and ``remove`` cost O(log n) and never rescan the tree.
"""

from typing import Any, Iterator, List, Optional, Tuple

from .exceptions import EmptyTreeError


class Node:
    """
    A node of a linked binary tree.

    ``parent`` is only a navigation link; a node belongs to the slot of
    its parent (or to the tree's root slot).
    """

    def __init__(self, element: Any, left: "Optional[Node]" = None,
                 right: "Optional[Node]" = None, parent: "Optional[Node]" = None):
        self.element = element
        self.left = left
        self.right = right
        self.parent = parent

    def __repr__(self) -> str:
        return f"Node({self.element})"


class CompleteBinaryTree:
    """
    Shape-only complete binary tree.

    Every level is full except possibly the last, which fills left to
    right. The tree never looks at element values; ordering is left to
    the layer built on top of it.
    """

    def __init__(self):
        self.root: Optional[Node] = None
        self.last_node: Optional[Node] = None
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    # --- Shape queries ---

    @staticmethod
    def make_child(parent: Optional[Node], child: Optional[Node], is_left: bool) -> None:
        """
        Link ``child`` under ``parent`` on the given side.

        Either node may be None; a non-None child gets ``parent`` as its
        parent link.
        """
        if parent is not None:
            if is_left:
                parent.left = child
            else:
                parent.right = child
        if child is not None:
            child.parent = parent

    @staticmethod
    def first_left_ancestor(w: Optional[Node]) -> Optional[Node]:
        """
        First ancestor x of ``w`` such that ``w`` lies in x's left subtree.

        Returns None for None, for the root, and for any node on the
        rightmost path of the tree.
        """
        if w is None:
            return None
        z, x = w, w.parent
        while x is not None and x.right is z:
            z, x = x, x.parent
        return x

    @staticmethod
    def first_right_ancestor(w: Optional[Node]) -> Optional[Node]:
        """
        First ancestor x of ``w`` such that ``w`` lies in x's right subtree.

        Returns None for None, for the root, and for any node on the
        leftmost path of the tree.
        """
        if w is None:
            return None
        z, x = w, w.parent
        while x is not None and x.left is z:
            z, x = x, x.parent
        return x

    @staticmethod
    def last_left_descendant(w: Optional[Node]) -> Optional[Node]:
        """Leftmost node of the subtree rooted at ``w`` (``w`` itself included)."""
        if w is None:
            return None
        while w.left is not None:
            w = w.left
        return w

    @staticmethod
    def last_right_descendant(w: Optional[Node]) -> Optional[Node]:
        """Rightmost node of the subtree rooted at ``w`` (``w`` itself included)."""
        if w is None:
            return None
        while w.right is not None:
            w = w.right
        return w

    def _parent_of_next_slot(self) -> Optional[Node]:
        """Node that receives the next added node as a child; None when empty."""
        z = self.last_node
        if z is None or z.parent is None:
            return z
        if z is z.parent.left:
            return z.parent
        x = self.first_left_ancestor(z)
        if x is None:
            # last level is full, the next one starts below the leftmost node
            return self.last_left_descendant(self.root)
        return self.last_left_descendant(x.right)

    def _previous_slot(self, w: Node) -> Node:
        """Node preceding ``w`` in level order; ``w`` must not be the root."""
        if w is w.parent.right:
            return w.parent.left
        x = self.first_right_ancestor(w)
        if x is None:
            # w opened its level, so the previous level ends at the rightmost node
            return self.last_right_descendant(self.root)
        return self.last_right_descendant(x.left)

    # --- Mutations ---

    def add(self, element: Any) -> Node:
        """
        Attach ``element`` at the next free slot of the last level.

        Args:
            element: Payload for the new node

        Returns:
            The new node, which is also the new last node
        """
        x = Node(element)
        if self.root is None:
            self.root = x
        else:
            y = self._parent_of_next_slot()
            self.make_child(y, x, y.left is None)
        self.last_node = x
        self._size += 1
        return x

    def remove(self) -> Any:
        """
        Detach the last node and return its element.

        Raises:
            EmptyTreeError: If the tree has no nodes
        """
        w = self.last_node
        if w is None:
            raise EmptyTreeError("Cannot remove from an empty tree")

        if w is self.root:
            self.root = None
            self.last_node = None
            self._size = 0
            return w.element

        new_last = self._previous_slot(w)
        parent = w.parent
        if parent.left is w:
            parent.left = None
        else:
            parent.right = None
        w.parent = None
        self._size -= 1
        self.last_node = new_last
        return w.element

    @staticmethod
    def swap_elements(a: Node, b: Node) -> None:
        """Exchange the payloads of two nodes; their positions are unchanged."""
        a.element, b.element = b.element, a.element

    # --- Traversals ---

    def iter_level_order(self) -> Iterator[Node]:
        """Yield nodes level by level, left to right."""
        level = [self.root] if self.root is not None else []
        while level:
            next_level = []
            for node in level:
                yield node
                if node.left is not None:
                    next_level.append(node.left)
                if node.right is not None:
                    next_level.append(node.right)
            level = next_level

    def iter_reverse_in_order(self) -> Iterator[Tuple[Node, int]]:
        """Yield ``(node, depth)`` pairs right subtree first, then node, then left subtree."""
        stack: List[Tuple[Node, int, bool]] = []
        if self.root is not None:
            stack.append((self.root, 0, False))
        while stack:
            node, depth, visited = stack.pop()
            if visited:
                yield node, depth
                continue
            if node.left is not None:
                stack.append((node.left, depth + 1, False))
            stack.append((node, depth, True))
            if node.right is not None:
                stack.append((node.right, depth + 1, False))

    def levels(self) -> List[List[Any]]:
        """Elements grouped by depth, each level left to right."""
        result: List[List[Any]] = []
        level = [self.root] if self.root is not None else []
        while level:
            result.append([node.element for node in level])
            level = [child for node in level for child in (node.left, node.right) if child is not None]
        return result
