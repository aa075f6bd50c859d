"""
Tests for the linked complete binary tree.

Shape after every operation is compared against a level-order rebuild,
which is how a complete tree would be laid out in an array.
"""

import unittest

from stockmarket.core.binary_tree import CompleteBinaryTree, Node
from stockmarket.core.exceptions import EmptyTreeError, MarketError


def level_order_nodes(tree):
    """Breadth-first walk that trusts only child links."""
    nodes = []
    queue = [tree.root] if tree.root is not None else []
    while queue:
        node = queue.pop(0)
        nodes.append(node)
        queue.extend(child for child in (node.left, node.right) if child is not None)
    return nodes


class TestCompleteBinaryTree(unittest.TestCase):
    """Test cases for CompleteBinaryTree."""

    def setUp(self):
        """Set up test fixtures."""
        self.tree = CompleteBinaryTree()

    def assertComplete(self, tree):
        nodes = level_order_nodes(tree)
        self.assertEqual(len(nodes), len(tree))
        for i, node in enumerate(nodes):
            # array layout: children of i sit at 2i+1 and 2i+2
            left = nodes[2 * i + 1] if 2 * i + 1 < len(nodes) else None
            right = nodes[2 * i + 2] if 2 * i + 2 < len(nodes) else None
            self.assertIs(node.left, left)
            self.assertIs(node.right, right)
            if i == 0:
                self.assertIsNone(node.parent)
            else:
                self.assertIs(node.parent, nodes[(i - 1) // 2])
        self.assertIs(tree.last_node, nodes[-1] if nodes else None)

    def test_empty_tree(self):
        """Test a new tree has no nodes."""
        self.assertTrue(self.tree.is_empty())
        self.assertEqual(len(self.tree), 0)
        self.assertIsNone(self.tree.root)
        self.assertIsNone(self.tree.last_node)

    def test_add_first_node_becomes_root(self):
        """Test the first node is both root and last node."""
        node = self.tree.add("a")

        self.assertIs(self.tree.root, node)
        self.assertIs(self.tree.last_node, node)
        self.assertIsNone(node.parent)
        self.assertEqual(self.tree.size(), 1)

    def test_add_fills_levels_left_to_right(self):
        """Test adds keep the tree complete through several levels."""
        for i in range(40):
            node = self.tree.add(i)
            self.assertIs(self.tree.last_node, node)
            self.assertComplete(self.tree)

        self.assertEqual([element for level in self.tree.levels() for element in level], list(range(40)))

    def test_remove_returns_last_element(self):
        """Test remove detaches the last node and returns its element."""
        for i in range(10):
            self.tree.add(i)

        for expected in reversed(range(10)):
            self.assertEqual(self.tree.remove(), expected)
            self.assertComplete(self.tree)

        self.assertTrue(self.tree.is_empty())
        self.assertIsNone(self.tree.root)

    def test_remove_across_level_boundary(self):
        """Test the last node moves to the end of the previous level."""
        for i in range(8):
            self.tree.add(i)

        # node 7 opened the fourth level on its own
        self.tree.remove()

        self.assertEqual(self.tree.last_node.element, 6)
        self.assertComplete(self.tree)

    def test_remove_empty_raises(self):
        """Test removing from an empty tree raises."""
        with self.assertRaises(EmptyTreeError):
            self.tree.remove()

        self.assertTrue(issubclass(EmptyTreeError, MarketError))

    def test_interleaved_add_and_remove(self):
        """Test shape stays complete under mixed operations."""
        pattern = [5, 2, 7, 6, 1, 9, 4, 12, 3]
        counter = 0
        for adds in pattern:
            for _ in range(adds):
                self.tree.add(counter)
                counter += 1
                self.assertComplete(self.tree)
            for _ in range(min(3, len(self.tree))):
                self.tree.remove()
                self.assertComplete(self.tree)

    def test_swap_elements_keeps_positions(self):
        """Test swapping moves payloads only."""
        a = self.tree.add("a")
        b = self.tree.add("b")

        CompleteBinaryTree.swap_elements(a, b)

        self.assertEqual(a.element, "b")
        self.assertEqual(b.element, "a")
        self.assertIs(self.tree.root, a)
        self.assertIs(a.left, b)

    def test_ancestor_helpers(self):
        """Test first left/right ancestor lookups."""
        nodes = [self.tree.add(i) for i in range(7)]

        self.assertIsNone(CompleteBinaryTree.first_left_ancestor(None))
        self.assertIsNone(CompleteBinaryTree.first_left_ancestor(nodes[0]))
        self.assertIsNone(CompleteBinaryTree.first_left_ancestor(nodes[6]))
        self.assertIs(CompleteBinaryTree.first_left_ancestor(nodes[4]), nodes[0])
        self.assertIs(CompleteBinaryTree.first_left_ancestor(nodes[5]), nodes[2])

        self.assertIsNone(CompleteBinaryTree.first_right_ancestor(nodes[0]))
        self.assertIsNone(CompleteBinaryTree.first_right_ancestor(nodes[3]))
        self.assertIs(CompleteBinaryTree.first_right_ancestor(nodes[5]), nodes[0])
        self.assertIs(CompleteBinaryTree.first_right_ancestor(nodes[4]), nodes[1])

    def test_descendant_helpers(self):
        """Test leftmost and rightmost descendant lookups."""
        nodes = [self.tree.add(i) for i in range(6)]

        self.assertIsNone(CompleteBinaryTree.last_left_descendant(None))
        self.assertIs(CompleteBinaryTree.last_left_descendant(nodes[0]), nodes[3])
        self.assertIs(CompleteBinaryTree.last_right_descendant(nodes[0]), nodes[2])
        self.assertIs(CompleteBinaryTree.last_right_descendant(nodes[1]), nodes[4])
        self.assertIs(CompleteBinaryTree.last_left_descendant(nodes[5]), nodes[5])

    def test_make_child_links_both_directions(self):
        """Test make_child sets the child slot and the parent link."""
        parent = Node("p")
        child = Node("c")

        CompleteBinaryTree.make_child(parent, child, False)

        self.assertIs(parent.right, child)
        self.assertIsNone(parent.left)
        self.assertIs(child.parent, parent)

        CompleteBinaryTree.make_child(None, child, True)
        self.assertIsNone(child.parent)

    def test_reverse_in_order_depths(self):
        """Test reverse in-order visits right subtree, node, left subtree."""
        for i in range(5):
            self.tree.add(i)

        visited = [(node.element, depth) for node, depth in self.tree.iter_reverse_in_order()]

        self.assertEqual(visited, [(2, 1), (0, 0), (4, 2), (1, 1), (3, 2)])


if __name__ == '__main__':
    unittest.main()
