"""
Tests for the linked binary min-heap.
"""

import random
import unittest

from stockmarket.core.exceptions import EmptyHeapError
from stockmarket.core.heap import Heap
from stockmarket.core.order import OrderElement, OrderKey


def make_element(signed_price, sequence, quantity=1, trader_id=0):
    return OrderElement(key=OrderKey(signed_price, sequence), quantity=quantity, trader_id=trader_id)


class TestHeap(unittest.TestCase):
    """Test cases for Heap."""

    def setUp(self):
        """Set up test fixtures."""
        self.heap = Heap("test heap")
        self.rng = random.Random(1234)

    def assertHeapOrdered(self, heap):
        stack = [heap.root] if heap.root is not None else []
        count = 0
        while stack:
            node = stack.pop()
            count += 1
            for child in (node.left, node.right):
                if child is not None:
                    self.assertLessEqual(node.element.key, child.element.key)
                    self.assertIs(child.parent, node)
                    stack.append(child)
        self.assertEqual(count, len(heap))

    def test_empty_heap(self):
        """Test an empty heap."""
        self.assertTrue(self.heap.is_empty())
        self.assertEqual(len(self.heap), 0)
        self.assertEqual(list(self.heap), [])

    def test_min_on_empty_raises(self):
        """Test min of an empty heap raises."""
        with self.assertRaises(EmptyHeapError):
            self.heap.min()

    def test_remove_min_on_empty_returns_none(self):
        """Test remove_min of an empty heap is a no-op."""
        self.assertIsNone(self.heap.remove_min())
        self.assertTrue(self.heap.is_empty())

    def test_insert_tracks_minimum(self):
        """Test min always reports the smallest key inserted so far."""
        smallest = None
        for sequence in range(50):
            element = make_element(round(self.rng.uniform(1, 100), 2), sequence)
            self.heap.insert(element)
            if smallest is None or element.key < smallest.key:
                smallest = element
            self.assertEqual(self.heap.min(), smallest)
            self.assertHeapOrdered(self.heap)

    def test_remove_min_yields_sorted_order(self):
        """Test draining the heap returns elements in key order."""
        elements = [make_element(round(self.rng.uniform(1, 100), 2), i) for i in range(200)]
        for element in elements:
            self.heap.insert(element)

        drained = []
        while not self.heap.is_empty():
            drained.append(self.heap.remove_min())
            self.assertHeapOrdered(self.heap)

        self.assertEqual(drained, sorted(elements, key=lambda e: e.key))

    def test_equal_prices_break_ties_by_sequence(self):
        """Test earlier sequence wins among equal prices."""
        self.heap.insert(make_element(10.0, 3, trader_id=3))
        self.heap.insert(make_element(10.0, 1, trader_id=1))
        self.heap.insert(make_element(10.0, 2, trader_id=2))

        self.assertEqual([self.heap.remove_min().trader_id for _ in range(3)], [1, 2, 3])

    def test_negated_prices_put_highest_bid_first(self):
        """Test a heap of buy keys returns the highest price first."""
        for sequence, price in enumerate([50.0, 52.5, 49.0, 52.5]):
            self.heap.insert(make_element(-price, sequence))

        self.assertEqual(self.heap.min().price, 52.5)
        self.assertEqual(self.heap.min().key.sequence, 1)

    def test_random_operations_keep_invariants(self):
        """Test order and completeness hold under random inserts and removals."""
        sequence = 0
        for _ in range(500):
            if self.heap.is_empty() or self.rng.random() < 0.6:
                self.heap.insert(make_element(self.rng.choice([1.0, 2.0, 3.0, 4.0]), sequence))
                sequence += 1
            else:
                expected = self.heap.min()
                self.assertEqual(self.heap.remove_min(), expected)
            self.assertHeapOrdered(self.heap)

            nodes = list(self.heap)
            self.assertEqual(len(nodes), len(self.heap))
            if nodes:
                self.assertIs(self.heap.last_node.element, nodes[-1])

    def test_sorted_elements_does_not_mutate(self):
        """Test sorted_elements leaves the heap intact."""
        for i, price in enumerate([5.0, 1.0, 3.0]):
            self.heap.insert(make_element(price, i))

        self.assertEqual([e.price for e in self.heap.sorted_elements()], [1.0, 3.0, 5.0])
        self.assertEqual(len(self.heap), 3)
        self.assertEqual(self.heap.min().price, 1.0)

    def test_levels_group_by_depth(self):
        """Test levels reflect the tree's shape."""
        for i in range(4):
            self.heap.insert(make_element(float(i + 1), i))

        self.assertEqual([len(level) for level in self.heap.levels()], [1, 2, 1])
        self.assertEqual(self.heap.levels()[0][0].price, 1.0)


if __name__ == '__main__':
    unittest.main()
