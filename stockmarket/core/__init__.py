"""
Core stock market components.

This module contains the ordering key, the shape-tracking binary tree,
the heap priority queue, the ledger and the matching engine.
"""

from .exceptions import MarketError, EmptyTreeError, EmptyHeapError, CommandParseError
from .order_types import OrderSide
from .order import OrderKey, OrderElement, OrderResult, Trade
from .binary_tree import CompleteBinaryTree, Node
from .heap import Heap
from .ledger import Ledger, LedgerRecord
from .matching_engine import MatchingEngine

__all__ = [
    "MarketError",
    "EmptyTreeError",
    "EmptyHeapError",
    "CommandParseError",
    "OrderSide",
    "OrderKey",
    "OrderElement",
    "OrderResult",
    "Trade",
    "CompleteBinaryTree",
    "Node",
    "Heap",
    "Ledger",
    "LedgerRecord",
    "MatchingEngine",
]
