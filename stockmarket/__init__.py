"""
Heap-based limit-order stock market simulator.
"""

__version__ = "1.0.0"
