"""
Utility modules for the stock market.

This module provides logging, performance monitoring and text
formatting of books, ledger and bank.
"""

from .logger import setup_logging, get_logger, MarketLogger
from .performance import PerformanceMonitor, get_performance_monitor, measure_latency

__all__ = [
    "setup_logging",
    "get_logger",
    "MarketLogger",
    "PerformanceMonitor",
    "get_performance_monitor",
    "measure_latency",
]
