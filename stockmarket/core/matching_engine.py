"""
Limit-order matching engine for a single instrument.

This module contains the MatchingEngine class, which keeps the buy and
sell books as heaps, matches crossing orders under price-time priority,
records fills in the ledger and accumulates the spread captured by the
bank.
"""

import logging
import math
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Callable, Any, Tuple

from .heap import Heap
from .ledger import Ledger
from .order import OrderKey, OrderElement, OrderResult, Trade
from .order_types import OrderSide, signed_price
from ..utils.logger import MarketLogger
from ..utils.performance import PerformanceMonitor, measure_latency

logger = logging.getLogger(__name__)


class MatchingEngine:
    """
    Heap-based matching engine.

    Features:
    - Price-time priority through a single (signed price, sequence) key
    - Partial fills, with the remainder keeping its original priority
    - Spread between crossing buy and sell prices credited to the bank
    - Trade and book callbacks for real-time feeds

    Every submission runs to completion: all crossable trades execute
    before it returns. Mutations and reads are serialized by one lock so
    the engine can sit behind a threaded server.
    """

    def __init__(self, ledger: Optional[Ledger] = None,
                 performance_monitor: Optional[PerformanceMonitor] = None):
        """
        Initialize the matching engine.

        Args:
            ledger: Ledger receiving trade legs (a new one by default)
            performance_monitor: Optional monitor for submission latency
        """
        self.buy_book = Heap("buy book")
        self.sell_book = Heap("sell book")
        self.ledger = ledger if ledger is not None else Ledger()
        self.performance_monitor = performance_monitor

        self._bank = 0.0
        self._sequence = 0
        self._lock = threading.RLock()

        # Callbacks for real-time data
        self.trade_callbacks: List[Callable[[Trade], None]] = []
        self.book_callbacks: List[Callable[[Dict[str, Any]], None]] = []

        # Statistics
        self.total_orders_processed = 0
        self.total_trades_executed = 0
        self.total_shares_traded = 0
        self.start_time = datetime.now(timezone.utc)

        self.market_logger = MarketLogger()
        logger.info("Matching engine initialized")

    @property
    def bank(self) -> float:
        """Total spread captured so far."""
        with self._lock:
            return self._bank

    @property
    def next_sequence(self) -> int:
        """Sequence number the next submission will receive."""
        with self._lock:
            return self._sequence

    def submit_buy(self, price: float, quantity: int, trader_id: int) -> List[Trade]:
        """
        Submit a buy limit order.

        Args:
            price: Highest price the trader will pay per share
            quantity: Number of shares
            trader_id: Trader placing the order

        Returns:
            Trades executed by this submission
        """
        return self.submit_order(OrderSide.BUY, price, quantity, trader_id)

    def submit_sell(self, price: float, quantity: int, trader_id: int) -> List[Trade]:
        """
        Submit a sell limit order.

        Args:
            price: Lowest price the trader will accept per share
            quantity: Number of shares
            trader_id: Trader placing the order

        Returns:
            Trades executed by this submission
        """
        return self.submit_order(OrderSide.SELL, price, quantity, trader_id)

    def submit_order(self, side: OrderSide, price: float, quantity: int, trader_id: int) -> List[Trade]:
        """
        Add a limit order to its book and match until no orders cross.

        Returns:
            Trades executed by this submission

        Raises:
            ValueError: If price, quantity or trader id is invalid; the
                engine is left unchanged
        """
        return self.place_order(side, price, quantity, trader_id).trades

    def place_order(self, side: OrderSide, price: float, quantity: int, trader_id: int) -> OrderResult:
        """
        Same as submit_order, but also reports the key assigned to the
        order and how much of it traded.
        """
        self._validate_order(price, quantity, trader_id)

        with self._lock:
            if self.performance_monitor is not None:
                with measure_latency(self.performance_monitor, "submit_order"):
                    result = self._process_order(side, float(price), quantity, trader_id)
                self.performance_monitor.increment_counter("orders_submitted")
                self.performance_monitor.increment_counter("trades_executed", len(result.trades))
            else:
                result = self._process_order(side, float(price), quantity, trader_id)
            snapshot = self._market_data() if self.book_callbacks else None

        self._notify_trades(result.trades)
        if snapshot is not None:
            self._notify_book(snapshot)

        return result

    def _validate_order(self, price: Any, quantity: Any, trader_id: Any) -> None:
        """
        Validate order parameters.

        Raises:
            ValueError: If any parameter is invalid
        """
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValueError(f"Price must be a number, got: {price!r}")
        try:
            finite = math.isfinite(price)
        except OverflowError:
            raise ValueError(f"Price out of range, got: {price}")
        if not finite or price <= 0:
            raise ValueError(f"Price must be positive, got: {price}")

        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError(f"Quantity must be a whole number of shares, got: {quantity!r}")
        if quantity <= 0:
            raise ValueError(f"Quantity must be positive, got: {quantity}")

        if isinstance(trader_id, bool) or not isinstance(trader_id, int):
            raise ValueError(f"Trader id must be an integer, got: {trader_id!r}")
        if trader_id < 0:
            raise ValueError(f"Trader id cannot be negative, got: {trader_id}")

    def _process_order(self, side: OrderSide, price: float, quantity: int, trader_id: int) -> OrderResult:
        key = OrderKey(signed_price(side, price), self._sequence)
        self._sequence += 1

        self._book_for(side).insert(OrderElement(key=key, quantity=quantity, trader_id=trader_id))
        self.market_logger.log_order_submission(key.sequence, side.value, quantity, price, trader_id)

        result = OrderResult(key=key, quantity=quantity, trader_id=trader_id, trades=self._trade())

        self.total_orders_processed += 1
        self.total_trades_executed += len(result.trades)
        self.total_shares_traded += sum(trade.quantity for trade in result.trades)

        if result.resting_quantity > 0:
            self.market_logger.log_order_resting(key.sequence, side.value, result.resting_quantity)

        logger.debug(f"Processed order {key.sequence}: {len(result.trades)} trades executed")
        return result

    def _book_for(self, side: OrderSide) -> Heap:
        return self.buy_book if side == OrderSide.BUY else self.sell_book

    def _trade(self) -> List[Trade]:
        """Execute trades while the best buy price is at or above the best sell price."""
        trades = []
        while not (self.buy_book.is_empty() or self.sell_book.is_empty()):
            best_buy_price = self.buy_book.min().price
            best_sell_price = self.sell_book.min().price
            if best_buy_price < best_sell_price:
                break
            trades.append(self._process_trade())
        return trades

    def _process_trade(self) -> Trade:
        """
        Match the best buy against the best sell.

        The larger order is split: its remainder goes back into its book
        with the original key, so it keeps its time priority.
        """
        buy_order = self.buy_book.remove_min()
        sell_order = self.sell_book.remove_min()

        traded = min(buy_order.quantity, sell_order.quantity)
        if buy_order.quantity > traded:
            self.buy_book.insert(buy_order.with_quantity(buy_order.quantity - traded))
        elif sell_order.quantity > traded:
            self.sell_book.insert(sell_order.with_quantity(sell_order.quantity - traded))

        buy_fill = buy_order if buy_order.quantity == traded else buy_order.with_quantity(traded)
        sell_fill = sell_order if sell_order.quantity == traded else sell_order.with_quantity(traded)
        trade = Trade(buy_fill=buy_fill, sell_fill=sell_fill)

        self._bank += trade.profit
        self.ledger.record_fill(buy_fill, True)
        self.ledger.record_fill(sell_fill, False)

        self.market_logger.log_trade_execution(
            trade.trade_id, traded, buy_fill.price, sell_fill.price,
            buy_fill.trader_id, sell_fill.trader_id
        )
        return trade

    def best_bid(self) -> Optional[float]:
        """Highest resting buy price, or None if the buy book is empty."""
        with self._lock:
            return None if self.buy_book.is_empty() else self.buy_book.min().price

    def best_ask(self) -> Optional[float]:
        """Lowest resting sell price, or None if the sell book is empty."""
        with self._lock:
            return None if self.sell_book.is_empty() else self.sell_book.min().price

    def get_bbo(self) -> Tuple[Optional[float], Optional[float]]:
        """Get best bid and best offer."""
        with self._lock:
            return self.best_bid(), self.best_ask()

    def get_book(self, side: OrderSide) -> Heap:
        """Book holding resting orders of ``side``."""
        return self._book_for(side)

    @property
    def lock(self):
        """
        Engine lock.

        Hold it while reading the live books or the ledger directly so no
        order is processed halfway through the read.
        """
        return self._lock

    def get_ledger_snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Every ledger record as a dict, keyed by trader id."""
        with self._lock:
            return self.ledger.to_dict()

    def get_ledger_record(self, trader_id: int) -> Optional[Dict[str, Any]]:
        """One trader's ledger record as a dict, or None if they have never traded."""
        with self._lock:
            record = self.ledger.get_record(trader_id)
            return None if record is None else record.to_dict()

    def get_book_snapshot(self, side: OrderSide) -> Dict[str, Any]:
        """
        Serializable view of one book.

        Returns:
            Dictionary with best price, order count, resting quantity and
            the heap's elements grouped by tree level
        """
        with self._lock:
            book = self._book_for(side)
            levels = [[element.to_dict() for element in level] for level in book.levels()]
            return {
                "side": side.value,
                "best_price": None if book.is_empty() else book.min().price,
                "order_count": len(book),
                "total_quantity": sum(element.quantity for element in book),
                "levels": levels,
            }

    def add_trade_callback(self, callback: Callable[[Trade], None]) -> None:
        """Add callback for trade executions."""
        self.trade_callbacks.append(callback)

    def add_book_callback(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Add callback for book updates after each submission."""
        self.book_callbacks.append(callback)

    def _notify_trades(self, trades: List[Trade]) -> None:
        """Notify trade callbacks."""
        for trade in trades:
            for callback in self.trade_callbacks:
                try:
                    callback(trade)
                except Exception as e:
                    logger.error(f"Error in trade callback: {str(e)}")

    def _notify_book(self, market_data: Dict[str, Any]) -> None:
        """Notify book callbacks."""
        for callback in self.book_callbacks:
            try:
                callback(market_data)
            except Exception as e:
                logger.error(f"Error in book callback: {str(e)}")

    def _market_data(self) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "best_bid": self.best_bid(),
            "best_ask": self.best_ask(),
            "bank": self._bank,
            "buy": self.get_book_snapshot(OrderSide.BUY),
            "sell": self.get_book_snapshot(OrderSide.SELL),
        }

    def get_market_data(self) -> Dict[str, Any]:
        """Snapshot of both books, the best prices and the bank."""
        with self._lock:
            return self._market_data()

    def get_statistics(self) -> Dict[str, Any]:
        """Get engine statistics."""
        uptime = datetime.now(timezone.utc) - self.start_time

        with self._lock:
            return {
                "uptime_seconds": uptime.total_seconds(),
                "total_orders_processed": self.total_orders_processed,
                "total_trades_executed": self.total_trades_executed,
                "total_shares_traded": self.total_shares_traded,
                "resting_buy_orders": len(self.buy_book),
                "resting_sell_orders": len(self.sell_book),
                "traders": len(self.ledger),
                "bank": self._bank,
                "orders_per_second": self.total_orders_processed / max(uptime.total_seconds(), 1),
            }
