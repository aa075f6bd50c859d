"""
Order key, order element and trade data structures.

Keys carry both price and time priority in one comparable value, so the
books never need a separate queue per price level.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List

from .order_types import OrderSide


@dataclass(frozen=True, order=True)
class OrderKey:
    """
    Priority key of a resting order.

    Ordering compares ``signed_price`` first and ``sequence`` second, so
    among equal prices the earlier submission is the smaller key.
    """

    signed_price: float
    sequence: int

    @property
    def side(self) -> OrderSide:
        """Side encoded by the sign of the key price."""
        return OrderSide.BUY if self.signed_price < 0 else OrderSide.SELL

    @property
    def price(self) -> float:
        """Limit price as submitted by the trader."""
        return abs(self.signed_price)

    def __str__(self) -> str:
        return f"({self.signed_price:.2f},{self.sequence})"


@dataclass(frozen=True)
class OrderElement:
    """
    A resting order, or one leg of an executed trade.

    Elements are immutable: a partially filled order is put back in its
    book as a new element with the same key and a smaller quantity.
    """

    key: OrderKey
    quantity: int
    trader_id: int

    def __post_init__(self):
        """Validate element after initialization."""
        if self.quantity <= 0:
            raise ValueError(f"Quantity must be positive, got: {self.quantity}")
        if self.trader_id < 0:
            raise ValueError(f"Trader id cannot be negative, got: {self.trader_id}")

    @property
    def price(self) -> float:
        return self.key.price

    @property
    def side(self) -> OrderSide:
        return self.key.side

    @property
    def notional_value(self) -> float:
        """Cash value of the element at its own limit price."""
        return self.price * self.quantity

    def with_quantity(self, quantity: int) -> "OrderElement":
        """Copy of this element keeping key and trader but holding ``quantity`` shares."""
        return OrderElement(key=self.key, quantity=quantity, trader_id=self.trader_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary for serialization."""
        return {
            "side": self.side.value,
            "price": self.price,
            "sequence": self.key.sequence,
            "quantity": self.quantity,
            "trader_id": self.trader_id,
        }

    def __str__(self) -> str:
        return f"{self.key}:({self.quantity},{self.trader_id})"


@dataclass
class Trade:
    """
    Represents one execution between the best buy and the best sell.

    Each leg carries the traded quantity at its own limit price; the
    difference between the two prices is the spread captured by the bank.
    """

    buy_fill: OrderElement
    sell_fill: OrderElement

    # Trade identification
    trade_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        """Validate trade after initialization."""
        self._validate()

    def _validate(self) -> None:
        """
        Validate trade legs.

        Raises:
            ValueError: If the legs do not describe a crossing trade
        """
        if self.buy_fill.side != OrderSide.BUY:
            raise ValueError("Buy fill must carry a buy-side key")

        if self.sell_fill.side != OrderSide.SELL:
            raise ValueError("Sell fill must carry a sell-side key")

        if self.buy_fill.quantity != self.sell_fill.quantity:
            raise ValueError(
                f"Trade legs disagree on quantity: {self.buy_fill.quantity} != {self.sell_fill.quantity}"
            )

        if self.buy_fill.price < self.sell_fill.price:
            raise ValueError(
                f"Buy price {self.buy_fill.price} is below sell price {self.sell_fill.price}"
            )

    @property
    def quantity(self) -> int:
        return self.buy_fill.quantity

    @property
    def spread(self) -> float:
        """Per-share difference between the buy and sell prices."""
        return self.buy_fill.price - self.sell_fill.price

    @property
    def profit(self) -> float:
        """Amount credited to the bank for this trade."""
        return self.spread * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        """Convert trade to dictionary for serialization."""
        return {
            "trade_id": self.trade_id,
            "quantity": self.quantity,
            "buy_price": self.buy_fill.price,
            "sell_price": self.sell_fill.price,
            "buy_trader_id": self.buy_fill.trader_id,
            "sell_trader_id": self.sell_fill.trader_id,
            "spread": self.spread,
            "profit": self.profit,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class OrderResult:
    """
    Outcome of one submission: the key it was given and the trades it
    triggered.
    """

    key: OrderKey
    quantity: int
    trader_id: int
    trades: List[Trade] = field(default_factory=list)

    @property
    def filled_quantity(self) -> int:
        """Shares of this order that traded during its submission."""
        return sum(
            trade.quantity for trade in self.trades
            if (trade.buy_fill if self.key.side == OrderSide.BUY else trade.sell_fill).key == self.key
        )

    @property
    def resting_quantity(self) -> int:
        """Shares left in the book once matching stopped."""
        return self.quantity - self.filled_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.key.sequence,
            "side": self.key.side.value,
            "price": self.key.price,
            "quantity": self.quantity,
            "trader_id": self.trader_id,
            "filled_quantity": self.filled_quantity,
            "resting_quantity": self.resting_quantity,
            "trades": [trade.to_dict() for trade in self.trades],
        }
