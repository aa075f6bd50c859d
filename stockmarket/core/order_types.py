"""
Order side definitions for the stock market.

Only limit orders exist, so the side is the single attribute that
changes how an order is keyed inside its book.
"""

from enum import Enum


class OrderSide(Enum):
    """
    Order sides for buy and sell orders.

    - BUY: Orders to purchase shares; keyed by negated price
    - SELL: Orders to sell shares; keyed by price
    """
    BUY = "buy"
    SELL = "sell"


def signed_price(side: OrderSide, price: float) -> float:
    """
    Map a limit price onto the key space of its book.

    Buy prices are negated so that the minimum key of the buy heap is
    the highest bid.
    """
    return -price if side == OrderSide.BUY else price
