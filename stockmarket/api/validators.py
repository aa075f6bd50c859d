"""
Input validation for commands and API requests.

This module validates order fields coming from command files and from
JSON requests, and parses command lines of the form::

    buy <quantity> <price> <trader_id>
    sell <quantity> <price> <trader_id>
    print [buy|sell|ledger|bank]
"""

import math
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple
import logging

from ..core.exceptions import CommandParseError
from ..core.order_types import OrderSide

logger = logging.getLogger(__name__)

# Maximum values
MAX_QUANTITY = 1000000
MAX_PRICE = 10000000.0

PRINT_TARGETS = ("buy", "sell", "ledger", "bank")


def validate_quantity(quantity: Any, max_quantity: int = MAX_QUANTITY) -> Tuple[bool, Optional[str], Optional[int]]:
    """
    Validate order quantity.

    Args:
        quantity: Quantity to validate (int, integral float or digit string)
        max_quantity: Largest accepted quantity

    Returns:
        Tuple of (is_valid, error_message, parsed_quantity)
    """
    if quantity is None:
        return False, "Quantity is required", None

    if isinstance(quantity, bool):
        return False, f"Invalid quantity format: {quantity}", None

    if isinstance(quantity, float):
        if not quantity.is_integer():
            return False, f"Quantity must be a whole number of shares: {quantity}", None
        qty = int(quantity)
    else:
        try:
            qty = int(str(quantity).strip())
        except ValueError:
            return False, f"Invalid quantity format: {quantity}", None

    if qty <= 0:
        return False, "Quantity must be positive", None

    if qty > max_quantity:
        return False, f"Quantity too large. Maximum: {max_quantity}", None

    return True, None, qty


def validate_price(price: Any, max_price: float = MAX_PRICE) -> Tuple[bool, Optional[str], Optional[float]]:
    """
    Validate limit price.

    Args:
        price: Price to validate
        max_price: Largest accepted price

    Returns:
        Tuple of (is_valid, error_message, parsed_price)
    """
    if price is None:
        return False, "Price is required for limit orders", None

    if isinstance(price, bool):
        return False, f"Invalid price format: {price}", None

    try:
        prc = float(str(price).strip())
    except ValueError:
        return False, f"Invalid price format: {price}", None

    if not math.isfinite(prc):
        return False, f"Invalid price format: {price}", None

    if prc <= 0:
        return False, "Price must be positive", None

    if prc > max_price:
        return False, f"Price too large. Maximum: {max_price}", None

    return True, None, prc


def validate_trader_id(trader_id: Any) -> Tuple[bool, Optional[str], Optional[int]]:
    """
    Validate trader id.

    Args:
        trader_id: Trader id to validate

    Returns:
        Tuple of (is_valid, error_message, parsed_trader_id)
    """
    if trader_id is None:
        return False, "Trader id is required", None

    if isinstance(trader_id, (bool, float)):
        return False, f"Invalid trader id format: {trader_id}", None

    try:
        tid = int(str(trader_id).strip())
    except ValueError:
        return False, f"Invalid trader id format: {trader_id}", None

    if tid < 0:
        return False, "Trader id cannot be negative", None

    return True, None, tid


def validate_order_side(side: Any) -> Tuple[bool, Optional[str], Optional[OrderSide]]:
    """
    Validate order side.

    Args:
        side: Order side to validate

    Returns:
        Tuple of (is_valid, error_message, parsed_order_side)
    """
    if not side:
        return False, "Order side is required", None

    if not isinstance(side, str):
        return False, "Order side must be a string", None

    try:
        parsed = OrderSide(side.lower())
    except ValueError:
        valid_sides = [s.value for s in OrderSide]
        return False, f"Invalid order side: {side}. Must be one of: {valid_sides}", None

    return True, None, parsed


def validate_order_request(data: Dict[str, Any], max_quantity: int = MAX_QUANTITY,
                           max_price: float = MAX_PRICE) -> Tuple[bool, Optional[str], Optional[Dict[str, Any]]]:
    """
    Validate an order request body.

    Args:
        data: Order request data with side, quantity, price and trader_id

    Returns:
        Tuple of (is_valid, error_message, parsed_data)
    """
    required_fields = ['side', 'quantity', 'price', 'trader_id']
    for field in required_fields:
        if field not in data:
            return False, f"Missing required field: {field}", None

    is_valid, error, side = validate_order_side(data['side'])
    if not is_valid:
        return False, error, None

    is_valid, error, quantity = validate_quantity(data["quantity"], max_quantity)
    if not is_valid:
        return False, error, None

    is_valid, error, price = validate_price(data["price"], max_price)
    if not is_valid:
        return False, error, None

    is_valid, error, trader_id = validate_trader_id(data['trader_id'])
    if not is_valid:
        return False, error, None

    validated_data = {
        'side': side,
        'quantity': quantity,
        'price': price,
        'trader_id': trader_id,
    }

    return True, None, validated_data


@dataclass(frozen=True)
class Command:
    """
    A parsed input line.

    ``action`` is ``buy``, ``sell`` or ``print``. Order commands carry
    quantity, price and trader id; print commands carry an optional
    target (None prints both books and the bank).
    """
    action: str
    quantity: Optional[int] = None
    price: Optional[float] = None
    trader_id: Optional[int] = None
    target: Optional[str] = None

    @property
    def side(self) -> Optional[OrderSide]:
        if self.action == "print":
            return None
        return OrderSide(self.action)


def parse_command(line: str, max_quantity: int = MAX_QUANTITY,
                  max_price: float = MAX_PRICE) -> Optional[Command]:
    """
    Parse one input line.

    Args:
        line: Raw input line
        max_quantity: Largest accepted share count
        max_price: Largest accepted price

    Returns:
        The parsed command, or None for a blank line

    Raises:
        CommandParseError: On an unknown command word, a wrong number of
            arguments, or a malformed field
    """
    tokens = line.split()
    if not tokens:
        return None

    word = tokens[0].lower()
    args = tokens[1:]

    if word in ("buy", "sell"):
        if len(args) != 3:
            raise CommandParseError(
                f"'{word}' expects 3 arguments (quantity price trader_id), got {len(args)}", line
            )

        is_valid, error, quantity = validate_quantity(args[0], max_quantity)
        if not is_valid:
            raise CommandParseError(error, line)

        is_valid, error, price = validate_price(args[1], max_price)
        if not is_valid:
            raise CommandParseError(error, line)

        is_valid, error, trader_id = validate_trader_id(args[2])
        if not is_valid:
            raise CommandParseError(error, line)

        return Command(action=word, quantity=quantity, price=price, trader_id=trader_id)

    if word == "print":
        if len(args) > 1:
            raise CommandParseError(f"'print' expects at most 1 argument, got {len(args)}", line)
        if not args:
            return Command(action="print")
        target = args[0].lower()
        if target not in PRINT_TARGETS:
            raise CommandParseError(
                f"Invalid print target: {args[0]}. Must be one of: {list(PRINT_TARGETS)}", line
            )
        return Command(action="print", target=target)

    raise CommandParseError(f"Unknown command: {tokens[0]}", line)
