"""
Plain-text views of the books, the ledger and the bank.

Keys print as ``(price,sequence)`` with the signed key price, so buy
orders show a negative price; values print as ``(quantity,trader_id)``.
"""

from typing import Iterable, List

from ..core.heap import Heap
from ..core.ledger import Ledger, LedgerRecord
from ..core.order import OrderElement

BUY_BOOK_HEADER = "*** Buy Limit Orders ***"
SELL_BOOK_HEADER = "*** Sell Limit Orders ***"
LEDGER_HEADER = "*** Transaction Record ***"
BANK_HEADER = "*** Bank Profit ***"

INDENT_WIDTH = 8


def format_money(amount: float) -> str:
    """Two-decimal rendering used for prices, balances and the bank."""
    return f"{amount:.2f}"


def format_element(element: OrderElement) -> str:
    return str(element)


def format_tree(book: Heap) -> List[str]:
    """
    Sideways dump of a heap's tree, right subtree on top.

    Each node is preceded by an empty line and indented INDENT_WIDTH
    spaces per level below the root.
    """
    lines: List[str] = []
    for element, depth in book.iter_reverse_in_order():
        lines.append("")
        lines.append(" " * (INDENT_WIDTH * depth) + format_element(element))
    return lines


def format_book(book: Heap, header: str) -> str:
    return "\n".join([header] + format_tree(book))


def format_buy_book(book: Heap) -> str:
    return format_book(book, BUY_BOOK_HEADER)


def format_sell_book(book: Heap) -> str:
    return format_book(book, SELL_BOOK_HEADER)


def format_fill_list(fills: Iterable[OrderElement]) -> str:
    return "(" + ",".join(format_element(fill) for fill in fills) + ")"


def format_record(record: LedgerRecord) -> str:
    """``id:balance:holdings:(buy fills):(sell fills)``"""
    return ":".join([
        str(record.trader_id),
        format_money(record.balance),
        str(record.holdings),
        format_fill_list(record.buy_fills),
        format_fill_list(record.sell_fills),
    ])


def format_ledger(ledger: Ledger) -> str:
    return "\n".join([LEDGER_HEADER] + [format_record(record) for record in ledger.records()])


def format_bank(bank: float) -> str:
    return f"{BANK_HEADER}\n$ {format_money(bank)}"
