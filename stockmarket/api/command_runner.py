"""
Command-file driver for the matching engine.

Reads ``buy`` / ``sell`` / ``print`` commands line by line, echoes each
line to the output stream, applies it to the engine and writes the
requested views.
"""

import logging
import sys
from typing import Iterable, Optional, TextIO

from ..config.settings import get_settings
from ..core.exceptions import CommandParseError
from ..core.matching_engine import MatchingEngine
from ..core.order_types import OrderSide
from ..utils import formatting
from .validators import Command, parse_command

logger = logging.getLogger(__name__)


class CommandRunner:
    """
    Applies parsed commands to a matching engine.

    With ``strict=False`` a malformed line is reported on the error
    stream and skipped; with ``strict=True`` the CommandParseError is
    raised. Either way the engine is untouched by a rejected line.
    Quantity and price limits default to the MAX_QUANTITY and MAX_PRICE
    settings.
    """

    def __init__(self, engine: Optional[MatchingEngine] = None, output: Optional[TextIO] = None,
                 errors: Optional[TextIO] = None, strict: bool = False, echo: bool = True,
                 max_quantity: Optional[int] = None, max_price: Optional[float] = None):
        settings = get_settings()
        self.engine = engine if engine is not None else MatchingEngine()
        self.output = output if output is not None else sys.stdout
        self.errors = errors if errors is not None else sys.stderr
        self.strict = strict
        self.echo = echo
        self.max_quantity = max_quantity if max_quantity is not None else settings.max_quantity
        self.max_price = max_price if max_price is not None else settings.max_price
        self.lines_processed = 0
        self.parse_errors = 0

    def run_file(self, path: str) -> int:
        """
        Run every command in a file.

        Returns:
            Number of lines rejected as malformed
        """
        logger.info(f"Running commands from {path}")
        with open(path, "r", encoding="utf-8") as handle:
            return self.run_lines(handle)

    def run_lines(self, lines: Iterable[str]) -> int:
        """
        Run a sequence of command lines.

        Returns:
            Number of lines rejected as malformed
        """
        rejected = 0
        for line in lines:
            if not self.run_line(line):
                rejected += 1
        return rejected

    def run_line(self, line: str) -> bool:
        """
        Echo, parse and execute one line.

        Returns:
            False if the line was rejected as malformed, True otherwise
        """
        self.lines_processed += 1
        if self.echo:
            self._write(line.strip())

        try:
            command = parse_command(line, self.max_quantity, self.max_price)
        except CommandParseError as e:
            self.parse_errors += 1
            if self.strict:
                raise
            logger.warning(f"Rejected line {self.lines_processed}: {e}")
            self.errors.write(f"error: line {self.lines_processed}: {e}\n")
            return False

        if command is not None:
            self.execute(command)
        return True

    def execute(self, command: Command) -> None:
        """Apply a parsed command to the engine."""
        if command.action == "buy":
            self.engine.submit_buy(command.price, command.quantity, command.trader_id)
        elif command.action == "sell":
            self.engine.submit_sell(command.price, command.quantity, command.trader_id)
        elif command.target is None:
            self.print_buy()
            self.print_sell()
            self.print_bank()
        elif command.target == "buy":
            self.print_buy()
        elif command.target == "sell":
            self.print_sell()
        elif command.target == "ledger":
            self.print_ledger()
        else:
            self.print_bank()

    def print_buy(self) -> None:
        with self.engine.lock:
            self._write(formatting.format_buy_book(self.engine.get_book(OrderSide.BUY)))

    def print_sell(self) -> None:
        with self.engine.lock:
            self._write(formatting.format_sell_book(self.engine.get_book(OrderSide.SELL)))

    def print_ledger(self) -> None:
        with self.engine.lock:
            self._write(formatting.format_ledger(self.engine.ledger))

    def print_bank(self) -> None:
        self._write(formatting.format_bank(self.engine.bank))

    def _write(self, text: str) -> None:
        self.output.write(text + "\n")
