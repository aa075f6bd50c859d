"""
Tests for the command-file runner.
"""

import io
import os
import tempfile
import threading
import unittest
from unittest import mock

from stockmarket.api.command_runner import CommandRunner
from stockmarket.config.settings import reload_settings
from stockmarket.core.exceptions import CommandParseError


class TestCommandRunner(unittest.TestCase):
    """Test cases for CommandRunner."""

    def setUp(self):
        """Set up test fixtures."""
        self.output = io.StringIO()
        self.errors = io.StringIO()
        self.runner = CommandRunner(output=self.output, errors=self.errors)

    def test_lines_are_echoed_before_output(self):
        """Test each line is echoed and print writes books and bank."""
        rejected = self.runner.run_lines([
            "sell 10 50.00 1\n",
            "buy 15 51.00 2\n",
            "print\n",
        ])

        self.assertEqual(rejected, 0)
        self.assertEqual(self.output.getvalue(), "\n".join([
            "sell 10 50.00 1",
            "buy 15 51.00 2",
            "print",
            "*** Buy Limit Orders ***",
            "",
            "(-51.00,1):(5,2)",
            "*** Sell Limit Orders ***",
            "*** Bank Profit ***",
            "$ 10.00",
            "",
        ]))

    def test_print_targets(self):
        """Test each print target writes only its view."""
        self.runner.echo = False
        self.runner.run_lines(["buy 1 5 3", "print ledger", "print bank", "print sell"])

        self.assertEqual(self.output.getvalue(), "\n".join([
            "*** Transaction Record ***",
            "*** Bank Profit ***",
            "$ 0.00",
            "*** Sell Limit Orders ***",
            "",
        ]))

    def test_malformed_line_is_skipped(self):
        """Test non-strict mode reports the line and keeps going."""
        rejected = self.runner.run_lines(["buy 10 50.00", "sell 5 10 1", "", "print bank"])

        self.assertEqual(rejected, 1)
        self.assertEqual(self.runner.parse_errors, 1)
        self.assertTrue(self.errors.getvalue().startswith("error: line 1: "))
        self.assertEqual(len(self.runner.engine.sell_book), 1)
        self.assertTrue(self.runner.engine.buy_book.is_empty())
        self.assertEqual(self.runner.lines_processed, 4)

    def test_strict_mode_raises(self):
        """Test strict mode stops at the first malformed line."""
        runner = CommandRunner(output=self.output, errors=self.errors, strict=True)

        with self.assertRaises(CommandParseError):
            runner.run_lines(["sell 5 10 1", "bogus", "buy 5 10 2"])

        self.assertEqual(len(runner.engine.sell_book), 1)
        self.assertEqual(runner.engine.bank, 0)

    def test_explicit_limits_reject_large_orders(self):
        """Test lines above the runner's quantity or price limit are rejected."""
        runner = CommandRunner(output=self.output, errors=self.errors, echo=False,
                               max_quantity=10, max_price=100.0)

        rejected = runner.run_lines(["buy 1 150 1", "sell 11 50 2", "buy 10 100 3"])

        self.assertEqual(rejected, 2)
        self.assertEqual(len(runner.engine.buy_book), 1)
        self.assertTrue(runner.engine.sell_book.is_empty())

    def test_limits_default_to_settings(self):
        """Test MAX_QUANTITY and MAX_PRICE bound command-file orders."""
        try:
            with mock.patch.dict(os.environ, {"MAX_QUANTITY": "5", "MAX_PRICE": "20"}):
                reload_settings()
                runner = CommandRunner(output=self.output, errors=self.errors, echo=False)
        finally:
            reload_settings()

        self.assertEqual(runner.max_quantity, 5)
        self.assertEqual(runner.max_price, 20.0)
        self.assertEqual(runner.run_lines(["buy 6 10 1", "buy 5 21 1", "buy 5 20 1"]), 2)

    def test_print_ledger_is_consistent_while_trading(self):
        """Test a printed ledger never shows one leg of a trade without the other."""
        self.runner.echo = False

        def trade_pairs():
            for i in range(500):
                self.runner.engine.submit_sell(10.00, 1, i % 3)
                self.runner.engine.submit_buy(10.00, 1, 3 + i % 3)

        writer = threading.Thread(target=trade_pairs)
        writer.start()
        try:
            while writer.is_alive():
                self.runner.print_ledger()
        finally:
            writer.join()

        for block in self.output.getvalue().split("*** Transaction Record ***")[1:]:
            lines = [line for line in block.splitlines() if line]
            self.assertEqual(sum(int(line.split(":")[2]) for line in lines), 0)

    def test_run_file(self):
        """Test commands are read from a file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "input.txt")
            with open(path, "w", encoding="utf-8") as handle:
                handle.write("buy 5 40.00 3\nsell 5 40.00 4\nprint ledger\n")

            rejected = self.runner.run_file(path)

        self.assertEqual(rejected, 0)
        self.assertIn("3:-200.00:5:((-40.00,0):(5,3)):()", self.output.getvalue())
        self.assertIn("4:200.00:-5:():((40.00,1):(5,4))", self.output.getvalue())

    def test_missing_file_raises(self):
        """Test a missing input file surfaces as FileNotFoundError."""
        with self.assertRaises(FileNotFoundError):
            self.runner.run_file(os.path.join(tempfile.gettempdir(), "no-such-market-input.txt"))


if __name__ == '__main__':
    unittest.main()
