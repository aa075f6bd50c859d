"""
Logging configuration for the stock market.

Console and rotating-file handlers on the root logger, pipe-delimited
order and trade lines from the engine, and a separate audit file that
receives one line per executed trade.
"""

import logging
import logging.handlers
import os
import sys
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
CONSOLE_DATEFMT = "%H:%M:%S"
FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s %(funcName)s:%(lineno)d] %(message)s"
AUDIT_FORMAT = "%(asctime)s|%(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = ("websockets", "asyncio", "werkzeug")


def _ensure_parent_dir(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> None:
    """
    Configure the root logger.

    Console output goes to stderr so that stdout carries only the
    command echo and the printed books.

    Args:
        level: Level name for the root logger and both handlers
        log_file: Rotating log file; console only when None
        max_file_size: Bytes before the file rotates
        backup_count: Rotated files to keep
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT))
    root.addHandler(console)

    if log_file:
        _ensure_parent_dir(log_file)
        rotating = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )
        rotating.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATEFMT))
        root.addHandler(rotating)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    logging.getLogger(__name__).info(
        f"Logging at {logging.getLevelName(numeric_level)} to {log_file or 'stderr only'}"
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class MarketLogger:
    """
    Pipe-delimited event lines for the matching engine.

    Orders log under ``<name>.orders`` and trades under
    ``<name>.trades``, so either stream can be filtered on its own.
    """

    def __init__(self, name: str = "stockmarket"):
        self.events = logging.getLogger(name)
        self.orders = logging.getLogger(f"{name}.orders")
        self.trades = logging.getLogger(f"{name}.trades")

    def log_order_submission(self, sequence: int, side: str, quantity: int, price: float, trader_id: int) -> None:
        self.orders.info(f"ORDER_SUBMIT|{sequence}|{side}|{quantity}|{price:.2f}|{trader_id}")

    def log_order_resting(self, sequence: int, side: str, quantity: int) -> None:
        self.orders.debug(f"ORDER_REST|{sequence}|{side}|{quantity}")

    def log_trade_execution(self, trade_id: str, quantity: int, buy_price: float, sell_price: float,
                            buy_trader_id: int, sell_trader_id: int) -> None:
        self.trades.info(
            f"TRADE_EXEC|{trade_id}|{quantity}|{buy_price:.2f}|{sell_price:.2f}"
            f"|{buy_trader_id}|{sell_trader_id}"
        )

    def log_system_event(self, event: str, details: str = "") -> None:
        self.events.info(f"SYSTEM_EVENT|{event}|{details}")


def create_audit_logger(log_file: str = "logs/audit.log", name: str = "audit") -> logging.Logger:
    """
    Logger that writes only to ``log_file`` and never propagates to root.

    Calling it again for the same name replaces the previous file handler.
    """
    _ensure_parent_dir(log_file)

    audit_logger = logging.getLogger(name)
    audit_logger.setLevel(logging.INFO)
    audit_logger.propagate = False
    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=50 * 1024 * 1024, backupCount=10, encoding="utf-8"
    )
    handler.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt=DATEFMT))
    audit_logger.addHandler(handler)
    return audit_logger


def log_trade_audit(audit_logger: logging.Logger, trade_data: Dict[str, Any]) -> None:
    """
    Write one executed trade to the audit trail.

    Args:
        audit_logger: Logger from create_audit_logger
        trade_data: ``Trade.to_dict()`` output
    """
    def field(key: str) -> Any:
        return trade_data.get(key, "N/A")

    audit_logger.info(
        f"TRADE_EXECUTE|ID:{field('trade_id')}|QTY:{field('quantity')}"
        f"|BUY:{field('buy_price')}@{field('buy_trader_id')}"
        f"|SELL:{field('sell_price')}@{field('sell_trader_id')}"
        f"|PROFIT:{field('profit')}"
    )
