"""
Ledger of executed fills, keyed by trader id.

Each trade leg updates exactly one trader record: buys pay their limit
price and add holdings, sells receive their limit price and remove
holdings.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any

from .order import OrderElement

logger = logging.getLogger(__name__)


@dataclass
class LedgerRecord:
    """
    Financial record of one trader.

    Records are created on the trader's first fill and are only ever
    updated additively afterwards.
    """

    trader_id: int
    balance: float = 0.0
    holdings: int = 0
    buy_fills: List[OrderElement] = field(default_factory=list)
    sell_fills: List[OrderElement] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary for serialization."""
        return {
            "trader_id": self.trader_id,
            "balance": self.balance,
            "holdings": self.holdings,
            "buy_fills": [fill.to_dict() for fill in self.buy_fills],
            "sell_fills": [fill.to_dict() for fill in self.sell_fills],
        }


class Ledger:
    """
    Transaction records for every trader that has been filled.
    """

    def __init__(self):
        self._records: Dict[int, LedgerRecord] = {}

    def record_fill(self, element: OrderElement, is_buy: bool) -> LedgerRecord:
        """
        Record one trade leg.

        Args:
            element: The fill; its quantity is the traded quantity and its
                key price is the trader's own limit price
            is_buy: True for the buy leg, False for the sell leg

        Returns:
            The trader's updated record
        """
        record = self._records.get(element.trader_id)
        if record is None:
            record = LedgerRecord(trader_id=element.trader_id)
            self._records[element.trader_id] = record
            logger.debug(f"Opened ledger record for trader {element.trader_id}")

        if is_buy:
            record.balance -= element.notional_value
            record.holdings += element.quantity
            record.buy_fills.append(element)
        else:
            record.balance += element.notional_value
            record.holdings -= element.quantity
            record.sell_fills.append(element)

        return record

    def buy(self, element: OrderElement) -> LedgerRecord:
        return self.record_fill(element, True)

    def sell(self, element: OrderElement) -> LedgerRecord:
        return self.record_fill(element, False)

    def get_record(self, trader_id: int) -> Optional[LedgerRecord]:
        """Get a trader's record, or None if the trader has no fills."""
        return self._records.get(trader_id)

    def records(self) -> List[LedgerRecord]:
        """All records in ascending trader id order."""
        return [self._records[trader_id] for trader_id in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)

    def to_dict(self) -> Dict[str, Any]:
        return {str(record.trader_id): record.to_dict() for record in self.records()}
