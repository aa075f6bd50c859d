"""
Exception hierarchy for the stock market.
"""


class MarketError(Exception):
    """Base class for errors raised by the stock market package."""


class EmptyTreeError(MarketError):
    """Raised when a shape operation needs a node but the tree has none."""


class EmptyHeapError(MarketError):
    """Raised when the minimum of an empty heap is requested."""


class CommandParseError(MarketError, ValueError):
    """
    Raised when an input command cannot be parsed.

    Attributes:
        line: The offending input line
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line
