"""
API layer for the stock market.

This module provides the command-file runner, the REST API, the
WebSocket feeds and the input validation they share.
"""

from .validators import Command, parse_command, validate_order_request
from .command_runner import CommandRunner
from .rest_api import create_app
from .websocket_api import WebSocketServer

__all__ = [
    "Command",
    "parse_command",
    "validate_order_request",
    "CommandRunner",
    "create_app",
    "WebSocketServer",
]
