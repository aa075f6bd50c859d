"""
WebSocket API for real-time trade and book feeds.

Clients subscribe to the ``trades`` channel (one message per executed
trade) and/or the ``book`` channel (a snapshot of both books and the
bank after every submission).

Client messages are JSON objects with a ``type``:

    {"type": "subscribe", "channel": "trades"}
    {"type": "unsubscribe"}                      # every channel
    {"type": "get_orderbook", "side": "buy"}     # side optional
    {"type": "ping"}
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from ..core.matching_engine import MatchingEngine
from ..core.order import Trade
from .validators import validate_order_side

logger = logging.getLogger(__name__)

CHANNELS = ("trades", "book")

Handler = Callable[[Any, Dict[str, Any]], Awaitable[None]]


def _stamped(message_type: str, **fields: Any) -> Dict[str, Any]:
    message = {'type': message_type}
    message.update(fields)
    message['timestamp'] = datetime.now(timezone.utc).isoformat()
    return message


class WebSocketServer:
    """
    Pushes engine events to subscribed WebSocket clients.

    Engine callbacks may fire on any thread (the REST server runs its
    own), so broadcasts are handed to the server's event loop with
    ``asyncio.run_coroutine_threadsafe``. Until ``start`` has captured
    that loop, events are dropped.
    """

    def __init__(self, matching_engine: MatchingEngine, host: str = 'localhost', port: int = 8765,
                 ping_interval: int = 20, ping_timeout: int = 10):
        """
        Args:
            matching_engine: Engine whose trades and books are published
            host: Bind address
            port: Bind port
            ping_interval: Seconds between keepalive pings
            ping_timeout: Seconds to wait for a pong
        """
        self.engine = matching_engine
        self.host = host
        self.port = port
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout

        self.clients: Set[Any] = set()
        self.subscriptions: Dict[Any, Set[str]] = {}
        self._loop: Optional[asyncio.AbstractEventLoop] = None

        self._handlers: Dict[str, Handler] = {
            'subscribe': self._subscribe,
            'unsubscribe': self._unsubscribe,
            'get_orderbook': self._get_orderbook,
            'ping': self._pong,
        }

        self.engine.add_trade_callback(self._on_trade)
        self.engine.add_book_callback(self._on_book)

    async def start(self) -> None:
        """Serve until the surrounding task is cancelled."""
        self._loop = asyncio.get_running_loop()
        logger.info(f"WebSocket feed listening on ws://{self.host}:{self.port}")

        async with websockets.serve(
            self._handle_client,
            self.host,
            self.port,
            ping_interval=self.ping_interval,
            ping_timeout=self.ping_timeout,
        ):
            await asyncio.Future()

    async def _handle_client(self, websocket, path: Optional[str] = None) -> None:
        # ``path`` is only passed by websockets releases before 10.1
        peer = websocket.remote_address
        self.clients.add(websocket)
        self.subscriptions[websocket] = set()
        logger.info(f"Feed client connected: {peer} ({len(self.clients)} total)")

        try:
            await self._send(websocket, _stamped('connection', status='connected', channels=list(CHANNELS)))
            async for raw in websocket:
                await self._handle_message(websocket, raw)
        except ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            self.subscriptions.pop(websocket, None)
            logger.info(f"Feed client disconnected: {peer}")

    async def _handle_message(self, websocket, raw: str) -> None:
        """Decode one client message and dispatch it by ``type``."""
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            await self._send_error(websocket, "Invalid JSON format")
            return

        if not isinstance(data, dict):
            await self._send_error(websocket, "Message must be a JSON object")
            return

        message_type = str(data.get('type', '')).lower()
        handler = self._handlers.get(message_type)
        if handler is None:
            await self._send_error(websocket, f"Unknown message type: {message_type}")
            return
        await handler(websocket, data)

    async def _subscribe(self, websocket, data: Dict[str, Any]) -> None:
        channel = str(data.get('channel', '')).lower()
        if channel not in CHANNELS:
            await self._send_error(websocket, f"Invalid channel: {channel}. Must be one of: {list(CHANNELS)}")
            return

        self.subscriptions[websocket].add(channel)
        await self._send(websocket, _stamped('subscription', status='subscribed', channel=channel))

        # book subscribers start from the current state, not the next change
        if channel == 'book':
            await self._send(websocket, self._book_message(self.engine.get_market_data()))

    async def _unsubscribe(self, websocket, data: Dict[str, Any]) -> None:
        channel = str(data.get('channel', '')).lower()
        if not channel:
            self.subscriptions[websocket].clear()
            await self._send(websocket, _stamped('subscription', status='unsubscribed_all'))
            return

        self.subscriptions[websocket].discard(channel)
        await self._send(websocket, _stamped('subscription', status='unsubscribed', channel=channel))

    async def _get_orderbook(self, websocket, data: Dict[str, Any]) -> None:
        if data.get('side') is None:
            await self._send(websocket, self._book_message(self.engine.get_market_data()))
            return

        is_valid, error, side = validate_order_side(data['side'])
        if not is_valid:
            await self._send_error(websocket, error)
            return

        await self._send(websocket, _stamped('orderbook', **self.engine.get_book_snapshot(side)))

    async def _pong(self, websocket, data: Dict[str, Any]) -> None:
        await self._send(websocket, _stamped('pong'))

    @staticmethod
    def _book_message(market_data: Dict[str, Any]) -> Dict[str, Any]:
        message = {'type': 'book'}
        message.update(market_data)
        return message

    @staticmethod
    def _trade_message(trade: Trade) -> Dict[str, Any]:
        message = {'type': 'trade'}
        message.update(trade.to_dict())
        return message

    async def _send(self, websocket, message: Dict[str, Any]) -> None:
        try:
            await websocket.send(json.dumps(message))
        except ConnectionClosed:
            logger.debug("Dropped message for a closed feed connection")

    async def _send_error(self, websocket, error_message: str) -> None:
        await self._send(websocket, _stamped('error', message=error_message))

    def _schedule(self, channel: str, message: Dict[str, Any]) -> None:
        if self._loop is None or self._loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self._broadcast(channel, message), self._loop)

    def _on_trade(self, trade: Trade) -> None:
        self._schedule('trades', self._trade_message(trade))

    def _on_book(self, market_data: Dict[str, Any]) -> None:
        self._schedule('book', self._book_message(market_data))

    async def _broadcast(self, channel: str, message: Dict[str, Any]) -> None:
        """Send ``message`` to every client subscribed to ``channel``."""
        targets = [ws for ws in list(self.clients) if channel in self.subscriptions.get(ws, ())]
        if targets:
            await asyncio.gather(*(self._send(ws, message) for ws in targets), return_exceptions=True)

    def get_subscription_count(self) -> Dict[str, int]:
        """Number of subscribed clients per channel."""
        return {
            channel: sum(1 for channels in self.subscriptions.values() if channel in channels)
            for channel in CHANNELS
        }
