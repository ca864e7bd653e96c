"""
Per-symbol trade stream management.

Internal component - use FeedManager instead.
"""

import asyncio
import json
import ssl
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import AsyncContextManager, Callable, Dict, List, Optional, Union
from urllib.parse import urlparse

import certifi
from websockets.asyncio.client import connect
from websockets.exceptions import InvalidURI

from cryptoticker.config import (
    BINANCE_WS_URL,
    WS_CLOSE_TIMEOUT,
    WS_PING_INTERVAL,
    WS_PING_TIMEOUT,
    WS_RECONNECT_DELAY,
)
from cryptoticker.errors import InvalidEndpoint, MalformedPayload
from cryptoticker.feed.price_store import PriceStore
from cryptoticker.models import ConnectionState, ErrorKind
from cryptoticker.utils import setup_logging

logger = setup_logging()

ConnectFactory = Callable[[str], AsyncContextManager]


def stream_url(base_url: str, symbol: str) -> str:
    """
    Build the trade stream URL for a symbol.

    Raises:
        InvalidEndpoint: If the base URL or symbol cannot form a valid URL
    """
    parsed = urlparse(base_url or "")
    if parsed.scheme not in ("ws", "wss") or not parsed.netloc:
        raise InvalidEndpoint(f"Invalid stream base URL: {base_url!r}")
    if not symbol or not symbol.isalnum() or symbol != symbol.lower():
        raise InvalidEndpoint(f"Invalid stream symbol: {symbol!r}")
    return f"{base_url.rstrip('/')}/{symbol}@trade"


def default_connect(url: str) -> AsyncContextManager:
    """Open a WebSocket connection, using certifi roots for wss://."""
    kwargs = dict(
        ping_interval=WS_PING_INTERVAL,
        ping_timeout=WS_PING_TIMEOUT,
        close_timeout=WS_CLOSE_TIMEOUT
    )
    if url.startswith("wss://"):
        # Create SSL context with certifi for macOS compatibility
        kwargs["ssl"] = ssl.create_default_context(cafile=certifi.where())
    return connect(url, **kwargs)


def parse_trade_price(message: Union[str, bytes]) -> str:
    """
    Extract the trade price string from a trade stream frame.

    Raises:
        MalformedPayload: If the frame is not JSON with a numeric string "p"
    """
    try:
        # Handle bytes or str
        if isinstance(message, bytes):
            message = message.decode("utf-8")
        data = json.loads(message)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayload(f"Unparseable frame: {e}") from e

    if not isinstance(data, dict):
        raise MalformedPayload("Frame is not a JSON object")

    price = data.get("p")
    if not isinstance(price, str):
        raise MalformedPayload("Frame has no string 'p' field")

    try:
        if not Decimal(price).is_finite():
            raise MalformedPayload(f"Non-finite price: {price!r}")
    except InvalidOperation:
        raise MalformedPayload(f"Non-numeric price: {price!r}")

    return price


@dataclass
class StreamHandle:
    """One open trade stream. At most one per symbol."""
    symbol: str
    url: str
    task: Optional[asyncio.Task] = None
    attempts: int = 0
    connected: bool = False
    fatal: bool = False     # Endpoint unusable, never retried


class StreamSupervisor:
    """
    Owns one trade stream per selected symbol.

    Responsibilities:
    - Open a stream for every selected symbol, close streams for the rest
    - Drive each symbol's ConnectionState
    - Write trade prices into the PriceStore
    - Reconnect after a fixed delay, indefinitely, while still selected
    """

    def __init__(
        self,
        data_store: PriceStore,
        base_url: str = BINANCE_WS_URL,
        reconnect_delay: float = WS_RECONNECT_DELAY,
        connect_factory: ConnectFactory = default_connect
    ):
        self._data_store = data_store
        self._base_url = base_url
        self._reconnect_delay = reconnect_delay
        self._connect = connect_factory
        self._handles: Dict[str, StreamHandle] = {}
        self._lock = asyncio.Lock()

    # === Introspection ===

    def open_symbols(self) -> List[str]:
        """Symbols that currently have a stream handle."""
        return list(self._handles.keys())

    def handle_count(self, symbol: str) -> int:
        return 1 if symbol in self._handles else 0

    def get_handle(self, symbol: str) -> Optional[StreamHandle]:
        return self._handles.get(symbol)

    # === Reconciliation ===

    async def reconcile(self):
        """
        Make open streams match the selection set.

        Removed symbols are closed first, then missing ones are opened.
        A symbol that is open and still selected is left alone.
        """
        async with self._lock:
            selected = self._data_store.selected_symbols()

            # Loops that ended on their own (error while briefly deselected)
            stale = [
                s for s, h in self._handles.items()
                if h.task is not None and h.task.done() and not h.fatal
            ]
            to_close = [s for s in self._handles if s not in selected or s in stale]

            for symbol in to_close:
                await self._close(symbol)

            to_open = [s for s in selected if s not in self._handles]
            for symbol in to_open:
                self._open(symbol)

            if to_close or to_open:
                logger.info(f"Reconciled streams: closed={to_close} opened={to_open}")

    async def close_all(self):
        """Close every stream (used on shutdown)."""
        async with self._lock:
            for symbol in list(self._handles.keys()):
                await self._close(symbol)

    def _open(self, symbol: str):
        try:
            url = stream_url(self._base_url, symbol)
        except InvalidEndpoint as e:
            logger.error(f"Cannot open stream for {symbol}: {e}")
            self._handles[symbol] = StreamHandle(symbol=symbol, url="", fatal=True)
            self._data_store.set_connection_state(
                symbol, ConnectionState.error(ErrorKind.INVALID_ENDPOINT, str(e))
            )
            return

        handle = StreamHandle(symbol=symbol, url=url)
        self._handles[symbol] = handle
        handle.task = asyncio.create_task(self._run(handle), name=f"stream-{symbol}")

    async def _close(self, symbol: str):
        handle = self._handles.get(symbol)
        if handle is None:
            return

        # Cancel before dropping the handle so there is never a second live stream
        if handle.task:
            handle.task.cancel()
            try:
                await handle.task
            except asyncio.CancelledError:
                pass

        self._handles.pop(symbol, None)
        self._data_store.set_connection_state(symbol, ConnectionState.disconnected())
        logger.info(f"Stream closed for {symbol}")

    # === Receive Loop ===

    def _is_current(self, handle: StreamHandle) -> bool:
        return (
            self._handles.get(handle.symbol) is handle
            and self._data_store.is_selected(handle.symbol)
        )

    async def _run(self, handle: StreamHandle):
        """Connect, receive until the stream ends, wait, repeat."""
        symbol = handle.symbol

        while self._is_current(handle):
            handle.attempts += 1
            handle.connected = False
            self._data_store.set_connection_state(symbol, ConnectionState.connecting())

            try:
                async with self._connect(handle.url) as ws:
                    logger.info(f"Stream opened for {symbol} (attempt {handle.attempts})")
                    async for message in ws:
                        if not self._is_current(handle):
                            logger.debug(f"Dropping frame for deselected {symbol}")
                            continue
                        self._handle_message(handle, message)
                reason = "closed by remote"

            except InvalidURI as e:
                handle.fatal = True
                logger.error(f"Invalid stream endpoint for {symbol}: {e}")
                self._data_store.set_connection_state(
                    symbol, ConnectionState.error(ErrorKind.INVALID_ENDPOINT, str(e))
                )
                return

            except Exception as e:
                reason = f"{type(e).__name__}: {e}"

            if not self._is_current(handle):
                # Deselected but not yet reconciled: report the loss, do not retry
                if self._handles.get(symbol) is handle:
                    logger.info(f"Stream for deselected {symbol} lost ({reason})")
                    self._data_store.set_connection_state(
                        symbol, ConnectionState.error(ErrorKind.TRANSPORT_FAILURE, reason)
                    )
                return

            logger.warning(f"Stream for {symbol} lost ({reason}), reconnecting in {self._reconnect_delay:.1f}s")
            self._data_store.set_connection_state(
                symbol, ConnectionState.error(ErrorKind.TRANSPORT_FAILURE, reason)
            )
            await asyncio.sleep(self._reconnect_delay)

    def _handle_message(self, handle: StreamHandle, message: Union[str, bytes]):
        try:
            price = parse_trade_price(message)
        except MalformedPayload as e:
            logger.debug(f"Dropping malformed frame for {handle.symbol}: {e}")
            return

        if not handle.connected:
            handle.connected = True
            self._data_store.set_connection_state(handle.symbol, ConnectionState.connected())
            logger.info(f"Stream live for {handle.symbol}")

        self._data_store.set_price(handle.symbol, price)
