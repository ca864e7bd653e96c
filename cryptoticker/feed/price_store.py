"""
Local storage for prices, connection states and the selection set.
"""

import threading
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from cryptoticker.catalog import catalog_symbols
from cryptoticker.models import ConnectionState, PriceRecord, PriceSnapshot
from cryptoticker.utils import setup_logging

logger = setup_logging()


class StoreEvent(Enum):
    """Change notifications sent to listeners."""
    PRICES_CHANGED = "prices_changed"
    CONNECTION_CHANGED = "connection_changed"
    SELECTION_CHANGED = "selection_changed"


Listener = Callable[[StoreEvent, str], None]


class PriceStore:
    """
    Thread-safe storage for market data.

    Updated by stream messages and REST bootstrap.
    Read by the presentation layer.

    One lock guards all maps. It is held only for the in-memory update;
    listeners run after it is released.
    """

    def __init__(self, known_symbols: Optional[Iterable[str]] = None):
        self._lock = threading.Lock()
        self._known = set(known_symbols if known_symbols is not None else catalog_symbols())
        self._records: Dict[str, PriceRecord] = {}
        self._states: Dict[str, ConnectionState] = {}
        self._selected: List[str] = []
        self._listeners: List[Listener] = []

    # === Listeners ===

    def add_listener(self, callback: Listener):
        """Register a change callback: callback(event, symbol)."""
        with self._lock:
            self._listeners.append(callback)

    def remove_listener(self, callback: Listener):
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _notify(self, event: StoreEvent, symbol: str):
        with self._lock:
            listeners = list(self._listeners)

        for callback in listeners:
            try:
                callback(event, symbol)
            except Exception as e:
                logger.error(f"Listener error on {event.value}: {e}")

    # === Prices ===

    def _record(self, symbol: str) -> PriceRecord:
        record = self._records.get(symbol)
        if record is None:
            record = PriceRecord(symbol=symbol)
            self._records[symbol] = record
        return record

    def set_price(self, symbol: str, price: str):
        """Update last price only (stream path)."""
        with self._lock:
            record = self._record(symbol)
            record.price = price
            record.updated_at = time.time()
        self._notify(StoreEvent.PRICES_CHANGED, symbol)

    def set_price_and_change(self, symbol: str, price: str, change: str):
        """Update last price and 24h change (bootstrap path)."""
        with self._lock:
            record = self._record(symbol)
            record.price = price
            record.change = change
            record.updated_at = time.time()
        self._notify(StoreEvent.PRICES_CHANGED, symbol)

    def get_record(self, symbol: str) -> Optional[PriceRecord]:
        with self._lock:
            record = self._records.get(symbol)
            if record is None:
                return None
            return PriceRecord(record.symbol, record.price, record.change, record.updated_at)

    # === Connection State ===

    def set_connection_state(self, symbol: str, state: ConnectionState):
        with self._lock:
            self._states[symbol] = state
        self._notify(StoreEvent.CONNECTION_CHANGED, symbol)

    def get_connection_state(self, symbol: str) -> Optional[ConnectionState]:
        with self._lock:
            return self._states.get(symbol)

    # === Snapshot ===

    def get_snapshot(self, symbol: str) -> PriceSnapshot:
        """Price, change and state for a symbol. Fields are None until observed."""
        with self._lock:
            record = self._records.get(symbol)
            state = self._states.get(symbol)

        if record is None:
            return PriceSnapshot(symbol=symbol, state=state)

        return PriceSnapshot(
            symbol=symbol,
            price=record.price,
            change=record.change,
            state=state,
            updated_at=record.updated_at
        )

    # === Selection ===

    def selected_symbols(self) -> Tuple[str, ...]:
        """Selected symbols in insertion order."""
        with self._lock:
            return tuple(self._selected)

    def is_selected(self, symbol: str) -> bool:
        with self._lock:
            return symbol in self._selected

    def set_selection(self, symbols: Iterable[str]):
        """
        Replace the selection set (used at load time).

        Raises:
            ValueError: If any symbol is not in the catalog
        """
        ordered: List[str] = []
        for symbol in symbols:
            if symbol not in self._known:
                raise ValueError(f"Unknown symbol: {symbol}")
            if symbol not in ordered:
                ordered.append(symbol)

        with self._lock:
            self._selected = ordered
        self._notify(StoreEvent.SELECTION_CHANGED, "")

    def toggle(self, symbol: str) -> bool:
        """
        Flip selection membership.

        Returns:
            True if the symbol is now selected

        Raises:
            ValueError: If the symbol is not in the catalog
        """
        if symbol not in self._known:
            raise ValueError(f"Unknown symbol: {symbol}")

        with self._lock:
            if symbol in self._selected:
                self._selected.remove(symbol)
                selected = False
            else:
                self._selected.append(symbol)
                selected = True

        self._notify(StoreEvent.SELECTION_CHANGED, symbol)
        return selected
