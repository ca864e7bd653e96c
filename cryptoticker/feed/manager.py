"""
FeedManager - simple interface for live ticker prices.

This is the main public interface. Use this, not the internal components.
"""

import asyncio
from enum import Enum, auto
from typing import Optional, Tuple

from cryptoticker.config import REFRESH_INTERVAL, validate_config
from cryptoticker.feed.price_store import PriceStore
from cryptoticker.feed.rest_bootstrap import RESTBootstrapper
from cryptoticker.feed.selection import SelectionPersistence
from cryptoticker.feed.stream_supervisor import StreamSupervisor
from cryptoticker.models import PriceSnapshot
from cryptoticker.utils import setup_logging

logger = setup_logging()


class FeedState(Enum):
    """Feed states - kept simple."""
    STOPPED = auto()   # Not running
    STARTING = auto()  # Loading selection, bootstrapping
    RUNNING = auto()   # Streams open, refresh timer active


class FeedManager:
    """
    Simple interface for live ticker prices.

    Features:
    - Selection loaded from and saved to local settings
    - REST bootstrap at start, on demand, and on a periodic timer
    - One trade stream per selected symbol, reconnected automatically

    Usage:
        manager = FeedManager()
        await manager.start()

        snapshot = manager.get_snapshot("btcusdt")
        await manager.toggle_selection("ethusdt")

        await manager.shutdown()
    """

    def __init__(
        self,
        store: Optional[PriceStore] = None,
        bootstrapper: Optional[RESTBootstrapper] = None,
        supervisor: Optional[StreamSupervisor] = None,
        persistence: Optional[SelectionPersistence] = None,
        refresh_interval: float = REFRESH_INTERVAL
    ):
        """
        Args:
            store: Shared price store (created if omitted)
            bootstrapper: REST bootstrapper writing into the store
            supervisor: Stream supervisor writing into the store
            persistence: Selection persistence
            refresh_interval: Seconds between full REST refreshes
        """
        self._store = store if store is not None else PriceStore()
        self._bootstrapper = bootstrapper if bootstrapper is not None else RESTBootstrapper(self._store)
        self._supervisor = supervisor if supervisor is not None else StreamSupervisor(self._store)
        self._persistence = persistence if persistence is not None else SelectionPersistence()
        self._refresh_interval = refresh_interval

        self._state = FeedState.STOPPED
        self._refresh_task: Optional[asyncio.Task] = None
        self._toggle_lock = asyncio.Lock()

    # === Lifecycle ===

    async def start(self) -> bool:
        """
        Load selection, bootstrap prices, open streams.

        Raises:
            ConfigurationInvalid: If configuration fails validation
            ValueError: If the loaded selection names an unknown symbol.
                The manager is left STOPPED and can be started again.
        """
        if self._state != FeedState.STOPPED:
            logger.warning(f"Cannot start from state {self._state.name}")
            return False

        validate_config()
        self._set_state(FeedState.STARTING)

        try:
            self._store.set_selection(self._persistence.load())
            logger.info(f"Loaded selection: {list(self._store.selected_symbols())}")

            await self._bootstrapper.fetch_all()
            await self._supervisor.reconcile()
        except Exception as e:
            logger.error(f"Start failed: {e}")
            await self._supervisor.close_all()
            self._set_state(FeedState.STOPPED)
            raise

        self._refresh_task = asyncio.create_task(self._refresh_loop())
        self._set_state(FeedState.RUNNING)
        return True

    async def shutdown(self):
        """Stop the refresh timer and close every stream."""
        logger.info("Shutting down FeedManager")

        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

        await self._supervisor.close_all()
        self._set_state(FeedState.STOPPED)

    # === Operations ===

    async def toggle_selection(self, symbol: str) -> bool:
        """
        Flip a symbol's selection, persist it, reconcile streams.

        Store and saved settings agree when this returns; if saving fails
        the flip is undone and the error re-raised.

        Returns:
            True if the symbol is now selected

        Raises:
            ValueError: If the symbol is not in the catalog
        """
        async with self._toggle_lock:
            selected = self._store.toggle(symbol)
            try:
                self._persistence.save(self._store.selected_symbols())
            except Exception as e:
                logger.error(f"Failed to save selection, reverting {symbol}: {e}")
                self._store.toggle(symbol)
                raise

            logger.info(f"{'Selected' if selected else 'Deselected'} {symbol}")
            await self._supervisor.reconcile()
            return selected

    async def refresh_all(self) -> int:
        """Re-run the REST bootstrap now. Returns symbols updated."""
        return await self._bootstrapper.fetch_all()

    # === State ===

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def store(self) -> PriceStore:
        return self._store

    @property
    def supervisor(self) -> StreamSupervisor:
        return self._supervisor

    def get_snapshot(self, symbol: str) -> PriceSnapshot:
        return self._store.get_snapshot(symbol)

    def selected_symbols(self) -> Tuple[str, ...]:
        return self._store.selected_symbols()

    # === Internal Methods ===

    def _set_state(self, new_state: FeedState):
        old_state = self._state
        self._state = new_state
        if old_state != new_state:
            logger.info(f"State: {old_state.name} -> {new_state.name}")

    async def _refresh_loop(self):
        """Periodic full bootstrap as a staleness backstop."""
        while True:
            try:
                await asyncio.sleep(self._refresh_interval)
                await self._bootstrapper.fetch_all()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Refresh error: {e}")
