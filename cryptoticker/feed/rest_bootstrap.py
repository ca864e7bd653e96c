"""
REST bootstrap of price and 24h change for every catalog symbol.

Internal component - use FeedManager instead.
"""

import asyncio
from functools import partial
from typing import Callable, Iterable, List, Optional

from cryptoticker.catalog import catalog_symbols
from cryptoticker.config import BINANCE_REST_URL, REST_TIMEOUT
from cryptoticker.errors import TickerError
from cryptoticker.feed.price_store import PriceStore
from cryptoticker.market_data import fetch_ticker_24hr
from cryptoticker.models import Ticker24h
from cryptoticker.utils import setup_logging

logger = setup_logging()


class RESTBootstrapper:
    """
    Fetches a full 24h snapshot for every known symbol.

    All symbols are fetched concurrently. A failing symbol is logged and
    skipped; it never fails the batch and is not retried until the next run.
    """

    def __init__(
        self,
        data_store: PriceStore,
        symbols: Optional[Iterable[str]] = None,
        base_url: str = BINANCE_REST_URL,
        timeout: float = REST_TIMEOUT,
        fetcher: Callable[..., Ticker24h] = fetch_ticker_24hr
    ):
        self._data_store = data_store
        self._symbols: List[str] = list(symbols) if symbols is not None else catalog_symbols()
        self._base_url = base_url
        self._timeout = timeout
        self._fetcher = fetcher

    @property
    def symbols(self) -> List[str]:
        return list(self._symbols)

    async def fetch_all(self) -> int:
        """
        Fetch every symbol and wait for all of them to finish.

        Returns:
            Number of symbols updated
        """
        results = await asyncio.gather(
            *(self._fetch_symbol(symbol) for symbol in self._symbols)
        )
        updated = sum(1 for ok in results if ok)
        logger.info(f"Bootstrap complete: {updated}/{len(self._symbols)} symbols updated")
        return updated

    async def _fetch_symbol(self, symbol: str) -> bool:
        """Fetch one symbol. Returns False on any failure."""
        # Run sync request in executor to not block
        loop = asyncio.get_running_loop()
        call = partial(self._fetcher, symbol, base_url=self._base_url, timeout=self._timeout)

        try:
            ticker = await loop.run_in_executor(None, call)
        except TickerError as e:
            logger.warning(f"Bootstrap fetch failed for {symbol}: {type(e).__name__}: {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected bootstrap error for {symbol}: {e}")
            return False

        self._data_store.set_price_and_change(symbol, ticker.last_price, ticker.change_percent)
        return True
