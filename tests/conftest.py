"""
Shared fixtures: fake trade streams and settings, no network access.
"""

import asyncio
from typing import Dict, List

import pytest

from cryptoticker.feed.price_store import PriceStore
from cryptoticker.feed.selection import JsonSettingsStore, SelectionPersistence
from cryptoticker.models import Ticker24h

REMOTE_CLOSE = object()


class FakeConnection:
    """Stands in for a websockets client connection."""

    def __init__(self, factory: "FakeStreamFactory", symbol: str, url: str):
        self.factory = factory
        self.symbol = symbol
        self.url = url
        self.frames: asyncio.Queue = asyncio.Queue()
        self.open = False
        self.closed = False

    async def __aenter__(self):
        self.open = True
        self.factory._entered(self.symbol)
        return self

    async def __aexit__(self, *exc):
        self.open = False
        self.closed = True
        self.factory._exited(self.symbol)
        return False

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.frames.get()
        if item is REMOTE_CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    def push(self, frame):
        self.frames.put_nowait(frame)

    def remote_close(self):
        self.frames.put_nowait(REMOTE_CLOSE)

    def fail(self, exc: BaseException):
        self.frames.put_nowait(exc)


class FakeStreamFactory:
    """Connect factory recording every connection per symbol."""

    def __init__(self):
        self.connections: Dict[str, List[FakeConnection]] = {}
        self.failures: Dict[str, int] = {}
        self.errors: Dict[str, BaseException] = {}
        self.live: Dict[str, int] = {}
        self.peak_live: Dict[str, int] = {}
        self.attempts: Dict[str, int] = {}

    def __call__(self, url: str) -> FakeConnection:
        symbol = url.rsplit("/", 1)[-1].split("@")[0]
        self.attempts[symbol] = self.attempts.get(symbol, 0) + 1

        if symbol in self.errors:
            raise self.errors[symbol]
        if self.failures.get(symbol, 0) > 0:
            self.failures[symbol] -= 1
            raise OSError("connection refused")

        conn = FakeConnection(self, symbol, url)
        self.connections.setdefault(symbol, []).append(conn)
        return conn

    def _entered(self, symbol: str):
        self.live[symbol] = self.live.get(symbol, 0) + 1
        self.peak_live[symbol] = max(self.peak_live.get(symbol, 0), self.live[symbol])

    def _exited(self, symbol: str):
        self.live[symbol] -= 1

    def latest(self, symbol: str) -> FakeConnection:
        return self.connections[symbol][-1]

    def count(self, symbol: str) -> int:
        return len(self.connections.get(symbol, []))


class FakeFetcher:
    """Replaces fetch_ticker_24hr with canned responses."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls: List[str] = []

    def __call__(self, symbol: str, base_url: str = "", timeout: float = 0.0) -> Ticker24h:
        self.calls.append(symbol)
        result = self.responses.get(symbol)
        if result is None:
            raise OSError(f"no canned response for {symbol}")
        if isinstance(result, BaseException):
            raise result
        price, change = result
        return Ticker24h(symbol=symbol, last_price=price, change_percent=change)


@pytest.fixture
def store():
    return PriceStore()


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "btcusdt": ("67250.5", "-1.23"),
        "ethusdt": ("3500.12", "2.5"),
        "solusdt": ("145.20", "0.00"),
    })


@pytest.fixture
def settings(tmp_path):
    return JsonSettingsStore(str(tmp_path / "settings.json"))


@pytest.fixture
def persistence(settings):
    return SelectionPersistence(settings)


@pytest.fixture
def wait_until():
    """Poll a predicate until true or timeout."""
    async def _wait(predicate, timeout: float = 2.0):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)
    return _wait
