"""
FeedManager tests (no network: fake fetcher and fake streams).

Run with: pytest tests/test_feed_manager.py -v
"""

import asyncio
import pytest
from unittest.mock import Mock

from cryptoticker.config import SELECTION_KEY
from cryptoticker.errors import ConfigurationInvalid
from cryptoticker.feed import FeedManager, FeedState
from cryptoticker.feed.rest_bootstrap import RESTBootstrapper
from cryptoticker.feed.selection import SelectionPersistence
from cryptoticker.feed.stream_supervisor import StreamSupervisor
from cryptoticker.models import ConnectionStatus

SYMBOLS = ["btcusdt", "ethusdt", "solusdt"]


@pytest.fixture
def manager(store, fetcher, stream_factory, persistence):
    return FeedManager(
        store=store,
        bootstrapper=RESTBootstrapper(store, symbols=SYMBOLS, fetcher=fetcher),
        supervisor=StreamSupervisor(store, reconnect_delay=0.05, connect_factory=stream_factory),
        persistence=persistence,
        refresh_interval=60.0
    )


def status(manager, symbol):
    state = manager.get_snapshot(symbol).state
    return state.status if state else None


class TestLifecycle:
    """Test start and shutdown."""

    def test_initial_state(self, manager):
        assert manager.state == FeedState.STOPPED
        assert manager.selected_symbols() == ()

    @pytest.mark.asyncio
    async def test_start(self, manager, fetcher, stream_factory, wait_until):
        assert await manager.start() is True

        assert manager.state == FeedState.RUNNING
        assert manager.selected_symbols() == ("btcusdt",)
        assert sorted(fetcher.calls) == sorted(SYMBOLS)

        # Bootstrap covers every catalog symbol, not only selected ones
        assert manager.get_snapshot("ethusdt").price == "3500.12"
        assert manager.get_snapshot("btcusdt").formatted_change == "-1.23%"

        assert manager.supervisor.open_symbols() == ["btcusdt"]
        await wait_until(lambda: stream_factory.count("btcusdt") == 1)

        await manager.shutdown()
        print("✓ Start loads selection, bootstraps, opens streams")

    @pytest.mark.asyncio
    async def test_start_uses_saved_selection(self, manager, persistence):
        persistence.save(["solusdt", "ethusdt"])

        await manager.start()

        assert manager.selected_symbols() == ("solusdt", "ethusdt")
        assert sorted(manager.supervisor.open_symbols()) == ["ethusdt", "solusdt"]

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_start_twice_refused(self, manager):
        await manager.start()
        assert await manager.start() is False
        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_config_prevents_start(self, manager, stream_factory, monkeypatch):
        monkeypatch.setattr("cryptoticker.config.BINANCE_WS_URL", "not-a-url")

        with pytest.raises(ConfigurationInvalid):
            await manager.start()

        assert manager.state == FeedState.STOPPED
        assert stream_factory.attempts == {}

    @pytest.mark.asyncio
    async def test_failed_start_can_be_retried(self, store, fetcher, stream_factory, settings):
        persistence = SelectionPersistence(settings, default=["shibusdt"])
        manager = FeedManager(
            store=store,
            bootstrapper=RESTBootstrapper(store, symbols=SYMBOLS, fetcher=fetcher),
            supervisor=StreamSupervisor(store, connect_factory=stream_factory),
            persistence=persistence
        )

        with pytest.raises(ValueError):
            await manager.start()

        assert manager.state == FeedState.STOPPED
        assert manager._refresh_task is None
        assert stream_factory.attempts == {}

        persistence.save(["ethusdt"])
        assert await manager.start() is True
        assert manager.state == FeedState.RUNNING
        assert manager.selected_symbols() == ("ethusdt",)

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown(self, manager, stream_factory, wait_until):
        await manager.start()
        await manager.toggle_selection("ethusdt")
        await wait_until(lambda: stream_factory.count("ethusdt") == 1)

        await manager.shutdown()

        assert manager.state == FeedState.STOPPED
        assert manager.supervisor.open_symbols() == []
        assert status(manager, "btcusdt") == ConnectionStatus.DISCONNECTED
        assert status(manager, "ethusdt") == ConnectionStatus.DISCONNECTED
        assert manager._refresh_task is None


class TestToggle:
    """Test selection toggling."""

    @pytest.mark.asyncio
    async def test_toggle_persists_and_opens(self, manager, settings, stream_factory, wait_until):
        await manager.start()

        assert await manager.toggle_selection("ethusdt") is True

        assert manager.selected_symbols() == ("btcusdt", "ethusdt")
        assert settings.load(SELECTION_KEY) == ["btcusdt", "ethusdt"]
        assert "ethusdt" in manager.supervisor.open_symbols()

        await wait_until(lambda: stream_factory.count("ethusdt") == 1)
        stream_factory.latest("ethusdt").push('{"p":"3510.5"}')
        await wait_until(lambda: status(manager, "ethusdt") == ConnectionStatus.CONNECTED)

        assert manager.get_snapshot("ethusdt").price == "3510.5"
        # Change still from bootstrap
        assert manager.get_snapshot("ethusdt").change == "2.5"

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_toggle_off_disconnects(self, manager, settings):
        await manager.start()

        assert await manager.toggle_selection("btcusdt") is False

        assert manager.selected_symbols() == ()
        assert settings.load(SELECTION_KEY) == []
        assert manager.supervisor.handle_count("btcusdt") == 0
        assert status(manager, "btcusdt") == ConnectionStatus.DISCONNECTED
        # Last known values stay readable
        assert manager.get_snapshot("btcusdt").price == "67250.5"

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_double_toggle_idempotent(self, manager, settings):
        await manager.start()
        before_selection = manager.selected_symbols()
        before_open = set(manager.supervisor.open_symbols())

        for symbol in ("ethusdt", "btcusdt"):
            await manager.toggle_selection(symbol)
            await manager.toggle_selection(symbol)

            assert set(manager.selected_symbols()) == set(before_selection)
            assert set(manager.supervisor.open_symbols()) <= before_open
            assert settings.load(SELECTION_KEY) == list(manager.selected_symbols())

        await manager.shutdown()
        print("✓ Double toggle leaves selection and streams unchanged")

    @pytest.mark.asyncio
    async def test_unknown_symbol(self, manager, settings):
        await manager.start()

        with pytest.raises(ValueError):
            await manager.toggle_selection("shibusdt")

        assert manager.selected_symbols() == ("btcusdt",)
        assert settings.load(SELECTION_KEY) is None

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_save_failure_reverts(self, store, fetcher, stream_factory):
        persistence = Mock()
        persistence.load.return_value = ["btcusdt"]
        persistence.save.side_effect = OSError("disk full")

        manager = FeedManager(
            store=store,
            bootstrapper=RESTBootstrapper(store, symbols=SYMBOLS, fetcher=fetcher),
            supervisor=StreamSupervisor(store, connect_factory=stream_factory),
            persistence=persistence
        )
        await manager.start()

        with pytest.raises(OSError):
            await manager.toggle_selection("ethusdt")

        assert manager.selected_symbols() == ("btcusdt",)
        assert "ethusdt" not in manager.supervisor.open_symbols()

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_concurrent_toggles_serialized(self, manager, settings):
        await manager.start()

        await asyncio.gather(
            manager.toggle_selection("ethusdt"),
            manager.toggle_selection("solusdt"),
            manager.toggle_selection("btcusdt"),
        )

        assert set(manager.selected_symbols()) == {"ethusdt", "solusdt"}
        assert settings.load(SELECTION_KEY) == list(manager.selected_symbols())
        assert sorted(manager.supervisor.open_symbols()) == ["ethusdt", "solusdt"]

        await manager.shutdown()


class TestRefresh:
    """Test on-demand and periodic refresh."""

    @pytest.mark.asyncio
    async def test_refresh_all(self, manager, fetcher):
        await manager.start()
        fetcher.responses["btcusdt"] = ("68000", "0.5")

        assert await manager.refresh_all() == 3

        assert manager.get_snapshot("btcusdt").price == "68000"
        assert manager.get_snapshot("btcusdt").formatted_change == "+0.50%"
        assert fetcher.calls.count("btcusdt") == 2

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_periodic_refresh(self, store, fetcher, stream_factory, persistence, wait_until):
        manager = FeedManager(
            store=store,
            bootstrapper=RESTBootstrapper(store, symbols=SYMBOLS, fetcher=fetcher),
            supervisor=StreamSupervisor(store, connect_factory=stream_factory),
            persistence=persistence,
            refresh_interval=0.02
        )
        await manager.start()

        await wait_until(lambda: fetcher.calls.count("btcusdt") >= 3)

        await manager.shutdown()
        await asyncio.sleep(0.05)
        calls = len(fetcher.calls)
        await asyncio.sleep(0.1)
        assert len(fetcher.calls) == calls

        print("✓ Periodic refresh runs until shutdown")
