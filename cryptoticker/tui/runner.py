"""
TUI-enabled ticker runner.

Runs the feed manager with live TUI display.
"""

import asyncio
import signal
from typing import Optional

from cryptoticker.config import UI_REFRESH_INTERVAL
from cryptoticker.feed import FeedManager
from cryptoticker.tui.renderer import TUIRenderer
from cryptoticker.utils import setup_logging

logger = setup_logging()


class TUITickerRunner:
    """
    Runs the feed manager with TUI display.

    SIGINT/SIGTERM stop the runner. SIGUSR1 triggers a REST refresh.

    Usage:
        runner = TUITickerRunner(FeedManager())
        await runner.run()
    """

    def __init__(self, manager: FeedManager, update_interval: float = UI_REFRESH_INTERVAL):
        self.manager = manager
        self.update_interval = update_interval
        self.renderer: Optional[TUIRenderer] = None

        # Control
        self._shutdown_event = asyncio.Event()
        self._loop = None
        self._signals = [signal.SIGINT, signal.SIGTERM]

    def _handle_signal(self):
        """Handle shutdown signal."""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    def _handle_refresh(self):
        asyncio.create_task(self.manager.refresh_all())

    async def run(self):
        """Main run loop with TUI."""
        logger.info("Starting TUI ticker runner...")

        self.renderer = TUIRenderer(self.manager.store)

        # Set up signal handlers on the event loop
        self._loop = asyncio.get_running_loop()
        for sig in self._signals:
            self._loop.add_signal_handler(sig, self._handle_signal)
        if hasattr(signal, "SIGUSR1"):
            self._loop.add_signal_handler(signal.SIGUSR1, self._handle_refresh)

        try:
            with self.renderer.live_context():
                await self.manager.start()

                while not self._shutdown_event.is_set():
                    self.renderer.update()

                    # Use interruptible wait instead of sleep
                    try:
                        await asyncio.wait_for(
                            self._shutdown_event.wait(),
                            timeout=self.update_interval
                        )
                    except asyncio.TimeoutError:
                        pass  # Normal timeout, continue loop

        finally:
            # Remove signal handlers
            if self._loop:
                for sig in self._signals:
                    self._loop.remove_signal_handler(sig)
                if hasattr(signal, "SIGUSR1"):
                    self._loop.remove_signal_handler(signal.SIGUSR1)

            await self.manager.shutdown()


async def run_with_tui(manager: FeedManager):
    """Convenience function to run the ticker with TUI."""
    runner = TUITickerRunner(manager)
    await runner.run()
