"""
Terminal UI for the ticker.

Usage:
    from cryptoticker.tui import run_with_tui
    await run_with_tui(manager)
"""

from cryptoticker.tui.renderer import TUIRenderer, status_line
from cryptoticker.tui.runner import TUITickerRunner, run_with_tui

__all__ = ['TUIRenderer', 'TUITickerRunner', 'run_with_tui', 'status_line']
