"""
TUI renderer using rich library.

Renders PriceStore contents to the terminal with live updates.
"""

from typing import Optional

from rich import box
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cryptoticker.catalog import CATALOG, get_currency
from cryptoticker.config import APP_NAME
from cryptoticker.feed.price_store import PriceStore
from cryptoticker.formatting import format_change_column
from cryptoticker.models import ConnectionStatus, PriceSnapshot
from cryptoticker.utils import format_timestamp

STATE_STYLES = {
    ConnectionStatus.DISCONNECTED: ("○", "dim"),
    ConnectionStatus.CONNECTING: ("◌", "yellow"),
    ConnectionStatus.CONNECTED: ("●", "green"),
    ConnectionStatus.ERROR: ("✖", "red"),
}

DISCONNECTED_MARK = "⚠"


def status_line(store: PriceStore) -> str:
    """
    Compact status bar text: icon and price per selected symbol.

    Symbols in ERROR keep their last price with a disconnected marker.
    """
    parts = []
    for symbol in store.selected_symbols():
        currency = get_currency(symbol)
        if currency is None:
            continue
        snapshot = store.get_snapshot(symbol)
        if snapshot.price is None:
            continue
        text = f"{currency.icon} {snapshot.formatted_price}"
        if snapshot.state is not None and snapshot.state.is_error:
            text += DISCONNECTED_MARK
        parts.append(text)

    return " ".join(parts) if parts else APP_NAME.upper()


def _change_text(snapshot: PriceSnapshot) -> Text:
    if snapshot.change is None:
        return Text("-", style="dim")
    column = format_change_column(snapshot.change)
    style = "red" if column.strip().startswith("-") else "green"
    return Text(column, style=style)


def _state_text(snapshot: PriceSnapshot) -> Text:
    if snapshot.state is None:
        return Text("")
    icon, style = STATE_STYLES[snapshot.state.status]
    label = snapshot.state.status.value
    if snapshot.state.is_error:
        label = f"disconnected ({snapshot.state.reason})" if snapshot.state.reason else "disconnected"
    return Text(f"{icon} {label}", style=style)


class TUIRenderer:
    """
    Renders ticker state to terminal.

    Usage:
        renderer = TUIRenderer(store)

        with renderer.live_context():
            while running:
                renderer.update()
                await asyncio.sleep(1.0)
    """

    def __init__(self, store: PriceStore, refresh_rate: float = 4.0, console: Optional[Console] = None):
        self.store = store
        self.console = console or Console()
        self.refresh_rate = refresh_rate
        self._live: Optional[Live] = None

    def live_context(self) -> Live:
        """Get live display context manager."""
        self._live = Live(
            self.render(),
            console=self.console,
            refresh_per_second=self.refresh_rate,
        )
        return self._live

    def update(self):
        """Update display with current store contents."""
        if self._live:
            self._live.update(self.render())

    def render(self) -> Group:
        """Render status line plus catalog table."""
        header = Panel(
            Text(status_line(self.store), style="bold"),
            title=f"[bold blue]{APP_NAME}[/]",
            border_style="blue"
        )
        return Group(header, self.render_table())

    def render_table(self) -> Table:
        """Catalog table, selected symbols marked."""
        table = Table(box=box.SIMPLE, padding=(0, 1))
        table.add_column("", width=1)
        table.add_column("Code", style="bold")
        table.add_column("Name", style="dim")
        table.add_column("Price", justify="right")
        table.add_column("24h", justify="right")
        table.add_column("Stream")
        table.add_column("Updated", style="dim")

        for currency in CATALOG:
            snapshot = self.store.get_snapshot(currency.symbol)
            selected = self.store.is_selected(currency.symbol)

            price = snapshot.formatted_price
            price_text = Text(f"${price}" if price is not None else "Loading...")
            if not selected or price is None:
                price_text.stylize("dim")

            table.add_row(
                "✓" if selected else "",
                currency.code,
                currency.name,
                price_text,
                _change_text(snapshot),
                _state_text(snapshot),
                format_timestamp(snapshot.updated_at),
            )

        return table
