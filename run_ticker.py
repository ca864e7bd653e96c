#!/usr/bin/env python3
"""
Run the crypto ticker with TUI display.

Usage:
    python run_ticker.py                      # Live ticker for saved selection
    python run_ticker.py --toggle ethusdt     # Flip selection, then run
    python run_ticker.py --once               # One REST snapshot, print, exit
    python run_ticker.py --list               # Show catalog
"""

import argparse
import asyncio
import sys

from rich.console import Console

from cryptoticker.catalog import CATALOG, is_known_symbol
from cryptoticker.config import APP_NAME, SETTINGS_PATH, VERSION, validate_config
from cryptoticker.errors import ConfigurationInvalid
from cryptoticker.feed import FeedManager, PriceStore
from cryptoticker.feed.rest_bootstrap import RESTBootstrapper
from cryptoticker.feed.selection import JsonSettingsStore, SelectionPersistence
from cryptoticker.tui import TUIRenderer, run_with_tui
from cryptoticker.utils import setup_logging

logger = setup_logging()


def print_catalog():
    """Print the supported currencies."""
    print(f"\n{APP_NAME} {VERSION} - supported pairs:\n")
    for currency in CATALOG:
        print(f"  {currency.icon:<4} {currency.code:<6} {currency.name:<16} {currency.symbol}")
    print()


def apply_toggles(persistence: SelectionPersistence, symbols):
    """Flip saved selection for each symbol before starting."""
    selection = persistence.load()
    for symbol in symbols:
        symbol = symbol.lower()
        if not is_known_symbol(symbol):
            print(f"Unknown symbol: {symbol} (see --list)")
            sys.exit(2)
        if symbol in selection:
            selection.remove(symbol)
        else:
            selection.append(symbol)
    persistence.save(selection)
    print(f"✓ Selection: {', '.join(selection) or '(none)'}")


async def snapshot_once(persistence: SelectionPersistence):
    """Fetch one REST snapshot and print the table."""
    store = PriceStore()
    store.set_selection(persistence.load())
    await RESTBootstrapper(store).fetch_all()
    Console().print(TUIRenderer(store).render())


def main():
    parser = argparse.ArgumentParser(
        description="Live cryptocurrency prices in the terminal"
    )
    parser.add_argument(
        "--toggle", "-t",
        nargs="+",
        metavar="SYMBOL",
        help="Toggle selection of these symbols (e.g. btcusdt) before starting"
    )
    parser.add_argument(
        "--settings", "-s",
        default=SETTINGS_PATH,
        help=f"Settings file (default: {SETTINGS_PATH})"
    )
    parser.add_argument(
        "--once", "-o",
        action="store_true",
        help="Fetch one REST snapshot, print it and exit"
    )
    parser.add_argument(
        "--list", "-l",
        action="store_true",
        help="List supported currencies and exit"
    )

    args = parser.parse_args()

    if args.list:
        print_catalog()
        return

    try:
        validate_config()
    except ConfigurationInvalid as e:
        logger.error(f"Configuration validation failed: {e}")
        print(f"Invalid configuration: {e}")
        sys.exit(1)

    persistence = SelectionPersistence(JsonSettingsStore(args.settings))

    if args.toggle:
        apply_toggles(persistence, args.toggle)

    if args.once:
        asyncio.run(snapshot_once(persistence))
        return

    # Run
    try:
        asyncio.run(run_with_tui(FeedManager(persistence=persistence)))
    except KeyboardInterrupt:
        print("\nShutdown complete.")


if __name__ == "__main__":
    main()
