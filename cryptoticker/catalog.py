"""
Static currency catalog.

The catalog is a fixed ordered list, loaded once at import time.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Currency:
    """Single catalog entry."""
    code: str      # "BTC"
    name: str      # "Bitcoin"
    symbol: str    # "btcusdt" - provider trading pair, lowercase
    icon: str      # Short glyph for the status line


CATALOG: Tuple[Currency, ...] = (
    Currency("BTC", "Bitcoin", "btcusdt", "₿"),
    Currency("ETH", "Ethereum", "ethusdt", "Ξ"),
    Currency("XRP", "XRP", "xrpusdt", "✕"),
    Currency("SOL", "Solana", "solusdt", "S"),
    Currency("BNB", "BNB", "bnbusdt", "B"),
    Currency("DOGE", "Dogecoin", "dogeusdt", "Ɖ"),
    Currency("ADA", "Cardano", "adausdt", "₳"),
    Currency("TRX", "TRON", "trxusdt", "T"),
    Currency("LINK", "Chainlink", "linkusdt", "L"),
    Currency("AVAX", "Avalanche", "avaxusdt", "A"),
    Currency("TRUMP", "Official Trump", "trumpusdt", "TRU"),
)

_BY_SYMBOL = {c.symbol: c for c in CATALOG}


def get_currency(symbol: str) -> Optional[Currency]:
    """Look up a catalog entry by trading-pair symbol."""
    return _BY_SYMBOL.get(symbol)


def catalog_symbols() -> List[str]:
    """All catalog symbols in display order."""
    return [c.symbol for c in CATALOG]


def is_known_symbol(symbol: str) -> bool:
    return symbol in _BY_SYMBOL


def validate_catalog(catalog: Tuple[Currency, ...] = CATALOG) -> List[str]:
    """
    Check catalog entries for problems.

    Returns:
        List of error strings (empty if the catalog is valid)
    """
    errors = []

    if not catalog:
        errors.append("Catalog is empty")

    seen = set()
    for currency in catalog:
        symbol = currency.symbol
        if not symbol or not symbol.isalnum() or symbol != symbol.lower():
            errors.append(f"Invalid symbol for {currency.code}: {symbol!r}")
        if symbol in seen:
            errors.append(f"Duplicate symbol: {symbol}")
        seen.add(symbol)

    return errors
