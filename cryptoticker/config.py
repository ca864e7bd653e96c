"""
Configuration management.

Loads settings from environment variables.
"""

import os
from pathlib import Path
from urllib.parse import urlparse
from dotenv import load_dotenv

from cryptoticker.catalog import catalog_symbols, validate_catalog
from cryptoticker.errors import ConfigurationInvalid

load_dotenv()


# === App ===
APP_NAME = "CryptoTicker"
VERSION = "1.0.0"

# === API Endpoints ===
BINANCE_REST_URL = os.getenv("BINANCE_REST_URL", "https://api.binance.com/api/v3")
BINANCE_WS_URL = os.getenv("BINANCE_WS_URL", "wss://stream.binance.com:9443/ws")
REST_TIMEOUT = float(os.getenv("REST_TIMEOUT", "10.0"))

# === WebSocket ===
WS_RECONNECT_DELAY = float(os.getenv("WS_RECONNECT_DELAY", "5.0"))
WS_PING_INTERVAL = float(os.getenv("WS_PING_INTERVAL", "20.0"))
WS_PING_TIMEOUT = float(os.getenv("WS_PING_TIMEOUT", "10.0"))
WS_CLOSE_TIMEOUT = float(os.getenv("WS_CLOSE_TIMEOUT", "5.0"))

# === Refresh ===
REFRESH_INTERVAL = float(os.getenv("REFRESH_INTERVAL", "60.0"))    # Full REST bootstrap backstop
UI_REFRESH_INTERVAL = float(os.getenv("UI_REFRESH_INTERVAL", "1.0"))

# === Persistence ===
SETTINGS_PATH = os.getenv(
    "SETTINGS_PATH",
    str(Path.home() / ".cryptoticker" / "settings.json")
)
SELECTION_KEY = "selectedCryptos"
DEFAULT_SELECTION = ("btcusdt",)

# === Logging ===
LOG_DIR = os.getenv("LOG_DIR")


def _is_url(value: str, schemes: tuple) -> bool:
    parsed = urlparse(value or "")
    return parsed.scheme in schemes and bool(parsed.netloc)


def validate_config():
    """Validate configuration. Raises ConfigurationInvalid if invalid."""
    errors = []

    if not _is_url(BINANCE_REST_URL, ("http", "https")):
        errors.append(f"Invalid BINANCE_REST_URL: {BINANCE_REST_URL!r}")

    if not _is_url(BINANCE_WS_URL, ("ws", "wss")):
        errors.append(f"Invalid BINANCE_WS_URL: {BINANCE_WS_URL!r}")

    if REST_TIMEOUT <= 0:
        errors.append(f"REST_TIMEOUT must be positive: {REST_TIMEOUT}")

    if WS_RECONNECT_DELAY <= 0:
        errors.append(f"WS_RECONNECT_DELAY must be positive: {WS_RECONNECT_DELAY}")

    if REFRESH_INTERVAL <= 0:
        errors.append(f"REFRESH_INTERVAL must be positive: {REFRESH_INTERVAL}")

    if UI_REFRESH_INTERVAL <= 0:
        errors.append(f"UI_REFRESH_INTERVAL must be positive: {UI_REFRESH_INTERVAL}")

    errors.extend(validate_catalog())

    known = set(catalog_symbols())
    for symbol in DEFAULT_SELECTION:
        if symbol not in known:
            errors.append(f"Default selection {symbol!r} is not in the catalog")

    if errors:
        raise ConfigurationInvalid("Configuration errors: " + "; ".join(errors))
