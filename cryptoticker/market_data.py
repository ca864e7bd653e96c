"""
Ticker data from the Binance REST API.
"""

from decimal import Decimal, InvalidOperation
from urllib.parse import urlparse

import requests

from cryptoticker.config import BINANCE_REST_URL, REST_TIMEOUT
from cryptoticker.errors import InvalidEndpoint, MalformedPayload, TransportFailure
from cryptoticker.models import Ticker24h


def ticker_url(base_url: str = BINANCE_REST_URL) -> str:
    """
    Build the 24h ticker endpoint URL.

    Raises:
        InvalidEndpoint: If the base URL is not an http(s) URL
    """
    parsed = urlparse(base_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidEndpoint(f"Invalid REST base URL: {base_url!r}")
    return f"{base_url.rstrip('/')}/ticker/24hr"


def _require_numeric_string(data: dict, field: str) -> str:
    value = data.get(field)
    if not isinstance(value, str):
        raise MalformedPayload(f"Missing or non-string field {field!r}")
    try:
        Decimal(value)
    except InvalidOperation:
        raise MalformedPayload(f"Field {field!r} is not numeric: {value!r}")
    return value


def parse_ticker(symbol: str, data) -> Ticker24h:
    """
    Parse a 24h ticker response body.

    Raises:
        MalformedPayload: If the body is not an object with string
            lastPrice and priceChangePercent fields
    """
    if not isinstance(data, dict):
        raise MalformedPayload(f"Expected JSON object, got {type(data).__name__}")

    return Ticker24h(
        symbol=symbol,
        last_price=_require_numeric_string(data, "lastPrice"),
        change_percent=_require_numeric_string(data, "priceChangePercent"),
    )


def fetch_ticker_24hr(
    symbol: str,
    base_url: str = BINANCE_REST_URL,
    timeout: float = REST_TIMEOUT
) -> Ticker24h:
    """
    Fetch the 24h ticker for one symbol.

    Args:
        symbol: Lowercase trading pair, e.g. "btcusdt"
        base_url: REST API base URL
        timeout: Request timeout in seconds

    Returns:
        Ticker24h with last price and 24h percent change

    Raises:
        InvalidEndpoint: Base URL cannot be used
        TransportFailure: Network error, timeout, or non-success status
        MalformedPayload: Body is not the expected shape
    """
    url = ticker_url(base_url)
    params = {"symbol": symbol.upper()}

    try:
        response = requests.get(url, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise TransportFailure(f"{symbol}: {e}") from e

    try:
        data = response.json()
    except ValueError as e:
        raise MalformedPayload(f"{symbol}: invalid JSON") from e

    return parse_ticker(symbol, data)
