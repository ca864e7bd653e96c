"""
Data models for CryptoTicker.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cryptoticker.formatting import format_percent, format_price


class ConnectionStatus(Enum):
    """Stream connection status for one symbol"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ErrorKind(Enum):
    """Why a stream is in ERROR"""
    INVALID_ENDPOINT = "invalid_endpoint"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class ConnectionState:
    """
    Connection state for one symbol.

    error_kind and reason are only set when status is ERROR.
    """
    status: ConnectionStatus
    error_kind: Optional[ErrorKind] = None
    reason: str = ""

    @classmethod
    def disconnected(cls) -> "ConnectionState":
        return cls(ConnectionStatus.DISCONNECTED)

    @classmethod
    def connecting(cls) -> "ConnectionState":
        return cls(ConnectionStatus.CONNECTING)

    @classmethod
    def connected(cls) -> "ConnectionState":
        return cls(ConnectionStatus.CONNECTED)

    @classmethod
    def error(cls, kind: ErrorKind, reason: str = "") -> "ConnectionState":
        return cls(ConnectionStatus.ERROR, error_kind=kind, reason=reason)

    @property
    def is_error(self) -> bool:
        return self.status == ConnectionStatus.ERROR

    @property
    def is_live(self) -> bool:
        return self.status == ConnectionStatus.CONNECTED

    def __str__(self) -> str:
        if self.is_error:
            return f"error({self.error_kind.value}: {self.reason})"
        return self.status.value


@dataclass
class PriceRecord:
    """Last known values for a symbol. Price and change keep the wire strings."""
    symbol: str
    price: Optional[str] = None
    change: Optional[str] = None
    updated_at: float = 0.0


@dataclass(frozen=True)
class PriceSnapshot:
    """Read-only view of one symbol"""
    symbol: str
    price: Optional[str] = None
    change: Optional[str] = None
    state: Optional[ConnectionState] = None
    updated_at: float = 0.0

    @property
    def formatted_price(self) -> Optional[str]:
        return format_price(self.price) if self.price is not None else None

    @property
    def formatted_change(self) -> Optional[str]:
        return format_percent(self.change) if self.change is not None else None


@dataclass(frozen=True)
class Ticker24h:
    """Parsed 24h ticker response"""
    symbol: str
    last_price: str
    change_percent: str
