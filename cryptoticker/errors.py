"""
Error types for the price feeds.

Per-symbol errors (InvalidEndpoint, TransportFailure, MalformedPayload) are
handled inside the feed components and never cross symbols. Only
ConfigurationInvalid is allowed to stop the process.
"""


class TickerError(Exception):
    """Base class for all ticker errors."""


class InvalidEndpoint(TickerError):
    """An endpoint URL could not be built for a symbol."""


class TransportFailure(TickerError):
    """Network level failure: connection drop, timeout, DNS, HTTP status."""


class MalformedPayload(TickerError):
    """Response or message could not be parsed or lacks expected fields."""


class ConfigurationInvalid(TickerError, ValueError):
    """Catalog or endpoint configuration failed validation at startup."""
