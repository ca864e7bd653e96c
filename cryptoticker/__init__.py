"""
CryptoTicker - live crypto price feeds for a terminal ticker.
"""

__version__ = "1.0.0"
