"""
Utility functions for CryptoTicker
"""

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from cryptoticker.config import LOG_DIR


def setup_logging(log_dir: str = None):
    """
    Configure Python logging for the application

    Sets up console handler and rotating file handler.
    Logs are saved to logs/ directory with 10MB rotation, keeping 5 backups.

    Args:
        log_dir: Optional custom log directory. Defaults to LOG_DIR or ./logs/

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger("cryptoticker")
    logger.setLevel(logging.INFO)

    if not logger.handlers:
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

        # File handler with rotation
        if log_dir is None:
            log_dir = LOG_DIR
        if log_dir is None:
            log_dir = Path(__file__).parent.parent / "logs"
        else:
            log_dir = Path(log_dir)

        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "ticker.log"

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def format_timestamp(ts):
    """
    Format a timestamp for display

    Args:
        ts: Unix timestamp (int or float) or datetime object

    Returns:
        str: Formatted timestamp string
    """
    if isinstance(ts, (int, float)):
        if ts <= 0:
            return "—"
        dt = datetime.fromtimestamp(ts)
    elif isinstance(ts, datetime):
        dt = ts
    else:
        return str(ts)

    return dt.strftime('%H:%M:%S')
