"""
Utilities Module

This module contains shared utilities and helper functions.
"""

from .config import Config
from .formatters import format_currency, format_percent, format_postal_code
from .logging import get_logger, setup_logging

__all__ = [
    "Config",
    "setup_logging",
    "get_logger",
    "format_currency",
    "format_percent",
    "format_postal_code",
]
