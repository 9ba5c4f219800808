"""
Budget Audit - Budget vs Cart Comparison CLI Tool

Normalizes VTEX-style budget and cart (orderForm) documents into a common
shape and reports item, totals, shipping, promotion and marketing tag
divergences with a severity for each.
"""

__version__ = "0.1.0"

# Import main modules for CLI functionality
from . import comparison
from . import utils

__all__ = ["comparison", "utils"]
