"""Display formatting helpers (BRL currency, percentages, postal codes)."""

import re


def format_number(value: float, decimals: int = 2) -> str:
    """Format a number with '.' thousands and ',' decimal separators."""
    text = f"{abs(value):,.{decimals}f}"
    # Swap separators: 1,234.56 -> 1.234,56
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{text}" if value < 0 and text.strip("0,.") else text


def format_currency(value: float) -> str:
    """Format a major-unit amount as Brazilian reais, e.g. ``R$ 1.234,56``."""
    formatted = format_number(value, 2)
    if formatted.startswith("-"):
        return f"-R$ {formatted[1:]}"
    return f"R$ {formatted}"


def format_percent(value: float, decimals: int = 2) -> str:
    """Format a signed percentage, e.g. ``+10,00%``."""
    sign = "+" if value > 0 else ""
    return f"{sign}{format_number(value, decimals)}%"


def format_postal_code(postal_code: str) -> str:
    """Format an 8 digit CEP as ``01310-100``; other values are returned unchanged."""
    digits = re.sub(r"\D", "", postal_code or "")
    if len(digits) != 8:
        return postal_code
    return f"{digits[:5]}-{digits[5:]}"


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."
