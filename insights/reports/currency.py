"""Currency formatting for report summaries (South African Rand by default).

Amounts are accumulated as plain floats everywhere else; formatting happens
only when a summary is assembled.
"""

from __future__ import annotations

import re

DEFAULT_SYMBOL = "R"

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def format_currency(amount: float, *, symbol: str = DEFAULT_SYMBOL) -> str:
    """Format ``amount`` as ``"R 1,234.56"``; negatives render as ``"-R 1,234.56"``."""

    rounded = round(float(amount), 2)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol} {abs(rounded):,.2f}"


def parse_currency(formatted: str, *, symbol: str = DEFAULT_SYMBOL) -> float:
    """Inverse of :func:`format_currency`; raises ``ValueError`` for non-numeric text."""

    text = formatted.replace(symbol, "", 1) if symbol else formatted
    cleaned = _NON_NUMERIC.sub("", text)
    return float(cleaned)
