"""Display formatting for prices, percentages and large amounts."""
from __future__ import annotations

import math
from typing import Optional


def _missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def format_price(price: Optional[float]) -> str:
    """Two decimals with thousands separators from 1 up, six below."""
    if _missing(price):
        return "N/A"
    if price >= 1:
        return f"{price:,.2f}"
    return f"{price:.6f}"


def format_percentage(percentage: Optional[float]) -> str:
    if _missing(percentage):
        return "N/A"
    sign = "+" if percentage >= 0 else ""
    return f"{sign}{percentage:.2f}%"


def format_large_number(num: Optional[float]) -> str:
    if _missing(num):
        return "N/A"
    for threshold, suffix in ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K")):
        if num >= threshold:
            return f"${num / threshold:.2f}{suffix}"
    return f"${num:,}"


def format_pnl(pnl: float) -> str:
    """Signed dollar amount, e.g. ``+$1,250.00`` or ``-$1,333.33``."""
    sign = "+" if pnl >= 0 else "-"
    return f"{sign}${format_price(abs(pnl))}"
