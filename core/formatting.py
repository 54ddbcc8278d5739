from __future__ import annotations

from typing import Optional

import pandas as pd


CURRENCY_SYMBOL = "₹"


def _grouped(value: float, digits: int) -> str:
    s = f"{value:,.{digits}f}"
    if digits and "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def nice_number(value: Optional[float], digits: int = 0) -> str:
    """Compact display number: ``1234`` -> ``"1K"``, ``2500000`` with ``digits=1`` -> ``"2.5M"``."""
    if value is None or pd.isna(value):
        return "N/A"
    n = float(value)
    if n == 0:
        return "0"
    magnitude = abs(n)
    if magnitude >= 1_000_000_000:
        return _grouped(n / 1_000_000_000, digits) + "B"
    if magnitude >= 1_000_000:
        return _grouped(n / 1_000_000, digits) + "M"
    if magnitude >= 1_000:
        return _grouped(n / 1_000, digits) + "K"
    return _grouped(n, digits)


def format_currency(value: Optional[float], decimals: int = 2) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{CURRENCY_SYMBOL}{float(value):,.{decimals}f}"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    """Format a value already expressed in percent (CTR is ``clicks/impressions*100``)."""
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):.{decimals}f}%"
