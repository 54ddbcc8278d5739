from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Optional

import pandas as pd


CURRENCY_CHARS = ",₹$€£"
_STRIP_RE = re.compile(f"[{re.escape(CURRENCY_CHARS)}]")
_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

# Day-first patterns need a trailing 4-digit year, ISO a leading one.
_DMY_DASH_RE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")
_DMY_SLASH_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def _is_blank(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_number(value: object) -> float:
    """Coerce a raw cell like ``"$1,234.50"`` or ``"₹2,000"`` to a float.

    Empty, missing and unparsable values all become ``0.0``.
    """
    if _is_blank(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        out = float(value)
        return out if math.isfinite(out) else 0.0
    cleaned = _STRIP_RE.sub("", str(value)).strip()
    if not cleaned:
        return 0.0
    if not _DECIMAL_RE.match(cleaned):
        return 0.0
    out = float(cleaned)
    return out if math.isfinite(out) else 0.0


def _calendar_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def to_iso_date(value: object) -> Optional[str]:
    """Return ``YYYY-MM-DD`` for a recognised date value, else ``None``.

    Dash and slash separated strings are read day-first (``29-01-2025``), ISO
    strings as-is, and anything else goes through pandas' generic parser.
    """
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    s = str(value).strip()
    for pattern in (_DMY_DASH_RE, _DMY_SLASH_RE):
        match = pattern.match(s)
        if match:
            day, month, year = (int(g) for g in match.groups())
            return _calendar_date(year, month, day)
    match = _ISO_RE.match(s)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _calendar_date(year, month, day)

    try:
        parsed = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date().isoformat()


def coerce_numeric_series(series: pd.Series) -> pd.Series:
    return series.map(parse_number).astype(float)


def coerce_date_series(series: pd.Series) -> pd.Series:
    # An explicit object dtype keeps invalid dates as None on string-backed input.
    return pd.Series([to_iso_date(v) for v in series.tolist()], index=series.index, dtype=object)


def coerce_text(value: object, placeholder: str) -> str:
    if _is_blank(value):
        return placeholder
    return str(value).strip() or placeholder
