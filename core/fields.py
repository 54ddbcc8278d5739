from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from core.errors import MappingError


logger = logging.getLogger(__name__)

CANONICAL_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("date", "Date"),
    ("campaign", "Campaign"),
    ("adset", "Ad Set"),
    ("ad", "Ad"),
    ("spend", "Spend"),
    ("impressions", "Impressions"),
    ("clicks", "Clicks"),
    ("conversions", "Conversions"),
    ("revenue", "Revenue"),
)
FIELD_KEYS: Tuple[str, ...] = tuple(key for key, _ in CANONICAL_FIELDS)
FIELD_LABELS: Dict[str, str] = dict(CANONICAL_FIELDS)

DIMENSION_FIELDS: Tuple[str, ...] = ("campaign", "adset", "ad")
METRIC_FIELDS: Tuple[str, ...] = ("spend", "impressions", "clicks", "conversions", "revenue")

PLACEHOLDER = "—"

# A field mapped to None is unmapped and resolves to empty values.
FieldMapping = Dict[str, Optional[str]]


def default_mapping() -> FieldMapping:
    return {key: key for key in FIELD_KEYS}


def _find_header(key: str, headers: Sequence[str]) -> Optional[str]:
    k = key.lower()
    for h in headers:
        if str(h).lower() == k:
            return h
    for h in headers:
        if k in str(h).lower():
            return h
    return None


def auto_detect_mapping(headers: Iterable[str]) -> FieldMapping:
    """Match each canonical field to an ingested header.

    An exact case-insensitive match wins over a substring match; fields with
    neither are left unmapped.
    """
    headers = [h for h in headers if h is not None]
    mapping: FieldMapping = {key: _find_header(key, headers) for key in FIELD_KEYS}
    logger.info("Auto-detected column mapping: %s", mapping)
    missing = unmapped_fields(mapping)
    if missing:
        logger.info("No matching header for fields: %s", ", ".join(missing))
    return mapping


def override_mapping(
    mapping: Mapping[str, Optional[str]],
    field: str,
    header: Optional[str],
    *,
    headers: Optional[Sequence[str]] = None,
) -> FieldMapping:
    if field not in FIELD_LABELS:
        raise MappingError(f"Unknown field '{field}'", field=field, header=header)
    if header is not None and headers is not None and header not in headers:
        raise MappingError(f"Column '{header}' is not in the uploaded file", field=field, header=header)
    out = coerce_mapping(mapping)
    out[field] = header
    return out


def mapping_choices(headers: Sequence[str], current: Optional[str]) -> Tuple[List[Optional[str]], int]:
    """Selectable sources for one field and the index of the one shown first.

    A source missing from ``headers`` is shown as unmapped; callers compare the
    picked value to ``options[index]`` so showing it that way changes nothing.
    """
    options: List[Optional[str]] = [None, *headers]
    index = options.index(current) if current in options else 0
    return options, index


def unmapped_fields(mapping: Mapping[str, Optional[str]]) -> List[str]:
    return [key for key in FIELD_KEYS if mapping.get(key) is None]


def coerce_mapping(raw: Optional[Mapping[str, object]]) -> FieldMapping:
    """Complete a partial mapping; unknown keys are dropped, missing keys get identity."""
    raw = raw or {}
    out = default_mapping()
    for key in FIELD_KEYS:
        if key not in raw:
            continue
        value = raw[key]
        out[key] = None if value is None or str(value) == "" else str(value)
    return out
