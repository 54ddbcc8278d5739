from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.fields import FIELD_KEYS, FIELD_LABELS
from core.filters import DashboardFilters


def compute_debug(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    raw_rows: pd.DataFrame = ctx.get("raw_rows", pd.DataFrame())
    normalized: pd.DataFrame = ctx.get("normalized", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    mapping: Dict[str, Any] = ctx.get("mapping", {}) or {}
    headers = list(ctx.get("headers", []) or [])

    payload = {
        "filters": asdict(filters),
        "row_counts": {
            "raw_rows": int(len(raw_rows)),
            "normalized_rows": int(len(normalized)),
            "dropped_invalid_date": int(len(raw_rows) - len(normalized)),
            "filtered_rows": int(len(filtered)),
        },
        "headers": headers,
        "mapping": [],
        "unmapped_fields": list(ctx.get("unmapped", []) or []),
        "first_raw_row": None,
        "first_normalized_row": None,
        "dates_present": [],
    }

    for key in FIELD_KEYS:
        source = mapping.get(key)
        sample = None
        if source is not None and not raw_rows.empty and source in raw_rows.columns:
            sample = str(raw_rows[source].iloc[0])
        payload["mapping"].append(
            {
                "field": key,
                "label": FIELD_LABELS[key],
                "source": source,
                "in_headers": source in headers if source is not None else False,
                "sample": sample,
            }
        )

    if not raw_rows.empty:
        payload["first_raw_row"] = {str(k): v for k, v in raw_rows.iloc[0].to_dict().items()}
    if not normalized.empty:
        payload["first_normalized_row"] = normalized.iloc[0].to_dict()
        payload["dates_present"] = sorted(str(d) for d in normalized["date"].unique())
    return payload
