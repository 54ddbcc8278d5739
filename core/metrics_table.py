from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.aggregations import aggregate_metrics
from core.data import empty_normalized
from core.filters import DashboardFilters, filter_date_range


def compute_table(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", empty_normalized())
    return {
        "filters": asdict(filters),
        "row_count": int(len(filtered)),
        "rows": filtered.to_dict(orient="records"),
    }


def compute_date_range(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """On-demand preview for the selected date range.

    Only runs when the user asks for it; the live pages ignore the date bounds.
    """
    normalized: pd.DataFrame = ctx.get("normalized", empty_normalized())
    matched = filter_date_range(normalized, filters)
    totals = aggregate_metrics(matched)

    per_date: Dict[str, int] = {}
    if not matched.empty:
        per_date = {str(k): int(v) for k, v in matched.groupby("date", sort=True).size().items()}

    # Nothing matched: list what is there so the user can fix the bounds.
    available_dates = []
    if matched.empty and not normalized.empty:
        available_dates = sorted(str(d) for d in normalized["date"].unique())

    return {
        "filters": asdict(filters),
        "date_from": filters.date_from or None,
        "date_to": filters.date_to or None,
        "row_count": int(len(matched)),
        "spend": totals.spend,
        "revenue": totals.revenue,
        "rows_per_date": per_date,
        "preview": matched.head(filters.preview_limit).to_dict(orient="records"),
        "available_dates": available_dates,
    }
