from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

import pandas as pd

from core.aggregations import group_metrics
from core.charts import breakdown_chart, to_vega_spec
from core.fields import FIELD_LABELS
from core.filters import DashboardFilters

CHART_TOP_N = 15


def compute_breakdown(
    filters: DashboardFilters,
    ctx: Dict[str, Any],
    *,
    dimension: Optional[str] = None,
) -> Dict[str, Any]:
    dimension = dimension or filters.group_by
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    groups: Optional[pd.DataFrame] = ctx.get("groups") if dimension == filters.group_by else None
    if groups is None:
        groups = group_metrics(filtered, dimension)

    label = FIELD_LABELS.get(dimension, dimension)
    if groups.empty:
        return {"filters": asdict(filters), "dimension": dimension, "label": label, "groups": [], "charts": {}}

    top = groups.head(CHART_TOP_N)
    return {
        "filters": asdict(filters),
        "dimension": dimension,
        "label": label,
        "groups": groups.to_dict(orient="records"),
        "charts": {"breakdown": to_vega_spec(breakdown_chart(top, label))},
    }
