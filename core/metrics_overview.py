from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.aggregations import AggregateMetrics, aggregate_metrics, timeseries
from core.charts import engagement_chart, spend_revenue_chart, to_vega_spec
from core.filters import DashboardFilters
from core.formatting import format_currency, format_percent, nice_number


def kpi_cards(kpis: AggregateMetrics) -> List[Dict[str, Any]]:
    return [
        {"key": "spend", "title": "Spend", "value": kpis.spend, "display": format_currency(kpis.spend, 0), "hint": "Total spend"},
        {"key": "revenue", "title": "Revenue", "value": kpis.revenue, "display": format_currency(kpis.revenue, 0), "hint": "Total revenue"},
        {"key": "roas", "title": "ROAS", "value": kpis.roas, "display": f"{kpis.roas:.2f}", "hint": "Revenue / Spend"},
        {"key": "ctr", "title": "CTR", "value": kpis.ctr, "display": format_percent(kpis.ctr), "hint": "Clicks / Impressions"},
        {"key": "cpc", "title": "CPC", "value": kpis.cpc, "display": format_currency(kpis.cpc), "hint": "Spend / Clicks"},
        {"key": "cpm", "title": "CPM", "value": kpis.cpm, "display": format_currency(kpis.cpm), "hint": "Spend per 1000 impressions"},
        {"key": "clicks", "title": "Clicks", "value": kpis.clicks, "display": nice_number(kpis.clicks), "hint": "Total clicks"},
        {"key": "impressions", "title": "Impressions", "value": kpis.impressions, "display": nice_number(kpis.impressions), "hint": "Total impressions"},
        {"key": "conversions", "title": "Conversions", "value": kpis.conversions, "display": nice_number(kpis.conversions), "hint": "Total conversions"},
        {"key": "cpa", "title": "CPA", "value": kpis.cpa, "display": format_currency(kpis.cpa), "hint": "Spend / Conversions"},
    ]


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    kpis: AggregateMetrics = ctx.get("kpis") or aggregate_metrics(filtered)
    series: pd.DataFrame = ctx.get("timeseries")
    if series is None:
        series = timeseries(filtered)

    charts: Dict[str, Any] = {}
    if not series.empty:
        charts = {
            "spend_revenue": to_vega_spec(spend_revenue_chart(series)),
            "engagement": to_vega_spec(engagement_chart(series)),
        }

    return {
        "filters": asdict(filters),
        "row_count": int(len(filtered)),
        "kpis": kpis.to_dict(),
        "cards": kpi_cards(kpis),
        "timeseries": series.to_dict(orient="records"),
        "charts": charts,
    }
