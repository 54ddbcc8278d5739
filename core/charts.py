from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def spend_revenue_chart(series: pd.DataFrame) -> alt.Chart:
    long = series.melt(id_vars=["date"], value_vars=["spend", "revenue"], var_name="metric", value_name="value")
    hover = alt.selection_point(fields=["metric"], on="mouseover", empty="all")
    return (
        alt.Chart(long)
        .mark_area(opacity=0.35, line=True)
        .encode(
            x=alt.X("date:T", title="Date", axis=alt.Axis(grid=False)),
            y=alt.Y("value:Q", stack=None, axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("metric:N", title=None),
            opacity=alt.condition(hover, alt.value(0.6), alt.value(0.15)),
            tooltip=[
                alt.Tooltip("date:T", title="Date"),
                alt.Tooltip("metric:N", title="Metric"),
                alt.Tooltip("value:Q", title="Value", format=",.2f"),
            ],
        )
        .add_params(hover)
        .properties(height=260)
    )


def engagement_chart(series: pd.DataFrame) -> alt.Chart:
    base = alt.Chart(series).encode(x=alt.X("date:T", title="Date", axis=alt.Axis(grid=False)))
    bars = base.mark_bar(opacity=0.7).encode(
        y=alt.Y("clicks:Q", title="Clicks", axis=alt.Axis(format="~s", gridDash=[4, 4])),
        tooltip=["date", alt.Tooltip("clicks:Q", format=","), alt.Tooltip("conversions:Q", format=",")],
    )
    line = base.mark_line(point={"filled": True, "size": 50}, color="#f59e0b").encode(
        y=alt.Y("conversions:Q", title="Conversions"),
    )
    return alt.layer(bars, line).resolve_scale(y="independent").properties(height=260)


def breakdown_chart(groups: pd.DataFrame, dimension_label: str) -> alt.Chart:
    long = groups.melt(id_vars=["key"], value_vars=["spend", "revenue"], var_name="metric", value_name="value")
    hover = alt.selection_point(fields=["key"], on="mouseover", empty="all")
    return (
        alt.Chart(long)
        .mark_bar()
        .encode(
            x=alt.X("key:N", title=dimension_label, sort=list(groups["key"]), axis=alt.Axis(grid=False, labelLimit=160)),
            xOffset="metric:N",
            y=alt.Y("value:Q", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color("metric:N", title=None),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[
                alt.Tooltip("key:N", title=dimension_label),
                alt.Tooltip("metric:N", title="Metric"),
                alt.Tooltip("value:Q", title="Value", format=",.2f"),
            ],
        )
        .add_params(hover)
        .properties(height=300)
    )
