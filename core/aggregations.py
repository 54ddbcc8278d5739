from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List

import pandas as pd

from core.fields import DIMENSION_FIELDS, METRIC_FIELDS, PLACEHOLDER


RATIO_FIELDS = ("ctr", "cpc", "cpm", "roas", "cpa")
GROUP_COLUMNS = ["key", *METRIC_FIELDS, *RATIO_FIELDS]
TIMESERIES_COLUMNS = ["date", "spend", "revenue", "conversions", "clicks", "impressions"]


@dataclass(frozen=True)
class AggregateMetrics:
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    conversions: float = 0.0
    revenue: float = 0.0
    ctr: float = 0.0
    cpc: float = 0.0
    cpm: float = 0.0
    roas: float = 0.0
    cpa: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """``numerator / denominator * scale``, or 0.0 unless the denominator is positive."""
    if denominator > 0:
        return numerator / denominator * scale
    return 0.0


def _column_sum(df: pd.DataFrame, col: str) -> float:
    if df.empty or col not in df.columns:
        return 0.0
    return float(df[col].sum())


def aggregate_metrics(df: pd.DataFrame) -> AggregateMetrics:
    spend = _column_sum(df, "spend")
    impressions = _column_sum(df, "impressions")
    clicks = _column_sum(df, "clicks")
    conversions = _column_sum(df, "conversions")
    revenue = _column_sum(df, "revenue")
    return AggregateMetrics(
        spend=spend,
        impressions=impressions,
        clicks=clicks,
        conversions=conversions,
        revenue=revenue,
        ctr=safe_ratio(clicks, impressions, 100.0),
        cpc=safe_ratio(spend, clicks),
        cpm=safe_ratio(spend, impressions, 1000.0),
        roas=safe_ratio(revenue, spend),
        cpa=safe_ratio(spend, conversions),
    )


def group_metrics(df: pd.DataFrame, dimension: str) -> pd.DataFrame:
    if dimension not in DIMENSION_FIELDS:
        raise ValueError(f"Unknown grouping dimension '{dimension}'")
    if df.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS)

    keys = df[dimension].fillna(PLACEHOLDER).astype(str).replace("", PLACEHOLDER)
    rows: List[Dict[str, object]] = []
    # sort=False keeps partitions in encounter order for the stable sort below.
    for key, part in df.groupby(keys, sort=False):
        rows.append({"key": key, **aggregate_metrics(part).to_dict()})
    out = pd.DataFrame(rows, columns=GROUP_COLUMNS)
    return out.sort_values("spend", ascending=False, kind="mergesort").reset_index(drop=True)


def timeseries(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=TIMESERIES_COLUMNS)
    daily = (
        df.dropna(subset=["date"])
        .groupby("date", sort=True)[["spend", "revenue", "conversions", "clicks", "impressions"]]
        .sum()
        .reset_index()
    )
    daily["date"] = daily["date"].astype(str)
    return daily[TIMESERIES_COLUMNS].sort_values("date", kind="mergesort").reset_index(drop=True)
