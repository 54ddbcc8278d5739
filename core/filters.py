from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Collection, Dict, List, Literal, Optional, Tuple

import pandas as pd

from core.fields import DIMENSION_FIELDS


ALL = "all"
PREVIEW_LIMIT_DEFAULT = 20

Phase = Literal["live", "on_demand"]
Dimension = Literal["campaign", "adset", "ad"]


@dataclass(frozen=True)
class DashboardFilters:
    campaign: str = ALL
    adset: str = ALL
    ad: str = ALL
    date_from: str = ""
    date_to: str = ""
    group_by: Dimension = "campaign"
    preview_limit: int = PREVIEW_LIMIT_DEFAULT

    def dimension_value(self, dimension: str) -> str:
        return getattr(self, dimension)


@dataclass(frozen=True)
class FilterPredicate:
    name: str
    phase: Phase
    mask: Callable[[pd.DataFrame], pd.Series]


def _as_choice(value: object) -> str:
    if value is None:
        return ALL
    s = str(value)
    return s if s.strip() else ALL


def _as_bound(value: object) -> str:
    return (str(value) if value is not None else "").strip()


def normalize_filters(raw: dict) -> DashboardFilters:
    group_by = raw.get("group_by") or "campaign"
    if group_by not in DIMENSION_FIELDS:
        group_by = "campaign"

    preview_limit = raw.get("preview_limit", PREVIEW_LIMIT_DEFAULT)
    try:
        preview_limit = int(preview_limit)
    except (TypeError, ValueError):
        preview_limit = PREVIEW_LIMIT_DEFAULT
    preview_limit = max(1, min(500, preview_limit))

    return DashboardFilters(
        campaign=_as_choice(raw.get("campaign")),
        adset=_as_choice(raw.get("adset")),
        ad=_as_choice(raw.get("ad")),
        date_from=_as_bound(raw.get("date_from")),
        date_to=_as_bound(raw.get("date_to")),
        group_by=group_by,
        preview_limit=preview_limit,
    )


def _dimension_predicate(dimension: str, value: str, phase: Phase) -> FilterPredicate:
    def mask(df: pd.DataFrame) -> pd.Series:
        return df[dimension] == value

    return FilterPredicate(name=dimension, phase=phase, mask=mask)


def _date_predicate(date_from: str, date_to: str, phase: Phase) -> FilterPredicate:
    # YYYY-MM-DD is fixed width, so string order is date order.
    def mask(df: pd.DataFrame) -> pd.Series:
        keep = pd.Series(True, index=df.index)
        if date_from:
            keep &= df["date"] >= date_from
        if date_to:
            keep &= df["date"] <= date_to
        return keep

    return FilterPredicate(name="date", phase=phase, mask=mask)


def build_predicates(
    filters: DashboardFilters,
    *,
    dimension_phase: Phase = "live",
    date_phase: Phase = "on_demand",
) -> List[FilterPredicate]:
    predicates: List[FilterPredicate] = []
    for dimension in DIMENSION_FIELDS:
        value = filters.dimension_value(dimension)
        if value != ALL:
            predicates.append(_dimension_predicate(dimension, value, dimension_phase))
    if filters.date_from or filters.date_to:
        predicates.append(_date_predicate(filters.date_from, filters.date_to, date_phase))
    return predicates


def apply_predicates(
    df: pd.DataFrame,
    predicates: List[FilterPredicate],
    phases: Collection[Phase] = ("live",),
) -> pd.DataFrame:
    if df.empty:
        return df.copy()
    keep = pd.Series(True, index=df.index)
    for predicate in predicates:
        if predicate.phase in phases:
            keep &= predicate.mask(df)
    return df[keep].reset_index(drop=True)


def filter_live(df: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    """Rows behind the KPI cards, charts, breakdown and raw table."""
    return apply_predicates(df, build_predicates(filters), phases=("live",))


def filter_date_range(df: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    """Rows for the on-demand date preview: dimension filters plus the date range."""
    return apply_predicates(df, build_predicates(filters), phases=("live", "on_demand"))


def dimension_values(df: pd.DataFrame) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for dimension in DIMENSION_FIELDS:
        values: List[str] = []
        if not df.empty and dimension in df.columns:
            values = [str(v) for v in df[dimension].drop_duplicates().tolist() if v]
        out[dimension] = [ALL] + values
    return out


def date_bounds(df: pd.DataFrame) -> Tuple[Optional[str], Optional[str]]:
    if df.empty or "date" not in df.columns:
        return None, None
    dates = df["date"].dropna()
    if dates.empty:
        return None, None
    return str(dates.min()), str(dates.max())
