"""Tests for core/aggregations.py."""

import pandas as pd
import pytest

from core.aggregations import (
    GROUP_COLUMNS,
    TIMESERIES_COLUMNS,
    AggregateMetrics,
    aggregate_metrics,
    group_metrics,
    safe_ratio,
    timeseries,
)
from core.data import normalize_rows
from core.fields import auto_detect_mapping


def test_aggregate_metrics_end_to_end(sample_parsed):
    rows = normalize_rows(sample_parsed.rows, auto_detect_mapping(sample_parsed.headers))
    kpis = aggregate_metrics(rows)

    assert kpis.spend == 150
    assert kpis.impressions == 1500
    assert kpis.clicks == 60
    assert kpis.conversions == 6
    assert kpis.revenue == 360
    assert kpis.ctr == pytest.approx(4.0)
    assert kpis.cpc == pytest.approx(2.5)
    assert kpis.cpm == pytest.approx(100.0)
    assert kpis.roas == pytest.approx(2.4)
    assert kpis.cpa == pytest.approx(25.0)


def test_zero_denominators_yield_zero(make_rows):
    kpis = aggregate_metrics(make_rows({"spend": 0, "revenue": 50, "clicks": 5}))
    assert kpis.roas == 0.0
    assert kpis.ctr == 0.0
    assert kpis.cpm == 0.0
    assert kpis.cpa == 0.0
    assert kpis.cpc == 0.0


def test_empty_input_is_all_zero():
    assert aggregate_metrics(pd.DataFrame()) == AggregateMetrics()
    assert all(v == 0.0 for v in AggregateMetrics().to_dict().values())


def test_safe_ratio():
    assert safe_ratio(1, 4) == 0.25
    assert safe_ratio(1, 4, 100.0) == 25.0
    assert safe_ratio(5, 0) == 0.0
    assert safe_ratio(5, -1) == 0.0


def test_group_metrics_sorted_by_spend_with_stable_ties(make_rows):
    rows = make_rows(
        {"campaign": "X", "spend": 50},
        {"campaign": "Y", "spend": 100},
        {"campaign": "Z", "spend": 100},
        {"campaign": "W", "spend": 20},
    )
    groups = group_metrics(rows, "campaign")
    assert groups["key"].tolist() == ["Y", "Z", "X", "W"]
    assert list(groups.columns) == GROUP_COLUMNS


def test_group_partition_sums_match_whole(make_rows):
    rows = make_rows(
        {"campaign": "A", "adset": "a1", "spend": 10, "clicks": 3, "impressions": 100},
        {"campaign": "B", "adset": "b1", "spend": 20, "clicks": 1, "impressions": 50},
        {"campaign": "A", "adset": "a2", "spend": 5, "clicks": 2, "impressions": 40},
    )
    whole = aggregate_metrics(rows)
    for dimension in ("campaign", "adset", "ad"):
        groups = group_metrics(rows, dimension)
        assert groups["spend"].sum() == pytest.approx(whole.spend)
        assert groups["clicks"].sum() == pytest.approx(whole.clicks)
        assert groups["impressions"].sum() == pytest.approx(whole.impressions)


def test_group_ratios_computed_per_group(make_rows):
    rows = make_rows(
        {"campaign": "A", "spend": 100, "revenue": 300, "clicks": 10, "impressions": 1000, "conversions": 4},
        {"campaign": "A", "spend": 100, "revenue": 100, "clicks": 10, "impressions": 1000, "conversions": 0},
    )
    group = group_metrics(rows, "campaign").iloc[0]
    assert group["key"] == "A"
    assert group["roas"] == pytest.approx(2.0)
    assert group["ctr"] == pytest.approx(1.0)
    assert group["cpa"] == pytest.approx(50.0)


def test_group_metrics_empty_and_unknown_dimension(make_rows):
    empty = group_metrics(pd.DataFrame(), "campaign")
    assert empty.empty
    assert list(empty.columns) == GROUP_COLUMNS
    with pytest.raises(ValueError):
        group_metrics(make_rows({}), "country")


def test_timeseries_sums_per_date_in_ascending_order(make_rows):
    rows = make_rows(
        {"date": "2025-01-03", "spend": 5, "revenue": 1},
        {"date": "2025-01-01", "spend": 10, "revenue": 20},
        {"date": "2025-01-03", "spend": 7, "revenue": 2},
    )
    series = timeseries(rows)
    assert list(series.columns) == TIMESERIES_COLUMNS
    assert series["date"].tolist() == ["2025-01-01", "2025-01-03"]
    assert series["spend"].tolist() == [10.0, 12.0]
    assert series["revenue"].tolist() == [20.0, 3.0]


def test_timeseries_empty():
    assert list(timeseries(pd.DataFrame()).columns) == TIMESERIES_COLUMNS
