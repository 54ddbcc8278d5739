"""Tests for core/filters.py."""

import pandas as pd

from core.aggregations import aggregate_metrics, group_metrics
from core.data import normalize_rows
from core.fields import auto_detect_mapping
from core.filters import (
    ALL,
    PREVIEW_LIMIT_DEFAULT,
    DashboardFilters,
    apply_predicates,
    build_predicates,
    date_bounds,
    dimension_values,
    filter_date_range,
    filter_live,
    normalize_filters,
)


def _rows(make_rows):
    return make_rows(
        {"date": "2025-01-01", "campaign": "A", "adset": "a1", "ad": "x", "spend": 10},
        {"date": "2025-01-02", "campaign": "A", "adset": "a2", "ad": "y", "spend": 20},
        {"date": "2025-01-03", "campaign": "B", "adset": "b1", "ad": "x", "spend": 30},
        {"date": "2025-01-04", "campaign": "B", "adset": "b1", "ad": "z", "spend": 40},
    )


def test_normalize_filters_defaults():
    filters = normalize_filters({})
    assert filters == DashboardFilters()
    assert filters.campaign == ALL
    assert filters.preview_limit == PREVIEW_LIMIT_DEFAULT


def test_normalize_filters_cleans_input():
    filters = normalize_filters(
        {
            "campaign": "  ",
            "adset": None,
            "ad": "x",
            "date_from": " 2025-01-02 ",
            "group_by": "country",
            "preview_limit": "10000",
        }
    )
    assert filters.campaign == ALL
    assert filters.adset == ALL
    assert filters.ad == "x"
    assert filters.date_from == "2025-01-02"
    assert filters.group_by == "campaign"
    assert filters.preview_limit == 500
    assert normalize_filters({"preview_limit": "lots"}).preview_limit == PREVIEW_LIMIT_DEFAULT
    assert normalize_filters({"preview_limit": 0}).preview_limit == 1


def test_filter_all_keeps_everything(make_rows):
    rows = _rows(make_rows)
    assert len(filter_live(rows, DashboardFilters())) == 4


def test_dimension_filters_combine(make_rows):
    rows = _rows(make_rows)
    out = filter_live(rows, DashboardFilters(campaign="B", ad="x"))
    assert out["spend"].tolist() == [30.0]
    assert out.index.tolist() == [0]


def test_live_filter_ignores_date_range(make_rows):
    rows = _rows(make_rows)
    filters = DashboardFilters(date_from="2025-01-02", date_to="2025-01-02")
    assert len(filter_live(rows, filters)) == 4
    assert filter_date_range(rows, filters)["date"].tolist() == ["2025-01-02"]


def test_date_range_bounds_are_inclusive_and_optional(make_rows):
    rows = _rows(make_rows)
    out = filter_date_range(rows, DashboardFilters(date_from="2025-01-02", date_to="2025-01-03"))
    assert out["date"].tolist() == ["2025-01-02", "2025-01-03"]
    assert len(filter_date_range(rows, DashboardFilters(date_from="2025-01-03"))) == 2
    assert len(filter_date_range(rows, DashboardFilters(date_to="2025-01-01"))) == 1


def test_date_range_respects_dimension_filters(make_rows):
    rows = _rows(make_rows)
    out = filter_date_range(rows, DashboardFilters(campaign="A", date_from="2025-01-02"))
    assert out["spend"].tolist() == [20.0]


def test_date_predicate_can_run_live(make_rows):
    rows = _rows(make_rows)
    filters = DashboardFilters(date_from="2025-01-03")
    predicates = build_predicates(filters, date_phase="live")
    assert [p.name for p in predicates] == ["date"]
    assert len(apply_predicates(rows, predicates)) == 2


def test_no_match_yields_empty_rows_and_zero_aggregates(sample_parsed):
    rows = normalize_rows(sample_parsed.rows, auto_detect_mapping(sample_parsed.headers))
    out = filter_live(rows, DashboardFilters(campaign="B"))
    assert out.empty
    kpis = aggregate_metrics(out)
    assert kpis.spend == 0.0
    assert kpis.roas == 0.0
    assert group_metrics(out, "campaign").empty


def test_apply_predicates_on_empty_frame():
    empty = pd.DataFrame(columns=["date", "campaign"])
    assert filter_live(empty, DashboardFilters(campaign="A")).empty


def test_dimension_values_in_encounter_order(make_rows):
    rows = _rows(make_rows)
    values = dimension_values(rows)
    assert values["campaign"] == [ALL, "A", "B"]
    assert values["adset"] == [ALL, "a1", "a2", "b1"]
    assert values["ad"] == [ALL, "x", "y", "z"]
    assert dimension_values(pd.DataFrame())["campaign"] == [ALL]


def test_date_bounds(make_rows):
    assert date_bounds(_rows(make_rows)) == ("2025-01-01", "2025-01-04")
    assert date_bounds(pd.DataFrame()) == (None, None)
