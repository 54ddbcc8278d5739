"""Tests for core/fields.py column mapping."""

import pytest

from core.errors import MappingError
from core.fields import (
    FIELD_KEYS,
    auto_detect_mapping,
    coerce_mapping,
    default_mapping,
    mapping_choices,
    override_mapping,
    unmapped_fields,
)


def test_default_mapping_is_identity():
    mapping = default_mapping()
    assert list(mapping) == list(FIELD_KEYS)
    assert all(mapping[key] == key for key in FIELD_KEYS)


def test_auto_detect_prefers_exact_over_substring():
    headers = ["Date", "Campaign Name", "AdSet", "Ad", "SPEND", "Impressions", "Clicks", "Total Conversions", "revenue"]
    mapping = auto_detect_mapping(headers)
    assert mapping == {
        "date": "Date",
        "campaign": "Campaign Name",
        "adset": "AdSet",
        "ad": "Ad",
        "spend": "SPEND",
        "impressions": "Impressions",
        "clicks": "Clicks",
        "conversions": "Total Conversions",
        "revenue": "revenue",
    }


def test_auto_detect_first_substring_match_wins():
    mapping = auto_detect_mapping(["Ad set name", "Ad name"])
    assert mapping["ad"] == "Ad set name"


def test_auto_detect_leaves_unmatched_fields_unmapped():
    mapping = auto_detect_mapping(["Day", "Amount spent", "Clicks"])
    assert mapping["date"] is None
    assert mapping["spend"] is None
    assert mapping["clicks"] == "Clicks"
    assert "date" in unmapped_fields(mapping)
    assert "clicks" not in unmapped_fields(mapping)


def test_auto_detect_with_no_headers():
    mapping = auto_detect_mapping([])
    assert unmapped_fields(mapping) == list(FIELD_KEYS)


def test_override_returns_new_mapping():
    original = default_mapping()
    updated = override_mapping(original, "spend", "Amount spent")
    assert updated["spend"] == "Amount spent"
    assert original["spend"] == "spend"


def test_override_can_unmap_a_field():
    updated = override_mapping(default_mapping(), "revenue", None)
    assert updated["revenue"] is None
    assert unmapped_fields(updated) == ["revenue"]


def test_override_unknown_field_raises():
    with pytest.raises(MappingError) as exc:
        override_mapping(default_mapping(), "budget", "Budget")
    assert exc.value.field == "budget"


def test_override_rejects_header_not_in_file():
    with pytest.raises(ValueError):
        override_mapping(default_mapping(), "spend", "Cost", headers=["date", "spend"])


def test_mapping_choices_points_at_current_source():
    options, index = mapping_choices(("date", "Amount spent"), "Amount spent")
    assert options == [None, "date", "Amount spent"]
    assert options[index] == "Amount spent"


def test_mapping_choices_shows_missing_source_as_unmapped():
    options, index = mapping_choices(("date",), "Amount spent")
    assert index == 0
    assert options[index] is None
    assert "Amount spent" not in options


def test_mapping_choices_unmapped_field():
    options, index = mapping_choices(("date",), None)
    assert (options, index) == ([None, "date"], 0)


def test_coerce_mapping_completes_partial_input():
    mapping = coerce_mapping({"spend": "Amount spent", "revenue": "", "bogus": "x"})
    assert mapping["spend"] == "Amount spent"
    assert mapping["revenue"] is None
    assert mapping["date"] == "date"
    assert "bogus" not in mapping
    assert coerce_mapping(None) == default_mapping()
