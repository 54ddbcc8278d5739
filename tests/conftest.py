"""Shared fixtures for the dashboard core tests."""

from __future__ import annotations

import pandas as pd
import pytest

from core.data import NORMALIZED_COLUMNS, parse_csv_text


SAMPLE_CSV = (
    "date,campaign,spend,impressions,clicks,conversions,revenue\n"
    "2025-01-01,A,100,1000,50,5,300\n"
    "2025-01-02,A,50,500,10,1,60\n"
)

EXPORT_CSV = (
    "Day,Campaign name,Ad set name,Ad name,Amount spent,Impressions,Link clicks,Conversions,Revenue\n"
    '29-01-2025,Prospecting,Lookalike,UGC_01,"₹1,200.50",52000,1400,22,"₹5,000"\n'
    "30/01/2025,Retargeting,ATC 14d,Carousel,$300,18000,900,35,1750\n"
    "not a date,Retargeting,ATC 14d,Carousel,100,1000,10,1,50\n"
    "2025-01-31,  ,,Static,0,0,0,0,0\n"
)


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def export_csv() -> str:
    return EXPORT_CSV


@pytest.fixture
def sample_parsed():
    return parse_csv_text(SAMPLE_CSV)


@pytest.fixture
def make_rows():
    """Build a normalized frame from partial row dicts."""

    def _make(*rows: dict) -> pd.DataFrame:
        defaults = {
            "date": "2025-01-01",
            "campaign": "—",
            "adset": "—",
            "ad": "—",
            "spend": 0.0,
            "impressions": 0.0,
            "clicks": 0.0,
            "conversions": 0.0,
            "revenue": 0.0,
        }
        records = [{**defaults, **row} for row in rows]
        df = pd.DataFrame(records, columns=NORMALIZED_COLUMNS)
        for col in ["spend", "impressions", "clicks", "conversions", "revenue"]:
            df[col] = df[col].astype(float)
        return df

    return _make
